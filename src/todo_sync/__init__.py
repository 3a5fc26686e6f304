"""Console to-do client with an optimistic synchronization core."""

__version__ = "0.1.0"
