"""HTTP gateway over a MinIO bucket."""

__version__ = "1.0.0"
