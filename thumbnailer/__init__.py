"""Blob-created thumbnail generator."""

__version__ = "1.0.0"
