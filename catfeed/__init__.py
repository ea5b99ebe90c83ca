"""Lazily paged cat image feed with an in-memory image cache."""

__version__ = "1.0.0"
