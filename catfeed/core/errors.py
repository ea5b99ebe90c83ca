from __future__ import annotations
from typing import Optional


class CatFeedError(Exception):
    """Base class for all catfeed errors."""


class FetchError(CatFeedError):
    """Network or transport failure while fetching a resource."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class DecodeError(CatFeedError):
    """Payload could not be decoded into the expected shape."""


class ConfigError(CatFeedError):
    """Configuration file is missing, unreadable or invalid."""
