"""
Abstract interfaces for catfeed services.
These interfaces define contracts for the service components,
so front ends and tests can swap in their own implementations.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import numpy as np


class ILogger(ABC):
    """Interface for logging operations."""

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        """Log a debug message."""
        pass

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        """Log an info message."""
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs) -> None:
        """Log a warning message."""
        pass

    @abstractmethod
    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log an error message."""
        pass


class IEventBus(ABC):
    """Interface for event-driven communication between components."""

    @abstractmethod
    def subscribe(self, event_type: str, handler: Callable) -> None:
        """Subscribe to an event type."""
        pass

    @abstractmethod
    def unsubscribe(self, event_type: str, handler: Callable) -> None:
        """Unsubscribe from an event type."""
        pass

    @abstractmethod
    def publish(self, event_type: str, data: Any = None) -> None:
        """Publish an event."""
        pass


class IConfigService(ABC):
    """Interface for configuration management."""

    @abstractmethod
    def load_config(self) -> Dict[str, Any]:
        """Return the current configuration as a plain dictionary."""
        pass

    @abstractmethod
    def save_config(self, config: Dict[str, Any]) -> bool:
        """Validate, apply and persist a configuration dictionary."""
        pass

    @abstractmethod
    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a specific setting value."""
        pass

    @abstractmethod
    def set_setting(self, key: str, value: Any) -> None:
        """Set a specific setting value."""
        pass


class ICatApi(ABC):
    """Remote data source: pages of cat records and raw image bytes."""

    @abstractmethod
    def fetch_page(self, page: int, limit: int) -> bytes:
        """Fetch one raw search page. Raises FetchError."""
        pass

    @abstractmethod
    def fetch_bytes(self, url: str) -> bytes:
        """Fetch a resource body. Raises FetchError."""
        pass


class IImageService(ABC):
    """Interface for cached image loading."""

    @abstractmethod
    def load_image(self, url: str, on_image: Callable[[np.ndarray], None],
                   on_error: Optional[Callable[[Exception], None]] = None) -> Optional[np.ndarray]:
        """Deliver the decoded image for ``url``; returns it if already cached."""
        pass


# Event types for the event bus
class Events:
    """Standard event types used throughout the application."""

    # Feed events
    PAGE_REQUESTED = "feed.page_requested"
    PAGE_LOADED = "feed.page_loaded"
    PAGE_FAILED = "feed.page_failed"
    SLOTS_CHANGED = "feed.slots_changed"

    # Image events
    IMAGE_LOADED = "image.loaded"
    IMAGE_FAILED = "image.failed"
