"""
Image service implementation for catfeed.
Fetches, decodes and caches images by URL.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional

import numpy as np

from .interfaces import ICatApi, IEventBus, IImageService, ILogger, Events
from ..core.cache import KeyedAsyncCache
from ..core.decoding import decode_image


class ImageService(IImageService):
    """Concrete implementation of image service."""

    def __init__(self, api: ICatApi, cache: KeyedAsyncCache, logger: ILogger,
                 event_bus: Optional[IEventBus] = None):
        self._api = api
        self._cache = cache
        self._logger = logger
        self._event_bus = event_bus

    def _fetch_and_decode(self, url: str) -> np.ndarray:
        # Runs on a worker thread
        return decode_image(self._api.fetch_bytes(url))

    def load_image(self, url: str, on_image: Callable[[np.ndarray], None],
                   on_error: Optional[Callable[[Exception], None]] = None) -> Optional[np.ndarray]:
        """Deliver the decoded image for ``url``; returns it if already cached."""

        def delivered(image: np.ndarray) -> None:
            if self._event_bus:
                self._event_bus.publish(Events.IMAGE_LOADED, {"url": url, "shape": image.shape})
            on_image(image)

        def failed(exc: Exception) -> None:
            self._logger.warning(f"Failed to load image: {exc}", url=url)
            if self._event_bus:
                self._event_bus.publish(Events.IMAGE_FAILED, {"url": url, "error": str(exc)})
            if on_error:
                on_error(exc)

        return self._cache.resolve(url, self._fetch_and_decode, delivered, failed)

    def get_cached(self, url: str) -> Optional[np.ndarray]:
        return self._cache.get(url)

    def clear_cache(self) -> None:
        """Clear all cached images."""
        self._cache.clear()
        self._logger.debug("Image cache cleared")

    def get_cache_stats(self) -> Dict[str, int]:
        return self._cache.stats()
