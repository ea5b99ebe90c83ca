from __future__ import annotations
from typing import Any, Callable, Dict, Generic, List, MutableMapping, Optional, Tuple, TypeVar
import logging

from cachetools import LRUCache

from .dispatch import Dispatcher

logger = logging.getLogger(__name__)

V = TypeVar("V")

Fetch = Callable[[str], V]
ValueCallback = Callable[[V], None]
ErrorCallback = Callable[[Exception], None]


class KeyedAsyncCache(Generic[V]):
    """
    Cache-or-fetch store keyed by literal strings (image URLs).

    A cached key is answered synchronously without touching the fetch
    function. A miss fetches through the dispatcher and stores the result
    only if the fetch succeeds. With ``max_items`` set, eviction is left to
    ``cachetools.LRUCache``; otherwise the store is unbounded.
    """

    def __init__(self, dispatcher: Dispatcher, max_items: Optional[int] = None, coalesce: bool = False):
        if max_items is not None and max_items < 1:
            raise ValueError(f"max_items must be positive, got {max_items}")
        self._dispatcher = dispatcher
        self._store: MutableMapping[str, V] = LRUCache(maxsize=max_items) if max_items else {}
        self._coalesce = coalesce
        self._waiters: Dict[str, List[Tuple[ValueCallback, Optional[ErrorCallback]]]] = {}
        self._stats = {"hits": 0, "misses": 0, "fetches": 0, "failures": 0}

    def get(self, key: str) -> Optional[V]:
        """Get cached value by key."""
        return self._store.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def resolve(
        self,
        key: str,
        fetch: Fetch,
        on_value: ValueCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[V]:
        """Deliver the value for ``key``; returns it when it was already cached."""
        if key in self._store:
            value = self._store[key]
            self._stats["hits"] += 1
            on_value(value)
            return value

        self._stats["misses"] += 1
        waiter = (on_value, on_error)
        if self._coalesce:
            if key in self._waiters:
                self._waiters[key].append(waiter)
                logger.debug(f"Joined in-flight fetch for {key}")
                return None
            self._waiters[key] = [waiter]
        self._stats["fetches"] += 1

        def work() -> V:
            value = fetch(key)
            if value is None:
                raise LookupError(f"fetch returned nothing for {key}")
            return value

        self._dispatcher.submit(
            work,
            lambda value: self._on_fetched(key, value, waiter),
            lambda exc: self._on_failed(key, exc, waiter),
        )
        return None

    def _take_waiters(self, key: str, waiter) -> List[Tuple[ValueCallback, Optional[ErrorCallback]]]:
        if self._coalesce:
            return self._waiters.pop(key, [])
        return [waiter]

    def _on_fetched(self, key: str, value: V, waiter) -> None:
        self._store[key] = value
        for on_value, _ in self._take_waiters(key, waiter):
            try:
                on_value(value)
            except Exception as e:
                logger.error(f"Cache subscriber failed for {key}: {e}", exc_info=e)

    def _on_failed(self, key: str, exc: Exception, waiter) -> None:
        self._stats["failures"] += 1
        logger.warning(f"Fetch failed for {key}: {exc}")
        for _, on_error in self._take_waiters(key, waiter):
            if on_error is None:
                continue
            try:
                on_error(exc)
            except Exception as e:
                logger.error(f"Cache error subscriber failed for {key}: {e}", exc_info=e)

    def clear(self) -> None:
        """Clear all cached items."""
        self._store.clear()

    def stats(self) -> Dict[str, Any]:
        return dict(self._stats, entries=len(self._store))
