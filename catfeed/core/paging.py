"""
Incremental page loader for an endless feed.

Slots are reserved a whole page at a time as soon as a page is requested and
filled in index order when the page arrives. The feed never ends, so the slot
list only ever grows.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, Sequence, Set, Tuple, TypeVar
import logging

from .dispatch import Dispatcher
from .models import PENDING, Failed, Loaded, Pending, Slot

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[int, int], bytes]
PageDecoder = Callable[[bytes], Sequence[T]]


@dataclass(frozen=True)
class SlotsChanged:
    """Notification sent to listeners; ``start``/``stop`` bound the touched slots."""
    start: int
    stop: int
    reason: str  # "reserved" | "loaded" | "failed"
    page: int


SlotsListener = Callable[[SlotsChanged], None]


class PagedListLoader(Generic[T]):
    """Owns the slot list and requests pages as the consumer scrolls."""

    def __init__(
        self,
        fetch_page: PageFetcher,
        decode: PageDecoder,
        dispatcher: Dispatcher,
        page_size: int = 100,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._fetch_page = fetch_page
        self._decode = decode
        self._dispatcher = dispatcher
        self._page_size = page_size
        self._slots: List[Slot] = []
        self._requested: Set[int] = set()
        self._errors: Dict[int, str] = {}
        self._listeners: List[SlotsListener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def slots(self) -> Tuple[Slot, ...]:
        return tuple(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> Slot:
        return self._slots[index]

    def items(self) -> List[T]:
        """Loaded items in slot order."""
        return [s.item for s in self._slots if isinstance(s, Loaded)]

    def is_requested(self, page: int) -> bool:
        return page in self._requested

    def page_error(self, page: int) -> Optional[str]:
        return self._errors.get(page)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe(self, listener: SlotsListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SlotsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: SlotsChanged) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"Slots listener failed on {change.reason} page {change.page}: {e}", exc_info=e)

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        self.request_page(0)

    def notify_visible(self, index: int) -> bool:
        """
        Called once per slot as it becomes visible. Only the first slot of a
        page can trigger a request, and only for the page right after the last
        reserved one. Returns True when a page request was issued.
        """
        if not 0 <= index < len(self._slots):
            raise IndexError(f"slot index {index} out of range (0..{len(self._slots) - 1})")
        if index % self._page_size != 0:
            return False
        next_page = index // self._page_size + 1
        if next_page * self._page_size != len(self._slots):
            return False
        return self.request_page(next_page)

    def request_page(self, page: int) -> bool:
        """
        Reserve ``page_size`` slots for ``page`` and fetch into them. Only the
        page right after the last reserved one can be requested, so a page's
        items always land at ``page * page_size``.
        """
        if page in self._requested:
            return False
        start = page * self._page_size
        if start != len(self._slots):
            logger.warning(f"Page {page} is not next in line (slots reserved: {len(self._slots)})")
            return False
        self._requested.add(page)
        self._slots.extend([PENDING] * self._page_size)
        logger.debug(f"Requested page {page} into slots {start}..{len(self._slots) - 1}")
        self._notify(SlotsChanged(start, len(self._slots), "reserved", page))

        def work() -> Sequence[T]:
            return self._decode(self._fetch_page(page, self._page_size))

        try:
            self._dispatcher.submit(
                work,
                lambda items: self._on_page_loaded(page, start, items),
                lambda exc: self._on_page_failed(page, start, exc),
            )
        except RuntimeError as e:
            # Dispatcher already shut down; the reservation can never fill.
            self._on_page_failed(page, start, e)
            return False
        return True

    def _on_page_loaded(self, page: int, start: int, items: Sequence[T]) -> None:
        count = min(len(items), self._page_size)
        if len(items) > self._page_size:
            logger.warning(f"Page {page} returned {len(items)} items, keeping {self._page_size}")
        for offset in range(count):
            self._slots[start + offset] = Loaded(items[offset])
        logger.debug(f"Page {page} loaded with {count} item(s)")
        self._notify(SlotsChanged(start, start + count, "loaded", page))

    def _on_page_failed(self, page: int, start: int, exc: Exception) -> None:
        reason = str(exc) or type(exc).__name__
        self._errors[page] = reason
        failed = Failed(reason)
        for index in range(start, start + self._page_size):
            if isinstance(self._slots[index], Pending):
                self._slots[index] = failed
        logger.warning(f"Page {page} failed: {reason}")
        self._notify(SlotsChanged(start, start + self._page_size, "failed", page))
