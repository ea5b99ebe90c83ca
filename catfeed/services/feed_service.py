"""
Feed service implementation for catfeed.
Owns the paged cat list and republishes its changes on the event bus.
"""

from __future__ import annotations
from typing import List, Optional, Tuple

from .config_service import PagingConfig
from .interfaces import ICatApi, IEventBus, ILogger, Events
from ..core.decoding import decode_cats
from ..core.dispatch import Dispatcher
from ..core.models import Cat, Slot
from ..core.paging import PagedListLoader, SlotsChanged


class CatFeedService:
    """Paged list of cats for a list screen."""

    def __init__(self, api: ICatApi, dispatcher: Dispatcher, logger: ILogger,
                 event_bus: IEventBus, paging: Optional[PagingConfig] = None):
        self._logger = logger
        self._event_bus = event_bus
        page_size = (paging or PagingConfig()).page_size
        self._loader: PagedListLoader[Cat] = PagedListLoader(
            api.fetch_page, decode_cats, dispatcher, page_size=page_size
        )
        self._loader.subscribe(self._on_slots_changed)

    @property
    def loader(self) -> PagedListLoader[Cat]:
        return self._loader

    @property
    def page_size(self) -> int:
        return self._loader.page_size

    @property
    def slots(self) -> Tuple[Slot, ...]:
        return self._loader.slots

    def cats(self) -> List[Cat]:
        return self._loader.items()

    def start(self) -> None:
        """Request the first page."""
        self._logger.info("Starting cat feed", page_size=self.page_size)
        self._loader.initialize()

    def notify_visible(self, index: int) -> bool:
        return self._loader.notify_visible(index)

    def _on_slots_changed(self, change: SlotsChanged) -> None:
        self._event_bus.publish(Events.SLOTS_CHANGED, change)
        if change.reason == "reserved":
            self._logger.debug("Page requested", page=change.page)
            self._event_bus.publish(Events.PAGE_REQUESTED, {"page": change.page})
        elif change.reason == "loaded":
            count = change.stop - change.start
            self._logger.info(f"Loaded page {change.page}", items=count)
            self._event_bus.publish(Events.PAGE_LOADED, {"page": change.page, "count": count})
        elif change.reason == "failed":
            error = self._loader.page_error(change.page)
            self._logger.warning(f"Page {change.page} failed: {error}")
            self._event_bus.publish(Events.PAGE_FAILED, {"page": change.page, "error": error})
