"""Reusable paging and caching primitives with no UI or network dependencies."""

from .errors import CatFeedError, FetchError, DecodeError, ConfigError
from .models import Cat, Pending, Loaded, Failed, Slot, PENDING
from .dispatch import Dispatcher, ImmediateDispatcher, ExecutorDispatcher, QueueDispatcher
from .paging import PagedListLoader, SlotsChanged
from .cache import KeyedAsyncCache

__all__ = [
    'CatFeedError', 'FetchError', 'DecodeError', 'ConfigError',
    'Cat', 'Pending', 'Loaded', 'Failed', 'Slot', 'PENDING',
    'Dispatcher', 'ImmediateDispatcher', 'ExecutorDispatcher', 'QueueDispatcher',
    'PagedListLoader', 'SlotsChanged',
    'KeyedAsyncCache',
]
