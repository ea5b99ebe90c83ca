"""Dispatcher whose owner thread is the Qt GUI thread."""

from __future__ import annotations
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal, Slot

from ..core.dispatch import ExecutorDispatcher


class _Relay(QObject):
    """Lives on the GUI thread; queued signal delivery hops completions onto it."""

    posted = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.posted.connect(self._run)

    @Slot(object)
    def _run(self, callback: Callable[[], None]) -> None:
        ExecutorDispatcher._run_callback(callback)


class QtDispatcher(ExecutorDispatcher):
    """
    Fetches run on the executor pool; completions are emitted through a
    signal owned by the thread that created the dispatcher, so Qt queues
    them onto that thread's event loop.
    """

    def __init__(self, max_workers: Optional[int] = None, parent: Optional[QObject] = None):
        super().__init__(max_workers)
        self._relay = _Relay(parent)

    def post(self, callback: Callable[[], None]) -> None:
        self._relay.posted.emit(callback)
