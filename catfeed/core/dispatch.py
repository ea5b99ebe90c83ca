"""
Dispatchers run blocking fetches off the owner thread and hand the results
back to it. Everything that mutates loader slots or cache entries runs inside
a completion callback, so state is only ever touched by the owner.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar
import logging
import queue
import threading
import time

logger = logging.getLogger(__name__)

T = TypeVar("T")

Work = Callable[[], T]
SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[Exception], None]


class Dispatcher(ABC):
    """Contract shared by the loader and the cache."""

    @abstractmethod
    def submit(self, work: Work, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        """Run ``work`` in the background, then call one of the callbacks on the owner thread."""
        pass

    @abstractmethod
    def post(self, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` on the owner thread."""
        pass

    def shutdown(self, wait: bool = True) -> None:
        pass

    @staticmethod
    def _run_callback(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Completion callback failed: {e}", exc_info=e)


class ImmediateDispatcher(Dispatcher):
    """Runs work and completions inline on the calling thread."""

    def submit(self, work: Work, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        try:
            result = work()
        except Exception as e:
            self._run_callback(lambda: on_failure(e))
            return
        self._run_callback(lambda: on_success(result))

    def post(self, callback: Callable[[], None]) -> None:
        self._run_callback(callback)


class ExecutorDispatcher(Dispatcher):
    """Thread-pool backed dispatcher; subclasses decide how ``post`` reaches the owner."""

    def __init__(self, max_workers: Optional[int] = None):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="catfeed-fetch")
        self._lock = threading.Lock()
        self._outstanding = 0

    @property
    def outstanding(self) -> int:
        with self._lock:
            return self._outstanding

    def submit(self, work: Work, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        with self._lock:
            self._outstanding += 1
        try:
            future = self._executor.submit(work)
        except RuntimeError:
            with self._lock:
                self._outstanding -= 1
            raise
        future.add_done_callback(lambda f: self._complete(f, on_success, on_failure))

    def _complete(self, future: Future, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        # Runs on a worker thread; only hands off to the owner.
        exc = future.exception()
        if exc is not None:
            completion = lambda: on_failure(exc)
        else:
            result = future.result()
            completion = lambda: on_success(result)

        def finish() -> None:
            try:
                self._run_callback(completion)
            finally:
                with self._lock:
                    self._outstanding -= 1

        self.post(finish)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class QueueDispatcher(ExecutorDispatcher):
    """
    Completions are queued until the owner thread drains them with
    ``process_pending`` or ``wait_idle``. Suitable for headless event loops.
    """

    def __init__(self, max_workers: Optional[int] = None):
        super().__init__(max_workers)
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()

    def post(self, callback: Callable[[], None]) -> None:
        self._queue.put(callback)

    def process_pending(self) -> int:
        """Run every queued completion on the calling thread."""
        count = 0
        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return count
            self._run_callback(callback)
            count += 1

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Drain completions until no work is in flight, including work submitted
        by the completions themselves. Returns False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self.process_pending()
            with self._lock:
                if self._outstanding == 0 and self._queue.empty():
                    return True
            wait_for = 0.05
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait_for = min(wait_for, remaining)
            try:
                callback = self._queue.get(timeout=wait_for)
            except queue.Empty:
                continue
            self._run_callback(callback)
