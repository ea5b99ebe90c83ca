"""
Tests for dispatchers
"""

import threading

import pytest

from catfeed.core.dispatch import ImmediateDispatcher, QueueDispatcher


def test_immediate_dispatcher_runs_inline():
    dispatcher = ImmediateDispatcher()
    results, errors = [], []

    dispatcher.submit(lambda: 21 * 2, results.append, errors.append)
    dispatcher.submit(lambda: 1 / 0, results.append, errors.append)

    assert results == [42]
    assert len(errors) == 1 and isinstance(errors[0], ZeroDivisionError)


def test_immediate_dispatcher_contains_callback_errors():
    dispatcher = ImmediateDispatcher()

    def broken(_):
        raise RuntimeError("callback bug")

    dispatcher.submit(lambda: 1, broken, broken)
    dispatcher.post(lambda: broken(None))


def test_queue_dispatcher_holds_completions_until_drained():
    dispatcher = QueueDispatcher(max_workers=2)
    gate = threading.Event()
    results = []
    try:
        dispatcher.submit(lambda: gate.wait(5) and "done", results.append, lambda e: None)
        assert dispatcher.outstanding == 1
        assert dispatcher.process_pending() == 0
        assert results == []

        gate.set()
        assert dispatcher.wait_idle(timeout=5)
        assert results == ["done"]
        assert dispatcher.outstanding == 0
    finally:
        dispatcher.shutdown()


def test_wait_idle_follows_chained_work():
    dispatcher = QueueDispatcher(max_workers=2)
    results = []
    try:
        def first(value):
            results.append(value)
            dispatcher.submit(lambda: value + 1, results.append, lambda e: None)

        dispatcher.submit(lambda: 1, first, lambda e: None)
        assert dispatcher.wait_idle(timeout=5)
        assert results == [1, 2]
    finally:
        dispatcher.shutdown()


def test_wait_idle_times_out():
    dispatcher = QueueDispatcher(max_workers=1)
    gate = threading.Event()
    try:
        dispatcher.submit(lambda: gate.wait(5), lambda v: None, lambda e: None)
        assert dispatcher.wait_idle(timeout=0.1) is False
    finally:
        gate.set()
        dispatcher.shutdown()


def test_failures_are_posted_to_owner():
    dispatcher = QueueDispatcher(max_workers=1)
    errors = []
    try:
        def fail():
            raise ValueError("bad payload")

        dispatcher.submit(fail, lambda v: None, errors.append)
        assert dispatcher.wait_idle(timeout=5)
        assert [str(e) for e in errors] == ["bad payload"]
    finally:
        dispatcher.shutdown()


def test_submit_after_shutdown_leaves_nothing_in_flight():
    dispatcher = QueueDispatcher(max_workers=1)
    dispatcher.shutdown()

    with pytest.raises(RuntimeError):
        dispatcher.submit(lambda: 1, lambda v: None, lambda e: None)

    assert dispatcher.outstanding == 0
    assert dispatcher.wait_idle(timeout=0.5) is True
