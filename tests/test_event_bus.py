"""
Tests for the event bus
"""

import gc

from catfeed.services.event_bus import EventBus
from catfeed.services.logging_service import MemoryLogger


class Listener:
    def __init__(self):
        self.received = []

    def on_event(self, data=None):
        self.received.append(data)


def test_plain_functions_are_kept_alive():
    bus = EventBus(MemoryLogger())
    received = []
    bus.subscribe("feed.page_loaded", lambda data: received.append(data))
    gc.collect()

    bus.publish("feed.page_loaded", {"page": 0})
    assert received == [{"page": 0}]


def test_bound_methods_are_weak():
    bus = EventBus(MemoryLogger())
    listener = Listener()
    bus.subscribe("image.loaded", listener.on_event)
    bus.publish("image.loaded", "a")
    assert listener.received == ["a"]

    del listener
    gc.collect()
    bus.publish("image.loaded", "b")
    assert bus.get_subscriber_count("image.loaded") == {"image.loaded": 0}


def test_unsubscribe():
    bus = EventBus(MemoryLogger())
    listener = Listener()
    bus.subscribe("x", listener.on_event)
    bus.unsubscribe("x", listener.on_event)
    bus.publish("x", 1)
    assert listener.received == []


def test_handler_without_data():
    bus = EventBus(MemoryLogger())
    listener = Listener()
    bus.subscribe("x", listener.on_event)
    bus.publish("x")
    assert listener.received == [None]


def test_handler_errors_are_logged_and_isolated():
    logger = MemoryLogger()
    bus = EventBus(logger)
    received = []

    def broken(data):
        raise RuntimeError("handler bug")

    bus.subscribe("x", broken)
    bus.subscribe("x", received.append)
    bus.publish("x", 1)

    assert received == [1]
    errors = logger.get_entries("ERROR")
    assert errors and errors[0]["kwargs"]["exception"] == "handler bug"


def test_history_and_disable():
    bus = EventBus(MemoryLogger())
    bus.publish("a", 1)
    bus.publish("b", 2)
    bus.disable()
    bus.publish("a", 3)

    assert [e.data for e in bus.get_event_history("a")] == [1]
    assert len(bus.get_event_history(limit=1)) == 1
    assert not bus.is_enabled()
