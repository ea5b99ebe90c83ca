"""Shared fixtures for the catfeed test suite."""

import json
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pytest

from catfeed.core.dispatch import Dispatcher
from catfeed.core.errors import FetchError
from catfeed.services.interfaces import ICatApi


class DeferredDispatcher(Dispatcher):
    """Holds submitted work until the test runs it, all on the test thread."""

    def __init__(self):
        self.tasks: List[Tuple[Callable, Callable, Callable]] = []

    def submit(self, work, on_success, on_failure) -> None:
        self.tasks.append((work, on_success, on_failure))

    def post(self, callback) -> None:
        callback()

    def run_all(self) -> int:
        count = 0
        while self.tasks:
            work, on_success, on_failure = self.tasks.pop(0)
            try:
                result = work()
            except Exception as e:
                on_failure(e)
            else:
                on_success(result)
            count += 1
        return count


def make_cats(start: int, count: int) -> List[dict]:
    return [
        {"id": str(i), "url": f"https://cdn2.thecatapi.com/images/{i}.jpg", "width": 640, "height": 480}
        for i in range(start, start + count)
    ]


class FakePageSource:
    """Page fetcher returning canned JSON pages; unknown pages raise FetchError."""

    def __init__(self, pages: Optional[Dict[int, object]] = None):
        self.pages: Dict[int, object] = pages or {}
        self.calls: List[Tuple[int, int]] = []

    def __call__(self, page: int, limit: int) -> bytes:
        self.calls.append((page, limit))
        payload = self.pages.get(page)
        if payload is None:
            raise FetchError(f"no page {page}")
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, bytes):
            return payload
        return json.dumps(payload).encode("utf-8")


class FakeCatApi(ICatApi):
    def __init__(self, pages: Optional[Dict[int, object]] = None, images: Optional[Dict[str, bytes]] = None):
        self.page_source = FakePageSource(pages)
        self.images: Dict[str, bytes] = images or {}
        self.image_calls: List[str] = []

    def fetch_page(self, page: int, limit: int) -> bytes:
        return self.page_source(page, limit)

    def fetch_bytes(self, url: str) -> bytes:
        self.image_calls.append(url)
        if url not in self.images:
            raise FetchError(f"HTTP 404 from {url}", url=url, status=404)
        return self.images[url]


@pytest.fixture
def deferred():
    return DeferredDispatcher()


@pytest.fixture
def png_bytes() -> bytes:
    import cv2

    image = np.zeros((4, 6, 3), dtype=np.uint8)
    image[:, :, 2] = 255
    ok, buf = cv2.imencode(".png", image)
    assert ok
    return buf.tobytes()
