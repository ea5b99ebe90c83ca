"""
Unit tests for the TheCatApi client
"""

from unittest.mock import Mock

import pytest
import requests

from catfeed.core.errors import FetchError
from catfeed.services.cat_api import TheCatApiClient
from catfeed.services.config_service import ApiConfig
from catfeed.services.logging_service import MemoryLogger


def make_client(api_key="test_key", timeout=None, status=200, content=b"[]"):
    session = Mock(spec=requests.Session)
    response = Mock()
    response.status_code = status
    response.content = content
    session.get.return_value = response
    client = TheCatApiClient(ApiConfig(api_key=api_key, timeout=timeout), MemoryLogger(), session=session)
    return client, session


class TestTheCatApiClient:

    def test_build_search_url(self):
        client, _ = make_client()
        assert client.build_search_url(3, 100) == "https://api.thecatapi.com/v1/images/search?page=3&limit=100"

    def test_fetch_page_sends_api_key(self):
        client, session = make_client(content=b'[{"id": "a"}]', timeout=5.0)

        raw = client.fetch_page(0, 10)

        assert raw == b'[{"id": "a"}]'
        session.get.assert_called_once_with(
            "https://api.thecatapi.com/v1/images/search?page=0&limit=10",
            headers={"x-api-key": "test_key"},
            timeout=5.0,
        )

    def test_fetch_page_without_key_sends_no_header(self):
        client, session = make_client(api_key=None)
        client.fetch_page(1, 5)
        assert session.get.call_args.kwargs["headers"] == {}
        assert session.get.call_args.kwargs["timeout"] is None

    def test_fetch_bytes_does_not_leak_key(self):
        client, session = make_client(content=b"\x89PNG")
        assert client.fetch_bytes("https://cdn2.thecatapi.com/images/a.jpg") == b"\x89PNG"
        assert session.get.call_args.kwargs["headers"] == {}

    def test_http_error_raises_fetch_error(self):
        client, _ = make_client(status=403, content=b"forbidden")
        with pytest.raises(FetchError) as info:
            client.fetch_page(0, 10)
        assert info.value.status == 403
        assert "images/search" in info.value.url

    def test_empty_body_raises_fetch_error(self):
        client, _ = make_client(content=b"")
        with pytest.raises(FetchError):
            client.fetch_bytes("https://x/a.jpg")

    def test_transport_exception_raises_fetch_error(self):
        client, session = make_client()
        session.get.side_effect = requests.ConnectionError("Network error")
        with pytest.raises(FetchError) as info:
            client.fetch_bytes("https://x/a.jpg")
        assert info.value.status is None
        assert isinstance(info.value.__cause__, requests.ConnectionError)

    def test_custom_base_url(self):
        session = Mock(spec=requests.Session)
        client = TheCatApiClient(ApiConfig(base_url="http://localhost:8080/v1/"), MemoryLogger(), session=session)
        assert client.build_search_url(0, 1) == "http://localhost:8080/v1/images/search?page=0&limit=1"
