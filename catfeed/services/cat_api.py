"""
TheCatApi adapter.

Usage:
    api = TheCatApiClient(ApiConfig(api_key="..."), logger)
    raw = api.fetch_page(page=0, limit=100)      # JSON bytes
    cats = decode_cats(raw)
    png = api.fetch_bytes(cats[0].url)           # image bytes

Both calls raise FetchError; they never return partial data.
"""

from __future__ import annotations
from typing import Dict, Optional
from urllib.parse import urlencode

import requests

from .config_service import ApiConfig
from .interfaces import ICatApi, ILogger
from ..core.errors import FetchError

SEARCH_PATH = "/images/search"
API_KEY_HEADER = "x-api-key"


class TheCatApiClient(ICatApi):
    def __init__(self, config: ApiConfig, logger: ILogger, session: Optional[requests.Session] = None):
        """
        Params:
            config: validated API settings (base URL, static key, optional timeout)
            logger: service logger
            session: optional requests.Session for connection reuse
        """
        self._config = config
        self._logger = logger
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def build_search_url(self, page: int, limit: int) -> str:
        """Search URL for one page (no request performed)."""
        params = {"page": int(page), "limit": int(limit)}
        return f"{self.base_url}{SEARCH_PATH}?{urlencode(params)}"

    def _headers(self) -> Dict[str, str]:
        if self._config.api_key:
            return {API_KEY_HEADER: self._config.api_key}
        return {}

    def fetch_page(self, page: int, limit: int) -> bytes:
        url = self.build_search_url(page, limit)
        self._logger.debug("Fetching cat page", page=page, limit=limit)
        return self._get(url, self._headers())

    def fetch_bytes(self, url: str) -> bytes:
        # Image hosts are public; the API key only goes to the API itself.
        return self._get(url, {})

    def _get(self, url: str, headers: Dict[str, str]) -> bytes:
        try:
            r = self.session.get(url, headers=headers, timeout=self._config.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e

        if r.status_code != 200:
            self._logger.warning(f"Request failed: {r.status_code}", url=url)
            raise FetchError(f"HTTP {r.status_code} from {url}", url=url, status=r.status_code)
        if not r.content:
            raise FetchError(f"Empty response from {url}", url=url, status=r.status_code)
        return r.content

    def close(self) -> None:
        self.session.close()
