"""Scan sources producing raw endpoint strings."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterator

import httpx
import structlog

from ..config.models import ScanConfig
from ..errors import FetchError
from ..logging_conf import component_logger


class BaseScanSource(ABC):
    """Uniform scan contract: produce every endpoint string or raise ``FetchError``."""

    @abstractmethod
    def fetch(self) -> list[str]:
        """Return the complete endpoint list of one scan."""

    def close(self) -> None:
        """Release underlying resources."""


class ShodanScanSource(BaseScanSource):
    """Page through Shodan host search results until a page comes back empty."""

    search_path = "/shodan/host/search"

    def __init__(
        self,
        api_key: str | None,
        query: str = "product:SimpleHTTPServer",
        *,
        base_url: str = "https://api.shodan.io",
        timeout: float = 30.0,
        max_pages: int | None = None,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.api_key = api_key
        self.query = query
        self.max_pages = max_pages
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self.logger = logger or component_logger("scanner")

    @classmethod
    def from_config(
        cls, config: ScanConfig, client: httpx.Client | None = None
    ) -> "ShodanScanSource":
        return cls(
            config.api_key(),
            config.query,
            base_url=config.base_url,
            timeout=config.timeout,
            max_pages=config.max_pages,
            client=client,
        )

    def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            self._client.close()

    def fetch(self) -> list[str]:
        if not self.api_key:
            raise FetchError("Shodan API key is not configured")
        urls: list[str] = []
        for page, matches in self._pages():
            for match in matches:
                urls.append(self._match_to_url(match, page))
        self.logger.info("scan_complete", query=self.query, total=len(urls))
        return urls

    def _pages(self) -> Iterator[tuple[int, list[Any]]]:
        page = 1
        while self.max_pages is None or page <= self.max_pages:
            matches = self._fetch_page(page)
            if not matches:
                self.logger.info("scan_last_page", page=page)
                return
            yield page, matches
            page += 1

    def _fetch_page(self, page: int) -> list[Any]:
        self.logger.info("scan_page", page=page, query=self.query)
        try:
            response = self._client.get(
                self.search_path,
                params={"key": self.api_key, "query": self.query, "page": page},
            )
        except httpx.HTTPError as exc:
            raise FetchError(f"failed to fetch page {page} from Shodan: {exc}") from exc
        if response.is_error:
            raise FetchError(f"Shodan page {page} returned status {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError(f"failed to parse Shodan page {page}: {exc}") from exc
        if not isinstance(payload, dict):
            raise FetchError(f"unexpected Shodan payload on page {page}")
        matches = payload.get("matches") or []
        if not isinstance(matches, list):
            raise FetchError(f"unexpected 'matches' field on page {page}")
        return matches

    @staticmethod
    def _match_to_url(match: Any, page: int) -> str:
        try:
            host = match["ip_str"]
            port = int(match["port"])
        except (KeyError, TypeError, ValueError) as exc:
            raise FetchError(f"malformed match on page {page}: {match!r}") from exc
        return f"http://{host}:{port}"


__all__ = ["BaseScanSource", "ShodanScanSource"]
