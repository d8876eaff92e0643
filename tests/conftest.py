"""Pytest configuration providing shared store, staging and config fixtures."""

from __future__ import annotations

import sqlite3
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from endpoint_shuffle.config import ConfigLocator, ConfigRepository, RetryConfig
from endpoint_shuffle.engine import BaseScanSource
from endpoint_shuffle.errors import FetchError
from endpoint_shuffle.infra import EndpointStore, SQLiteManager, StagingFile


class LockingStore(EndpointStore):
    """EndpointStore whose writes for selected urls always report lock contention."""

    def __init__(self, conn: sqlite3.Connection, locked_urls: Iterable[str] = (), **kwargs: Any) -> None:
        super().__init__(conn, **kwargs)
        self.locked_urls = set(locked_urls)
        self.write_attempts: Counter[str] = Counter()

    def _write(self, sql: str, params: tuple) -> int:
        url = params[0]
        self.write_attempts[url] += 1
        if url in self.locked_urls:
            raise sqlite3.OperationalError("database is locked")
        return super()._write(sql, params)


class StubScanSource(BaseScanSource):
    """Scan source returning a canned list, or failing with FetchError."""

    def __init__(self, urls: list[str] | None = None, error: str | None = None) -> None:
        self.urls = list(urls or [])
        self.error = error
        self.calls = 0
        self.closed = False

    def fetch(self) -> list[str]:
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return list(self.urls)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def storage() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "endpoints.db"


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def store(storage: SQLiteManager, db_path: Path, sleeps: list[float]) -> EndpointStore:
    conn = storage.connect(db_path, timeout=0.0)
    return EndpointStore(conn, retry=RetryConfig(), sleep=sleeps.append)


@pytest.fixture
def locking_store(
    storage: SQLiteManager, db_path: Path, sleeps: list[float]
) -> Callable[..., LockingStore]:
    def _builder(*locked: str) -> LockingStore:
        conn = storage.connect(db_path, timeout=0.0)
        return LockingStore(conn, locked, retry=RetryConfig(), sleep=sleeps.append)

    return _builder


@pytest.fixture
def staging(tmp_path: Path) -> StagingFile:
    return StagingFile(tmp_path / "data" / "urls.txt")


@pytest.fixture
def stub_scan_source() -> Callable[..., StubScanSource]:
    return StubScanSource


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigRepository:
    monkeypatch.setenv("ENDPOINT_SHUFFLE_HOME", str(tmp_path))
    return ConfigRepository(ConfigLocator(project_root=tmp_path))


@pytest.fixture
def stored_urls() -> Callable[[EndpointStore], list[str]]:
    def _urls(store: EndpointStore) -> list[str]:
        return sorted(record.url for record in store.read_all())

    return _urls
