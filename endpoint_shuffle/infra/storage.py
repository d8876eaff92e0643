"""SQLite persistence for discovered endpoints."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, TypeVar

import structlog

from ..config.models import MEMORY_DATABASE, RetryConfig
from ..errors import FatalOperationError, PermanentStoreError, StoreError, TransientStoreError
from ..logging_conf import component_logger

T = TypeVar("T")

_LOCK_MARKERS = ("locked", "busy")


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[str, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path | str, timeout: float = 5.0) -> sqlite3.Connection:
        key = str(path)
        if key != MEMORY_DATABASE:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if key not in self._connections:
                # Transactions are opened explicitly by EndpointStore.
                conn = sqlite3.connect(
                    key, timeout=timeout, check_same_thread=False, isolation_level=None
                )
                conn.row_factory = sqlite3.Row
                self._connections[key] = conn
                self._ensure_schema(conn)
            return self._connections[key]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS endpoints (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT NOT NULL
            )
            """
        )

    def reset(self, path: Path | str) -> None:
        key = str(path)
        with self._lock:
            if key in self._connections:
                self._connections[key].close()
                del self._connections[key]
        if key != MEMORY_DATABASE and Path(path).exists():
            Path(path).unlink()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


@dataclass(slots=True, frozen=True)
class EndpointRecord:
    """One persisted endpoint; identity is the url, not the row id."""

    id: int
    url: str


def is_lock_error(exc: BaseException) -> bool:
    return isinstance(exc, sqlite3.OperationalError) and any(
        marker in str(exc).lower() for marker in _LOCK_MARKERS
    )


def classify_error(exc: sqlite3.Error) -> StoreError:
    if is_lock_error(exc):
        return TransientStoreError(str(exc))
    return PermanentStoreError(str(exc))


class EndpointStore:
    """Single-table endpoint persistence with bounded retry on lock contention.

    Writes run inside ``BEGIN IMMEDIATE`` so SQLite serialises writers and
    reports contention as "database is locked". Such failures are retried
    ``retry.attempts`` times, ``retry.delay`` seconds apart; everything else
    is raised straight away.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        retry: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.conn = conn
        self.retry = retry or RetryConfig()
        self._sleep = sleep
        self._lock = Lock()
        self.logger = logger or component_logger("store")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def read_all(self) -> list[EndpointRecord]:
        rows = self._query("SELECT id, url FROM endpoints ORDER BY id")
        return [EndpointRecord(id=row["id"], url=row["url"]) for row in rows]

    def pick_random(self) -> str | None:
        rows = self._query("SELECT url FROM endpoints ORDER BY RANDOM() LIMIT 1")
        if not rows:
            return None
        return rows[0]["url"]

    def count(self) -> int:
        rows = self._query("SELECT count(*) AS total FROM endpoints")
        return int(rows[0]["total"])

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            self.logger.error("store_read_failed", error=str(exc))
            raise classify_error(exc) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def insert(self, url: str) -> None:
        self._with_retry(
            "insert",
            url,
            lambda: self._write("INSERT INTO endpoints (url) VALUES (?)", (url,)),
        )

    def delete(self, url: str) -> int:
        return self._with_retry(
            "delete",
            url,
            lambda: self._write("DELETE FROM endpoints WHERE url = ?", (url,)),
        )

    def _write(self, sql: str, params: tuple) -> int:
        with self._lock:
            self.conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = self.conn.execute(sql, params)
                self.conn.execute("COMMIT")
            except BaseException:
                if self.conn.in_transaction:
                    self.conn.execute("ROLLBACK")
                raise
            return cursor.rowcount

    def _with_retry(self, operation: str, url: str, action: Callable[[], T]) -> T:
        attempts = self.retry.attempts
        last_error: sqlite3.Error | None = None
        for attempt in range(1, attempts + 1):
            try:
                result = action()
            except sqlite3.Error as exc:
                if not is_lock_error(exc):
                    self.logger.error(
                        "store_write_failed", operation=operation, url=url, error=str(exc)
                    )
                    raise PermanentStoreError(str(exc)) from exc
                last_error = exc
                self.logger.warning(
                    "store_write_locked",
                    operation=operation,
                    url=url,
                    attempt=attempt,
                    max_attempts=attempts,
                )
                if attempt < attempts:
                    self._sleep(self.retry.delay)
                continue
            self.logger.debug("store_write_ok", operation=operation, url=url, attempt=attempt)
            return result

        self.logger.error(
            "store_write_exhausted",
            operation=operation,
            url=url,
            attempts=attempts,
            error=str(last_error),
        )
        raise FatalOperationError(
            f"{operation} failed after {attempts} attempts: {last_error}", attempts
        ) from last_error


__all__ = ["EndpointRecord", "EndpointStore", "SQLiteManager", "classify_error", "is_lock_error"]
