"""Pydantic models used across the Endpoint Shuffle configuration flow."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

MEMORY_DATABASE = ":memory:"


class RetryConfig(BaseModel):
    """Bounded retry applied to store writes that hit lock contention."""

    attempts: int = 5
    delay: float = 0.1

    @model_validator(mode="after")
    def _validate_bounds(self) -> "RetryConfig":
        if self.attempts < 1:
            raise ValueError("retry attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("retry delay must be non-negative")
        return self


class StoreConfig(BaseModel):
    """Where the endpoint table lives and how writers wait on each other."""

    path: Path = Field(default=Path("endpoints.db"))
    # SQLite busy timeout in seconds; kept short so contention surfaces as "locked".
    lock_timeout: float = 0.05
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @property
    def in_memory(self) -> bool:
        return str(self.path) == MEMORY_DATABASE

    def resolved_path(self, base_dir: Path) -> Path:
        """Return the database path relative to the data directory."""

        if self.in_memory or self.path.is_absolute():
            return self.path
        return (base_dir / self.path).resolve()


class ScanConfig(BaseModel):
    """Shodan host search parameters."""

    base_url: str = "https://api.shodan.io"
    query: str = "product:SimpleHTTPServer"
    api_key_env: str = "SHODAN_API_KEY"
    timeout: float = 30.0
    max_pages: int | None = None

    @field_validator("max_pages")
    @classmethod
    def _validate_pages(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("max_pages must be >= 1 when set")
        return value

    def api_key(self) -> str | None:
        value = os.environ.get(self.api_key_env, "").strip()
        return value or None


class ScheduleConfig(BaseModel):
    """Cadence of the background scan → reconcile cycle."""

    enabled: bool = True
    # 768 hours, the cadence the service has always shipped with.
    interval_seconds: float = 768 * 3600
    run_on_start: bool = False

    @field_validator("interval_seconds")
    @classmethod
    def _validate_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("interval_seconds must be positive")
        return value


class StagingConfig(BaseModel):
    """Intermediate file holding the last scanned endpoint list."""

    urls_file: Path = Field(default=Path("urls.txt"))

    @field_validator("urls_file", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_path(self, base_dir: Path) -> Path:
        if self.urls_file.is_absolute():
            return self.urls_file
        return (base_dir / self.urls_file).resolve()


class ReconcileConfig(BaseModel):
    """Reconciliation policy switches."""

    # An empty desired set wipes the table when true.
    allow_empty_desired: bool = True


class ServerConfig(BaseModel):
    """HTTP listener settings."""

    host: str = "0.0.0.0"
    port: int = 8080
    template_path: Path | None = None

    def resolved_template_path(self, base_dir: Path) -> Path | None:
        if self.template_path is None or self.template_path.is_absolute():
            return self.template_path
        return (base_dir / self.template_path).resolve()

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("port must be between 1 and 65535")
        return value


class AppConfig(BaseModel):
    """Top-level configuration document."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    staging: StagingConfig = Field(default_factory=StagingConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


__all__ = [
    "AppConfig",
    "MEMORY_DATABASE",
    "ReconcileConfig",
    "RetryConfig",
    "ScanConfig",
    "ScheduleConfig",
    "ServerConfig",
    "StagingConfig",
    "StoreConfig",
]
