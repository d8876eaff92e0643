"""Application orchestrator: scan, stage, reconcile."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog

from .config import AppConfig, ConfigRepository
from .engine import BaseScanSource, ReconcileReport, Reconciler, ShodanScanSource
from .errors import FetchError, StagingError, StoreError
from .infra import EndpointStore, SQLiteManager, StagingFile
from .logging_conf import component_logger
from .scheduler import APSchedulerAdapter

CycleStatus = Literal["ok", "scan_failed", "staging_failed", "store_failed", "skipped"]


@dataclass
class CycleResult:
    """Summary of one scan → stage → reconcile cycle."""

    status: CycleStatus
    scanned: int = 0
    report: ReconcileReport | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class StoreFactory:
    """Build an EndpointStore from configuration."""

    @staticmethod
    def build(storage: SQLiteManager, config: AppConfig, data_dir: Path) -> EndpointStore:
        db_path = config.store.resolved_path(data_dir)
        conn = storage.connect(db_path, timeout=config.store.lock_timeout)
        return EndpointStore(conn, retry=config.store.retry)


class Orchestrator:
    """Wire the scan source, staging file, reconciler and scheduler together."""

    def __init__(
        self,
        store: EndpointStore,
        staging: StagingFile,
        scan_source: BaseScanSource | None = None,
        scheduler: APSchedulerAdapter | None = None,
        *,
        allow_empty: bool = True,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.staging = staging
        self.scan_source = scan_source
        self.scheduler = scheduler
        self.reconciler = Reconciler(store, allow_empty=allow_empty)
        self.logger = logger or component_logger("orchestrator")

    @classmethod
    def from_repository(
        cls,
        repository: ConfigRepository,
        storage: SQLiteManager,
        scheduler: APSchedulerAdapter | None = None,
        scan_source: BaseScanSource | None = None,
    ) -> "Orchestrator":
        config = repository.load()
        store = StoreFactory.build(storage, config, repository.locator.data_dir)
        return cls(
            store=store,
            staging=StagingFile(repository.staging_path()),
            scan_source=scan_source or ShodanScanSource.from_config(config.scan),
            scheduler=scheduler,
            allow_empty=config.reconcile.allow_empty_desired,
        )

    # ------------------------------------------------------------------
    # Cycle steps
    # ------------------------------------------------------------------
    def scan(self) -> int:
        """Fetch a full endpoint list and stage it; nothing is staged on failure."""

        if self.scan_source is None:
            raise FetchError("no scan source configured")
        self.logger.info("scan_started")
        urls = self.scan_source.fetch()
        written = self.staging.write_all(urls)
        self.logger.info("scan_staged", total=written, staging=str(self.staging.path))
        return written

    def sync_from_staging(self) -> ReconcileReport:
        """Reconcile the store against the current staging file."""

        self.logger.info("sync_started", staging=str(self.staging.path))
        lines = self.staging.read_all()
        return self.reconciler.reconcile(lines)

    def run_cycle(self, *, sync: bool = True) -> CycleResult:
        """Run one cycle; failures are logged and reported, never raised."""

        try:
            scanned = self.scan()
        except FetchError as exc:
            self.logger.error("scan_failed", error=str(exc))
            return CycleResult(status="scan_failed", error=str(exc))
        except StagingError as exc:
            self.logger.error("staging_failed", error=str(exc))
            return CycleResult(status="staging_failed", error=str(exc))
        if not sync:
            return CycleResult(status="ok", scanned=scanned)
        return self._safe_sync(scanned)

    def initial_sync(self) -> CycleResult:
        """Populate the store from whatever the staging file already holds."""

        if not self.staging.exists():
            self.logger.info("initial_sync_no_staging", staging=str(self.staging.path))
            return CycleResult(status="skipped")
        return self._safe_sync(0)

    def _safe_sync(self, scanned: int) -> CycleResult:
        try:
            report = self.sync_from_staging()
        except StagingError as exc:
            self.logger.error("staging_failed", error=str(exc))
            return CycleResult(status="staging_failed", scanned=scanned, error=str(exc))
        except StoreError as exc:
            return CycleResult(status="store_failed", scanned=scanned, error=str(exc))
        status: CycleStatus = "skipped" if report.skipped else "ok"
        return CycleResult(status=status, scanned=scanned, report=report)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def start_schedule(self, config: AppConfig) -> None:
        if self.scheduler is None:
            raise RuntimeError("orchestrator has no scheduler")
        self.scheduler.schedule_cycle(self.run_cycle, config.schedule)
        self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()
        if self.scan_source is not None:
            self.scan_source.close()


__all__ = ["CycleResult", "Orchestrator", "StoreFactory"]
