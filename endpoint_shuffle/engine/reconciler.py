"""Bring the endpoint store in line with a freshly scanned endpoint list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import structlog

from ..errors import StoreError
from ..infra.storage import EndpointStore
from ..logging_conf import component_logger
from .normalizer import normalize_lines


@dataclass
class ReconcileReport:
    """Outcome of a single reconciliation pass."""

    desired: int = 0
    existing: int = 0
    inserted: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed_inserts: list[str] = field(default_factory=list)
    failed_deletes: list[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def mutations(self) -> int:
        return len(self.inserted) + len(self.deleted)

    @property
    def failures(self) -> int:
        return len(self.failed_inserts) + len(self.failed_deletes)

    def as_dict(self) -> dict[str, int | bool]:
        return {
            "desired": self.desired,
            "existing": self.existing,
            "inserted": len(self.inserted),
            "deleted": len(self.deleted),
            "failed": self.failures,
            "skipped": self.skipped,
        }


class Reconciler:
    """Diff a desired endpoint set against the store and apply the delta.

    Each pass reads a fresh snapshot, deletes urls the scan no longer
    reports, then inserts urls the store does not hold yet. A failing
    snapshot read aborts the pass; a failing individual write is logged
    and the pass carries on.
    """

    def __init__(
        self,
        store: EndpointStore,
        *,
        allow_empty: bool = True,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.allow_empty = allow_empty
        self.logger = logger or component_logger("reconciler")

    def reconcile(self, raw_lines: Iterable[str]) -> ReconcileReport:
        desired = normalize_lines(raw_lines)
        report = ReconcileReport(desired=len(desired))

        if not desired and not self.allow_empty:
            report.skipped = True
            self.logger.warning("reconcile_skipped_empty")
            return report

        try:
            snapshot = self.store.read_all()
        except StoreError as exc:
            self.logger.error("reconcile_aborted", error=str(exc))
            raise

        existing: dict[str, None] = dict.fromkeys(record.url for record in snapshot)
        report.existing = len(existing)

        for url in existing:
            if url in desired:
                continue
            try:
                self.store.delete(url)
            except StoreError as exc:
                report.failed_deletes.append(url)
                self.logger.error("reconcile_delete_failed", url=url, error=str(exc))
            else:
                report.deleted.append(url)
                self.logger.debug("reconcile_deleted", url=url)

        for url in desired:
            if url in existing:
                continue
            try:
                self.store.insert(url)
            except StoreError as exc:
                report.failed_inserts.append(url)
                self.logger.error("reconcile_insert_failed", url=url, error=str(exc))
            else:
                report.inserted.append(url)
                self.logger.debug("reconcile_inserted", url=url)

        self.logger.info("reconcile_complete", **report.as_dict())
        return report


__all__ = ["ReconcileReport", "Reconciler"]
