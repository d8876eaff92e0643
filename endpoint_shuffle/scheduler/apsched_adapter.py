"""APScheduler wrapper running the periodic scan → reconcile cycle."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig
from ..logging_conf import component_logger

CYCLE_JOB_ID = "cycle::scan-reconcile"


class APSchedulerAdapter:
    """Own the background scheduler and the single cycle job."""

    def __init__(
        self,
        scheduler: BackgroundScheduler | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = logger or component_logger("scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_cycle(self, callback: Callable[[], object], schedule: ScheduleConfig) -> None:
        trigger = self._build_trigger(schedule)
        kwargs = {}
        if schedule.run_on_start:
            kwargs["next_run_time"] = datetime.now(trigger.timezone)
        # max_instances=1: a cycle still running when the next fires is skipped
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=CYCLE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **kwargs,
        )
        self.logger.info(
            "job_scheduled",
            job=CYCLE_JOB_ID,
            interval_seconds=schedule.interval_seconds,
            run_on_start=schedule.run_on_start,
        )

    def trigger_now(self) -> None:
        """Pull the next run of the cycle job forward to now."""

        job = self.scheduler.get_job(CYCLE_JOB_ID)
        if job is None:
            raise LookupError("cycle job is not scheduled")
        job.modify(next_run_time=datetime.now(job.trigger.timezone))
        self.logger.info("job_triggered", job=CYCLE_JOB_ID)

    @staticmethod
    def _build_trigger(schedule: ScheduleConfig) -> IntervalTrigger:
        return IntervalTrigger(seconds=float(schedule.interval_seconds))


__all__ = ["APSchedulerAdapter", "CYCLE_JOB_ID"]
