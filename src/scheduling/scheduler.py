"""Weekly scrape scheduler.

This module drives pipeline runs on the weekly slot and on manual
request. Both paths share one single-flight guard; scheduled runs report
their outcome to a notifier while manual runs return or raise directly.
"""

from __future__ import annotations

from datetime import datetime, timezone
import threading
from typing import Callable

from core.config import BankRankConfig
from core.errors import BankRankScheduleError
from core.logging_config import get_logger
from core.types import PipelineResult, RunOutcome, SchedulerStatus
from ingest.pipeline import SnapshotPipeline
from scheduling.notifications import (
    Notifier,
    build_notifier,
    failure_notification,
    success_notification,
)
from scheduling.single_flight import SingleFlightGuard
from scheduling.weekly_schedule import WeeklySchedule, parse_weekly_schedule

_LOGGER = get_logger(__name__)


class ScrapeScheduler:
    """Runs the snapshot pipeline on a weekly cadence."""

    def __init__(
        self,
        run_job: Callable[[], PipelineResult],
        schedule: WeeklySchedule,
        notifier: Notifier,
        guard: SingleFlightGuard | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Create a scheduler.

        Args:
            run_job: Executes one pipeline run.
            schedule: Weekly run slot.
            notifier: Sink for scheduled run outcomes.
            guard: Single-flight guard shared by all triggers.
            clock: Source of aware current time.
        """
        self._run_job = run_job
        self._schedule = schedule
        self._notifier = notifier
        self._guard = guard or SingleFlightGuard()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._stop_event: threading.Event | None = None

    def trigger(self) -> RunOutcome:
        """Run once for a scheduled slot.

        Skips when a run is already in flight. Failures are reported to
        the notifier and returned, never raised.

        Returns:
            Outcome of the trigger.
        """
        if not self._guard.try_acquire():
            _LOGGER.warning("scheduled_run_skipped", reason="previous run still in flight")
            return RunOutcome(status="skipped")
        try:
            _LOGGER.info("scheduled_run_started", schedule=self._schedule.describe())
            result = self._run_job()
        except Exception as error:
            _LOGGER.error("scheduled_run_failed", error=str(error), error_type=type(error).__name__)
            self._notifier.notify(failure_notification(error))
            return RunOutcome(status="failure", error=str(error))
        finally:
            self._guard.release()
        self._notifier.notify(success_notification(result.snapshot.bank_count))
        return RunOutcome(status="success", result=result)

    def run_now(self) -> PipelineResult:
        """Run once outside the schedule.

        Returns:
            Completed pipeline result.

        Raises:
            BankRankScheduleError: If another run is in flight.
            BankRankError: If the pipeline run fails.
        """
        if not self._guard.try_acquire():
            raise BankRankScheduleError(
                "A snapshot run is already in progress. Wait for it to finish and retry."
            )
        try:
            _LOGGER.info("manual_run_started")
            return self._run_job()
        finally:
            self._guard.release()

    def serve_forever(
        self,
        stop_event: threading.Event | None = None,
        max_runs: int | None = None,
    ) -> int:
        """Block and trigger runs at each weekly slot until stopped.

        Args:
            stop_event: Event that ends the loop when set.
            max_runs: Optional number of triggers after which to return.

        Returns:
            Number of triggers executed.
        """
        self._stop_event = stop_event or threading.Event()
        runs = 0
        _LOGGER.info("scheduler_started", schedule=self._schedule.describe())
        try:
            while not self._stop_event.is_set():
                if max_runs is not None and runs >= max_runs:
                    break
                now = self._clock()
                wait_seconds = (self._schedule.next_run_after(now) - now).total_seconds()
                if self._stop_event.wait(timeout=max(wait_seconds, 0.0)):
                    break
                self.trigger()
                runs += 1
        finally:
            self._stop_event = None
            _LOGGER.info("scheduler_stopped", runs=runs)
        return runs

    def stop(self) -> None:
        """Ask a running ``serve_forever`` loop to return."""
        if self._stop_event is not None:
            self._stop_event.set()

    def status(self) -> SchedulerStatus:
        """Return the current scheduler state."""
        is_scheduled = self._stop_event is not None and not self._stop_event.is_set()
        return SchedulerStatus(
            is_running=self._guard.is_held,
            schedule=self._schedule.describe(),
            timezone=self._schedule.timezone,
            next_run=self._schedule.next_run_after(self._clock()),
            is_scheduled=is_scheduled,
        )


def build_scheduler(
    config: BankRankConfig, pipeline: SnapshotPipeline | None = None
) -> ScrapeScheduler:
    """Wire a scheduler from runtime configuration.

    Args:
        config: Runtime configuration.
        pipeline: Optional pre-built pipeline.

    Returns:
        Scheduler bound to the configured schedule and notifier.

    Raises:
        BankRankConfigError: If schedule settings are invalid.
    """
    schedule = parse_weekly_schedule(
        config.schedule_weekday, config.schedule_time, config.timezone
    )
    pipeline = pipeline or SnapshotPipeline(config)
    return ScrapeScheduler(
        run_job=pipeline.run,
        schedule=schedule,
        notifier=build_notifier(config.webhook_url),
    )
