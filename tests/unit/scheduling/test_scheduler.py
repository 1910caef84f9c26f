"""Unit tests for the weekly scrape scheduler."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import threading

import pytest

from core.errors import BankRankConfigError, BankRankFetchError, BankRankScheduleError
from core.types import BankRecord, PipelineResult, RunNotification, Snapshot
from scheduling.scheduler import ScrapeScheduler, build_scheduler
from scheduling.weekly_schedule import parse_weekly_schedule
from tests.config_factory import make_config

_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
_SCHEDULE = parse_weekly_schedule("mon", "06:00", "America/New_York")


class _RecordingNotifier:
    def __init__(self) -> None:
        self.notifications: list[RunNotification] = []

    def notify(self, notification: RunNotification) -> None:
        self.notifications.append(notification)


def _result(bank_count: int) -> PipelineResult:
    banks = tuple(
        BankRecord(rank, f"BANK {rank}", "", "", 1.0, _NOW) for rank in range(1, bank_count + 1)
    )
    snapshot = Snapshot(scraped_at=_NOW, source="https://example.test/lbr/", banks=banks)
    return PipelineResult(snapshot=snapshot, changes=(), document_format="html")


def _scheduler(run_job, notifier: _RecordingNotifier, clock=lambda: _NOW) -> ScrapeScheduler:
    return ScrapeScheduler(run_job=run_job, schedule=_SCHEDULE, notifier=notifier, clock=clock)


def test_trigger_notifies_success_with_bank_count() -> None:
    """Successful scheduled runs notify with the snapshot size."""
    notifier = _RecordingNotifier()
    scheduler = _scheduler(lambda: _result(2), notifier)

    outcome = scheduler.trigger()

    assert outcome.status == "success" and outcome.result is not None
    assert [item.message for item in notifier.notifications] == [
        "Weekly bank data scrape completed successfully. Found 2 banks."
    ]
    assert not scheduler.status().is_running


def test_trigger_reports_failure_without_raising() -> None:
    """Scheduled failures are notified and returned, never raised."""
    notifier = _RecordingNotifier()

    def failing_job() -> PipelineResult:
        raise BankRankFetchError("source unreachable", attempts=3)

    scheduler = _scheduler(failing_job, notifier)

    outcome = scheduler.trigger()

    assert outcome.status == "failure" and outcome.error == "source unreachable"
    assert notifier.notifications[0].status == "failure"
    assert not scheduler.status().is_running


def test_trigger_skips_while_run_in_flight() -> None:
    """A trigger during another run is skipped without notifying."""
    notifier = _RecordingNotifier()
    outcomes = []
    scheduler: ScrapeScheduler

    def reentrant_job() -> PipelineResult:
        outcomes.append(scheduler.trigger())
        return _result(1)

    scheduler = _scheduler(reentrant_job, notifier)

    outer = scheduler.trigger()

    assert outer.status == "success"
    assert [outcome.status for outcome in outcomes] == ["skipped"]
    assert len(notifier.notifications) == 1


def test_run_now_returns_result_without_notifying() -> None:
    """Manual runs return the result directly."""
    notifier = _RecordingNotifier()
    scheduler = _scheduler(lambda: _result(3), notifier)

    result = scheduler.run_now()

    assert result.snapshot.bank_count == 3
    assert notifier.notifications == []


def test_run_now_propagates_failures_and_releases_guard() -> None:
    """Manual failures raise and leave the scheduler idle."""

    def failing_job() -> PipelineResult:
        raise BankRankFetchError("source unreachable", attempts=1)

    scheduler = _scheduler(failing_job, _RecordingNotifier())

    with pytest.raises(BankRankFetchError):
        scheduler.run_now()

    assert not scheduler.status().is_running


def test_run_now_rejects_overlap() -> None:
    """Manual runs are refused while another run holds the guard."""
    errors: list[Exception] = []
    scheduler: ScrapeScheduler

    def reentrant_job() -> PipelineResult:
        try:
            scheduler.run_now()
        except BankRankScheduleError as error:
            errors.append(error)
        return _result(1)

    scheduler = _scheduler(reentrant_job, _RecordingNotifier())

    scheduler.trigger()

    assert len(errors) == 1


def test_status_reports_next_slot_and_idle_loop() -> None:
    """Status includes the computed next run even when not serving."""
    scheduler = _scheduler(lambda: _result(0), _RecordingNotifier())

    status = scheduler.status()

    assert status.schedule == "mon 06:00 America/New_York"
    assert status.timezone == "America/New_York"
    assert status.next_run is not None
    assert status.next_run.astimezone(timezone.utc) == datetime(
        2026, 10, 19, 10, 0, tzinfo=timezone.utc
    )
    assert not status.is_scheduled and not status.is_running


def test_serve_forever_triggers_at_slot_and_stops() -> None:
    """The loop waits for the slot, triggers, and honours max_runs."""
    notifier = _RecordingNotifier()
    slot = _SCHEDULE.next_run_after(_NOW)
    clock = lambda: slot - timedelta(milliseconds=10)  # noqa: E731
    scheduler = _scheduler(lambda: _result(1), notifier, clock=clock)

    runs = scheduler.serve_forever(max_runs=1)

    assert runs == 1
    assert len(notifier.notifications) == 1
    assert not scheduler.status().is_scheduled


def test_serve_forever_returns_when_stop_event_set() -> None:
    """A pre-set stop event ends the loop without running."""
    stop_event = threading.Event()
    stop_event.set()
    notifier = _RecordingNotifier()
    scheduler = _scheduler(lambda: _result(1), notifier)

    assert scheduler.serve_forever(stop_event=stop_event) == 0
    assert notifier.notifications == []


def test_build_scheduler_uses_configured_slot(tmp_path: Path) -> None:
    """Config selects the weekly slot."""
    config = make_config(tmp_path, schedule_weekday="fri", schedule_time="17:30")

    status = build_scheduler(config).status()

    assert status.schedule == "fri 17:30 America/New_York"


def test_build_scheduler_rejects_invalid_slot(tmp_path: Path) -> None:
    """Invalid schedule settings fail before any run."""
    with pytest.raises(BankRankConfigError):
        build_scheduler(make_config(tmp_path, schedule_time="noon"))
