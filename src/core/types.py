"""Shared typed models.

This module defines immutable data models used by fetch, extraction,
store, change detection, and scheduling layers to keep interfaces
explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Literal

from core.constants import (
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_USER_AGENT,
)

DocumentFormat = Literal["html", "text"]
RunStatus = Literal["success", "failure", "skipped"]


@dataclass(frozen=True)
class BankRecord:
    """One ranked entry in a snapshot.

    Attributes:
        rank: Positive 1-based rank.
        bank_name: Primary institution name, the natural key.
        holding_company: Parent entity, empty when not published.
        location: Bank location, possibly empty.
        assets: Consolidated assets in thousands of currency units.
        scraped_at: UTC timestamp of extraction.
    """

    rank: int
    bank_name: str
    holding_company: str
    location: str
    assets: float
    scraped_at: datetime


@dataclass(frozen=True)
class Snapshot:
    """Immutable timestamped capture of the ranking table.

    Attributes:
        scraped_at: UTC timestamp of the run that produced the snapshot.
        source: Origin identifier, usually the source URL.
        banks: Records in rank order.
    """

    scraped_at: datetime
    source: str
    banks: tuple[BankRecord, ...]

    @property
    def bank_count(self) -> int:
        """Number of records in the snapshot."""
        return len(self.banks)

    @property
    def run_date(self) -> date:
        """UTC calendar date keying the dated snapshot and change report.

        Naive timestamps are taken to be UTC already.
        """
        if self.scraped_at.tzinfo is None:
            return self.scraped_at.date()
        return self.scraped_at.astimezone(timezone.utc).date()


class ChangeKind(str, Enum):
    """Classification of one detected snapshot difference."""

    NEW_ENTRANT = "new_entrant"
    RANK_CHANGE = "rank_change"
    ASSET_CHANGE = "asset_change"


@dataclass(frozen=True)
class ChangeRecord:
    """One difference between the previous and current snapshot.

    Attributes:
        kind: Change classification.
        bank_name: Bank the change refers to.
        description: Human-readable change line.
        previous_rank: Rank in the previous snapshot, when matched.
        current_rank: Rank in the current snapshot.
        asset_change_pct: Signed percentage delta for asset changes.
    """

    kind: ChangeKind
    bank_name: str
    description: str
    previous_rank: int | None = None
    current_rank: int | None = None
    asset_change_pct: float | None = None


@dataclass(frozen=True)
class RawRow:
    """Accepted table row before normalization.

    Attributes:
        cells: Trimmed cell texts in source order.
        fallback_rank: Rank to use when the row carries no usable rank.
    """

    cells: tuple[str, ...]
    fallback_rank: int


@dataclass(frozen=True)
class FetchOptions:
    """Retry and transport settings for source retrieval.

    Attributes:
        max_attempts: Total attempts before failing, at least 1.
        retry_delay_ms: Constant pause between failed attempts.
        request_timeout_ms: Per-request timeout.
        user_agent: User-Agent header sent with each request.
    """

    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class RawDocument:
    """Successfully fetched source document.

    Attributes:
        source_url: URL the document was retrieved from.
        text: Decoded response body, never empty.
        content_type: Response Content-Type header, possibly empty.
        status_code: HTTP status of the successful response.
        fetched_at: UTC timestamp of retrieval.
    """

    source_url: str
    text: str
    content_type: str
    status_code: int
    fetched_at: datetime


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one completed pipeline run.

    Attributes:
        snapshot: Persisted snapshot.
        changes: Ordered changes against the previous snapshot.
        document_format: Extraction strategy used for the document.
        previous_scraped_at: Timestamp of the compared snapshot, if any.
    """

    snapshot: Snapshot
    changes: tuple[ChangeRecord, ...]
    document_format: DocumentFormat
    previous_scraped_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        """Whether extraction produced no records."""
        return self.snapshot.bank_count == 0


@dataclass(frozen=True)
class RunNotification:
    """Run outcome delivered to a notification sink.

    Attributes:
        status: Either ``success`` or ``failure``.
        message: Human-readable summary line.
        timestamp: UTC time the outcome was recorded.
        bank_count: Record count for successful runs.
        error: Error text for failed runs.
    """

    status: RunStatus
    message: str
    timestamp: datetime
    bank_count: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class RunOutcome:
    """Result of one scheduler trigger.

    Attributes:
        status: ``success``, ``failure``, or ``skipped``.
        result: Pipeline result for successful runs.
        error: Error text for failed runs.
    """

    status: RunStatus
    result: PipelineResult | None = None
    error: str | None = None


@dataclass(frozen=True)
class SchedulerStatus:
    """Point-in-time scheduler state.

    Attributes:
        is_running: Whether a run currently holds the single-flight guard.
        schedule: Human-readable weekly slot.
        timezone: IANA timezone of the schedule.
        next_run: Next slot of the weekly schedule.
        is_scheduled: Whether the scheduling loop is active.
    """

    is_running: bool
    schedule: str
    timezone: str
    next_run: datetime | None
    is_scheduled: bool
