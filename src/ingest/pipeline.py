"""Ranking snapshot pipeline.

This module coordinates fetch, extraction, normalization, snapshot
persistence, and change detection for one run. The core operation takes
its previous-snapshot lookup and persistence sinks as arguments so it
holds no state between runs.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from core.column_mapping import ColumnMapping
from core.config import BankRankConfig
from core.errors import BankRankRowError
from core.logging_config import get_logger
from core.types import (
    BankRecord,
    ChangeRecord,
    DocumentFormat,
    PipelineResult,
    RawRow,
    Snapshot,
)
from ingest.fetcher import SourceFetcher
from ingest.record_normalizer import normalize_row
from ingest.table_extractor import build_extractor, detect_document_format
from store.snapshot_store import SnapshotStore
from transforms.change_detection import detect_changes

_LOGGER = get_logger(__name__)

PreviousSnapshotLookup = Callable[[], Snapshot | None]
SnapshotSink = Callable[[Snapshot], object]
ChangeSink = Callable[[date, Sequence[ChangeRecord]], object]
Clock = Callable[[], datetime]


def produce_snapshot(
    source_url: str,
    *,
    fetcher: SourceFetcher,
    previous_lookup: PreviousSnapshotLookup,
    snapshot_sink: SnapshotSink,
    change_sink: ChangeSink | None = None,
    mapping: ColumnMapping,
    asset_change_threshold: float,
    clock: Clock | None = None,
) -> PipelineResult:
    """Fetch, extract, persist, and diff one ranking snapshot.

    Args:
        source_url: Ranking table URL.
        fetcher: Source fetcher with retry policy.
        previous_lookup: Returns the latest stored snapshot, or None.
        snapshot_sink: Persists the new snapshot.
        change_sink: Optional sink for non-empty change sets.
        mapping: Column positions for extraction.
        asset_change_threshold: Relative asset delta reported as a change.
        clock: Source of UTC timestamps.

    Returns:
        Persisted snapshot with detected changes.

    Raises:
        BankRankFetchError: If the source cannot be fetched.
        BankRankStoreError: If reading or writing snapshots fails.
    """
    now = clock or _utc_now
    document = fetcher.fetch(source_url)
    document_format = detect_document_format(document)
    _LOGGER.info("document_format_detected", document_format=document_format)
    raw_rows = build_extractor(document_format, mapping).extract(document.text)
    records = _normalize_rows(raw_rows, document_format, mapping, now)
    if not records:
        _LOGGER.warning("extraction_empty", source_url=source_url, document_format=document_format)
    snapshot = Snapshot(scraped_at=now(), source=source_url, banks=tuple(records))
    previous = previous_lookup()
    snapshot_sink(snapshot)
    changes: tuple[ChangeRecord, ...] = ()
    if previous is not None:
        changes = detect_changes(previous.banks, snapshot.banks, asset_change_threshold)
        _log_changes(changes)
        if changes and change_sink is not None:
            change_sink(snapshot.run_date, changes)
    _LOGGER.info(
        "pipeline_completed",
        source_url=source_url,
        bank_count=snapshot.bank_count,
        change_count=len(changes),
        has_previous=previous is not None,
    )
    return PipelineResult(
        snapshot=snapshot,
        changes=changes,
        document_format=document_format,
        previous_scraped_at=previous.scraped_at if previous is not None else None,
    )


class SnapshotPipeline:
    """Pipeline bound to a config, fetcher, and snapshot store."""

    def __init__(
        self,
        config: BankRankConfig,
        fetcher: SourceFetcher | None = None,
        store: SnapshotStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher or SourceFetcher(config.fetch_options())
        self._store = store or SnapshotStore(config)
        self._clock = clock

    @property
    def store(self) -> SnapshotStore:
        """Snapshot store used by this pipeline."""
        return self._store

    def run(self) -> PipelineResult:
        """Execute one pipeline run against the configured source."""
        return produce_snapshot(
            self._config.source_url,
            fetcher=self._fetcher,
            previous_lookup=self._store.read_latest,
            snapshot_sink=self._store.write,
            change_sink=self._store.write_changes,
            mapping=self._config.column_mapping,
            asset_change_threshold=self._config.asset_change_threshold,
            clock=self._clock,
        )

    def snapshot_path(self, result: PipelineResult) -> Path:
        """Return the dated file a run's snapshot was written to."""
        return self._store.snapshot_path(result.snapshot.run_date)


def _normalize_rows(
    raw_rows: list[RawRow],
    document_format: DocumentFormat,
    mapping: ColumnMapping,
    now: Clock,
) -> list[BankRecord]:
    """Normalize rows, skipping any that fail per-field parsing."""
    records: list[BankRecord] = []
    for raw_row in raw_rows:
        try:
            records.append(normalize_row(raw_row, document_format, mapping, now()))
        except BankRankRowError as error:
            _LOGGER.debug("row_skipped", reason=str(error), cells=list(raw_row.cells))
    return records


def _log_changes(changes: tuple[ChangeRecord, ...]) -> None:
    if not changes:
        return
    _LOGGER.info(
        "changes_detected",
        change_count=len(changes),
        changes=[change.description for change in changes],
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
