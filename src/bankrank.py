"""Public SDK surface for BankRank.

This module provides a stable import path for library users.
It re-exports the pipeline, store, change detection, and scheduler.
"""

from __future__ import annotations

from core.column_mapping import ColumnMapping, load_column_mapping
from core.config import BankRankConfig
from core.errors import (
    BankRankConfigError,
    BankRankError,
    BankRankFetchError,
    BankRankStoreError,
)
from core.types import BankRecord, ChangeKind, ChangeRecord, PipelineResult, Snapshot
from ingest.fetcher import SourceFetcher
from ingest.pipeline import SnapshotPipeline, produce_snapshot
from ingest.record_normalizer import parse_assets
from scheduling.scheduler import ScrapeScheduler, build_scheduler
from store.snapshot_store import SnapshotStore
from transforms.change_detection import detect_changes

__all__ = [
    "BankRankConfig",
    "BankRankConfigError",
    "BankRankError",
    "BankRankFetchError",
    "BankRankStoreError",
    "BankRecord",
    "ChangeKind",
    "ChangeRecord",
    "ColumnMapping",
    "PipelineResult",
    "ScrapeScheduler",
    "Snapshot",
    "SnapshotPipeline",
    "SnapshotStore",
    "SourceFetcher",
    "build_scheduler",
    "detect_changes",
    "load_column_mapping",
    "parse_assets",
    "produce_snapshot",
]
