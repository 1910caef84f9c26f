"""Unit tests for snapshot store persistence."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from core.errors import BankRankStoreError
from core.types import BankRecord, ChangeKind, ChangeRecord, Snapshot
from store.snapshot_store import SnapshotStore
from tests.config_factory import make_config


def _snapshot(day: int, *names: str) -> Snapshot:
    scraped_at = datetime(2026, 10, day, 10, 0, tzinfo=timezone.utc)
    banks = tuple(
        BankRecord(rank, name, f"{name} CORP", "DOVER, DE", 1000.0 * rank, scraped_at)
        for rank, name in enumerate(names, start=1)
    )
    return Snapshot(scraped_at=scraped_at, source="https://example.test/lbr/", banks=banks)


def _store(tmp_path: Path) -> SnapshotStore:
    return SnapshotStore(make_config(tmp_path))


def test_read_latest_returns_none_before_first_write(tmp_path: Path) -> None:
    """An empty store has no latest snapshot."""
    assert _store(tmp_path).read_latest() is None


def test_write_persists_dated_and_latest_snapshot(tmp_path: Path) -> None:
    """Writing should produce both the dated file and the latest pointer."""
    store = _store(tmp_path)
    snapshot = _snapshot(19, "BANK A", "BANK B")

    dated_path = store.write(snapshot)

    assert dated_path == tmp_path / "snapshots" / "banks_2026-10-19.json"
    assert (tmp_path / "snapshots" / "latest.json").read_text(encoding="utf-8") == (
        dated_path.read_text(encoding="utf-8")
    )
    assert store.read_latest() == snapshot
    assert store.read_snapshot(date(2026, 10, 19)) == snapshot


def test_non_utc_snapshot_keeps_run_date_after_reload(tmp_path: Path) -> None:
    """Dated identity should use the UTC date before and after a reload."""
    store = _store(tmp_path)
    eastern_evening = datetime(2026, 10, 19, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
    snapshot = Snapshot(scraped_at=eastern_evening, source="https://example.test/lbr/", banks=())

    dated_path = store.write(snapshot)

    latest = store.read_latest()
    assert dated_path.name == "banks_2026-10-20.json"
    assert snapshot.run_date == date(2026, 10, 20)
    assert latest is not None and latest.run_date == snapshot.run_date
    assert store.list_snapshot_dates() == [date(2026, 10, 20)]


def test_written_payload_uses_published_layout(tmp_path: Path) -> None:
    """Stored JSON should carry camelCase keys and a bank count."""
    store = _store(tmp_path)

    dated_path = store.write(_snapshot(19, "BANK A"))

    content = dated_path.read_text(encoding="utf-8")
    assert '"bankCount": 1' in content
    assert '"holdingCompany": "BANK A CORP"' in content
    assert '"scrapedAt": "2026-10-19T10:00:00Z"' in content


def test_same_day_write_overwrites_dated_snapshot(tmp_path: Path) -> None:
    """A second run on the same date replaces the earlier file."""
    store = _store(tmp_path)
    store.write(_snapshot(19, "BANK A"))

    store.write(_snapshot(19, "BANK B", "BANK C"))

    assert store.read_snapshot(date(2026, 10, 19)).bank_count == 2
    assert store.list_snapshot_dates() == [date(2026, 10, 19)]


def test_latest_tracks_most_recent_write(tmp_path: Path) -> None:
    """Latest should point at the newest run while older dates remain."""
    store = _store(tmp_path)
    store.write(_snapshot(12, "BANK A"))

    store.write(_snapshot(19, "BANK B"))

    latest = store.read_latest()
    assert latest is not None and latest.banks[0].bank_name == "BANK B"
    assert store.list_snapshot_dates() == [date(2026, 10, 12), date(2026, 10, 19)]


def test_write_rolls_back_when_latest_swap_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A failed latest update must not leave a new dated file behind."""
    store = _store(tmp_path)
    previous = _snapshot(12, "BANK A")
    store.write(previous)
    original_replace = Path.replace
    replace_calls: list[Path] = []

    def failing_replace(self: Path, target: Path) -> Path:
        replace_calls.append(Path(target))
        if len(replace_calls) == 2:
            raise OSError("disk full")
        return original_replace(self, target)

    monkeypatch.setattr(Path, "replace", failing_replace)

    with pytest.raises(BankRankStoreError, match="disk full"):
        store.write(_snapshot(19, "BANK B"))

    monkeypatch.undo()
    assert store.read_latest() == previous
    assert store.list_snapshot_dates() == [date(2026, 10, 12)]
    assert list(store.snapshots_root.glob("*.tmp")) == []


def test_read_latest_rejects_corrupt_file(tmp_path: Path) -> None:
    """Corrupt latest content should raise a store error."""
    store = _store(tmp_path)
    store.snapshots_root.mkdir(parents=True)
    (store.snapshots_root / "latest.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(BankRankStoreError):
        store.read_latest()


def test_read_snapshot_missing_date_raises(tmp_path: Path) -> None:
    """Reading an unknown date should fail clearly."""
    with pytest.raises(BankRankStoreError, match="No snapshot stored for 2026-01-05"):
        _store(tmp_path).read_snapshot(date(2026, 1, 5))


def test_change_report_round_trip(tmp_path: Path) -> None:
    """Non-empty change sets are stored as ordered description lines."""
    store = _store(tmp_path)
    changes = (
        ChangeRecord(ChangeKind.NEW_ENTRANT, "BANK C", "New bank in top 40: BANK C at rank 3"),
        ChangeRecord(ChangeKind.RANK_CHANGE, "BANK A", "BANK A: rank changed from 1 to 2"),
    )

    report_path = store.write_changes(date(2026, 10, 19), changes)

    assert report_path is not None and report_path.name == "changes_2026-10-19.json"
    assert store.read_changes(date(2026, 10, 19)) == [
        "New bank in top 40: BANK C at rank 3",
        "BANK A: rank changed from 1 to 2",
    ]


def test_empty_change_set_writes_nothing(tmp_path: Path) -> None:
    """No report file is produced when nothing changed."""
    store = _store(tmp_path)

    assert store.write_changes(date(2026, 10, 19), ()) is None
    assert not store.changes_path(date(2026, 10, 19)).exists()
