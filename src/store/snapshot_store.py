"""Dated snapshot store with a latest pointer.

This module persists each run's snapshot under its calendar date and
mirrors it to ``latest.json`` as one unit. It is the sole authority on
what the latest snapshot is, and it stores dated change reports.
"""

from __future__ import annotations

from datetime import date, datetime
import json
from pathlib import Path
import tempfile
from typing import Any, Sequence

from core.config import BankRankConfig
from core.constants import (
    CHANGES_FILE_PREFIX,
    LATEST_FILE_NAME,
    RUN_DATE_FORMAT,
    SNAPSHOT_FILE_PREFIX,
    SNAPSHOT_FILE_SUFFIX,
    SNAPSHOTS_DIR_NAME,
)
from core.errors import BankRankStoreError
from core.logging_config import get_logger
from core.types import ChangeRecord, Snapshot
from store.snapshot_payload import changes_to_payload, snapshot_from_payload, snapshot_to_payload

_LOGGER = get_logger(__name__)


class SnapshotStore:
    """Filesystem-backed snapshot store.

    This class owns the snapshot directory, dated snapshot files,
    the latest pointer, and dated change reports.
    """

    def __init__(self, config: BankRankConfig) -> None:
        """Initialize snapshot store from config.

        Args:
            config: Runtime configuration.
        """
        self._snapshots_root = config.data_root / SNAPSHOTS_DIR_NAME

    @property
    def snapshots_root(self) -> Path:
        """Directory holding all persisted artifacts."""
        return self._snapshots_root

    def write(self, snapshot: Snapshot) -> Path:
        """Persist a snapshot under its date and as the latest snapshot.

        Both files are swapped in together; if either swap fails the
        previous contents are restored.

        Args:
            snapshot: Snapshot to persist.

        Returns:
            Path of the dated snapshot file.

        Raises:
            BankRankStoreError: If persistence fails.
        """
        dated_path = self.snapshot_path(snapshot.run_date)
        latest_path = self._snapshots_root / LATEST_FILE_NAME
        content = _render_json(snapshot_to_payload(snapshot))
        try:
            self._snapshots_root.mkdir(parents=True, exist_ok=True)
            _replace_together([(dated_path, content), (latest_path, content)])
        except OSError as error:
            raise BankRankStoreError(
                f"Failed to write snapshot for {snapshot.run_date.isoformat()} "
                f"under {self._snapshots_root}: {error}. "
                "Check disk space and permissions for BANKRANK_DATA_ROOT."
            ) from error
        _LOGGER.info(
            "snapshot_written",
            path=str(dated_path),
            bank_count=snapshot.bank_count,
            source=snapshot.source,
        )
        return dated_path

    def read_latest(self) -> Snapshot | None:
        """Read the latest snapshot.

        Returns:
            Latest snapshot, or None when nothing has been written yet.

        Raises:
            BankRankStoreError: If the latest file is unreadable or invalid.
        """
        latest_path = self._snapshots_root / LATEST_FILE_NAME
        if not latest_path.exists():
            return None
        return _read_snapshot_file(latest_path)

    def read_snapshot(self, run_date: date) -> Snapshot:
        """Read the dated snapshot for a run date.

        Raises:
            BankRankStoreError: If no snapshot exists for the date.
        """
        snapshot_path = self.snapshot_path(run_date)
        if not snapshot_path.exists():
            raise BankRankStoreError(
                f"No snapshot stored for {run_date.isoformat()} at {snapshot_path}. "
                "Use list_snapshot_dates to discover stored dates."
            )
        return _read_snapshot_file(snapshot_path)

    def list_snapshot_dates(self) -> list[date]:
        """List dates with a stored snapshot, oldest first."""
        if not self._snapshots_root.exists():
            return []
        dates = []
        pattern = f"{SNAPSHOT_FILE_PREFIX}*{SNAPSHOT_FILE_SUFFIX}"
        for file_path in self._snapshots_root.glob(pattern):
            run_date = _parse_run_date(file_path.stem[len(SNAPSHOT_FILE_PREFIX) :])
            if run_date is not None:
                dates.append(run_date)
        return sorted(dates)

    def write_changes(self, run_date: date, changes: Sequence[ChangeRecord]) -> Path | None:
        """Persist a run's change report when it is non-empty.

        Args:
            run_date: Calendar date of the run.
            changes: Ordered changes.

        Returns:
            Path of the report, or None when there was nothing to write.

        Raises:
            BankRankStoreError: If persistence fails.
        """
        if not changes:
            return None
        report_path = self.changes_path(run_date)
        try:
            self._snapshots_root.mkdir(parents=True, exist_ok=True)
            _replace_together([(report_path, _render_json(changes_to_payload(changes)))])
        except OSError as error:
            raise BankRankStoreError(
                f"Failed to write change report at {report_path}: {error}. "
                "Check disk space and permissions for BANKRANK_DATA_ROOT."
            ) from error
        _LOGGER.info("change_report_written", path=str(report_path), change_count=len(changes))
        return report_path

    def read_changes(self, run_date: date) -> list[str]:
        """Read the stored change descriptions for a run date.

        Raises:
            BankRankStoreError: If the report is missing or invalid.
        """
        report_path = self.changes_path(run_date)
        if not report_path.exists():
            raise BankRankStoreError(
                f"No change report stored for {run_date.isoformat()} at {report_path}. "
                "Reports are only written when a run detects changes."
            )
        payload = _read_json_file(report_path)
        if not isinstance(payload, list) or not all(isinstance(item, str) for item in payload):
            raise BankRankStoreError(
                f"Failed to parse change report at {report_path}: expected a list of strings."
            )
        return payload

    def snapshot_path(self, run_date: date) -> Path:
        """Return the dated snapshot path for a run date."""
        date_text = run_date.strftime(RUN_DATE_FORMAT)
        return self._snapshots_root / f"{SNAPSHOT_FILE_PREFIX}{date_text}{SNAPSHOT_FILE_SUFFIX}"

    def changes_path(self, run_date: date) -> Path:
        """Return the dated change report path for a run date."""
        date_text = run_date.strftime(RUN_DATE_FORMAT)
        return self._snapshots_root / f"{CHANGES_FILE_PREFIX}{date_text}{SNAPSHOT_FILE_SUFFIX}"


def _render_json(payload: object) -> str:
    return json.dumps(payload, indent=2) + "\n"


def _replace_together(targets: list[tuple[Path, str]]) -> None:
    """Swap staged contents into all target paths or none of them.

    Args:
        targets: Pairs of destination path and new file content.

    Raises:
        OSError: If staging or swapping fails; earlier swaps are rolled back.
    """
    backups = {path: path.read_bytes() if path.exists() else None for path, _ in targets}
    staged: list[tuple[Path, Path]] = []
    swapped: list[Path] = []
    try:
        for path, content in targets:
            staged.append((path, _stage_file(path, content)))
        for path, staged_path in staged:
            staged_path.replace(path)
            swapped.append(path)
    except OSError:
        for path in swapped:
            _restore_file(path, backups[path])
        raise
    finally:
        for _, staged_path in staged:
            staged_path.unlink(missing_ok=True)


def _stage_file(target_path: Path, content: str) -> Path:
    """Write content to a temp file beside the target."""
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=target_path.parent,
        prefix=f".{target_path.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        handle.write(content)
    return Path(handle.name)


def _restore_file(path: Path, backup: bytes | None) -> None:
    if backup is None:
        path.unlink(missing_ok=True)
    else:
        path.write_bytes(backup)


def _read_snapshot_file(snapshot_path: Path) -> Snapshot:
    payload = _read_json_file(snapshot_path)
    if not isinstance(payload, dict):
        raise BankRankStoreError(
            f"Failed to parse snapshot at {snapshot_path}: expected JSON object at top level."
        )
    try:
        return snapshot_from_payload(payload)
    except (KeyError, TypeError, ValueError) as error:
        raise BankRankStoreError(
            f"Failed to parse snapshot at {snapshot_path}: {error}. "
            "Delete the file or restore it from a dated snapshot."
        ) from error


def _read_json_file(file_path: Path) -> Any:
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as error:
        raise BankRankStoreError(f"Failed to read {file_path}: {error}.") from error
    except json.JSONDecodeError as error:
        raise BankRankStoreError(
            f"Failed to parse {file_path}: {error.msg}. "
            "Delete the file or restore it from a dated snapshot."
        ) from error


def _parse_run_date(raw_value: str) -> date | None:
    try:
        return datetime.strptime(raw_value, RUN_DATE_FORMAT).date()
    except ValueError:
        return None
