"""BankRank CLI entry points.

This module exposes commands for manual runs, scheduling, and reading
stored snapshots. It maps argparse commands onto pipeline and store calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
import sys
from typing import Any, Sequence

from core.config import BankRankConfig
from core.constants import RUN_DATE_FORMAT
from core.errors import BankRankError
from ingest.pipeline import SnapshotPipeline
from scheduling.scheduler import build_scheduler
from store.snapshot_store import SnapshotStore


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="bankrank", description="Largest-banks ranking snapshot tracker"
    )
    parser.add_argument("--data-root", help="Override BANKRANK_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_simple_commands(subparsers)
    _add_changes_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the BankRank CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.data_root)
        if args.command == "run-now":
            return _run_now_command(config)
        if args.command == "status":
            return _run_status_command(config)
        if args.command == "schedule":
            return _run_schedule_command(config)
        if args.command == "latest":
            return _run_latest_command(config)
        if args.command == "changes":
            return _run_changes_command(config, args)
    except BankRankError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(data_root: str | None) -> BankRankConfig:
    """Build config with optional data-root override."""
    config = BankRankConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return config


def _run_now_command(config: BankRankConfig) -> int:
    """Handle run-now command.

    Args:
        config: Runtime configuration.

    Returns:
        Exit code.
    """
    pipeline = SnapshotPipeline(config)
    result = build_scheduler(config, pipeline).run_now()
    print(f"bank_count={result.snapshot.bank_count}")
    print(f"snapshot={pipeline.snapshot_path(result)}")
    print(f"changes={len(result.changes)}")
    for change in result.changes:
        print(f"- {change.description}")
    return 0


def _run_status_command(config: BankRankConfig) -> int:
    """Handle status command."""
    status = build_scheduler(config).status()
    print(f"is_running={status.is_running}")
    print(f"schedule={status.schedule}")
    print(f"timezone={status.timezone}")
    print(f"next_run={status.next_run.isoformat() if status.next_run else '-'}")
    print(f"is_scheduled={status.is_scheduled}")
    return 0


def _run_schedule_command(config: BankRankConfig) -> int:
    """Handle schedule command; blocks until interrupted."""
    scheduler = build_scheduler(config)
    print(f"scheduled={scheduler.status().schedule}")
    try:
        scheduler.serve_forever()
    except KeyboardInterrupt:
        scheduler.stop()
    return 0


def _run_latest_command(config: BankRankConfig) -> int:
    """Handle latest command.

    Args:
        config: Runtime configuration.

    Returns:
        Exit code; 1 when no snapshot has been stored.
    """
    snapshot = SnapshotStore(config).read_latest()
    if snapshot is None:
        print("No snapshot stored yet. Run 'bankrank run-now' first.")
        return 1
    print(f"# scraped_at={snapshot.scraped_at.isoformat()} bank_count={snapshot.bank_count}")
    for record in snapshot.banks:
        print(
            f"{record.rank}\t"
            f"{record.bank_name}\t"
            f"{record.holding_company or '-'}\t"
            f"{record.location or '-'}\t"
            f"{record.assets:.0f}"
        )
    return 0


def _run_changes_command(config: BankRankConfig, args: argparse.Namespace) -> int:
    """Handle changes command."""
    run_date = args.date or datetime.now(timezone.utc).date()
    for description in SnapshotStore(config).read_changes(run_date):
        print(description)
    return 0


def _parse_run_date(raw_value: str) -> date:
    try:
        return datetime.strptime(raw_value, RUN_DATE_FORMAT).date()
    except ValueError as error:
        raise argparse.ArgumentTypeError(
            f"Invalid --date '{raw_value}'. Use YYYY-MM-DD."
        ) from error


def _add_simple_commands(subparsers: Any) -> None:
    """Register commands that take no arguments."""
    subparsers.add_parser("run-now", help="Fetch, store, and diff one snapshot now")
    subparsers.add_parser("status", help="Show scheduler configuration and next run")
    subparsers.add_parser("schedule", help="Run the weekly scheduler until interrupted")
    subparsers.add_parser("latest", help="Print the latest stored snapshot")


def _add_changes_command(subparsers: Any) -> None:
    """Register changes subcommand."""
    parser = subparsers.add_parser("changes", help="Print a stored change report")
    parser.add_argument(
        "--date",
        type=_parse_run_date,
        help="Run date as YYYY-MM-DD (default: today in UTC)",
    )
