"""Snapshot change detection.

This module compares the previous and current ranking keyed by bank name
and reports new entrants, rank moves, and material asset changes.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from core.constants import DEFAULT_ASSET_CHANGE_THRESHOLD
from core.types import BankRecord, ChangeKind, ChangeRecord


def detect_changes(
    previous: Sequence[BankRecord],
    current: Sequence[BankRecord],
    threshold: float = DEFAULT_ASSET_CHANGE_THRESHOLD,
) -> tuple[ChangeRecord, ...]:
    """Compare two rankings and describe what changed.

    At most one change is emitted per current record. A rank move takes
    precedence over an asset change, and banks that dropped out of the
    ranking are not reported.

    Args:
        previous: Records of the previous snapshot.
        current: Records of the current snapshot, in rank order.
        threshold: Relative asset delta above which a change is reported.

    Returns:
        Changes in current-record order.
    """
    previous_by_name = _index_by_name(previous)
    changes: list[ChangeRecord] = []
    for record in current:
        change = _compare_record(previous_by_name.get(record.bank_name), record, threshold)
        if change is not None:
            changes.append(change)
    return tuple(changes)


def asset_change_pct(previous_assets: float, current_assets: float) -> float:
    """Return the signed percentage delta rounded to two decimals."""
    return round((current_assets - previous_assets) / previous_assets * 100, 2)


def _index_by_name(records: Iterable[BankRecord]) -> dict[str, BankRecord]:
    """Map bank name to its first record."""
    index: dict[str, BankRecord] = {}
    for record in records:
        index.setdefault(record.bank_name, record)
    return index


def _compare_record(
    previous: BankRecord | None,
    current: BankRecord,
    threshold: float,
) -> ChangeRecord | None:
    if previous is None:
        return ChangeRecord(
            kind=ChangeKind.NEW_ENTRANT,
            bank_name=current.bank_name,
            description=f"New bank in top 40: {current.bank_name} at rank {current.rank}",
            current_rank=current.rank,
        )
    if previous.rank != current.rank:
        return ChangeRecord(
            kind=ChangeKind.RANK_CHANGE,
            bank_name=current.bank_name,
            description=(
                f"{current.bank_name}: rank changed from {previous.rank} to {current.rank}"
            ),
            previous_rank=previous.rank,
            current_rank=current.rank,
        )
    # A zero baseline has no defined percentage.
    if previous.assets <= 0:
        return None
    if abs(current.assets - previous.assets) <= previous.assets * threshold:
        return None
    pct = asset_change_pct(previous.assets, current.assets)
    return ChangeRecord(
        kind=ChangeKind.ASSET_CHANGE,
        bank_name=current.bank_name,
        description=f"{current.bank_name}: assets changed by {pct:.2f}%",
        previous_rank=previous.rank,
        current_rank=current.rank,
        asset_change_pct=pct,
    )
