"""Shared JSON serialization for snapshot payloads.

This module maps snapshots and change reports to the published JSON
layout (camelCase keys, ISO-8601 timestamps) and back.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

from core.types import BankRecord, ChangeRecord, Snapshot


def snapshot_to_payload(snapshot: Snapshot) -> dict[str, object]:
    """Serialize a snapshot into a JSON-safe payload.

    Args:
        snapshot: Snapshot instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "scrapedAt": format_timestamp(snapshot.scraped_at),
        "source": snapshot.source,
        "bankCount": snapshot.bank_count,
        "banks": [bank_record_to_payload(record) for record in snapshot.banks],
    }


def snapshot_from_payload(payload: dict[str, Any]) -> Snapshot:
    """Deserialize a JSON payload into a snapshot.

    Args:
        payload: Serialized snapshot payload.

    Returns:
        Parsed snapshot.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If a field has an invalid value.
        TypeError: If a field has an unexpected type.
    """
    banks = tuple(bank_record_from_payload(item) for item in payload["banks"])
    bank_count = int(payload.get("bankCount", len(banks)))
    if bank_count != len(banks):
        raise ValueError(f"bankCount {bank_count} does not match {len(banks)} stored banks")
    return Snapshot(
        scraped_at=parse_timestamp(str(payload["scrapedAt"])),
        source=str(payload["source"]),
        banks=banks,
    )


def bank_record_to_payload(record: BankRecord) -> dict[str, object]:
    """Serialize one bank record."""
    return {
        "rank": record.rank,
        "bankName": record.bank_name,
        "holdingCompany": record.holding_company,
        "location": record.location,
        "assets": record.assets,
        "scrapedAt": format_timestamp(record.scraped_at),
    }


def bank_record_from_payload(payload: dict[str, Any]) -> BankRecord:
    """Deserialize one bank record."""
    return BankRecord(
        rank=int(payload["rank"]),
        bank_name=str(payload["bankName"]),
        holding_company=str(payload.get("holdingCompany", "")),
        location=str(payload.get("location", "")),
        assets=float(payload["assets"]),
        scraped_at=parse_timestamp(str(payload["scrapedAt"])),
    )


def changes_to_payload(changes: Sequence[ChangeRecord]) -> list[str]:
    """Serialize a change set as its ordered description lines."""
    return [change.description for change in changes]


def format_timestamp(moment: datetime) -> str:
    """Render a timestamp as ISO-8601, using ``Z`` for UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
        return moment.isoformat().replace("+00:00", "Z")
    return moment.isoformat()


def parse_timestamp(raw_value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    if raw_value.endswith("Z"):
        raw_value = raw_value[:-1] + "+00:00"
    return datetime.fromisoformat(raw_value)
