"""Raw row normalization into typed bank records.

This module splits the combined name field, parses published asset
strings into numbers, and builds BankRecord instances.
"""

from __future__ import annotations

from datetime import datetime
import re

from core.column_mapping import ColumnMapping
from core.constants import DOCUMENT_FORMAT_HTML
from core.errors import BankRankRowError
from core.types import BankRecord, DocumentFormat, RawRow

_NAME_SEPARATOR = re.compile(r"\s*/\s*")
_ASSET_NOISE = re.compile(r"[$€£¥,\s]")
_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def split_combined_name(combined_name: str) -> tuple[str, str]:
    """Split ``"Bank / Holding Co"`` into bank name and holding company.

    Args:
        combined_name: Raw name cell text.

    Returns:
        Pair of bank name and holding company (empty when absent).
    """
    parts = _NAME_SEPARATOR.split(combined_name)
    bank_name = parts[0].strip()
    holding_company = parts[1].strip() if len(parts) > 1 else ""
    return bank_name, holding_company


def parse_assets(asset_text: str) -> float:
    """Convert asset text like ``"$3,640,000"`` to a number.

    Currency symbols and grouping separators are removed and the leading
    numeric prefix is parsed. Unparseable text yields ``0.0``.

    Args:
        asset_text: Raw assets cell text.

    Returns:
        Parsed asset value.
    """
    cleaned = _ASSET_NOISE.sub("", asset_text)
    match = _LEADING_FLOAT.match(cleaned)
    if match is None:
        return 0.0
    return float(match.group(0))


def parse_rank(rank_text: str) -> int | None:
    """Parse the leading integer of a rank cell, ignoring non-positive values."""
    match = _LEADING_INT.match(rank_text)
    if match is None:
        return None
    rank = int(match.group(1))
    return rank if rank > 0 else None


def normalize_row(
    raw_row: RawRow,
    document_format: DocumentFormat,
    mapping: ColumnMapping,
    scraped_at: datetime,
) -> BankRecord:
    """Build a typed record from an accepted raw row.

    Structured rows take their rank from the rank column when it parses;
    textual rows always use the emission-order rank.

    Args:
        raw_row: Accepted row cells with fallback rank.
        document_format: Extraction strategy that produced the row.
        mapping: Column positions.
        scraped_at: Extraction timestamp stamped on the record.

    Returns:
        Normalized bank record.

    Raises:
        BankRankRowError: If required cells are missing or the name is empty.
    """
    cells = raw_row.cells
    if len(cells) < mapping.min_cells:
        raise BankRankRowError(
            f"Row has {len(cells)} cells, expected at least {mapping.min_cells}."
        )
    bank_name, holding_company = split_combined_name(cells[mapping.name_column])
    if not bank_name:
        raise BankRankRowError(f"Row has an empty bank name: {cells[mapping.name_column]!r}.")
    rank = raw_row.fallback_rank
    if document_format == DOCUMENT_FORMAT_HTML:
        rank = parse_rank(cells[mapping.rank_column]) or raw_row.fallback_rank
    return BankRecord(
        rank=rank,
        bank_name=bank_name,
        holding_company=holding_company,
        location=cells[mapping.location_column],
        assets=parse_assets(cells[mapping.assets_column]),
        scraped_at=scraped_at,
    )
