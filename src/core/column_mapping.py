"""Versionable column mapping for ranking table extraction.

This module loads and validates the YAML file that tells extractors which
cell positions hold the bank name, rank, location, and asset values.
Source format drift then becomes a configuration change, not a code change.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Mapping, Sequence, cast

from core.constants import COLUMN_MAPPING_VERSION, DEFAULT_MAX_RECORDS
from core.errors import BankRankConfigError, BankRankDependencyError


@dataclass(frozen=True)
class ColumnMapping:
    """Cell positions and markers for one published table layout.

    Attributes:
        name_column: Cell index of the combined "bank / holding company" field.
        rank_column: Cell index of the published rank.
        location_column: Cell index of the bank location.
        assets_column: Cell index of the consolidated assets value.
        min_cells: Minimum number of cells for a row to be considered.
        max_records: Maximum number of records kept per snapshot.
        header_name_token: Header substring identifying the name column.
        header_assets_token: Header substring identifying the assets column.
        sentinel_names: Name-cell values marking non-data rows.
        text_header_markers: Substrings marking header lines in text tables.
    """

    name_column: int = 0
    rank_column: int = 1
    location_column: int = 3
    assets_column: int = 5
    min_cells: int = 6
    max_records: int = DEFAULT_MAX_RECORDS
    header_name_token: str = "Bank Name"
    header_assets_token: str = "Assets"
    sentinel_names: tuple[str, ...] = ("Summary:",)
    text_header_markers: tuple[str, ...] = ("Bank Name", "---", "Rank")


DEFAULT_COLUMN_MAPPING = ColumnMapping()

_INT_FIELDS = (
    "name_column",
    "rank_column",
    "location_column",
    "assets_column",
    "min_cells",
    "max_records",
)
_STRING_FIELDS = ("header_name_token", "header_assets_token")
_STRING_LIST_FIELDS = ("sentinel_names", "text_header_markers")


def load_column_mapping(mapping_path: str | Path) -> ColumnMapping:
    """Load and validate a YAML column mapping from disk.

    Args:
        mapping_path: File path to the YAML mapping.

    Returns:
        Column mapping with file values applied over defaults.

    Raises:
        BankRankDependencyError: If PyYAML is unavailable.
        BankRankConfigError: If the file is invalid or fails validation.
    """
    payload = _load_yaml_payload(Path(mapping_path))
    root_mapping = _expect_mapping(payload)
    _validate_version(root_mapping)
    overrides = _parse_overrides(root_mapping)
    mapping = replace(DEFAULT_COLUMN_MAPPING, **overrides)
    validate_column_mapping(mapping)
    return mapping


def validate_column_mapping(mapping: ColumnMapping) -> None:
    """Check cross-field consistency of a column mapping.

    Raises:
        BankRankConfigError: If indexes or limits are inconsistent.
    """
    for field_name in _INT_FIELDS:
        if getattr(mapping, field_name) < 0:
            raise BankRankConfigError(
                f"Column mapping field '{field_name}' must be zero or positive."
            )
    if mapping.max_records < 1:
        raise BankRankConfigError("Column mapping field 'max_records' must be at least 1.")
    highest_index = max(
        mapping.name_column,
        mapping.rank_column,
        mapping.location_column,
        mapping.assets_column,
    )
    if mapping.min_cells <= highest_index:
        raise BankRankConfigError(
            f"Column mapping 'min_cells' ({mapping.min_cells}) must exceed the highest "
            f"column index ({highest_index}). Raise min_cells or fix the indexes."
        )
    if not mapping.header_name_token or not mapping.header_assets_token:
        raise BankRankConfigError("Column mapping header tokens must be non-empty strings.")


def _load_yaml_payload(mapping_file: Path) -> object:
    try:
        import yaml
    except ImportError as error:  # pragma: no cover - dependency failure
        raise BankRankDependencyError(
            "Column mapping files require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    resolved_file = mapping_file.expanduser().resolve()
    if not resolved_file.exists():
        raise BankRankConfigError(
            f"Column mapping file does not exist at {resolved_file}. "
            "Set BANKRANK_COLUMN_MAPPING to a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(resolved_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise BankRankConfigError(
            f"Failed to read column mapping at {resolved_file}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise BankRankConfigError(
            f"Failed to parse column mapping at {resolved_file}: {error}. Fix YAML syntax."
        ) from error
    if payload is None:
        raise BankRankConfigError(
            f"Column mapping at {resolved_file} is empty. Define at least 'version: 1'."
        )
    return payload


def _expect_mapping(value: object) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise BankRankConfigError(
            f"Invalid column mapping: expected object mapping, got {type(value).__name__}."
        )
    for key in value:
        if not isinstance(key, str):
            raise BankRankConfigError(
                f"Invalid column mapping: expected string keys, got {type(key).__name__}."
            )
    return cast(Mapping[str, object], value)


def _validate_version(root_mapping: Mapping[str, object]) -> None:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise BankRankConfigError("Column mapping field 'version' must be an integer.")
    if raw_version != COLUMN_MAPPING_VERSION:
        raise BankRankConfigError(
            f"Unsupported column mapping version {raw_version}. "
            f"Use version: {COLUMN_MAPPING_VERSION}."
        )


def _parse_overrides(root_mapping: Mapping[str, object]) -> dict[str, object]:
    allowed_keys = {item.name for item in fields(ColumnMapping)} | {"version"}
    unknown_keys = sorted(set(root_mapping) - allowed_keys)
    if unknown_keys:
        raise BankRankConfigError(
            f"Column mapping contains unknown fields: {', '.join(unknown_keys)}."
        )
    overrides: dict[str, object] = {}
    for field_name in _INT_FIELDS:
        if field_name in root_mapping:
            overrides[field_name] = _expect_int(root_mapping[field_name], field_name)
    for field_name in _STRING_FIELDS:
        if field_name in root_mapping:
            overrides[field_name] = _expect_string(root_mapping[field_name], field_name)
    for field_name in _STRING_LIST_FIELDS:
        if field_name in root_mapping:
            overrides[field_name] = _expect_string_tuple(root_mapping[field_name], field_name)
    return overrides


def _expect_int(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BankRankConfigError(f"Column mapping field '{field_name}' must be an integer.")
    return value


def _expect_string(value: object, field_name: str) -> str:
    if not isinstance(value, str):
        raise BankRankConfigError(f"Column mapping field '{field_name}' must be a string.")
    return value


def _expect_string_tuple(value: object, field_name: str) -> tuple[str, ...]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        items = tuple(value)
        if all(isinstance(item, str) for item in items):
            return cast(tuple[str, ...], items)
    raise BankRankConfigError(
        f"Column mapping field '{field_name}' must be a list of strings."
    )
