"""Ranking table extraction from HTML and plain-text documents.

This module locates the bank data table in a fetched document and returns
accepted raw rows in source order. Two strategies share one protocol and
are selected by a format probe rather than by branching inside a parser.
"""

from __future__ import annotations

import re
from typing import Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag

from core.column_mapping import ColumnMapping
from core.constants import DOCUMENT_FORMAT_HTML, DOCUMENT_FORMAT_TEXT
from core.logging_config import get_logger
from core.types import DocumentFormat, RawDocument, RawRow
from ingest.record_normalizer import parse_assets, split_combined_name

_LOGGER = get_logger(__name__)
_COLUMN_GAP = re.compile(r"\s{2,}")
_TABLE_TAG = re.compile(r"<table[\s>]", re.IGNORECASE)


class TableExtractor(Protocol):
    """Capability shared by all table extraction strategies."""

    document_format: DocumentFormat

    def extract(self, document: str) -> list[RawRow]:
        """Return accepted rows in source order."""
        ...


class StructuredTableExtractor:
    """Extract rows from the first HTML table carrying bank data headers."""

    document_format: DocumentFormat = DOCUMENT_FORMAT_HTML

    def __init__(self, mapping: ColumnMapping) -> None:
        self._mapping = mapping

    def extract(self, document: str) -> list[RawRow]:
        """Extract accepted data rows from HTML markup.

        Args:
            document: Raw HTML markup.

        Returns:
            Up to ``max_records`` accepted rows; empty when no table matches.
        """
        soup = BeautifulSoup(document, "html.parser")
        for table_index, table in enumerate(soup.find_all("table")):
            header_texts = _header_texts(table)
            if not self._is_bank_table(header_texts):
                continue
            _LOGGER.info(
                "table_selected",
                table_index=table_index,
                column_count=len(header_texts),
            )
            return self._extract_rows(table)
        return []

    def _is_bank_table(self, header_texts: list[str]) -> bool:
        has_name = any(self._mapping.header_name_token in text for text in header_texts)
        has_assets = any(self._mapping.header_assets_token in text for text in header_texts)
        return has_name and has_assets

    def _extract_rows(self, table: Tag) -> list[RawRow]:
        rows: list[RawRow] = []
        for row in table.find_all("tr")[1:]:
            if len(rows) >= self._mapping.max_records:
                break
            cells = tuple(_cell_text(cell) for cell in row.find_all("td"))
            if self._accepts(cells):
                rows.append(RawRow(cells=cells, fallback_rank=len(rows) + 1))
        return rows

    def _accepts(self, cells: tuple[str, ...]) -> bool:
        mapping = self._mapping
        if len(cells) < mapping.min_cells:
            return False
        name_cell = cells[mapping.name_column]
        assets_cell = cells[mapping.assets_column]
        if not name_cell or name_cell in mapping.sentinel_names or not assets_cell:
            return False
        bank_name, _ = split_combined_name(name_cell)
        return bool(bank_name) and parse_assets(assets_cell) > 0


class TextTableExtractor:
    """Extract rows from column-aligned plain text.

    The row window is measured in lines from the first data line, so
    malformed lines inside the window consume capacity without producing rows.
    """

    document_format: DocumentFormat = DOCUMENT_FORMAT_TEXT

    def __init__(self, mapping: ColumnMapping) -> None:
        self._mapping = mapping

    def extract(self, document: str) -> list[RawRow]:
        """Extract data rows from whitespace-aligned text.

        Args:
            document: Raw text document.

        Returns:
            Rows with ranks assigned by emission order.
        """
        lines = document.split("\n")
        start_index = self._find_data_start(lines)
        if start_index is None:
            return []
        rows: list[RawRow] = []
        window_end = min(start_index + self._mapping.max_records, len(lines))
        for line in lines[start_index:window_end]:
            columns = split_table_row(line)
            if len(columns) < self._mapping.min_cells:
                continue
            bank_name, _ = split_combined_name(columns[self._mapping.name_column])
            if not bank_name:
                _LOGGER.debug("row_skipped", reason="empty_bank_name", line=line.strip())
                continue
            rows.append(RawRow(cells=columns, fallback_rank=len(rows) + 1))
        return rows

    def _find_data_start(self, lines: list[str]) -> int | None:
        for index, raw_line in enumerate(lines):
            line = raw_line.strip()
            if not line:
                continue
            if any(marker in line for marker in self._mapping.text_header_markers):
                continue
            if len(split_table_row(line)) >= self._mapping.min_cells:
                return index
        return None


def split_table_row(line: str) -> tuple[str, ...]:
    """Split a text line on runs of two or more whitespace characters.

    Single spaces inside names are preserved; empty columns are dropped.
    """
    columns = (column.strip() for column in _COLUMN_GAP.split(line.strip()))
    return tuple(column for column in columns if column)


def detect_document_format(document: RawDocument) -> DocumentFormat:
    """Choose the extraction strategy for a fetched document.

    Args:
        document: Fetched source document.

    Returns:
        ``html`` for tagged markup, otherwise ``text``.
    """
    if "html" in document.content_type.lower():
        return DOCUMENT_FORMAT_HTML
    if _TABLE_TAG.search(document.text):
        return DOCUMENT_FORMAT_HTML
    return DOCUMENT_FORMAT_TEXT


def build_extractor(document_format: DocumentFormat, mapping: ColumnMapping) -> TableExtractor:
    """Return the extractor implementation for a document format."""
    if document_format == DOCUMENT_FORMAT_HTML:
        return StructuredTableExtractor(mapping)
    return TextTableExtractor(mapping)


def _header_texts(table: Tag) -> list[str]:
    first_row = table.find("tr")
    if not isinstance(first_row, Tag):
        return []
    return [_cell_text(cell) for cell in first_row.find_all(["th", "td"])]


def _cell_text(cell: Tag) -> str:
    return cell.get_text(" ", strip=True)
