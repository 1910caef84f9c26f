"""Locate and load files under tests/fixtures."""

from __future__ import annotations

from pathlib import Path

_FIXTURES_ROOT = Path(__file__).resolve().parent / "fixtures"


def fixture_path(relative_path: str) -> Path:
    """Return the absolute path of a fixture, e.g. ``source/lbr_current.html``."""
    return _FIXTURES_ROOT / relative_path


def read_fixture_text(relative_path: str) -> str:
    """Read a UTF-8 fixture file as text."""
    return fixture_path(relative_path).read_text(encoding="utf-8")
