"""Core constants used across BankRank modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".bankrank")
DEFAULT_SOURCE_URL = "https://www.federalreserve.gov/releases/lbr/current/"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; BankRankScraper/1.0)"
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 5000
DEFAULT_REQUEST_TIMEOUT_MS = 30000
DEFAULT_ASSET_CHANGE_THRESHOLD = 0.05
DEFAULT_MAX_RECORDS = 40
DEFAULT_SCHEDULE_WEEKDAY = "mon"
DEFAULT_SCHEDULE_TIME = "06:00"
DEFAULT_TIMEZONE = "America/New_York"
HTTP_OK_STATUS = 200
SNAPSHOTS_DIR_NAME = "snapshots"
SNAPSHOT_FILE_PREFIX = "banks_"
CHANGES_FILE_PREFIX = "changes_"
LATEST_FILE_NAME = "latest.json"
SNAPSHOT_FILE_SUFFIX = ".json"
RUN_DATE_FORMAT = "%Y-%m-%d"
DOCUMENT_FORMAT_HTML = "html"
DOCUMENT_FORMAT_TEXT = "text"
COLUMN_MAPPING_VERSION = 1
WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
