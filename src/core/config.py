"""Runtime configuration model for BankRank.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.column_mapping import DEFAULT_COLUMN_MAPPING, ColumnMapping, load_column_mapping
from core.constants import (
    DEFAULT_ASSET_CHANGE_THRESHOLD,
    DEFAULT_DATA_ROOT,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_SCHEDULE_TIME,
    DEFAULT_SCHEDULE_WEEKDAY,
    DEFAULT_SOURCE_URL,
    DEFAULT_TIMEZONE,
    DEFAULT_USER_AGENT,
)
from core.errors import BankRankConfigError
from core.types import FetchOptions


@dataclass(frozen=True)
class BankRankConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local directory holding snapshots and change reports.
        source_url: Ranking table URL.
        retry_attempts: Fetch attempts before giving up.
        retry_delay_ms: Constant pause between failed fetch attempts.
        request_timeout_ms: Per-request HTTP timeout.
        user_agent: User-Agent header for source requests.
        asset_change_threshold: Relative asset delta reported as a change.
        column_mapping: Cell positions used by the extractors.
        schedule_weekday: Weekday of the scheduled run.
        schedule_time: Local ``HH:MM`` time of the scheduled run.
        timezone: IANA timezone of the schedule.
        webhook_url: Optional notification webhook.
    """

    data_root: Path
    source_url: str
    retry_attempts: int
    retry_delay_ms: int
    request_timeout_ms: int
    user_agent: str
    asset_change_threshold: float
    column_mapping: ColumnMapping
    schedule_weekday: str
    schedule_time: str
    timezone: str
    webhook_url: str | None

    @classmethod
    def from_env(cls) -> "BankRankConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            BankRankConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("BANKRANK_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        mapping_path = os.getenv("BANKRANK_COLUMN_MAPPING")
        column_mapping = (
            load_column_mapping(mapping_path) if mapping_path else DEFAULT_COLUMN_MAPPING
        )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            source_url=os.getenv("BANKRANK_SOURCE_URL", DEFAULT_SOURCE_URL),
            retry_attempts=_parse_int_env(
                "BANKRANK_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS, minimum=1
            ),
            retry_delay_ms=_parse_int_env(
                "BANKRANK_RETRY_DELAY_MS", DEFAULT_RETRY_DELAY_MS, minimum=0
            ),
            request_timeout_ms=_parse_int_env(
                "BANKRANK_REQUEST_TIMEOUT_MS", DEFAULT_REQUEST_TIMEOUT_MS, minimum=1
            ),
            user_agent=os.getenv("BANKRANK_USER_AGENT", DEFAULT_USER_AGENT),
            asset_change_threshold=_parse_threshold(
                os.getenv("BANKRANK_ASSET_CHANGE_THRESHOLD", str(DEFAULT_ASSET_CHANGE_THRESHOLD))
            ),
            column_mapping=column_mapping,
            schedule_weekday=os.getenv("BANKRANK_SCHEDULE_WEEKDAY", DEFAULT_SCHEDULE_WEEKDAY),
            schedule_time=os.getenv("BANKRANK_SCHEDULE_TIME", DEFAULT_SCHEDULE_TIME),
            timezone=os.getenv("BANKRANK_TIMEZONE", DEFAULT_TIMEZONE),
            webhook_url=os.getenv("BANKRANK_WEBHOOK_URL") or None,
        )

    def fetch_options(self) -> FetchOptions:
        """Return fetcher options derived from this config."""
        return FetchOptions(
            max_attempts=self.retry_attempts,
            retry_delay_ms=self.retry_delay_ms,
            request_timeout_ms=self.request_timeout_ms,
            user_agent=self.user_agent,
        )


def _parse_int_env(variable_name: str, default: int, minimum: int) -> int:
    """Parse a bounded integer environment value.

    Args:
        variable_name: Environment variable to read.
        default: Value used when the variable is unset.
        minimum: Smallest accepted value.

    Returns:
        Parsed integer.

    Raises:
        BankRankConfigError: If value is not an integer or below minimum.
    """
    raw_value = os.getenv(variable_name, str(default))
    try:
        value = int(raw_value)
    except ValueError as error:
        raise BankRankConfigError(
            f"Invalid {variable_name} value: expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a numeric value."
        ) from error
    if value < minimum:
        raise BankRankConfigError(
            f"Invalid {variable_name} value: {value} is below the minimum of {minimum}."
        )
    return value


def _parse_threshold(raw_value: str) -> float:
    try:
        threshold = float(raw_value)
    except ValueError as error:
        raise BankRankConfigError(
            "Invalid BANKRANK_ASSET_CHANGE_THRESHOLD value: "
            f"expected a fraction such as 0.05, got '{raw_value}'."
        ) from error
    if threshold < 0:
        raise BankRankConfigError(
            "Invalid BANKRANK_ASSET_CHANGE_THRESHOLD value: must be zero or positive."
        )
    return threshold
