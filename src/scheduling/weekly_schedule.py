"""Weekly run slot computation.

This module parses the configured weekday, time, and timezone and
computes the next run moment in that timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.constants import WEEKDAY_NAMES
from core.errors import BankRankConfigError


@dataclass(frozen=True)
class WeeklySchedule:
    """One run per week at a fixed local time.

    Attributes:
        weekday: Day index, Monday is 0.
        hour: Local hour of the run.
        minute: Local minute of the run.
        timezone: IANA timezone name.
    """

    weekday: int
    hour: int
    minute: int
    timezone: str

    def next_run_after(self, moment: datetime) -> datetime:
        """Return the first scheduled run strictly after ``moment``.

        Args:
            moment: Timezone-aware reference time.

        Returns:
            Timezone-aware run time in the schedule's timezone.
        """
        zone = ZoneInfo(self.timezone)
        local_moment = moment.astimezone(zone)
        days_ahead = (self.weekday - local_moment.weekday()) % 7
        candidate_day = local_moment.date() + timedelta(days=days_ahead)
        candidate = datetime.combine(candidate_day, time(self.hour, self.minute), tzinfo=zone)
        if candidate <= local_moment:
            candidate = datetime.combine(
                candidate_day + timedelta(days=7), time(self.hour, self.minute), tzinfo=zone
            )
        return candidate

    def describe(self) -> str:
        """Return a short human-readable slot description."""
        return f"{WEEKDAY_NAMES[self.weekday]} {self.hour:02d}:{self.minute:02d} {self.timezone}"


def parse_weekly_schedule(weekday: str, time_text: str, timezone_name: str) -> WeeklySchedule:
    """Build a validated weekly schedule.

    Args:
        weekday: Three-letter weekday name such as ``mon``.
        time_text: Local time as ``HH:MM``.
        timezone_name: IANA timezone such as ``America/New_York``.

    Returns:
        Weekly schedule.

    Raises:
        BankRankConfigError: If any part is invalid.
    """
    weekday_key = weekday.strip().lower()[:3]
    if weekday_key not in WEEKDAY_NAMES:
        raise BankRankConfigError(
            f"Invalid schedule weekday '{weekday}'. Use one of: {', '.join(WEEKDAY_NAMES)}."
        )
    hour, minute = _parse_time(time_text)
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as error:
        raise BankRankConfigError(
            f"Unknown schedule timezone '{timezone_name}'. Use an IANA name like America/New_York."
        ) from error
    return WeeklySchedule(
        weekday=WEEKDAY_NAMES.index(weekday_key),
        hour=hour,
        minute=minute,
        timezone=timezone_name,
    )


def _parse_time(time_text: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(time_text.strip(), "%H:%M")
    except ValueError as error:
        raise BankRankConfigError(
            f"Invalid schedule time '{time_text}'. Use 24-hour HH:MM, for example 06:00."
        ) from error
    return parsed.hour, parsed.minute
