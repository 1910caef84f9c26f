"""BankRank exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class BankRankError(Exception):
    """Base exception for all BankRank failures."""


class BankRankConfigError(BankRankError):
    """Raised for invalid runtime configuration."""


class BankRankFetchError(BankRankError):
    """Raised when every attempt to retrieve the source document failed.

    Attributes:
        attempts: Number of attempts made before giving up.
        last_error: Underlying failure of the final attempt.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class BankRankExtractError(BankRankError):
    """Raised for table extraction and normalization failures."""


class BankRankRowError(BankRankExtractError):
    """Raised when a single table row cannot be normalized."""


class BankRankStoreError(BankRankError):
    """Raised for snapshot persistence and read failures."""


class BankRankScheduleError(BankRankError):
    """Raised when a run cannot be started by the scheduler."""


class BankRankDependencyError(BankRankError):
    """Raised when an optional runtime dependency is missing."""
