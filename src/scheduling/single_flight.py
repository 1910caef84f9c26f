"""Single-flight guard for pipeline runs.

A run that finds the guard held is skipped, not queued. The guard is an
advisory flag for one scheduling driver, not a cross-thread lock.
"""

from __future__ import annotations


class SingleFlightGuard:
    """Tracks whether a pipeline run is currently in flight."""

    def __init__(self) -> None:
        self._held = False

    @property
    def is_held(self) -> bool:
        """Whether a run currently holds the guard."""
        return self._held

    def try_acquire(self) -> bool:
        """Take the guard if it is free.

        Returns:
            True when acquired, False when a run is already in flight.
        """
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        """Free the guard after a run finishes."""
        self._held = False
