"""Monotonic countdown timer with millisecond resolution."""

from __future__ import annotations

import time

__all__ = ["MillisecondTimer"]

_NS_PER_MS = 1_000_000


class MillisecondTimer:
    """A deadline a fixed number of milliseconds after creation."""

    def __init__(self, millis: int) -> None:
        if millis < 0:
            raise ValueError(f"millis must not be negative, got {millis!r}")
        self._expiry_ns = time.monotonic_ns() + int(millis) * _NS_PER_MS

    def remaining(self) -> int:
        """Milliseconds left until expiry; negative once expired.

        Fractions of a millisecond are truncated toward zero.
        """
        diff_ns = self._expiry_ns - time.monotonic_ns()
        return int(diff_ns / _NS_PER_MS)