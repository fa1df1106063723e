"""System clock implementing ClockPort."""

from __future__ import annotations

from datetime import UTC, datetime


class SystemClock:
    """Wall clock returning aware UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(UTC)
