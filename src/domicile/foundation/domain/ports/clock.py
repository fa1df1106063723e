"""Port interface for reading the current time.

Token expiry and report windows are computed against this port so that
boundaries can be exercised deterministically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime


@runtime_checkable
class ClockPort(Protocol):
    """Port returning the current timezone-aware UTC instant."""

    def now(self) -> datetime:
        """Return the current time as an aware ``datetime`` in UTC."""
        ...
