"""
Injectable UTC clock.

Deadline checks, decay and finalization read time through `now()` so tests
can pin it with `set_clock`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime


def _system_now() -> datetime:
    return datetime.now(UTC)


_clock: Callable[[], datetime] = _system_now


def now() -> datetime:
    """Current timezone-aware UTC time from the active clock."""
    return _clock()


def set_clock(clock_fn: Callable[[], datetime]) -> None:
    """Replace the clock, e.g. `set_clock(lambda: fixed_deadline)`."""
    global _clock
    _clock = clock_fn


def reset_clock() -> None:
    """Go back to the system clock."""
    global _clock
    _clock = _system_now
