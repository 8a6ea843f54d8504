"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def non_decreasing(clock: Clock) -> Clock:
    """Wrap ``clock`` so successive readings never go backwards."""
    last: datetime | None = None

    def _read() -> datetime:
        nonlocal last
        now = clock()
        if last is not None and now < last:
            now = last
        last = now
        return now

    return _read
