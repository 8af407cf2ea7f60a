"""
Clock abstraction.

Every "what time is it" question in the booking core goes through a
``Clock`` so that "today" and "current hour" are always answered in the
site's civil timezone, and so tests can pin the time.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Protocol
from zoneinfo import ZoneInfo

from courtbook.config import SITE_TIMEZONE


class Clock(Protocol):
    def now(self) -> datetime:
        """Current aware datetime in the site timezone."""
        ...


class SystemClock:
    """Wall clock in a fixed civil timezone."""

    def __init__(self, tz_name: str = SITE_TIMEZONE) -> None:
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """A clock that always returns the same instant. Can be moved by hand."""

    def __init__(self, instant: datetime, tz_name: str = SITE_TIMEZONE) -> None:
        self.tz = ZoneInfo(tz_name)
        self.set(instant)

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.tz)
        self._now = instant.astimezone(self.tz)

    def now(self) -> datetime:
        return self._now


def local_today() -> date:
    return get_clock().now().date()


def local_naive_now() -> datetime:
    """Site-local wall time without tzinfo, comparable with stored slot starts."""
    return get_clock().now().replace(tzinfo=None)


def utc_now() -> datetime:
    """Audit timestamp for ``created_at`` columns, taken from the active clock."""
    return get_clock().now().astimezone(timezone.utc)


# ── Process-wide clock ────────────────────────────────────────────────────
clock: Clock = SystemClock()


def get_clock() -> Clock:
    return clock


def set_clock(new_clock: Clock) -> None:
    global clock
    clock = new_clock
