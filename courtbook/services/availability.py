"""
Availability engine – which hours of an operating day can still be booked.

Hours are counted from the start of the operating day, so a site that
closes after midnight yields hours above 23 (shown as 0, 1, ... of the
next calendar day).  Those wrap hours always stay on offer for "today":
they belong to tonight's operating window, not to a past hour.
"""

from __future__ import annotations

from datetime import date, datetime

from courtbook.errors import InvalidDate
from courtbook.models import AvailabilityHour, CourtAvailability, HourSlot, ScheduleConfig, Site
from courtbook.services import clock as clock_mod
from courtbook.services import conflicts
from courtbook.services.registry import registry


def operating_window(schedule: ScheduleConfig) -> list[HourSlot]:
    """Every hour in ``[opening, closing)``, with closing pushed past midnight if needed."""
    closing = schedule.closing_hour
    if schedule.wraps:
        closing += 24
    return [HourSlot.from_hour(h) for h in range(schedule.opening_hour, closing)]


def filter_window(window: list[HourSlot], day: date, now_day: date, now_hour: int) -> list[HourSlot]:
    """Drop hours that have already started when *day* is today."""
    if day < now_day:
        raise InvalidDate(f"{day.isoformat()} is in the past", day=day.isoformat())
    if day > now_day:
        return list(window)
    return [s for s in window if s.is_next_day or s.display_hour > now_hour]


def available_hours(site: Site, day: date) -> list[HourSlot]:
    """Bookable hours of *site* on operating day *day*, ignoring existing bookings."""
    now = clock_mod.get_clock().now()
    window = operating_window(registry.schedule(site))
    return filter_window(window, day, now.date(), now.hour)


def resolve_hour(site: Site, day: date, display_hour: int) -> HourSlot:
    """
    Map a display hour (0–23) to its entry in the site's window for *day*.

    Raises :class:`InvalidDate` when the hour is outside opening hours or
    has already started.
    """
    window = operating_window(registry.schedule(site))
    in_window = [s for s in window if s.display_hour == display_hour]
    if not in_window:
        raise InvalidDate(
            f"{display_hour:02d}:00 is outside opening hours at {site}",
            site=site.value,
            hour=display_hour,
        )
    remaining = available_hours(site, day)
    for slot in remaining:
        if slot.display_hour == display_hour:
            return slot
    raise InvalidDate(
        f"{day.isoformat()} {display_hour:02d}:00 has already started",
        day=day.isoformat(),
        hour=display_hour,
    )


async def court_availability(court_id: int, day: date) -> CourtAvailability:
    """The day's window for one court, each hour marked free or taken."""
    court = registry.get_court(court_id)
    slots = available_hours(court.site, day)
    taken: set[datetime] = set()
    for calendar_day in {s.start_on(day).date() for s in slots}:
        taken |= await conflicts.occupied_starts(
            court_id, calendar_day, include_challenges=True
        )
    hours = []
    for slot in slots:
        start = slot.start_on(day)
        hours.append(
            AvailabilityHour(
                display_hour=slot.display_hour,
                is_next_day=slot.is_next_day,
                slot_start=start,
                available=start not in taken,
            )
        )
    return CourtAvailability(
        court_id=court.id, court_name=court.name, site=court.site, day=day, hours=hours
    )
