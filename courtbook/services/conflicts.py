"""
Conflict resolver – is a slot already held anywhere in the court's slot pool?

An hour is held when a booking on any court of the pool starts at it, or,
for challenge flows, when a matched challenge listing does.  The check
runs once up front for a friendly error and again inside the write
transaction, where the ``slot_claims`` constraint has the final word.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID

import aiosqlite

from courtbook import db
from courtbook.errors import SlotConflict
from courtbook.services.registry import registry

logger = logging.getLogger(__name__)


async def occupied_starts(
    court_id: int,
    day: date,
    *,
    exclude_booking_id: UUID | None = None,
    include_challenges: bool = False,
    exclude_challenge_id: UUID | None = None,
    conn: aiosqlite.Connection | None = None,
) -> set[datetime]:
    """Slot starts on calendar date *day* held in the pool of *court_id*."""
    effective = registry.effective_court_ids(court_id)
    taken = set(
        await db.booked_starts(
            effective, day, exclude_booking_id=exclude_booking_id, conn=conn
        )
    )
    if include_challenges:
        taken |= set(
            await db.matched_challenge_starts(
                effective, day, exclude_challenge_id=exclude_challenge_id, conn=conn
            )
        )
    return taken


async def is_available(
    court_id: int,
    slot_start: datetime,
    *,
    exclude_booking_id: UUID | None = None,
    include_challenges: bool = False,
    exclude_challenge_id: UUID | None = None,
    conn: aiosqlite.Connection | None = None,
) -> bool:
    taken = await occupied_starts(
        court_id,
        slot_start.date(),
        exclude_booking_id=exclude_booking_id,
        include_challenges=include_challenges,
        exclude_challenge_id=exclude_challenge_id,
        conn=conn,
    )
    return slot_start not in taken


async def ensure_available(
    court_id: int,
    slot_start: datetime,
    *,
    exclude_booking_id: UUID | None = None,
    include_challenges: bool = False,
    exclude_challenge_id: UUID | None = None,
    conn: aiosqlite.Connection | None = None,
) -> None:
    """Raise :class:`SlotConflict` if the slot is taken in the court's pool."""
    if not await is_available(
        court_id,
        slot_start,
        exclude_booking_id=exclude_booking_id,
        include_challenges=include_challenges,
        exclude_challenge_id=exclude_challenge_id,
        conn=conn,
    ):
        raise slot_conflict(court_id, slot_start)


def slot_conflict(court_id: int, slot_start: datetime) -> SlotConflict:
    logger.info("Slot conflict on court %s at %s", court_id, slot_start)
    return SlotConflict(
        f"{slot_start:%Y-%m-%d %H:%M} is already taken",
        court_id=court_id,
        slot_start=slot_start.isoformat(),
        pool=registry.pool_key(court_id),
    )
