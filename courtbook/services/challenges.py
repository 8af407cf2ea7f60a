"""
Challenge matching – a team posts an open challenge, a second team takes
it, and the match becomes an ordinary booking.

Matching writes the booking, its slot claim and the closed listing in a
single transaction, so readers see either an open listing and no booking
or a closed listing and its booking.
"""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID, uuid4

import aiosqlite

from courtbook import db
from courtbook.errors import InvalidInput, NotFound
from courtbook.models import (
    PLAYER_TIERS,
    ChallengeCreate,
    ChallengeListing,
    ChallengeMatch,
    ChallengeMatchResult,
    ChallengeStatus,
    ChallengeView,
    Court,
    Site,
)
from courtbook.services import availability, bookings, conflicts, notifications, pricing
from courtbook.services.clock import local_today, utc_now
from courtbook.services.registry import registry

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidInput(f"{field} is required", field=field)
    return value


def team_sizes(site: Site) -> set[int]:
    """Players-per-team values some court at *site* can host."""
    sizes: set[int] = set()
    for court in registry.list_courts(site):
        if court.is_tiered:
            sizes.update(PLAYER_TIERS)
        elif court.players is not None:
            sizes.add(court.players)
    return sizes


def _court_at_site(court_id: int, site: Site) -> Court:
    court = registry.get_court(court_id)
    if court.site != site:
        raise InvalidInput(
            f"{court.name} is not at {site}", court_id=court_id, site=site.value
        )
    return court


def challenge_view(listing: ChallengeListing) -> ChallengeView:
    team_price = None
    if listing.court_id is not None:
        court = registry.get_court(listing.court_id)
        team_price = pricing.team_price(court, listing.fut, listing.referee)
    return ChallengeView(
        **listing.model_dump(),
        status=ChallengeStatus.OPEN if listing.is_open else ChallengeStatus.CLOSED,
        team_price=team_price,
    )


async def _get(
    challenge_id: UUID, conn: aiosqlite.Connection | None = None
) -> ChallengeListing:
    listing = await db.get_challenge(challenge_id, conn)
    if listing is None:
        raise NotFound(f"Challenge {challenge_id} not found", challenge_id=str(challenge_id))
    return listing


# ── Create ────────────────────────────────────────────────────────────────


async def create_challenge(data: ChallengeCreate) -> ChallengeView:
    """
    Post an open challenge.  A wished court and hour are optional; when
    given they must be bookable right now, but they do not hold the slot.
    """
    contact = _require(data.team1_contact, "team1_contact")
    phone = _require(data.team1_phone, "team1_phone")
    if data.fut not in team_sizes(data.site):
        raise InvalidInput(
            f"No court at {data.site} hosts {data.fut} players per team",
            site=data.site.value,
            fut=data.fut,
        )

    slot_start = None
    if data.court_id is not None:
        court = _court_at_site(data.court_id, data.site)
        pricing.resolve_player_count(court, data.fut)
        if (data.day is None) != (data.hour is None):
            raise InvalidInput("Give both a day and an hour, or neither")
        if data.day is not None and data.hour is not None:
            slot_start = availability.resolve_hour(data.site, data.day, data.hour).start_on(
                data.day
            )
            await conflicts.ensure_available(court.id, slot_start, include_challenges=True)
    elif data.day is not None or data.hour is not None:
        raise InvalidInput("A wished day and hour need a court")

    listing = ChallengeListing(
        id=uuid4(),
        site=data.site,
        court_id=data.court_id,
        slot_start=slot_start,
        fut=data.fut,
        referee=pricing.referee_applies(data.site, data.referee),
        team1_name=data.team1_name,
        team1_contact=contact,
        team1_phone=phone,
        team1_email=data.team1_email,
        created_at=utc_now(),
    )
    async with db.transaction() as conn:
        await db.insert_challenge(conn, listing)

    logger.info("Challenge %s opened at %s (%d per team)", listing.id, listing.site, listing.fut)
    return challenge_view(listing)


# ── Match ─────────────────────────────────────────────────────────────────


async def match_challenge(challenge_id: UUID, data: ChallengeMatch) -> ChallengeMatchResult:
    """
    Accept an open challenge as team 2.

    Books the chosen court and hour in team 1's name at the full direct
    booking price, then closes the listing.  Both teams get a confirmation
    when they left an email.
    """
    listing = await _get(challenge_id)
    if not listing.is_open:
        raise InvalidInput("Challenge has already been matched", challenge_id=str(challenge_id))

    team2_contact = _require(data.team2_contact, "team2_contact")
    team2_phone = _require(data.team2_phone, "team2_phone")
    court = _court_at_site(data.court_id, listing.site)

    booking = bookings.prepare_booking(
        court,
        data.day,
        data.hour,
        customer_name=listing.team1_name or listing.team1_contact,
        phone=listing.team1_phone,
        email=listing.team1_email,
        player_count=data.fut,
        referee=data.referee,
    )
    await conflicts.ensure_available(
        court.id, booking.slot_start, include_challenges=True, exclude_challenge_id=challenge_id
    )

    async with db.transaction() as conn:
        current = await _get(challenge_id, conn)
        if not current.is_open:
            raise InvalidInput(
                "Challenge has already been matched", challenge_id=str(challenge_id)
            )
        await bookings.store_booking(
            conn, booking, include_challenges=True, exclude_challenge_id=challenge_id
        )
        closed = current.model_copy(
            update={
                "court_id": court.id,
                "slot_start": booking.slot_start,
                "fut": booking.player_count,
                "referee": booking.referee,
                "team2_name": data.team2_name,
                "team2_contact": team2_contact,
                "team2_phone": team2_phone,
                "team2_email": data.team2_email,
                "booking_id": booking.id,
            }
        )
        await db.update_challenge(conn, closed)

    logger.info(
        "Challenge %s matched: booking %s on court %s at %s",
        challenge_id,
        booking.id,
        court.id,
        booking.slot_start,
    )
    await notifications.dispatch(
        [
            notifications.build_payload(booking, court),
            notifications.build_payload(
                booking,
                court,
                customer_name=data.team2_name or team2_contact,
                phone=team2_phone,
                email=data.team2_email or "",
            ),
        ]
    )
    return ChallengeMatchResult(challenge=challenge_view(closed), booking=booking)


# ── Delete / read ─────────────────────────────────────────────────────────


async def delete_challenge(challenge_id: UUID) -> None:
    """Withdraw an open challenge. Matched challenges stay."""
    async with db.transaction() as conn:
        listing = await _get(challenge_id, conn)
        if not listing.is_open:
            raise InvalidInput(
                "A matched challenge cannot be deleted", challenge_id=str(challenge_id)
            )
        await db.delete_challenge(conn, challenge_id)
    logger.info("Challenge %s deleted", challenge_id)


async def get_challenge(challenge_id: UUID) -> ChallengeView:
    return challenge_view(await _get(challenge_id))


async def list_open(site: Site | None = None) -> list[ChallengeView]:
    return [challenge_view(c) for c in await db.list_challenges(is_open=True, site=site)]


async def list_upcoming(site: Site | None = None, since: date | None = None) -> list[ChallengeView]:
    """Matched challenges whose game is today or later."""
    listings = await db.list_challenges(
        is_open=False, site=site, date_from=since or local_today()
    )
    return [challenge_view(c) for c in listings]
