"""
Booking lifecycle: create, edit, cancel, deposit proof and confirmation,
the reconciled flag, listings, and weekly recurring series.

Every write admits its slot twice: once before the transaction, so the
caller gets a clear :class:`SlotConflict`, and again inside it, where the
``slot_claims`` constraint settles any race with a concurrent request.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import aiosqlite

from courtbook import db
from courtbook.config import DEPOSIT_WINDOW_HOURS, RECURRING_WEEKS
from courtbook.errors import InvalidDate, InvalidInput, NotFound
from courtbook.models import (
    SLOT_DURATION,
    Booking,
    BookingCreate,
    BookingSummary,
    BookingUpdate,
    BookingView,
    Court,
    DepositState,
    Payment,
    PaymentStatus,
    RecurringBooking,
    RecurringCreate,
    RecurringResult,
    Site,
    SkippedDate,
    TodayBoardEntry,
)
from courtbook.services import availability, conflicts, notifications, payments, pricing
from courtbook.services.clock import local_today, utc_now
from courtbook.services.registry import registry

logger = logging.getLogger(__name__)


# ── Helpers ───────────────────────────────────────────────────────────────


def _require_contact(customer_name: str | None, phone: str | None, email: str | None) -> str:
    name = (customer_name or "").strip()
    if not name:
        raise InvalidInput("Customer name is required")
    if not (phone or "").strip() and not email:
        raise InvalidInput("A phone number or an email is required", customer_name=name)
    return name


def _initial_deposit_state(site: Site) -> DepositState:
    if registry.policy(site).requires_deposit:
        return DepositState.PENDING_PROOF
    return DepositState.NO_DEPOSIT_REQUIRED


def operating_day(site: Site, slot_start: datetime) -> date:
    """The operating day a stored slot belongs to (wrap hours count for the day before)."""
    schedule = registry.schedule(site)
    if schedule.wraps and slot_start.hour < schedule.closing_hour:
        return slot_start.date() - timedelta(days=1)
    return slot_start.date()


def view(booking: Booking) -> BookingView:
    """Attach court details and the derived deposit fields."""
    court = registry.get_court(booking.court_id)
    deposit_amount = deadline = None
    expired = False
    if registry.policy(court.site).requires_deposit:
        deposit_amount = pricing.deposit_amount(booking.price)
        deadline = booking.created_at + timedelta(hours=DEPOSIT_WINDOW_HOURS)
        expired = (
            booking.deposit_state == DepositState.PENDING_PROOF
            and booking.proof_ref is None
            and utc_now() > deadline
        )
    return BookingView(
        **booking.model_dump(),
        court_name=court.name,
        site=court.site,
        deposit_amount=deposit_amount,
        deposit_deadline=deadline,
        deposit_expired=expired,
    )


async def store_booking(
    conn: aiosqlite.Connection,
    booking: Booking,
    *,
    include_challenges: bool = False,
    exclude_challenge_id: UUID | None = None,
) -> None:
    """Re-check and insert *booking* with its slot claim inside an open transaction."""
    await conflicts.ensure_available(
        booking.court_id,
        booking.slot_start,
        include_challenges=include_challenges,
        exclude_challenge_id=exclude_challenge_id,
        conn=conn,
    )
    try:
        await db.insert_booking(conn, booking, registry.pool_key(booking.court_id))
    except sqlite3.IntegrityError as exc:
        if "slot_claims" not in str(exc):
            raise
        raise conflicts.slot_conflict(booking.court_id, booking.slot_start) from exc


def prepare_booking(
    court: Court,
    day: date,
    hour: int,
    *,
    customer_name: str,
    phone: str | None,
    email: str | None,
    player_count: int | None,
    referee: bool,
    recurring_id: UUID | None = None,
) -> Booking:
    """Validate a request and build the booking it would create (nothing is stored)."""
    name = _require_contact(customer_name, phone, email)
    slot = availability.resolve_hour(court.site, day, hour)
    players = pricing.resolve_player_count(court, player_count)
    start = slot.start_on(day)
    return Booking(
        id=uuid4(),
        court_id=court.id,
        slot_start=start,
        slot_end=start + SLOT_DURATION,
        customer_name=name,
        phone=phone,
        email=email,
        price=pricing.booking_price(court, players, referee),
        referee=pricing.referee_applies(court.site, referee),
        player_count=players,
        deposit_state=_initial_deposit_state(court.site),
        recurring_id=recurring_id,
        created_at=utc_now(),
    )


async def _get(booking_id: UUID, conn: aiosqlite.Connection | None = None) -> Booking:
    booking = await db.get_booking(booking_id, conn)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found", booking_id=str(booking_id))
    return booking


# ══════════════════════════════════════════════════════════════════════════
#                    SINGLE BOOKINGS
# ══════════════════════════════════════════════════════════════════════════


async def create_booking(data: BookingCreate) -> BookingView:
    """Book one hour on one court and send the confirmation."""
    court = registry.get_court(data.court_id)
    booking = prepare_booking(
        court,
        data.day,
        data.hour,
        customer_name=data.customer_name,
        phone=data.phone,
        email=data.email,
        player_count=data.player_count,
        referee=data.referee,
    )
    await conflicts.ensure_available(court.id, booking.slot_start)

    async with db.transaction() as conn:
        await store_booking(conn, booking)

    logger.info(
        "Booking %s created: court %s at %s for %s (%d)",
        booking.id,
        court.id,
        booking.slot_start,
        booking.customer_name,
        booking.price,
    )
    await notifications.dispatch([notifications.build_payload(booking, court)])
    return view(booking)


async def get_booking(booking_id: UUID) -> BookingView:
    return view(await _get(booking_id))


async def booking_summary(booking_id: UUID) -> BookingSummary:
    """Customer-facing view: the slot, the price and where the deposit stands."""
    booking = await get_booking(booking_id)
    return BookingSummary(
        **booking.model_dump(
            include={
                "id",
                "court_id",
                "court_name",
                "site",
                "slot_start",
                "slot_end",
                "price",
                "referee",
                "player_count",
                "deposit_state",
                "deposit_amount",
                "deposit_deadline",
                "deposit_expired",
            }
        ),
        customer=booking.customer_name.split()[0],
        proof_attached=booking.proof_ref is not None,
    )


async def update_booking(booking_id: UUID, data: BookingUpdate) -> BookingView:
    """
    Apply an admin edit.  Only fields present in *data* change.

    Moving to another court or hour re-runs the availability checks with
    the booking itself excluded.  The price is recomputed when court,
    player count or referee change, unless a price is given explicitly.
    """
    current = await _get(booking_id)
    fields = data.model_fields_set
    old_court = registry.get_court(current.court_id)

    court = old_court
    if data.court_id is not None:
        court = registry.get_court(data.court_id)
    day = data.day or operating_day(old_court.site, current.slot_start)
    hour = data.hour if data.hour is not None else current.slot_start.hour

    updates: dict[str, Any] = {}
    if fields & {"customer_name", "phone", "email"}:
        phone = data.phone if "phone" in fields else current.phone
        email = data.email if "email" in fields else current.email
        updates["customer_name"] = _require_contact(
            data.customer_name if data.customer_name is not None else current.customer_name,
            phone,
            email,
        )
        updates["phone"] = phone
        updates["email"] = email
    if data.checked is not None:
        updates["checked"] = data.checked

    player_count = current.player_count
    if "player_count" in fields or court.id != old_court.id:
        requested = data.player_count if "player_count" in fields else None
        if requested is None and court.is_tiered:
            requested = current.player_count
        player_count = pricing.resolve_player_count(court, requested)
    referee = data.referee if "referee" in fields and data.referee is not None else current.referee
    updates["player_count"] = player_count
    updates["referee"] = pricing.referee_applies(court.site, referee)

    repriced = court.id != old_court.id or player_count != current.player_count or (
        updates["referee"] != current.referee
    )
    if "price" in fields and data.price is not None:
        updates["price"] = data.price
    elif repriced:
        updates["price"] = pricing.booking_price(court, player_count, referee)

    new_start = current.slot_start
    relocating = False
    if court.id != old_court.id or fields & {"day", "hour"}:
        window = availability.operating_window(registry.schedule(court.site))
        same_slot = court.id == old_court.id and any(
            s.display_hour == hour and s.start_on(day) == current.slot_start for s in window
        )
        if not same_slot:
            new_start = availability.resolve_hour(court.site, day, hour).start_on(day)
            relocating = court.id != old_court.id or new_start != current.slot_start

    if court.site != old_court.site:
        if current.deposit_state != DepositState.CONFIRMED:
            updates["deposit_state"] = _initial_deposit_state(court.site)

    updated = current.model_copy(
        update={
            **updates,
            "court_id": court.id,
            "slot_start": new_start,
            "slot_end": new_start + SLOT_DURATION,
        }
    )

    if relocating:
        await conflicts.ensure_available(court.id, new_start, exclude_booking_id=booking_id)

    async with db.transaction() as conn:
        if relocating:
            await conflicts.ensure_available(
                court.id, new_start, exclude_booking_id=booking_id, conn=conn
            )
            await db.release_claim(conn, booking_id)
            await db.update_booking(conn, updated)
            try:
                await db.claim_slot(conn, registry.pool_key(court.id), new_start, booking_id)
            except sqlite3.IntegrityError as exc:
                raise conflicts.slot_conflict(court.id, new_start) from exc
        else:
            await db.update_booking(conn, updated)

    if relocating:
        logger.info(
            "Booking %s moved from court %s %s to court %s %s",
            booking_id,
            current.court_id,
            current.slot_start,
            court.id,
            new_start,
        )
    else:
        logger.info("Booking %s updated (%s)", booking_id, ", ".join(sorted(fields)))
    return view(updated)


async def cancel_booking(booking_id: UUID) -> None:
    """Delete a booking and free its slot. Not allowed once money was received."""
    async with db.transaction() as conn:
        await _get(booking_id, conn)
        count = await db.count_payments(booking_id, conn)
        if count:
            raise InvalidInput(
                "Booking has payments recorded and cannot be cancelled",
                booking_id=str(booking_id),
                payments=count,
            )
        await db.delete_booking(conn, booking_id)
    logger.info("Booking %s cancelled", booking_id)


# ── Deposits ──────────────────────────────────────────────────────────────


async def attach_proof(booking_id: UUID, proof_ref: str) -> BookingView:
    """Store the reference of an uploaded deposit receipt."""
    async with db.transaction() as conn:
        booking = await _get(booking_id, conn)
        if booking.deposit_state == DepositState.NO_DEPOSIT_REQUIRED:
            raise InvalidInput(
                "This booking does not take a deposit", booking_id=str(booking_id)
            )
        await db.set_booking_fields(conn, booking_id, proof_ref=proof_ref)
    logger.info("Proof %s attached to booking %s", proof_ref, booking_id)
    return view(booking.model_copy(update={"proof_ref": proof_ref}))


async def confirm_deposit(booking_id: UUID, confirmed_by: str) -> tuple[BookingView, Payment]:
    """
    Mark the deposit as received and make sure exactly one deposit payment
    (half the price, rounded up, by SINPE) exists.  Safe to repeat.
    """
    async with db.transaction() as conn:
        booking = await _get(booking_id, conn)
        if booking.deposit_state == DepositState.NO_DEPOSIT_REQUIRED:
            raise InvalidInput(
                "This booking does not take a deposit", booking_id=str(booking_id)
            )
        if booking.deposit_state == DepositState.PENDING_PROOF:
            booking = booking.model_copy(
                update={"deposit_state": DepositState.CONFIRMED, "confirmed_by": confirmed_by}
            )
            await db.set_booking_fields(
                conn,
                booking_id,
                deposit_state=DepositState.CONFIRMED,
                confirmed_by=confirmed_by,
            )

        deposit = await db.get_payment_by_reason(booking_id, payments.DEPOSIT_REASON, conn)
        if deposit is None:
            deposit = await payments.add_payment(
                conn,
                booking,
                sinpe=pricing.deposit_amount(booking.price),
                cash=0,
                note=payments.DEPOSIT_NOTE,
                created_by=confirmed_by,
                reason=payments.DEPOSIT_REASON,
            )
            logger.info(
                "Deposit of %d recorded for booking %s by %s",
                deposit.amount,
                booking_id,
                confirmed_by,
            )
    return view(booking), deposit


# ── Listings ──────────────────────────────────────────────────────────────


async def list_bookings(
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    court_id: int | None = None,
    site: Site | None = None,
    status: PaymentStatus | None = None,
) -> list[BookingView]:
    """Bookings ordered by slot, filtered by calendar date range, court, site and payment status."""
    court_ids: list[int] | None = None
    if court_id is not None:
        registry.get_court(court_id)
        court_ids = [court_id]
    if site is not None:
        site_ids = [c.id for c in registry.list_courts(site)]
        court_ids = [c for c in court_ids if c in site_ids] if court_ids is not None else site_ids

    found = await db.list_bookings(date_from=date_from, date_to=date_to, court_ids=court_ids)
    if status is not None:
        by_status = await payments.statuses(found)
        found = [b for b in found if by_status[b.id] == status]
    return [view(b) for b in found]


async def today_board(site: Site | None = None) -> list[TodayBoardEntry]:
    """Public board of today's bookings. Only the customer's first name is shown."""
    today = local_today()
    entries = []
    for booking in await list_bookings(date_from=today, date_to=today, site=site):
        entries.append(
            TodayBoardEntry(
                court_id=booking.court_id,
                court_name=booking.court_name,
                site=booking.site,
                slot_start=booking.slot_start,
                customer=booking.customer_name.split()[0],
            )
        )
    return entries


# ══════════════════════════════════════════════════════════════════════════
#                    RECURRING SERIES
# ══════════════════════════════════════════════════════════════════════════


def next_occurrences(weekday: int, start: date, count: int = RECURRING_WEEKS) -> list[date]:
    """The next *count* dates falling on ISO *weekday*, starting at *start*."""
    first = start + timedelta(days=(weekday - start.isoweekday()) % 7)
    return [first + timedelta(weeks=i) for i in range(count)]


async def create_recurring(data: RecurringCreate) -> RecurringResult:
    """
    Set up a weekly booking and create its next occurrences.

    Each date is admitted on its own: dates that are taken or already past
    are reported as skipped instead of failing the whole series.
    """
    court = registry.get_court(data.court_id)
    name = _require_contact(data.customer_name, data.phone, data.email)
    players = pricing.resolve_player_count(court, data.player_count)
    recurring = RecurringBooking(
        id=uuid4(),
        court_id=court.id,
        weekday=data.weekday,
        hour=data.hour,
        customer_name=name,
        phone=data.phone,
        email=data.email,
        price=pricing.booking_price(court, players, data.referee),
        referee=pricing.referee_applies(court.site, data.referee),
        player_count=players,
        created_at=utc_now(),
    )

    candidates: list[Booking] = []
    skipped: list[SkippedDate] = []
    for day in next_occurrences(data.weekday, local_today()):
        try:
            candidates.append(
                prepare_booking(
                    court,
                    day,
                    data.hour,
                    customer_name=name,
                    phone=data.phone,
                    email=data.email,
                    player_count=players,
                    referee=data.referee,
                    recurring_id=recurring.id,
                )
            )
        except InvalidDate as exc:
            skipped.append(SkippedDate(day=day, reason=exc.message))

    created: list[Booking] = []
    async with db.transaction() as conn:
        await db.insert_recurring(conn, recurring)
        for booking in candidates:
            if not await conflicts.is_available(court.id, booking.slot_start, conn=conn):
                taken = conflicts.slot_conflict(court.id, booking.slot_start)
                skipped.append(
                    SkippedDate(
                        day=operating_day(court.site, booking.slot_start), reason=taken.message
                    )
                )
                continue
            await store_booking(conn, booking)
            created.append(booking)

    skipped.sort(key=lambda s: s.day)
    logger.info(
        "Recurring booking %s on court %s: %d created, %d skipped",
        recurring.id,
        court.id,
        len(created),
        len(skipped),
    )
    return RecurringResult(recurring=recurring, created=created, skipped=skipped)


async def list_recurring() -> list[RecurringBooking]:
    return await db.list_recurring()


async def delete_recurring(recurring_id: UUID) -> tuple[int, int]:
    """
    Remove a series.  Its unpaid bookings are deleted; bookings that
    already have payments are kept and detached from the series.

    Returns (deleted, kept).
    """
    if await db.get_recurring(recurring_id) is None:
        raise NotFound(f"Recurring booking {recurring_id} not found", recurring_id=str(recurring_id))

    deleted = kept = 0
    async with db.transaction() as conn:
        for booking in await db.list_bookings(recurring_id=recurring_id, conn=conn):
            if await db.count_payments(booking.id, conn):
                await db.set_booking_fields(conn, booking.id, recurring_id=None)
                kept += 1
            else:
                await db.delete_booking(conn, booking.id)
                deleted += 1
        await db.delete_recurring(conn, recurring_id)

    logger.info("Recurring booking %s removed: %d deleted, %d kept", recurring_id, deleted, kept)
    return deleted, kept
