"""
Payment ledger – append-only partial payments per booking.

A payment is never edited.  Its ``complete`` flag records whether the
booking was fully paid *as of that payment* and is not revisited when
later payments arrive.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID, uuid4

import aiosqlite

from courtbook import db
from courtbook.errors import InvalidInput, NotFound
from courtbook.models import Booking, Payment, PaymentLedger, PaymentStatus
from courtbook.services.clock import utc_now

logger = logging.getLogger(__name__)

DEPOSIT_REASON = "deposit"
DEPOSIT_NOTE = "Adelanto SINPE confirmado"


# ── Pure helpers ──────────────────────────────────────────────────────────


def totals(payments: Iterable[Payment]) -> tuple[int, int, int]:
    """(paid, sinpe, cash) over *payments*."""
    sinpe = cash = 0
    for p in payments:
        sinpe += p.sinpe
        cash += p.cash
    return sinpe + cash, sinpe, cash


def status_for(price: int, paid: int) -> PaymentStatus:
    if paid >= price:
        return PaymentStatus.COMPLETE
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def outstanding_for(price: int, paid: int) -> int:
    return max(0, price - paid)


# ── Writes ────────────────────────────────────────────────────────────────


async def add_payment(
    conn: aiosqlite.Connection,
    booking: Booking,
    *,
    sinpe: int,
    cash: int,
    note: str | None = None,
    created_by: str | None = None,
    receipt_ref: str | None = None,
    reason: str | None = None,
    idempotency_key: str | None = None,
) -> Payment:
    """Append a payment inside an open transaction."""
    earlier = await db.list_payments([booking.id], conn)
    paid, _, _ = totals(earlier)
    payment = Payment(
        id=uuid4(),
        booking_id=booking.id,
        sinpe=sinpe,
        cash=cash,
        note=note,
        complete=paid + sinpe + cash >= booking.price,
        created_by=created_by,
        receipt_ref=receipt_ref,
        reason=reason,
        idempotency_key=idempotency_key,
        created_at=utc_now(),
    )
    await db.insert_payment(conn, payment)
    return payment


async def record_payment(
    booking_id: UUID,
    *,
    sinpe: int = 0,
    cash: int = 0,
    note: str | None = None,
    receipt_ref: str | None = None,
    idempotency_key: str | None = None,
    created_by: str | None = None,
) -> Payment:
    """
    Record a SINPE and/or cash payment against a booking.

    A repeated *idempotency_key* returns the payment stored the first time
    instead of recording a second one.
    """
    if sinpe < 0 or cash < 0:
        raise InvalidInput("Payment amounts cannot be negative", sinpe=sinpe, cash=cash)
    if sinpe + cash == 0:
        raise InvalidInput("A payment must be greater than zero")

    async with db.transaction() as conn:
        if idempotency_key:
            existing = await db.get_payment_by_key(idempotency_key, conn)
            if existing is not None:
                if existing.booking_id != booking_id:
                    raise InvalidInput(
                        "Idempotency key already used for another booking",
                        idempotency_key=idempotency_key,
                    )
                logger.info("Repeated payment submission %s ignored", idempotency_key)
                return existing

        booking = await db.get_booking(booking_id, conn)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found", booking_id=str(booking_id))

        payment = await add_payment(
            conn,
            booking,
            sinpe=sinpe,
            cash=cash,
            note=note,
            created_by=created_by,
            receipt_ref=receipt_ref,
            idempotency_key=idempotency_key,
        )

    logger.info(
        "Payment %s on booking %s: sinpe=%d cash=%d complete=%s",
        payment.id,
        booking_id,
        sinpe,
        cash,
        payment.complete,
    )
    return payment


async def set_checked(booking_id: UUID, checked: bool) -> Booking:
    """Mark a booking's funds as physically accounted for (or not)."""
    async with db.transaction() as conn:
        updated = await db.set_booking_fields(conn, booking_id, checked=checked)
        if not updated:
            raise NotFound(f"Booking {booking_id} not found", booking_id=str(booking_id))
        booking = await db.get_booking(booking_id, conn)
    assert booking is not None
    return booking


# ── Reads ─────────────────────────────────────────────────────────────────


async def _load(booking_id: UUID) -> tuple[Booking, list[Payment]]:
    booking = await db.get_booking(booking_id)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found", booking_id=str(booking_id))
    return booking, await db.list_payments([booking_id])


async def outstanding_balance(booking_id: UUID) -> int:
    booking, payments = await _load(booking_id)
    return outstanding_for(booking.price, totals(payments)[0])


async def is_fully_paid(booking_id: UUID) -> bool:
    booking, payments = await _load(booking_id)
    return totals(payments)[0] >= booking.price


async def payment_status(booking_id: UUID) -> PaymentStatus:
    booking, payments = await _load(booking_id)
    return status_for(booking.price, totals(payments)[0])


async def ledger(booking_id: UUID) -> PaymentLedger:
    booking, payments = await _load(booking_id)
    paid, sinpe, cash = totals(payments)
    return PaymentLedger(
        booking_id=booking.id,
        price=booking.price,
        paid=paid,
        sinpe=sinpe,
        cash=cash,
        outstanding=outstanding_for(booking.price, paid),
        status=status_for(booking.price, paid),
        checked=booking.checked,
        payments=payments,
    )


async def statuses(bookings: list[Booking]) -> dict[UUID, PaymentStatus]:
    """Payment status of each booking, in one query."""
    by_booking: dict[UUID, list[Payment]] = {b.id: [] for b in bookings}
    for payment in await db.list_payments(by_booking):
        by_booking[payment.booking_id].append(payment)
    return {b.id: status_for(b.price, totals(by_booking[b.id])[0]) for b in bookings}
