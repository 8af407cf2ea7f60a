"""Tests for the booking lifecycle: create, edit, cancel, deposits, listings and recurring series."""

from datetime import date, datetime, timedelta

import pytest

from courtbook.errors import InvalidDate, InvalidInput, NotFound, SlotConflict
from courtbook.models import BookingUpdate, DepositState, PaymentStatus, RecurringCreate, Site
from courtbook.services import bookings, notifications, payments
from tests.mocks.models import (
    FIXED_NOW,
    GUADALUPE_A,
    GUADALUPE_B,
    GUADALUPE_TIERED,
    SABANA_5,
    SABANA_7,
    TODAY,
    TOMORROW,
    YESTERDAY,
    _uuid,
    make_booking_request,
)
from tests.mocks.services import FailingNotificationSink


# ── Create ────────────────────────────────────────────────────────────────


class TestCreateBooking:
    async def test_sabana_booking_waits_for_deposit(self, booking_db, sink):
        view = await bookings.create_booking(make_booking_request())

        assert view.court_id == SABANA_5
        assert view.slot_start == datetime(2026, 3, 11, 18)
        assert view.slot_end == datetime(2026, 3, 11, 19)
        assert view.price == 23000
        assert view.player_count == 5
        assert view.deposit_state == DepositState.PENDING_PROOF
        assert view.deposit_amount == 11500
        assert view.deposit_deadline == view.created_at + timedelta(hours=2)
        assert view.deposit_expired is False
        assert view.site == Site.SABANA

        stored = await bookings.get_booking(view.id)
        assert stored.model_dump() == view.model_dump()

    async def test_guadalupe_booking_needs_no_deposit(self, booking_db):
        view = await bookings.create_booking(
            make_booking_request(court_id=GUADALUPE_TIERED, hour=20, player_count=9, referee=True)
        )
        assert view.deposit_state == DepositState.NO_DEPOSIT_REQUIRED
        assert view.deposit_amount is None
        assert view.price == 55000
        assert view.referee is True

    async def test_referee_is_dropped_where_not_offered(self, booking_db):
        view = await bookings.create_booking(make_booking_request(referee=True))
        assert view.referee is False
        assert view.price == 23000

    async def test_confirmation_is_sent(self, booking_db, sink):
        view = await bookings.create_booking(make_booking_request())
        assert len(sink.sent) == 1
        payload = sink.sent[0]
        assert payload.booking_id == view.id
        assert payload.email == "ana@example.com"
        assert payload.player_count == 10
        assert payload.booking_url.endswith(f"/bookings/{view.id}")

    async def test_no_email_means_no_confirmation(self, booking_db, sink):
        await bookings.create_booking(make_booking_request(email=None))
        assert sink.sent == []

    async def test_failed_confirmation_keeps_the_booking(self, booking_db, monkeypatch):
        failing = FailingNotificationSink()
        monkeypatch.setattr(notifications, "_sink", failing)

        view = await bookings.create_booking(make_booking_request())

        assert failing.attempts == 1
        assert (await bookings.get_booking(view.id)).id == view.id

    async def test_contact_is_required(self, booking_db):
        with pytest.raises(InvalidInput, match="name"):
            await bookings.create_booking(make_booking_request(customer_name="  "))
        with pytest.raises(InvalidInput, match="phone number or an email"):
            await bookings.create_booking(make_booking_request(phone=None, email=None))

    async def test_phone_alone_is_enough(self, booking_db):
        view = await bookings.create_booking(make_booking_request(email=None))
        assert view.phone == "8888-1111"

    async def test_double_booking_is_rejected(self, booking_db, sink):
        await bookings.create_booking(make_booking_request())
        with pytest.raises(SlotConflict):
            await bookings.create_booking(make_booking_request(customer_name="Luis"))
        assert len(sink.sent) == 1

    async def test_past_day_and_started_hour(self, booking_db):
        with pytest.raises(InvalidDate):
            await bookings.create_booking(make_booking_request(day=YESTERDAY))
        with pytest.raises(InvalidDate):
            await bookings.create_booking(make_booking_request(day=TODAY, hour=14))

    async def test_later_today_is_fine(self, booking_db):
        view = await bookings.create_booking(make_booking_request(day=TODAY, hour=15))
        assert view.slot_start == datetime(2026, 3, 10, 15)

    async def test_unknown_court(self, booking_db):
        with pytest.raises(NotFound):
            await bookings.create_booking(make_booking_request(court_id=42))

    async def test_tiered_court_needs_player_count(self, booking_db):
        with pytest.raises(InvalidInput):
            await bookings.create_booking(make_booking_request(court_id=GUADALUPE_TIERED, hour=20))


# ── Edit ──────────────────────────────────────────────────────────────────


class TestUpdateBooking:
    async def test_move_to_another_court_reprices(self, booking_db):
        view = await bookings.create_booking(make_booking_request())

        moved = await bookings.update_booking(view.id, BookingUpdate(court_id=SABANA_7, hour=19))

        assert moved.court_id == SABANA_7
        assert moved.slot_start == datetime(2026, 3, 11, 19)
        assert moved.player_count == 7
        assert moved.price == 35000

    async def test_old_slot_is_freed_after_a_move(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        await bookings.update_booking(view.id, BookingUpdate(hour=19))

        again = await bookings.create_booking(make_booking_request(customer_name="Luis"))
        assert again.slot_start == datetime(2026, 3, 11, 18)

    async def test_move_into_taken_slot_is_rejected(self, booking_db):
        first = await bookings.create_booking(make_booking_request(hour=18))
        second = await bookings.create_booking(make_booking_request(hour=19))

        with pytest.raises(SlotConflict):
            await bookings.update_booking(second.id, BookingUpdate(hour=18))

        unchanged = await bookings.get_booking(second.id)
        assert unchanged.slot_start == datetime(2026, 3, 11, 19)
        assert (await bookings.get_booking(first.id)).slot_start == datetime(2026, 3, 11, 18)

    async def test_move_within_linked_group_ignores_itself(self, booking_db):
        view = await bookings.create_booking(make_booking_request(court_id=GUADALUPE_A, hour=20))
        moved = await bookings.update_booking(view.id, BookingUpdate(court_id=GUADALUPE_B))
        assert moved.court_id == GUADALUPE_B
        assert moved.slot_start == view.slot_start

    async def test_move_to_other_site_resets_deposit(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        moved = await bookings.update_booking(view.id, BookingUpdate(court_id=GUADALUPE_B, hour=20))
        assert moved.deposit_state == DepositState.NO_DEPOSIT_REQUIRED
        assert moved.price == 30000
        assert moved.player_count == 6

    async def test_explicit_price_wins(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        edited = await bookings.update_booking(view.id, BookingUpdate(court_id=SABANA_7, price=30000))
        assert edited.price == 30000

    async def test_contact_edit_keeps_the_slot(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        edited = await bookings.update_booking(view.id, BookingUpdate(customer_name="Ana María Rojas"))
        assert edited.customer_name == "Ana María Rojas"
        assert edited.slot_start == view.slot_start
        assert edited.price == view.price

    async def test_clearing_both_contacts_is_rejected(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        with pytest.raises(InvalidInput):
            await bookings.update_booking(view.id, BookingUpdate(phone=None, email=None))

    async def test_tier_change_reprices(self, booking_db):
        view = await bookings.create_booking(
            make_booking_request(court_id=GUADALUPE_TIERED, hour=20, player_count=7)
        )
        edited = await bookings.update_booking(view.id, BookingUpdate(player_count=8))
        assert edited.price == 45000

    async def test_resending_the_same_slot_after_it_started(self, booking_db, fixed_clock):
        view = await bookings.create_booking(make_booking_request(day=TODAY, hour=16))
        fixed_clock.set(FIXED_NOW.replace(hour=17, minute=30))

        edited = await bookings.update_booking(
            view.id, BookingUpdate(day=TODAY, hour=16, phone="7777-0000")
        )
        assert edited.phone == "7777-0000"
        assert edited.slot_start == datetime(2026, 3, 10, 16)

    async def test_moving_into_a_started_hour_is_still_rejected(self, booking_db, fixed_clock):
        view = await bookings.create_booking(make_booking_request(day=TODAY, hour=18))
        fixed_clock.set(FIXED_NOW.replace(hour=17, minute=30))

        with pytest.raises(InvalidDate, match="already started"):
            await bookings.update_booking(view.id, BookingUpdate(day=TODAY, hour=16))

    async def test_missing_booking(self, booking_db):
        with pytest.raises(NotFound):
            await bookings.update_booking(_uuid("missing"), BookingUpdate(hour=19))


# ── Cancel ────────────────────────────────────────────────────────────────


class TestCancelBooking:
    async def test_cancel_frees_the_slot(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        await bookings.cancel_booking(view.id)

        with pytest.raises(NotFound):
            await bookings.get_booking(view.id)
        again = await bookings.create_booking(make_booking_request())
        assert again.slot_start == view.slot_start

    async def test_cancel_with_payments_is_refused(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        await payments.record_payment(view.id, cash=5000)

        with pytest.raises(InvalidInput, match="payments"):
            await bookings.cancel_booking(view.id)
        assert (await bookings.get_booking(view.id)).id == view.id

    async def test_cancel_missing(self, booking_db):
        with pytest.raises(NotFound):
            await bookings.cancel_booking(_uuid("missing"))


# ── Deposits ──────────────────────────────────────────────────────────────


class TestDeposits:
    async def test_deposit_expires_without_proof(self, booking_db, fixed_clock):
        view = await bookings.create_booking(make_booking_request())

        fixed_clock.set(FIXED_NOW + timedelta(hours=3))
        assert (await bookings.get_booking(view.id)).deposit_expired is True

    async def test_proof_stops_the_expiry(self, booking_db, fixed_clock):
        view = await bookings.create_booking(make_booking_request())
        attached = await bookings.attach_proof(view.id, "sinpe-123.jpg")
        assert attached.proof_ref == "sinpe-123.jpg"

        fixed_clock.set(FIXED_NOW + timedelta(hours=3))
        assert (await bookings.get_booking(view.id)).deposit_expired is False

    async def test_summary_shows_the_deposit_deadline(self, booking_db, fixed_clock):
        view = await bookings.create_booking(make_booking_request())

        summary = await bookings.booking_summary(view.id)
        assert summary.customer == "Ana"
        assert summary.deposit_amount == 11500
        assert summary.deposit_deadline == view.created_at + timedelta(hours=2)
        assert summary.deposit_expired is False

        fixed_clock.set(FIXED_NOW + timedelta(hours=3))
        assert (await bookings.booking_summary(view.id)).deposit_expired is True

    async def test_proof_where_no_deposit_is_taken(self, booking_db):
        view = await bookings.create_booking(make_booking_request(court_id=GUADALUPE_A, hour=20))
        with pytest.raises(InvalidInput):
            await bookings.attach_proof(view.id, "receipt.png")

    async def test_confirm_records_one_deposit_payment(self, booking_db):
        view = await bookings.create_booking(make_booking_request())

        confirmed, payment = await bookings.confirm_deposit(view.id, "caja@courtbook.example.com")
        assert confirmed.deposit_state == DepositState.CONFIRMED
        assert confirmed.confirmed_by == "caja@courtbook.example.com"
        assert payment.sinpe == 11500
        assert payment.cash == 0
        assert payment.reason == payments.DEPOSIT_REASON
        assert payment.complete is False

        again, same = await bookings.confirm_deposit(view.id, "otra@courtbook.example.com")
        assert same.id == payment.id
        assert again.confirmed_by == "caja@courtbook.example.com"

        ledger = await payments.ledger(view.id)
        assert len(ledger.payments) == 1
        assert ledger.outstanding == 11500
        assert ledger.status == PaymentStatus.PARTIAL

    async def test_confirmed_deposit_never_expires(self, booking_db, fixed_clock):
        view = await bookings.create_booking(make_booking_request())
        await bookings.confirm_deposit(view.id, "caja")
        fixed_clock.set(FIXED_NOW + timedelta(hours=5))
        assert (await bookings.get_booking(view.id)).deposit_expired is False

    async def test_confirm_where_no_deposit_is_taken(self, booking_db):
        view = await bookings.create_booking(make_booking_request(court_id=GUADALUPE_A, hour=20))
        with pytest.raises(InvalidInput):
            await bookings.confirm_deposit(view.id, "caja")


# ── Listings ──────────────────────────────────────────────────────────────


class TestListings:
    async def test_filters(self, booking_db):
        a = await bookings.create_booking(make_booking_request(hour=18))
        b = await bookings.create_booking(make_booking_request(court_id=GUADALUPE_A, hour=20))
        c = await bookings.create_booking(make_booking_request(day=TOMORROW + timedelta(days=1)))
        await payments.record_payment(a.id, sinpe=23000)

        all_ids = [v.id for v in await bookings.list_bookings()]
        assert all_ids == [a.id, b.id, c.id]

        assert [v.id for v in await bookings.list_bookings(site=Site.GUADALUPE)] == [b.id]
        assert [v.id for v in await bookings.list_bookings(court_id=SABANA_5)] == [a.id, c.id]
        assert [v.id for v in await bookings.list_bookings(date_to=TOMORROW)] == [a.id, b.id]
        complete = await bookings.list_bookings(status=PaymentStatus.COMPLETE)
        assert [v.id for v in complete] == [a.id]
        unpaid = await bookings.list_bookings(status=PaymentStatus.UNPAID)
        assert [v.id for v in unpaid] == [b.id, c.id]

    async def test_today_board_shows_first_names_only(self, booking_db):
        await bookings.create_booking(make_booking_request(day=TODAY, hour=18))
        await bookings.create_booking(
            make_booking_request(day=TODAY, court_id=GUADALUPE_A, hour=20, customer_name="Pedro Solís")
        )
        await bookings.create_booking(make_booking_request(day=TOMORROW, hour=18))

        board = await bookings.today_board()
        assert [(e.court_id, e.customer) for e in board] == [(SABANA_5, "Ana"), (GUADALUPE_A, "Pedro")]
        assert [e.customer for e in await bookings.today_board(Site.GUADALUPE)] == ["Pedro"]


# ── Recurring ─────────────────────────────────────────────────────────────


def _weekly(**overrides) -> RecurringCreate:
    data = {
        "court_id": SABANA_5,
        "weekday": 4,
        "hour": 20,
        "customer_name": "Liga Jueves",
        "phone": "8888-4444",
    }
    data.update(overrides)
    return RecurringCreate(**data)


class TestRecurring:
    def test_next_occurrences(self):
        assert bookings.next_occurrences(4, TODAY) == [
            date(2026, 3, 12),
            date(2026, 3, 19),
            date(2026, 3, 26),
            date(2026, 4, 2),
        ]
        assert bookings.next_occurrences(2, TODAY, 2) == [TODAY, date(2026, 3, 17)]

    async def test_series_books_the_next_four_weeks(self, booking_db, sink):
        result = await bookings.create_recurring(_weekly())

        assert [b.slot_start for b in result.created] == [
            datetime(2026, 3, 12, 20),
            datetime(2026, 3, 19, 20),
            datetime(2026, 3, 26, 20),
            datetime(2026, 4, 2, 20),
        ]
        assert result.skipped == []
        assert all(b.recurring_id == result.recurring.id for b in result.created)
        assert result.recurring.price == 23000
        assert sink.sent == []

    async def test_taken_dates_are_skipped(self, booking_db):
        taken = await bookings.create_booking(make_booking_request(day=date(2026, 3, 19), hour=20))

        result = await bookings.create_recurring(_weekly())

        assert len(result.created) == 3
        assert [s.day for s in result.skipped] == [date(2026, 3, 19)]
        assert (await bookings.get_booking(taken.id)).recurring_id is None

    async def test_started_hour_today_is_skipped(self, booking_db):
        result = await bookings.create_recurring(_weekly(weekday=2, hour=10))
        assert [s.day for s in result.skipped] == [TODAY]
        assert len(result.created) == 3

    async def test_delete_keeps_paid_bookings(self, booking_db):
        result = await bookings.create_recurring(_weekly())
        paid = result.created[0]
        await payments.record_payment(paid.id, cash=23000)

        deleted, kept = await bookings.delete_recurring(result.recurring.id)

        assert (deleted, kept) == (3, 1)
        survivor = await bookings.get_booking(paid.id)
        assert survivor.recurring_id is None
        assert await bookings.list_recurring() == []
        for booking in result.created[1:]:
            with pytest.raises(NotFound):
                await bookings.get_booking(booking.id)

    async def test_delete_missing_series(self, booking_db):
        with pytest.raises(NotFound):
            await bookings.delete_recurring(_uuid("missing-series"))
