"""Tests for closing reconciliation and stored closings."""

from datetime import date, datetime, timezone

import pytest

from courtbook.errors import InvalidInput, NotFound, UpstreamFailure
from courtbook.models import Payment, PaymentStatus
from courtbook.services import bookings, closing, payments
from tests.mocks.models import (
    GUADALUPE_A,
    SABANA_5,
    SABANA_7,
    TOMORROW,
    _uuid,
    make_booking,
    make_booking_request,
)

DAY1 = date(2026, 3, 11)
DAY2 = date(2026, 3, 12)
COURT_NAMES = {SABANA_5: "Cancha 2", SABANA_7: "Cancha 4"}


def _payment(booking_id, sinpe=0, cash=0, name="p"):
    return Payment(
        id=_uuid(name),
        booking_id=booking_id,
        sinpe=sinpe,
        cash=cash,
        complete=False,
        created_at=datetime(2026, 3, 10, 20, tzinfo=timezone.utc),
    )


class TestBuildSnapshot:
    def test_totals_and_problems(self):
        paid_checked = make_booking(name="a", checked=True)
        partial = make_booking(name="b", slot_start=datetime(2026, 3, 11, 19))
        paid_unchecked = make_booking(
            name="c", court_id=SABANA_7, price=35000, slot_start=datetime(2026, 3, 12, 18)
        )
        pays = [
            _payment(paid_checked.id, sinpe=11500, name="p1"),
            _payment(paid_checked.id, cash=11500, name="p2"),
            _payment(partial.id, cash=10000, name="p3"),
            _payment(paid_unchecked.id, sinpe=35000, name="p4"),
        ]

        snap = closing.build_snapshot(
            [DAY2, DAY1], [paid_checked, partial, paid_unchecked], pays, COURT_NAMES
        )

        assert snap.dates == [DAY1, DAY2]
        assert snap.totals.booking_count == 3
        assert snap.totals.expected == 23000 + 23000 + 35000
        assert snap.totals.paid == 23000 + 10000 + 35000
        assert snap.totals.sinpe == 11500 + 35000
        assert snap.totals.cash == 11500 + 10000
        assert snap.totals.shortfall == 13000
        assert snap.totals.problem_count == 2

        day1 = snap.days[0]
        assert day1.day == DAY1
        assert day1.count == 2
        assert day1.shortfall == 13000
        assert [ct.court_id for ct in day1.courts] == [SABANA_5]
        assert [ln.status for ln in day1.courts[0].lines] == [
            PaymentStatus.COMPLETE,
            PaymentStatus.PARTIAL,
        ]

        problem_ids = [ln.booking_id for d in snap.problems for ct in d.courts for ln in ct.lines]
        assert problem_ids == [partial.id, paid_unchecked.id]

    def test_empty_days_are_kept_in_detail_only(self):
        booking = make_booking(checked=True)
        snap = closing.build_snapshot(
            [DAY1, DAY2], [booking], [_payment(booking.id, cash=23000)], COURT_NAMES
        )
        assert [d.day for d in snap.days] == [DAY1, DAY2]
        assert snap.days[1].count == 0
        assert snap.problems == []

    def test_bookings_outside_dates_are_ignored(self):
        inside = make_booking(name="in")
        outside = make_booking(name="out", slot_start=datetime(2026, 3, 13, 18))
        snap = closing.build_snapshot([DAY1], [inside, outside], [], COURT_NAMES)
        assert snap.totals.booking_count == 1

    def test_no_dates(self):
        with pytest.raises(InvalidInput):
            closing.build_snapshot([], [], [], COURT_NAMES)


class TestStoredClosings:
    async def test_generate_stores_document_and_snapshot(self, booking_db, document_sink):
        view = await bookings.create_booking(make_booking_request())
        await payments.record_payment(view.id, sinpe=20000)

        report = await closing.generate_closing([TOMORROW], "Cierre miércoles", "caja")

        assert report.start_date == report.end_date == TOMORROW
        assert report.snapshot.totals.expected == 23000
        assert report.snapshot.totals.shortfall == 3000
        assert report.snapshot.totals.problem_count == 1
        assert report.created_by == "caja"

        content, content_type = document_sink.documents[report.document_url]
        assert content_type == "text/html"
        html = content.decode("utf-8")
        assert "Ana Rojas" in html
        assert "Cierre miércoles" in html

        stored = await closing.get_closing(report.id)
        assert stored.snapshot == report.snapshot
        assert [c.id for c in await closing.list_closings()] == [report.id]

    async def test_later_payments_do_not_change_a_closing(self, booking_db):
        view = await bookings.create_booking(make_booking_request())
        report = await closing.generate_closing([TOMORROW], None, "caja")

        await payments.record_payment(view.id, cash=23000)

        stored = await closing.get_closing(report.id)
        assert stored.snapshot.totals.paid == 0
        assert stored.snapshot.totals.shortfall == 23000

    async def test_wrap_hour_counts_on_its_calendar_date(self, booking_db):
        await bookings.create_booking(make_booking_request(court_id=GUADALUPE_A, hour=1))
        report = await closing.generate_closing([TOMORROW], None, "caja")
        assert report.snapshot.totals.booking_count == 0
        later = await closing.generate_closing([DAY2], None, "caja")
        assert later.snapshot.totals.booking_count == 1

    async def test_storage_failure(self, booking_db, document_sink):
        document_sink.fail_next = True
        with pytest.raises(UpstreamFailure):
            await closing.generate_closing([TOMORROW], None, "caja")
        assert await closing.list_closings() == []

    async def test_delete_removes_record_and_document(self, booking_db, document_sink):
        report = await closing.generate_closing([TOMORROW], None, "caja")
        await closing.delete_closing(report.id)

        assert document_sink.documents == {}
        with pytest.raises(NotFound):
            await closing.get_closing(report.id)

    async def test_generate_without_dates(self, booking_db):
        with pytest.raises(InvalidInput):
            await closing.generate_closing([], None, "caja")
