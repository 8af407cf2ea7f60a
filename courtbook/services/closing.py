"""
Closing reconciliation.

A closing compares what a set of days should have brought in with what
was actually paid, lists every booking that is not fully paid or not yet
checked, renders that as a document and stores the figures for good.
Later payments never change a closing that was already generated.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from uuid import UUID, uuid4

from courtbook import db
from courtbook.errors import InvalidInput, NotFound, UpstreamFailure
from courtbook.models import (
    Booking,
    ClosingLine,
    ClosingReport,
    ClosingSnapshot,
    ClosingTotals,
    CourtTotals,
    DayTotals,
    Payment,
    PaymentStatus,
)
from courtbook.services import payments as ledger
from courtbook.services.clock import utc_now
from courtbook.services.documents import get_document_sink, render_closing
from courtbook.services.registry import registry

logger = logging.getLogger(__name__)


# ── Report builder ────────────────────────────────────────────────────────


def _line(booking: Booking, court_name: str, paid_by: list[Payment]) -> ClosingLine:
    paid, sinpe, cash = ledger.totals(paid_by)
    return ClosingLine(
        booking_id=booking.id,
        slot_start=booking.slot_start,
        court_id=booking.court_id,
        court_name=court_name,
        customer_name=booking.customer_name,
        price=booking.price,
        paid=paid,
        sinpe=sinpe,
        cash=cash,
        status=ledger.status_for(booking.price, paid),
        checked=booking.checked,
    )


def _is_problem(line: ClosingLine) -> bool:
    return line.status != PaymentStatus.COMPLETE or not line.checked


def _group(days: list[date], lines: list[ClosingLine], *, keep_empty: bool) -> list[DayTotals]:
    """Group lines by date, then by court, with subtotals at each level."""
    by_day: dict[date, dict[int, list[ClosingLine]]] = defaultdict(lambda: defaultdict(list))
    for line in lines:
        by_day[line.slot_start.date()][line.court_id].append(line)

    result = []
    for day in days:
        courts = by_day.get(day, {})
        if not courts and not keep_empty:
            continue
        court_totals = []
        for court_id in sorted(courts):
            court_lines = sorted(courts[court_id], key=lambda ln: ln.slot_start)
            court_totals.append(
                CourtTotals(
                    court_id=court_id,
                    court_name=court_lines[0].court_name,
                    count=len(court_lines),
                    expected=sum(ln.price for ln in court_lines),
                    paid=sum(ln.paid for ln in court_lines),
                    lines=court_lines,
                )
            )
        day_lines = [ln for ct in court_totals for ln in ct.lines]
        expected = sum(ln.price for ln in day_lines)
        paid = sum(ln.paid for ln in day_lines)
        result.append(
            DayTotals(
                day=day,
                count=len(day_lines),
                expected=expected,
                sinpe=sum(ln.sinpe for ln in day_lines),
                cash=sum(ln.cash for ln in day_lines),
                paid=paid,
                shortfall=expected - paid,
                courts=court_totals,
            )
        )
    return result


def build_snapshot(
    dates: Iterable[date],
    bookings: list[Booking],
    payments: list[Payment],
    court_names: dict[int, str],
) -> ClosingSnapshot:
    """Compute a closing from already-fetched bookings and payments."""
    days = sorted(set(dates))
    if not days:
        raise InvalidInput("A closing needs at least one date")
    wanted = set(days)

    paid_by: dict[UUID, list[Payment]] = defaultdict(list)
    for payment in payments:
        paid_by[payment.booking_id].append(payment)

    lines = [
        _line(b, court_names.get(b.court_id, f"Cancha {b.court_id}"), paid_by[b.id])
        for b in bookings
        if b.slot_start.date() in wanted
    ]
    problems = [ln for ln in lines if _is_problem(ln)]

    expected = sum(ln.price for ln in lines)
    paid = sum(ln.paid for ln in lines)
    return ClosingSnapshot(
        dates=days,
        totals=ClosingTotals(
            booking_count=len(lines),
            expected=expected,
            paid=paid,
            sinpe=sum(ln.sinpe for ln in lines),
            cash=sum(ln.cash for ln in lines),
            shortfall=expected - paid,
            problem_count=len(problems),
        ),
        days=_group(days, lines, keep_empty=True),
        problems=_group(days, problems, keep_empty=False),
    )


# ── Stored closings ───────────────────────────────────────────────────────


async def generate_closing(dates: list[date], note: str | None, created_by: str) -> ClosingReport:
    """Build, render, store and persist a closing for *dates*."""
    if not dates:
        raise InvalidInput("A closing needs at least one date")

    bookings = await db.list_bookings(dates=set(dates))
    payments = await db.list_payments(b.id for b in bookings)
    court_names = {c.id: c.name for c in registry.list_courts()}
    snapshot = build_snapshot(dates, bookings, payments, court_names)

    report = ClosingReport(
        id=uuid4(),
        start_date=snapshot.dates[0],
        end_date=snapshot.dates[-1],
        note=note,
        created_by=created_by,
        created_at=utc_now(),
        document_url="",
        snapshot=snapshot,
    )
    name = f"closing-{report.start_date}-{report.end_date}-{report.id.hex[:8]}.html"
    sink = get_document_sink()
    try:
        url = await sink.store(name, render_closing(report).encode("utf-8"), "text/html")
    except OSError as exc:
        raise UpstreamFailure("Could not store closing document", reason=str(exc)) from exc
    report = report.model_copy(update={"document_url": url})

    try:
        async with db.transaction() as conn:
            await db.insert_closing(conn, report)
    except Exception:
        logger.warning("Closing %s not saved, removing its document %s", report.id, url)
        await _remove_document(url)
        raise

    logger.info(
        "Closing %s generated by %s: %d bookings, expected=%d paid=%d problems=%d",
        report.id,
        created_by,
        snapshot.totals.booking_count,
        snapshot.totals.expected,
        snapshot.totals.paid,
        snapshot.totals.problem_count,
    )
    return report


async def _remove_document(url: str) -> None:
    try:
        await get_document_sink().remove(url)
    except (OSError, ValueError):
        logger.exception("Could not remove closing document %s", url)


async def list_closings() -> list[ClosingReport]:
    return await db.list_closings()


async def get_closing(closing_id: UUID) -> ClosingReport:
    report = await db.get_closing(closing_id)
    if report is None:
        raise NotFound(f"Closing {closing_id} not found", closing_id=str(closing_id))
    return report


async def delete_closing(closing_id: UUID) -> None:
    """Remove a closing record and, best-effort, its document."""
    report = await get_closing(closing_id)
    async with db.transaction() as conn:
        await db.delete_closing(conn, closing_id)
    await _remove_document(report.document_url)
    logger.info("Closing %s deleted", closing_id)
