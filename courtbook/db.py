"""
SQLite database layer using aiosqlite.

Stores the court catalog, bookings, challenge listings, payments and
closings.  Tables are created automatically on first connect and the
default catalog is seeded into an empty database.

Two connections are kept open: a reader used for plain queries, and a
writer that is only reachable through :func:`transaction`.  Writers are
serialized on one lock, and every booking holds a row in ``slot_claims``
whose UNIQUE key makes a double booking of a slot pool impossible even
if two requests pass the availability check at the same time.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Iterable
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

import aiosqlite

from courtbook import catalog
from courtbook.config import DB_PATH
from courtbook.errors import UpstreamFailure
from courtbook.models import (
    Booking,
    ChallengeListing,
    ClosingReport,
    ClosingSnapshot,
    Court,
    LinkedGroup,
    Payment,
    RecurringBooking,
    ScheduleConfig,
    Site,
)

logger = logging.getLogger(__name__)

# ── Module-level connections ──────────────────────────────────────────────

_db: aiosqlite.Connection | None = None
_writer: aiosqlite.Connection | None = None
_write_lock: asyncio.Lock | None = None


async def _connect(path: Path) -> aiosqlite.Connection:
    conn = await aiosqlite.connect(str(path))
    conn.row_factory = aiosqlite.Row  # dict-like rows
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.execute("PRAGMA busy_timeout=5000")
    return conn


async def init_db() -> None:
    """Open the database, create tables and seed the default catalog."""
    global _db, _writer, _write_lock
    db_path = Path(DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    _writer = await _connect(db_path)
    await _writer.executescript(_SCHEMA)
    await _writer.commit()
    _write_lock = asyncio.Lock()

    async with transaction() as conn:
        await _seed_catalog(conn)

    _db = await _connect(db_path)
    logger.info("Database initialized at %s", db_path)


async def close_db() -> None:
    """Close both connections."""
    global _db, _writer, _write_lock
    for conn in (_db, _writer):
        if conn is not None:
            await conn.close()
    _db = _writer = None
    _write_lock = None
    logger.info("Database connection closed")


def get_db() -> aiosqlite.Connection:
    """Return the reader connection (must call init_db first)."""
    assert _db is not None, "Database not initialized, call init_db() first"
    return _db


@contextlib.asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """
    Run a block of writes as one unit on the writer connection.

    Only one transaction runs at a time.  The block commits when it exits
    normally and rolls back on any exception.  Constraint violations are
    re-raised untouched so callers can map them to domain errors; any
    other storage error becomes :class:`UpstreamFailure`.
    """
    assert _writer is not None and _write_lock is not None, (
        "Database not initialized, call init_db() first"
    )
    async with _write_lock:
        try:
            yield _writer
        except sqlite3.IntegrityError:
            await _writer.rollback()
            raise
        except sqlite3.Error as exc:
            await _writer.rollback()
            logger.exception("Transaction failed, rolled back")
            raise UpstreamFailure("Storage error", reason=str(exc)) from exc
        except BaseException:
            await _writer.rollback()
            raise
        else:
            await _writer.commit()


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS schedules (
    site            TEXT PRIMARY KEY,
    opening_hour    INTEGER NOT NULL,
    closing_hour    INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS linked_groups (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS courts (
    id              INTEGER PRIMARY KEY,
    name            TEXT NOT NULL,
    site            TEXT NOT NULL,
    players         INTEGER,
    price           INTEGER,
    tier_prices     TEXT,           -- JSON object, tiered courts only
    linked_group_id TEXT REFERENCES linked_groups(id)
);

CREATE TABLE IF NOT EXISTS recurring_bookings (
    id              TEXT PRIMARY KEY,
    court_id        INTEGER NOT NULL REFERENCES courts(id),
    weekday         INTEGER NOT NULL,
    hour            INTEGER NOT NULL,
    customer_name   TEXT NOT NULL,
    phone           TEXT,
    email           TEXT,
    price           INTEGER NOT NULL,
    referee         INTEGER NOT NULL DEFAULT 0,
    player_count    INTEGER NOT NULL,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS bookings (
    id              TEXT PRIMARY KEY,
    court_id        INTEGER NOT NULL REFERENCES courts(id),
    slot_start      TEXT NOT NULL,  -- site-local ISO datetime
    slot_end        TEXT NOT NULL,
    slot_date       TEXT NOT NULL,  -- calendar date of slot_start
    customer_name   TEXT NOT NULL,
    phone           TEXT,
    email           TEXT,
    price           INTEGER NOT NULL,
    referee         INTEGER NOT NULL DEFAULT 0,
    player_count    INTEGER NOT NULL,
    deposit_state   TEXT NOT NULL,
    confirmed_by    TEXT,
    proof_ref       TEXT,
    checked         INTEGER NOT NULL DEFAULT 0,
    recurring_id    TEXT REFERENCES recurring_bookings(id) ON DELETE SET NULL,
    created_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_bookings_date ON bookings(slot_date);
CREATE INDEX IF NOT EXISTS idx_bookings_court ON bookings(court_id, slot_date);

-- One row per booked slot of a slot pool (a linked group or a lone court).
CREATE TABLE IF NOT EXISTS slot_claims (
    pool_key        TEXT NOT NULL,
    slot_start      TEXT NOT NULL,
    booking_id      TEXT NOT NULL UNIQUE REFERENCES bookings(id) ON DELETE CASCADE,
    PRIMARY KEY (pool_key, slot_start)
);

CREATE TABLE IF NOT EXISTS challenges (
    id              TEXT PRIMARY KEY,
    site            TEXT NOT NULL,
    court_id        INTEGER REFERENCES courts(id),
    slot_start      TEXT,
    slot_date       TEXT,
    fut             INTEGER NOT NULL,
    referee         INTEGER NOT NULL DEFAULT 0,
    team1_name      TEXT,
    team1_contact   TEXT NOT NULL,
    team1_phone     TEXT NOT NULL,
    team1_email     TEXT,
    team2_name      TEXT,
    team2_contact   TEXT,
    team2_phone     TEXT,
    team2_email     TEXT,
    booking_id      TEXT UNIQUE,    -- non-null once matched
    created_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_challenges_date ON challenges(slot_date);

CREATE TABLE IF NOT EXISTS payments (
    id              TEXT PRIMARY KEY,
    booking_id      TEXT NOT NULL REFERENCES bookings(id),
    sinpe           INTEGER NOT NULL,
    cash            INTEGER NOT NULL,
    note            TEXT,
    complete        INTEGER NOT NULL,
    created_by      TEXT,
    receipt_ref     TEXT,
    reason          TEXT,
    idempotency_key TEXT UNIQUE,
    created_at      TEXT NOT NULL,
    UNIQUE (booking_id, reason)
);

CREATE INDEX IF NOT EXISTS idx_payments_booking ON payments(booking_id);

CREATE TABLE IF NOT EXISTS closings (
    id              TEXT PRIMARY KEY,
    start_date      TEXT NOT NULL,
    end_date        TEXT NOT NULL,
    note            TEXT,
    created_by      TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    document_url    TEXT NOT NULL,
    total_expected  INTEGER NOT NULL,
    total_paid      INTEGER NOT NULL,
    total_sinpe     INTEGER NOT NULL,
    total_cash      INTEGER NOT NULL,
    shortfall       INTEGER NOT NULL,
    problem_count   INTEGER NOT NULL,
    snapshot_json   TEXT NOT NULL
);
"""


# ── Helpers ───────────────────────────────────────────────────────────────


def _iso(value: datetime | date | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _to_db(value: Any) -> Any:
    """Convert a model value into something sqlite3 can bind."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return json.dumps(value)
    return value


def _placeholders(values: Iterable[Any]) -> str:
    return ", ".join("?" for _ in values)


async def _insert(conn: aiosqlite.Connection, table: str, row: dict[str, Any]) -> None:
    columns = ", ".join(row)
    await conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({_placeholders(row)})",
        [_to_db(v) for v in row.values()],
    )


async def _update(
    conn: aiosqlite.Connection, table: str, row_id: Any, row: dict[str, Any]
) -> int:
    assignments = ", ".join(f"{col} = ?" for col in row)
    cur = await conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ?",
        [*(_to_db(v) for v in row.values()), _to_db(row_id)],
    )
    return cur.rowcount


async def _fetchall(
    sql: str, params: Iterable[Any] = (), conn: aiosqlite.Connection | None = None
) -> list[aiosqlite.Row]:
    db = conn or get_db()
    try:
        async with db.execute(sql, list(params)) as cur:
            return list(await cur.fetchall())
    except sqlite3.Error as exc:
        logger.exception("Query failed")
        raise UpstreamFailure("Storage error", reason=str(exc)) from exc


async def _fetchone(
    sql: str, params: Iterable[Any] = (), conn: aiosqlite.Connection | None = None
) -> aiosqlite.Row | None:
    db = conn or get_db()
    try:
        async with db.execute(sql, list(params)) as cur:
            return await cur.fetchone()
    except sqlite3.Error as exc:
        logger.exception("Query failed")
        raise UpstreamFailure("Storage error", reason=str(exc)) from exc


def _row_to_court(row: aiosqlite.Row) -> Court:
    data = dict(row)
    if data["tier_prices"] is not None:
        data["tier_prices"] = json.loads(data["tier_prices"])
    return Court.model_validate(data)


def _row_to_booking(row: aiosqlite.Row) -> Booking:
    return Booking.model_validate(dict(row))


def _row_to_challenge(row: aiosqlite.Row) -> ChallengeListing:
    return ChallengeListing.model_validate(dict(row))


def _row_to_payment(row: aiosqlite.Row) -> Payment:
    return Payment.model_validate(dict(row))


def _row_to_recurring(row: aiosqlite.Row) -> RecurringBooking:
    return RecurringBooking.model_validate(dict(row))


def _row_to_closing(row: aiosqlite.Row) -> ClosingReport:
    return ClosingReport(
        id=UUID(row["id"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        note=row["note"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        document_url=row["document_url"],
        snapshot=ClosingSnapshot.model_validate_json(row["snapshot_json"]),
    )


def _booking_row(booking: Booking) -> dict[str, Any]:
    row = booking.model_dump()
    row["slot_date"] = booking.slot_start.date()
    return row


# ══════════════════════════════════════════════════════════════════════════
#                    CATALOG
# ══════════════════════════════════════════════════════════════════════════


async def _seed_catalog(conn: aiosqlite.Connection) -> None:
    """Insert the default catalog into an empty database."""
    existing = await _fetchone("SELECT COUNT(*) AS n FROM courts", conn=conn)
    if existing is not None and existing["n"] > 0:
        return

    for schedule in catalog.DEFAULT_SCHEDULES:
        await _insert(conn, "schedules", schedule.model_dump())
    for group in catalog.DEFAULT_GROUPS:
        await _insert(conn, "linked_groups", {"id": group.id, "name": group.name})
    for court in catalog.DEFAULT_COURTS:
        await _insert(conn, "courts", court.model_dump())
    logger.info(
        "Seeded default catalog: %d courts, %d linked groups",
        len(catalog.DEFAULT_COURTS),
        len(catalog.DEFAULT_GROUPS),
    )


async def list_courts() -> list[Court]:
    rows = await _fetchall("SELECT * FROM courts ORDER BY site, id")
    return [_row_to_court(r) for r in rows]


async def list_linked_groups() -> list[LinkedGroup]:
    groups = await _fetchall("SELECT * FROM linked_groups ORDER BY id")
    members = await _fetchall(
        "SELECT id, linked_group_id FROM courts WHERE linked_group_id IS NOT NULL ORDER BY id"
    )
    by_group: dict[str, list[int]] = {}
    for row in members:
        by_group.setdefault(row["linked_group_id"], []).append(row["id"])
    return [
        LinkedGroup(id=g["id"], name=g["name"], court_ids=by_group.get(g["id"], []))
        for g in groups
    ]


async def list_schedules() -> list[ScheduleConfig]:
    rows = await _fetchall("SELECT * FROM schedules ORDER BY site")
    return [ScheduleConfig.model_validate(dict(r)) for r in rows]


async def update_schedule(
    conn: aiosqlite.Connection, site: Site, opening_hour: int, closing_hour: int
) -> None:
    await conn.execute(
        """
        INSERT INTO schedules (site, opening_hour, closing_hour) VALUES (?, ?, ?)
        ON CONFLICT(site) DO UPDATE SET
            opening_hour = excluded.opening_hour,
            closing_hour = excluded.closing_hour
        """,
        (site.value, opening_hour, closing_hour),
    )


# ══════════════════════════════════════════════════════════════════════════
#                    BOOKING REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


async def insert_booking(conn: aiosqlite.Connection, booking: Booking, pool_key: str) -> None:
    """Insert a booking together with its slot claim.

    Raises ``sqlite3.IntegrityError`` when the slot pool is already taken.
    """
    await _insert(conn, "bookings", _booking_row(booking))
    await claim_slot(conn, pool_key, booking.slot_start, booking.id)


async def claim_slot(
    conn: aiosqlite.Connection, pool_key: str, slot_start: datetime, booking_id: UUID
) -> None:
    await conn.execute(
        "INSERT INTO slot_claims (pool_key, slot_start, booking_id) VALUES (?, ?, ?)",
        (pool_key, _iso(slot_start), str(booking_id)),
    )


async def release_claim(conn: aiosqlite.Connection, booking_id: UUID) -> None:
    await conn.execute("DELETE FROM slot_claims WHERE booking_id = ?", (str(booking_id),))


async def update_booking(conn: aiosqlite.Connection, booking: Booking) -> None:
    row = _booking_row(booking)
    row.pop("id")
    await _update(conn, "bookings", booking.id, row)


async def set_booking_fields(
    conn: aiosqlite.Connection, booking_id: UUID, **fields: Any
) -> int:
    """Update selected columns of one booking. Returns the affected row count."""
    return await _update(conn, "bookings", booking_id, fields)


async def delete_booking(conn: aiosqlite.Connection, booking_id: UUID) -> bool:
    """Delete a booking (its claim goes with it). Returns True if a row was deleted."""
    cur = await conn.execute("DELETE FROM bookings WHERE id = ?", (str(booking_id),))
    return cur.rowcount > 0


async def get_booking(
    booking_id: UUID, conn: aiosqlite.Connection | None = None
) -> Booking | None:
    row = await _fetchone("SELECT * FROM bookings WHERE id = ?", (str(booking_id),), conn)
    return _row_to_booking(row) if row else None


async def list_bookings(
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    dates: Iterable[date] | None = None,
    court_ids: Iterable[int] | None = None,
    recurring_id: UUID | None = None,
    conn: aiosqlite.Connection | None = None,
) -> list[Booking]:
    """List bookings ordered by slot start, with optional filters."""
    sql = "SELECT * FROM bookings WHERE 1 = 1"
    params: list[Any] = []

    if date_from is not None:
        sql += " AND slot_date >= ?"
        params.append(_iso(date_from))
    if date_to is not None:
        sql += " AND slot_date <= ?"
        params.append(_iso(date_to))
    if dates is not None:
        day_list = [_iso(d) for d in dates]
        sql += f" AND slot_date IN ({_placeholders(day_list)})"
        params.extend(day_list)
    if court_ids is not None:
        id_list = list(court_ids)
        sql += f" AND court_id IN ({_placeholders(id_list)})"
        params.extend(id_list)
    if recurring_id is not None:
        sql += " AND recurring_id = ?"
        params.append(str(recurring_id))

    sql += " ORDER BY slot_start, court_id"
    rows = await _fetchall(sql, params, conn)
    return [_row_to_booking(r) for r in rows]


async def booked_starts(
    court_ids: Iterable[int],
    day: date,
    *,
    exclude_booking_id: UUID | None = None,
    conn: aiosqlite.Connection | None = None,
) -> list[datetime]:
    """Slot starts held by bookings on *court_ids* whose slot falls on *day*."""
    id_list = list(court_ids)
    sql = (
        "SELECT slot_start FROM bookings "
        f"WHERE court_id IN ({_placeholders(id_list)}) AND slot_date = ?"
    )
    params: list[Any] = [*id_list, _iso(day)]
    if exclude_booking_id is not None:
        sql += " AND id != ?"
        params.append(str(exclude_booking_id))
    rows = await _fetchall(sql, params, conn)
    return [datetime.fromisoformat(r["slot_start"]) for r in rows]


# ══════════════════════════════════════════════════════════════════════════
#                    CHALLENGE REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


def _challenge_row(challenge: ChallengeListing) -> dict[str, Any]:
    row = challenge.model_dump()
    row["slot_date"] = challenge.slot_start.date() if challenge.slot_start else None
    return row


async def insert_challenge(conn: aiosqlite.Connection, challenge: ChallengeListing) -> None:
    await _insert(conn, "challenges", _challenge_row(challenge))


async def update_challenge(conn: aiosqlite.Connection, challenge: ChallengeListing) -> int:
    row = _challenge_row(challenge)
    row.pop("id")
    return await _update(conn, "challenges", challenge.id, row)


async def delete_challenge(conn: aiosqlite.Connection, challenge_id: UUID) -> bool:
    cur = await conn.execute(
        "DELETE FROM challenges WHERE id = ? AND booking_id IS NULL", (str(challenge_id),)
    )
    return cur.rowcount > 0


async def get_challenge(
    challenge_id: UUID, conn: aiosqlite.Connection | None = None
) -> ChallengeListing | None:
    row = await _fetchone("SELECT * FROM challenges WHERE id = ?", (str(challenge_id),), conn)
    return _row_to_challenge(row) if row else None


async def list_challenges(
    *,
    is_open: bool | None = None,
    site: Site | None = None,
    date_from: date | None = None,
) -> list[ChallengeListing]:
    """List challenge listings, open ones first by creation, matched ones by slot."""
    sql = "SELECT * FROM challenges WHERE 1 = 1"
    params: list[Any] = []

    if is_open is True:
        sql += " AND booking_id IS NULL"
    elif is_open is False:
        sql += " AND booking_id IS NOT NULL"
    if site is not None:
        sql += " AND site = ?"
        params.append(site.value)
    if date_from is not None:
        sql += " AND slot_date >= ?"
        params.append(_iso(date_from))

    sql += " ORDER BY slot_start IS NULL, slot_start, created_at"
    rows = await _fetchall(sql, params)
    return [_row_to_challenge(r) for r in rows]


async def matched_challenge_starts(
    court_ids: Iterable[int],
    day: date,
    *,
    exclude_challenge_id: UUID | None = None,
    conn: aiosqlite.Connection | None = None,
) -> list[datetime]:
    """Slot starts held by closed challenge listings on *court_ids* on *day*."""
    id_list = list(court_ids)
    sql = (
        "SELECT slot_start FROM challenges "
        f"WHERE booking_id IS NOT NULL AND court_id IN ({_placeholders(id_list)}) "
        "AND slot_date = ?"
    )
    params: list[Any] = [*id_list, _iso(day)]
    if exclude_challenge_id is not None:
        sql += " AND id != ?"
        params.append(str(exclude_challenge_id))
    rows = await _fetchall(sql, params, conn)
    return [datetime.fromisoformat(r["slot_start"]) for r in rows]


# ══════════════════════════════════════════════════════════════════════════
#                    PAYMENT REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


async def insert_payment(conn: aiosqlite.Connection, payment: Payment) -> None:
    await _insert(conn, "payments", payment.model_dump())


async def list_payments(
    booking_ids: Iterable[UUID], conn: aiosqlite.Connection | None = None
) -> list[Payment]:
    """Payments for the given bookings, oldest first."""
    id_list = [str(b) for b in booking_ids]
    if not id_list:
        return []
    rows = await _fetchall(
        f"SELECT * FROM payments WHERE booking_id IN ({_placeholders(id_list)}) "
        "ORDER BY created_at, rowid",
        id_list,
        conn,
    )
    return [_row_to_payment(r) for r in rows]


async def get_payment_by_key(
    idempotency_key: str, conn: aiosqlite.Connection | None = None
) -> Payment | None:
    row = await _fetchone(
        "SELECT * FROM payments WHERE idempotency_key = ?", (idempotency_key,), conn
    )
    return _row_to_payment(row) if row else None


async def get_payment_by_reason(
    booking_id: UUID, reason: str, conn: aiosqlite.Connection | None = None
) -> Payment | None:
    row = await _fetchone(
        "SELECT * FROM payments WHERE booking_id = ? AND reason = ?",
        (str(booking_id), reason),
        conn,
    )
    return _row_to_payment(row) if row else None


async def count_payments(booking_id: UUID, conn: aiosqlite.Connection | None = None) -> int:
    row = await _fetchone(
        "SELECT COUNT(*) AS n FROM payments WHERE booking_id = ?", (str(booking_id),), conn
    )
    return row["n"] if row else 0


# ══════════════════════════════════════════════════════════════════════════
#                    RECURRING BOOKING REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


async def insert_recurring(conn: aiosqlite.Connection, recurring: RecurringBooking) -> None:
    await _insert(conn, "recurring_bookings", recurring.model_dump())


async def get_recurring(recurring_id: UUID) -> RecurringBooking | None:
    row = await _fetchone(
        "SELECT * FROM recurring_bookings WHERE id = ?", (str(recurring_id),)
    )
    return _row_to_recurring(row) if row else None


async def list_recurring() -> list[RecurringBooking]:
    rows = await _fetchall("SELECT * FROM recurring_bookings ORDER BY weekday, hour, court_id")
    return [_row_to_recurring(r) for r in rows]


async def delete_recurring(conn: aiosqlite.Connection, recurring_id: UUID) -> bool:
    cur = await conn.execute(
        "DELETE FROM recurring_bookings WHERE id = ?", (str(recurring_id),)
    )
    return cur.rowcount > 0


# ══════════════════════════════════════════════════════════════════════════
#                    CLOSING REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


async def insert_closing(conn: aiosqlite.Connection, closing: ClosingReport) -> None:
    totals = closing.snapshot.totals
    await _insert(
        conn,
        "closings",
        {
            "id": closing.id,
            "start_date": closing.start_date,
            "end_date": closing.end_date,
            "note": closing.note,
            "created_by": closing.created_by,
            "created_at": closing.created_at,
            "document_url": closing.document_url,
            "total_expected": totals.expected,
            "total_paid": totals.paid,
            "total_sinpe": totals.sinpe,
            "total_cash": totals.cash,
            "shortfall": totals.shortfall,
            "problem_count": totals.problem_count,
            "snapshot_json": closing.snapshot.model_dump_json(),
        },
    )


async def get_closing(closing_id: UUID) -> ClosingReport | None:
    row = await _fetchone("SELECT * FROM closings WHERE id = ?", (str(closing_id),))
    return _row_to_closing(row) if row else None


async def list_closings() -> list[ClosingReport]:
    """Return closings, newest first."""
    rows = await _fetchall("SELECT * FROM closings ORDER BY created_at DESC")
    return [_row_to_closing(r) for r in rows]


async def delete_closing(conn: aiosqlite.Connection, closing_id: UUID) -> bool:
    cur = await conn.execute("DELETE FROM closings WHERE id = ?", (str(closing_id),))
    return cur.rowcount > 0
