"""
SQLite database layer using aiosqlite.

Stores facilities, reservations, their slot claims, promotions and
in-app notifications.  Tables are created automatically on first connect.

Writes go through ``transaction()``, which serialises writers on one
lock and wraps them in ``BEGIN IMMEDIATE``.  The ``slot_claims`` table
carries one row per occupied (facility, date, slot); its primary key is
what finally rules out double-booking.

Every sqlite error is re-raised as ``StorageUnavailable``.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path

import aiosqlite

from arena_booking.config import DB_PATH
from arena_booking.errors import SlotConflict, StorageUnavailable
from arena_booking.models import (
    DirectoryUser,
    Facility,
    Notification,
    Promotion,
    Reservation,
)
from arena_booking.services.time_normalizer import parse_slot_labels, parse_timestamp

logger = logging.getLogger(__name__)

# ── Module-level connection ───────────────────────────────────────────────

_db: aiosqlite.Connection | None = None
_write_lock: asyncio.Lock = asyncio.Lock()


async def init_db() -> None:
    """Open the database and create tables if they don't exist."""
    global _db, _write_lock
    db_path = Path(DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # Autocommit mode: transactions are opened explicitly in transaction().
    _db = await aiosqlite.connect(str(db_path), isolation_level=None)
    _db.row_factory = aiosqlite.Row  # dict-like rows
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")
    await _db.executescript(_SCHEMA)
    _write_lock = asyncio.Lock()
    logger.info("Database initialized at %s", db_path)


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("Database connection closed")


def get_db() -> aiosqlite.Connection:
    """Return the active database connection (must call init_db first)."""
    if _db is None:
        raise StorageUnavailable("Database not initialized")
    return _db


def _guarded(func):
    """Translate sqlite failures into StorageUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except sqlite3.Error as exc:
            logger.error("Storage error in %s: %s", func.__name__, exc)
            raise StorageUnavailable(f"Reservation store unavailable: {exc}") from exc

    return wrapper


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """
    Run the enclosed writes as one atomic unit.

    Only one transaction is open at a time.  Any exception (including
    cancellation) rolls back.
    """
    conn = get_db()
    async with _write_lock:
        try:
            await conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Could not start transaction: {exc}") from exc
        try:
            yield conn
        except BaseException:
            try:
                await conn.execute("ROLLBACK")
            except sqlite3.Error:
                logger.exception("Rollback failed")
            raise
        try:
            await conn.execute("COMMIT")
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Could not commit: {exc}") from exc


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS facilities (
    id              INTEGER PRIMARY KEY,
    name            TEXT NOT NULL,
    hourly_rate     REAL NOT NULL,
    status          TEXT NOT NULL DEFAULT 'available'
);

CREATE TABLE IF NOT EXISTS users (
    id              TEXT PRIMARY KEY,
    email           TEXT,
    username        TEXT,
    phone_number    TEXT
);

CREATE TABLE IF NOT EXISTS promotions (
    id                  INTEGER PRIMARY KEY,
    name                TEXT NOT NULL,
    discount_amount     REAL,
    discount_percentage REAL,
    valid_from          TEXT NOT NULL,
    valid_until         TEXT NOT NULL,
    status              TEXT NOT NULL DEFAULT 'active'
);

CREATE TABLE IF NOT EXISTS reservations (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    facility_id     INTEGER NOT NULL,
    user_id         TEXT,
    booking_date    TEXT NOT NULL,
    time_slots      TEXT,           -- JSON array of "HH:MM-HH:MM" labels
    start_time      TEXT,           -- ISO timestamp
    end_time        TEXT,           -- ISO timestamp
    status          TEXT NOT NULL,
    total_price     REAL NOT NULL DEFAULT 0,
    promotion_id    INTEGER,
    created_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_res_facility_day ON reservations(facility_id, booking_date);
CREATE INDEX IF NOT EXISTS idx_res_user ON reservations(user_id);

CREATE TABLE IF NOT EXISTS slot_claims (
    facility_id     INTEGER NOT NULL,
    booking_date    TEXT NOT NULL,
    slot_label      TEXT NOT NULL,
    reservation_id  INTEGER NOT NULL,
    PRIMARY KEY (facility_id, booking_date, slot_label),
    FOREIGN KEY (reservation_id) REFERENCES reservations(id)
);

CREATE INDEX IF NOT EXISTS idx_claims_res ON slot_claims(reservation_id);

CREATE TABLE IF NOT EXISTS promotion_usage (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    promotion_id    INTEGER NOT NULL,
    user_id         TEXT NOT NULL,
    booking_id      INTEGER NOT NULL,
    UNIQUE (promotion_id, user_id)
);

CREATE TABLE IF NOT EXISTS notifications (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT NOT NULL,
    title           TEXT NOT NULL,
    message         TEXT NOT NULL,
    type            TEXT NOT NULL DEFAULT 'booking',
    is_read         INTEGER NOT NULL DEFAULT 0,
    related_id      INTEGER,
    created_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_notif_user ON notifications(user_id, is_read);
"""


# ── Helpers ───────────────────────────────────────────────────────────────


def _iso(dt: datetime | date | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _placeholders(values: Iterable) -> str:
    return ", ".join("?" for _ in values)


def _row_to_reservation(row: aiosqlite.Row) -> Reservation:
    """Convert a database row to a Reservation, tolerating legacy time data."""
    return Reservation(
        id=row["id"],
        facility_id=row["facility_id"],
        user_id=row["user_id"],
        booking_date=row["booking_date"],
        time_slots=parse_slot_labels(row["time_slots"]),
        start_time=parse_timestamp(row["start_time"]),
        end_time=parse_timestamp(row["end_time"]),
        status=row["status"],
        total_price=row["total_price"] or 0,
        promotion_id=row["promotion_id"],
        created_at=row["created_at"],
    )


def _row_to_notification(row: aiosqlite.Row) -> Notification:
    return Notification(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        message=row["message"],
        type=row["type"],
        is_read=bool(row["is_read"]),
        related_id=row["related_id"],
        created_at=row["created_at"],
    )


# ══════════════════════════════════════════════════════════════════════════
#                    FACILITIES & USERS (read side)
# ══════════════════════════════════════════════════════════════════════════


@_guarded
async def create_facility(
    name: str,
    hourly_rate: float,
    *,
    status: str = "available",
    facility_id: int | None = None,
) -> Facility:
    """Insert a facility (seeding and tests; facility admin lives elsewhere)."""
    async with transaction() as conn:
        cur = await conn.execute(
            "INSERT INTO facilities (id, name, hourly_rate, status) VALUES (?, ?, ?, ?)",
            (facility_id, name, hourly_rate, status),
        )
        new_id = cur.lastrowid
    return Facility(id=new_id, name=name, hourly_rate=hourly_rate, status=status)


@_guarded
async def get_facility(facility_id: int) -> Facility | None:
    db = get_db()
    async with db.execute("SELECT * FROM facilities WHERE id = ?", (facility_id,)) as cur:
        row = await cur.fetchone()
    return Facility(**dict(row)) if row else None


@_guarded
async def list_facilities() -> list[Facility]:
    db = get_db()
    async with db.execute("SELECT * FROM facilities ORDER BY id") as cur:
        rows = await cur.fetchall()
    return [Facility(**dict(r)) for r in rows]


@_guarded
async def upsert_user(user: DirectoryUser) -> None:
    async with transaction() as conn:
        await conn.execute(
            """
            INSERT INTO users (id, email, username, phone_number) VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email = excluded.email,
                username = excluded.username,
                phone_number = excluded.phone_number
            """,
            (user.id, user.email, user.username, user.phone_number),
        )


@_guarded
async def get_user(user_id: str) -> DirectoryUser | None:
    db = get_db()
    async with db.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cur:
        row = await cur.fetchone()
    return DirectoryUser(**dict(row)) if row else None


# ══════════════════════════════════════════════════════════════════════════
#                    PROMOTIONS
# ══════════════════════════════════════════════════════════════════════════


@_guarded
async def create_promotion(
    name: str,
    valid_from: datetime,
    valid_until: datetime,
    *,
    discount_amount: float | None = None,
    discount_percentage: float | None = None,
    status: str = "active",
) -> Promotion:
    async with transaction() as conn:
        cur = await conn.execute(
            """
            INSERT INTO promotions
                (name, discount_amount, discount_percentage, valid_from, valid_until, status)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                name, discount_amount, discount_percentage,
                _iso(valid_from), _iso(valid_until), status,
            ),
        )
        new_id = cur.lastrowid
    return await get_promotion(new_id)  # type: ignore[return-value]


@_guarded
async def get_promotion(promotion_id: int) -> Promotion | None:
    db = get_db()
    async with db.execute("SELECT * FROM promotions WHERE id = ?", (promotion_id,)) as cur:
        row = await cur.fetchone()
    return Promotion(**dict(row)) if row else None


@_guarded
async def has_used_promotion(promotion_id: int, user_id: str) -> bool:
    db = get_db()
    async with db.execute(
        "SELECT 1 FROM promotion_usage WHERE promotion_id = ? AND user_id = ?",
        (promotion_id, user_id),
    ) as cur:
        row = await cur.fetchone()
    return row is not None


@_guarded
async def record_promotion_usage(promotion_id: int, user_id: str, booking_id: int) -> None:
    """Must run inside transaction()."""
    await get_db().execute(
        "INSERT INTO promotion_usage (promotion_id, user_id, booking_id) VALUES (?, ?, ?)",
        (promotion_id, user_id, booking_id),
    )


# ══════════════════════════════════════════════════════════════════════════
#                    RESERVATIONS
# ══════════════════════════════════════════════════════════════════════════


@_guarded
async def list_reservation_rows(facility_id: int, booking_date: date) -> list[dict]:
    """
    Raw reservation rows for one facility-day, whatever their status.

    Rows are returned undecoded so the normalizer sees the stored shape.
    Older rows use other status spellings; filter with ``canonical_status``.
    """
    db = get_db()
    async with db.execute(
        "SELECT * FROM reservations WHERE facility_id = ? AND booking_date = ? ORDER BY id",
        (facility_id, booking_date.isoformat()),
    ) as cur:
        rows = await cur.fetchall()
    return [dict(r) for r in rows]


@_guarded
async def insert_reservation(
    facility_id: int,
    booking_date: date,
    *,
    status: str,
    total_price: float,
    user_id: str | None = None,
    time_slots: list[str] | None = None,
    start_time: datetime | str | None = None,
    end_time: datetime | str | None = None,
    promotion_id: int | None = None,
    created_at: str | None = None,
) -> int:
    """Insert a reservation row and return its id.  Must run inside transaction()."""
    if isinstance(start_time, datetime):
        start_time = start_time.isoformat()
    if isinstance(end_time, datetime):
        end_time = end_time.isoformat()

    cur = await get_db().execute(
        """
        INSERT INTO reservations (
            facility_id, user_id, booking_date, time_slots, start_time, end_time,
            status, total_price, promotion_id, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            facility_id, user_id, booking_date.isoformat(),
            json.dumps(time_slots) if time_slots is not None else None,
            start_time, end_time,
            status, total_price, promotion_id,
            created_at or _now_iso(),
        ),
    )
    return cur.lastrowid


@_guarded
async def insert_slot_claims(
    facility_id: int,
    booking_date: date,
    labels: Iterable[str],
    reservation_id: int,
) -> None:
    """
    Claim each slot for a reservation.  Must run inside transaction().

    Raises SlotConflict when another reservation already holds a slot.
    """
    labels = list(labels)
    try:
        await get_db().executemany(
            """
            INSERT INTO slot_claims (facility_id, booking_date, slot_label, reservation_id)
            VALUES (?, ?, ?, ?)
            """,
            [(facility_id, booking_date.isoformat(), label, reservation_id) for label in labels],
        )
    except sqlite3.IntegrityError:
        taken = await _claimed_labels(facility_id, booking_date, labels)
        raise SlotConflict(taken or labels) from None


async def _claimed_labels(facility_id: int, booking_date: date, labels: list[str]) -> list[str]:
    async with get_db().execute(
        f"""
        SELECT slot_label FROM slot_claims
        WHERE facility_id = ? AND booking_date = ? AND slot_label IN ({_placeholders(labels)})
        """,
        (facility_id, booking_date.isoformat(), *labels),
    ) as cur:
        rows = await cur.fetchall()
    return sorted(r["slot_label"] for r in rows)


@_guarded
async def release_slot_claims(reservation_id: int) -> int:
    """Free every slot a reservation holds.  Must run inside transaction()."""
    cur = await get_db().execute(
        "DELETE FROM slot_claims WHERE reservation_id = ?", (reservation_id,)
    )
    return cur.rowcount


@_guarded
async def update_reservation_status(reservation_id: int, status: str) -> None:
    """Must run inside transaction()."""
    await get_db().execute(
        "UPDATE reservations SET status = ? WHERE id = ?", (status, reservation_id)
    )


@_guarded
async def get_reservation(reservation_id: int) -> Reservation | None:
    db = get_db()
    async with db.execute("SELECT * FROM reservations WHERE id = ?", (reservation_id,)) as cur:
        row = await cur.fetchone()
    return _row_to_reservation(row) if row else None


@_guarded
async def list_reservations(
    *,
    user_id: str | None = None,
    facility_id: int | None = None,
    booking_date: date | None = None,
) -> list[Reservation]:
    """List reservations, newest first, with optional filters."""
    db = get_db()
    sql = "SELECT * FROM reservations WHERE 1 = 1"
    params: list = []

    if user_id is not None:
        sql += " AND user_id = ?"
        params.append(user_id)
    if facility_id is not None:
        sql += " AND facility_id = ?"
        params.append(facility_id)
    if booking_date is not None:
        sql += " AND booking_date = ?"
        params.append(booking_date.isoformat())

    sql += " ORDER BY created_at DESC, id DESC"

    async with db.execute(sql, params) as cur:
        rows = await cur.fetchall()
    return [_row_to_reservation(r) for r in rows]


# ══════════════════════════════════════════════════════════════════════════
#                    NOTIFICATIONS
# ══════════════════════════════════════════════════════════════════════════


@_guarded
async def create_notification(
    user_id: str,
    title: str,
    message: str,
    *,
    type: str = "booking",
    related_id: int | None = None,
) -> Notification:
    now = _now_iso()
    async with transaction() as conn:
        cur = await conn.execute(
            """
            INSERT INTO notifications (user_id, title, message, type, is_read, related_id, created_at)
            VALUES (?, ?, ?, ?, 0, ?, ?)
            """,
            (user_id, title, message, type, related_id, now),
        )
        new_id = cur.lastrowid

    return Notification(
        id=new_id,
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        is_read=False,
        related_id=related_id,
        created_at=now,
    )


@_guarded
async def list_notifications(user_id: str, *, unread_only: bool = False) -> list[Notification]:
    """Return a user's notifications, newest first."""
    db = get_db()
    sql = "SELECT * FROM notifications WHERE user_id = ?"
    if unread_only:
        sql += " AND is_read = 0"
    sql += " ORDER BY created_at DESC, id DESC"
    async with db.execute(sql, (user_id,)) as cur:
        rows = await cur.fetchall()
    return [_row_to_notification(r) for r in rows]


@_guarded
async def count_unread_notifications(user_id: str) -> int:
    db = get_db()
    async with db.execute(
        "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND is_read = 0", (user_id,)
    ) as cur:
        row = await cur.fetchone()
    return row[0]


@_guarded
async def mark_notification_read(notification_id: int, user_id: str) -> bool:
    """Returns True if a notification owned by the user was found."""
    async with transaction() as conn:
        cur = await conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE id = ? AND user_id = ?",
            (notification_id, user_id),
        )
    return cur.rowcount > 0


@_guarded
async def mark_all_notifications_read(user_id: str) -> int:
    async with transaction() as conn:
        cur = await conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0",
            (user_id,),
        )
    return cur.rowcount
