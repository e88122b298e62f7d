"""
Time representation normalizer.

Reservations reach us in two shapes: an explicit array of slot labels
(``time_slots``) or a ``start_time``/``end_time`` timestamp pair.  This
module is the only place that looks at the storage shape; it turns
either one into a set of canonical ``"HH:MM-HH:MM"`` labels.

Occupancy is hour-granular: a booking of 13:00–13:30 still occupies the
whole 13:00–14:00 slot.

Nothing in here raises on bad input.  A record that cannot be read
simply contributes no occupancy.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Union

from arena_booking.config import FACILITY_TIMEZONE
from arena_booking.services.slot_catalog import format_hour, slot_label, sort_labels

logger = logging.getLogger(__name__)

# "13:00-14:00", "13:00 - 14:00", "9-10", "13:00–14:00"
_LABEL_RE = re.compile(
    r"^\s*(\d{1,2})(?::(\d{2}))?\s*[-–—]\s*(\d{1,2})(?::(\d{2}))?\s*$"
)

# Guard against absurd ranges; one facility-day has at most 24 hours.
_MAX_SLOTS_PER_RECORD = 24


# ── Tagged union at the storage boundary ──────────────────────────────────


@dataclass(frozen=True)
class SlotLabels:
    labels: tuple[str, ...]


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime


TimeRepresentation = Union[SlotLabels, TimeRange]


# ── Parsing helpers ───────────────────────────────────────────────────────


def _parse_bounds(raw: Any) -> tuple[int, int, int, int] | None:
    """Split a label into (start_hour, start_min, end_hour, end_min)."""
    if not isinstance(raw, str):
        return None
    match = _LABEL_RE.match(raw)
    if match is None:
        return None
    sh, sm, eh, em = match.groups()
    start_h, start_m = int(sh), int(sm or 0)
    end_h, end_m = int(eh), int(em or 0)
    if start_h > 24 or end_h > 24 or start_m > 59 or end_m > 59:
        return None
    return start_h, start_m, end_h, end_m


def canonical_label(raw: Any) -> str | None:
    """
    Re-format one label to ``"HH:MM-HH:MM"``.

    Only separator, whitespace and zero padding change; "24:00" becomes
    "00:00".  Returns None when *raw* is not a label at all.
    """
    bounds = _parse_bounds(raw)
    if bounds is None:
        return None
    start_h, start_m, end_h, end_m = bounds
    return f"{start_h % 24:02d}:{start_m:02d}-{end_h % 24:02d}:{end_m:02d}"


def _expand_label(raw: Any) -> list[str]:
    """Hourly slot labels covered by one (possibly multi-hour) label."""
    bounds = _parse_bounds(raw)
    if bounds is None:
        return []
    start_h, start_m, end_h, end_m = bounds
    start = (start_h % 24) * 60 + start_m
    end = end_h * 60 + end_m
    # "23:00-00:00" ends at midnight of the same booking day
    if end <= start and end_h % 24 == 0 and end_m == 0:
        end = 24 * 60
    if end <= start:
        return []

    labels = []
    hour = start // 60
    while hour * 60 < end and len(labels) < _MAX_SLOTS_PER_RECORD:
        labels.append(slot_label(format_hour(hour), format_hour(hour + 1)))
        hour += 1
    return labels


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO timestamp (or pass a datetime through); None if invalid."""
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError:
        return None


def parse_slot_labels(raw: Any) -> list[str] | None:
    """
    Decode a stored ``time_slots`` value.

    Accepts a list or its JSON encoding.  Returns None when the value is
    missing, empty or not a list.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, (list, tuple)) or not raw:
        return None
    return [str(item) for item in raw if item is not None]


def to_facility_time(value: datetime) -> datetime:
    """Aware datetime in the facility zone; naive values are taken as local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=FACILITY_TIMEZONE)
    return value.astimezone(FACILITY_TIMEZONE)


# ── Boundary ──────────────────────────────────────────────────────────────


def extract_time_representation(record: Mapping[str, Any]) -> TimeRepresentation | None:
    """
    Read the time portion of a reservation record.

    An explicit label array wins over the timestamp pair.  Returns None
    when neither form is usable.
    """
    try:
        labels = parse_slot_labels(record.get("time_slots"))
        if labels:
            return SlotLabels(tuple(labels))

        start = parse_timestamp(record.get("start_time"))
        end = parse_timestamp(record.get("end_time"))
        if start is not None and end is not None:
            return TimeRange(start, end)
    except Exception:
        logger.warning("Unreadable reservation time data: %r", record, exc_info=True)
    return None


def normalize(representation: TimeRepresentation | None) -> frozenset[str]:
    """Canonical slot labels for a representation."""
    if isinstance(representation, SlotLabels):
        labels: set[str] = set()
        for raw in representation.labels:
            labels.update(_expand_label(raw))
        return frozenset(labels)

    if isinstance(representation, TimeRange):
        try:
            start = to_facility_time(representation.start)
            end = to_facility_time(representation.end)
        except (OverflowError, ValueError):
            return frozenset()

        labels = set()
        cursor = start.replace(minute=0, second=0, microsecond=0)
        while cursor < end and len(labels) < _MAX_SLOTS_PER_RECORD:
            labels.add(slot_label(format_hour(cursor.hour), format_hour(cursor.hour + 1)))
            cursor += timedelta(hours=1)
        return frozenset(labels)

    return frozenset()


def slot_window(booking_date: date, labels: Iterable[str]) -> tuple[datetime, datetime]:
    """
    Start of the first slot and end of the last one, in facility time.

    *labels* must be canonical hourly labels.  A slot ending at 00:00
    ends at midnight of the following day.
    """
    ordered = sort_labels(labels)
    start_hour = int(ordered[0][:2])
    end_hour = int(ordered[-1][6:8]) or 24
    midnight = datetime.combine(booking_date, time(0), tzinfo=FACILITY_TIMEZONE)
    return midnight + timedelta(hours=start_hour), midnight + timedelta(hours=end_hour)


def occupied_labels(record: Mapping[str, Any]) -> frozenset[str]:
    """Slots occupied by one reservation record."""
    return normalize(extract_time_representation(record))


def union_labels(records: Iterable[Mapping[str, Any]]) -> set[str]:
    occupied: set[str] = set()
    for record in records:
        occupied |= occupied_labels(record)
    return occupied
