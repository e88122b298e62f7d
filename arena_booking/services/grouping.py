"""
Admin grouping view.

Older clients saved a multi-slot booking as one row per slot, all with
the same ``created_at``; newer ones save one row with a label array.
This view folds rows sharing a creation timestamp back into a single
logical booking.  It only reads; rows are never modified.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from arena_booking.models import (
    APPROVED,
    REJECTED,
    REQUEST_TO_CANCEL,
    BookingGroup,
    Reservation,
    canonical_status,
)
from arena_booking.services.slot_catalog import sort_labels
from arena_booking.services.time_normalizer import (
    occupied_labels,
    slot_window,
    to_facility_time,
)

# Highest priority first; otherwise the first row's status is used.
_STATUS_PRIORITY = (APPROVED, REJECTED, REQUEST_TO_CANCEL)


def _window(item: Reservation, labels: frozenset[str]) -> tuple[datetime | None, datetime | None]:
    if item.start_time is not None and item.end_time is not None:
        return to_facility_time(item.start_time), to_facility_time(item.end_time)
    if labels:
        return slot_window(item.booking_date, labels)
    return None, None


def group_status(items: list[Reservation]) -> str:
    statuses = [canonical_status(item.status) for item in items]
    for status in _STATUS_PRIORITY:
        if status in statuses:
            return status
    return statuses[0]


def _merge(items: list[Reservation]) -> BookingGroup:
    labels_by_id = {item.id: occupied_labels(item.model_dump()) for item in items}
    windows = {item.id: _window(item, labels_by_id[item.id]) for item in items}

    starts = [(start, item) for item in items if (start := windows[item.id][0]) is not None]
    ends = [end for item in items if (end := windows[item.id][1]) is not None]
    earliest = min(starts, key=lambda pair: pair[0])[1] if starts else items[0]

    all_labels: set[str] = set()
    for labels in labels_by_id.values():
        all_labels |= labels

    return BookingGroup(
        id=earliest.id,
        created_at=earliest.created_at,
        facility_id=earliest.facility_id,
        user_id=earliest.user_id,
        booking_date=earliest.booking_date,
        start_time=min(start for start, _ in starts) if starts else None,
        end_time=max(ends) if ends else None,
        time_slots=sort_labels(all_labels),
        total_price=round(sum(item.total_price for item in items), 2),
        status=group_status(items),
        reservation_ids=[item.id for item in items],
    )


def group_reservations(rows: Iterable[Reservation]) -> list[BookingGroup]:
    """Merge rows by identical creation timestamp, newest group first."""
    groups: dict[datetime, list[Reservation]] = {}
    for row in rows:
        groups.setdefault(row.created_at, []).append(row)

    merged = [_merge(items) for items in groups.values()]
    merged.sort(key=lambda group: to_facility_time(group.created_at), reverse=True)
    return merged
