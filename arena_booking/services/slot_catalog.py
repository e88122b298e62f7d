"""
Slot catalog – the fixed daily schedule of bookable hourly slots.

Every facility is open 13:00–24:00, split into eleven one-hour slots.
The closing hour is rendered as "00:00" so the last slot reads
"23:00-00:00".
"""

from __future__ import annotations

OPENING_HOUR = 13
CLOSING_HOUR = 24


def format_hour(hour: int) -> str:
    """Render an hour of the day as "HH:00" (24 wraps to "00:00")."""
    return f"{hour % 24:02d}:00"


def slot_label(start: str, end: str) -> str:
    """Canonical label for a slot boundary pair."""
    return f"{start}-{end}"


def generate_slots() -> list[tuple[str, str]]:
    """Return the (start, end) pairs of the daily schedule, in order."""
    return [
        (format_hour(hour), format_hour(hour + 1))
        for hour in range(OPENING_HOUR, CLOSING_HOUR)
    ]


def catalog_labels() -> list[str]:
    return [slot_label(start, end) for start, end in generate_slots()]


_CATALOG = frozenset(catalog_labels())


def is_catalog_label(label: str) -> bool:
    return label in _CATALOG


def sort_labels(labels) -> list[str]:
    """Order labels by their start time, placing the 00:00 end last."""

    def _key(label: str) -> tuple[int, str]:
        hour = int(label[:2]) if label[:2].isdigit() else 99
        # Early-morning slots belong after the evening ones.
        if hour < OPENING_HOUR:
            hour += 24
        return hour, label

    return sorted(set(labels), key=_key)
