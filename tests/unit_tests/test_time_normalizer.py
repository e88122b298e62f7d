"""Tests for reading reservation time data in either storage shape."""

from datetime import date, datetime, timedelta, timezone

from arena_booking.config import FACILITY_TIMEZONE
from arena_booking.services.time_normalizer import (
    SlotLabels,
    TimeRange,
    canonical_label,
    extract_time_representation,
    normalize,
    occupied_labels,
    parse_slot_labels,
    slot_window,
    union_labels,
)

_DAY = date(2026, 1, 12)


def _local(hour: int, minute: int = 0) -> datetime:
    base = datetime(2026, 1, 12, tzinfo=FACILITY_TIMEZONE)
    return base + timedelta(hours=hour, minutes=minute)


class TestCanonicalLabel:
    def test_spaced_separator(self):
        assert canonical_label("13:00 - 14:00") == "13:00-14:00"

    def test_en_dash_and_short_hours(self):
        assert canonical_label("9–10") == "09:00-10:00"

    def test_twenty_four_becomes_midnight(self):
        assert canonical_label("23:00-24:00") == "23:00-00:00"

    def test_garbage(self):
        assert canonical_label("noon-ish") is None
        assert canonical_label(None) is None
        assert canonical_label("25:00-26:00") is None


class TestExtractTimeRepresentation:
    def test_labels_win_over_range(self):
        rep = extract_time_representation({
            "time_slots": ["13:00-14:00"],
            "start_time": _local(18).isoformat(),
            "end_time": _local(19).isoformat(),
        })
        assert rep == SlotLabels(("13:00-14:00",))

    def test_json_encoded_labels(self):
        rep = extract_time_representation({"time_slots": '["15:00-16:00"]'})
        assert rep == SlotLabels(("15:00-16:00",))

    def test_empty_label_array_falls_back_to_range(self):
        rep = extract_time_representation({
            "time_slots": [],
            "start_time": _local(14).isoformat(),
            "end_time": _local(15).isoformat(),
        })
        assert isinstance(rep, TimeRange)

    def test_neither_form(self):
        assert extract_time_representation({"time_slots": None}) is None

    def test_malformed_timestamps(self):
        rep = extract_time_representation({"start_time": "yesterday", "end_time": "later"})
        assert rep is None

    def test_unparsable_json(self):
        assert parse_slot_labels("[13:00") is None


class TestNormalize:
    def test_label_round_trip(self):
        labels = ["13:00-14:00", "14:00-15:00"]
        assert normalize(SlotLabels(tuple(labels))) == frozenset(labels)

    def test_multi_hour_label_expands(self):
        assert normalize(SlotLabels(("13:00 - 15:00",))) == {"13:00-14:00", "14:00-15:00"}

    def test_range_covers_each_hour(self):
        rep = TimeRange(_local(13), _local(16))
        assert normalize(rep) == {"13:00-14:00", "14:00-15:00", "15:00-16:00"}

    def test_partial_hour_occupies_whole_slot(self):
        assert normalize(TimeRange(_local(13), _local(13, 30))) == {"13:00-14:00"}

    def test_range_ending_at_midnight(self):
        assert normalize(TimeRange(_local(23), _local(24))) == {"23:00-00:00"}

    def test_utc_range_converted_to_facility_time(self):
        start = _local(18).astimezone(timezone.utc)
        rep = TimeRange(start, start + timedelta(hours=1))
        assert normalize(rep) == {"18:00-19:00"}

    def test_inverted_range_is_empty(self):
        assert normalize(TimeRange(_local(16), _local(14))) == frozenset()

    def test_none(self):
        assert normalize(None) == frozenset()

    def test_malformed_labels_ignored(self):
        assert normalize(SlotLabels(("13:00-14:00", "bogus"))) == {"13:00-14:00"}


class TestSlotWindow:
    def test_contiguous_selection(self):
        start, end = slot_window(_DAY, ["14:00-15:00", "13:00-14:00"])
        assert start == _local(13)
        assert end == _local(15)

    def test_last_slot_ends_next_midnight(self):
        start, end = slot_window(_DAY, ["23:00-00:00"])
        assert start == _local(23)
        assert end == _local(24)
        assert end.date() == date(2026, 1, 13)


class TestUnion:
    def test_mixed_records(self):
        records = [
            {"time_slots": ["13:00-14:00"]},
            {"start_time": _local(15).isoformat(), "end_time": _local(17).isoformat()},
            {"time_slots": None, "start_time": None},
        ]
        assert union_labels(records) == {"13:00-14:00", "15:00-16:00", "16:00-17:00"}

    def test_occupied_labels_of_unreadable_record(self):
        assert occupied_labels({"time_slots": 42}) == frozenset()
