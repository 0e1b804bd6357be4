"""Tests for shared normalization helpers."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from appointpro.shared.validators import (
    extract_start_time,
    intervals_overlap,
    normalize_appointment_date,
    normalize_appointment_time,
    normalize_phone,
    parse_slot_time,
    strip_time_part,
    validate_email,
)


class TestNormalizePhone:
    def test_adds_leading_plus(self):
        assert normalize_phone("971501234567") == "+971501234567"

    def test_keeps_existing_plus(self):
        assert normalize_phone("+971501234567") == "+971501234567"

    def test_strips_formatting(self):
        assert normalize_phone(" +971 (50) 123-4567 ") == "+971501234567"

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            normalize_phone("   ")

    def test_rejects_letters(self):
        with pytest.raises(ValueError):
            normalize_phone("+97150abc4567")


class TestValidateEmail:
    def test_lowercases(self):
        assert validate_email(" Jane@Example.COM ") == "jane@example.com"

    def test_none_passes_through(self):
        assert validate_email(None) is None

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            validate_email("not-an-email")


class TestExtractStartTime:
    def test_afternoon_range(self):
        assert extract_start_time("2:00 PM - 2:30 PM") == "14:00:00"

    def test_midnight_range(self):
        assert extract_start_time("12:00 AM - 12:30 AM") == "00:00:00"

    def test_noon_range(self):
        assert extract_start_time("12:15 PM - 12:45 PM") == "12:15:00"

    def test_morning_range(self):
        assert extract_start_time("9:30 AM - 10:00 AM") == "09:30:00"

    def test_canonical_values_unchanged(self):
        assert extract_start_time("09:00") == "09:00"
        assert extract_start_time("14:30:00") == "14:30:00"

    def test_empty_passes_through(self):
        assert extract_start_time(None) is None
        assert extract_start_time("") == ""

    def test_unreadable_raises(self):
        with pytest.raises(ValueError):
            extract_start_time("sometime soon")

    def test_hour_out_of_range_with_modifier(self):
        with pytest.raises(ValueError):
            extract_start_time("13:00 PM - 13:30 PM")


class TestNormalizeAppointmentTime:
    def test_pads_seconds(self):
        assert normalize_appointment_time("09:00") == "09:00:00"

    def test_display_range(self):
        assert normalize_appointment_time("2:00 PM - 2:30 PM") == "14:00:00"

    def test_rejects_invalid_canonical(self):
        with pytest.raises(ValueError):
            normalize_appointment_time("25:00")

    def test_rejects_missing(self):
        with pytest.raises(ValueError):
            normalize_appointment_time(None)


class TestNormalizeAppointmentDate:
    def test_plain_date_string_is_that_day(self):
        assert normalize_appointment_date("2025-03-10") == date(2025, 3, 10)

    def test_date_object(self):
        assert normalize_appointment_date(date(2025, 3, 10)) == date(2025, 3, 10)

    def test_iso_timestamp_with_offset_converted_to_utc(self):
        # 02:00 at +04:00 is 22:00 the previous day in UTC
        assert normalize_appointment_date("2025-03-10T02:00:00+04:00") == date(2025, 3, 9)

    def test_aware_datetime(self):
        value = datetime(2025, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        assert normalize_appointment_date(value) == date(2025, 3, 11)

    def test_naive_timestamp_keeps_day(self):
        assert normalize_appointment_date("2025-03-10T15:45:00") == date(2025, 3, 10)

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            normalize_appointment_date("not a date")

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            normalize_appointment_date("")


class TestSlotTimes:
    def test_parse_single_digit_hour(self):
        assert parse_slot_time("9:05") == time(9, 5)

    def test_parse_time_object_drops_seconds(self):
        assert parse_slot_time(time(9, 5, 30)) == time(9, 5)

    @pytest.mark.parametrize("raw", ["24:00", "9:60", "09:00:00", "nine", ""])
    def test_parse_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_slot_time(raw)

    def test_partial_overlap(self):
        assert intervals_overlap(time(9), time(9, 30), time(9, 15), time(9, 45))

    def test_touching_does_not_overlap(self):
        assert not intervals_overlap(time(9), time(9, 30), time(9, 30), time(10))

    def test_containment_overlaps(self):
        assert intervals_overlap(time(9), time(12), time(10), time(11))


def test_strip_time_part():
    assert strip_time_part("2025-03-10T00:00:00.000Z") == "2025-03-10"
    assert strip_time_part("2025-03-10") == "2025-03-10"
