"""Shared validation and normalization utilities"""

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

SLOT_TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
CANONICAL_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")
DISPLAY_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*([AaPp][Mm]))?$")


def normalize_phone(phone: Optional[str]) -> str:
    """
    Normalize a phone number to a leading-plus form.

    Whitespace, dashes, dots and parentheses are dropped; the digits are kept
    as given (no country inference).

    Raises:
        ValueError: If the number is empty or contains anything but digits
    """
    if not phone or not phone.strip():
        raise ValueError("Phone number is required")

    compact = re.sub(r"[\s\-().]", "", phone.strip())
    digits = compact[1:] if compact.startswith("+") else compact

    if not digits.isdigit() or not 6 <= len(digits) <= 15:
        raise ValueError("Invalid phone number")

    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def parse_slot_time(value: Union[str, time]) -> time:
    """
    Parse an admin-supplied slot boundary in HH:MM form.

    Single-digit hours are accepted ("9:00") and normalized.

    Raises:
        ValueError: If the value is not a valid 24-hour HH:MM time
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    match = SLOT_TIME_PATTERN.match((value or "").strip())
    if not match:
        raise ValueError("Invalid time format. Use HH:MM format")

    return time(int(match.group(1)), int(match.group(2)))


def intervals_overlap(s1: time, e1: time, s2: time, e2: time) -> bool:
    """Half-open intervals [s1,e1) and [s2,e2) overlap; touching ends do not"""
    return s1 < e2 and s2 < e1


def _to_24_hour(display: str) -> str:
    match = DISPLAY_TIME_PATTERN.match(display.strip())
    if not match:
        raise ValueError(f"Unrecognized time: {display!r}")

    hours, minutes, _seconds, modifier = match.groups()
    hour = int(hours)
    if int(minutes) > 59:
        raise ValueError(f"Unrecognized time: {display!r}")

    if modifier:
        if not 1 <= hour <= 12:
            raise ValueError(f"Unrecognized time: {display!r}")
        # 12 AM is midnight; 12 PM stays noon
        if hour == 12:
            hour = 0
        if modifier.upper() == "PM":
            hour += 12
    elif hour > 23:
        raise ValueError(f"Unrecognized time: {display!r}")

    return f"{hour:02d}:{minutes}:00"


def extract_start_time(time_input: Optional[str]) -> Optional[str]:
    """
    Turn a booking time into a 24-hour start time.

    Canonical "HH:MM" / "HH:MM:SS" values are returned unchanged. Display
    ranges like "2:00 PM - 2:30 PM" yield only the start, as "14:00:00".

    Raises:
        ValueError: If the start time cannot be read
    """
    if not time_input:
        return time_input

    value = time_input.strip()
    if CANONICAL_TIME_PATTERN.match(value):
        return value

    start = value.split(" - ")[0]
    return _to_24_hour(start)


def normalize_appointment_time(time_input: str) -> str:
    """Start time as stored on appointments: always HH:MM:SS"""
    start = extract_start_time(time_input)
    if start is None:
        raise ValueError("Appointment time is required")

    parts = start.split(":")
    if len(parts) == 2:
        parts.append("00")
    hour, minute, second = (int(p) for p in parts)
    if hour > 23 or minute > 59 or second > 59:
        raise ValueError(f"Unrecognized time: {time_input!r}")
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def normalize_appointment_date(value: Union[str, date, datetime, None]) -> date:
    """
    Normalize a booking date to a calendar day.

    Plain "YYYY-MM-DD" strings map to exactly that day regardless of server
    timezone. Timestamps with an offset are converted to UTC first.

    Raises:
        ValueError: If the value cannot be parsed as a date
    """
    if value is None or value == "":
        raise ValueError("Appointment date is required")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            parsed = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            try:
                parsed = date_parser.parse(text)
            except (ValueError, OverflowError) as e:
                raise ValueError("Invalid date format. Please provide date in YYYY-MM-DD format") from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def strip_time_part(value: str) -> str:
    """Keep only the date part of an ISO datetime query value"""
    return value.split("T")[0] if "T" in value else value
