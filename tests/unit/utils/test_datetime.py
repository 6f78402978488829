"""
Unit tests for the datetime helpers and support reference formats.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from charity_hub.services.support import generate_help_reference, generate_ticket_number
from charity_hub.utils.datetime import at_utc, format_clock, hours_between, parse_clock, parse_day


@pytest.mark.unit
def test_at_utc_is_timezone_aware() -> None:
    """Test that shift date and time combine into an aware UTC datetime."""
    combined = at_utc(date(2025, 6, 1), time(9, 30))

    assert combined == datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.parametrize("value", ["9am", "25:00", "", "12:60"])
def test_parse_clock_rejects_bad_values(value: str) -> None:
    """Test that non HH:MM strings raise ValueError."""
    with pytest.raises(ValueError):
        parse_clock(value)


@pytest.mark.unit
def test_parse_helpers_accept_padding() -> None:
    """Test that surrounding whitespace is ignored."""
    assert parse_clock(" 07:05 ") == time(7, 5)
    assert parse_day("2025-02-28 ") == date(2025, 2, 28)


@pytest.mark.unit
def test_hours_between_and_format() -> None:
    """Test range length and HH:MM formatting."""
    assert hours_between(time(8, 0), time(10, 30)) == 2.5
    assert format_clock(time(8, 5)) == "08:05"


@pytest.mark.unit
def test_reference_formats() -> None:
    """Test the ticket number and help reference layouts."""
    now = datetime(2025, 3, 4, tzinfo=timezone.utc)

    ticket = generate_ticket_number(now)
    reference = generate_help_reference(now)

    assert ticket.startswith("TKT-20250304-")
    assert len(ticket.rsplit("-", 1)[1]) == 6
    assert reference.startswith("HR-20250304-")
    assert len(reference.rsplit("-", 1)[1]) == 4
