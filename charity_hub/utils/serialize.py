"""Turn database rows into JSON-ready dicts with HH:MM wall-clock times."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from charity_hub.utils.datetime import format_clock


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return format_clock(value)
    return value


def serialize_row(row: dict[str, Any], exclude: tuple[str, ...] = ()) -> dict[str, Any]:
    """
    Convert a row dict so every value is JSON serialisable.

    Dates and datetimes become ISO strings and times become ``HH:MM``.
    """
    return {key: _plain(value) for key, value in row.items() if key not in exclude}


def shift_title(shift: dict[str, Any]) -> str:
    return f"{shift.get('role') or 'Volunteer Shift'} - {shift['location']}"


def serialize_shift(shift: dict[str, Any]) -> dict[str, Any]:
    body = serialize_row(shift)
    body["title"] = shift_title(shift)
    if shift.get("type") == "flexible":
        body["flexible_slots_available"] = max(
            0, shift["flexible_slots"] - shift["flexible_slots_used"]
        )
    return body
