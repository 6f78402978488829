"""
Integration tests for admin shift operations against SQLite.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any
from unittest.mock import patch

import pytest
from sqlalchemy.engine import Engine

from charity_hub.errors import NotFoundError
from charity_hub.schemas.shifts import ShiftUpdatePayload
from charity_hub.services.shift_admin import apply_shift_update, create_shift


def _kitchen_shift(day: date) -> dict[str, Any]:
    return {
        "date": day,
        "start_time": time(9, 0),
        "end_time": time(12, 0),
        "location": "Community Kitchen",
        "role": "Cooking",
        "type": "fixed",
        "max_volunteers": 1,
    }


@pytest.mark.integration
def test_create_shift_returns_row(engine: Engine, shift_day: date) -> None:
    """Test that a created shift is read back with its id."""
    with engine.begin() as conn:
        shift = create_shift(conn, _kitchen_shift(shift_day))

    assert shift["id"] > 0
    assert shift["location"] == "Community Kitchen"


@pytest.mark.integration
def test_create_shift_missing_after_insert(engine: Engine, shift_day: date) -> None:
    """Test that a shift vanishing before it is read back raises NotFoundError."""
    with patch("charity_hub.services.shift_admin.get_shift", return_value=None):
        with pytest.raises(NotFoundError):
            with engine.begin() as conn:
                create_shift(conn, _kitchen_shift(shift_day))


@pytest.mark.integration
def test_update_shift_deleted_meanwhile(engine: Engine, make_shift: Any) -> None:
    """Test that updating a shift removed mid-request raises NotFoundError."""
    shift = make_shift()

    with patch("charity_hub.services.shift_admin.get_shift", return_value=None):
        with pytest.raises(NotFoundError) as exc_info:
            with engine.begin() as conn:
                apply_shift_update(conn, shift, ShiftUpdatePayload(location="Annex"))

    assert exc_info.value.message == "shift not found"
