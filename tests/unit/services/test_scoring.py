"""
Unit tests for the pure helpers behind validation, recommendations and dashboards.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any

import pytest

from charity_hub.services.dashboard import impact_score, next_milestone, volunteer_level
from charity_hub.services.shift_signup import validate_flexible_time_selection
from charity_hub.services.shift_validation import (
    parse_shift_requirements,
    reliability_score,
    score_shift,
    skills_match,
    split_csv,
)
from charity_hub.utils.datetime import at_utc


def _shift(**overrides: Any) -> dict[str, Any]:
    shift = {
        "id": 1,
        "date": date(2030, 6, 10),
        "start_time": time(9, 0),
        "end_time": time(12, 0),
        "location": "Main Food Bank",
        "description": "Sorting",
        "role": "Food Distribution",
        "required_skills": None,
        "type": "fixed",
        "minimum_hours": 1.0,
        "maximum_hours": 4.0,
    }
    shift.update(overrides)
    return shift


@pytest.mark.unit
def test_split_csv_trims_and_drops_blanks() -> None:
    """Test that comma separated columns are split cleanly."""
    assert split_csv(" cooking, ,driving ,") == ["cooking", "driving"]
    assert split_csv(None) == []


@pytest.mark.unit
def test_skills_match_any_required_skill() -> None:
    """Test that one matching skill is enough and case is ignored."""
    assert skills_match("Cooking, First Aid", ["first aid", "forklift"]) is True
    assert skills_match("Cooking", ["forklift"]) is False
    assert skills_match(None, []) is True


@pytest.mark.unit
def test_reliability_score() -> None:
    """Test that reliability is the completed share, 100 with no history."""
    history = [{"status": "Completed"}, {"status": "Completed"}, {"status": "NoShow"}, {"status": "Cancelled"}]

    assert reliability_score(history) == 50.0
    assert reliability_score([]) == 100.0


@pytest.mark.unit
def test_requirements_for_driver_role() -> None:
    """Test that driver shifts need age 21 and a background check."""
    requirements = parse_shift_requirements(_shift(role="Driver", required_skills="Driving"))

    assert requirements.minimum_age == 21
    assert requirements.background_check is True
    assert requirements.skills == ["Driving"]


@pytest.mark.unit
def test_score_shift_adds_bonuses() -> None:
    """Test that skills, preferred role, urgency and a morning start all add points."""
    shift = _shift(required_skills="Sorting")
    now = at_utc(date(2030, 6, 9), time(9, 0))

    rec = score_shift(shift, "sorting, lifting", ["food distribution"], now)

    assert rec["score"] == 50 + 20 + 10 + 15 + 5
    assert rec["urgency"] == "urgent"
    assert rec["impact"] == "high"
    assert "Matches your skills" in rec["reasons"]


@pytest.mark.unit
def test_score_shift_plain_opportunity() -> None:
    """Test that a distant afternoon shift with no matches keeps the base score."""
    shift = _shift(role="Other", start_time=time(14, 0), end_time=time(16, 0))
    now = at_utc(date(2030, 5, 1), time(9, 0))

    rec = score_shift(shift, None, [], now)

    assert rec["score"] == 50
    assert rec["reasons"] == ["Available opportunity"]
    assert rec["urgency"] == "medium"
    assert rec["impact"] == "medium"


@pytest.mark.unit
@pytest.mark.parametrize(
    "start,bonus",
    [(time(8, 59), 0), (time(9, 0), 5), (time(12, 30), 5), (time(13, 0), 0)],
)
def test_score_shift_morning_window(start: time, bonus: int) -> None:
    """Test that any start hour from 09 through 12 earns the morning bonus."""
    shift = _shift(role="Other", start_time=start, end_time=time(14, 0))
    now = at_utc(date(2030, 5, 1), time(9, 0))

    rec = score_shift(shift, None, [], now)

    assert rec["score"] == 50 + bonus


@pytest.mark.unit
def test_flexible_selection_within_tolerance() -> None:
    """Test that a duration within six minutes of the range is accepted."""
    shift = _shift(type="flexible", start_time=time(8, 0), end_time=time(12, 0))

    assert validate_flexible_time_selection(shift, time(9, 0), time(10, 30), 1.45) is None
    assert (
        validate_flexible_time_selection(shift, time(9, 0), time(10, 30), 1.3)
        == "duration doesn't match selected time range"
    )


@pytest.mark.unit
def test_flexible_selection_maximum_hours() -> None:
    """Test that a commitment above the maximum is refused."""
    shift = _shift(type="flexible", start_time=time(8, 0), end_time=time(14, 0))

    assert (
        validate_flexible_time_selection(shift, time(8, 0), time(13, 0), 5.0)
        == "maximum commitment is 4.0 hours"
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "hours,level",
    [(0, "New Volunteer"), (20, "Regular Volunteer"), (55.5, "Active Volunteer"), (120, "Experienced Volunteer")],
)
def test_volunteer_level(hours: float, level: str) -> None:
    """Test the hour thresholds for volunteer levels."""
    assert volunteer_level(hours) == level


@pytest.mark.unit
def test_impact_score_is_capped() -> None:
    """Test that impact never exceeds five and is zero without reliability."""
    assert impact_score(100.0, 100) == 5.0
    assert impact_score(50.0, 10) == 3.5
    assert impact_score(0.0, 10) == 0.0


@pytest.mark.unit
def test_next_milestone_progress() -> None:
    """Test milestone names and progress at the thresholds."""
    assert next_milestone(0) == ("First Shift", 0)
    assert next_milestone(5) == ("Active Volunteer", 50)
    assert next_milestone(15) == ("Regular Volunteer", 50)
    assert next_milestone(35) == ("Community Champion", 50)
    assert next_milestone(60) == ("Leadership Badge", 85)
