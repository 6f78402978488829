"""
Integration tests for the volunteer shift endpoints.
"""

from __future__ import annotations

from datetime import time
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from charity_hub.db.readers.notifications import list_user_notifications


@pytest.fixture
def volunteer(make_user: Any) -> dict[str, Any]:
    return make_user(role="volunteer", skills="Sorting, Lifting", preferred_roles="Food Distribution")


@pytest.mark.integration
def test_signup_fixed_shift(
    client: TestClient,
    engine: Engine,
    volunteer: dict[str, Any],
    auth_headers: Any,
    make_shift: Any,
) -> None:
    """Test that signing up returns the assignment and queues a confirmation."""
    shift = make_shift()

    response = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=auth_headers(volunteer)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Successfully signed up for shift"
    assert body["shift"]["title"] == "Food Distribution - Main Food Bank"

    with engine.connect() as conn:
        notifications = list_user_notifications(conn, volunteer["id"])
    assert [n["template"] for n in notifications] == ["shift_signup_confirmation"]
    assert notifications[0]["status"] == "sent"


@pytest.mark.integration
def test_signup_survives_delivery_failure(
    client: TestClient,
    engine: Engine,
    volunteer: dict[str, Any],
    auth_headers: Any,
    make_shift: Any,
) -> None:
    """Test that a crashing mail relay leaves the booking and a pending outbox row."""
    shift = make_shift()

    with patch(
        "charity_hub.services.notifications._send", side_effect=RuntimeError("relay exploded")
    ):
        response = client.post(
            f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=auth_headers(volunteer)
        )

    assert response.status_code == 200
    with engine.connect() as conn:
        notifications = list_user_notifications(conn, volunteer["id"])
    assert notifications[0]["template"] == "shift_signup_confirmation"
    assert notifications[0]["status"] == "pending"


@pytest.mark.integration
def test_signup_infrastructure_error_is_500(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that an unexpected signup failure renders the standard error body."""
    shift = make_shift()

    with patch(
        "charity_hub.routes.volunteer_shifts.sign_up_for_shift",
        side_effect=RuntimeError("connection reset"),
    ):
        response = client.post(
            f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=auth_headers(volunteer)
        )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


@pytest.mark.integration
def test_signup_conflict_is_409_with_code(
    client: TestClient, make_user: Any, auth_headers: Any, make_shift: Any
) -> None:
    """Test that a taken fixed shift returns 409 and the rejection code."""
    shift = make_shift()
    client.post(f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=auth_headers(make_user()))

    response = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=auth_headers(make_user())
    )

    assert response.status_code == 409
    assert response.json()["code"] == "SHIFT_ALREADY_ASSIGNED"


@pytest.mark.integration
def test_signup_flexible_with_selection(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that the flexibleTime body books a custom range."""
    shift = make_shift(type="flexible", start_time=time(8, 0), end_time=time(12, 0))

    response = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/signup",
        headers=auth_headers(volunteer),
        json={"flexibleTime": {"startTime": "09:00", "endTime": "10:30", "duration": 1.5}},
    )

    assert response.status_code == 200
    assert response.json()["shift"]["customStartTime"] == "09:00"


@pytest.mark.integration
def test_signup_flexible_bad_duration_is_400(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that a duration mismatch is a 400 with INVALID_TIME_SELECTION."""
    shift = make_shift(type="flexible", start_time=time(8, 0), end_time=time(12, 0))

    response = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/signup",
        headers=auth_headers(volunteer),
        json={"flexibleTime": {"startTime": "09:00", "endTime": "10:30", "duration": 1.0}},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "duration doesn't match selected time range",
        "code": "INVALID_TIME_SELECTION",
    }


@pytest.mark.integration
def test_signup_requires_volunteer_role(
    client: TestClient, make_user: Any, auth_headers: Any, make_shift: Any
) -> None:
    """Test that visitors cannot book shifts."""
    shift = make_shift()

    response = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/signup",
        headers=auth_headers(make_user(role="visitor")),
    )

    assert response.status_code == 403


@pytest.mark.integration
def test_signup_unknown_shift(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any
) -> None:
    """Test that booking an unknown shift is a 404."""
    response = client.post("/api/v1/volunteer/shifts/999/signup", headers=auth_headers(volunteer))

    assert response.status_code == 404


@pytest.mark.integration
def test_cancel_then_list(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that a cancelled booking moves from assigned to history and the shift reopens."""
    headers = auth_headers(volunteer)
    shift = make_shift()
    client.post(f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=headers)

    assigned = client.get("/api/v1/volunteer/shifts/assigned", headers=headers).json()
    assert assigned["total"] == 1
    assert client.get("/api/v1/volunteer/shifts/available", headers=headers).json()["total"] == 0

    cancel = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/cancel",
        headers=headers,
        json={"reason": "Family emergency"},
    )
    assert cancel.status_code == 200

    assert client.get("/api/v1/volunteer/shifts/assigned", headers=headers).json()["total"] == 0
    history = client.get("/api/v1/volunteer/shifts/history", headers=headers).json()
    assert history["assignments"][0]["status"] == "Cancelled"
    available = client.get("/api/v1/volunteer/shifts/available", headers=headers).json()
    assert [s["id"] for s in available["shifts"]] == [shift["id"]]


@pytest.mark.integration
def test_cancel_without_booking_is_404(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that cancelling a shift you have not booked is a 404."""
    shift = make_shift()

    response = client.post(
        f"/api/v1/volunteer/shifts/{shift['id']}/cancel",
        headers=auth_headers(volunteer),
        json={"reason": "n/a"},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Shift assignment not found"


@pytest.mark.integration
def test_validate_shift_eligible(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that validation reports eligibility with requirements and stats."""
    shift = make_shift(required_skills="Sorting")

    response = client.get(
        f"/api/v1/volunteer/shifts/{shift['id']}/validate", headers=auth_headers(volunteer)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["shift_id"] == shift["id"]
    assert body["available"] is True
    assert body["volunteer_info"]["skills_match"] is True
    assert body["volunteer_info"]["reliability_score"] == 100.0


@pytest.mark.integration
def test_validate_shift_missing_skills(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that missing skills are explained with suggestions."""
    shift = make_shift(required_skills="Forklift")

    body = client.get(
        f"/api/v1/volunteer/shifts/{shift['id']}/validate", headers=auth_headers(volunteer)
    ).json()

    assert body["available"] is False
    assert body["reason"] == "You don't meet all requirements for this shift"
    assert "- Forklift" in body["suggestions"]


@pytest.mark.integration
def test_validate_shift_open_shift_limit(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that a fourth concurrent booking is flagged by validation."""
    headers = auth_headers(volunteer)
    for hour in (6, 10, 14):
        shift = make_shift(start_time=time(hour, 0), end_time=time(hour + 2, 0))
        client.post(f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=headers)
    extra = make_shift(start_time=time(18, 0), end_time=time(20, 0))

    body = client.get(f"/api/v1/volunteer/shifts/{extra['id']}/validate", headers=headers).json()

    assert body["available"] is False
    assert "maximum number of concurrent shifts (3)" in body["reason"]


@pytest.mark.integration
def test_recommendations_rank_matching_shifts_first(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that skill and role matches push a shift to the top."""
    plain = make_shift(role="Other", start_time=time(15, 0), end_time=time(17, 0))
    matching = make_shift(required_skills="Sorting", start_time=time(9, 0), end_time=time(11, 0))

    response = client.get("/api/v1/volunteer/shifts/recommendations", headers=auth_headers(volunteer))

    assert response.status_code == 200
    ranked = [rec["shift"]["id"] for rec in response.json()["recommendations"]]
    assert ranked == [matching["id"], plain["id"]]


@pytest.mark.integration
def test_volunteer_dashboard(
    client: TestClient, volunteer: dict[str, Any], auth_headers: Any, make_shift: Any
) -> None:
    """Test that the dashboard counts upcoming bookings for a new volunteer."""
    headers = auth_headers(volunteer)
    shift = make_shift()
    client.post(f"/api/v1/volunteer/shifts/{shift['id']}/signup", headers=headers)

    response = client.get("/api/v1/volunteer/dashboard/stats", headers=headers)

    assert response.status_code == 200
    stats = response.json()
    assert stats["upcoming_shifts"] == 1
    assert stats["shifts_completed"] == 0
    assert stats["level"] == "New Volunteer"
    assert stats["next_milestone"] == "First Shift"
