"""
Integration tests for volunteer applications, approval and bulk actions.
"""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from charity_hub.db.readers.applications import get_application
from charity_hub.db.readers.notifications import list_notifications_by_status
from charity_hub.db.readers.users import get_user_by_email, get_user_by_id, get_volunteer_profile


@pytest.fixture
def admin_headers(make_user: Any, auth_headers: Any) -> dict[str, str]:
    return auth_headers(make_user(role="admin"))


@pytest.fixture
def submit(client: TestClient) -> Any:
    """Submit an application and return its id."""

    def _submit(email: str, **overrides: Any) -> int:
        payload = {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": email,
            "skills": "Cooking, Driving",
            "availability": "Weekends",
            "terms_accepted": True,
        }
        payload.update(overrides)
        response = client.post("/api/v1/volunteer/applications", json=payload)
        assert response.status_code == 201, response.text
        return int(response.json()["application_id"])

    return _submit


@pytest.mark.integration
def test_submit_requires_terms(client: TestClient) -> None:
    """Test that applications without accepted terms are refused."""
    response = client.post(
        "/api/v1/volunteer/applications",
        json={
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@charityhub.org",
            "terms_accepted": False,
        },
    )

    assert response.status_code == 400


@pytest.mark.integration
def test_submit_duplicate_email(client: TestClient, submit: Any) -> None:
    """Test that one email can only apply once."""
    submit("ada@charityhub.org")

    response = client.post(
        "/api/v1/volunteer/applications",
        json={
            "first_name": "Ada",
            "last_name": "Again",
            "email": "ada@charityhub.org",
            "terms_accepted": True,
        },
    )

    assert response.status_code == 409


@pytest.mark.integration
def test_approve_creates_volunteer(
    client: TestClient, engine: Engine, admin_headers: dict[str, str], submit: Any
) -> None:
    """Test that approval creates the user and profile and notifies the applicant."""
    application_id = submit("ada@charityhub.org")

    response = client.post(
        f"/api/v1/admin/volunteer/applications/{application_id}/approve", headers=admin_headers
    )

    assert response.status_code == 200
    user_id = response.json()["user_id"]
    with engine.connect() as conn:
        user = get_user_by_id(conn, user_id)
        profile = get_volunteer_profile(conn, user_id)
        application = get_application(conn, application_id)
        sent = list_notifications_by_status(conn, "sent")
    assert user["role"] == "volunteer"
    assert profile["skills"] == "Cooking, Driving"
    assert profile["application_id"] == application_id
    assert application["status"] == "approved"
    assert [n["template"] for n in sent] == ["volunteer_approved"]
    assert sent[0]["context"]["temporary_password"]


@pytest.mark.integration
def test_approve_promotes_existing_user(
    client: TestClient,
    engine: Engine,
    admin_headers: dict[str, str],
    make_user: Any,
    submit: Any,
) -> None:
    """Test that a visitor who applies keeps their account and becomes a volunteer."""
    visitor = make_user(role="visitor", email="visitor@charityhub.org")
    application_id = submit("visitor@charityhub.org")

    response = client.post(
        f"/api/v1/admin/volunteer/applications/{application_id}/approve", headers=admin_headers
    )

    assert response.json()["user_id"] == visitor["id"]
    with engine.connect() as conn:
        assert get_user_by_email(conn, "visitor@charityhub.org")["role"] == "volunteer"


@pytest.mark.integration
def test_approve_twice_is_conflict(
    client: TestClient, admin_headers: dict[str, str], submit: Any
) -> None:
    """Test that approving an approved application is refused."""
    application_id = submit("ada@charityhub.org")
    url = f"/api/v1/admin/volunteer/applications/{application_id}/approve"
    client.post(url, headers=admin_headers)

    response = client.post(url, headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "Application already approved"


@pytest.mark.integration
def test_reject_application(
    client: TestClient, engine: Engine, admin_headers: dict[str, str], submit: Any
) -> None:
    """Test that rejection stores the reason and writes an audit entry."""
    application_id = submit("ada@charityhub.org")

    response = client.post(
        f"/api/v1/admin/volunteer/applications/{application_id}/reject",
        headers=admin_headers,
        json={"reason": "No availability this season"},
    )

    assert response.status_code == 200
    with engine.connect() as conn:
        application = get_application(conn, application_id)
    assert application["status"] == "rejected"
    assert application["rejection_reason"] == "No availability this season"

    logs = client.get("/api/v1/admin/audit-logs", headers=admin_headers).json()
    assert logs["audit_logs"][0]["action"] == "reject_volunteer"


@pytest.mark.integration
def test_list_applications_by_status(
    client: TestClient, admin_headers: dict[str, str], submit: Any
) -> None:
    """Test the status filter on the application list."""
    first = submit("one@charityhub.org")
    submit("two@charityhub.org")
    client.post(f"/api/v1/admin/volunteer/applications/{first}/approve", headers=admin_headers)

    pending = client.get(
        "/api/v1/admin/volunteer/applications", headers=admin_headers, params={"status": "pending"}
    ).json()

    assert pending["total"] == 1
    assert pending["applications"][0]["email"] == "two@charityhub.org"


@pytest.mark.integration
def test_bulk_approve_reports_missing_ids(
    client: TestClient, admin_headers: dict[str, str], submit: Any
) -> None:
    """Test that one bad id fails alone while the others succeed."""
    valid = submit("ada@charityhub.org")

    response = client.post(
        "/api/v1/admin/volunteer/bulk",
        headers=admin_headers,
        json={"action": "approve", "volunteer_ids": [valid, 9999]},
    )

    assert response.status_code == 200
    assert response.json() == {
        "action": "approve",
        "successful": 1,
        "failed": [{"volunteer_id": 9999, "reason": "Application not found"}],
    }
    logs = client.get(
        "/api/v1/admin/audit-logs",
        headers=admin_headers,
        params={"entity_type": "VolunteerApplication"},
    ).json()
    assert [entry["action"] for entry in logs["audit_logs"]] == ["bulk_approve"]


@pytest.mark.integration
def test_bulk_approve_skips_non_pending(
    client: TestClient, admin_headers: dict[str, str], submit: Any
) -> None:
    """Test that bulk approve only accepts pending applications."""
    application_id = submit("ada@charityhub.org")
    client.post(
        f"/api/v1/admin/volunteer/applications/{application_id}/reject",
        headers=admin_headers,
        json={},
    )

    response = client.post(
        "/api/v1/admin/volunteer/bulk",
        headers=admin_headers,
        json={"action": "approve", "volunteer_ids": [application_id]},
    )

    assert response.json()["failed"] == [
        {"volunteer_id": application_id, "reason": "Application not in pending status"}
    ]


@pytest.mark.integration
def test_bulk_archive_deactivates_volunteers(
    client: TestClient, engine: Engine, admin_headers: dict[str, str], make_user: Any
) -> None:
    """Test that archived volunteers become inactive and drop off the volunteer list."""
    keep, archive = make_user(), make_user()

    response = client.post(
        "/api/v1/admin/volunteer/bulk",
        headers=admin_headers,
        json={"action": "archive", "volunteer_ids": [archive["id"]], "notes": "Moved away"},
    )

    assert response.json()["successful"] == 1
    with engine.connect() as conn:
        assert get_user_by_id(conn, archive["id"])["status"] == "inactive"
    volunteers = client.get("/api/v1/admin/volunteers", headers=admin_headers).json()
    assert [v["id"] for v in volunteers["volunteers"]] == [keep["id"]]


@pytest.mark.integration
def test_bulk_delete_requires_override(
    client: TestClient, admin_headers: dict[str, str], make_user: Any
) -> None:
    """Test that bulk delete is refused without override confirmation."""
    volunteer = make_user()

    refused = client.post(
        "/api/v1/admin/volunteer/bulk",
        headers=admin_headers,
        json={"action": "delete", "volunteer_ids": [volunteer["id"]]},
    )
    allowed = client.post(
        "/api/v1/admin/volunteer/bulk",
        headers=admin_headers,
        json={"action": "delete", "volunteer_ids": [volunteer["id"]], "override_rules": True},
    )

    assert refused.status_code == 400
    assert allowed.json()["successful"] == 1


@pytest.mark.integration
def test_bulk_unknown_action(client: TestClient, admin_headers: dict[str, str]) -> None:
    """Test that an unknown bulk action is a 400."""
    response = client.post(
        "/api/v1/admin/volunteer/bulk",
        headers=admin_headers,
        json={"action": "promote", "volunteer_ids": [1]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid action"


@pytest.mark.integration
def test_admin_dashboard_counts(
    client: TestClient, admin_headers: dict[str, str], make_user: Any, make_shift: Any, submit: Any
) -> None:
    """Test the headline counts on the admin dashboard."""
    submit("ada@charityhub.org")
    make_user()
    make_shift()

    stats = client.get("/api/v1/admin/dashboard/stats", headers=admin_headers).json()

    assert stats["pending_applications"] == 1
    assert stats["active_volunteers"] == 1
    assert stats["upcoming_shifts"] == 1
    assert stats["open_tickets"] == 0
