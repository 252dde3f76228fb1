"""
Name: Complaint Endpoint Tests

Responsibilities:
  - Validate submit/list/get/history/patch over HTTP
  - Validate RFC7807 codes: 404 for foreign complaints, 409 STALE_STATE and
    INVALID_TRANSITION, 422 for malformed payloads
"""

import pytest
from helpers import login_headers

pytestmark = pytest.mark.unit

PAYLOAD = {
    "category": "item_issue_not_claim",
    "title": "Drill battery missing",
    "details": "The listing said two batteries, only one was in the box.",
    "subject_product_id": 42,
}


@pytest.fixture
def renter(client, accounts):
    return login_headers(client, "renter@example.com")


@pytest.fixture
def staff(client, accounts):
    return login_headers(client, "staff@example.com")


def _submit(client, headers, **overrides):
    response = client.post("/complaints", json={**PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_complaints_require_authentication(client):
    assert client.get("/complaints").status_code == 401


def test_submit_returns_server_assigned_fields(client, renter):
    body = _submit(client, renter, status="closed")

    assert body["id"] == 1
    assert body["status"] == "submitted"
    assert body["complainant_id"] == 1
    assert body["handler_id"] is None
    assert body["subject_product_id"] == 42
    assert body["priority"] == "medium"


def test_submit_validation_problem(client, renter):
    response = client.post(
        "/complaints", json={**PAYLOAD, "category": "nope"}, headers=renter
    )
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert any(e.get("loc") == ["body", "category"] for e in body["errors"])


def test_staff_cannot_submit(client, staff):
    response = client.post("/complaints", json=PAYLOAD, headers=staff)
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_list_is_paginated_and_scoped(client, accounts, renter, staff):
    other = login_headers(client, "other@example.com")
    for _ in range(3):
        _submit(client, renter)
    _submit(client, other)

    page = client.get("/complaints?per_page=2&page=2", headers=renter).json()
    assert page["meta"] == {
        "total": 3,
        "current_page": 2,
        "per_page": 2,
        "last_page": 2,
    }
    assert len(page["data"]) == 1

    everything = client.get("/complaints", headers=staff).json()
    assert everything["meta"]["total"] == 4

    filtered = client.get("/complaints?status=under_review", headers=staff).json()
    assert filtered["data"] == []


def test_foreign_complaint_is_404(client, accounts, renter):
    complaint = _submit(client, renter)
    other = login_headers(client, "other@example.com")

    response = client.get(f"/complaints/{complaint['id']}", headers=other)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_review_flow_with_stale_and_invalid_conflicts(client, renter, staff):
    complaint = _submit(client, renter)
    url = f"/complaints/{complaint['id']}"

    reviewing = client.patch(
        url,
        json={"action": "begin_review", "expected_updated_at": complaint["updated_at"]},
        headers=staff,
    )
    assert reviewing.status_code == 200
    assert reviewing.json()["handler_id"] == 9

    stale = client.patch(
        url,
        json={"action": "begin_review", "expected_updated_at": complaint["updated_at"]},
        headers=staff,
    )
    assert stale.status_code == 409
    assert stale.json()["code"] == "STALE_STATE"

    fresh = reviewing.json()
    invalid = client.patch(
        url,
        json={"action": "close", "expected_updated_at": fresh["updated_at"]},
        headers=staff,
    )
    assert invalid.status_code == 409
    assert invalid.json()["code"] == "INVALID_TRANSITION"

    no_notes = client.patch(
        url,
        json={"action": "resolve", "expected_updated_at": fresh["updated_at"]},
        headers=staff,
    )
    assert no_notes.status_code == 422

    resolved = client.patch(
        url,
        json={
            "action": "resolve",
            "notes": "Second battery shipped",
            "expected_updated_at": fresh["updated_at"],
        },
        headers=staff,
    )
    assert resolved.status_code == 200
    assert resolved.json()["resolution_notes"] == "Second battery shipped"

    history = client.get(f"{url}/history", headers=staff).json()
    assert [e["action"] for e in history["events"]] == [
        "complaints.submit",
        "complaints.begin_review",
        "complaints.resolve",
    ]


def test_history_forbidden_for_ordinary_user(client, renter):
    complaint = _submit(client, renter)
    response = client.get(f"/complaints/{complaint['id']}/history", headers=renter)
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_history_requires_staff_role_at_the_edge(client, accounts, renter):
    complaint = _submit(client, renter)
    url = f"/complaints/{complaint['id']}/history"

    assert client.get(url).status_code == 401

    admin = login_headers(client, "admin@example.com")
    response = client.get(url, headers=admin)
    assert response.status_code == 200
    assert [e["action"] for e in response.json()["events"]] == ["complaints.submit"]


def test_owner_withdraws_and_staff_cannot(client, renter, staff):
    complaint = _submit(client, renter)
    url = f"/complaints/{complaint['id']}"

    forbidden = client.patch(url, json={"action": "withdraw"}, headers=staff)
    assert forbidden.status_code == 403

    withdrawn = client.patch(url, json={"action": "withdraw"}, headers=renter)
    assert withdrawn.status_code == 200
    assert withdrawn.json()["status"] == "withdrawn"


def test_priority_patch(client, renter, staff):
    complaint = _submit(client, renter)
    url = f"/complaints/{complaint['id']}"

    response = client.patch(url, json={"priority": "urgent"}, headers=staff)
    assert response.status_code == 200
    assert response.json()["priority"] == "urgent"

    denied = client.patch(url, json={"priority": "low"}, headers=renter)
    assert denied.status_code == 403


def test_patch_requires_exactly_one_of_action_or_priority(client, renter, staff):
    complaint = _submit(client, renter)
    url = f"/complaints/{complaint['id']}"

    both = client.patch(
        url, json={"action": "begin_review", "priority": "high"}, headers=staff
    )
    neither = client.patch(url, json={}, headers=staff)
    assert both.status_code == neither.status_code == 422
