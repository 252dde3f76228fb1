"""
Name: Complaint Manager Tests

Responsibilities:
  - Full complaint lifecycle through the client against the in-process API
  - Concurrent reviewers: exactly one wins, the other sees StaleStateError
  - Local refusals (terminal state, role, payload) never reach the network
  - A 401 from the API expires the local session
"""

import asyncio

import pytest
from helpers import PASSWORD

from rentalhub.client import (
    AccessGate,
    ComplaintManager,
    InMemoryCredentialStore,
    SessionStore,
)
from rentalhub.crosscutting.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StaleStateError,
    ValidationError,
)
from rentalhub.domain.entities import ComplaintPriority, ComplaintStatus

pytestmark = pytest.mark.unit

REPORT = {
    "category": "item_issue_not_claim",
    "title": "Tent poles bent",
    "details": "Two of the four poles arrived bent and unusable.",
}


@pytest.fixture
def login_as(asgi_api, accounts):
    async def _login(email: str):
        creds = InMemoryCredentialStore()
        api = asgi_api(creds)
        store = SessionStore(api, creds)
        await store.login(email, PASSWORD)
        return ComplaintManager(api, AccessGate(store), store), store

    return _login


async def test_full_lifecycle(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")

    complaint = await renter.submit(**REPORT, subject_rental_id=77)
    assert complaint.status == ComplaintStatus.SUBMITTED
    assert complaint.complainant_id == 1
    assert complaint.subject_fields()["subject_rental_id"] == 77

    reviewing = await staff.begin_review(complaint)
    assert reviewing.status == ComplaintStatus.UNDER_REVIEW
    assert reviewing.handler_id == 9
    assert reviewing.updated_at > complaint.updated_at

    resolved = await staff.resolve(
        reviewing, "Replacement poles shipped.", handler_id=9
    )
    assert resolved.status == ComplaintStatus.RESOLVED
    assert resolved.resolution_notes == "Replacement poles shipped."

    closed = await staff.close(resolved)
    assert closed.status == ComplaintStatus.CLOSED
    assert closed.closed_at is not None

    with pytest.raises(InvalidTransitionError):
        await staff.reject(closed, "Too late.")
    with pytest.raises(InvalidTransitionError):
        await renter.withdraw(closed)

    seen_by_renter = await renter.get(complaint.id)
    assert seen_by_renter.status == ComplaintStatus.CLOSED

    events = await staff.history(complaint.id)
    assert len(events) == 4
    assert all(e["action"].startswith("complaints.") for e in events)


async def test_concurrent_reviewers_one_wins(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")
    admin, _ = await login_as("admin@example.com")
    complaint = await renter.submit(**REPORT)

    outcomes = await asyncio.gather(
        staff.begin_review(complaint),
        admin.begin_review(complaint),
        return_exceptions=True,
    )

    stale = [o for o in outcomes if isinstance(o, StaleStateError)]
    won = [o for o in outcomes if not isinstance(o, BaseException)]
    assert len(stale) == 1
    assert len(won) == 1
    assert won[0].status == ComplaintStatus.UNDER_REVIEW

    current = await renter.get(complaint.id)
    assert current.handler_id == won[0].handler_id


async def test_concurrent_resolve_and_reject_one_wins(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")
    admin, _ = await login_as("admin@example.com")
    reviewing = await staff.begin_review(await renter.submit(**REPORT))

    outcomes = await asyncio.gather(
        staff.resolve(reviewing, "Refund issued."),
        admin.reject(reviewing, "No evidence provided."),
        return_exceptions=True,
    )

    assert sum(isinstance(o, StaleStateError) for o in outcomes) == 1
    final = await renter.get(reviewing.id)
    assert final.status in {ComplaintStatus.RESOLVED, ComplaintStatus.REJECTED}
    assert final.handler_id == 9


async def test_per_complaint_locks_are_released(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")
    complaint = await renter.submit(**REPORT)

    outcomes = await asyncio.gather(
        staff.begin_review(complaint),
        staff.set_priority(complaint, ComplaintPriority.HIGH),
        return_exceptions=True,
    )

    assert sum(isinstance(o, StaleStateError) for o in outcomes) == 1
    assert staff._locks == {}
    assert staff._lock_users == {}


async def test_terminal_complaint_is_refused_locally(login_as):
    renter, _ = await login_as("renter@example.com")
    complaint = await renter.submit(**REPORT)
    withdrawn = await renter.withdraw(complaint)
    assert withdrawn.status == ComplaintStatus.WITHDRAWN

    with pytest.raises(InvalidTransitionError):
        await renter.withdraw(withdrawn)

    # The server still holds the withdrawn version; nothing else was written.
    assert (await renter.get(complaint.id)).updated_at == withdrawn.updated_at


async def test_renter_cannot_review_and_staff_cannot_withdraw(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")
    complaint = await renter.submit(**REPORT)

    with pytest.raises(AuthorizationError):
        await renter.begin_review(complaint)
    with pytest.raises(AuthorizationError):
        await staff.withdraw(complaint)


async def test_resolve_without_notes_is_refused_locally(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")
    reviewing = await staff.begin_review(await renter.submit(**REPORT))

    with pytest.raises(ValidationError):
        await staff.resolve(reviewing, "   ")


async def test_submit_validates_locally(login_as):
    renter, _ = await login_as("renter@example.com")

    with pytest.raises(ValidationError) as exc_info:
        await renter.submit(
            "not_a_category",
            "",
            "details",
            subject_user_id=2,
            subject_product_id=3,
        )

    fields = {e["field"] for e in exc_info.value.errors}
    assert fields == {"category", "title", "subject"}


async def test_staff_cannot_submit(login_as):
    staff, _ = await login_as("staff@example.com")
    with pytest.raises(AuthorizationError):
        await staff.submit(**REPORT)


async def test_list_is_scoped_and_paginated(login_as):
    renter, _ = await login_as("renter@example.com")
    other, _ = await login_as("other@example.com")
    staff, _ = await login_as("staff@example.com")
    for _ in range(3):
        await renter.submit(**REPORT)
    await other.submit(**REPORT)

    mine = await renter.list_complaints(per_page=2)
    assert len(mine.items) == 2
    assert mine.meta.total == 3
    assert mine.meta.last_page == 2
    assert all(c.complainant_id == 1 for c in mine.items)

    everything = await staff.list_complaints()
    assert everything.meta.total == 4

    submitted = await staff.list_complaints(status="submitted", page=1)
    assert len(submitted.items) == 4


async def test_foreign_complaint_is_not_found(login_as):
    renter, _ = await login_as("renter@example.com")
    other, _ = await login_as("other@example.com")
    complaint = await renter.submit(**REPORT)

    with pytest.raises(NotFoundError):
        await other.get(complaint.id)


async def test_history_requires_staff_capability(login_as):
    renter, _ = await login_as("renter@example.com")
    complaint = await renter.submit(**REPORT)
    with pytest.raises(AuthorizationError):
        await renter.history(complaint.id)


async def test_set_priority(login_as):
    renter, _ = await login_as("renter@example.com")
    staff, _ = await login_as("staff@example.com")
    complaint = await renter.submit(**REPORT)

    urgent = await staff.set_priority(complaint, "high")
    assert urgent.priority == ComplaintPriority.HIGH
    assert urgent.status == ComplaintStatus.SUBMITTED

    with pytest.raises(StaleStateError):
        await staff.set_priority(complaint, ComplaintPriority.LOW)
    with pytest.raises(ValidationError):
        await staff.set_priority(urgent, "whenever")


async def test_rejected_token_expires_session(login_as):
    renter, store = await login_as("renter@example.com")
    store._credentials.save("forged.token.value")

    with pytest.raises(AuthenticationError):
        await renter.list_complaints()

    assert store.identity is None
    assert isinstance(store.session.error, AuthenticationError)
