"""
Name: Complaint Use Case Tests

Responsibilities:
  - Submit: role gate, validation, server-assigned state
  - List/Get: visibility (own vs staff), pagination, status filter
  - Transition: stale check before transition check, CAS, audit trail
  - Priority: staff only, terminal refusal
"""

from dataclasses import replace
from datetime import timedelta

import pytest
from helpers import make_user

from rentalhub.application.usecases import (
    ComplaintErrorCode,
    GetComplaintHistoryUseCase,
    GetComplaintUseCase,
    ListComplaintsUseCase,
    SetComplaintPriorityUseCase,
    SubmitComplaintInput,
    SubmitComplaintUseCase,
    TransitionComplaintInput,
    TransitionComplaintUseCase,
)
from rentalhub.domain.entities import (
    ComplaintPriority,
    ComplaintStatus,
    SubjectKind,
)
from rentalhub.identity.users import UserRole
from rentalhub.infrastructure.repositories import (
    InMemoryAuditEventRepository,
    InMemoryComplaintRepository,
    InMemoryUserRepository,
)

pytestmark = pytest.mark.unit

RENTER = make_user(1, "renter@example.com")
OTHER = make_user(2, "other@example.com")
STAFF = make_user(9, "staff@example.com", UserRole.STAFF)
ADMIN = make_user(10, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def repos():
    users = InMemoryUserRepository()
    for user in (RENTER, OTHER, STAFF, ADMIN):
        users.add(user)
    return users, InMemoryComplaintRepository(), InMemoryAuditEventRepository()


def _submit(complaints, audit, actor=RENTER, **overrides):
    data = dict(category="user_behavior", title="Rude owner", details="Shouted at me")
    data.update(overrides)
    return SubmitComplaintUseCase(complaints, audit).execute(
        actor.to_identity(), SubmitComplaintInput(**data)
    )


def _transition(repos, actor, complaint, action, **kwargs):
    users, complaints, audit = repos
    return TransitionComplaintUseCase(complaints, users, audit).execute(
        actor.to_identity(),
        TransitionComplaintInput(
            complaint_id=complaint.id,
            action=action,
            expected_updated_at=kwargs.pop("expected", complaint.updated_at),
            **kwargs,
        ),
    )


# =============================================================================
# Submit
# =============================================================================


def test_submit_creates_submitted_complaint_with_subject(repos):
    _, complaints, audit = repos
    result = _submit(complaints, audit, subject_product_id=55, title="  Broken  ")

    assert result.error is None
    complaint = result.complaint
    assert complaint.id == 1
    assert complaint.status == ComplaintStatus.SUBMITTED
    assert complaint.handler_id is None
    assert complaint.title == "Broken"
    assert complaint.subject.kind == SubjectKind.PRODUCT
    assert complaint.created_at == complaint.updated_at
    assert [e.action for e in audit.list_events()] == ["complaints.submit"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"category": "spam"},
        {"title": "   "},
        {"details": ""},
        {"title": "x" * 201},
        {"subject_user_id": 3, "subject_rental_id": 4},
    ],
)
def test_submit_validation_errors(repos, overrides):
    _, complaints, audit = repos
    result = _submit(complaints, audit, **overrides)
    assert result.error.code == ComplaintErrorCode.VALIDATION_ERROR
    assert complaints.count_complaints() == 0


def test_staff_cannot_submit(repos):
    _, complaints, audit = repos
    result = _submit(complaints, audit, actor=STAFF)
    assert result.error.code == ComplaintErrorCode.FORBIDDEN


# =============================================================================
# List / Get
# =============================================================================


def test_ordinary_user_lists_only_own_complaints(repos):
    _, complaints, audit = repos
    for _ in range(3):
        _submit(complaints, audit)
    _submit(complaints, audit, actor=OTHER)

    use_case = ListComplaintsUseCase(complaints, default_per_page=2)
    own = use_case.execute(RENTER.to_identity())
    assert own.total == 3
    assert len(own.items) == 2
    assert all(c.complainant_id == RENTER.id for c in own.items)
    # newest first
    assert own.items[0].id > own.items[1].id

    everything = use_case.execute(STAFF.to_identity(), per_page=10)
    assert everything.total == 4


def test_list_filters_by_status_and_rejects_unknown(repos):
    _, complaints, audit = repos
    _submit(complaints, audit)
    use_case = ListComplaintsUseCase(complaints)

    assert use_case.execute(STAFF.to_identity(), status="closed").total == 0
    assert use_case.execute(STAFF.to_identity(), status="submitted").total == 1
    bad = use_case.execute(STAFF.to_identity(), status="archived")
    assert bad.error.code == ComplaintErrorCode.VALIDATION_ERROR


def test_list_clamps_per_page(repos):
    _, complaints, audit = repos
    _submit(complaints, audit)
    result = ListComplaintsUseCase(complaints, max_per_page=5).execute(
        STAFF.to_identity(), page=0, per_page=500
    )
    assert (result.page, result.per_page) == (1, 5)


def test_foreign_complaint_is_not_found_for_ordinary_user(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    use_case = GetComplaintUseCase(complaints)

    assert use_case.execute(OTHER.to_identity(), complaint.id).error.code == (
        ComplaintErrorCode.NOT_FOUND
    )
    assert use_case.execute(STAFF.to_identity(), complaint.id).complaint == complaint


# =============================================================================
# Transitions
# =============================================================================


def test_full_review_path_and_history(repos):
    users, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint

    reviewing = _transition(repos, STAFF, complaint, "begin_review").complaint
    assert reviewing.handler_id == STAFF.id

    resolved = _transition(
        repos, ADMIN, reviewing, "resolve", notes="Refund issued", handler_id=9
    ).complaint
    assert resolved.status == ComplaintStatus.RESOLVED
    assert resolved.handler_id == 9

    closed = _transition(repos, STAFF, resolved, "close").complaint
    assert closed.closed_at is not None

    history = GetComplaintHistoryUseCase(complaints, audit).execute(
        STAFF.to_identity(), complaint.id
    )
    assert [e.action for e in history.events] == [
        "complaints.submit",
        "complaints.begin_review",
        "complaints.resolve",
        "complaints.close",
    ]
    assert history.events[1].metadata == {
        "from": "submitted",
        "to": "under_review",
        "handler_id": 9,
    }


def test_history_is_staff_only(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    result = GetComplaintHistoryUseCase(complaints, audit).execute(
        RENTER.to_identity(), complaint.id
    )
    assert result.error.code == ComplaintErrorCode.FORBIDDEN


def test_stale_version_wins_over_invalid_transition(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    _transition(repos, STAFF, complaint, "begin_review")

    # R: "close" no existe desde submitted NI desde under_review, pero la
    # versión leída está vieja: el caller debe re-leer primero.
    result = _transition(repos, STAFF, complaint, "close")
    assert result.error.code == ComplaintErrorCode.STALE_STATE


def test_second_reviewer_with_same_version_gets_stale(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint

    first = _transition(repos, STAFF, complaint, "begin_review")
    second = _transition(repos, ADMIN, complaint, "begin_review")

    assert first.error is None
    assert second.error.code == ComplaintErrorCode.STALE_STATE
    assert complaints.get_complaint(complaint.id).handler_id == STAFF.id


def test_cas_failure_is_reported_as_stale(repos, monkeypatch):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    monkeypatch.setattr(complaints, "update_if_unchanged", lambda *a, **k: False)

    result = _transition(repos, STAFF, complaint, "begin_review")
    assert result.error.code == ComplaintErrorCode.STALE_STATE


@pytest.mark.parametrize(
    "actor, action, kwargs, code",
    [
        (RENTER, "close", {}, ComplaintErrorCode.INVALID_TRANSITION),
        (STAFF, "withdraw", {}, ComplaintErrorCode.FORBIDDEN),
        (RENTER, "begin_review", {}, ComplaintErrorCode.FORBIDDEN),
        (OTHER, "withdraw", {}, ComplaintErrorCode.NOT_FOUND),
        (STAFF, "archive", {}, ComplaintErrorCode.VALIDATION_ERROR),
        (STAFF, "begin_review", {"handler_id": 2}, ComplaintErrorCode.VALIDATION_ERROR),
    ],
)
def test_transition_refusals(repos, actor, action, kwargs, code):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint

    result = _transition(repos, actor, complaint, action, **kwargs)

    assert result.error.code == code
    assert complaints.get_complaint(complaint.id) == complaint


def test_withdraw_by_owner_is_terminal(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    withdrawn = _transition(repos, RENTER, complaint, "withdraw").complaint
    assert withdrawn.status == ComplaintStatus.WITHDRAWN

    again = _transition(repos, STAFF, withdrawn, "begin_review")
    assert again.error.code == ComplaintErrorCode.INVALID_TRANSITION


# =============================================================================
# Priority
# =============================================================================


def test_staff_sets_priority_with_cas(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    use_case = SetComplaintPriorityUseCase(complaints, audit)

    result = use_case.execute(
        STAFF.to_identity(), complaint.id, "urgent", complaint.updated_at
    )
    assert result.complaint.priority == ComplaintPriority.URGENT
    assert result.complaint.updated_at > complaint.updated_at

    stale = use_case.execute(
        STAFF.to_identity(), complaint.id, "low", complaint.updated_at
    )
    assert stale.error.code == ComplaintErrorCode.STALE_STATE


def test_priority_refusals(repos):
    _, complaints, audit = repos
    complaint = _submit(complaints, audit).complaint
    use_case = SetComplaintPriorityUseCase(complaints, audit)

    assert use_case.execute(RENTER.to_identity(), complaint.id, "high").error.code == (
        ComplaintErrorCode.FORBIDDEN
    )
    assert use_case.execute(STAFF.to_identity(), complaint.id, "meh").error.code == (
        ComplaintErrorCode.VALIDATION_ERROR
    )

    withdrawn = replace(
        complaint,
        status=ComplaintStatus.WITHDRAWN,
        updated_at=complaint.updated_at + timedelta(seconds=1),
    )
    assert complaints.update_if_unchanged(withdrawn, complaint.updated_at)
    assert use_case.execute(STAFF.to_identity(), complaint.id, "high").error.code == (
        ComplaintErrorCode.INVALID_TRANSITION
    )
