"""
Name: Test Helpers

Responsibilities:
  - Build users/complaints for tests without touching the container
  - Log in through the API and return Bearer headers
  - Build ApiClient instances over httpx.MockTransport (scripted server)

Notes:
  - Importable from any test module (tests/ is on pytest's pythonpath)
"""

from datetime import datetime, timezone
from typing import Callable

import httpx

from rentalhub.client import ApiClient, InMemoryCredentialStore
from rentalhub.domain.entities import Complaint, ComplaintCategory, ComplaintStatus
from rentalhub.identity.auth_users import hash_password
from rentalhub.identity.users import User, UserRole, VerificationState

PASSWORD = "correct-horse-9"
# R: Argon2 es lento a propósito; se hashea una sola vez por sesión.
_PASSWORD_HASH = hash_password(PASSWORD)

IDENTITY = {
    "id": 1,
    "email": "renter@example.com",
    "name": "Renter",
    "role": "user",
    "verification_state": "verified",
    "active": True,
}


def make_user(
    user_id: int,
    email: str,
    role: UserRole = UserRole.USER,
    *,
    verification: VerificationState = VerificationState.VERIFIED,
    active: bool = True,
) -> User:
    return User(
        id=user_id,
        email=email,
        password_hash=_PASSWORD_HASH,
        role=role,
        is_active=active,
        verification_state=verification,
        name=email.split("@", 1)[0].title(),
        created_at=datetime.now(timezone.utc),
    )


def make_complaint(
    complaint_id: int = 1,
    complainant_id: int = 1,
    status: ComplaintStatus = ComplaintStatus.SUBMITTED,
    **changes,
) -> Complaint:
    now = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
    fields = dict(
        id=complaint_id,
        complainant_id=complainant_id,
        category=ComplaintCategory.USER_BEHAVIOR,
        title="Late return",
        details="The owner never showed up for the handover.",
        status=status,
        created_at=now,
        updated_at=now,
    )
    fields.update(changes)
    return Complaint(**fields)


def login_headers(client, email: str, password: str = PASSWORD) -> dict:
    """R: Login por HTTP; devuelve headers Bearer (vacía el cookie jar)."""
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


def problem(status: int, code: str, detail: str = "error") -> httpx.Response:
    return httpx.Response(
        status,
        json={"status": status, "code": code, "detail": detail},
        headers={"content-type": "application/problem+json"},
    )


def mock_api(
    handler: Callable, credentials: InMemoryCredentialStore | None = None
) -> ApiClient:
    return ApiClient(
        credentials if credentials is not None else InMemoryCredentialStore(),
        base_url="http://api.test",
        transport=httpx.MockTransport(handler),
        max_attempts=1,
        base_delay=0,
        max_delay=0,
    )
