"""
Name: Access Gate Tests

Responsibilities:
  - Decision table: Pending while loading, login redirect, forbidden redirect
  - Route table resolution (public, staff, verified checkout, fail-closed)
  - authorize() waits for readiness and raises typed errors
"""

import asyncio
import itertools

import httpx
import pytest
from helpers import IDENTITY, mock_api

from rentalhub.client import (
    ADMIN,
    AUTHENTICATED,
    ORDINARY,
    STAFF,
    AccessGate,
    GateDecision,
    InMemoryCredentialStore,
    Session,
    SessionStore,
    capability_for_path,
    check,
    redirect_target,
)
from rentalhub.crosscutting.exceptions import AuthenticationError, AuthorizationError
from rentalhub.identity.users import Identity, UserRole, VerificationState

pytestmark = pytest.mark.unit

VERIFIED_USER = Identity(
    id=1,
    email="renter@example.com",
    role=UserRole.USER,
    verification_state=VerificationState.VERIFIED,
)
UNVERIFIED_USER = Identity(id=3, email="new@example.com", role=UserRole.USER)
STAFF_USER = Identity(id=9, email="staff@example.com", role=UserRole.STAFF)
ADMIN_USER = Identity(id=10, email="admin@example.com", role=UserRole.ADMIN)
INACTIVE_USER = Identity(
    id=4,
    email="gone@example.com",
    role=UserRole.USER,
    verification_state=VerificationState.VERIFIED,
    active=False,
)

CAPABILITIES = [None, AUTHENTICATED, ORDINARY, ORDINARY.verified(), STAFF, ADMIN]
IDENTITIES = [None, VERIFIED_USER, UNVERIFIED_USER, STAFF_USER, ADMIN_USER, INACTIVE_USER]


@pytest.mark.parametrize(
    "capability, identity", list(itertools.product(CAPABILITIES, IDENTITIES))
)
def test_loading_is_always_pending(capability, identity):
    assert check(capability, Session(identity=identity, loading=True)) == (
        GateDecision.PENDING
    )


@pytest.mark.parametrize("capability", [c for c in CAPABILITIES if c is not None])
def test_no_identity_never_allowed(capability):
    decision = check(capability, Session(identity=None, loading=False))
    assert decision == GateDecision.REDIRECT_TO_LOGIN


@pytest.mark.parametrize("capability", [c for c in CAPABILITIES if c is not None])
def test_inactive_identity_never_allowed(capability):
    decision = check(capability, Session(identity=INACTIVE_USER, loading=False))
    assert decision == GateDecision.REDIRECT_FORBIDDEN


@pytest.mark.parametrize(
    "capability, identity, expected",
    [
        (None, None, GateDecision.ALLOW),
        (AUTHENTICATED, UNVERIFIED_USER, GateDecision.ALLOW),
        (ORDINARY, STAFF_USER, GateDecision.REDIRECT_FORBIDDEN),
        (ORDINARY, UNVERIFIED_USER, GateDecision.ALLOW),
        (ORDINARY.verified(), UNVERIFIED_USER, GateDecision.REDIRECT_FORBIDDEN),
        (ORDINARY.verified(), VERIFIED_USER, GateDecision.ALLOW),
        (STAFF, VERIFIED_USER, GateDecision.REDIRECT_FORBIDDEN),
        (STAFF, ADMIN_USER, GateDecision.ALLOW),
        (ADMIN, STAFF_USER, GateDecision.REDIRECT_FORBIDDEN),
    ],
)
def test_decision_table(capability, identity, expected):
    assert check(capability, Session(identity=identity, loading=False)) == expected


@pytest.mark.parametrize(
    "path, capability",
    [
        ("/", None),
        ("/products/123", None),
        ("/reset-password/abc?email=x", None),
        ("/admin", STAFF),
        ("/admin/complaints/4", STAFF),
        ("/complaints/new", ORDINARY),
        ("/complaints/12/", AUTHENTICATED),
        ("/rentals/8/checkout", ORDINARY.verified()),
        ("/rentals/8", AUTHENTICATED),
        ("/some/unknown/page", AUTHENTICATED),
    ],
)
def test_capability_for_path(path, capability):
    assert capability_for_path(path) == capability


def test_redirect_targets():
    assert redirect_target(GateDecision.REDIRECT_TO_LOGIN, "/complaints/3") == (
        "/login?next=/complaints/3"
    )
    assert redirect_target(GateDecision.REDIRECT_FORBIDDEN, "/admin") == "/forbidden"
    assert redirect_target(GateDecision.ALLOW, "/admin") is None


def _me(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=IDENTITY)


async def test_authorize_waits_for_restore():
    creds = InMemoryCredentialStore("tok-1")
    store = SessionStore(mock_api(_me, creds), creds)
    gate = AccessGate(store)

    assert gate.check_route("/complaints") == GateDecision.PENDING

    waiter = asyncio.create_task(gate.authorize(ORDINARY, timeout=5))
    await asyncio.sleep(0)
    assert not waiter.done()

    await store.restore()
    identity = await waiter
    assert identity.id == 1
    assert gate.check_route("/complaints") == GateDecision.ALLOW
    assert gate.check_route("/admin") == GateDecision.REDIRECT_FORBIDDEN


async def test_authorize_raises_typed_errors():
    store = SessionStore(mock_api(_me), InMemoryCredentialStore())
    gate = AccessGate(store)
    await store.restore()

    with pytest.raises(AuthenticationError):
        await gate.authorize(AUTHENTICATED)

    store.update_identity(VERIFIED_USER)  # ignored: nobody logged in
    assert store.identity is None


async def test_authorize_forbidden_for_wrong_role():
    creds = InMemoryCredentialStore("tok-1")
    store = SessionStore(mock_api(_me, creds), creds)
    await store.restore()

    with pytest.raises(AuthorizationError):
        await AccessGate(store).authorize(STAFF)
