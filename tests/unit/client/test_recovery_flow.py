"""
Name: Recovery Flow Tests

Responsibilities:
  - State machine Idle -> AwaitingCode -> AwaitingNewCredential -> Idle
  - Local checks (confirmation, consumed code) that never hit the network
  - Superseded code requests are ignored
  - End to end against the in-process API with the outbox notifier
"""

import asyncio

import httpx
import pytest
from helpers import mock_api, problem

from rentalhub import container
from rentalhub.client import (
    InMemoryCredentialStore,
    RecoveryFlow,
    RecoveryStep,
    SessionStore,
)
from rentalhub.crosscutting.exceptions import (
    AccountInactive,
    CredentialMismatch,
    InvalidOrExpiredCodeError,
    ValidationError,
)

pytestmark = pytest.mark.unit

ACK = {"message": "Si la cuenta existe, enviamos un código.", "expires_in": 900}


class Recorder:
    """MockTransport handler that records the paths it served."""

    def __init__(self, reset_response: httpx.Response | None = None):
        self.paths: list[str] = []
        self.reset_response = reset_response or httpx.Response(
            200, json={"message": "ok"}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path == "/auth/forgot-password":
            return httpx.Response(200, json=ACK)
        if request.url.path == "/auth/reset-password":
            return self.reset_response
        return problem(404, "NOT_FOUND")


async def test_request_code_waits_for_new_credential():
    flow = RecoveryFlow(mock_api(Recorder()))
    assert flow.state.step == RecoveryStep.IDLE

    state = await flow.request_code("  Renter@Example.com ")

    assert state.step == RecoveryStep.AWAITING_NEW_CREDENTIAL
    assert state.email == "renter@example.com"
    assert state.expires_at is not None
    assert state.message == ACK["message"]


async def test_request_code_requires_email():
    flow = RecoveryFlow(mock_api(Recorder()))
    with pytest.raises(ValidationError):
        await flow.request_code("   ")
    assert flow.state.step == RecoveryStep.IDLE


async def test_superseded_request_is_ignored():
    first_gate = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        body = request.read().decode()
        if "first@example.com" in body:
            await first_gate.wait()
        return httpx.Response(200, json=ACK)

    flow = RecoveryFlow(mock_api(handler))
    first = asyncio.create_task(flow.request_code("first@example.com"))
    await asyncio.sleep(0)

    await flow.request_code("second@example.com")
    first_gate.set()
    await first

    assert flow.state.email == "second@example.com"
    assert flow.state.step == RecoveryStep.AWAITING_NEW_CREDENTIAL


async def test_mismatch_fails_without_network_call():
    recorder = Recorder()
    flow = RecoveryFlow(mock_api(recorder))
    await flow.request_code("renter@example.com")

    with pytest.raises(CredentialMismatch):
        await flow.redeem(None, "123456", "new-password-1", "new-password-2")

    assert recorder.paths == ["/auth/forgot-password"]
    assert flow.state.step == RecoveryStep.AWAITING_NEW_CREDENTIAL


async def test_consumed_code_is_rejected_locally():
    recorder = Recorder()
    flow = RecoveryFlow(mock_api(recorder))
    await flow.request_code("renter@example.com")

    state = await flow.redeem(None, "123456", "new-password-1", "new-password-1")
    assert state.step == RecoveryStep.COMPLETED

    with pytest.raises(InvalidOrExpiredCodeError):
        await flow.redeem(
            "renter@example.com", "123456", "new-password-1", "new-password-1"
        )
    assert recorder.paths.count("/auth/reset-password") == 1

    # A fresh request reopens the flow, but the spent code stays spent.
    await flow.request_code("renter@example.com")
    with pytest.raises(InvalidOrExpiredCodeError):
        await flow.redeem(None, "123456", "new-password-1", "new-password-1")
    assert recorder.paths.count("/auth/reset-password") == 1


async def test_completed_flow_refuses_another_redemption():
    recorder = Recorder()
    flow = RecoveryFlow(mock_api(recorder))
    await flow.request_code("a@example.com")
    await flow.redeem(None, "111111", "new-password-1", "new-password-1")
    recorder.paths.clear()

    with pytest.raises(InvalidOrExpiredCodeError):
        await flow.redeem(None, "222222", "new-password-2", "new-password-2")
    with pytest.raises(InvalidOrExpiredCodeError):
        await flow.redeem_token(
            "a@example.com", "link-token", "new-password-2", "new-password-2"
        )

    assert recorder.paths == []
    assert flow.state.step == RecoveryStep.COMPLETED

    flow.abandon()
    state = await flow.redeem_token(
        "a@example.com", "link-token", "new-password-2", "new-password-2"
    )
    assert state.step == RecoveryStep.COMPLETED
    assert recorder.paths == ["/auth/reset-password"]


async def test_server_rejection_propagates_and_keeps_step():
    recorder = Recorder(reset_response=problem(422, "INVALID_OR_EXPIRED_CODE"))
    flow = RecoveryFlow(mock_api(recorder))
    await flow.request_code("renter@example.com")

    with pytest.raises(InvalidOrExpiredCodeError):
        await flow.redeem(None, "000000", "new-password-1", "new-password-1")

    assert flow.state.step == RecoveryStep.AWAITING_NEW_CREDENTIAL


async def test_redeem_without_email_or_code():
    flow = RecoveryFlow(mock_api(Recorder()))
    with pytest.raises(ValidationError):
        await flow.redeem(None, "123456", "new-password-1", "new-password-1")


async def test_abandon_returns_to_idle():
    flow = RecoveryFlow(mock_api(Recorder()))
    await flow.request_code("renter@example.com")
    flow.abandon()
    assert flow.state.step == RecoveryStep.IDLE
    assert flow.state.email is None


# ============================================================================
# End to end (in-process API)
# ============================================================================


async def test_otp_reset_with_auto_login(asgi_api, accounts):
    creds = InMemoryCredentialStore()
    api = asgi_api(creds)
    store = SessionStore(api, creds)
    flow = RecoveryFlow(api, store, auto_login=True)

    await flow.request_code("renter@example.com")
    otp = container.get_reset_code_notifier().latest_for("renter@example.com").code

    await flow.redeem(None, otp, "brand-new-secret-1", "brand-new-secret-1")

    assert flow.state.step == RecoveryStep.COMPLETED
    assert store.identity is not None
    assert store.identity.email == "renter@example.com"
    assert creds.load()


async def test_link_token_reset_and_replay(asgi_api, accounts):
    flow = RecoveryFlow(asgi_api())

    await flow.request_code("renter@example.com")
    token = container.get_reset_code_notifier().latest_for("renter@example.com").token

    await flow.redeem_token(
        "renter@example.com", token, "brand-new-secret-1", "brand-new-secret-1"
    )

    # A fresh flow has no local memory of the token; the server refuses it.
    replay = RecoveryFlow(asgi_api())
    with pytest.raises(InvalidOrExpiredCodeError):
        await replay.redeem_token(
            "renter@example.com", token, "another-secret-1", "another-secret-1"
        )


async def test_unknown_account_gets_the_same_acknowledgement(asgi_api, accounts):
    flow = RecoveryFlow(asgi_api())

    state = await flow.request_code("nobody@example.com")

    assert state.step == RecoveryStep.AWAITING_NEW_CREDENTIAL
    outbox = container.get_reset_code_notifier()
    assert outbox.messages_for("nobody@example.com") == []


async def test_only_latest_code_is_valid(asgi_api, accounts):
    flow = RecoveryFlow(asgi_api())
    outbox = container.get_reset_code_notifier()

    await flow.request_code("renter@example.com")
    first = outbox.latest_for("renter@example.com").code
    await flow.request_code("renter@example.com")
    second = outbox.latest_for("renter@example.com").code

    if first != second:
        with pytest.raises(InvalidOrExpiredCodeError):
            await flow.redeem(None, first, "brand-new-secret-1", "brand-new-secret-1")

    state = await flow.redeem(None, second, "brand-new-secret-1", "brand-new-secret-1")
    assert state.step == RecoveryStep.COMPLETED


async def test_auto_login_failure_keeps_completed_reset():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/login":
            return problem(403, "ACCOUNT_INACTIVE")
        return Recorder()(request)

    creds = InMemoryCredentialStore()
    api = mock_api(handler, creds)
    store = SessionStore(api, creds)
    flow = RecoveryFlow(api, store, auto_login=True)
    await flow.request_code("renter@example.com")

    state = await flow.redeem(None, "123456", "new-password-1", "new-password-1")

    assert state.step == RecoveryStep.COMPLETED
    assert isinstance(state.login_error, AccountInactive)
    assert store.identity is None
    assert creds.load() is None
