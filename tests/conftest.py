"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Force the test environment (in-memory repositories, outbox notifier)
  - Reset container singletons between tests
  - Provide seeded marketplace accounts and HTTP clients for the API

Collaborators:
  - pytest / pytest-asyncio
  - rentalhub.container (repositories and notifier singletons)
  - fastapi.testclient.TestClient / httpx.ASGITransport

Notes:
  - APP_ENV must be set BEFORE importing rentalhub.*
"""

import os

os.environ["APP_ENV"] = "test"
os.environ.setdefault("LOG_JSON", "false")
_database_url = os.environ.pop("DATABASE_URL", None)
if _database_url:
    os.environ.setdefault("TEST_DATABASE_URL", _database_url)
os.environ.pop("RESET_NOTIFIER_WEBHOOK_URL", None)

from dataclasses import dataclass  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from rentalhub.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from helpers import make_user  # noqa: E402

from rentalhub import container  # noqa: E402
from rentalhub.client import ApiClient, InMemoryCredentialStore  # noqa: E402
from rentalhub.identity.users import (  # noqa: E402
    Identity,
    User,
    UserRole,
    VerificationState,
)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that need a running PostgreSQL"
    )


@dataclass(frozen=True)
class Accounts:
    renter: User
    other_renter: User
    newcomer: User
    inactive: User
    staff: User
    admin: User


# ============================================================================
# Container / settings isolation
# ============================================================================


@pytest.fixture(autouse=True)
def _fresh_container():
    """R: Each test gets empty in-memory repositories and a fresh outbox."""
    app_config.get_settings.cache_clear()
    container.reset_container()
    yield
    container.reset_container()
    app_config.get_settings.cache_clear()


# ============================================================================
# Identities
# ============================================================================


@pytest.fixture
def renter_identity() -> Identity:
    return make_user(1, "renter@example.com").to_identity()


@pytest.fixture
def staff_identity() -> Identity:
    return make_user(9, "staff@example.com", UserRole.STAFF).to_identity()


@pytest.fixture
def accounts() -> Accounts:
    """R: Seed the container's user repository with one account per role."""
    repo = container.get_user_repository()
    return Accounts(
        renter=repo.add(make_user(1, "renter@example.com")),
        other_renter=repo.add(make_user(2, "other@example.com")),
        newcomer=repo.add(
            make_user(
                3, "newcomer@example.com", verification=VerificationState.UNVERIFIED
            )
        ),
        inactive=repo.add(make_user(4, "gone@example.com", active=False)),
        staff=repo.add(make_user(9, "staff@example.com", UserRole.STAFF)),
        admin=repo.add(make_user(10, "admin@example.com", UserRole.ADMIN)),
    )


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def app():
    from rentalhub.api.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
async def asgi_api(app):
    """R: Factory of ApiClients bound to the in-process FastAPI app."""
    created: list[ApiClient] = []

    def factory(credentials: InMemoryCredentialStore | None = None) -> ApiClient:
        api = ApiClient(
            credentials if credentials is not None else InMemoryCredentialStore(),
            base_url="http://testserver",
            transport=httpx.ASGITransport(app=app),
            max_attempts=1,
            base_delay=0,
            max_delay=0,
        )
        created.append(api)
        return api

    yield factory
    for api in created:
        await api.aclose()
