"""Pytest configuration and fixtures for classconnect.

HTTP tests run against classconnect.main:create_app() with the repository,
gateway and notifier providers overridden by the in-memory doubles in
tests/fakes.py, so no Firebase project is needed.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from classconnect.api.v1.dependencies import (
    get_assignment_log,
    get_credential_store,
    get_gateway,
    get_password_reset_store,
    get_reset_notifier,
)
from classconnect.application.services.rep_lifecycle import RepLifecycleManager, ScopeLocks
from classconnect.core.config import get_settings
from classconnect.core.limiter import limiter, reset_login_rate_state
from classconnect.domain.enums import Role
from tests.fakes import (
    FakeAuthGateway,
    FrozenClock,
    InMemoryAssignmentLog,
    InMemoryCredentialStore,
    InMemoryPasswordResetStore,
    RecordingNotifier,
)

FACULTY_ID = "faculty-1"
FACULTY_EMAIL = "advisor@college.edu"
FACULTY_PASSWORD = "Advisor@2024"


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def assignments() -> InMemoryAssignmentLog:
    return InMemoryAssignmentLog()


@pytest.fixture
def resets() -> InMemoryPasswordResetStore:
    return InMemoryPasswordResetStore()


@pytest.fixture
def gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def lifecycle(store, assignments, gateway, clock) -> RepLifecycleManager:
    """Lifecycle manager with its own lock table (isolated from other tests)."""
    return RepLifecycleManager(store, assignments, gateway, clock=clock, locks=ScopeLocks())


@pytest.fixture
def app(store, assignments, resets, gateway, notifier):
    """FastAPI app with every external port replaced by an in-memory double."""
    get_settings.cache_clear()
    from classconnect.main import create_app

    application = create_app()
    application.dependency_overrides[get_credential_store] = lambda: store
    application.dependency_overrides[get_assignment_log] = lambda: assignments
    application.dependency_overrides[get_password_reset_store] = lambda: resets
    application.dependency_overrides[get_gateway] = lambda: gateway
    application.dependency_overrides[get_reset_notifier] = lambda: notifier
    limiter.reset()
    reset_login_rate_state()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def faculty_headers(store, gateway) -> dict[str, str]:
    """Bearer headers for a signed-in faculty member."""
    store.seed(FACULTY_ID, FACULTY_EMAIL, role=Role.FACULTY, is_active_rep=False, scope=None)
    gateway.add_account(FACULTY_ID, FACULTY_EMAIL, FACULTY_PASSWORD)
    return {"Authorization": f"Bearer {gateway.open_session(FACULTY_ID)}"}
