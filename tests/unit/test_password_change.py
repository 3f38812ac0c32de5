"""PasswordChangeService unit tests."""

import pytest

from classconnect.application.services.password_change import PasswordChangeService
from classconnect.domain.enums import Role
from classconnect.domain.exceptions import (
    AuthError,
    InvalidRoleException,
    MissingFieldException,
    NotActiveRepException,
    SamePasswordException,
    UserNotFoundException,
    WeakPasswordException,
)

JANE = "jane@college.edu"
JANE_PASSWORD = "Jane@1111"


@pytest.fixture
def service(store, gateway, lifecycle) -> PasswordChangeService:
    return PasswordChangeService(store, gateway, lifecycle)


@pytest.fixture
def jane(store, gateway):
    gateway.add_account("jane", JANE, JANE_PASSWORD)
    return store.seed("jane", JANE, password_version=2)


async def test_change_updates_provider_and_bumps_version(service, store, gateway, clock, jane) -> None:
    version = await service.change("jane", JANE_PASSWORD, "Better@2025")

    assert version == 3
    assert gateway.password_of("jane") == "Better@2025"
    record = store.records["jane"]
    assert record.password_version == 3
    assert record.last_password_changed_at == clock()


@pytest.mark.parametrize(
    ("current", "new", "field"),
    [(None, "Better@2025", "currentPassword"), (JANE_PASSWORD, "", "newPassword")],
)
async def test_missing_fields(service, jane, current, new, field) -> None:
    with pytest.raises(MissingFieldException) as exc_info:
        await service.change("jane", current, new)
    assert exc_info.value.details == {"field": field}


async def test_same_password_rejected(service, jane) -> None:
    with pytest.raises(SamePasswordException):
        await service.change("jane", JANE_PASSWORD, JANE_PASSWORD)


async def test_weak_password_lists_every_failure(service, gateway, jane) -> None:
    with pytest.raises(WeakPasswordException) as exc_info:
        await service.change("jane", JANE_PASSWORD, "weak")
    assert len(exc_info.value.errors) == 4
    assert gateway.password_updates == []


async def test_wrong_current_password(service, store, gateway, jane) -> None:
    with pytest.raises(AuthError):
        await service.change("jane", "Wrong@1111", "Better@2025")
    assert gateway.password_of("jane") == JANE_PASSWORD
    assert store.records["jane"].password_version == 2


async def test_unknown_record(service) -> None:
    with pytest.raises(UserNotFoundException):
        await service.change("ghost", JANE_PASSWORD, "Better@2025")


async def test_replaced_rep_is_signed_out(service, store, gateway, clock) -> None:
    """A session that outlived the seat cannot be used to change the password."""
    gateway.add_account("old", "old@college.edu", JANE_PASSWORD)
    store.seed("old", "old@college.edu", is_active_rep=False, disabled_at=clock())
    session = gateway.open_session("old")

    with pytest.raises(NotActiveRepException):
        await service.change("old", JANE_PASSWORD, "Better@2025")

    assert session not in gateway.sessions
    assert gateway.password_of("old") == JANE_PASSWORD


async def test_faculty_cannot_use_rep_password_change(service, store, gateway) -> None:
    gateway.add_account("prof", "prof@college.edu", JANE_PASSWORD)
    store.seed("prof", "prof@college.edu", role=Role.FACULTY, is_active_rep=False, scope=None)

    with pytest.raises(InvalidRoleException):
        await service.change("prof", JANE_PASSWORD, "Better@2025")
