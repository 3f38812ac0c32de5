"""PasswordResetFlow unit tests: uniform acknowledgement, one-shot tokens and staleness."""

import asyncio
import hashlib
import logging

import pytest

from classconnect.application.dtos.representative import RepStub
from classconnect.application.services.password_change import PasswordChangeService
from classconnect.application.services.password_reset import RESET_ACK_MESSAGE, PasswordResetFlow
from classconnect.domain.enums import Role
from classconnect.domain.exceptions import (
    AuthError,
    InvalidOrExpiredTokenException,
    MissingFieldException,
    NoLongerActiveRepException,
    ProviderError,
    ResetTokenExpiredException,
    StaleResetRequestException,
    WeakPasswordException,
)
from tests.fakes import OTHER_SCOPE, SCOPE

JANE = "jane@college.edu"
JANE_PASSWORD = "Jane@1111"
NEW_PASSWORD = "Fresh@2025"


@pytest.fixture
def flow(store, resets, gateway, lifecycle, notifier, clock) -> PasswordResetFlow:
    return PasswordResetFlow(
        store,
        resets,
        gateway,
        lifecycle,
        notifier,
        token_ttl_seconds=3600,
        max_requests_per_day=3,
        clock=clock,
    )


@pytest.fixture
def jane(store, gateway):
    gateway.add_account("jane", JANE, JANE_PASSWORD)
    return store.seed("jane", JANE, password_version=1)


class TestRequest:
    async def test_active_rep_gets_token_and_only_hash_is_stored(
        self, flow, resets, notifier, clock, jane
    ) -> None:
        message = await flow.request(" Jane@College.edu ")

        assert message == RESET_ACK_MESSAGE
        [(email, identity_id, token, expires_at)] = notifier.sent
        assert (email, identity_id) == (JANE, "jane")
        assert len(token) >= 32
        [stored] = resets.requests.values()
        assert stored.reset_token_hash == hashlib.sha256(token.encode()).hexdigest()
        assert token not in repr(stored)
        assert stored.password_version_at_reset == 1
        assert stored.used is False
        assert stored.expires_at == expires_at == clock().replace(hour=10)

    @pytest.mark.parametrize("email", ["nobody@college.edu", "old@college.edu", "prof@college.edu"])
    async def test_same_answer_when_no_active_rep(self, flow, store, resets, notifier, clock, email) -> None:
        store.seed("old", "old@college.edu", is_active_rep=False, disabled_at=clock())
        store.seed("prof", "prof@college.edu", role=Role.FACULTY, is_active_rep=False, scope=None)

        assert await flow.request(email) == RESET_ACK_MESSAGE
        assert resets.requests == {}
        assert notifier.sent == []

    async def test_disabled_record_with_same_email_does_not_hide_active_rep(
        self, flow, store, notifier, clock
    ) -> None:
        store.seed("jane-2023", JANE, is_active_rep=False, disabled_at=clock(), scope=OTHER_SCOPE)
        store.seed("jane", JANE, password_version=1)

        await flow.request(JANE)

        [(_, identity_id, _, _)] = notifier.sent
        assert identity_id == "jane"

    async def test_blank_email(self, flow) -> None:
        with pytest.raises(MissingFieldException):
            await flow.request("  ")

    async def test_daily_limit_is_silent(self, flow, resets, notifier, clock, jane) -> None:
        for _ in range(4):
            assert await flow.request(JANE) == RESET_ACK_MESSAGE
        assert len(resets.requests) == 3
        assert len(notifier.sent) == 3

        clock.advance(days=1, seconds=1)
        await flow.request(JANE)
        assert len(resets.requests) == 4


class TestComplete:
    async def test_reset_sets_password_and_revokes_sessions(
        self, flow, store, resets, gateway, notifier, jane
    ) -> None:
        session = gateway.open_session("jane")
        await flow.request(JANE)

        await flow.complete_for_email(JANE, notifier.last_token, NEW_PASSWORD)

        assert gateway.password_of("jane") == NEW_PASSWORD
        assert store.records["jane"].password_version == 2
        assert session not in gateway.sessions
        [stored] = resets.requests.values()
        assert stored.used is True
        assert stored.used_at is not None
        with pytest.raises(AuthError):
            await gateway.sign_in(JANE, JANE_PASSWORD)

    async def test_token_is_one_shot(self, flow, notifier, jane) -> None:
        await flow.request(JANE)
        token = notifier.last_token
        await flow.complete("jane", token, NEW_PASSWORD)

        with pytest.raises(InvalidOrExpiredTokenException):
            await flow.complete("jane", token, "Another@2025")

    async def test_concurrent_redemptions_set_one_password(self, flow, gateway, notifier, jane) -> None:
        await flow.request(JANE)
        token = notifier.last_token

        results = await asyncio.gather(
            flow.complete("jane", token, NEW_PASSWORD),
            flow.complete("jane", token, "Another@2025"),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidOrExpiredTokenException)
        assert gateway.password_updates == ["jane"]

    async def test_unknown_token(self, flow, notifier, jane) -> None:
        await flow.request(JANE)
        with pytest.raises(InvalidOrExpiredTokenException):
            await flow.complete("jane", "x" * 43, NEW_PASSWORD)

    async def test_expired_token_is_not_consumed(self, flow, resets, clock, notifier, jane) -> None:
        await flow.request(JANE)
        clock.advance(hours=1, seconds=1)

        with pytest.raises(ResetTokenExpiredException):
            await flow.complete("jane", notifier.last_token, NEW_PASSWORD)

        [stored] = resets.requests.values()
        assert stored.used is False

    async def test_token_valid_at_exact_expiry(self, flow, gateway, clock, notifier, jane) -> None:
        await flow.request(JANE)
        clock.advance(hours=1)

        await flow.complete("jane", notifier.last_token, NEW_PASSWORD)
        assert gateway.password_of("jane") == NEW_PASSWORD

    async def test_weak_password_leaves_token_usable(self, flow, gateway, notifier, jane) -> None:
        await flow.request(JANE)
        token = notifier.last_token

        with pytest.raises(WeakPasswordException) as exc_info:
            await flow.complete("jane", token, "short")
        assert len(exc_info.value.errors) >= 1

        await flow.complete("jane", token, NEW_PASSWORD)
        assert gateway.password_of("jane") == NEW_PASSWORD

    async def test_replaced_rep_cannot_complete(self, flow, lifecycle, gateway, notifier, jane) -> None:
        await flow.request(JANE)
        await lifecycle.reassign("faculty-1", "jane", RepStub(email="bob@college.edu"), SCOPE)

        with pytest.raises(NoLongerActiveRepException):
            await flow.complete("jane", notifier.last_token, NEW_PASSWORD)
        assert gateway.password_of("jane") != NEW_PASSWORD

    async def test_request_made_stale_by_reassignment(self, flow, store, lifecycle, gateway, notifier, jane) -> None:
        """Jane is moved to another seat after asking for a reset; her old link stops working."""
        gateway.add_account("bob", "bob@college.edu", "Bob@12345")
        store.seed("bob", "bob@college.edu", scope=OTHER_SCOPE)
        await flow.request(JANE)

        await lifecycle.reassign(
            "faculty-1", "bob", RepStub(email=JANE, identity_id="jane"), OTHER_SCOPE
        )
        assert store.records["jane"].is_active_rep is True
        assert store.records["jane"].password_version == 2

        with pytest.raises(StaleResetRequestException):
            await flow.complete("jane", notifier.last_token, NEW_PASSWORD)

    async def test_request_made_stale_by_password_change(self, flow, store, lifecycle, gateway, notifier, jane) -> None:
        await flow.request(JANE)
        await PasswordChangeService(store, gateway, lifecycle).change("jane", JANE_PASSWORD, "Changed@2025")

        with pytest.raises(StaleResetRequestException):
            await flow.complete("jane", notifier.last_token, NEW_PASSWORD)
        assert gateway.password_of("jane") == "Changed@2025"

    async def test_complete_by_email_resolves_the_active_rep(
        self, flow, store, gateway, notifier, clock
    ) -> None:
        store.seed("jane-2023", JANE, is_active_rep=False, disabled_at=clock(), scope=OTHER_SCOPE)
        gateway.add_account("jane", JANE, JANE_PASSWORD)
        store.seed("jane", JANE, password_version=1)
        await flow.request(JANE)

        await flow.complete_for_email(JANE, notifier.last_token, NEW_PASSWORD)

        assert gateway.password_of("jane") == NEW_PASSWORD

    async def test_provider_failure_after_consuming_is_logged(
        self, flow, resets, gateway, notifier, caplog, jane
    ) -> None:
        await flow.request(JANE)
        gateway.fail_update_password_for.add("jane")

        with caplog.at_level(logging.ERROR), pytest.raises(ProviderError):
            await flow.complete("jane", notifier.last_token, NEW_PASSWORD)

        [stored] = resets.requests.values()
        assert stored.used is True
        assert "consumed but the provider update failed for jane" in caplog.text
        assert notifier.last_token not in caplog.text

    async def test_complete_for_unknown_email(self, flow) -> None:
        with pytest.raises(InvalidOrExpiredTokenException):
            await flow.complete_for_email("nobody@college.edu", "x" * 43, NEW_PASSWORD)

    @pytest.mark.parametrize(
        ("email", "token", "password", "field"),
        [
            ("", "t" * 43, NEW_PASSWORD, "email"),
            (JANE, None, NEW_PASSWORD, "resetToken"),
            (JANE, "t" * 43, "", "newPassword"),
        ],
    )
    async def test_complete_for_email_missing_fields(self, flow, email, token, password, field) -> None:
        with pytest.raises(MissingFieldException) as exc_info:
            await flow.complete_for_email(email, token, password)
        assert exc_info.value.details == {"field": field}


class TestVerifyToken:
    def test_well_formed_link(self, flow) -> None:
        flow.verify_token("a" * 43, JANE)

    @pytest.mark.parametrize(("token", "email"), [(None, JANE), ("a" * 31, JANE), ("a" * 43, " ")])
    def test_malformed_link(self, flow, token, email) -> None:
        with pytest.raises(InvalidOrExpiredTokenException):
            flow.verify_token(token, email)
