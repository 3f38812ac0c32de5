"""FirebaseAuthGateway against a mocked Identity Toolkit endpoint."""

import json

import httpx
import pytest

from classconnect.domain.exceptions import (
    AuthenticationException,
    AuthError,
    DuplicateEmailException,
    ProviderError,
    WeakPasswordException,
)
from classconnect.infrastructure.firebase.identity_toolkit import (
    FirebaseAuthGateway,
    provider_code,
)

BASE = "https://identitytoolkit.test/v1"


class _StaticCredentials:
    valid = True
    token = "test-access-token"


def _error(message: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


def _gateway(handler, *, web_api_key="web-key", token_verifier=None) -> FirebaseAuthGateway:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirebaseAuthGateway(
        "demo",
        _StaticCredentials(),
        web_api_key,
        http_client=http,
        base_url=BASE,
        token_verifier=token_verifier,
    )


@pytest.mark.parametrize(
    ("message", "code"),
    [
        ("EMAIL_NOT_FOUND", "auth/user-not-found"),
        ("INVALID_LOGIN_CREDENTIALS", "auth/invalid-credential"),
        ("WEAK_PASSWORD : Password should be at least 6 characters", "auth/weak-password"),
        ("TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled", "auth/too-many-requests"),
        ("SOMETHING_NEW", "auth/internal-error"),
        (None, "auth/internal-error"),
    ],
)
def test_provider_code(message, code) -> None:
    assert provider_code(message) == code


class TestSignIn:
    async def test_success_uses_web_api_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/accounts:signInWithPassword")
            assert request.url.params["key"] == "web-key"
            assert "Authorization" not in request.headers
            body = json.loads(request.content)
            assert body["email"] == "jane@college.edu"
            return httpx.Response(
                200, json={"localId": "jane", "idToken": "id-tok", "refreshToken": "ref"}
            )

        session = await _gateway(handler).sign_in("jane@college.edu", "Jane@1111")

        assert session.identity_id == "jane"
        assert "id-tok" not in repr(session)

    @pytest.mark.parametrize(
        "message", ["EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS", "USER_DISABLED"]
    )
    async def test_rejections_are_one_generic_error(self, message) -> None:
        with pytest.raises(AuthError) as exc_info:
            await _gateway(lambda request: _error(message)).sign_in("a@b.c", "pw")
        assert exc_info.value.message == "Invalid email or password"

    async def test_unclassified_failure_is_provider_error(self) -> None:
        with pytest.raises(ProviderError) as exc_info:
            await _gateway(lambda request: _error("INTERNAL_ERROR", 500)).sign_in("a@b.c", "pw")
        assert exc_info.value.provider_code == "auth/internal-error"

    async def test_network_failure_is_provider_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(ProviderError) as exc_info:
            await _gateway(handler).sign_in("a@b.c", "pw")
        assert exc_info.value.provider_code == "auth/network-request-failed"

    async def test_missing_web_api_key(self) -> None:
        gateway = _gateway(lambda request: httpx.Response(200, json={}), web_api_key=None)
        with pytest.raises(ProviderError):
            await gateway.sign_in("a@b.c", "pw")


class TestAdminOperations:
    async def test_create_identity(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/projects/demo/accounts"
            assert request.headers["Authorization"] == "Bearer test-access-token"
            return httpx.Response(200, json={"localId": "new-uid"})

        assert await _gateway(handler).create_identity("bob@college.edu", "Bob@1234") == "new-uid"

    async def test_create_duplicate_email(self) -> None:
        with pytest.raises(DuplicateEmailException):
            await _gateway(lambda request: _error("EMAIL_EXISTS")).create_identity("a@b.c", "Pw@12345")

    async def test_create_weak_password(self) -> None:
        gateway = _gateway(lambda request: _error("WEAK_PASSWORD : Password should be at least 6 characters"))
        with pytest.raises(WeakPasswordException):
            await gateway.create_identity("a@b.c", "x")

    async def test_lookup_found_and_missing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            if body.get("localId") == ["jane"]:
                return httpx.Response(
                    200, json={"users": [{"localId": "jane", "email": "jane@college.edu"}]}
                )
            return httpx.Response(200, json={})

        gateway = _gateway(handler)
        account = await gateway.get_identity("jane")
        assert account.uid == "jane"
        assert account.disabled is False
        assert await gateway.get_identity("ghost") is None
        assert await gateway.find_identity_by_email("ghost@college.edu") is None

    async def test_update_password_for_unknown_user(self) -> None:
        with pytest.raises(AuthError):
            await _gateway(lambda request: _error("USER_NOT_FOUND")).update_password("ghost", "Pw@12345")

    async def test_update_password_sends_email_only_when_given(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"localId": "jane"})

        gateway = _gateway(handler)
        await gateway.update_password("jane", "Pw@12345")
        await gateway.update_password("jane", "Pw@12345", email="jane@new.edu")

        assert "email" not in bodies[0]
        assert bodies[1]["email"] == "jane@new.edu"


class TestSignOut:
    async def test_sets_valid_since(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"localId": "jane"})

        await _gateway(handler).sign_out("jane")

        assert bodies[0]["localId"] == "jane"
        assert int(bodies[0]["validSince"]) > 0

    async def test_never_raises(self) -> None:
        await _gateway(lambda request: _error("USER_NOT_FOUND")).sign_out("ghost")

        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        await _gateway(unreachable).sign_out("jane")


class TestVerifyIdToken:
    @staticmethod
    def _lookup(valid_since: int, disabled: bool = False):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "users": [
                        {"localId": "jane", "validSince": str(valid_since), "disabled": disabled}
                    ]
                },
            )

        return handler

    async def test_valid_token(self) -> None:
        gateway = _gateway(
            self._lookup(valid_since=50), token_verifier=lambda t: {"sub": "jane", "iat": 100}
        )
        assert await gateway.verify_id_token("id-tok") == "jane"

    async def test_revoked_session(self) -> None:
        gateway = _gateway(
            self._lookup(valid_since=200), token_verifier=lambda t: {"sub": "jane", "iat": 100}
        )
        with pytest.raises(AuthenticationException):
            await gateway.verify_id_token("id-tok")

    async def test_disabled_account(self) -> None:
        gateway = _gateway(
            self._lookup(valid_since=0, disabled=True),
            token_verifier=lambda t: {"sub": "jane", "iat": 100},
        )
        with pytest.raises(AuthenticationException):
            await gateway.verify_id_token("id-tok")

    async def test_invalid_signature(self) -> None:
        def reject(token: str) -> dict:
            raise ValueError("Could not verify token signature.")

        gateway = _gateway(self._lookup(valid_since=0), token_verifier=reject)
        with pytest.raises(AuthenticationException):
            await gateway.verify_id_token("forged")
