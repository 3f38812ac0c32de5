"""Firebase Auth gateway over the Identity Toolkit REST API (no firebase-admin).

Email/password sign-in uses the project's Web API key; account creation,
password updates, lookups and session revocation use the service account's
OAuth token. Every provider failure is normalized into the domain taxonomy
here, so provider codes never travel past this module.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

import httpx

from classconnect.application.dtos.representative import ProviderAccount, ProviderSession
from classconnect.domain.exceptions import (
    AuthenticationException,
    AuthError,
    DuplicateEmailException,
    ProviderError,
    WeakPasswordException,
)
from classconnect.infrastructure.firebase._rest_client import _get_access_token
from classconnect.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

DEFAULT_IDENTITY_TOOLKIT_BASE = "https://identitytoolkit.googleapis.com/v1"

# Identity Toolkit REST error strings -> Firebase Auth coded form.
_PROVIDER_CODES: dict[str, str] = {
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "USER_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "DUPLICATE_EMAIL": "auth/email-already-in-use",
    "WEAK_PASSWORD": "auth/weak-password",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_PASSWORD": "auth/missing-password",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "INVALID_ID_TOKEN": "auth/invalid-id-token",
    "TOKEN_EXPIRED": "auth/id-token-expired",
}

# Codes that mean "these credentials were rejected" on sign-in.
_CREDENTIAL_REJECTIONS = frozenset(
    {
        "auth/user-not-found",
        "auth/wrong-password",
        "auth/invalid-credential",
        "auth/user-disabled",
        "auth/invalid-email",
        "auth/missing-password",
        "auth/too-many-requests",
    }
)


def provider_code(message: str | None) -> str:
    """Map an Identity Toolkit error message to its coded form.

    Messages look like "WEAK_PASSWORD : Password should be at least 6
    characters"; only the leading token is significant.
    """
    if not message:
        return "auth/internal-error"
    head = message.split(":", 1)[0].strip().split(" ", 1)[0]
    return _PROVIDER_CODES.get(head, "auth/internal-error")


def _default_token_verifier(project_id: str) -> Callable[[str], dict[str, Any]]:
    def verify(token: str) -> dict[str, Any]:
        from google.auth.transport import requests as google_requests
        from google.oauth2 import id_token

        return id_token.verify_firebase_token(
            token, google_requests.Request(), audience=project_id
        )

    return verify


class _ProviderFailure(Exception):
    def __init__(self, code: str, status_code: int) -> None:
        super().__init__(code)
        self.code = code
        self.status_code = status_code


class FirebaseAuthGateway:
    """Implements IAuthGateway against Firebase Auth. Holds no user state."""

    def __init__(
        self,
        project_id: str,
        credentials,
        web_api_key: str | None,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_IDENTITY_TOOLKIT_BASE,
        timeout: float = 30.0,
        token_verifier: Callable[[str], dict[str, Any]] | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._web_api_key = web_api_key
        self._base = base_url.rstrip("/")
        self._http = (
            http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        )
        self._owns_http = http_client is None
        self._verify_token = token_verifier or _default_token_verifier(project_id)

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it."""
        if self._owns_http:
            await self._http.aclose()

    async def _admin_token(self) -> str:
        return await asyncio.to_thread(_get_access_token, self._credentials)

    async def _post(self, path: str, body: dict[str, Any], *, admin: bool) -> dict:
        """POST to Identity Toolkit; raise _ProviderFailure on an error response."""
        headers = {"Content-Type": "application/json"}
        params: dict[str, str] = {}
        if admin:
            headers["Authorization"] = f"Bearer {await self._admin_token()}"
            url = f"{self._base}/projects/{self._project_id}/{path}"
        else:
            if not self._web_api_key:
                raise ProviderError(
                    "Sign-in is not configured", provider_code="auth/missing-api-key"
                )
            params["key"] = self._web_api_key
            url = f"{self._base}/{path}"
        try:
            resp = await self._http.post(url, headers=headers, params=params, json=body)
        except httpx.HTTPError as e:
            logger.warning("Identity Toolkit request failed: %s", type(e).__name__)
            raise ProviderError(provider_code="auth/network-request-failed") from e
        if resp.status_code >= 400:
            try:
                message = resp.json().get("error", {}).get("message")
            except ValueError:
                message = None
            raise _ProviderFailure(provider_code(message), resp.status_code)
        return resp.json() if resp.content else {}

    def _unclassified(self, failure: _ProviderFailure, operation: str) -> ProviderError:
        logger.error(
            "Identity provider error during %s: %s (HTTP %s)",
            operation,
            failure.code,
            failure.status_code,
        )
        return ProviderError(provider_code=failure.code)

    async def sign_in(self, email: str, password: str) -> ProviderSession:
        """Sign in with email/password; every credential rejection is the same AuthError."""
        try:
            out = await self._post(
                "accounts:signInWithPassword",
                {"email": email, "password": password, "returnSecureToken": True},
                admin=False,
            )
        except _ProviderFailure as failure:
            if failure.code in _CREDENTIAL_REJECTIONS:
                raise AuthError() from None
            raise self._unclassified(failure, "sign_in") from None
        return ProviderSession(
            identity_id=out["localId"],
            id_token=out.get("idToken", ""),
            refresh_token=out.get("refreshToken"),
        )

    async def create_identity(self, email: str, password: str) -> str:
        """Create an account and return its uid."""
        try:
            out = await self._post(
                "accounts", {"email": email, "password": password}, admin=True
            )
        except _ProviderFailure as failure:
            if failure.code == "auth/email-already-in-use":
                raise DuplicateEmailException() from None
            if failure.code == "auth/weak-password":
                raise WeakPasswordException(["Password rejected by identity provider"]) from None
            raise self._unclassified(failure, "create_identity") from None
        return out["localId"]

    async def _lookup(self, body: dict[str, Any]) -> dict | None:
        try:
            out = await self._post("accounts:lookup", body, admin=True)
        except _ProviderFailure as failure:
            if failure.code == "auth/user-not-found":
                return None
            raise self._unclassified(failure, "lookup") from None
        users = out.get("users") or []
        return users[0] if users else None

    @staticmethod
    def _to_account(raw: dict) -> ProviderAccount:
        return ProviderAccount(
            uid=raw["localId"],
            email=raw.get("email"),
            disabled=bool(raw.get("disabled", False)),
        )

    async def get_identity(self, identity_id: str) -> ProviderAccount | None:
        raw = await self._lookup({"localId": [identity_id]})
        return self._to_account(raw) if raw else None

    async def find_identity_by_email(self, email: str) -> ProviderAccount | None:
        raw = await self._lookup({"email": [email]})
        return self._to_account(raw) if raw else None

    async def update_password(
        self, identity_id: str, new_password: str, email: str | None = None
    ) -> None:
        """Set the password (and optionally email) with service credentials."""
        body: dict[str, Any] = {"localId": identity_id, "password": new_password}
        if email:
            body["email"] = email
        try:
            await self._post("accounts:update", body, admin=True)
        except _ProviderFailure as failure:
            if failure.code == "auth/user-not-found":
                raise AuthError() from None
            if failure.code == "auth/email-already-in-use":
                raise DuplicateEmailException() from None
            if failure.code == "auth/weak-password":
                raise WeakPasswordException(["Password rejected by identity provider"]) from None
            raise self._unclassified(failure, "update_password") from None

    async def sign_out(self, identity_id: str) -> None:
        """Revoke every session issued before now. Never raises."""
        try:
            await self._post(
                "accounts:update",
                {"localId": identity_id, "validSince": str(int(time.time()))},
                admin=True,
            )
        except (_ProviderFailure, ProviderError) as e:
            logger.warning(
                "Session revocation failed for identity %s: %s",
                identity_id,
                getattr(e, "code", type(e).__name__),
            )

    async def verify_id_token(self, id_token: str) -> str:
        """Return the uid of a valid ID token whose sessions were not revoked."""
        try:
            claims = await asyncio.to_thread(self._verify_token, id_token)
        except Exception as e:
            # google-auth raises ValueError and several transport/crypt errors.
            logger.debug("ID token rejected: %s", type(e).__name__)
            raise AuthenticationException("Invalid or expired token") from None
        uid = claims.get("sub") or claims.get("user_id")
        if not uid:
            raise AuthenticationException("Invalid or expired token")
        account = await self._lookup({"localId": [uid]})
        if account is None or account.get("disabled"):
            raise AuthenticationException("Invalid or expired token")
        valid_since = int(account.get("validSince") or 0)
        if int(claims.get("iat", 0)) < valid_since:
            raise AuthenticationException("Session has been revoked")
        return uid
