"""Firestore-backed password reset requests (implements IPasswordResetStore).

Only the SHA-256 hash of a reset token is ever written; the raw token lives
in the requester's mailbox.
"""

from __future__ import annotations

from datetime import datetime

from classconnect.application.dtos.representative import PasswordResetRequest
from classconnect.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
    PreconditionFailedError,
)
from classconnect.infrastructure.firebase.collections import COLLECTION_PASSWORD_RESETS
from classconnect.shared.utils.datetime import ensure_utc, parse_stored_datetime
from classconnect.shared.utils.generators import generate_cuid

# Upper bound on documents scanned when counting recent requests.
_RECENT_SCAN_LIMIT = 50


class FirestorePasswordResetStore:
    """passwordResets collection."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._coll = client.collection(COLLECTION_PASSWORD_RESETS)

    @staticmethod
    def _to_request(snapshot: DocumentSnapshot) -> PasswordResetRequest | None:
        data = snapshot.to_dict()
        created_at = parse_stored_datetime(data.get("createdAt"))
        expires_at = parse_stored_datetime(data.get("expiresAt"))
        if created_at is None or expires_at is None:
            return None
        return PasswordResetRequest(
            id=snapshot.id,
            identity_id=str(data.get("uid") or ""),
            email=str(data.get("email") or ""),
            reset_token_hash=str(data.get("resetTokenHash") or ""),
            created_at=created_at,
            expires_at=expires_at,
            password_version_at_reset=int(data.get("passwordVersionAtReset") or 0),
            used=data.get("used") is True,
            used_at=parse_stored_datetime(data.get("usedAt")),
            update_time=snapshot.update_time,
        )

    async def create(self, request: PasswordResetRequest) -> str:
        request_id = request.id or generate_cuid()
        await self._coll.create(
            request_id,
            {
                "uid": request.identity_id,
                "email": request.email,
                "resetTokenHash": request.reset_token_hash,
                "createdAt": request.created_at,
                "expiresAt": request.expires_at,
                "used": False,
                "usedAt": None,
                "passwordVersionAtReset": request.password_version_at_reset,
            },
        )
        return request_id

    async def find_unused(
        self, identity_id: str, reset_token_hash: str
    ) -> PasswordResetRequest | None:
        q = (
            self._coll.where("uid", "==", identity_id)
            .where("resetTokenHash", "==", reset_token_hash)
            .where("used", "==", False)
            .limit(1)
        )
        async for snapshot in q.stream():
            return self._to_request(snapshot)
        return None

    async def mark_used(self, request: PasswordResetRequest, now: datetime) -> bool:
        if not request.id or not request.update_time:
            return False
        try:
            await self._coll.document(request.id).update(
                {"used": True, "usedAt": now},
                update_time=request.update_time,
            )
        except PreconditionFailedError:
            return False
        return True

    async def count_created_since(self, identity_id: str, since: datetime) -> int:
        # Newest first, so the scan stops at the first request older than since.
        # Needs the (uid, createdAt desc) composite index.
        since = ensure_utc(since)
        q = (
            self._coll.where("uid", "==", identity_id)
            .order_by("createdAt", "DESCENDING")
            .limit(_RECENT_SCAN_LIMIT)
        )
        count = 0
        async for snapshot in q.stream():
            created_at = parse_stored_datetime(snapshot.to_dict().get("createdAt"))
            if created_at is None:
                continue
            if created_at < since:
                break
            count += 1
        return count
