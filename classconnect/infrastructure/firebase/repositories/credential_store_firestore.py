"""Firestore-backed Credential Store (implements ICredentialStore).

Documents in `users` are shared with the mobile client, so field names stay
camelCase and older documents may carry ISO-8601 strings instead of
timestamps. Conditional writes use the document's updateTime as the version
marker.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from classconnect.application.dtos.representative import RepIdentity
from classconnect.domain.enums import Role
from classconnect.domain.value_objects import RepScope
from classconnect.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
    PreconditionFailedError,
)
from classconnect.infrastructure.firebase.collections import COLLECTION_USERS
from classconnect.shared.telemetry.logging import get_logger
from classconnect.shared.utils.datetime import parse_stored_datetime

logger = get_logger(__name__)


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class FirestoreCredentialStore:
    """Credential Store on the `users` collection."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_USERS)

    def _to_identity(self, snapshot: DocumentSnapshot) -> RepIdentity:
        data = snapshot.to_dict()
        return RepIdentity(
            id=snapshot.id,
            email=str(data.get("email") or ""),
            role=Role.parse(data.get("role")),
            is_active_rep=data.get("isActiveRep") is True,
            password_version=int(data.get("passwordVersion") or 0),
            college_id=_opt_str(data.get("collegeId")),
            department_id=_opt_str(data.get("departmentId")),
            slot=_opt_str(data.get("slot")),
            year=_opt_str(data.get("year")),
            first_name=_opt_str(data.get("firstName")),
            assigned_at=parse_stored_datetime(data.get("assignedAt")),
            assigned_by=_opt_str(data.get("assignedByFacultyId")),
            reactivated_at=parse_stored_datetime(data.get("reactivatedAt")),
            disabled_at=parse_stored_datetime(data.get("disabledAt")),
            disabled_reason=_opt_str(data.get("disabledReason")),
            disabled_by=_opt_str(data.get("disabledByFacultyId")),
            updated_at=parse_stored_datetime(data.get("updatedAt")),
            last_password_changed_at=parse_stored_datetime(
                data.get("lastPasswordChangedAt")
            ),
            update_time=snapshot.update_time,
        )

    async def _conditional_update(
        self, identity_id: str, fields: dict[str, Any], expected_update_time: str | None
    ) -> bool:
        ref = self._coll.document(identity_id)
        try:
            if expected_update_time is None:
                await ref.update(fields, exists=False)
            else:
                await ref.update(fields, update_time=expected_update_time)
        except PreconditionFailedError:
            logger.info("Conditional write lost for users/%s", identity_id)
            return False
        return True

    async def get(self, identity_id: str) -> RepIdentity | None:
        snapshot = await self._coll.document(identity_id).get()
        if not snapshot:
            return None
        return self._to_identity(snapshot)

    async def get_by_email(self, email: str) -> RepIdentity | None:
        q = self._coll.where("email", "==", email).limit(1)
        async for snapshot in q.stream():
            return self._to_identity(snapshot)
        return None

    async def get_active_rep_by_email(self, email: str) -> RepIdentity | None:
        q = (
            self._coll.where("email", "==", email)
            .where("role", "==", Role.REP.value)
            .where("isActiveRep", "==", True)
            .limit(1)
        )
        async for snapshot in q.stream():
            return self._to_identity(snapshot)
        return None

    async def find_active_by_scope(self, scope: RepScope) -> list[RepIdentity]:
        q = self._coll.where("role", "==", Role.REP.value).where("isActiveRep", "==", True)
        for field, value in scope.to_fields().items():
            q = q.where(field, "==", value)
        return [self._to_identity(s) async for s in q.limit(10).stream()]

    async def list_active(
        self,
        college_id: str | None = None,
        department_id: str | None = None,
        year: str | None = None,
        limit: int = 100,
    ) -> list[RepIdentity]:
        q = self._coll.where("role", "==", Role.REP.value).where("isActiveRep", "==", True)
        if college_id:
            q = q.where("collegeId", "==", college_id)
        if department_id:
            q = q.where("departmentId", "==", department_id)
        if year:
            q = q.where("year", "==", year)
        return [self._to_identity(s) async for s in q.limit(limit).stream()]

    async def list_inactive(
        self,
        college_id: str | None = None,
        department_id: str | None = None,
        limit: int = 100,
    ) -> list[RepIdentity]:
        q = self._coll.where("role", "==", Role.REP.value).where("isActiveRep", "==", False)
        if college_id:
            q = q.where("collegeId", "==", college_id)
        if department_id:
            q = q.where("departmentId", "==", department_id)
        return [self._to_identity(s) async for s in q.limit(limit).stream()]

    async def activate(
        self,
        identity_id: str,
        *,
        email: str,
        scope: RepScope,
        password_version: int,
        issuer_id: str,
        now: datetime,
        expected_update_time: str | None,
        reactivated: bool = False,
    ) -> bool:
        fields: dict[str, Any] = {
            "email": email,
            "role": Role.REP.value,
            "isActiveRep": True,
            "passwordVersion": password_version,
            **scope.to_fields(),
            "assignedAt": now,
            "assignedByFacultyId": issuer_id,
            "updatedAt": now,
            "disabledAt": None,
            "disabledReason": None,
            "disabledByFacultyId": None,
        }
        if reactivated:
            fields["reactivatedAt"] = now
        return await self._conditional_update(identity_id, fields, expected_update_time)

    async def disable(
        self,
        identity_id: str,
        *,
        reason: str,
        password_version: int,
        issuer_id: str,
        now: datetime,
        expected_update_time: str | None,
    ) -> bool:
        fields = {
            "isActiveRep": False,
            "passwordVersion": password_version,
            "disabledAt": now,
            "disabledReason": reason,
            "disabledByFacultyId": issuer_id,
            "updatedAt": now,
        }
        return await self._conditional_update(identity_id, fields, expected_update_time)

    async def record_password_change(
        self,
        identity_id: str,
        *,
        password_version: int,
        now: datetime,
        expected_update_time: str | None,
    ) -> bool:
        fields = {
            "passwordVersion": password_version,
            "lastPasswordChangedAt": now,
            "updatedAt": now,
        }
        return await self._conditional_update(identity_id, fields, expected_update_time)
