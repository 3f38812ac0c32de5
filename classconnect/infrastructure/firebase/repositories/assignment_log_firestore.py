"""Firestore-backed append-only assignment log (implements IAssignmentLog)."""

from __future__ import annotations

from typing import Any

from classconnect.application.dtos.representative import AssignmentRecord
from classconnect.domain.enums import AssignmentAction
from classconnect.infrastructure.firebase._rest_client import FirestoreRESTClient
from classconnect.infrastructure.firebase.collections import COLLECTION_REP_ASSIGNMENTS
from classconnect.shared.utils.generators import generate_cuid


def _to_fields(record: AssignmentRecord) -> dict[str, Any]:
    # Field names match what the faculty screens query.
    if record.action is AssignmentAction.ASSIGNED:
        return {
            "uid": record.new_identity_id,
            "email": record.email,
            **record.scope.to_fields(),
            "passwordVersion": record.new_password_version,
            "action": record.action.value,
            "assignedByFacultyId": record.issuer_id,
            "assignedAt": record.created_at,
        }
    if record.action is AssignmentAction.DEACTIVATED:
        return {
            "uid": record.old_identity_id,
            "email": record.email,
            **record.scope.to_fields(),
            "oldPasswordVersion": record.old_password_version,
            "action": record.action.value,
            "reason": record.reason,
            "deactivatedByFacultyId": record.issuer_id,
            "deactivatedAt": record.created_at,
        }
    return {
        "oldRepUid": record.old_identity_id,
        "newRepUid": record.new_identity_id,
        "newEmail": record.email,
        **record.scope.to_fields(),
        "oldPasswordVersion": record.old_password_version,
        "newPasswordVersion": record.new_password_version,
        "action": record.action.value,
        "reassignedByFacultyId": record.issuer_id,
        "reassignedAt": record.created_at,
    }


class FirestoreAssignmentLog:
    """Writes repAssignments documents. There is no update or delete path."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._coll = client.collection(COLLECTION_REP_ASSIGNMENTS)

    async def append(self, record: AssignmentRecord) -> str:
        record_id = record.id or generate_cuid()
        await self._coll.create(record_id, _to_fields(record))
        return record_id
