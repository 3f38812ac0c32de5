"""Representative lifecycle: seat changes and credential versioning.

RepLifecycleManager is the only writer of isActiveRep and passwordVersion.
Every change to a seat is serialised per scope inside the process, and the
"disable old holder" write is a compare-and-swap on the store, so two
faculty members reassigning the same seat cannot both win.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

from classconnect.application.dtos.representative import (
    AssignmentRecord,
    AssignResult,
    DeactivateResult,
    ReassignResult,
    RepIdentity,
    RepStatus,
    RepStub,
)
from classconnect.application.interfaces.repositories import (
    IAssignmentLog,
    ICredentialStore,
)
from classconnect.application.interfaces.services import IAuthGateway
from classconnect.application.services.password_policy import (
    generate_password,
    generate_unguessable_password,
)
from classconnect.domain.enums import AssignmentAction, Role
from classconnect.domain.exceptions import (
    ClassConnectException,
    ConcurrentModificationException,
    MissingFieldException,
    RepNotActiveException,
    ResourceNotFoundException,
    SlotOccupiedException,
    UserNotFoundException,
    ValidationException,
)
from classconnect.domain.value_objects import RepScope, normalize_email
from classconnect.shared.telemetry.logging import get_logger
from classconnect.shared.telemetry.tracing import add_span_event, traced
from classconnect.shared.utils.datetime import utc_now

logger = get_logger(__name__)

T = TypeVar("T")

REPLACED_REASON = "Replaced as Class Representative"
DEACTIVATED_REASON = "Deactivated by faculty"
DEFAULT_FIRST_NAME = "Student"


class ScopeLocks:
    """Per-scope asyncio locks; a lock lives as long as someone holds a reference."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, scope: RepScope) -> asyncio.Lock:
        lock = self._locks.get(scope.lock_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope.lock_key] = lock
        return lock


# Shared by every manager instance in the process (managers are built per request).
_scope_locks = ScopeLocks()
# Seat changes running detached from their caller must not be garbage collected.
_pending_seat_changes: set[asyncio.Task] = set()


def _reap(task: asyncio.Task) -> None:
    _pending_seat_changes.discard(task)
    # Observed here too, for the case where the caller was cancelled.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Seat change ended with %s", type(task.exception()).__name__)


async def _run_to_completion(operation: Awaitable[T]) -> T:
    """Await operation in its own task; cancelling the caller does not cancel it."""
    task = asyncio.ensure_future(operation)
    _pending_seat_changes.add(task)
    task.add_done_callback(_reap)
    return await asyncio.shield(task)


class RepLifecycleManager:
    """Seat changes and credential versioning for representatives."""

    def __init__(
        self,
        store: ICredentialStore,
        assignments: IAssignmentLog,
        gateway: IAuthGateway,
        *,
        clock: Callable[[], datetime] = utc_now,
        locks: ScopeLocks | None = None,
    ) -> None:
        self._store = store
        self._assignments = assignments
        self._gateway = gateway
        self._clock = clock
        self._locks = locks or _scope_locks

    async def _find_by_email(self, email: str) -> RepIdentity | None:
        """Prefer the active rep holding email over older records that share it."""
        record = await self._store.get_active_rep_by_email(email)
        if record is None:
            record = await self._store.get_by_email(email)
        return record

    async def _provision_identity(
        self, identity_id: str | None, email: str, password: str
    ) -> str:
        """Resolve the provider identity (by uid, then by email) or create it; set password."""
        account = None
        if identity_id:
            account = await self._gateway.get_identity(identity_id)
        if account is None:
            account = await self._gateway.find_identity_by_email(email)
        if account is None:
            return await self._gateway.create_identity(email, password)
        await self._gateway.update_password(
            account.uid,
            password,
            email=email if normalize_email(account.email) != email else None,
        )
        return account.uid

    async def _activate(
        self, issuer_id: str, stub: RepStub, email: str, scope: RepScope
    ) -> tuple[str, str, int, bool]:
        """Provision the identity and make it the active holder of scope.

        Returns:
            (identity_id, password, new password version, reactivated)
        """
        if stub.identity_id:
            record = await self._store.get(stub.identity_id)
        else:
            record = await self._find_by_email(email)
        first_name = stub.first_name or (record.first_name if record else None)
        password = generate_password(first_name or DEFAULT_FIRST_NAME)

        identity_id = await self._provision_identity(
            stub.identity_id or (record.id if record else None), email, password
        )
        if record is None or record.id != identity_id:
            record = await self._store.get(identity_id)

        new_version = (record.password_version if record else 0) + 1
        reactivated = (
            record is not None
            and record.role is Role.REP
            and not record.is_active_rep
            and record.disabled_at is not None
        )
        written = await self._store.activate(
            identity_id,
            email=email,
            scope=scope,
            password_version=new_version,
            issuer_id=issuer_id,
            now=self._clock(),
            expected_update_time=record.update_time if record else None,
            reactivated=reactivated,
        )
        if not written:
            # The provider already holds the generated password, which is never returned.
            logger.error(
                "Provider password of %s was replaced but the record write lost a race; "
                "the identity needs a fresh assignment or a password reset",
                identity_id,
            )
            raise ConcurrentModificationException(identity_id)
        return identity_id, password, new_version, reactivated

    async def _ensure_slot_free(self, scope: RepScope, *allowed: str) -> None:
        holders = await self._store.find_active_by_scope(scope)
        others = [h for h in holders if h.id not in allowed]
        if others:
            raise SlotOccupiedException(scope.lock_key)

    async def _invalidate_credential(self, identity_id: str) -> bool:
        """Scramble the provider password and revoke sessions; False if the scramble failed."""
        invalidated = True
        try:
            await self._gateway.update_password(identity_id, generate_unguessable_password())
        except ClassConnectException as e:
            # isActiveRep=false already denies the identity at the Login Gate.
            invalidated = False
            logger.warning(
                "Could not invalidate provider credential of disabled rep %s: %s",
                identity_id,
                e.error_code,
            )
        await self._gateway.sign_out(identity_id)
        return invalidated

    @traced("rep_lifecycle.assign")
    async def assign(
        self, issuer_id: str, stub: RepStub, scope: RepScope
    ) -> AssignResult:
        """Make an identity the active rep of an empty seat and issue its password.

        Raises:
            MissingFieldException: No email given.
            SlotOccupiedException: Another identity already holds the seat.
            ConcurrentModificationException: The record changed during the write.
        """
        email = normalize_email(stub.email)
        if not email:
            raise MissingFieldException("studentEmail")

        async with self._locks.get(scope):
            allowed = [stub.identity_id] if stub.identity_id else []
            existing = await self._find_by_email(email)
            if existing is not None:
                allowed.append(existing.id)
            await self._ensure_slot_free(scope, *allowed)

            identity_id, password, version, reactivated = await self._activate(
                issuer_id, stub, email, scope
            )
            await self._assignments.append(
                AssignmentRecord(
                    action=AssignmentAction.ASSIGNED,
                    issuer_id=issuer_id,
                    new_identity_id=identity_id,
                    email=email,
                    scope=scope,
                    new_password_version=version,
                    created_at=self._clock(),
                )
            )

        logger.info(
            "Rep assigned: identity=%s scope=%s version=%d reactivated=%s",
            identity_id,
            scope.lock_key,
            version,
            reactivated,
        )
        return AssignResult(
            identity_id=identity_id,
            password_version=version,
            password=password,
            reactivated=reactivated,
        )

    async def _disable_holder(
        self, issuer_id: str, holder: RepIdentity, reason: str
    ) -> None:
        """Compare-and-swap the holder to inactive, bumping its password version."""
        disabled = await self._store.disable(
            holder.id,
            reason=reason,
            password_version=holder.password_version + 1,
            issuer_id=issuer_id,
            now=self._clock(),
            expected_update_time=holder.update_time,
        )
        if not disabled:
            raise ConcurrentModificationException(holder.id)
        add_span_event("rep_lifecycle.rep_disabled")

    async def _disable_old(
        self, issuer_id: str, old_identity_id: str, new_stub: RepStub, email: str, scope: RepScope
    ) -> RepIdentity:
        old = await self._store.get(old_identity_id)
        if old is None or not old.is_active_holder or old.scope != scope:
            raise RepNotActiveException(old_identity_id)
        if new_stub.identity_id == old.id or email == normalize_email(old.email):
            raise ValidationException(
                "New representative must be a different student", field="newStudentEmail"
            )
        allowed = [old.id] + ([new_stub.identity_id] if new_stub.identity_id else [])
        await self._ensure_slot_free(scope, *allowed)
        await self._disable_holder(issuer_id, old, REPLACED_REASON)
        return old

    async def _reassign_locked(
        self, issuer_id: str, old_identity_id: str, new_stub: RepStub, email: str, scope: RepScope
    ) -> ReassignResult:
        async with self._locks.get(scope):
            old = await self._disable_old(issuer_id, old_identity_id, new_stub, email, scope)
            invalidated = await self._invalidate_credential(old.id)

            new_id, password, version, _ = await self._activate(issuer_id, new_stub, email, scope)
            await self._assignments.append(
                AssignmentRecord(
                    action=AssignmentAction.REASSIGNED,
                    issuer_id=issuer_id,
                    old_identity_id=old.id,
                    new_identity_id=new_id,
                    email=email,
                    scope=scope,
                    old_password_version=old.password_version,
                    new_password_version=version,
                    created_at=self._clock(),
                )
            )
        logger.info(
            "Rep reassigned: old=%s new=%s scope=%s version=%d",
            old.id,
            new_id,
            scope.lock_key,
            version,
        )
        return ReassignResult(
            old_identity_id=old.id,
            new_identity_id=new_id,
            new_password_version=version,
            password=password,
            old_credential_invalidated=invalidated,
        )

    @traced("rep_lifecycle.reassign")
    async def reassign(
        self,
        issuer_id: str,
        old_identity_id: str,
        new_stub: RepStub,
        scope: RepScope,
    ) -> ReassignResult:
        """Replace the active rep of a seat.

        The old holder is disabled first (compare-and-swap). The whole
        sequence runs in its own task: cancelling the caller, even while the
        disable write is in flight, does not stop it, so the seat never stays
        half-reassigned.

        Raises:
            MissingFieldException: oldRepUid or new email missing.
            RepNotActiveException: Old identity is not the active rep of scope.
            ConcurrentModificationException: Another request changed the old record first.
        """
        if not old_identity_id:
            raise MissingFieldException("oldRepUid")
        email = normalize_email(new_stub.email)
        if not email:
            raise MissingFieldException("newStudentEmail")
        return await _run_to_completion(
            self._reassign_locked(issuer_id, old_identity_id, new_stub, email, scope)
        )

    async def _deactivate_locked(
        self, issuer_id: str, record: RepIdentity, scope: RepScope, reason: str
    ) -> DeactivateResult:
        async with self._locks.get(scope):
            # Any write since the read fails the compare-and-swap.
            await self._disable_holder(issuer_id, record, reason)
            invalidated = await self._invalidate_credential(record.id)
            await self._assignments.append(
                AssignmentRecord(
                    action=AssignmentAction.DEACTIVATED,
                    issuer_id=issuer_id,
                    new_identity_id=None,
                    email=record.email,
                    scope=scope,
                    new_password_version=None,
                    old_identity_id=record.id,
                    old_password_version=record.password_version,
                    reason=reason,
                    created_at=self._clock(),
                )
            )
        logger.info("Rep deactivated: identity=%s scope=%s", record.id, scope.lock_key)
        return DeactivateResult(
            identity_id=record.id,
            password_version=record.password_version + 1,
            old_credential_invalidated=invalidated,
        )

    @traced("rep_lifecycle.deactivate")
    async def deactivate(
        self, issuer_id: str, identity_id: str, reason: str | None = None
    ) -> DeactivateResult:
        """Disable an active rep without naming a successor; the seat becomes free.

        Raises:
            MissingFieldException: No identity given.
            RepNotActiveException: Identity is not an active rep of a seat.
            ConcurrentModificationException: The record changed during the write.
        """
        if not identity_id:
            raise MissingFieldException("uid")
        record = await self._store.get(identity_id)
        scope = record.scope if record is not None else None
        if record is None or not record.is_active_holder or scope is None:
            raise RepNotActiveException(identity_id)
        return await _run_to_completion(
            self._deactivate_locked(issuer_id, record, scope, reason or DEACTIVATED_REASON)
        )

    @traced("rep_lifecycle.record_credential_change")
    async def record_credential_change(self, identity_id: str) -> int:
        """Bump passwordVersion after a reset or self-service change; return the new version."""
        record = await self._store.get(identity_id)
        if record is None:
            raise UserNotFoundException()
        new_version = record.password_version + 1
        written = await self._store.record_password_change(
            identity_id,
            password_version=new_version,
            now=self._clock(),
            expected_update_time=record.update_time,
        )
        if not written:
            raise ConcurrentModificationException(identity_id)
        return new_version

    async def get_status(self, identity_id: str) -> RepStatus:
        """Status of an identity as seen by collaborators ("is this an active rep?")."""
        record = await self._store.get(identity_id)
        if record is None:
            raise ResourceNotFoundException("Representative", identity_id)
        return RepStatus(
            identity_id=record.id,
            is_active=record.is_active_holder,
            role=record.role.value,
            is_active_rep=record.is_active_rep,
            password_version=record.password_version,
            disabled_at=record.disabled_at,
            disabled_reason=record.disabled_reason,
        )

    async def list_active(
        self,
        college_id: str | None = None,
        department_id: str | None = None,
        year: str | None = None,
    ) -> list[RepIdentity]:
        """Reps currently holding a seat."""
        return await self._store.list_active(
            college_id=college_id, department_id=department_id, year=year
        )

    async def list_inactive(
        self, college_id: str | None = None, department_id: str | None = None
    ) -> list[RepIdentity]:
        """Reps that were disabled (candidates for reactivation)."""
        return await self._store.list_inactive(college_id=college_id, department_id=department_id)
