"""Faculty API: assign, reassign, deactivate and inspect Class Representatives."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from classconnect.api.v1.dependencies import get_lifecycle_manager, require_faculty
from classconnect.application.dtos.representative import RepStub
from classconnect.application.services.rep_lifecycle import RepLifecycleManager
from classconnect.core.limiter import limit_admin_writes
from classconnect.domain.exceptions import MissingFieldException
from classconnect.domain.value_objects import RepScope
from classconnect.schemas.representative import (
    ActiveRepItem,
    ActiveRepsResponse,
    AssignRepRequest,
    AssignRepResponse,
    DeactivateRepRequest,
    DeactivateRepResponse,
    InactiveRepItem,
    InactiveRepsResponse,
    ReassignRepRequest,
    ReassignRepResponse,
    RepStatusResponse,
)

router = APIRouter()


def _scope_from(body: AssignRepRequest | ReassignRepRequest) -> RepScope:
    for name, value in (
        ("collegeId", body.college_id),
        ("departmentId", body.department_id),
        ("slot", body.slot),
        ("year", body.year),
    ):
        if value is None or not str(value).strip():
            raise MissingFieldException(name)
    return RepScope(
        college_id=body.college_id,
        department_id=body.department_id,
        slot=body.slot,
        year=str(body.year),
    )


@router.post("/assignClassRepresentative", response_model=AssignRepResponse)
@limit_admin_writes
async def assign_class_representative(
    request: Request,
    body: AssignRepRequest,
    faculty_id: Annotated[str, Depends(require_faculty("assign_rep"))],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
):
    """Make a student the active rep of an empty seat; returns the generated password once."""
    if not body.student_email:
        raise MissingFieldException("studentEmail")
    scope = _scope_from(body)
    result = await lifecycle.assign(
        issuer_id=faculty_id,
        stub=RepStub(
            email=body.student_email,
            identity_id=body.student_uid or None,
            first_name=body.student_first_name,
        ),
        scope=scope,
    )
    return AssignRepResponse(
        uid=result.identity_id,
        password=result.password,
        password_version=result.password_version,
        reactivated=result.reactivated,
    )


@router.post("/reassignClassRepresentative", response_model=ReassignRepResponse)
@limit_admin_writes
async def reassign_class_representative(
    request: Request,
    body: ReassignRepRequest,
    faculty_id: Annotated[str, Depends(require_faculty("reassign_rep"))],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
):
    """Replace the active rep of a seat; the old rep is locked out before the new one is activated."""
    if not body.old_rep_uid:
        raise MissingFieldException("oldRepUid")
    if not body.new_student_email:
        raise MissingFieldException("newStudentEmail")
    scope = _scope_from(body)
    result = await lifecycle.reassign(
        issuer_id=faculty_id,
        old_identity_id=body.old_rep_uid,
        new_stub=RepStub(
            email=body.new_student_email,
            identity_id=body.new_student_uid or None,
            first_name=body.new_student_first_name,
        ),
        scope=scope,
    )
    return ReassignRepResponse(
        old_rep_uid=result.old_identity_id,
        new_rep_uid=result.new_identity_id,
        password=result.password,
        new_password_version=result.new_password_version,
        old_credential_invalidated=result.old_credential_invalidated,
    )


@router.post("/deactivateClassRepresentative", response_model=DeactivateRepResponse)
@limit_admin_writes
async def deactivate_class_representative(
    request: Request,
    body: DeactivateRepRequest,
    faculty_id: Annotated[str, Depends(require_faculty("deactivate_rep"))],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
):
    """Lock out an active rep and free the seat without naming a successor."""
    if not body.uid:
        raise MissingFieldException("uid")
    result = await lifecycle.deactivate(
        issuer_id=faculty_id, identity_id=body.uid, reason=body.reason or None
    )
    return DeactivateRepResponse(
        uid=result.identity_id,
        password_version=result.password_version,
        old_credential_invalidated=result.old_credential_invalidated,
    )


@router.get("/active", response_model=ActiveRepsResponse)
async def list_active_representatives(
    faculty_id: Annotated[str, Depends(require_faculty("list_active_reps"))],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
    college_id: Annotated[str | None, Query(alias="collegeId")] = None,
    department_id: Annotated[str | None, Query(alias="departmentId")] = None,
    year: Annotated[str | None, Query()] = None,
):
    """Reps currently holding a seat, optionally filtered by college, department and year."""
    reps = await lifecycle.list_active(
        college_id=college_id, department_id=department_id, year=year
    )
    items = [ActiveRepItem.from_identity(r) for r in reps]
    return ActiveRepsResponse(reps=items, count=len(items))


@router.get("/inactive", response_model=InactiveRepsResponse)
async def list_inactive_representatives(
    faculty_id: Annotated[str, Depends(require_faculty("list_inactive_reps"))],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
    college_id: Annotated[str | None, Query(alias="collegeId")] = None,
    department_id: Annotated[str | None, Query(alias="departmentId")] = None,
):
    """Reps that were disabled, optionally filtered by college and department."""
    reps = await lifecycle.list_inactive(college_id=college_id, department_id=department_id)
    items = [InactiveRepItem.from_identity(r) for r in reps]
    return InactiveRepsResponse(reps=items, count=len(items))


@router.get("/{uid}/status", response_model=RepStatusResponse)
async def get_representative_status(
    uid: str,
    faculty_id: Annotated[str, Depends(require_faculty("rep_status"))],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
):
    """Whether an identity is currently an active rep, with its disable history."""
    status = await lifecycle.get_status(uid)
    return RepStatusResponse.from_status(status)
