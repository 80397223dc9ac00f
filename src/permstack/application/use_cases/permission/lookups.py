"""Lookups shared by the administration use cases."""

from permstack.application.dto.administration_dto import (
    AdministrationOutcome,
    AdministrationResult,
    AssignmentTarget,
)
from permstack.application.ports import UnitOfWork
from permstack.domain.entities import Assignment, Permission
from permstack.domain.exceptions import NotFound

SUBJECT = "Subject"
PERMISSION = "Permission"
ASSIGNMENT = "Assignment"

_OUTCOMES = {
    SUBJECT: AdministrationOutcome.SUBJECT_NOT_FOUND,
    PERMISSION: AdministrationOutcome.PERMISSION_NOT_FOUND,
    ASSIGNMENT: AdministrationOutcome.ASSIGNMENT_NOT_FOUND,
}


async def require_subject(uow: UnitOfWork, target: AssignmentTarget) -> None:
    if not await uow.subjects.exists(target.level, target.subject_id):
        raise NotFound(SUBJECT, f"{target.level.value} {target.subject_id}")


async def require_permission(uow: UnitOfWork, target: AssignmentTarget) -> Permission:
    """Active permission named by target. Raises NotFound."""
    permission = await uow.permissions.find(target.permission.resource, target.permission.action)
    if not permission:
        raise NotFound(PERMISSION, str(target.permission))
    return permission


async def require_assignment(
    uow: UnitOfWork, target: AssignmentTarget, permission: Permission
) -> Assignment:
    assignment = await uow.assignments.find(target.key_for(permission.id))
    if not assignment:
        raise NotFound(
            ASSIGNMENT, f"{target.level.value} {target.subject_id} on {target.permission}"
        )
    return assignment


def not_found_result(exc: NotFound) -> AdministrationResult:
    return AdministrationResult.failure(_OUTCOMES[exc.entity], str(exc))
