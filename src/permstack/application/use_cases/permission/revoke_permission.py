"""Revoke permission use case - soft revoke into an explicit deny."""

from datetime import UTC, datetime
from uuid import UUID

import structlog

from permstack.application.dto.administration_dto import (
    AdministrationOutcome,
    AdministrationResult,
    AssignmentTarget,
)
from permstack.application.ports import UnitOfWorkFactory
from permstack.application.use_cases.permission.lookups import (
    not_found_result,
    require_assignment,
    require_permission,
    require_subject,
)
from permstack.domain.exceptions import NotFound, StoreError, ValidationError
from permstack.domain.value_objects import SubjectLevel

logger = structlog.get_logger()


class RevokePermissionUseCase:
    """Revoke an assignment by flipping it to is_granted=False.

    The row is kept so the revoke keeps blocking grants from other levels.
    Use RemoveAssignmentUseCase to make the assignment absent instead.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(
        self,
        level: SubjectLevel | str,
        subject_id: str | UUID,
        permission_name: str,
        model_type: str | None = None,
        object_id: UUID | str | None = None,
        object_type: str | None = None,
    ) -> AdministrationResult:
        """Revoke the assignment for subject on permission."""
        try:
            target = AssignmentTarget.build(
                level, subject_id, permission_name, model_type, object_id, object_type
            )
        except ValidationError as exc:
            return AdministrationResult.failure(AdministrationOutcome.INVALID, str(exc))

        try:
            async with self._uow_factory() as uow:
                await require_subject(uow, target)
                permission = await require_permission(uow, target)
                existing = await require_assignment(uow, target, permission)
                existing.is_granted = False
                existing.updated_at = datetime.now(UTC)
                saved, _ = await uow.assignments.upsert(existing)
        except NotFound as exc:
            return not_found_result(exc)
        except StoreError:
            logger.exception(
                "assignment_revoke_failed",
                level=target.level.value,
                subject=str(target.subject_id),
                permission=str(target.permission),
            )
            raise

        logger.info(
            "assignment_revoked",
            level=target.level.value,
            subject=str(target.subject_id),
            permission=str(target.permission),
        )
        return AdministrationResult(outcome=AdministrationOutcome.REVOKED, assignment=saved)
