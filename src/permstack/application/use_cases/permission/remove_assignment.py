"""Remove assignment use case - delete the row so it reads as absent."""

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
    require_permission,
    require_subject,
)
from permstack.domain.exceptions import NotFound, StoreError, ValidationError
from permstack.domain.value_objects import SubjectLevel

logger = structlog.get_logger()


class RemoveAssignmentUseCase:
    """Delete an assignment row. Resolution then falls through to other levels."""

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
                deleted = await uow.assignments.delete(target.key_for(permission.id))
        except NotFound as exc:
            return not_found_result(exc)
        except StoreError:
            logger.exception(
                "assignment_remove_failed",
                level=target.level.value,
                subject=str(target.subject_id),
                permission=str(target.permission),
            )
            raise

        if not deleted:
            return AdministrationResult.failure(
                AdministrationOutcome.ASSIGNMENT_NOT_FOUND,
                f"No {target.level.value} assignment for {target.subject_id} on {target.permission}",
            )
        logger.info(
            "assignment_removed",
            level=target.level.value,
            subject=str(target.subject_id),
            permission=str(target.permission),
        )
        return AdministrationResult(outcome=AdministrationOutcome.REMOVED)
