"""Grant permission use case - upsert a grant or deny at one level."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

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
from permstack.domain.entities import Assignment
from permstack.domain.exceptions import Conflict, NotFound, StoreError, ValidationError
from permstack.domain.value_objects import SubjectLevel

logger = structlog.get_logger()


class GrantPermissionUseCase:
    """Grant (or explicitly deny) a registered permission to a role, group or user."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(
        self,
        level: SubjectLevel | str,
        subject_id: str | UUID,
        permission_name: str,
        is_granted: bool = True,
        priority: int | None = None,
        expires_at: datetime | None = None,
        model_type: str | None = None,
        object_id: UUID | str | None = None,
        object_type: str | None = None,
    ) -> AdministrationResult:
        """Upsert the assignment keyed by subject + permission (+ refinement).

        The permission must already be registered. Repeating a grant updates
        the existing row.
        """
        try:
            target = AssignmentTarget.build(
                level, subject_id, permission_name, model_type, object_id, object_type
            )
            if expires_at is not None and target.level is not SubjectLevel.USER:
                raise ValidationError("Expiration is only supported for user-level assignments")
        except ValidationError as exc:
            return AdministrationResult.failure(AdministrationOutcome.INVALID, str(exc))

        try:
            async with self._uow_factory() as uow:
                await require_subject(uow, target)
                permission = await require_permission(uow, target)

                now = datetime.now(UTC)
                assignment = Assignment(
                    id=uuid4(),
                    level=target.level,
                    subject_id=target.subject_id,
                    permission_id=permission.id,
                    is_granted=is_granted,
                    priority=target.level.default_priority if priority is None else priority,
                    expires_at=expires_at,
                    model_type=target.model_type,
                    object_id=target.object_id,
                    object_type=target.object_type,
                    created_at=now,
                    updated_at=now,
                )
                saved, created = await uow.assignments.upsert(assignment)
        except Conflict as exc:
            logger.warning(
                "assignment_grant_conflict",
                level=target.level.value,
                subject=str(target.subject_id),
                permission=str(target.permission),
                error=str(exc),
            )
            return AdministrationResult.failure(AdministrationOutcome.CONFLICT, str(exc))
        except NotFound as exc:
            return not_found_result(exc)
        except StoreError:
            logger.exception(
                "assignment_grant_failed",
                level=target.level.value,
                subject=str(target.subject_id),
                permission=str(target.permission),
            )
            raise

        logger.info(
            "assignment_granted",
            level=target.level.value,
            subject=str(target.subject_id),
            permission=str(target.permission),
            is_granted=saved.is_granted,
            priority=saved.priority,
            created=created,
        )
        outcome = AdministrationOutcome.CREATED if created else AdministrationOutcome.UPDATED
        return AdministrationResult(outcome=outcome, assignment=saved)
