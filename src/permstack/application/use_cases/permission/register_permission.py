"""Register permission use case."""

from datetime import UTC, datetime
from uuid import uuid4

import structlog

from permstack.application.dto.administration_dto import (
    AdministrationOutcome,
    AdministrationResult,
)
from permstack.application.ports import UnitOfWorkFactory
from permstack.domain.entities import Permission
from permstack.domain.exceptions import Conflict, StoreError, ValidationError
from permstack.domain.value_objects import PermissionName, PermissionScope

logger = structlog.get_logger()


class RegisterPermissionUseCase:
    """Create a permission definition. Active names are unique."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(
        self,
        resource: str,
        action: str,
        description: str | None = None,
        scope: PermissionScope = PermissionScope.GLOBAL,
        priority: int = 0,
    ) -> AdministrationResult:
        try:
            name = PermissionName.parse(f"{resource}.{action}")
        except ValidationError as exc:
            return AdministrationResult.failure(AdministrationOutcome.INVALID, str(exc))

        try:
            async with self._uow_factory() as uow:
                if await uow.permissions.find(name.resource, name.action):
                    return AdministrationResult.failure(
                        AdministrationOutcome.CONFLICT, f"Permission already exists: {name}"
                    )
                now = datetime.now(UTC)
                permission = Permission(
                    id=uuid4(),
                    resource=name.resource,
                    action=name.action,
                    description=description,
                    scope=PermissionScope(scope),
                    priority=priority,
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                )
                await uow.permissions.create(permission)
        except Conflict as exc:
            return AdministrationResult.failure(AdministrationOutcome.CONFLICT, str(exc))
        except StoreError:
            logger.exception("permission_register_failed", permission=str(name))
            raise

        logger.info("permission_registered", permission=str(name), scope=permission.scope.value)
        return AdministrationResult(outcome=AdministrationOutcome.CREATED, permission=permission)
