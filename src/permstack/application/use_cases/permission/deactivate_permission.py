"""Deactivate permission use case."""

from datetime import UTC, datetime

import structlog

from permstack.application.dto.administration_dto import (
    AdministrationOutcome,
    AdministrationResult,
)
from permstack.application.ports import UnitOfWorkFactory
from permstack.domain.exceptions import StoreError, ValidationError
from permstack.domain.value_objects import PermissionName

logger = structlog.get_logger()


class DeactivatePermissionUseCase:
    """Mark a permission inactive. Checks against it deny from then on."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, permission_name: str) -> AdministrationResult:
        try:
            name = PermissionName.parse(permission_name)
        except ValidationError as exc:
            return AdministrationResult.failure(AdministrationOutcome.INVALID, str(exc))

        try:
            async with self._uow_factory() as uow:
                permission = await uow.permissions.find(name.resource, name.action)
                if not permission:
                    return AdministrationResult.failure(
                        AdministrationOutcome.PERMISSION_NOT_FOUND,
                        f"Permission not registered: {name}",
                    )
                permission.is_active = False
                permission.updated_at = datetime.now(UTC)
                await uow.permissions.update(permission)
        except StoreError:
            logger.exception("permission_deactivate_failed", permission=str(name))
            raise

        logger.info("permission_deactivated", permission=str(name))
        return AdministrationResult(
            outcome=AdministrationOutcome.DEACTIVATED, permission=permission
        )
