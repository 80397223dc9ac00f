"""Apply permission manifest use case - explicit bootstrap of permissions and role grants."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from permstack.application.dto.manifest import PermissionManifest
from permstack.application.ports import UnitOfWorkFactory
from permstack.domain.entities import Assignment, Permission
from permstack.domain.exceptions import StoreError
from permstack.domain.value_objects import PermissionName, SubjectLevel

logger = structlog.get_logger()


@dataclass
class ManifestReport:
    """What applying a manifest changed."""

    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    role_grants_applied: int = 0
    warnings: list[str] = field(default_factory=list)


class ApplyManifestUseCase:
    """Create missing permissions and apply role grants in one transaction."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(
        self,
        manifest: PermissionManifest,
        skip_if_any_exist: bool = False,
    ) -> ManifestReport:
        """Existing permissions are left untouched; manifest duplicates are created once."""
        report = ManifestReport()
        now = datetime.now(UTC)

        try:
            async with self._uow_factory() as uow:
                if skip_if_any_exist and await uow.permissions.count_active() > 0:
                    report.skipped = manifest.preview()
                    logger.info("manifest_skipped", reason="permissions_exist")
                    return report

                seen: set[str] = set()
                for definition in manifest.permissions:
                    if definition.name in seen:
                        continue
                    seen.add(definition.name)
                    if await uow.permissions.find(definition.resource, definition.action):
                        report.skipped.append(definition.name)
                        continue
                    await uow.permissions.create(
                        Permission(
                            id=uuid4(),
                            resource=definition.resource,
                            action=definition.action,
                            description=definition.description,
                            scope=definition.scope,
                            priority=definition.priority,
                            is_active=True,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    report.created.append(definition.name)

                for grant in manifest.role_grants:
                    name = PermissionName.parse(grant.permission)
                    permission = await uow.permissions.find(name.resource, name.action)
                    if not permission:
                        report.warnings.append(
                            f"Role grant skipped, permission not registered: {grant.permission}"
                        )
                        continue
                    if not await uow.subjects.exists(SubjectLevel.ROLE, grant.role):
                        report.warnings.append(
                            f"Role grant skipped, role not found: {grant.role}"
                        )
                        continue
                    await uow.assignments.upsert(
                        Assignment(
                            id=uuid4(),
                            level=SubjectLevel.ROLE,
                            subject_id=grant.role,
                            permission_id=permission.id,
                            is_granted=grant.is_granted,
                            priority=grant.priority,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    report.role_grants_applied += 1
        except StoreError:
            logger.exception("manifest_apply_failed")
            raise

        for warning in report.warnings:
            logger.warning("manifest_warning", detail=warning)
        logger.info(
            "manifest_applied",
            created=len(report.created),
            skipped=len(report.skipped),
            role_grants=report.role_grants_applied,
        )
        return report
