"""Migrate store use case - copy subjects, permissions and assignments between two stores.

Phases run in order, each inside one target transaction. A failing phase
is rolled back as a whole and stops the migration; earlier phases stay.
"""

from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog

from permstack.application.dto.migration_dto import (
    MigrationResult,
    MigrationValidationResult,
)
from permstack.application.ports import UnitOfWork, UnitOfWorkFactory
from permstack.domain.entities import Permission
from permstack.domain.exceptions import PermStackError
from permstack.domain.value_objects import SubjectLevel

logger = structlog.get_logger()

ROLES_PHASE = "roles"
USERS_PHASE = "users"
GROUPS_PHASE = "groups"
MEMBERSHIPS_PHASE = "memberships"
PERMISSIONS_PHASE = "permissions"
ASSIGNMENT_PHASES = (
    SubjectLevel.ROLE,
    SubjectLevel.GROUP,
    SubjectLevel.USER,
    SubjectLevel.MODEL,
    SubjectLevel.OBJECT,
)


class MigrateStoreUseCase:
    """Copy roles, users, groups, memberships, permissions and every assignment level.

    Subjects land before the assignments that reference them.
    """

    def __init__(
        self,
        source_uow_factory: UnitOfWorkFactory,
        target_uow_factory: UnitOfWorkFactory,
    ) -> None:
        self._source = source_uow_factory
        self._target = target_uow_factory

    async def execute(self) -> MigrationResult:
        """Run every phase. Returns a result; phase failures do not raise."""
        result = MigrationResult(started_at=datetime.now(UTC))
        permission_map: dict[UUID, UUID] = {}

        phases: list[tuple[str, Callable[[], Awaitable[int]]]] = [
            (ROLES_PHASE, self._migrate_roles),
            (USERS_PHASE, self._migrate_users),
            (GROUPS_PHASE, self._migrate_groups),
            (MEMBERSHIPS_PHASE, self._migrate_memberships),
            (PERMISSIONS_PHASE, lambda: self._migrate_permissions(permission_map)),
        ]
        for level in ASSIGNMENT_PHASES:
            phases.append(
                (level.value, self._assignment_phase(level, permission_map, result.warnings))
            )

        for name, run in phases:
            try:
                result.counts[name] = await run()
            except PermStackError as exc:
                logger.exception("migration_phase_failed", phase=name)
                result.failed_phase = name
                result.error_message = str(exc)
                result.completed_at = datetime.now(UTC)
                return result
            logger.info("migration_phase_completed", phase=name, count=result.counts[name])

        result.is_successful = True
        result.completed_at = datetime.now(UTC)
        logger.info("migration_completed", counts=result.counts, warnings=len(result.warnings))
        return result

    async def validate(self) -> MigrationValidationResult:
        """Compare subject, active permission and per-level assignment counts."""
        async with self._source() as uow:
            source_counts = await _counts(uow)
        async with self._target() as uow:
            target_counts = await _counts(uow)

        errors = [
            f"{name} count mismatch: source={source_counts[name]} target={target_counts[name]}"
            for name in source_counts
            if source_counts[name] != target_counts.get(name)
        ]
        return MigrationValidationResult(
            is_valid=not errors,
            errors=errors,
            source_counts=source_counts,
            target_counts=target_counts,
        )

    async def _migrate_roles(self) -> int:
        async with self._source() as source:
            roles = await source.subjects.list_roles()
        async with self._target() as target:
            return sum([await target.subjects.save_role(role) for role in roles])

    async def _migrate_users(self) -> int:
        async with self._source() as source:
            users = await source.subjects.list_users()
        async with self._target() as target:
            return sum([await target.subjects.save_user(user) for user in users])

    async def _migrate_groups(self) -> int:
        async with self._source() as source:
            groups = await source.subjects.list_groups()
        async with self._target() as target:
            return sum([await target.subjects.save_group(group) for group in groups])

    async def _migrate_memberships(self) -> int:
        async with self._source() as source:
            memberships = await source.subjects.list_memberships()
        async with self._target() as target:
            return sum([await target.subjects.add_membership(m) for m in memberships])

    async def _migrate_permissions(self, permission_map: dict[UUID, UUID]) -> int:
        """Copy active and inactive permissions, matched by name and active flag."""
        async with self._source() as source:
            permissions = await source.permissions.list_all(include_inactive=True)

        migrated = 0
        async with self._target() as target:
            existing_ids = {
                (p.resource, p.action, p.is_active): p.id
                for p in await target.permissions.list_all(include_inactive=True)
            }
            for permission in permissions:
                key = (permission.resource, permission.action, permission.is_active)
                if key in existing_ids:
                    permission_map[permission.id] = existing_ids[key]
                    continue
                copy = Permission(
                    id=uuid4(),
                    resource=permission.resource,
                    action=permission.action,
                    description=permission.description,
                    scope=permission.scope,
                    priority=permission.priority,
                    is_active=permission.is_active,
                    created_at=permission.created_at,
                    updated_at=permission.updated_at,
                )
                await target.permissions.create(copy)
                permission_map[permission.id] = existing_ids[key] = copy.id
                migrated += 1
        return migrated

    def _assignment_phase(
        self,
        level: SubjectLevel,
        permission_map: dict[UUID, UUID],
        warnings: list[str],
    ) -> Callable[[], Awaitable[int]]:
        async def run() -> int:
            async with self._source() as source:
                assignments = await source.assignments.list_by_level(level)

            migrated = 0
            async with self._target() as target:
                for assignment in assignments:
                    target_permission_id = permission_map.get(assignment.permission_id)
                    if target_permission_id is None:
                        warnings.append(
                            f"Skipped {level.value} assignment {assignment.id}: "
                            f"permission {assignment.permission_id} was not migrated"
                        )
                        continue
                    await target.assignments.upsert(
                        replace(assignment, id=uuid4(), permission_id=target_permission_id)
                    )
                    migrated += 1
            return migrated

        return run


async def _counts(uow: UnitOfWork) -> dict[str, int]:
    counts = {
        ROLES_PHASE: await uow.subjects.count_roles(),
        USERS_PHASE: await uow.subjects.count_users(),
        GROUPS_PHASE: await uow.subjects.count_groups(),
        MEMBERSHIPS_PHASE: await uow.subjects.count_memberships(),
        PERMISSIONS_PHASE: await uow.permissions.count_active(),
    }
    for level in ASSIGNMENT_PHASES:
        counts[level.value] = await uow.assignments.count_by_level(level)
    return counts
