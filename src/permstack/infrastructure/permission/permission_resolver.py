"""Permission resolver - layered role/group/user/model/object checks against the store."""

from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from uuid import UUID

import structlog

from permstack.application.ports import ActorProvider, UnitOfWork, UnitOfWorkFactory
from permstack.domain import resolution
from permstack.domain.exceptions import StoreError, ValidationError
from permstack.domain.resolution import Decision
from permstack.domain.value_objects import Actor, PermissionAction, PermissionName, SubjectLevel
from permstack.infrastructure.identity.actor_provider import StoreActorProvider

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PermissionResolver:
    """Resolves Resource.Action checks for an actor. Explicit denies win.

    Each check runs in one unit of work. With fail_closed=True a StoreError
    is logged and the check denies; otherwise it propagates.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        actor_provider: ActorProvider | None = None,
        fail_closed: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._actor_provider = actor_provider or StoreActorProvider(unit_of_work_factory)
        self._fail_closed = fail_closed
        self._clock = clock

    async def has_permission(self, actor: Actor, resource: str, action: str) -> bool:
        return (await self.explain(actor, resource, action)).granted

    async def explain(self, actor: Actor, resource: str, action: str) -> Decision:
        """Evaluate a base check and return the deciding level and reason."""

        async def run() -> Decision:
            async with self._uow_factory() as uow:
                return await self._base_decision(uow, actor, resource, action)

        decision = await self._guarded(run, actor, resource, action)
        self._log_decision(actor, resource, action, decision)
        return decision

    async def has_model_permission(
        self, actor: Actor, resource: str, action: str, model_type: str
    ) -> bool:
        """Base check refined by the user's row for model_type, if any."""

        async def run() -> Decision:
            async with self._uow_factory() as uow:
                permission = await uow.permissions.find(resource, action)
                if not permission:
                    return Decision.deny(resolution.PERMISSION_NOT_FOUND)
                base = await self._resolve_for(uow, actor, permission.id)
                if not base.granted:
                    return base
                row = await uow.assignments.find_model_assignment(
                    permission.id, actor.user_id, model_type
                )
                return resolution.refine(base, row, SubjectLevel.MODEL)

        decision = await self._guarded(run, actor, resource, action)
        self._log_decision(actor, resource, action, decision, model_type=model_type)
        return decision.granted

    async def has_object_permission(
        self,
        actor: Actor,
        resource: str,
        action: str,
        object_id: UUID,
        object_type: str,
    ) -> bool:
        """Base check refined by the user's row for one object instance, if any."""

        async def run() -> Decision:
            async with self._uow_factory() as uow:
                permission = await uow.permissions.find(resource, action)
                if not permission:
                    return Decision.deny(resolution.PERMISSION_NOT_FOUND)
                base = await self._resolve_for(uow, actor, permission.id)
                if not base.granted:
                    return base
                row = await uow.assignments.find_object_assignment(
                    permission.id, actor.user_id, object_id, object_type
                )
                return resolution.refine(base, row, SubjectLevel.OBJECT)

        decision = await self._guarded(run, actor, resource, action)
        self._log_decision(
            actor,
            resource,
            action,
            decision,
            object_id=str(object_id),
            object_type=object_type,
        )
        return decision.granted

    async def has_any_of(self, actor: Actor, names: Iterable[str]) -> dict[str, bool]:
        """Evaluate each "Resource.Action" name independently in one unit of work.

        Malformed names map to False.
        """
        names = list(names)
        results: dict[str, bool] = {}
        try:
            async with self._uow_factory() as uow:
                for name in names:
                    try:
                        parsed = PermissionName.parse(name)
                    except ValidationError:
                        logger.debug(
                            "permission_checked",
                            user_id=str(actor.user_id),
                            permission=name,
                            granted=False,
                            reason=resolution.INVALID_NAME,
                        )
                        results[name] = False
                        continue
                    decision = await self._base_decision(
                        uow, actor, parsed.resource, parsed.action
                    )
                    results[name] = decision.granted
        except StoreError:
            if not self._fail_closed:
                raise
            logger.exception(
                "permission_check_failed", user_id=str(actor.user_id), names=names
            )
            return {name: False for name in names}
        return results

    async def effective_permissions(self, actor: Actor) -> list[str]:
        """Sorted names of active permissions the actor is granted."""
        granted: list[str] = []
        try:
            async with self._uow_factory() as uow:
                for permission in await uow.permissions.list_all():
                    decision = await self._resolve_for(uow, actor, permission.id)
                    if decision.granted:
                        granted.append(permission.name)
        except StoreError:
            if not self._fail_closed:
                raise
            logger.exception("effective_permissions_failed", user_id=str(actor.user_id))
            return []
        return sorted(granted)

    async def role_has_permission(self, role_name: str, resource: str, action: str) -> bool:
        """True when the role holds a granted row for the active permission."""
        return await self._subject_has_permission(SubjectLevel.ROLE, role_name, resource, action)

    async def group_has_permission(self, group_id: UUID, resource: str, action: str) -> bool:
        """True when the group holds a granted row for the active permission."""
        return await self._subject_has_permission(SubjectLevel.GROUP, group_id, resource, action)

    async def can_read(self, actor: Actor, resource: str) -> bool:
        return await self.has_permission(actor, resource, PermissionAction.READ)

    async def can_write(self, actor: Actor, resource: str) -> bool:
        return await self.has_permission(actor, resource, PermissionAction.WRITE)

    async def can_delete(self, actor: Actor, resource: str) -> bool:
        return await self.has_permission(actor, resource, PermissionAction.DELETE)

    async def has_user_permission(self, user_id: UUID, resource: str, action: str) -> bool:
        """Load the actor for user_id, then check. Unknown users are denied."""
        try:
            actor = await self._actor_provider.get_actor(user_id)
        except StoreError:
            if not self._fail_closed:
                raise
            logger.exception("actor_lookup_failed", user_id=str(user_id))
            return False
        if actor is None:
            logger.debug(
                "permission_checked",
                user_id=str(user_id),
                permission=f"{resource}.{action}",
                granted=False,
                reason=resolution.ACTOR_NOT_FOUND,
            )
            return False
        return await self.has_permission(actor, resource, action)

    async def _base_decision(
        self, uow: UnitOfWork, actor: Actor, resource: str, action: str
    ) -> Decision:
        permission = await uow.permissions.find(resource, action)
        if not permission:
            return Decision.deny(resolution.PERMISSION_NOT_FOUND)
        return await self._resolve_for(uow, actor, permission.id)

    async def _resolve_for(self, uow: UnitOfWork, actor: Actor, permission_id: UUID) -> Decision:
        roles = await uow.assignments.list_role_assignments(permission_id, actor.role_names)
        groups = await uow.assignments.list_group_assignments(permission_id, actor.group_ids)
        user = await uow.assignments.find_user_assignment(permission_id, actor.user_id)
        return resolution.resolve(roles, groups, user, now=self._clock())

    async def _subject_has_permission(
        self, level: SubjectLevel, subject_id: str | UUID, resource: str, action: str
    ) -> bool:
        try:
            async with self._uow_factory() as uow:
                permission = await uow.permissions.find(resource, action)
                if not permission:
                    return False
                if level is SubjectLevel.ROLE:
                    rows = await uow.assignments.list_role_assignments(
                        permission.id, [subject_id]
                    )
                else:
                    rows = await uow.assignments.list_group_assignments(
                        permission.id, [subject_id]
                    )
        except StoreError:
            if not self._fail_closed:
                raise
            logger.exception(
                "permission_check_failed",
                level=level.value,
                subject=str(subject_id),
                permission=f"{resource}.{action}",
            )
            return False
        return any(row.is_granted for row in rows)

    async def _guarded(
        self,
        run: Callable[[], Awaitable[Decision]],
        actor: Actor,
        resource: str,
        action: str,
    ) -> Decision:
        try:
            return await run()
        except StoreError:
            if not self._fail_closed:
                raise
            logger.exception(
                "permission_check_failed",
                user_id=str(actor.user_id),
                permission=f"{resource}.{action}",
            )
            return Decision.deny(resolution.STORE_ERROR)

    @staticmethod
    def _log_decision(
        actor: Actor, resource: str, action: str, decision: Decision, **context: object
    ) -> None:
        logger.debug(
            "permission_checked",
            user_id=str(actor.user_id),
            permission=f"{resource}.{action}",
            granted=decision.granted,
            level=decision.level.value if decision.level else None,
            reason=decision.reason,
            **context,
        )
