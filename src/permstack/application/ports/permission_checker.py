"""Permission checker port - layered authorization."""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from permstack.domain.value_objects import Actor


class PermissionChecker(Protocol):
    """Port for checking an actor's permissions."""

    async def has_permission(self, actor: Actor, resource: str, action: str) -> bool: ...

    async def has_model_permission(
        self, actor: Actor, resource: str, action: str, model_type: str
    ) -> bool: ...

    async def has_object_permission(
        self,
        actor: Actor,
        resource: str,
        action: str,
        object_id: UUID,
        object_type: str,
    ) -> bool: ...

    async def has_any_of(self, actor: Actor, names: Iterable[str]) -> dict[str, bool]: ...
