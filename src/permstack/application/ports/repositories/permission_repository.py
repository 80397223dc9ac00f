"""Permission repository port."""

from typing import Protocol
from uuid import UUID

from permstack.domain.entities import Permission


class PermissionRepository(Protocol):
    """Port for permission definition persistence."""

    async def get_by_id(self, permission_id: UUID) -> Permission | None: ...

    async def find(
        self, resource: str, action: str, include_inactive: bool = False
    ) -> Permission | None: ...

    async def list_all(self, include_inactive: bool = False) -> list[Permission]: ...

    async def count_active(self) -> int: ...

    async def create(self, permission: Permission) -> Permission: ...

    async def update(self, permission: Permission) -> None: ...
