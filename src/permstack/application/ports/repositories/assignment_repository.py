"""Assignment repository port - role, group, user, model and object rows."""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from permstack.domain.entities import Assignment
from permstack.domain.value_objects import AssignmentKey, SubjectLevel


class AssignmentRepository(Protocol):
    """Port for assignment persistence.

    Lookups used by resolution return rows regardless of expiry; the
    resolver decides what an expired row means.
    """

    async def list_role_assignments(
        self, permission_id: UUID, role_names: Iterable[str]
    ) -> list[Assignment]: ...

    async def list_group_assignments(
        self, permission_id: UUID, group_ids: Iterable[UUID]
    ) -> list[Assignment]: ...

    async def find_user_assignment(
        self, permission_id: UUID, user_id: UUID
    ) -> Assignment | None: ...

    async def find_model_assignment(
        self, permission_id: UUID, user_id: UUID, model_type: str
    ) -> Assignment | None: ...

    async def find_object_assignment(
        self,
        permission_id: UUID,
        user_id: UUID,
        object_id: UUID,
        object_type: str,
    ) -> Assignment | None: ...

    async def find(self, key: AssignmentKey) -> Assignment | None: ...

    async def upsert(self, assignment: Assignment) -> tuple[Assignment, bool]: ...

    async def delete(self, key: AssignmentKey) -> bool: ...

    async def list_by_level(self, level: SubjectLevel) -> list[Assignment]: ...

    async def count_by_level(self, level: SubjectLevel) -> int: ...
