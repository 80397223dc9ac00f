"""Subject repository port - identity and membership lookups."""

from typing import Protocol
from uuid import UUID

from permstack.domain.entities import Group, Membership, Role, User
from permstack.domain.value_objects import Actor, SubjectLevel


class SubjectRepository(Protocol):
    """Port for the identity store: roles, groups, users and their memberships."""

    async def exists(self, level: SubjectLevel, subject_id: str | UUID) -> bool: ...

    async def get_actor(self, user_id: UUID) -> Actor | None: ...

    async def list_roles(self) -> list[Role]: ...

    async def list_groups(self) -> list[Group]: ...

    async def list_users(self) -> list[User]: ...

    async def list_memberships(self) -> list[Membership]: ...

    async def save_role(self, role: Role) -> bool:
        """Insert role unless one with the same name exists. True if inserted."""
        ...

    async def save_group(self, group: Group) -> bool: ...

    async def save_user(self, user: User) -> bool: ...

    async def add_membership(self, membership: Membership) -> int:
        """Add the user to the named roles and groups. Returns rows added."""
        ...

    async def count_roles(self) -> int: ...

    async def count_groups(self) -> int: ...

    async def count_users(self) -> int: ...

    async def count_memberships(self) -> int: ...
