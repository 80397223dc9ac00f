"""User entity and its memberships."""

from dataclasses import dataclass, field
from uuid import UUID


@dataclass
class User:
    """User - the subject of user, model and object assignments."""

    id: UUID
    is_active: bool = True


@dataclass
class Membership:
    """Role names and group ids one user belongs to."""

    user_id: UUID
    role_names: set[str] = field(default_factory=set)
    group_ids: set[UUID] = field(default_factory=set)

    @property
    def size(self) -> int:
        return len(self.role_names) + len(self.group_ids)
