"""Actor context - who is asking."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class Actor:
    """User id plus the role names and group ids it currently holds."""

    user_id: UUID
    role_names: frozenset[str] = field(default_factory=frozenset)
    group_ids: frozenset[UUID] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls,
        user_id: UUID,
        role_names: Iterable[str] = (),
        group_ids: Iterable[UUID] = (),
    ) -> "Actor":
        return cls(
            user_id=user_id,
            role_names=frozenset(role_names),
            group_ids=frozenset(group_ids),
        )
