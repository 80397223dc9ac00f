"""Actor provider port - identity/group membership lookup."""

from typing import Protocol
from uuid import UUID

from permstack.domain.value_objects import Actor


class ActorProvider(Protocol):
    """Port translating a user id into its role names and group ids."""

    async def get_actor(self, user_id: UUID) -> Actor | None: ...
