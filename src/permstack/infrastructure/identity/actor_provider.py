"""Actor providers - load a user's roles and groups from the identity store."""

import time
from collections.abc import Callable
from uuid import UUID

import structlog

from permstack.application.ports import ActorProvider, UnitOfWorkFactory
from permstack.domain.value_objects import Actor

logger = structlog.get_logger()


class StoreActorProvider:
    """Reads role names and group ids through the subject repository."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def get_actor(self, user_id: UUID) -> Actor | None:
        async with self._uow_factory() as uow:
            return await uow.subjects.get_actor(user_id)


class CachedActorProvider:
    """Memoizes actors per user id for ttl_seconds.

    Missing users are not cached. ttl_seconds <= 0 disables caching.
    Expired entries are dropped whenever a lookup misses.
    """

    def __init__(
        self,
        inner: ActorProvider,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[UUID, tuple[float, Actor]] = {}

    async def get_actor(self, user_id: UUID) -> Actor | None:
        if self._ttl <= 0:
            return await self._inner.get_actor(user_id)
        now = self._clock()
        entry = self._entries.get(user_id)
        if entry and entry[0] > now:
            return entry[1]
        self._evict_expired(now)
        actor = await self._inner.get_actor(user_id)
        if actor is None:
            return None
        self._entries[user_id] = (now + self._ttl, actor)
        logger.debug("actor_cached", user_id=str(user_id), ttl_seconds=self._ttl)
        return actor

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self, now: float) -> None:
        expired = [uid for uid, (expires, _) in self._entries.items() if expires <= now]
        for uid in expired:
            del self._entries[uid]

    def invalidate(self, user_id: UUID | None = None) -> None:
        """Drop one cached actor, or all of them."""
        if user_id is None:
            self._entries.clear()
        else:
            self._entries.pop(user_id, None)
