"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
import psycopg.errors
import structlog
from psycopg_pool import AsyncConnectionPool

from permstack.domain.exceptions import Conflict, StoreError
from permstack.infrastructure.persistence.postgres.assignment_repository import (
    PostgresAssignmentRepository,
)
from permstack.infrastructure.persistence.postgres.permission_repository import (
    PostgresPermissionRepository,
)
from permstack.infrastructure.persistence.postgres.subject_repository import (
    PostgresSubjectRepository,
)

logger = structlog.get_logger()


class PostgresUnitOfWork:
    """PostgreSQL Unit of Work - one connection, one transaction."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn: object | None = None
        self._conn_cm: object | None = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self._permissions = PostgresPermissionRepository(self._conn)
        self._assignments = PostgresAssignmentRepository(self._conn)
        self._subjects = PostgresSubjectRepository(self._conn)
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type and self._conn:
            await self._conn.rollback()
        if self._conn_cm:
            await self._conn_cm.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def permissions(self) -> PostgresPermissionRepository:
        return self._permissions

    @property
    def assignments(self) -> PostgresAssignmentRepository:
        return self._assignments

    @property
    def subjects(self) -> PostgresSubjectRepository:
        return self._subjects

    async def commit(self) -> None:
        if self._conn:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()


def translate_error(exc: psycopg.Error) -> Conflict | StoreError:
    """Map a driver error onto the domain's Conflict / StoreError."""
    if isinstance(exc, psycopg.errors.UniqueViolation):
        return Conflict(str(exc))
    return StoreError(str(exc))


def create_uow_factory(pool: AsyncConnectionPool) -> object:
    """Create UnitOfWork factory (async context manager).

    Driver errors raised inside the block, on commit or while acquiring
    a connection surface as Conflict or StoreError.
    """

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        try:
            async with PostgresUnitOfWork(pool) as uow:
                try:
                    yield uow
                    await uow.commit()
                except BaseException:
                    await uow.rollback()
                    raise
        except psycopg.Error as exc:
            logger.warning("store_transaction_failed", error_type=type(exc).__name__)
            raise translate_error(exc) from exc

    return factory
