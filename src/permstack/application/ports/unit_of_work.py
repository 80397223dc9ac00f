"""Unit of Work port - transactional boundary."""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from permstack.application.ports.repositories.assignment_repository import (
    AssignmentRepository,
)
from permstack.application.ports.repositories.permission_repository import (
    PermissionRepository,
)
from permstack.application.ports.repositories.subject_repository import (
    SubjectRepository,
)


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def permissions(self) -> PermissionRepository: ...

    @property
    def assignments(self) -> AssignmentRepository: ...

    @property
    def subjects(self) -> SubjectRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Factory for UnitOfWork instances. Commits on clean exit, rolls back on error."""

    def __call__(self) -> AbstractAsyncContextManager[UnitOfWork]: ...
