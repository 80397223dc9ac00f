"""Application entry point and composition root."""

import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from permstack.application.ports import ActorProvider, UnitOfWorkFactory
from permstack.application.use_cases.bootstrap.apply_manifest import ApplyManifestUseCase
from permstack.application.use_cases.migration.migrate_store import MigrateStoreUseCase
from permstack.application.use_cases.permission.deactivate_permission import (
    DeactivatePermissionUseCase,
)
from permstack.application.use_cases.permission.grant_permission import GrantPermissionUseCase
from permstack.application.use_cases.permission.register_permission import (
    RegisterPermissionUseCase,
)
from permstack.application.use_cases.permission.remove_assignment import RemoveAssignmentUseCase
from permstack.application.use_cases.permission.revoke_permission import RevokePermissionUseCase
from permstack.config import Settings, get_settings
from permstack.infrastructure.identity.actor_provider import (
    CachedActorProvider,
    StoreActorProvider,
)
from permstack.infrastructure.permission.permission_resolver import PermissionResolver
from permstack.infrastructure.persistence.postgres.connection import create_pool
from permstack.infrastructure.persistence.postgres.unit_of_work import create_uow_factory
from permstack.log import configure_logging

__version__ = "0.1.0"


@dataclass
class Services:
    """Wired use cases and the resolver over one store."""

    uow_factory: UnitOfWorkFactory
    actor_provider: ActorProvider
    resolver: PermissionResolver
    grant_permission: GrantPermissionUseCase
    revoke_permission: RevokePermissionUseCase
    remove_assignment: RemoveAssignmentUseCase
    register_permission: RegisterPermissionUseCase
    deactivate_permission: DeactivatePermissionUseCase
    apply_manifest: ApplyManifestUseCase


def build_services(settings: Settings, uow_factory: UnitOfWorkFactory) -> Services:
    """Composition root - wire use cases and the resolver over uow_factory."""
    actor_provider: ActorProvider = StoreActorProvider(uow_factory)
    if settings.actor_cache_ttl_seconds > 0:
        actor_provider = CachedActorProvider(actor_provider, settings.actor_cache_ttl_seconds)

    return Services(
        uow_factory=uow_factory,
        actor_provider=actor_provider,
        resolver=PermissionResolver(
            uow_factory,
            actor_provider=actor_provider,
            fail_closed=settings.resolver_fail_closed,
        ),
        grant_permission=GrantPermissionUseCase(unit_of_work_factory=uow_factory),
        revoke_permission=RevokePermissionUseCase(unit_of_work_factory=uow_factory),
        remove_assignment=RemoveAssignmentUseCase(unit_of_work_factory=uow_factory),
        register_permission=RegisterPermissionUseCase(unit_of_work_factory=uow_factory),
        deactivate_permission=DeactivatePermissionUseCase(unit_of_work_factory=uow_factory),
        apply_manifest=ApplyManifestUseCase(unit_of_work_factory=uow_factory),
    )


def build_migration(
    source_uow_factory: UnitOfWorkFactory, target_uow_factory: UnitOfWorkFactory
) -> MigrateStoreUseCase:
    return MigrateStoreUseCase(source_uow_factory, target_uow_factory)


@asynccontextmanager
async def open_store(conninfo: str, settings: Settings) -> AsyncIterator[UnitOfWorkFactory]:
    """Open a pool for conninfo and yield a unit of work factory over it."""
    pool = create_pool(
        conninfo, min_size=settings.pool_min_size, max_size=settings.pool_max_size
    )
    await pool.open()
    try:
        yield create_uow_factory(pool)
    finally:
        await pool.close()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    from permstack.interfaces.cli.commands import run

    settings = get_settings()
    configure_logging(settings)
    return run(argv, settings)


def cli() -> None:
    sys.exit(main())
