"""Command line front end: permission bootstrap, checks, grants and store migration."""

import argparse
import asyncio
import sys
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from uuid import UUID

import pydantic
import structlog

from permstack.application.dto.administration_dto import AdministrationResult
from permstack.application.dto.manifest import PermissionManifest, load_manifest
from permstack.application.ports import UnitOfWorkFactory
from permstack.config import Settings
from permstack.domain.exceptions import PermStackError, ValidationError
from permstack.domain.value_objects import PermissionName, SubjectLevel
from permstack.main import (
    Services,
    __version__,
    build_migration,
    build_services,
    open_store,
)

logger = structlog.get_logger()

StoreOpener = Callable[[str, Settings], AbstractAsyncContextManager[UnitOfWorkFactory]]

LEVELS = [level.value for level in SubjectLevel]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="permstack", description="Hierarchical permission engine"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("version", help="Print version")

    permissions = sub.add_parser("permissions", help="Permission manifest commands")
    perm_sub = permissions.add_subparsers(dest="permissions_command", required=True)
    preview = perm_sub.add_parser("preview", help="List permissions declared by a manifest")
    preview.add_argument("--manifest", help="Manifest JSON file (default: MANIFEST_PATH)")
    apply = perm_sub.add_parser("apply", help="Create missing permissions and role grants")
    apply.add_argument("--manifest", help="Manifest JSON file (default: MANIFEST_PATH)")
    apply.add_argument(
        "--skip-if-any-exist",
        action="store_true",
        help="Do nothing when any active permission already exists",
    )

    check = sub.add_parser("check", help="Check a user's permission")
    check.add_argument("user_id", type=UUID)
    check.add_argument("permission", help="Resource.Action")
    _add_refinement_args(check)

    grant = sub.add_parser("grant", help="Grant (or deny) a permission")
    _add_target_args(grant)
    grant.add_argument("--deny", action="store_true", help="Store an explicit deny")
    grant.add_argument("--priority", type=int, default=None)
    grant.add_argument(
        "--expires-at",
        type=datetime.fromisoformat,
        default=None,
        help="ISO timestamp (user level only)",
    )

    revoke = sub.add_parser("revoke", help="Revoke a permission")
    _add_target_args(revoke)
    revoke.add_argument(
        "--remove",
        action="store_true",
        help="Delete the assignment instead of turning it into a deny",
    )

    migrate = sub.add_parser("migrate", help="Copy permission data between stores")
    migrate.add_argument("--source-url", help="Source store (default: SOURCE_DATABASE_URL)")
    migrate.add_argument("--target-url", help="Target store (default: DATABASE_URL)")
    migrate.add_argument(
        "--validate-only",
        action="store_true",
        help="Only compare record counts",
    )
    return parser


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("level", choices=LEVELS)
    parser.add_argument("subject", help="Role name, group id or user id")
    parser.add_argument("permission", help="Resource.Action")
    _add_refinement_args(parser)


def _add_refinement_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--model-type", default=None)
    group.add_argument("--object-id", type=UUID, default=None)
    parser.add_argument("--object-type", default=None)


def run(
    argv: list[str] | None,
    settings: Settings,
    store_opener: StoreOpener = open_store,
) -> int:
    """Parse argv and run the command. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    if args.command == "version":
        print(f"permstack v{__version__}")
        return 0
    if args.command == "permissions" and args.permissions_command == "preview":
        manifest = _read_manifest(args.manifest or settings.manifest_path)
        if manifest is None:
            return 1
        for name in manifest.preview():
            print(name)
        return 0

    try:
        return asyncio.run(_dispatch(args, settings, store_opener))
    except PermStackError as exc:
        logger.error("command_failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1


async def _dispatch(args: argparse.Namespace, settings: Settings, store_opener: StoreOpener) -> int:
    if args.command == "migrate":
        return await _migrate(args, settings, store_opener)

    async with store_opener(settings.database_url, settings) as uow_factory:
        services = build_services(settings, uow_factory)
        if args.command == "permissions":
            return await _apply_manifest(args, settings, services)
        if args.command == "check":
            return await _check(args, services)
        if args.command == "grant":
            return await _grant(args, services)
        if args.command == "revoke":
            return await _revoke(args, services)
    raise ValueError(f"Unknown command: {args.command}")


def _read_manifest(path: str | None) -> PermissionManifest | None:
    if not path:
        print("error: no manifest given (use --manifest or MANIFEST_PATH)", file=sys.stderr)
        return None
    try:
        return load_manifest(path)
    except OSError as exc:
        print(f"error: cannot read manifest {path}: {exc}", file=sys.stderr)
    except pydantic.ValidationError as exc:
        print(f"error: invalid manifest {path}: {exc}", file=sys.stderr)
    return None


async def _apply_manifest(args: argparse.Namespace, settings: Settings, services: Services) -> int:
    manifest = _read_manifest(args.manifest or settings.manifest_path)
    if manifest is None:
        return 1
    report = await services.apply_manifest.execute(
        manifest, skip_if_any_exist=args.skip_if_any_exist
    )
    for name in report.created:
        print(f"created {name}")
    for name in report.skipped:
        print(f"skipped {name}")
    for warning in report.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    print(
        f"{len(report.created)} created, {len(report.skipped)} skipped, "
        f"{report.role_grants_applied} role grants applied"
    )
    return 0


async def _check(args: argparse.Namespace, services: Services) -> int:
    try:
        name = PermissionName.parse(args.permission)
    except ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if (args.object_id is None) != (args.object_type is None):
        print("error: --object-id and --object-type go together", file=sys.stderr)
        return 1

    actor = await services.actor_provider.get_actor(args.user_id)
    if actor is None:
        print(f"denied: user not found: {args.user_id}")
        return 1

    resolver = services.resolver
    if args.model_type:
        granted = await resolver.has_model_permission(
            actor, name.resource, name.action, args.model_type
        )
        detail = f"model {args.model_type}"
    elif args.object_id is not None:
        granted = await resolver.has_object_permission(
            actor, name.resource, name.action, args.object_id, args.object_type
        )
        detail = f"object {args.object_type}:{args.object_id}"
    else:
        decision = await resolver.explain(actor, name.resource, name.action)
        granted = decision.granted
        level = decision.level.value if decision.level else "-"
        detail = f"{decision.reason}, level {level}"

    print(f"{'granted' if granted else 'denied'}: {name} ({detail})")
    return 0 if granted else 1


async def _grant(args: argparse.Namespace, services: Services) -> int:
    result = await services.grant_permission.execute(
        args.level,
        args.subject,
        args.permission,
        is_granted=not args.deny,
        priority=args.priority,
        expires_at=args.expires_at,
        model_type=args.model_type,
        object_id=args.object_id,
        object_type=args.object_type,
    )
    return _report(result)


async def _revoke(args: argparse.Namespace, services: Services) -> int:
    use_case = services.remove_assignment if args.remove else services.revoke_permission
    result = await use_case.execute(
        args.level,
        args.subject,
        args.permission,
        model_type=args.model_type,
        object_id=args.object_id,
        object_type=args.object_type,
    )
    return _report(result)


def _report(result: AdministrationResult) -> int:
    line = result.outcome.value
    if result.message:
        line = f"{line}: {result.message}"
    print(line, file=sys.stdout if result.ok else sys.stderr)
    return 0 if result.ok else 1


async def _migrate(args: argparse.Namespace, settings: Settings, store_opener: StoreOpener) -> int:
    source_url = args.source_url or settings.source_database_url
    if not source_url:
        print("error: no source store (use --source-url or SOURCE_DATABASE_URL)", file=sys.stderr)
        return 1
    target_url = args.target_url or settings.database_url

    async with (
        store_opener(source_url, settings) as source,
        store_opener(target_url, settings) as target,
    ):
        migration = build_migration(source, target)
        if args.validate_only:
            validation = await migration.validate()
            print(validation.summary)
            return 0 if validation.is_valid else 1

        result = await migration.execute()
        for warning in result.warnings:
            print(f"warning: {warning}", file=sys.stderr)
        print(result.summary)
        return 0 if result.is_successful else 1
