"""Unit tests for administration use cases."""

from datetime import timedelta
from uuid import uuid4

import pytest

from permstack.application.dto.administration_dto import AdministrationOutcome
from permstack.application.use_cases.permission.deactivate_permission import (
    DeactivatePermissionUseCase,
)
from permstack.application.use_cases.permission.grant_permission import (
    GrantPermissionUseCase,
)
from permstack.application.use_cases.permission.register_permission import (
    RegisterPermissionUseCase,
)
from permstack.application.use_cases.permission.remove_assignment import (
    RemoveAssignmentUseCase,
)
from permstack.application.use_cases.permission.revoke_permission import (
    RevokePermissionUseCase,
)
from permstack.domain.entities import Permission
from permstack.domain.exceptions import Conflict, StoreError
from permstack.domain.value_objects import SubjectLevel
from permstack.infrastructure.permission.permission_resolver import PermissionResolver

from fakes import NOW, FakeStore


# --- GrantPermissionUseCase ---


@pytest.mark.asyncio
async def test_grant_creates_then_updates_single_row(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    """Granting twice with the same key leaves one row with the final values."""
    actor = store.add_user()
    use_case = GrantPermissionUseCase(unit_of_work_factory=uow_factory)

    first = await use_case.execute(SubjectLevel.USER, actor.user_id, "Documents.Read")
    second = await use_case.execute(
        "user", str(actor.user_id), "Documents.Read", is_granted=False, priority=7
    )

    assert first.outcome is AdministrationOutcome.CREATED
    assert second.outcome is AdministrationOutcome.UPDATED
    assert first.ok and second.ok
    rows = [a for a in store.assignments.values() if a.level is SubjectLevel.USER]
    assert len(rows) == 1
    assert rows[0].is_granted is False
    assert rows[0].priority == 7
    assert rows[0].id == first.assignment.id


@pytest.mark.asyncio
async def test_grant_uses_level_default_priority(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    group_id = store.add_group()
    result = await GrantPermissionUseCase(uow_factory).execute(
        SubjectLevel.GROUP, group_id, "Documents.Read"
    )
    assert result.assignment.priority == 50


@pytest.mark.asyncio
async def test_grant_then_check_then_revoke_round_trip(
    store: FakeStore, uow_factory, clock
) -> None:
    store.add_permission("Doc", "Read")
    actor = store.add_user()
    resolver = PermissionResolver(uow_factory, clock=clock)

    granted = await GrantPermissionUseCase(uow_factory).execute(
        SubjectLevel.USER, actor.user_id, "Doc.Read"
    )
    assert granted.ok
    assert await resolver.has_permission(actor, "Doc", "Read") is True

    revoked = await RevokePermissionUseCase(uow_factory).execute(
        SubjectLevel.USER, actor.user_id, "Doc.Read"
    )
    assert revoked.outcome is AdministrationOutcome.REVOKED
    assert await resolver.has_permission(actor, "Doc", "Read") is False


@pytest.mark.asyncio
async def test_grant_unknown_subject_fails(uow_factory, documents_read: Permission) -> None:
    result = await GrantPermissionUseCase(uow_factory).execute(
        SubjectLevel.ROLE, "Ghost", "Documents.Read"
    )
    assert not result
    assert result.outcome is AdministrationOutcome.SUBJECT_NOT_FOUND


@pytest.mark.asyncio
async def test_grant_unregistered_permission_fails(store: FakeStore, uow_factory) -> None:
    store.add_role("Admin")
    result = await GrantPermissionUseCase(uow_factory).execute(
        SubjectLevel.ROLE, "Admin", "Reports.Export"
    )
    assert result.outcome is AdministrationOutcome.PERMISSION_NOT_FOUND
    assert not store.assignments
    assert not store.permissions


@pytest.mark.asyncio
async def test_grant_deactivated_permission_fails(store: FakeStore, uow_factory) -> None:
    store.add_role("Admin")
    store.add_permission("Doc", "Read", is_active=False)
    result = await GrantPermissionUseCase(uow_factory).execute(
        SubjectLevel.ROLE, "Admin", "Doc.Read"
    )
    assert result.outcome is AdministrationOutcome.PERMISSION_NOT_FOUND


@pytest.mark.parametrize(
    "kwargs",
    [
        {"level": "tenant", "subject_id": "x", "permission_name": "Documents.Read"},
        {"level": "user", "subject_id": "not-a-uuid", "permission_name": "Documents.Read"},
        {"level": "role", "subject_id": "Admin", "permission_name": "Documents"},
        {"level": "model", "subject_id": str(uuid4()), "permission_name": "Documents.Read"},
        {
            "level": "role",
            "subject_id": "Admin",
            "permission_name": "Documents.Read",
            "expires_at": NOW,
        },
    ],
)
@pytest.mark.asyncio
async def test_grant_invalid_request(uow_factory, kwargs: dict) -> None:
    result = await GrantPermissionUseCase(uow_factory).execute(**kwargs)
    assert result.outcome is AdministrationOutcome.INVALID
    assert result.message


@pytest.mark.asyncio
async def test_grant_user_expiry_and_model_refinement(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    actor = store.add_user()
    use_case = GrantPermissionUseCase(uow_factory)

    user = await use_case.execute(
        SubjectLevel.USER, actor.user_id, "Documents.Read", expires_at=NOW + timedelta(days=1)
    )
    model = await use_case.execute(
        SubjectLevel.MODEL, actor.user_id, "Documents.Read", is_granted=False, model_type="Draft"
    )

    assert user.assignment.expires_at == NOW + timedelta(days=1)
    assert model.outcome is AdministrationOutcome.CREATED
    assert model.assignment.model_type == "Draft"
    assert model.assignment.priority == 150


@pytest.mark.asyncio
async def test_grant_conflict_returns_result(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    store.add_role("Admin")
    store.failures["assignments.upsert"] = Conflict("duplicate key")
    result = await GrantPermissionUseCase(uow_factory).execute(
        SubjectLevel.ROLE, "Admin", "Documents.Read"
    )
    assert result.outcome is AdministrationOutcome.CONFLICT


@pytest.mark.asyncio
async def test_grant_store_error_propagates_and_rolls_back(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    store.add_role("Admin")
    store.failures["assignments.upsert"] = StoreError("disk full")
    with pytest.raises(StoreError):
        await GrantPermissionUseCase(uow_factory).execute(
            SubjectLevel.ROLE, "Admin", "Documents.Read"
        )
    assert store.rollbacks == 1
    assert not store.assignments


# --- RevokePermissionUseCase / RemoveAssignmentUseCase ---


@pytest.mark.asyncio
async def test_revoke_keeps_row_as_explicit_deny(
    store: FakeStore, uow_factory, clock, documents_read: Permission
) -> None:
    """A revoked role grant keeps blocking a user grant."""
    actor = store.add_user(roles=["Editor"])
    store.add_assignment(SubjectLevel.ROLE, "Editor", documents_read)
    store.add_assignment(SubjectLevel.USER, actor.user_id, documents_read)

    result = await RevokePermissionUseCase(uow_factory).execute(
        SubjectLevel.ROLE, "Editor", "Documents.Read"
    )

    assert result.ok
    assert result.assignment.is_granted is False
    assert len(store.assignments) == 2
    resolver = PermissionResolver(uow_factory, clock=clock)
    assert await resolver.has_permission(actor, "Documents", "Read") is False


@pytest.mark.asyncio
async def test_revoke_missing_assignment_fails(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    store.add_role("Editor")
    result = await RevokePermissionUseCase(uow_factory).execute(
        SubjectLevel.ROLE, "Editor", "Documents.Read"
    )
    assert result.outcome is AdministrationOutcome.ASSIGNMENT_NOT_FOUND


@pytest.mark.asyncio
async def test_remove_makes_assignment_absent(
    store: FakeStore, uow_factory, clock, documents_read: Permission
) -> None:
    """Removing a role deny lets the user grant through again."""
    actor = store.add_user(roles=["Editor"])
    store.add_assignment(SubjectLevel.ROLE, "Editor", documents_read, is_granted=False)
    store.add_assignment(SubjectLevel.USER, actor.user_id, documents_read)
    use_case = RemoveAssignmentUseCase(uow_factory)

    removed = await use_case.execute(SubjectLevel.ROLE, "Editor", "Documents.Read")
    again = await use_case.execute(SubjectLevel.ROLE, "Editor", "Documents.Read")

    assert removed.outcome is AdministrationOutcome.REMOVED
    assert again.outcome is AdministrationOutcome.ASSIGNMENT_NOT_FOUND
    resolver = PermissionResolver(uow_factory, clock=clock)
    assert await resolver.has_permission(actor, "Documents", "Read") is True


@pytest.mark.asyncio
async def test_remove_object_assignment(
    store: FakeStore, uow_factory, documents_read: Permission
) -> None:
    actor = store.add_user()
    object_id = uuid4()
    store.add_assignment(
        SubjectLevel.OBJECT,
        actor.user_id,
        documents_read,
        is_granted=False,
        object_id=object_id,
        object_type="Document",
    )
    result = await RemoveAssignmentUseCase(uow_factory).execute(
        "object",
        str(actor.user_id),
        "Documents.Read",
        object_id=str(object_id),
        object_type="Document",
    )
    assert result.outcome is AdministrationOutcome.REMOVED
    assert not store.assignments


@pytest.mark.asyncio
async def test_remove_unknown_subject(uow_factory, documents_read: Permission) -> None:
    result = await RemoveAssignmentUseCase(uow_factory).execute(
        SubjectLevel.GROUP, str(uuid4()), "Documents.Read"
    )
    assert result.outcome is AdministrationOutcome.SUBJECT_NOT_FOUND
    assert "Subject not found" in result.message


# --- Register / Deactivate ---


@pytest.mark.asyncio
async def test_register_permission(store: FakeStore, uow_factory) -> None:
    use_case = RegisterPermissionUseCase(uow_factory)

    created = await use_case.execute("Reports", "Export", description="Export reports")
    duplicate = await use_case.execute("Reports", "Export")
    other_case = await use_case.execute("reports", "export")

    assert created.outcome is AdministrationOutcome.CREATED
    assert created.permission.name == "Reports.Export"
    assert duplicate.outcome is AdministrationOutcome.CONFLICT
    assert other_case.outcome is AdministrationOutcome.CREATED
    assert len(store.permissions) == 2


@pytest.mark.asyncio
async def test_register_rejects_dotted_resource(uow_factory) -> None:
    result = await RegisterPermissionUseCase(uow_factory).execute("Reports.Monthly", "Export")
    assert result.outcome is AdministrationOutcome.INVALID


@pytest.mark.asyncio
async def test_deactivate_permission_denies_afterwards(
    store: FakeStore, uow_factory, clock, documents_read: Permission
) -> None:
    actor = store.add_user(roles=["Admin"])
    store.add_assignment(SubjectLevel.ROLE, "Admin", documents_read)
    resolver = PermissionResolver(uow_factory, clock=clock)
    assert await resolver.has_permission(actor, "Documents", "Read") is True

    result = await DeactivatePermissionUseCase(uow_factory).execute("Documents.Read")
    missing = await DeactivatePermissionUseCase(uow_factory).execute("Documents.Read")

    assert result.outcome is AdministrationOutcome.DEACTIVATED
    assert missing.outcome is AdministrationOutcome.PERMISSION_NOT_FOUND
    assert await resolver.has_permission(actor, "Documents", "Read") is False
