"""Unit tests for the Postgres adapter against a fake connection."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import uuid4

import psycopg
import psycopg.errors
import pytest

from permstack.domain.entities import Assignment, Membership, Permission, Role, User
from permstack.domain.exceptions import Conflict, StoreError
from permstack.domain.value_objects import AssignmentKey, PermissionScope, SubjectLevel
from permstack.infrastructure.persistence.postgres.assignment_repository import (
    PostgresAssignmentRepository,
    _select_sql,
    _upsert_sql,
)
from permstack.infrastructure.persistence.postgres.permission_repository import (
    PostgresPermissionRepository,
)
from permstack.infrastructure.persistence.postgres.subject_repository import (
    PostgresSubjectRepository,
)
from permstack.infrastructure.persistence.postgres.unit_of_work import create_uow_factory

NOW = datetime(2025, 6, 1, tzinfo=UTC)


class FakeCursor:
    def __init__(self, rows: list[tuple], rowcount: int = 0) -> None:
        self._rows = rows
        self.rowcount = rowcount

    async def fetchone(self) -> tuple | None:
        return self._rows[0] if self._rows else None

    async def fetchall(self) -> list[tuple]:
        return list(self._rows)


class FakeConnection:
    """Records executed statements and replays queued results."""

    def __init__(self, *results: FakeCursor) -> None:
        self.results = list(results)
        self.executed: list[tuple[str, tuple | None]] = []
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, sql: str, params: tuple | None = None) -> FakeCursor:
        self.executed.append((sql, params))
        return self.results.pop(0) if self.results else FakeCursor([])

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class FakePool:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn

    @asynccontextmanager
    async def connection(self):
        yield self.conn


class TestAssignmentSql:
    """Tests for per-level SQL builders."""

    def test_select_uses_level_table(self) -> None:
        sql = _select_sql(SubjectLevel.GROUP, "TRUE")
        assert "FROM group_permission" in sql
        assert "group_id" in sql

    def test_object_select_includes_object_columns(self) -> None:
        sql = _select_sql(SubjectLevel.OBJECT, "TRUE")
        assert "FROM object_permission" in sql
        assert "object_id, object_type" in sql

    def test_upsert_conflicts_on_natural_key(self) -> None:
        assert "ON CONFLICT (role_name, permission_id)" in _upsert_sql(SubjectLevel.ROLE)
        assert "ON CONFLICT (user_id, permission_id, model_type)" in _upsert_sql(
            SubjectLevel.MODEL
        )
        assert "ON CONFLICT (user_id, permission_id, object_id, object_type)" in _upsert_sql(
            SubjectLevel.OBJECT
        )

    def test_upsert_reports_insert(self) -> None:
        sql = _upsert_sql(SubjectLevel.USER)
        assert "(xmax = 0) AS inserted" in sql
        assert "is_granted = EXCLUDED.is_granted" in sql


class TestPostgresAssignmentRepository:
    @pytest.mark.asyncio
    async def test_list_role_assignments_maps_rows(self) -> None:
        permission_id = uuid4()
        row = (uuid4(), "Admin", permission_id, False, 0, None, NOW, NOW)
        conn = FakeConnection(FakeCursor([row]))
        repo = PostgresAssignmentRepository(conn)

        rows = await repo.list_role_assignments(permission_id, ["Admin", "Editor"])

        assert len(rows) == 1
        assert rows[0].level is SubjectLevel.ROLE
        assert rows[0].subject_id == "Admin"
        assert rows[0].is_granted is False
        sql, params = conn.executed[0]
        assert "role_name = ANY(%s)" in sql
        assert params == (permission_id, ["Admin", "Editor"])

    @pytest.mark.asyncio
    async def test_empty_membership_skips_query(self) -> None:
        conn = FakeConnection()
        repo = PostgresAssignmentRepository(conn)
        assert await repo.list_group_assignments(uuid4(), []) == []
        assert conn.executed == []

    @pytest.mark.asyncio
    async def test_find_object_assignment(self) -> None:
        permission_id, user_id, object_id = uuid4(), uuid4(), uuid4()
        row = (uuid4(), user_id, permission_id, object_id, "Patient", False, 200, None, NOW, NOW)
        conn = FakeConnection(FakeCursor([row]))
        repo = PostgresAssignmentRepository(conn)

        found = await repo.find_object_assignment(permission_id, user_id, object_id, "Patient")

        assert found.object_id == object_id
        assert found.object_type == "Patient"
        assert found.priority == 200
        assert conn.executed[0][1] == (user_id, permission_id, object_id, "Patient")

    @pytest.mark.asyncio
    async def test_upsert_returns_created_flag(self) -> None:
        user_id, permission_id = uuid4(), uuid4()
        assignment = Assignment(
            id=uuid4(),
            level=SubjectLevel.MODEL,
            subject_id=user_id,
            permission_id=permission_id,
            model_type="Invoice",
            priority=150,
            created_at=NOW,
            updated_at=NOW,
        )
        stored_id = uuid4()
        returned = (stored_id, user_id, permission_id, "Invoice", True, 150, None, NOW, NOW, False)
        conn = FakeConnection(FakeCursor([returned]))

        saved, created = await PostgresAssignmentRepository(conn).upsert(assignment)

        assert created is False
        assert saved.id == stored_id
        assert saved.model_type == "Invoice"
        assert conn.executed[0][1] == (
            assignment.id, user_id, permission_id, "Invoice", True, 150, None, NOW, NOW
        )

    @pytest.mark.asyncio
    async def test_delete_reports_rowcount(self) -> None:
        conn = FakeConnection(FakeCursor([], rowcount=1), FakeCursor([], rowcount=0))
        repo = PostgresAssignmentRepository(conn)
        key = AssignmentKey(SubjectLevel.ROLE, "Admin", uuid4())

        assert await repo.delete(key) is True
        assert await repo.delete(key) is False
        assert conn.executed[0][0].startswith("DELETE FROM role_permission")


class TestPostgresPermissionRepository:
    @pytest.mark.asyncio
    async def test_find_active_only_by_default(self) -> None:
        permission_id = uuid4()
        row = (permission_id, "Doc", "Read", None, "model", 5, True, NOW, NOW)
        conn = FakeConnection(FakeCursor([row]))

        found = await PostgresPermissionRepository(conn).find("Doc", "Read")

        assert found == Permission(
            id=permission_id,
            resource="Doc",
            action="Read",
            scope=PermissionScope.MODEL,
            priority=5,
            created_at=NOW,
            updated_at=NOW,
        )
        sql, params = conn.executed[0]
        assert "AND is_active" in sql
        assert params == ("Doc", "Read")

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self) -> None:
        conn = FakeConnection(FakeCursor([]))
        repo = PostgresPermissionRepository(conn)
        assert await repo.find("Doc", "Read", include_inactive=True) is None
        assert "AND is_active" not in conn.executed[0][0]


class TestPostgresSubjectRepository:
    @pytest.mark.asyncio
    async def test_get_actor_collects_memberships(self) -> None:
        user_id, group_id = uuid4(), uuid4()
        conn = FakeConnection(
            FakeCursor([(1,)]),
            FakeCursor([("Admin",), ("Editor",)]),
            FakeCursor([(group_id,)]),
        )

        actor = await PostgresSubjectRepository(conn).get_actor(user_id)

        assert actor.user_id == user_id
        assert actor.role_names == frozenset({"Admin", "Editor"})
        assert actor.group_ids == frozenset({group_id})

    @pytest.mark.asyncio
    async def test_get_actor_unknown_user(self) -> None:
        conn = FakeConnection(FakeCursor([]))
        assert await PostgresSubjectRepository(conn).get_actor(uuid4()) is None
        assert len(conn.executed) == 1

    @pytest.mark.asyncio
    async def test_role_exists_by_name(self) -> None:
        conn = FakeConnection(FakeCursor([(1,)]))
        assert await PostgresSubjectRepository(conn).exists(SubjectLevel.ROLE, "Admin")
        assert "app_role WHERE name" in conn.executed[0][0]

    @pytest.mark.asyncio
    async def test_list_memberships_merges_roles_and_groups(self) -> None:
        alice, bob, group_id = uuid4(), uuid4(), uuid4()
        conn = FakeConnection(
            FakeCursor([(alice, "Admin"), (alice, "Editor")]),
            FakeCursor([(alice, group_id), (bob, group_id)]),
        )

        memberships = await PostgresSubjectRepository(conn).list_memberships()

        by_user = {m.user_id: m for m in memberships}
        assert by_user[alice] == Membership(alice, {"Admin", "Editor"}, {group_id})
        assert by_user[bob] == Membership(bob, set(), {group_id})

    @pytest.mark.asyncio
    async def test_save_role_skips_taken_name(self) -> None:
        conn = FakeConnection(FakeCursor([], rowcount=1), FakeCursor([], rowcount=0))
        repo = PostgresSubjectRepository(conn)
        role = Role(id=uuid4(), name="Admin")

        assert await repo.save_role(role) is True
        assert await repo.save_role(role) is False
        assert "ON CONFLICT DO NOTHING" in conn.executed[0][0]
        assert conn.executed[0][1] == (role.id, "Admin")

    @pytest.mark.asyncio
    async def test_save_user_reports_insert(self) -> None:
        conn = FakeConnection(FakeCursor([(True,)]), FakeCursor([(False,)]))
        repo = PostgresSubjectRepository(conn)
        user = User(id=uuid4(), is_active=False)

        assert await repo.save_user(user) is True
        assert await repo.save_user(user) is False
        assert conn.executed[0][1] == (user.id, False)

    @pytest.mark.asyncio
    async def test_add_membership_resolves_role_by_name(self) -> None:
        user_id, group_id = uuid4(), uuid4()
        conn = FakeConnection(FakeCursor([], rowcount=1), FakeCursor([], rowcount=0))

        added = await PostgresSubjectRepository(conn).add_membership(
            Membership(user_id, {"Admin"}, {group_id})
        )

        assert added == 1
        role_sql, role_params = conn.executed[0]
        assert "SELECT %s, id FROM app_role WHERE name = %s" in role_sql
        assert role_params == (user_id, "Admin")
        assert conn.executed[1][1] == (user_id, group_id)

    @pytest.mark.asyncio
    async def test_count_memberships_sums_both_tables(self) -> None:
        conn = FakeConnection(FakeCursor([(5,)]))
        assert await PostgresSubjectRepository(conn).count_memberships() == 5
        assert "user_role" in conn.executed[0][0]
        assert "user_group" in conn.executed[0][0]


class TestPostgresUnitOfWork:
    @pytest.mark.asyncio
    async def test_commits_on_clean_exit(self) -> None:
        conn = FakeConnection()
        factory = create_uow_factory(FakePool(conn))
        async with factory() as uow:
            await uow.permissions.count_active()
        assert conn.commits == 1
        assert conn.rollbacks == 0

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self) -> None:
        conn = FakeConnection()
        factory = create_uow_factory(FakePool(conn))
        with pytest.raises(Conflict) as info:
            async with factory():
                raise psycopg.errors.UniqueViolation("duplicate key")
        assert isinstance(info.value.__cause__, psycopg.errors.UniqueViolation)
        assert conn.commits == 0
        assert conn.rollbacks >= 1

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_error(self) -> None:
        conn = FakeConnection()
        factory = create_uow_factory(FakePool(conn))
        with pytest.raises(StoreError):
            async with factory():
                raise psycopg.OperationalError("server closed the connection")

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(self) -> None:
        factory = create_uow_factory(FakePool(FakeConnection()))
        with pytest.raises(ValueError):
            async with factory():
                raise ValueError("not a driver error")
