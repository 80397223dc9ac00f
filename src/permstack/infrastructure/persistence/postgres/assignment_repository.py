"""PostgreSQL assignment repository implementation - one table per level."""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from psycopg import AsyncConnection

from permstack.domain.entities import Assignment
from permstack.domain.value_objects import AssignmentKey, SubjectLevel


@dataclass(frozen=True)
class _LevelTable:
    """Table name and key columns for one assignment level."""

    table: str
    subject_column: str
    extra_keys: tuple[str, ...] = ()

    @property
    def key_columns(self) -> tuple[str, ...]:
        return (self.subject_column, "permission_id", *self.extra_keys)

    @property
    def columns(self) -> tuple[str, ...]:
        return (
            "id",
            *self.key_columns,
            "is_granted",
            "priority",
            "expires_at",
            "created_at",
            "updated_at",
        )


_TABLES: dict[SubjectLevel, _LevelTable] = {
    SubjectLevel.ROLE: _LevelTable("role_permission", "role_name"),
    SubjectLevel.GROUP: _LevelTable("group_permission", "group_id"),
    SubjectLevel.USER: _LevelTable("user_permission", "user_id"),
    SubjectLevel.MODEL: _LevelTable("model_permission", "user_id", ("model_type",)),
    SubjectLevel.OBJECT: _LevelTable(
        "object_permission", "user_id", ("object_id", "object_type")
    ),
}


def _select_sql(level: SubjectLevel, where: str) -> str:
    t = _TABLES[level]
    return f"SELECT {', '.join(t.columns)} FROM {t.table} WHERE {where}"


def _key_where(level: SubjectLevel) -> str:
    return " AND ".join(f"{c} = %s" for c in _TABLES[level].key_columns)


def _upsert_sql(level: SubjectLevel) -> str:
    """INSERT ... ON CONFLICT on the level's natural key; RETURNING flags inserts."""
    t = _TABLES[level]
    placeholders = ", ".join(["%s"] * len(t.columns))
    return (
        f"INSERT INTO {t.table} ({', '.join(t.columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT ({', '.join(t.key_columns)}) DO UPDATE SET "
        "is_granted = EXCLUDED.is_granted, priority = EXCLUDED.priority, "
        "expires_at = EXCLUDED.expires_at, updated_at = EXCLUDED.updated_at "
        f"RETURNING {', '.join(t.columns)}, (xmax = 0) AS inserted"
    )


def _key_params(key: AssignmentKey) -> tuple:
    extras: tuple = ()
    if key.level is SubjectLevel.MODEL:
        extras = (key.model_type,)
    elif key.level is SubjectLevel.OBJECT:
        extras = (key.object_id, key.object_type)
    return (key.subject_id, key.permission_id, *extras)


def _to_assignment(level: SubjectLevel, r: tuple) -> Assignment:
    n_extra = len(_TABLES[level].extra_keys)
    extras = r[3 : 3 + n_extra]
    is_granted, priority, expires_at, created_at, updated_at = r[3 + n_extra : 8 + n_extra]
    return Assignment(
        id=r[0],
        level=level,
        subject_id=r[1],
        permission_id=r[2],
        is_granted=is_granted,
        priority=priority,
        expires_at=expires_at,
        model_type=extras[0] if level is SubjectLevel.MODEL else None,
        object_id=extras[0] if level is SubjectLevel.OBJECT else None,
        object_type=extras[1] if level is SubjectLevel.OBJECT else None,
        created_at=created_at,
        updated_at=updated_at,
    )


class PostgresAssignmentRepository:
    """Assignment repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def list_role_assignments(
        self, permission_id: UUID, role_names: Iterable[str]
    ) -> list[Assignment]:
        """List role rows for permission among the given role names."""
        names = list(role_names)
        if not names:
            return []
        cur = await self._conn.execute(
            _select_sql(SubjectLevel.ROLE, "permission_id = %s AND role_name = ANY(%s)"),
            (permission_id, names),
        )
        rows = await cur.fetchall()
        return [_to_assignment(SubjectLevel.ROLE, r) for r in rows]

    async def list_group_assignments(
        self, permission_id: UUID, group_ids: Iterable[UUID]
    ) -> list[Assignment]:
        """List group rows for permission among the given group ids."""
        ids = list(group_ids)
        if not ids:
            return []
        cur = await self._conn.execute(
            _select_sql(SubjectLevel.GROUP, "permission_id = %s AND group_id = ANY(%s)"),
            (permission_id, ids),
        )
        rows = await cur.fetchall()
        return [_to_assignment(SubjectLevel.GROUP, r) for r in rows]

    async def find_user_assignment(
        self, permission_id: UUID, user_id: UUID
    ) -> Assignment | None:
        """Get the user row for permission, expired or not."""
        return await self.find(
            AssignmentKey(SubjectLevel.USER, user_id, permission_id)
        )

    async def find_model_assignment(
        self, permission_id: UUID, user_id: UUID, model_type: str
    ) -> Assignment | None:
        return await self.find(
            AssignmentKey(SubjectLevel.MODEL, user_id, permission_id, model_type=model_type)
        )

    async def find_object_assignment(
        self,
        permission_id: UUID,
        user_id: UUID,
        object_id: UUID,
        object_type: str,
    ) -> Assignment | None:
        return await self.find(
            AssignmentKey(
                SubjectLevel.OBJECT,
                user_id,
                permission_id,
                object_id=object_id,
                object_type=object_type,
            )
        )

    async def find(self, key: AssignmentKey) -> Assignment | None:
        """Get assignment by natural key."""
        cur = await self._conn.execute(
            _select_sql(key.level, _key_where(key.level)),
            _key_params(key),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return _to_assignment(key.level, r)

    async def upsert(self, assignment: Assignment) -> tuple[Assignment, bool]:
        """Insert or update by natural key. Returns stored row and whether it was inserted."""
        cur = await self._conn.execute(
            _upsert_sql(assignment.level),
            (
                assignment.id,
                *_key_params(assignment.key),
                assignment.is_granted,
                assignment.priority,
                assignment.expires_at,
                assignment.created_at,
                assignment.updated_at,
            ),
        )
        r = await cur.fetchone()
        return _to_assignment(assignment.level, r[:-1]), bool(r[-1])

    async def delete(self, key: AssignmentKey) -> bool:
        """Delete assignment by natural key."""
        cur = await self._conn.execute(
            f"DELETE FROM {_TABLES[key.level].table} WHERE {_key_where(key.level)}",
            _key_params(key),
        )
        return cur.rowcount > 0

    async def list_by_level(self, level: SubjectLevel) -> list[Assignment]:
        """List every row at level."""
        cur = await self._conn.execute(_select_sql(level, "TRUE"))
        rows = await cur.fetchall()
        return [_to_assignment(level, r) for r in rows]

    async def count_by_level(self, level: SubjectLevel) -> int:
        cur = await self._conn.execute(f"SELECT count(*) FROM {_TABLES[level].table}")
        r = await cur.fetchone()
        return r[0] if r else 0
