"""PostgreSQL permission repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permstack.domain.entities import Permission
from permstack.domain.value_objects import PermissionScope

_COLUMNS = (
    "id, resource, action, description, scope, priority, is_active, created_at, updated_at"
)


def _to_permission(r: tuple) -> Permission:
    return Permission(
        id=r[0],
        resource=r[1],
        action=r[2],
        description=r[3],
        scope=PermissionScope(r[4]),
        priority=r[5],
        is_active=r[6],
        created_at=r[7],
        updated_at=r[8],
    )


class PostgresPermissionRepository:
    """Permission repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, permission_id: UUID) -> Permission | None:
        """Get permission by id."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE id = %s",
            (permission_id,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return _to_permission(r)

    async def find(
        self, resource: str, action: str, include_inactive: bool = False
    ) -> Permission | None:
        """Find permission by exact resource and action."""
        sql = f"SELECT {_COLUMNS} FROM permission WHERE resource = %s AND action = %s"
        if not include_inactive:
            sql += " AND is_active"
        sql += " ORDER BY is_active DESC, updated_at DESC LIMIT 1"
        cur = await self._conn.execute(sql, (resource, action))
        r = await cur.fetchone()
        if not r:
            return None
        return _to_permission(r)

    async def list_all(self, include_inactive: bool = False) -> list[Permission]:
        """List permissions ordered by resource, action."""
        sql = f"SELECT {_COLUMNS} FROM permission"
        if not include_inactive:
            sql += " WHERE is_active"
        sql += " ORDER BY resource, action"
        cur = await self._conn.execute(sql)
        rows = await cur.fetchall()
        return [_to_permission(r) for r in rows]

    async def count_active(self) -> int:
        """Count active permissions."""
        cur = await self._conn.execute("SELECT count(*) FROM permission WHERE is_active")
        r = await cur.fetchone()
        return r[0] if r else 0

    async def create(self, permission: Permission) -> Permission:
        """Create permission."""
        await self._conn.execute(
            f"INSERT INTO permission ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                permission.id,
                permission.resource,
                permission.action,
                permission.description,
                permission.scope.value,
                permission.priority,
                permission.is_active,
                permission.created_at,
                permission.updated_at,
            ),
        )
        return permission

    async def update(self, permission: Permission) -> None:
        """Update mutable permission fields."""
        await self._conn.execute(
            "UPDATE permission SET description=%s, priority=%s, is_active=%s, updated_at=%s "
            "WHERE id=%s",
            (
                permission.description,
                permission.priority,
                permission.is_active,
                permission.updated_at,
                permission.id,
            ),
        )
