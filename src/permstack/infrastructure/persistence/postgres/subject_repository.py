"""PostgreSQL subject repository - roles, groups, users and memberships."""

from uuid import UUID

from psycopg import AsyncConnection

from permstack.domain.entities import Group, Membership, Role, User
from permstack.domain.value_objects import Actor, SubjectLevel

_EXISTS_SQL: dict[SubjectLevel, str] = {
    SubjectLevel.ROLE: "SELECT 1 FROM app_role WHERE name = %s",
    SubjectLevel.GROUP: "SELECT 1 FROM app_group WHERE id = %s",
    SubjectLevel.USER: "SELECT 1 FROM app_user WHERE id = %s",
    SubjectLevel.MODEL: "SELECT 1 FROM app_user WHERE id = %s",
    SubjectLevel.OBJECT: "SELECT 1 FROM app_user WHERE id = %s",
}


class PostgresSubjectRepository:
    """Roles, groups, users and memberships: lookups, actor loading and copying."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def exists(self, level: SubjectLevel, subject_id: str | UUID) -> bool:
        cur = await self._conn.execute(_EXISTS_SQL[level], (subject_id,))
        return await cur.fetchone() is not None

    async def get_actor(self, user_id: UUID) -> Actor | None:
        """Load user with role names and group ids, or None if the user is missing."""
        cur = await self._conn.execute(
            "SELECT 1 FROM app_user WHERE id = %s", (user_id,)
        )
        if await cur.fetchone() is None:
            return None
        cur = await self._conn.execute(
            """
            SELECT r.name FROM user_role ur
            JOIN app_role r ON r.id = ur.role_id
            WHERE ur.user_id = %s
            """,
            (user_id,),
        )
        role_rows = await cur.fetchall()
        cur = await self._conn.execute(
            "SELECT group_id FROM user_group WHERE user_id = %s", (user_id,)
        )
        group_rows = await cur.fetchall()
        return Actor.of(
            user_id,
            role_names=(r[0] for r in role_rows),
            group_ids=(r[0] for r in group_rows),
        )

    async def list_roles(self) -> list[Role]:
        cur = await self._conn.execute("SELECT id, name FROM app_role ORDER BY name")
        rows = await cur.fetchall()
        return [Role(id=r[0], name=r[1]) for r in rows]

    async def list_groups(self) -> list[Group]:
        cur = await self._conn.execute("SELECT id, name FROM app_group ORDER BY name")
        rows = await cur.fetchall()
        return [Group(id=r[0], name=r[1]) for r in rows]

    async def list_users(self) -> list[User]:
        cur = await self._conn.execute("SELECT id, is_active FROM app_user")
        rows = await cur.fetchall()
        return [User(id=r[0], is_active=r[1]) for r in rows]

    async def list_memberships(self) -> list[Membership]:
        """Memberships of every user that holds at least one role or group."""
        memberships: dict[UUID, Membership] = {}
        cur = await self._conn.execute(
            """
            SELECT ur.user_id, r.name FROM user_role ur
            JOIN app_role r ON r.id = ur.role_id
            """
        )
        for user_id, role_name in await cur.fetchall():
            memberships.setdefault(user_id, Membership(user_id)).role_names.add(role_name)
        cur = await self._conn.execute("SELECT user_id, group_id FROM user_group")
        for user_id, group_id in await cur.fetchall():
            memberships.setdefault(user_id, Membership(user_id)).group_ids.add(group_id)
        return list(memberships.values())

    async def save_role(self, role: Role) -> bool:
        """Insert role unless the id or name is taken. True if inserted."""
        cur = await self._conn.execute(
            "INSERT INTO app_role (id, name) VALUES (%s, %s) ON CONFLICT DO NOTHING",
            (role.id, role.name),
        )
        return cur.rowcount > 0

    async def save_group(self, group: Group) -> bool:
        """Insert or rename group by id. True if inserted."""
        cur = await self._conn.execute(
            """
            INSERT INTO app_group (id, name) VALUES (%s, %s)
            ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name
            RETURNING (xmax = 0)
            """,
            (group.id, group.name),
        )
        r = await cur.fetchone()
        return bool(r and r[0])

    async def save_user(self, user: User) -> bool:
        """Insert or update user by id. True if inserted."""
        cur = await self._conn.execute(
            """
            INSERT INTO app_user (id, is_active) VALUES (%s, %s)
            ON CONFLICT (id) DO UPDATE SET is_active = EXCLUDED.is_active
            RETURNING (xmax = 0)
            """,
            (user.id, user.is_active),
        )
        r = await cur.fetchone()
        return bool(r and r[0])

    async def add_membership(self, membership: Membership) -> int:
        """Add user to roles (by name) and groups. Returns rows added."""
        added = 0
        for role_name in sorted(membership.role_names):
            cur = await self._conn.execute(
                """
                INSERT INTO user_role (user_id, role_id)
                SELECT %s, id FROM app_role WHERE name = %s
                ON CONFLICT DO NOTHING
                """,
                (membership.user_id, role_name),
            )
            added += max(cur.rowcount, 0)
        for group_id in sorted(membership.group_ids):
            cur = await self._conn.execute(
                "INSERT INTO user_group (user_id, group_id) VALUES (%s, %s) "
                "ON CONFLICT DO NOTHING",
                (membership.user_id, group_id),
            )
            added += max(cur.rowcount, 0)
        return added

    async def count_roles(self) -> int:
        return await self._count("SELECT count(*) FROM app_role")

    async def count_groups(self) -> int:
        return await self._count("SELECT count(*) FROM app_group")

    async def count_users(self) -> int:
        return await self._count("SELECT count(*) FROM app_user")

    async def count_memberships(self) -> int:
        return await self._count(
            "SELECT (SELECT count(*) FROM user_role) + (SELECT count(*) FROM user_group)"
        )

    async def _count(self, sql: str) -> int:
        cur = await self._conn.execute(sql)
        r = await cur.fetchone()
        return r[0] if r else 0
