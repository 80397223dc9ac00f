"""Domain entities."""

from permstack.domain.entities.assignment import Assignment
from permstack.domain.entities.group import Group
from permstack.domain.entities.permission import Permission
from permstack.domain.entities.role import Role
from permstack.domain.entities.user import Membership, User

__all__ = [
    "Assignment",
    "Group",
    "Membership",
    "Permission",
    "Role",
    "User",
]
