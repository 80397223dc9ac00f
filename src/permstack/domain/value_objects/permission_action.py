"""Common permission actions."""

from enum import StrEnum


class PermissionAction(StrEnum):
    """Actions with shortcut checks on the resolver."""

    READ = "Read"
    WRITE = "Write"
    DELETE = "Delete"
