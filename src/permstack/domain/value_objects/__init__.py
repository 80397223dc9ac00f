"""Domain value objects."""

from permstack.domain.value_objects.actor import Actor
from permstack.domain.value_objects.assignment_key import AssignmentKey
from permstack.domain.value_objects.permission_action import PermissionAction
from permstack.domain.value_objects.permission_name import PermissionName
from permstack.domain.value_objects.permission_scope import PermissionScope
from permstack.domain.value_objects.subject_level import SubjectLevel

__all__ = [
    "Actor",
    "AssignmentKey",
    "PermissionAction",
    "PermissionName",
    "PermissionScope",
    "SubjectLevel",
]
