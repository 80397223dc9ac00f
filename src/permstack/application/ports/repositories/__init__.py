"""Repository ports."""

from permstack.application.ports.repositories.assignment_repository import (
    AssignmentRepository,
)
from permstack.application.ports.repositories.permission_repository import (
    PermissionRepository,
)
from permstack.application.ports.repositories.subject_repository import (
    SubjectRepository,
)

__all__ = [
    "AssignmentRepository",
    "PermissionRepository",
    "SubjectRepository",
]
