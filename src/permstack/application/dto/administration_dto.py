"""Administration DTOs - explicit success/failure results."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from permstack.domain.entities import Assignment, Permission
from permstack.domain.exceptions import ValidationError
from permstack.domain.value_objects import AssignmentKey, PermissionName, SubjectLevel


class AdministrationOutcome(StrEnum):
    """Outcome of a grant, revoke, remove or registration call."""

    CREATED = "created"
    UPDATED = "updated"
    REVOKED = "revoked"
    REMOVED = "removed"
    DEACTIVATED = "deactivated"
    SUBJECT_NOT_FOUND = "subject_not_found"
    PERMISSION_NOT_FOUND = "permission_not_found"
    ASSIGNMENT_NOT_FOUND = "assignment_not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"


_SUCCESS = frozenset(
    {
        AdministrationOutcome.CREATED,
        AdministrationOutcome.UPDATED,
        AdministrationOutcome.REVOKED,
        AdministrationOutcome.REMOVED,
        AdministrationOutcome.DEACTIVATED,
    }
)


@dataclass
class AdministrationResult:
    """Result of an administration call."""

    outcome: AdministrationOutcome
    message: str = ""
    assignment: Assignment | None = None
    permission: Permission | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in _SUCCESS

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def failure(cls, outcome: AdministrationOutcome, message: str) -> "AdministrationResult":
        return cls(outcome=outcome, message=message)


@dataclass(frozen=True)
class AssignmentTarget:
    """Validated administration request: who, which permission, and which refinement."""

    level: SubjectLevel
    subject_id: str | UUID
    permission: PermissionName
    model_type: str | None = None
    object_id: UUID | None = None
    object_type: str | None = None

    @classmethod
    def build(
        cls,
        level: SubjectLevel | str,
        subject_id: str | UUID,
        permission_name: str,
        model_type: str | None = None,
        object_id: UUID | str | None = None,
        object_type: str | None = None,
    ) -> "AssignmentTarget":
        """Parse and validate raw input. Raises ValidationError."""
        try:
            level = SubjectLevel(level)
        except ValueError as exc:
            raise ValidationError(f"Unknown assignment level: {level!r}") from exc
        if object_id is not None and not isinstance(object_id, UUID):
            try:
                object_id = UUID(str(object_id))
            except ValueError as exc:
                raise ValidationError(f"object_id must be a UUID, got {object_id!r}") from exc
        target = cls(
            level=level,
            subject_id=level.coerce_subject(subject_id),
            permission=PermissionName.parse(permission_name),
            model_type=model_type,
            object_id=object_id,
            object_type=object_type,
        )
        # validates refinement fields for the level
        target.key_for(UUID(int=0))
        return target

    def key_for(self, permission_id: UUID) -> AssignmentKey:
        return AssignmentKey(
            level=self.level,
            subject_id=self.subject_id,
            permission_id=permission_id,
            model_type=self.model_type,
            object_id=self.object_id,
            object_type=self.object_type,
        )
