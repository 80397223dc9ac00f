"""Assignment entity - grant or deny binding a permission to a subject."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from permstack.domain.value_objects import AssignmentKey, SubjectLevel


@dataclass
class Assignment:
    """Assignment at one level of the hierarchy.

    subject_id is the role name for role-level rows, the group id for
    group-level rows and the user id for user, model and object rows.
    is_granted=False is an explicit deny, not absence.
    """

    id: UUID
    level: SubjectLevel
    subject_id: str | UUID
    permission_id: UUID
    created_at: datetime
    updated_at: datetime
    is_granted: bool = True
    priority: int = 0
    expires_at: datetime | None = None
    model_type: str | None = None
    object_id: UUID | None = None
    object_type: str | None = None

    @property
    def key(self) -> AssignmentKey:
        return AssignmentKey(
            level=self.level,
            subject_id=self.subject_id,
            permission_id=self.permission_id,
            model_type=self.model_type,
            object_id=self.object_id,
            object_type=self.object_type,
        )

    def is_expired(self, now: datetime) -> bool:
        """True once expires_at has been reached. Naive datetimes are read as UTC."""
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return expires_at <= now
