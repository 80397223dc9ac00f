"""Assignment levels of the permission hierarchy."""

from enum import StrEnum
from uuid import UUID

from permstack.domain.exceptions import ValidationError

_DEFAULT_PRIORITIES = {
    "role": 0,
    "group": 50,
    "user": 100,
    "model": 150,
    "object": 200,
}


class SubjectLevel(StrEnum):
    """Level an assignment lives at, from least to most specific."""

    ROLE = "role"
    GROUP = "group"
    USER = "user"
    MODEL = "model"
    OBJECT = "object"

    @property
    def default_priority(self) -> int:
        return _DEFAULT_PRIORITIES[self.value]

    @property
    def is_refinement(self) -> bool:
        """Model and object rows narrow a base grant instead of granting."""
        return self in (SubjectLevel.MODEL, SubjectLevel.OBJECT)

    def coerce_subject(self, subject_id: str | UUID) -> str | UUID:
        """Normalize subject id: role name for roles, UUID for everything else."""
        if self is SubjectLevel.ROLE:
            name = str(subject_id)
            if not name:
                raise ValidationError("Role name must not be empty")
            return name
        if isinstance(subject_id, UUID):
            return subject_id
        try:
            return UUID(str(subject_id))
        except ValueError as exc:
            raise ValidationError(
                f"{self.value} subject must be a UUID, got {subject_id!r}"
            ) from exc
