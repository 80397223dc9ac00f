"""Natural unique key of an assignment row."""

from dataclasses import dataclass
from uuid import UUID

from permstack.domain.exceptions import ValidationError
from permstack.domain.value_objects.subject_level import SubjectLevel


@dataclass(frozen=True)
class AssignmentKey:
    """Level + subject + permission, plus model type or object id/type for refinements."""

    level: SubjectLevel
    subject_id: str | UUID
    permission_id: UUID
    model_type: str | None = None
    object_id: UUID | None = None
    object_type: str | None = None

    def __post_init__(self) -> None:
        if self.level is SubjectLevel.MODEL and not self.model_type:
            raise ValidationError("Model-level assignment requires model_type")
        if self.level is SubjectLevel.OBJECT and (
            self.object_id is None or not self.object_type
        ):
            raise ValidationError("Object-level assignment requires object_id and object_type")
        if self.level is not SubjectLevel.MODEL and self.model_type is not None:
            raise ValidationError("model_type is only valid for model-level assignments")
        if self.level is not SubjectLevel.OBJECT and (
            self.object_id is not None or self.object_type is not None
        ):
            raise ValidationError("object_id/object_type are only valid for object-level assignments")
