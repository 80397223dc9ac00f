"""Permission name in Resource.Action form."""

from dataclasses import dataclass

from permstack.domain.exceptions import ValidationError


@dataclass(frozen=True)
class PermissionName:
    """Resource + action pair. Matching is case-sensitive."""

    resource: str
    action: str

    def __post_init__(self) -> None:
        if not self.resource or not self.action:
            raise ValidationError("Resource and action must be non-empty")

    @classmethod
    def parse(cls, value: str) -> "PermissionName":
        """Parse 'Resource.Action'. Raises ValidationError if malformed."""
        parts = value.split(".")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValidationError(
                f"Permission name '{value}' must be in format 'Resource.Action'"
            )
        return cls(resource=parts[0], action=parts[1])

    def __str__(self) -> str:
        return f"{self.resource}.{self.action}"
