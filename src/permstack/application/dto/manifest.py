"""Permission manifest - declarative permission list and role grants loaded at startup."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from permstack.domain.exceptions import ValidationError
from permstack.domain.value_objects import PermissionName, PermissionScope


class PermissionDefinition(BaseModel):
    """One permission to register."""

    resource: str = Field(min_length=1, max_length=100)
    action: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    scope: PermissionScope = PermissionScope.GLOBAL
    priority: int = 0

    @field_validator("resource", "action")
    @classmethod
    def _no_dots(cls, value: str) -> str:
        if "." in value:
            raise ValueError("must not contain '.'")
        return value

    @property
    def name(self) -> str:
        return f"{self.resource}.{self.action}"


class RoleGrantDefinition(BaseModel):
    """Role-level grant or deny to apply once permissions exist."""

    role: str = Field(min_length=1)
    permission: str
    is_granted: bool = True
    priority: int = 0

    @field_validator("permission")
    @classmethod
    def _valid_name(cls, value: str) -> str:
        try:
            PermissionName.parse(value)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc
        return value


class PermissionManifest(BaseModel):
    """Bootstrap data: permissions plus role grants."""

    permissions: list[PermissionDefinition] = Field(default_factory=list)
    role_grants: list[RoleGrantDefinition] = Field(default_factory=list)

    def preview(self) -> list[str]:
        """Sorted, de-duplicated permission names the manifest declares."""
        return sorted({p.name for p in self.permissions})


def load_manifest(path: str | Path) -> PermissionManifest:
    """Read a JSON manifest file."""
    return PermissionManifest.model_validate_json(Path(path).read_text(encoding="utf-8"))
