"""Permission entity - a Resource.Action capability."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permstack.domain.value_objects import PermissionScope


@dataclass
class Permission:
    """Permission - named Resource + Action pair that can be granted or denied."""

    id: UUID
    resource: str
    action: str
    created_at: datetime
    updated_at: datetime
    scope: PermissionScope = PermissionScope.GLOBAL
    description: str | None = None
    priority: int = 0
    is_active: bool = True

    @property
    def name(self) -> str:
        return f"{self.resource}.{self.action}"

    def matches(self, resource: str, action: str) -> bool:
        """Exact, case-sensitive match on resource and action."""
        return self.resource == resource and self.action == action
