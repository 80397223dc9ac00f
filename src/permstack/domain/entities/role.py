"""Role entity."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Role:
    """Role - named set of users. Role-level assignments refer to it by name."""

    id: UUID
    name: str
