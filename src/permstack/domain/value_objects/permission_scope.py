"""Permission scope - finest granularity a permission can be restricted at."""

from enum import StrEnum


class PermissionScope(StrEnum):
    """Global, model-type or object-instance scope."""

    GLOBAL = "global"
    MODEL = "model"
    OBJECT = "object"
