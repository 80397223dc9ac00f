"""Domain exceptions."""


class PermStackError(Exception):
    """Base exception for permstack."""

    pass


class NotFound(PermStackError):
    """Requested permission, subject or assignment was not found."""

    def __init__(self, entity: str, key: str) -> None:
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class Conflict(PermStackError):
    """Uniqueness constraint would be violated."""

    pass


class StoreError(PermStackError):
    """Underlying persistence failure."""

    pass


class ValidationError(PermStackError):
    """Validation failed for input data."""

    pass
