"""Permission resolution - deny-wins evaluation over role, group and user levels.

Pure functions: callers fetch the candidate assignments, these decide.

Order of evaluation:

1. Any role deny, then any group deny, then a live user deny -> deny.
2. Any role grant, then any group grant, then a live user grant -> grant.
3. Otherwise -> deny.

An expired user assignment is treated as absent. Model and object rows are
refinements: they are consulted only after the base decision grants.
Priorities are informational and never break ties between grant and deny.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from permstack.domain.entities import Assignment
from permstack.domain.value_objects import SubjectLevel

PERMISSION_NOT_FOUND = "permission_not_found"
DEFAULT_DENY = "default_deny"
EXPLICIT_DENY = "explicit_deny"
EXPLICIT_GRANT = "explicit_grant"
REFINEMENT_ABSENT = "refinement_absent"
ACTOR_NOT_FOUND = "actor_not_found"
INVALID_NAME = "invalid_name"
STORE_ERROR = "store_error"


@dataclass(frozen=True)
class Decision:
    """Result of a permission check with the level that decided it."""

    granted: bool
    reason: str
    level: SubjectLevel | None = None

    def __bool__(self) -> bool:
        return self.granted

    @classmethod
    def deny(cls, reason: str, level: SubjectLevel | None = None) -> "Decision":
        return cls(granted=False, reason=reason, level=level)

    @classmethod
    def grant(cls, reason: str, level: SubjectLevel | None = None) -> "Decision":
        return cls(granted=True, reason=reason, level=level)


def live_user_assignment(
    user_assignment: Assignment | None, now: datetime
) -> Assignment | None:
    """Drop an expired user assignment."""
    if user_assignment is None or user_assignment.is_expired(now):
        return None
    return user_assignment


def resolve(
    role_assignments: Iterable[Assignment],
    group_assignments: Iterable[Assignment],
    user_assignment: Assignment | None,
    *,
    now: datetime,
) -> Decision:
    """Decide a base Resource.Action check from the collected assignments."""
    roles = list(role_assignments)
    groups = list(group_assignments)
    user = live_user_assignment(user_assignment, now)

    # every row is scanned for a deny before any grant is honored
    if any(not a.is_granted for a in roles):
        return Decision.deny(EXPLICIT_DENY, SubjectLevel.ROLE)
    if any(not a.is_granted for a in groups):
        return Decision.deny(EXPLICIT_DENY, SubjectLevel.GROUP)
    if user is not None and not user.is_granted:
        return Decision.deny(EXPLICIT_DENY, SubjectLevel.USER)

    if any(a.is_granted for a in roles):
        return Decision.grant(EXPLICIT_GRANT, SubjectLevel.ROLE)
    if any(a.is_granted for a in groups):
        return Decision.grant(EXPLICIT_GRANT, SubjectLevel.GROUP)
    if user is not None and user.is_granted:
        return Decision.grant(EXPLICIT_GRANT, SubjectLevel.USER)

    return Decision.deny(DEFAULT_DENY)


def refine(
    base: Decision,
    assignment: Assignment | None,
    level: SubjectLevel,
) -> Decision:
    """Apply a model or object refinement row to a base decision."""
    if not base.granted:
        return base
    if assignment is None:
        return Decision.grant(REFINEMENT_ABSENT, base.level)
    if assignment.is_granted:
        return Decision.grant(EXPLICIT_GRANT, level)
    return Decision.deny(EXPLICIT_DENY, level)
