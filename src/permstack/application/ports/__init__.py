"""Application ports - interfaces for external adapters."""

from permstack.application.ports.actor_provider import ActorProvider
from permstack.application.ports.permission_checker import PermissionChecker
from permstack.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "ActorProvider",
    "PermissionChecker",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
