"""Kernel services: transition legality, supervisor assignment, authorization workflow."""

from debt_kernel.services.authorization_service import (
    AuthorizationService,
    ResolutionResult,
)
from debt_kernel.services.supervisor_assigner import (
    AssignmentStrategy,
    SupervisorAssigner,
)
from debt_kernel.services.transition_validator import TransitionValidator

__all__ = [
    "AssignmentStrategy",
    "AuthorizationService",
    "ResolutionResult",
    "SupervisorAssigner",
    "TransitionValidator",
]
