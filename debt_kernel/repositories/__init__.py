"""SQLAlchemy-backed implementations of the kernel repository contracts."""

from debt_kernel.repositories.authorization_repository import (
    SqlAlchemyAuthorizationRequestRepository,
)
from debt_kernel.repositories.debt_repository import SqlAlchemyDebtRepository
from debt_kernel.repositories.directory import (
    SqlAlchemyFollowUpRepository,
    SqlAlchemySupervisorDirectory,
)
from debt_kernel.repositories.rule_repository import (
    SqlAlchemyTransitionGraphRepository,
    SqlAlchemyTransitionRuleRepository,
)

__all__ = [
    "SqlAlchemyAuthorizationRequestRepository",
    "SqlAlchemyDebtRepository",
    "SqlAlchemyFollowUpRepository",
    "SqlAlchemySupervisorDirectory",
    "SqlAlchemyTransitionGraphRepository",
    "SqlAlchemyTransitionRuleRepository",
]
