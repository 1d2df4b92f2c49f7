"""
Pure domain layer.

Value objects, the debt aggregate, condition trees and rule selection,
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (injected via Clock)
"""

from debt_kernel.domain.authorization import (
    AUTHORIZATION_TRANSITIONS,
    TERMINAL_AUTHORIZATION_STATUSES,
    AuthorizationPriority,
    AuthorizationRequest,
    AuthorizationStatus,
    priority_for_debt_total,
)
from debt_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
    as_utc,
)
from debt_kernel.domain.conditions import (
    Comparison,
    ComparisonOperator,
    Condition,
    Logical,
    LogicalOperator,
    evaluate_condition,
    normalize_condition,
    parse_condition,
)
from debt_kernel.domain.debt import (
    FINAL_DEBT_STATES,
    Debt,
    DebtState,
    Installment,
    InstallmentState,
)
from debt_kernel.domain.follow_up import FollowUp
from debt_kernel.domain.rule_selector import RuleSelector
from debt_kernel.domain.transition_graph import AllowedTransition, TransitionCheck
from debt_kernel.domain.transition_rule import TransitionRule

__all__ = [
    "AUTHORIZATION_TRANSITIONS",
    "TERMINAL_AUTHORIZATION_STATUSES",
    "AuthorizationPriority",
    "AuthorizationRequest",
    "AuthorizationStatus",
    "priority_for_debt_total",
    "Clock",
    "DeterministicClock",
    "SequentialClock",
    "SystemClock",
    "as_utc",
    "Comparison",
    "ComparisonOperator",
    "Condition",
    "Logical",
    "LogicalOperator",
    "evaluate_condition",
    "normalize_condition",
    "parse_condition",
    "FINAL_DEBT_STATES",
    "Debt",
    "DebtState",
    "Installment",
    "InstallmentState",
    "FollowUp",
    "RuleSelector",
    "AllowedTransition",
    "TransitionCheck",
    "TransitionRule",
]
