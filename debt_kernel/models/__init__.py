"""SQLAlchemy ORM models for the debt kernel."""

from debt_kernel.models.authorization import AuthorizationRequestModel
from debt_kernel.models.debt import DebtModel, InstallmentModel
from debt_kernel.models.follow_up import FollowUpDebtModel, FollowUpModel
from debt_kernel.models.job_lease import JobLeaseModel
from debt_kernel.models.rules import AllowedTransitionModel, TransitionRuleModel
from debt_kernel.models.user import AssignmentCursorModel, UserModel, UserRole

__all__ = [
    "AllowedTransitionModel",
    "AssignmentCursorModel",
    "AuthorizationRequestModel",
    "DebtModel",
    "FollowUpDebtModel",
    "FollowUpModel",
    "InstallmentModel",
    "JobLeaseModel",
    "TransitionRuleModel",
    "UserModel",
    "UserRole",
]
