"""
debt_services -- Use-case orchestration over the kernel and engines.

Architecture position:
    Services -- stateful orchestration.  May import debt_kernel and
    debt_engines; MUST NOT import debt_batch or debt_config.
"""

from debt_services.daily_update_service import (
    DailyUpdateService,
    DailyUpdateSummary,
    DebtChangeLog,
)
from debt_services.follow_up_service import (
    DebtOutcome,
    FollowUpResult,
    FollowUpService,
)

__all__ = [
    "DailyUpdateService",
    "DailyUpdateSummary",
    "DebtChangeLog",
    "DebtOutcome",
    "FollowUpResult",
    "FollowUpService",
]
