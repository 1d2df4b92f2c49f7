"""
debt_batch -- Scheduling of the daily debt update.

Architecture position:
    Outermost runtime layer.  May import debt_kernel, debt_engines and
    debt_services.
"""

from debt_batch.lease import RunLease
from debt_batch.scheduler import DAILY_UPDATE_LEASE, DailyUpdateScheduler, compute_next_run

__all__ = [
    "DAILY_UPDATE_LEASE",
    "DailyUpdateScheduler",
    "RunLease",
    "compute_next_run",
]
