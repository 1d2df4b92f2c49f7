"""
Module: debt_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines.  The
    canonical import surface for debt_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import debt_kernel.domain, debt_kernel.exceptions and
    debt_kernel.logging_config.  MUST NOT import debt_services, debt_batch
    or debt_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic for amounts and rates.
    - Every public engine entry point is traced via ``@traced_engine``.
"""

from debt_engines.aging import (
    days_between,
    days_past_due,
    should_mark_overdue,
)
from debt_engines.interest import (
    InterestAccrual,
    InterestAccumulator,
    InterestRun,
    accrued_to_date,
)
from debt_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "InterestAccrual",
    "InterestAccumulator",
    "InterestRun",
    "accrued_to_date",
    "compute_input_fingerprint",
    "days_between",
    "days_past_due",
    "should_mark_overdue",
    "traced_engine",
]
