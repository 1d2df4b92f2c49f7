"""
Module: debt_engines.aging
Responsibility:
    Whole-day arithmetic for installment aging: how many days an
    installment is past due, and which installments age from PENDING to
    OVERDUE on a reference date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import debt_kernel.domain value types.

Invariants enforced:
    - Purity: no clock access; the reference date is always an argument.
    - Day counts are whole calendar days and never negative.
"""

from __future__ import annotations

from datetime import date

from debt_kernel.domain.debt import Installment, InstallmentState


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end``; 0 when ``end`` is not after ``start``."""
    return max(0, (end - start).days)


def days_past_due(installment: Installment, reference_date: date) -> int:
    """Days the installment has been past due on ``reference_date``.

    Zero unless the installment is OVERDUE, or PENDING with a due date
    strictly before the reference date.
    """
    if not installment.is_past_due(reference_date):
        return 0
    return days_between(installment.due_date, reference_date)


def should_mark_overdue(installment: Installment, reference_date: date) -> bool:
    return (
        installment.state == InstallmentState.PENDING
        and installment.due_date < reference_date
    )
