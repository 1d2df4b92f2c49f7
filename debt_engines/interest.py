"""
Module: debt_engines.interest
Responsibility:
    Daily accrual of moratory and punitive interest on past-due
    installments, and aging of PENDING installments to OVERDUE.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import debt_kernel.domain value types (and sibling engines).

Invariants enforced:
    - Decimal-only arithmetic; rates are annual percentages.
    - Accrual is computed from scratch and the already-accrued amount is
      subtracted, so running the engine twice for the same reference date
      accrues nothing the second time:

          total_to_date = outstanding * rate / 100 / 365 * days_past_due
          applied       = max(0, total_to_date - already_accrued)

    - ``total_to_date`` is truncated (never rounded up) to the 9 decimal
      places the store keeps, so accrued interest never exceeds the
      closed-form bound.
    - PAID and UNDER_AGREEMENT installments accrue nothing.
    - Inputs are never mutated; updated installments are new values.

Usage:
    from debt_engines.interest import InterestAccumulator

    run = InterestAccumulator().apply_daily_interest(debt, date(2024, 3, 1))
    debt.replace_installments(run.updated_installments)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import Sequence

from debt_kernel.domain.debt import Debt, Installment, InstallmentState
from debt_engines.aging import days_past_due, should_mark_overdue
from debt_engines.tracer import traced_engine

ZERO = Decimal("0")
INTEREST_QUANTUM = Decimal("0.000000001")
DAYS_PER_YEAR = Decimal("365")
HUNDRED = Decimal("100")

_NON_ACCRUING = frozenset({InstallmentState.PAID, InstallmentState.UNDER_AGREEMENT})


@dataclass(frozen=True)
class InterestAccrual:
    """Interest to add to one installment for one run."""

    moratory: Decimal = ZERO
    punitive: Decimal = ZERO

    @property
    def is_zero(self) -> bool:
        return self.moratory == ZERO and self.punitive == ZERO


@dataclass(frozen=True)
class InterestRun:
    """Result of applying daily interest to a whole debt.

    ``updated_installments`` holds only the installments whose accrual was
    nonzero, as new values with the interest added.
    """

    updated_installments: tuple[Installment, ...]
    moratory_total: Decimal
    punitive_total: Decimal

    @property
    def applied(self) -> bool:
        return self.moratory_total > ZERO or self.punitive_total > ZERO


def accrued_to_date(principal: Decimal, annual_rate: Decimal, days: int) -> Decimal:
    """Closed-form interest on ``principal`` at ``annual_rate`` percent over ``days`` days."""
    raw = principal * annual_rate * Decimal(days) / (HUNDRED * DAYS_PER_YEAR)
    return raw.quantize(INTEREST_QUANTUM, rounding=ROUND_DOWN)


def _increment(
    principal: Decimal,
    rate: Decimal | None,
    days: int,
    already_accrued: Decimal,
) -> Decimal:
    if rate is None or rate <= ZERO:
        return ZERO
    return max(ZERO, accrued_to_date(principal, rate, days) - already_accrued)


class InterestAccumulator:
    """
    Stateless daily interest engine.

    Contract:
        All dates are supplied by the caller; the engine never reads a clock.

    Non-goals:
        - Does not compound: interest accrues on outstanding principal only.
        - Does not recompute debt totals; callers merge the updated
          installments into the aggregate and call ``recompute_totals``.
    """

    def calculate_daily_interest(
        self,
        installment: Installment,
        moratory_rate: Decimal | None,
        punitive_rate: Decimal | None,
        reference_date: date,
    ) -> InterestAccrual:
        if installment.state in _NON_ACCRUING:
            return InterestAccrual()

        days = days_past_due(installment, reference_date)
        if days <= 0:
            return InterestAccrual()

        principal = installment.outstanding_principal
        return InterestAccrual(
            moratory=_increment(
                principal, moratory_rate, days, installment.accrued_moratory_interest,
            ),
            punitive=_increment(
                principal, punitive_rate, days, installment.accrued_punitive_interest,
            ),
        )

    @traced_engine("interest", "1.0", fingerprint_fields=("debt", "reference_date"))
    def apply_daily_interest(self, debt: Debt, reference_date: date) -> InterestRun:
        updated: list[Installment] = []
        moratory_total = ZERO
        punitive_total = ZERO

        for installment in debt.installments:
            accrual = self.calculate_daily_interest(
                installment, debt.moratory_rate, debt.punitive_rate, reference_date,
            )
            if accrual.is_zero:
                continue
            updated.append(installment.with_interest(accrual.moratory, accrual.punitive))
            moratory_total += accrual.moratory
            punitive_total += accrual.punitive

        return InterestRun(
            updated_installments=tuple(updated),
            moratory_total=moratory_total,
            punitive_total=punitive_total,
        )

    @traced_engine("installment_aging", "1.0", fingerprint_fields=("reference_date",))
    def update_installment_states_by_due_date(
        self,
        installments: Sequence[Installment],
        reference_date: date,
    ) -> list[Installment]:
        """PENDING installments due before ``reference_date`` become OVERDUE.

        Returns the full list in input order; untouched installments are
        returned as-is.
        """
        return [
            i.with_state(InstallmentState.OVERDUE) if should_mark_overdue(i, reference_date) else i
            for i in installments
        ]
