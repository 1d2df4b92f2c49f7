"""
debt_services.daily_update_service -- Nightly aging, interest and expiry pass.

Responsibility:
    Once per day, for every debt not in a final state: refresh the aging
    counters, accrue moratory and punitive interest, age PENDING
    installments past their due date to OVERDUE, move debts whose payment
    agreement has expired back to IN_MANAGEMENT (when the graph permits),
    recompute totals and persist.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes InterestAccumulator (engine) with TransitionValidator and the
    DebtRepository contract.

Invariants enforced:
    - Interest accrual is idempotent per reference date (engine contract),
      so re-running a day accrues nothing further.
    - The agreement-expiry move is applied only if the graph holds the
      WITH_AGREEMENT -> IN_MANAGEMENT edge.
    - Totals are recomputed from installments before every save.

Failure modes:
    - Exceptions propagate; there is no per-debt recovery.  The caller
      (normally DailyUpdateScheduler) rolls the whole run back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from debt_kernel.domain.clock import Clock, SystemClock
from debt_kernel.domain.debt import Debt, DebtState
from debt_kernel.domain.repositories import DebtRepository
from debt_kernel.logging_config import LogContext, get_logger
from debt_kernel.services.transition_validator import TransitionValidator
from debt_engines.interest import InterestAccumulator

logger = get_logger("services.daily_update")

ZERO = Decimal("0")


@dataclass
class DebtChangeLog:
    """Human-readable record of what the run did to one debt."""

    debt_id: UUID
    changes: list[str] = field(default_factory=list)
    moratory_applied: Decimal = ZERO
    punitive_applied: Decimal = ZERO
    new_state: DebtState | None = None

    @property
    def interest_applied(self) -> bool:
        return self.moratory_applied > ZERO or self.punitive_applied > ZERO


@dataclass
class DailyUpdateSummary:
    reference_date: date
    debts_processed: int = 0
    debts_with_interest_applied: int = 0
    debts_with_state_changed: int = 0
    moratory_interest_total: Decimal = ZERO
    punitive_interest_total: Decimal = ZERO
    details: list[DebtChangeLog] = field(default_factory=list)


def _money(amount: Decimal) -> str:
    return f"${amount.quantize(Decimal('0.01'))}"


class DailyUpdateService:
    """
    The daily update use case.

    Contract:
        ``run`` reads the debts to process, mutates and saves each one
        through the repository, and returns a summary.  It never commits.

    Non-goals:
        - Does not schedule itself (see debt_batch.scheduler).
        - Does not expire authorization requests.
    """

    def __init__(
        self,
        debts: DebtRepository,
        validator: TransitionValidator,
        clock: Clock | None = None,
        interest: InterestAccumulator | None = None,
    ) -> None:
        self._debts = debts
        self._validator = validator
        self._clock = clock or SystemClock()
        self._interest = interest or InterestAccumulator()

    @classmethod
    def from_session(cls, session: Session, clock: Clock | None = None) -> DailyUpdateService:
        from debt_kernel.repositories import (
            SqlAlchemyDebtRepository,
            SqlAlchemyTransitionGraphRepository,
        )

        return cls(
            SqlAlchemyDebtRepository(session),
            TransitionValidator(SqlAlchemyTransitionGraphRepository(session)),
            clock=clock,
        )

    def run(self, reference_date: date | None = None) -> DailyUpdateSummary:
        reference_date = reference_date or self._clock.today()
        debts = list(self._debts.list_for_daily_update())
        summary = DailyUpdateSummary(reference_date=reference_date, debts_processed=len(debts))

        logger.info(
            "daily_update_started",
            extra={"reference_date": reference_date.isoformat(), "debts": len(debts)},
        )

        for debt in debts:
            with LogContext.bind(debt_id=debt.id):
                log = self._process(debt, reference_date)
            summary.details.append(log)
            summary.moratory_interest_total += log.moratory_applied
            summary.punitive_interest_total += log.punitive_applied
            if log.interest_applied:
                summary.debts_with_interest_applied += 1
            if log.new_state is not None:
                summary.debts_with_state_changed += 1

        logger.info(
            "daily_update_completed",
            extra={
                "reference_date": reference_date.isoformat(),
                "debts_processed": summary.debts_processed,
                "debts_with_interest_applied": summary.debts_with_interest_applied,
                "debts_with_state_changed": summary.debts_with_state_changed,
                "moratory_interest_total": summary.moratory_interest_total,
                "punitive_interest_total": summary.punitive_interest_total,
            },
        )
        return summary

    def _process(self, debt: Debt, reference_date: date) -> DebtChangeLog:
        log = DebtChangeLog(debt_id=debt.id)

        debt.refresh_aging_counters(reference_date)
        log.changes.append("Days overdue and days in management updated")

        run = self._interest.apply_daily_interest(debt, reference_date)
        if run.applied:
            debt.replace_installments(run.updated_installments)
            log.moratory_applied = run.moratory_total
            log.punitive_applied = run.punitive_total
            log.changes.append(
                f"Interest applied: moratory {_money(run.moratory_total)}, "
                f"punitive {_money(run.punitive_total)}"
            )

        aged = self._interest.update_installment_states_by_due_date(
            debt.installments, reference_date,
        )
        marked = sum(1 for before, after in zip(debt.installments, aged) if before is not after)
        debt.installments = aged
        if marked:
            log.changes.append(f"{marked} installments marked overdue")

        if debt.is_agreement_expired(reference_date):
            self._expire_agreement(debt, log)

        debt.recompute_totals()
        self._debts.save(debt)

        logger.debug(
            "debt_daily_update_applied",
            extra={
                "days_overdue": debt.days_overdue,
                "days_in_management": debt.days_in_management,
                "moratory_applied": log.moratory_applied,
                "punitive_applied": log.punitive_applied,
                "installments_marked_overdue": marked,
            },
        )
        return log

    def _expire_agreement(self, debt: Debt, log: DebtChangeLog) -> None:
        target = DebtState.IN_MANAGEMENT
        if not self._validator.is_valid(debt.current_state, target):
            logger.warning(
                "agreement_expiry_transition_missing",
                extra={"origin": debt.current_state.value, "destination": target.value},
            )
            return
        debt.change_state(target)
        log.new_state = target
        log.changes.append("Agreement expired, state changed to in_management")
