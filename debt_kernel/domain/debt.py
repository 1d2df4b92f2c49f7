"""
Debt domain types (``debt_kernel.domain.debt``).

Responsibility
--------------
The debt aggregate and its installments.  Installments are immutable
values that are replaced, never mutated; the ``Debt`` aggregate owns the
ordered installment list and keeps its derived totals consistent with it.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/`` or outer layers.

Invariants enforced
-------------------
* ``total_debt == sum(outstanding + moratory + punitive for open
  installments) + collection_costs`` after every ``recompute_totals()``.
  Open means PENDING or OVERDUE.
* Installments never carry negative amounts and are numbered from 1.
* Debts start in ``DebtState.NEW``.

Failure modes
-------------
* ``InvalidEntityError`` from ``Installment.create`` / ``Debt.create`` on
  invalid input.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable
from uuid import UUID, uuid4

from debt_kernel.exceptions import InvalidEntityError

ZERO = Decimal("0")


# =========================================================================
# States
# =========================================================================


class DebtState(str, Enum):
    """Lifecycle state of a debt."""

    NEW = "new"
    IN_MANAGEMENT = "in_management"
    WITH_AGREEMENT = "with_agreement"
    CANCELLED = "cancelled"
    UNCOLLECTIBLE = "uncollectible"
    JUDICIALIZED = "judicialized"
    DECEASED = "deceased"
    SUSPENDED = "suspended"


FINAL_DEBT_STATES: frozenset[DebtState] = frozenset({
    DebtState.CANCELLED,
    DebtState.UNCOLLECTIBLE,
    DebtState.JUDICIALIZED,
    DebtState.DECEASED,
})


class InstallmentState(str, Enum):
    """Payment state of a single installment."""

    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"
    UNDER_AGREEMENT = "under_agreement"


OPEN_INSTALLMENT_STATES: frozenset[InstallmentState] = frozenset({
    InstallmentState.PENDING,
    InstallmentState.OVERDUE,
})


def _require_non_negative(entity: str, name: str, value: Decimal | None) -> None:
    if value is not None and value < 0:
        raise InvalidEntityError(entity, name, f"must not be negative (got {value})")


# =========================================================================
# Installment
# =========================================================================


@dataclass(frozen=True)
class Installment:
    """One scheduled payment of a debt.

    Interest accrues per installment; ``accrued_*`` hold the running totals
    to date, so recomputing from scratch and subtracting them yields the
    increment for a run.
    """

    id: UUID
    sequence_number: int
    due_date: date
    original_principal: Decimal
    outstanding_principal: Decimal
    accrued_moratory_interest: Decimal = ZERO
    accrued_punitive_interest: Decimal = ZERO
    state: InstallmentState = InstallmentState.PENDING
    last_payment_date: date | None = None
    scheduled_amount: Decimal | None = None

    @classmethod
    def create(
        cls,
        sequence_number: int,
        due_date: date,
        original_principal: Decimal,
        outstanding_principal: Decimal | None = None,
        *,
        id: UUID | None = None,
        accrued_moratory_interest: Decimal = ZERO,
        accrued_punitive_interest: Decimal = ZERO,
        state: InstallmentState = InstallmentState.PENDING,
        last_payment_date: date | None = None,
        scheduled_amount: Decimal | None = None,
    ) -> Installment:
        """Build a validated installment.

        Outstanding principal defaults to the original principal.

        Raises:
            InvalidEntityError: sequence number below 1 or a negative amount.
        """
        if sequence_number < 1:
            raise InvalidEntityError(
                "Installment", "sequence_number", f"must be >= 1 (got {sequence_number})"
            )
        outstanding = original_principal if outstanding_principal is None else outstanding_principal
        _require_non_negative("Installment", "original_principal", original_principal)
        _require_non_negative("Installment", "outstanding_principal", outstanding)
        _require_non_negative("Installment", "accrued_moratory_interest", accrued_moratory_interest)
        _require_non_negative("Installment", "accrued_punitive_interest", accrued_punitive_interest)
        _require_non_negative("Installment", "scheduled_amount", scheduled_amount)
        return cls(
            id=id or uuid4(),
            sequence_number=sequence_number,
            due_date=due_date,
            original_principal=original_principal,
            outstanding_principal=outstanding,
            accrued_moratory_interest=accrued_moratory_interest,
            accrued_punitive_interest=accrued_punitive_interest,
            state=state,
            last_payment_date=last_payment_date,
            scheduled_amount=scheduled_amount,
        )

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_INSTALLMENT_STATES

    def is_past_due(self, reference_date: date) -> bool:
        """OVERDUE, or PENDING with a due date strictly before ``reference_date``."""
        if self.state == InstallmentState.OVERDUE:
            return True
        return self.state == InstallmentState.PENDING and self.due_date < reference_date

    def with_interest(self, moratory: Decimal, punitive: Decimal) -> Installment:
        """Return a copy with ``moratory`` / ``punitive`` added to the accrued totals."""
        return replace(
            self,
            accrued_moratory_interest=self.accrued_moratory_interest + moratory,
            accrued_punitive_interest=self.accrued_punitive_interest + punitive,
        )

    def with_state(self, state: InstallmentState) -> Installment:
        return replace(self, state=state)


# =========================================================================
# Debt aggregate
# =========================================================================


@dataclass
class Debt:
    """A collectible debt owed by a subject to a creditor.

    Contract:
        Mutable aggregate root.  State changes go through ``change_state``;
        installment updates go through ``replace_installments`` followed by
        ``recompute_totals``.

    Guarantees:
        - Totals are derived from the installments, never set independently.
        - ``current_state`` is the only lifecycle field; legality of a move is
          checked by the transition validator, not here.

    Non-goals:
        - Does not validate transitions against the graph.
        - Does not persist itself.
    """

    id: UUID
    creditor: str
    subject_id: UUID
    concept: str = ""
    current_state: DebtState = DebtState.NEW
    assigned_collector_id: UUID | None = None
    days_overdue: int = 0
    days_in_management: int = 0
    outstanding_principal_total: Decimal = ZERO
    total_debt: Decimal = ZERO
    collection_costs: Decimal = ZERO
    moratory_interest_total: Decimal = ZERO
    punitive_interest_total: Decimal = ZERO
    moratory_rate: Decimal | None = None
    punitive_rate: Decimal | None = None
    agreement_expiration_date: date | None = None
    collector_assignment_date: date | None = None
    last_payment_date: date | None = None
    scheduled_amount: Decimal | None = None
    installments: list[Installment] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        creditor: str,
        subject_id: UUID,
        concept: str = "",
        *,
        id: UUID | None = None,
        installments: Iterable[Installment] = (),
        collection_costs: Decimal = ZERO,
        moratory_rate: Decimal | None = None,
        punitive_rate: Decimal | None = None,
        scheduled_amount: Decimal | None = None,
    ) -> Debt:
        """Build a new debt in ``NEW`` with totals derived from its installments.

        Raises:
            InvalidEntityError: empty creditor, negative costs or rates.
        """
        if not creditor or not creditor.strip():
            raise InvalidEntityError("Debt", "creditor", "must not be empty")
        _require_non_negative("Debt", "collection_costs", collection_costs)
        _require_non_negative("Debt", "moratory_rate", moratory_rate)
        _require_non_negative("Debt", "punitive_rate", punitive_rate)
        _require_non_negative("Debt", "scheduled_amount", scheduled_amount)
        debt = cls(
            id=id or uuid4(),
            creditor=creditor,
            subject_id=subject_id,
            concept=concept,
            collection_costs=collection_costs,
            moratory_rate=moratory_rate,
            punitive_rate=punitive_rate,
            scheduled_amount=scheduled_amount,
            installments=sorted(installments, key=lambda i: i.sequence_number),
        )
        debt.recompute_totals()
        return debt

    # -- lifecycle ---------------------------------------------------------

    def change_state(self, new_state: DebtState) -> None:
        self.current_state = new_state

    def assign_collector(self, collector_id: UUID, assigned_on: date) -> None:
        self.assigned_collector_id = collector_id
        self.collector_assignment_date = assigned_on

    @property
    def is_final_state(self) -> bool:
        return self.current_state in FINAL_DEBT_STATES

    @property
    def has_agreement(self) -> bool:
        return self.current_state == DebtState.WITH_AGREEMENT

    def is_agreement_expired(self, reference_date: date) -> bool:
        """True when the debt is under agreement and the agreement ended before ``reference_date``."""
        if not self.has_agreement or self.agreement_expiration_date is None:
            return False
        return self.agreement_expiration_date < reference_date

    # -- aging counters ----------------------------------------------------

    def compute_days_overdue(self, reference_date: date) -> int:
        """Days from the oldest past-due installment's due date to ``reference_date``."""
        past_due = [i.due_date for i in self.installments if i.is_past_due(reference_date)]
        if not past_due:
            return 0
        return max(0, (reference_date - min(past_due)).days)

    def compute_days_in_management(self, reference_date: date) -> int:
        if self.collector_assignment_date is None:
            return 0
        return max(0, (reference_date - self.collector_assignment_date).days)

    def refresh_aging_counters(self, reference_date: date) -> None:
        self.days_overdue = self.compute_days_overdue(reference_date)
        self.days_in_management = self.compute_days_in_management(reference_date)

    # -- installments and totals --------------------------------------------

    def replace_installments(self, updated: Iterable[Installment]) -> None:
        """Swap in new installment values by id, keeping positions.

        Installments absent from ``updated`` keep their current value; ids
        unknown to the debt are ignored.
        """
        by_id = {inst.id: inst for inst in updated}
        self.installments = [by_id.get(inst.id, inst) for inst in self.installments]

    def open_installments(self) -> list[Installment]:
        return [i for i in self.installments if i.is_open]

    def recompute_totals(self) -> None:
        open_items = self.open_installments()
        principal = sum((i.outstanding_principal for i in open_items), ZERO)
        moratory = sum((i.accrued_moratory_interest for i in open_items), ZERO)
        punitive = sum((i.accrued_punitive_interest for i in open_items), ZERO)
        self.outstanding_principal_total = principal
        self.moratory_interest_total = moratory
        self.punitive_interest_total = punitive
        self.total_debt = principal + moratory + punitive + self.collection_costs
