"""
Module: debt_kernel.models.debt
Responsibility: ORM persistence for debts and their installments.

Architecture position: Kernel > Models.  May import from db/base.py and
    domain value types (for DTO conversion).

Invariants enforced:
    - current_state / installment state limited to known values by check
      constraints.
    - (debt_id, sequence_number) is unique: one installment per slot.
    - Installments are owned by their debt (delete-orphan cascade).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from debt_kernel.db.base import Base, UUIDString
from debt_kernel.domain.debt import Debt, DebtState, Installment, InstallmentState

_DEBT_STATES_SQL = ", ".join(f"'{s.value}'" for s in DebtState)
_INSTALLMENT_STATES_SQL = ", ".join(f"'{s.value}'" for s in InstallmentState)


class DebtModel(Base):
    """Persistent debt aggregate root."""

    __tablename__ = "debts"

    __table_args__ = (
        CheckConstraint(
            f"current_state IN ({_DEBT_STATES_SQL})",
            name="ck_debts_valid_state",
        ),
        Index("ix_debts_state", "current_state"),
        Index("ix_debts_collector", "assigned_collector_id"),
        Index("ix_debts_subject", "subject_id"),
    )

    creditor: Mapped[str] = mapped_column(String(200), nullable=False)
    subject_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    concept: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    current_state: Mapped[str] = mapped_column(
        String(30), nullable=False, default=DebtState.NEW.value,
    )
    assigned_collector_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), nullable=True,
    )
    days_overdue: Mapped[int] = mapped_column(nullable=False, default=0)
    days_in_management: Mapped[int] = mapped_column(nullable=False, default=0)
    outstanding_principal_total: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    total_debt: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    collection_costs: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    moratory_interest_total: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    punitive_interest_total: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    moratory_rate: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)
    punitive_rate: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)
    agreement_expiration_date: Mapped[date | None] = mapped_column(nullable=True)
    collector_assignment_date: Mapped[date | None] = mapped_column(nullable=True)
    last_payment_date: Mapped[date | None] = mapped_column(nullable=True)
    scheduled_amount: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    installments: Mapped[list["InstallmentModel"]] = relationship(
        "InstallmentModel",
        back_populates="debt",
        cascade="all, delete-orphan",
        order_by="InstallmentModel.sequence_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Debt {self.id} {self.creditor} state={self.current_state}>"

    def to_dto(self) -> Debt:
        """Convert ORM model to the domain aggregate."""
        return Debt(
            id=self.id,
            creditor=self.creditor,
            subject_id=self.subject_id,
            concept=self.concept,
            current_state=DebtState(self.current_state),
            assigned_collector_id=self.assigned_collector_id,
            days_overdue=self.days_overdue,
            days_in_management=self.days_in_management,
            outstanding_principal_total=self.outstanding_principal_total,
            total_debt=self.total_debt,
            collection_costs=self.collection_costs,
            moratory_interest_total=self.moratory_interest_total,
            punitive_interest_total=self.punitive_interest_total,
            moratory_rate=self.moratory_rate,
            punitive_rate=self.punitive_rate,
            agreement_expiration_date=self.agreement_expiration_date,
            collector_assignment_date=self.collector_assignment_date,
            last_payment_date=self.last_payment_date,
            scheduled_amount=self.scheduled_amount,
            installments=[m.to_dto() for m in self.installments],
        )

    @classmethod
    def from_dto(cls, dto: Debt) -> DebtModel:
        model = cls(id=dto.id)
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto: Debt) -> None:
        """Copy the aggregate's state onto this row, merging installments by id."""
        self.creditor = dto.creditor
        self.subject_id = dto.subject_id
        self.concept = dto.concept
        self.current_state = dto.current_state.value
        self.assigned_collector_id = dto.assigned_collector_id
        self.days_overdue = dto.days_overdue
        self.days_in_management = dto.days_in_management
        self.outstanding_principal_total = dto.outstanding_principal_total
        self.total_debt = dto.total_debt
        self.collection_costs = dto.collection_costs
        self.moratory_interest_total = dto.moratory_interest_total
        self.punitive_interest_total = dto.punitive_interest_total
        self.moratory_rate = dto.moratory_rate
        self.punitive_rate = dto.punitive_rate
        self.agreement_expiration_date = dto.agreement_expiration_date
        self.collector_assignment_date = dto.collector_assignment_date
        self.last_payment_date = dto.last_payment_date
        self.scheduled_amount = dto.scheduled_amount

        existing = {m.id: m for m in self.installments}
        merged: list[InstallmentModel] = []
        for inst in dto.installments:
            row = existing.get(inst.id)
            if row is None:
                row = InstallmentModel(id=inst.id)
            row.apply_dto(inst)
            merged.append(row)
        self.installments = merged


class InstallmentModel(Base):
    """Persistent installment row."""

    __tablename__ = "installments"

    __table_args__ = (
        CheckConstraint(
            f"state IN ({_INSTALLMENT_STATES_SQL})",
            name="ck_installments_valid_state",
        ),
        UniqueConstraint(
            "debt_id", "sequence_number",
            name="uq_installments_debt_sequence",
        ),
        Index("ix_installments_state_due", "state", "due_date"),
    )

    debt_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("debts.id", ondelete="CASCADE"), nullable=False,
    )
    sequence_number: Mapped[int] = mapped_column(nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    original_principal: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    outstanding_principal: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    accrued_moratory_interest: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    accrued_punitive_interest: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    state: Mapped[str] = mapped_column(
        String(30), nullable=False, default=InstallmentState.PENDING.value,
    )
    last_payment_date: Mapped[date | None] = mapped_column(nullable=True)
    scheduled_amount: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    debt: Mapped[DebtModel] = relationship("DebtModel", back_populates="installments")

    def __repr__(self) -> str:
        return (
            f"<Installment {self.id} debt={self.debt_id} "
            f"#{self.sequence_number} state={self.state}>"
        )

    def to_dto(self) -> Installment:
        return Installment(
            id=self.id,
            sequence_number=self.sequence_number,
            due_date=self.due_date,
            original_principal=self.original_principal,
            outstanding_principal=self.outstanding_principal,
            accrued_moratory_interest=self.accrued_moratory_interest,
            accrued_punitive_interest=self.accrued_punitive_interest,
            state=InstallmentState(self.state),
            last_payment_date=self.last_payment_date,
            scheduled_amount=self.scheduled_amount,
        )

    def apply_dto(self, dto: Installment) -> None:
        self.sequence_number = dto.sequence_number
        self.due_date = dto.due_date
        self.original_principal = dto.original_principal
        self.outstanding_principal = dto.outstanding_principal
        self.accrued_moratory_interest = dto.accrued_moratory_interest
        self.accrued_punitive_interest = dto.accrued_punitive_interest
        self.state = dto.state.value
        self.last_payment_date = dto.last_payment_date
        self.scheduled_amount = dto.scheduled_amount
