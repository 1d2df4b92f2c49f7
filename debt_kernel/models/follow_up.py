"""
Module: debt_kernel.models.follow_up
Responsibility: ORM persistence for follow-up records and the debts each
    follow-up covered.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from debt_kernel.db.base import Base, UUIDString
from debt_kernel.domain.follow_up import FollowUp


class FollowUpModel(Base):
    __tablename__ = "follow_ups"

    __table_args__ = (
        Index("ix_follow_ups_subject", "subject_id", "recorded_at"),
        Index("ix_follow_ups_next_date", "next_follow_up_date"),
    )

    collector_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    subject_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    management_type_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    needs_further_follow_up: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    next_follow_up_date: Mapped[date | None] = mapped_column(nullable=True)

    debts: Mapped[list["FollowUpDebtModel"]] = relationship(
        "FollowUpDebtModel",
        back_populates="follow_up",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<FollowUp {self.id} subject={self.subject_id} at={self.recorded_at}>"

    def to_dto(self) -> FollowUp:
        return FollowUp(
            id=self.id,
            collector_id=self.collector_id,
            subject_id=self.subject_id,
            management_type_id=self.management_type_id,
            recorded_at=self.recorded_at,
            note=self.note,
            needs_further_follow_up=self.needs_further_follow_up,
            next_follow_up_date=self.next_follow_up_date,
            debt_ids=tuple(link.debt_id for link in self.debts),
        )

    @classmethod
    def from_dto(cls, dto: FollowUp) -> FollowUpModel:
        return cls(
            id=dto.id,
            collector_id=dto.collector_id,
            subject_id=dto.subject_id,
            management_type_id=dto.management_type_id,
            recorded_at=dto.recorded_at,
            note=dto.note,
            needs_further_follow_up=dto.needs_further_follow_up,
            next_follow_up_date=dto.next_follow_up_date,
            debts=[FollowUpDebtModel(debt_id=debt_id) for debt_id in dto.debt_ids],
        )


class FollowUpDebtModel(Base):
    """Link row: a debt covered by a follow-up."""

    __tablename__ = "follow_up_debts"

    __table_args__ = (
        UniqueConstraint("follow_up_id", "debt_id", name="uq_follow_up_debts_pair"),
    )

    follow_up_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("follow_ups.id", ondelete="CASCADE"), nullable=False,
    )
    debt_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    follow_up: Mapped[FollowUpModel] = relationship("FollowUpModel", back_populates="debts")
