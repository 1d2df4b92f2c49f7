"""
Module: debt_kernel.models.rules
Responsibility: ORM persistence for the configured transition graph and the
    transition rules attached to management types.

Architecture position: Kernel > Models.  May import from db/base.py and
    domain value types.

Invariants enforced:
    - UNIQUE(origin_state, destination_state): the graph has at most one
      edge per ordered pair of states.
    - Rule conditions are stored verbatim as JSON; they are parsed only
      when a rule is evaluated.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from debt_kernel.db.base import Base, UUIDString
from debt_kernel.domain.debt import DebtState
from debt_kernel.domain.transition_graph import AllowedTransition
from debt_kernel.domain.transition_rule import TransitionRule


class AllowedTransitionModel(Base):
    """One edge of the debt state graph."""

    __tablename__ = "allowed_transitions"

    __table_args__ = (
        UniqueConstraint(
            "origin_state", "destination_state",
            name="uq_allowed_transitions_edge",
        ),
        Index("ix_allowed_transitions_origin", "origin_state"),
    )

    origin_state: Mapped[str] = mapped_column(String(30), nullable=False)
    destination_state: Mapped[str] = mapped_column(String(30), nullable=False)
    requires_authorization: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<AllowedTransition {self.origin_state}->{self.destination_state}>"

    def to_dto(self) -> AllowedTransition:
        return AllowedTransition(
            origin_state=DebtState(self.origin_state),
            destination_state=DebtState(self.destination_state),
            requires_authorization=self.requires_authorization,
            description=self.description,
        )

    @classmethod
    def from_dto(cls, dto: AllowedTransition) -> AllowedTransitionModel:
        return cls(
            origin_state=dto.origin_state.value,
            destination_state=dto.destination_state.value,
            requires_authorization=dto.requires_authorization,
            description=dto.description,
        )


class TransitionRuleModel(Base):
    """A transition rule for one management type."""

    __tablename__ = "transition_rules"

    __table_args__ = (
        Index(
            "ix_transition_rules_lookup",
            "management_type_id", "active", "priority",
        ),
    )

    management_type_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    origin_state: Mapped[str | None] = mapped_column(String(30), nullable=True)
    destination_state: Mapped[str | None] = mapped_column(String(30), nullable=True)
    requires_authorization: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    condition: Mapped[Any] = mapped_column(JSON, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ui_message: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<TransitionRule {self.id} "
            f"{self.origin_state or '*'}->{self.destination_state or '='} "
            f"priority={self.priority}>"
        )

    def to_dto(self) -> TransitionRule:
        return TransitionRule(
            id=self.id,
            management_type_id=self.management_type_id,
            origin_state=DebtState(self.origin_state) if self.origin_state else None,
            destination_state=(
                DebtState(self.destination_state) if self.destination_state else None
            ),
            requires_authorization=self.requires_authorization,
            condition=self.condition,
            priority=self.priority,
            active=self.active,
            ui_message=self.ui_message,
        )

    @classmethod
    def from_dto(cls, dto: TransitionRule) -> TransitionRuleModel:
        return cls(
            id=dto.id,
            management_type_id=dto.management_type_id,
            origin_state=dto.origin_state.value if dto.origin_state else None,
            destination_state=dto.destination_state.value if dto.destination_state else None,
            requires_authorization=dto.requires_authorization,
            condition=dto.condition,
            priority=dto.priority,
            active=dto.active,
            ui_message=dto.ui_message,
        )
