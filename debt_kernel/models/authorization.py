"""
Module: debt_kernel.models.authorization
Responsibility: ORM persistence for supervisor authorization requests.

Architecture position: Kernel > Models.  May import from db/base.py and
    domain value types.

Invariants enforced:
    - DB check constraint limits status to the lifecycle values; the domain
      entity enforces which transitions between them are legal.
    - Covering indexes for the pending queue (overall and per supervisor)
      and for the expiry sweep.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from debt_kernel.db.base import Base, UUIDString
from debt_kernel.domain.authorization import (
    AuthorizationPriority,
    AuthorizationRequest,
    AuthorizationStatus,
)
from debt_kernel.domain.debt import DebtState

_STATUSES_SQL = ", ".join(f"'{s.value}'" for s in AuthorizationStatus)
_PRIORITIES_SQL = ", ".join(f"'{p.value}'" for p in AuthorizationPriority)


class AuthorizationRequestModel(Base):
    """Persistent authorization request."""

    __tablename__ = "authorization_requests"

    __table_args__ = (
        CheckConstraint(
            f"status IN ({_STATUSES_SQL})",
            name="ck_authorization_requests_valid_status",
        ),
        CheckConstraint(
            f"priority IN ({_PRIORITIES_SQL})",
            name="ck_authorization_requests_valid_priority",
        ),
        Index("ix_authorization_requests_status", "status", "requested_at"),
        Index(
            "ix_authorization_requests_supervisor",
            "assigned_supervisor_id", "status",
        ),
        Index("ix_authorization_requests_debt", "debt_id"),
    )

    follow_up_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    debt_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    origin_state: Mapped[str] = mapped_column(String(30), nullable=False)
    destination_state: Mapped[str] = mapped_column(String(30), nullable=False)
    requesting_collector_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    assigned_supervisor_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AuthorizationStatus.PENDING.value,
    )
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=AuthorizationPriority.MEDIUM.value,
    )
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    requester_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    supervisor_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AuthorizationRequest {self.id} debt={self.debt_id} "
            f"{self.origin_state}->{self.destination_state} status={self.status}>"
        )

    def to_dto(self) -> AuthorizationRequest:
        return AuthorizationRequest(
            id=self.id,
            follow_up_id=self.follow_up_id,
            debt_id=self.debt_id,
            origin_state=DebtState(self.origin_state),
            destination_state=DebtState(self.destination_state),
            requesting_collector_id=self.requesting_collector_id,
            requested_at=self.requested_at,
            assigned_supervisor_id=self.assigned_supervisor_id,
            status=AuthorizationStatus(self.status),
            resolved_at=self.resolved_at,
            requester_comment=self.requester_comment,
            supervisor_comment=self.supervisor_comment,
            priority=AuthorizationPriority(self.priority),
        )

    @classmethod
    def from_dto(cls, dto: AuthorizationRequest) -> AuthorizationRequestModel:
        model = cls(id=dto.id)
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto: AuthorizationRequest) -> None:
        self.follow_up_id = dto.follow_up_id
        self.debt_id = dto.debt_id
        self.origin_state = dto.origin_state.value
        self.destination_state = dto.destination_state.value
        self.requesting_collector_id = dto.requesting_collector_id
        self.assigned_supervisor_id = dto.assigned_supervisor_id
        self.status = dto.status.value
        self.priority = dto.priority.value
        self.requested_at = dto.requested_at
        self.resolved_at = dto.resolved_at
        self.requester_comment = dto.requester_comment
        self.supervisor_comment = dto.supervisor_comment
