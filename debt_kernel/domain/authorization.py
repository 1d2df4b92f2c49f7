"""
Authorization domain types (``debt_kernel.domain.authorization``).

Responsibility
--------------
The supervisor-authorization lifecycle for state transitions that a rule
marks as risky.  Defines the status state machine, request priority
derivation, and the ``AuthorizationRequest`` entity.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  May import only sibling domain
modules and ``debt_kernel.exceptions``.

Invariants enforced
-------------------
* ``AUTHORIZATION_TRANSITIONS`` defines the only valid status changes.
  Terminal states have no outgoing edges, so each request is resolved at
  most once.
* A request starts PENDING with no supervisor assigned.

Failure modes
-------------
* ``AuthorizationAlreadyResolvedError`` on approve/reject/expire of a
  request that is no longer PENDING.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from debt_kernel.domain.clock import Clock
from debt_kernel.domain.debt import DebtState
from debt_kernel.exceptions import AuthorizationAlreadyResolvedError


# =========================================================================
# Status lifecycle
# =========================================================================


class AuthorizationStatus(str, Enum):
    """Authorization request lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


AUTHORIZATION_TRANSITIONS: dict[AuthorizationStatus, frozenset[AuthorizationStatus]] = {
    AuthorizationStatus.PENDING: frozenset({
        AuthorizationStatus.APPROVED,
        AuthorizationStatus.REJECTED,
        AuthorizationStatus.EXPIRED,
    }),
    AuthorizationStatus.APPROVED: frozenset(),
    AuthorizationStatus.REJECTED: frozenset(),
    AuthorizationStatus.EXPIRED: frozenset(),
}

TERMINAL_AUTHORIZATION_STATUSES: frozenset[AuthorizationStatus] = frozenset({
    AuthorizationStatus.APPROVED,
    AuthorizationStatus.REJECTED,
    AuthorizationStatus.EXPIRED,
})


class AuthorizationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_HIGH_PRIORITY_THRESHOLD = Decimal("100000")
DEFAULT_LOW_PRIORITY_THRESHOLD = Decimal("10000")


def priority_for_debt_total(
    total: Decimal,
    high_threshold: Decimal = DEFAULT_HIGH_PRIORITY_THRESHOLD,
    low_threshold: Decimal = DEFAULT_LOW_PRIORITY_THRESHOLD,
) -> AuthorizationPriority:
    """Priority of a request from the debt's total: above high is HIGH, below low is LOW."""
    if total > high_threshold:
        return AuthorizationPriority.HIGH
    if total < low_threshold:
        return AuthorizationPriority.LOW
    return AuthorizationPriority.MEDIUM


# =========================================================================
# Request entity
# =========================================================================


@dataclass
class AuthorizationRequest:
    """A collector's request for a supervisor to approve a debt state change.

    Contract:
        Created PENDING and unassigned.  ``approve``, ``reject`` and
        ``expire`` each move it to a terminal status exactly once and stamp
        ``resolved_at``.

    Non-goals:
        - Does not touch the debt; applying the approved transition is the
          authorization service's job.
    """

    id: UUID
    follow_up_id: UUID
    debt_id: UUID
    origin_state: DebtState
    destination_state: DebtState
    requesting_collector_id: UUID
    requested_at: datetime
    assigned_supervisor_id: UUID | None = None
    status: AuthorizationStatus = AuthorizationStatus.PENDING
    resolved_at: datetime | None = None
    requester_comment: str | None = None
    supervisor_comment: str | None = None
    priority: AuthorizationPriority = AuthorizationPriority.MEDIUM

    @classmethod
    def create(
        cls,
        follow_up_id: UUID,
        debt_id: UUID,
        origin_state: DebtState,
        destination_state: DebtState,
        requesting_collector_id: UUID,
        clock: Clock,
        *,
        requester_comment: str | None = None,
        priority: AuthorizationPriority = AuthorizationPriority.MEDIUM,
    ) -> AuthorizationRequest:
        return cls(
            id=uuid4(),
            follow_up_id=follow_up_id,
            debt_id=debt_id,
            origin_state=origin_state,
            destination_state=destination_state,
            requesting_collector_id=requesting_collector_id,
            requested_at=clock.now(),
            requester_comment=requester_comment,
            priority=priority,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == AuthorizationStatus.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.status in TERMINAL_AUTHORIZATION_STATUSES

    def assign_supervisor(self, supervisor_id: UUID) -> None:
        self.assigned_supervisor_id = supervisor_id

    def approve(self, at: datetime, comment: str | None = None) -> None:
        self._resolve(AuthorizationStatus.APPROVED, at, comment)

    def reject(self, at: datetime, comment: str | None = None) -> None:
        self._resolve(AuthorizationStatus.REJECTED, at, comment)

    def expire(self, at: datetime) -> None:
        self._resolve(AuthorizationStatus.EXPIRED, at, None)

    def _resolve(
        self,
        new_status: AuthorizationStatus,
        at: datetime,
        comment: str | None,
    ) -> None:
        if new_status not in AUTHORIZATION_TRANSITIONS[self.status]:
            raise AuthorizationAlreadyResolvedError(str(self.id), self.status.value)
        self.status = new_status
        self.resolved_at = at
        if comment is not None:
            self.supervisor_comment = comment
