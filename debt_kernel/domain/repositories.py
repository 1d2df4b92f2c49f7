"""
Repository contracts (``debt_kernel.domain.repositories``).

Responsibility
--------------
Structural interfaces the kernel services and orchestrators depend on.
The shipped implementations live in ``debt_kernel.repositories`` on top
of SQLAlchemy; tests may substitute in-memory fakes.

Architecture position
---------------------
**Kernel domain layer** -- ``typing.Protocol`` only, ZERO I/O.

Contract notes
--------------
* ``TransitionRuleRepository.list_active_by_management_type`` returns
  rules ordered by priority descending, then by rule id, so equal-priority
  selection is deterministic.
* ``DebtRepository.list_for_daily_update`` returns only debts whose state
  is not final.
* Implementations flush but never commit; the caller owns the transaction.
"""

from __future__ import annotations

from typing import Protocol, Sequence
from uuid import UUID

from debt_kernel.domain.authorization import AuthorizationRequest
from debt_kernel.domain.debt import Debt, DebtState
from debt_kernel.domain.follow_up import FollowUp
from debt_kernel.domain.transition_graph import AllowedTransition
from debt_kernel.domain.transition_rule import TransitionRule


class DebtRepository(Protocol):
    def get(self, debt_id: UUID) -> Debt | None: ...

    def list_for_daily_update(self) -> Sequence[Debt]: ...

    def save(self, debt: Debt) -> Debt: ...


class TransitionRuleRepository(Protocol):
    def list_active_by_management_type(
        self, management_type_id: UUID,
    ) -> Sequence[TransitionRule]: ...


class TransitionGraphRepository(Protocol):
    def get_edge(
        self, origin: DebtState, destination: DebtState,
    ) -> AllowedTransition | None: ...

    def list_edges_from(self, origin: DebtState) -> Sequence[AllowedTransition]: ...


class AuthorizationRequestRepository(Protocol):
    def create(self, request: AuthorizationRequest) -> AuthorizationRequest: ...

    def get(self, request_id: UUID) -> AuthorizationRequest | None: ...

    def update(self, request: AuthorizationRequest) -> AuthorizationRequest: ...

    def list_pending(self) -> Sequence[AuthorizationRequest]: ...

    def list_pending_for_supervisor(
        self, supervisor_id: UUID,
    ) -> Sequence[AuthorizationRequest]: ...

    def list_for_debt(self, debt_id: UUID) -> Sequence[AuthorizationRequest]: ...


class SupervisorDirectory(Protocol):
    def list_active_supervisors(self) -> Sequence[UUID]: ...

    def get_rotation_cursor(self) -> int: ...

    def set_rotation_cursor(self, value: int) -> None: ...


class FollowUpRepository(Protocol):
    def create(self, follow_up: FollowUp) -> FollowUp: ...
