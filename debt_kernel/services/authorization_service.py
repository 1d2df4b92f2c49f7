"""
debt_kernel.services.authorization_service -- Supervisor resolution of requests.

Responsibility:
    Resolves pending authorization requests (approve / reject) on behalf
    of the assigned supervisor, applying the approved state change to the
    debt, and expires requests nobody resolved in time.

Architecture position:
    Kernel > Services.  Depends on repository contracts only; the
    ``from_session`` factory wires the SQLAlchemy implementations.

Invariants enforced:
    - Only the assigned supervisor may resolve a request.
    - A request is resolved at most once (domain lifecycle).
    - Approval applies the destination state only if the debt is still in
      the request's origin state; otherwise nothing is written.
    - Rejection never touches the debt.

Failure modes (checked in this order):
    - AuthorizationRequestNotFoundError if request_id is unknown.
    - SupervisorNotAuthorizedError if the caller is not the assignee.
    - AuthorizationAlreadyResolvedError if the request is not PENDING.
    - DebtNotFoundError if the request's debt no longer exists.
    - StaleAuthorizationError (approve only) if the debt moved.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from debt_kernel.domain.authorization import AuthorizationStatus
from debt_kernel.domain.clock import Clock, SystemClock, as_utc
from debt_kernel.domain.debt import DebtState
from debt_kernel.domain.repositories import (
    AuthorizationRequestRepository,
    DebtRepository,
)
from debt_kernel.exceptions import (
    AuthorizationAlreadyResolvedError,
    AuthorizationRequestNotFoundError,
    DebtNotFoundError,
    StaleAuthorizationError,
    SupervisorNotAuthorizedError,
)
from debt_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.authorization")


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of ``AuthorizationService.resolve``."""

    request_id: UUID
    status: AuthorizationStatus
    debt_updated: bool
    new_debt_state: DebtState | None = None


class AuthorizationService:
    """Supervisor-facing authorization workflow."""

    def __init__(
        self,
        requests: AuthorizationRequestRepository,
        debts: DebtRepository,
        clock: Clock | None = None,
    ) -> None:
        self._requests = requests
        self._debts = debts
        self._clock = clock or SystemClock()

    @classmethod
    def from_session(cls, session: Session, clock: Clock | None = None) -> AuthorizationService:
        from debt_kernel.repositories import (
            SqlAlchemyAuthorizationRequestRepository,
            SqlAlchemyDebtRepository,
        )

        return cls(
            SqlAlchemyAuthorizationRequestRepository(session),
            SqlAlchemyDebtRepository(session),
            clock=clock,
        )

    def resolve(
        self,
        request_id: UUID,
        supervisor_id: UUID,
        approve: bool,
        comment: str | None = None,
    ) -> ResolutionResult:
        request = self._requests.get(request_id)
        if request is None:
            raise AuthorizationRequestNotFoundError(str(request_id))

        if request.assigned_supervisor_id != supervisor_id:
            raise SupervisorNotAuthorizedError(str(request_id), str(supervisor_id))

        if not request.is_pending:
            raise AuthorizationAlreadyResolvedError(str(request_id), request.status.value)

        debt = self._debts.get(request.debt_id)
        if debt is None:
            raise DebtNotFoundError(str(request.debt_id))

        now = self._clock.now()
        debt_updated = False
        new_state: DebtState | None = None

        with LogContext.bind(request_id=request_id, debt_id=debt.id, actor_id=supervisor_id):
            if approve:
                if debt.current_state != request.origin_state:
                    raise StaleAuthorizationError(
                        str(request_id),
                        str(debt.id),
                        request.origin_state.value,
                        debt.current_state.value,
                    )
                debt.change_state(request.destination_state)
                self._debts.save(debt)
                debt_updated = True
                new_state = request.destination_state
                request.approve(now, comment)
            else:
                request.reject(now, comment)

            self._requests.update(request)

            logger.info(
                "authorization_request_resolved",
                extra={
                    "status": request.status.value,
                    "origin_state": request.origin_state.value,
                    "destination_state": request.destination_state.value,
                    "debt_updated": debt_updated,
                },
            )

        return ResolutionResult(
            request_id=request.id,
            status=request.status,
            debt_updated=debt_updated,
            new_debt_state=new_state,
        )

    def expire_stale_requests(self, as_of: datetime, timeout_hours: int) -> list[UUID]:
        """Expire every PENDING request requested more than ``timeout_hours`` before ``as_of``.

        Returns the ids of the expired requests.
        """
        cutoff = as_utc(as_of) - timedelta(hours=timeout_hours)
        expired: list[UUID] = []
        for request in self._requests.list_pending():
            if as_utc(request.requested_at) >= cutoff:
                continue
            request.expire(as_of)
            self._requests.update(request)
            expired.append(request.id)

        if expired:
            logger.info(
                "authorization_requests_expired",
                extra={"count": len(expired), "timeout_hours": timeout_hours},
            )
        return expired
