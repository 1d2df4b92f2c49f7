"""
debt_services.follow_up_service -- Record a collector follow-up and apply rules.

Responsibility:
    A collector records one follow-up touching one or more debts.  For
    every debt the configured transition rules for the management type are
    evaluated; the selected rule either moves the debt immediately or, when
    it requires authorization, leaves the debt untouched and opens an
    authorization request for a supervisor.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes RuleSelector, TransitionValidator and SupervisorAssigner over
    the kernel repository contracts.  ``from_session`` wires the SQLAlchemy
    implementations around a caller-owned session.

Invariants enforced:
    - Every debt must exist and be assigned to the calling collector before
      anything is written.
    - Every selected destination is validated against the transition graph
      before any debt is changed; one illegal move aborts the whole call.
    - Exactly one FollowUp is created per call, linked to every debt.
    - A debt whose selected rule requires authorization keeps its state; one
      PENDING request is created for it, prioritised by the debt total.
    - The rule's ``requires_authorization`` flag gates; the graph edge's
      flag is reported in the outcome only.

Failure modes:
    - DebtNotFoundError if any debt id is unknown.
    - DebtNotAssignedError if a debt belongs to another collector.
    - IllegalTransitionError if a selected rule points at a destination the
      graph does not permit.
    - NoActiveSupervisorsError is logged and swallowed; the request stays
      unassigned.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from debt_kernel.domain.authorization import (
    DEFAULT_HIGH_PRIORITY_THRESHOLD,
    DEFAULT_LOW_PRIORITY_THRESHOLD,
    AuthorizationRequest,
    priority_for_debt_total,
)
from debt_kernel.domain.clock import Clock, SystemClock
from debt_kernel.domain.debt import Debt, DebtState
from debt_kernel.domain.follow_up import FollowUp
from debt_kernel.domain.repositories import (
    AuthorizationRequestRepository,
    DebtRepository,
    FollowUpRepository,
    TransitionRuleRepository,
)
from debt_kernel.domain.rule_selector import RuleSelector
from debt_kernel.domain.transition_rule import TransitionRule
from debt_kernel.exceptions import (
    DebtNotAssignedError,
    DebtNotFoundError,
    IllegalTransitionError,
    NoActiveSupervisorsError,
)
from debt_kernel.logging_config import LogContext, get_logger
from debt_kernel.services.supervisor_assigner import AssignmentStrategy, SupervisorAssigner
from debt_kernel.services.transition_validator import TransitionValidator

logger = get_logger("services.follow_up")


@dataclass(frozen=True)
class DebtOutcome:
    """What the follow-up did to one debt."""

    debt_id: UUID
    new_state: DebtState
    authorization_pending: bool = False
    edge_requires_authorization: bool = False


@dataclass(frozen=True)
class FollowUpResult:
    follow_up_id: UUID
    outcomes: tuple[DebtOutcome, ...]
    authorization_requests: tuple[AuthorizationRequest, ...] = ()

    def outcome_for(self, debt_id: UUID) -> DebtOutcome | None:
        for outcome in self.outcomes:
            if outcome.debt_id == debt_id:
                return outcome
        return None


@dataclass(frozen=True)
class _Decision:
    debt: Debt
    rule: TransitionRule | None
    destination: DebtState
    edge_requires_authorization: bool

    @property
    def deferred(self) -> bool:
        return self.rule is not None and self.rule.requires_authorization

    @property
    def changes_state(self) -> bool:
        return self.destination != self.debt.current_state


class FollowUpService:
    """
    Collector-facing follow-up use case.

    Contract:
        All collaborators are injected; the service flushes through them
        and never commits.

    Guarantees:
        - Validation of every debt precedes any write, so a failed call
          leaves nothing for the caller to commit except what it chooses to.
        - Outcomes are returned in the order the debt ids were given.

    Non-goals:
        - Does not resolve authorization requests (see AuthorizationService).
        - Does not deduplicate repeated debt ids beyond the first occurrence.
    """

    def __init__(
        self,
        debts: DebtRepository,
        rules: TransitionRuleRepository,
        validator: TransitionValidator,
        follow_ups: FollowUpRepository,
        requests: AuthorizationRequestRepository,
        assigner: SupervisorAssigner,
        clock: Clock | None = None,
        selector: RuleSelector | None = None,
        high_priority_threshold: Decimal = DEFAULT_HIGH_PRIORITY_THRESHOLD,
        low_priority_threshold: Decimal = DEFAULT_LOW_PRIORITY_THRESHOLD,
    ) -> None:
        self._debts = debts
        self._rules = rules
        self._validator = validator
        self._follow_ups = follow_ups
        self._requests = requests
        self._assigner = assigner
        self._clock = clock or SystemClock()
        self._selector = selector or RuleSelector()
        self._high_threshold = high_priority_threshold
        self._low_threshold = low_priority_threshold

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        strategy: AssignmentStrategy = AssignmentStrategy.ROUND_ROBIN,
        high_priority_threshold: Decimal = DEFAULT_HIGH_PRIORITY_THRESHOLD,
        low_priority_threshold: Decimal = DEFAULT_LOW_PRIORITY_THRESHOLD,
    ) -> FollowUpService:
        from debt_kernel.repositories import (
            SqlAlchemyAuthorizationRequestRepository,
            SqlAlchemyDebtRepository,
            SqlAlchemyFollowUpRepository,
            SqlAlchemySupervisorDirectory,
            SqlAlchemyTransitionGraphRepository,
            SqlAlchemyTransitionRuleRepository,
        )

        return cls(
            debts=SqlAlchemyDebtRepository(session),
            rules=SqlAlchemyTransitionRuleRepository(session),
            validator=TransitionValidator(SqlAlchemyTransitionGraphRepository(session)),
            follow_ups=SqlAlchemyFollowUpRepository(session),
            requests=SqlAlchemyAuthorizationRequestRepository(session),
            assigner=SupervisorAssigner(SqlAlchemySupervisorDirectory(session), strategy),
            clock=clock,
            high_priority_threshold=high_priority_threshold,
            low_priority_threshold=low_priority_threshold,
        )

    def create_follow_up(
        self,
        collector_id: UUID,
        subject_id: UUID,
        debt_ids: Sequence[UUID],
        management_type_id: UUID,
        note: str | None = None,
        next_follow_up_date: date | None = None,
        needs_further_follow_up: bool = False,
    ) -> FollowUpResult:
        with LogContext.bind(actor_id=collector_id):
            debts = self._load_owned_debts(collector_id, debt_ids)
            rules = list(self._rules.list_active_by_management_type(management_type_id))
            decisions = [self._decide(debt, rules, management_type_id) for debt in debts]

            outcomes: list[DebtOutcome] = []
            for decision in decisions:
                applied = not decision.deferred and decision.changes_state
                if applied:
                    decision.debt.change_state(decision.destination)
                    self._debts.save(decision.debt)
                    logger.info(
                        "debt_state_changed",
                        extra={
                            "debt_id": str(decision.debt.id),
                            "new_state": decision.destination.value,
                            "rule_id": str(decision.rule.id),
                        },
                    )
                outcomes.append(
                    DebtOutcome(
                        debt_id=decision.debt.id,
                        new_state=decision.debt.current_state,
                        authorization_pending=decision.deferred,
                        edge_requires_authorization=decision.edge_requires_authorization,
                    )
                )

            follow_up = self._follow_ups.create(
                FollowUp.create(
                    collector_id=collector_id,
                    subject_id=subject_id,
                    management_type_id=management_type_id,
                    recorded_at=self._clock.now(),
                    note=note,
                    needs_further_follow_up=needs_further_follow_up,
                    next_follow_up_date=next_follow_up_date,
                    debt_ids=tuple(d.id for d in debts),
                )
            )

            requests = [
                self._open_request(follow_up, decision, collector_id, note)
                for decision in decisions
                if decision.deferred
            ]

            logger.info(
                "follow_up_created",
                extra={
                    "follow_up_id": str(follow_up.id),
                    "management_type_id": str(management_type_id),
                    "debts": len(debts),
                    "authorization_requests": len(requests),
                },
            )

        return FollowUpResult(
            follow_up_id=follow_up.id,
            outcomes=tuple(outcomes),
            authorization_requests=tuple(requests),
        )

    # -- steps ---------------------------------------------------------------

    def _load_owned_debts(self, collector_id: UUID, debt_ids: Sequence[UUID]) -> list[Debt]:
        debts: list[Debt] = []
        seen: set[UUID] = set()
        for debt_id in debt_ids:
            if debt_id in seen:
                continue
            seen.add(debt_id)
            debt = self._debts.get(debt_id)
            if debt is None:
                raise DebtNotFoundError(str(debt_id))
            if debt.assigned_collector_id != collector_id:
                raise DebtNotAssignedError(str(debt_id), str(collector_id))
            debts.append(debt)
        return debts

    def _decide(
        self,
        debt: Debt,
        rules: Sequence[TransitionRule],
        management_type_id: UUID,
    ) -> _Decision:
        rule = self._selector.select(rules, debt, management_type_id)
        if rule is None:
            return _Decision(debt, None, debt.current_state, False)

        destination = rule.destination_for(debt.current_state)
        check = self._validator.validate(debt.current_state, destination)
        if not check.valid:
            raise IllegalTransitionError(
                debt.current_state.value, destination.value, debt_id=str(debt.id),
            )
        return _Decision(debt, rule, destination, check.requires_authorization)

    def _open_request(
        self,
        follow_up: FollowUp,
        decision: _Decision,
        collector_id: UUID,
        note: str | None,
    ) -> AuthorizationRequest:
        debt = decision.debt
        request = AuthorizationRequest.create(
            follow_up_id=follow_up.id,
            debt_id=debt.id,
            origin_state=debt.current_state,
            destination_state=decision.destination,
            requesting_collector_id=collector_id,
            clock=self._clock,
            requester_comment=note,
            priority=priority_for_debt_total(
                debt.total_debt, self._high_threshold, self._low_threshold,
            ),
        )
        try:
            request.assign_supervisor(self._assigner.assign())
        except NoActiveSupervisorsError:
            logger.warning(
                "authorization_request_unassigned",
                extra={"debt_id": str(debt.id), "reason": "no active supervisors"},
            )

        created = self._requests.create(request)
        logger.info(
            "authorization_request_created",
            extra={
                "request_id": str(created.id),
                "debt_id": str(debt.id),
                "origin_state": created.origin_state.value,
                "destination_state": created.destination_state.value,
                "priority": created.priority.value,
                "assigned_supervisor_id": (
                    str(created.assigned_supervisor_id)
                    if created.assigned_supervisor_id else None
                ),
            },
        )
        return created
