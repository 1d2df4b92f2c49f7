"""SQLAlchemy implementations of the transition rule and graph repositories."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from debt_kernel.domain.debt import DebtState
from debt_kernel.domain.transition_graph import AllowedTransition
from debt_kernel.domain.transition_rule import TransitionRule
from debt_kernel.models.rules import AllowedTransitionModel, TransitionRuleModel
from debt_kernel.repositories.base import BaseRepository


class SqlAlchemyTransitionRuleRepository(BaseRepository[TransitionRuleModel]):
    model = TransitionRuleModel

    def list_active_by_management_type(self, management_type_id: UUID) -> list[TransitionRule]:
        """Active rules, highest priority first; ties ordered by rule id."""
        rows = self.session.execute(
            select(TransitionRuleModel)
            .where(
                TransitionRuleModel.management_type_id == management_type_id,
                TransitionRuleModel.active.is_(True),
            )
            .order_by(TransitionRuleModel.priority.desc(), TransitionRuleModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def add(self, rule: TransitionRule) -> TransitionRule:
        self.session.add(TransitionRuleModel.from_dto(rule))
        self.session.flush()
        return rule


class SqlAlchemyTransitionGraphRepository(BaseRepository[AllowedTransitionModel]):
    model = AllowedTransitionModel

    def get_edge(self, origin: DebtState, destination: DebtState) -> AllowedTransition | None:
        row = self.session.execute(
            select(AllowedTransitionModel).where(
                AllowedTransitionModel.origin_state == origin.value,
                AllowedTransitionModel.destination_state == destination.value,
            )
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def list_edges_from(self, origin: DebtState) -> list[AllowedTransition]:
        rows = self.session.execute(
            select(AllowedTransitionModel)
            .where(AllowedTransitionModel.origin_state == origin.value)
            .order_by(AllowedTransitionModel.destination_state)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def add(self, edge: AllowedTransition) -> AllowedTransition:
        self.session.add(AllowedTransitionModel.from_dto(edge))
        self.session.flush()
        return edge
