"""SQLAlchemy implementation of ``DebtRepository``."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from debt_kernel.domain.debt import FINAL_DEBT_STATES, Debt
from debt_kernel.logging_config import get_logger
from debt_kernel.models.debt import DebtModel
from debt_kernel.repositories.base import BaseRepository

logger = get_logger("repositories.debt")


class SqlAlchemyDebtRepository(BaseRepository[DebtModel]):
    model = DebtModel

    def get(self, debt_id: UUID) -> Debt | None:
        row = self._get_model(debt_id)
        return row.to_dto() if row is not None else None

    def list_for_daily_update(self) -> list[Debt]:
        """Debts not in a final state, oldest id order for a stable batch."""
        rows = self.session.execute(
            select(DebtModel)
            .where(DebtModel.current_state.not_in([s.value for s in FINAL_DEBT_STATES]))
            .order_by(DebtModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def list_for_collector(self, collector_id: UUID) -> list[Debt]:
        rows = self.session.execute(
            select(DebtModel)
            .where(DebtModel.assigned_collector_id == collector_id)
            .order_by(DebtModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def save(self, debt: Debt) -> Debt:
        """Insert or update the aggregate, including its installments."""
        row = self._get_model(debt.id)
        if row is None:
            row = DebtModel.from_dto(debt)
            self.session.add(row)
        else:
            row.apply_dto(debt)
        self.session.flush()
        logger.debug(
            "debt_saved",
            extra={"debt_id": str(debt.id), "state": debt.current_state.value},
        )
        return debt
