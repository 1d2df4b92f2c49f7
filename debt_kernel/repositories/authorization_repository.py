"""SQLAlchemy implementation of ``AuthorizationRequestRepository``."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from debt_kernel.domain.authorization import AuthorizationRequest, AuthorizationStatus
from debt_kernel.models.authorization import AuthorizationRequestModel
from debt_kernel.repositories.base import BaseRepository

_PENDING = AuthorizationStatus.PENDING.value


class SqlAlchemyAuthorizationRequestRepository(BaseRepository[AuthorizationRequestModel]):
    model = AuthorizationRequestModel

    def create(self, request: AuthorizationRequest) -> AuthorizationRequest:
        self.session.add(AuthorizationRequestModel.from_dto(request))
        self.session.flush()
        return request

    def get(self, request_id: UUID) -> AuthorizationRequest | None:
        row = self._get_model(request_id)
        return row.to_dto() if row is not None else None

    def update(self, request: AuthorizationRequest) -> AuthorizationRequest:
        row = self._get_model(request.id)
        if row is None:
            self.session.add(AuthorizationRequestModel.from_dto(request))
        else:
            row.apply_dto(request)
        self.session.flush()
        return request

    def list_pending(self) -> list[AuthorizationRequest]:
        rows = self.session.execute(
            select(AuthorizationRequestModel)
            .where(AuthorizationRequestModel.status == _PENDING)
            .order_by(AuthorizationRequestModel.requested_at, AuthorizationRequestModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def list_pending_for_supervisor(self, supervisor_id: UUID) -> list[AuthorizationRequest]:
        rows = self.session.execute(
            select(AuthorizationRequestModel)
            .where(
                AuthorizationRequestModel.status == _PENDING,
                AuthorizationRequestModel.assigned_supervisor_id == supervisor_id,
            )
            .order_by(AuthorizationRequestModel.requested_at, AuthorizationRequestModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def list_pending_requested_before(self, cutoff: datetime) -> list[AuthorizationRequest]:
        rows = self.session.execute(
            select(AuthorizationRequestModel)
            .where(
                AuthorizationRequestModel.status == _PENDING,
                AuthorizationRequestModel.requested_at < cutoff,
            )
            .order_by(AuthorizationRequestModel.requested_at, AuthorizationRequestModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def list_for_debt(self, debt_id: UUID) -> list[AuthorizationRequest]:
        rows = self.session.execute(
            select(AuthorizationRequestModel)
            .where(AuthorizationRequestModel.debt_id == debt_id)
            .order_by(AuthorizationRequestModel.requested_at, AuthorizationRequestModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]
