"""SQLAlchemy implementations of ``SupervisorDirectory`` and ``FollowUpRepository``."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from debt_kernel.domain.follow_up import FollowUp
from debt_kernel.models.follow_up import FollowUpModel
from debt_kernel.models.user import AssignmentCursorModel, UserModel, UserRole
from debt_kernel.repositories.base import BaseRepository

SUPERVISOR_ROTATION_CURSOR = "supervisor_rotation"


class SqlAlchemySupervisorDirectory(BaseRepository[UserModel]):
    """Active supervisors in stable (email, id) order plus the rotation cursor."""

    model = UserModel

    def __init__(self, session, cursor_name: str = SUPERVISOR_ROTATION_CURSOR):
        super().__init__(session)
        self._cursor_name = cursor_name

    def list_active_supervisors(self) -> list[UUID]:
        return list(
            self.session.execute(
                select(UserModel.id)
                .where(
                    UserModel.role == UserRole.SUPERVISOR.value,
                    UserModel.active.is_(True),
                )
                .order_by(UserModel.email, UserModel.id)
            ).scalars().all()
        )

    def get_rotation_cursor(self) -> int:
        row = self._cursor_row()
        return row.position if row is not None else 0

    def set_rotation_cursor(self, value: int) -> None:
        row = self._cursor_row()
        if row is None:
            self.session.add(AssignmentCursorModel(name=self._cursor_name, position=value))
        else:
            row.position = value
        self.session.flush()

    def _cursor_row(self) -> AssignmentCursorModel | None:
        return self.session.execute(
            select(AssignmentCursorModel).where(AssignmentCursorModel.name == self._cursor_name)
        ).scalar_one_or_none()


class SqlAlchemyFollowUpRepository(BaseRepository[FollowUpModel]):
    model = FollowUpModel

    def create(self, follow_up: FollowUp) -> FollowUp:
        self.session.add(FollowUpModel.from_dto(follow_up))
        self.session.flush()
        return follow_up

    def get(self, follow_up_id: UUID) -> FollowUp | None:
        row = self._get_model(follow_up_id)
        return row.to_dto() if row is not None else None
