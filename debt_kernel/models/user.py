"""
Module: debt_kernel.models.user
Responsibility: ORM persistence for staff users (collectors, supervisors)
    and the persisted cursor used to rotate supervisor assignment.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from debt_kernel.db.base import Base


class UserRole(str, Enum):
    COLLECTOR = "collector"
    SUPERVISOR = "supervisor"
    ADMINISTRATOR = "administrator"


_ROLES_SQL = ", ".join(f"'{r.value}'" for r in UserRole)


class UserModel(Base):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(f"role IN ({_ROLES_SQL})", name="ck_users_valid_role"),
        Index("ix_users_role_active", "role", "active"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email} role={self.role} active={self.active}>"


class AssignmentCursorModel(Base):
    """Named monotonically increasing counter for round-robin assignment."""

    __tablename__ = "assignment_cursors"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<AssignmentCursor {self.name}={self.position}>"
