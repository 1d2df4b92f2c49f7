"""
Module: debt_kernel.models.job_lease
Responsibility: ORM persistence for named, time-limited job leases used to
    keep a scheduled job single-flight across processes.

Invariants enforced:
    - UNIQUE(name): at most one lease row per job.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from debt_kernel.db.base import Base


class JobLeaseModel(Base):
    __tablename__ = "job_leases"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    holder: Mapped[str] = mapped_column(String(200), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<JobLease {self.name} holder={self.holder} expires={self.expires_at}>"
