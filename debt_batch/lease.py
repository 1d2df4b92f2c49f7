"""
RunLease -- Database lease keeping a scheduled job single-flight across processes.

Contract:
    ``acquire(name, holder, ttl_seconds)`` succeeds only when no unexpired
    lease for ``name`` is held by a different holder; the holder that
    already owns the lease may re-acquire it to extend it.
    ``release(name, holder)`` drops the lease only if ``holder`` owns it.

Architecture: debt_batch.  Persists through ``JobLeaseModel`` using its own
    short transactions (one session per call, committed immediately), so the
    lease is visible to other processes before the guarded work starts.

Invariants enforced:
    - All timestamps come from the injected Clock.
    - UNIQUE(name) on job_leases: concurrent first inserts race on the
      constraint and the loser reports "not acquired".
"""

from __future__ import annotations

from datetime import timedelta
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from debt_kernel.domain.clock import Clock, SystemClock, as_utc
from debt_kernel.logging_config import get_logger
from debt_kernel.models.job_lease import JobLeaseModel

logger = get_logger("batch.lease")


class RunLease:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def acquire(self, name: str, holder: str, ttl_seconds: int) -> bool:
        now = as_utc(self._clock.now())
        expires_at = now + timedelta(seconds=ttl_seconds)

        session = self._session_factory()
        try:
            row = session.execute(
                select(JobLeaseModel).where(JobLeaseModel.name == name).with_for_update()
            ).scalar_one_or_none()

            if row is None:
                session.add(
                    JobLeaseModel(name=name, holder=holder, acquired_at=now, expires_at=expires_at)
                )
            elif row.holder != holder and as_utc(row.expires_at) > now:
                session.rollback()
                logger.info(
                    "lease_held_elsewhere",
                    extra={"lease": name, "holder": row.holder, "requested_by": holder},
                )
                return False
            else:
                row.holder = holder
                row.acquired_at = now
                row.expires_at = expires_at

            session.commit()
        except IntegrityError:
            session.rollback()
            logger.info("lease_acquire_race_lost", extra={"lease": name, "requested_by": holder})
            return False
        finally:
            session.close()

        logger.info(
            "lease_acquired",
            extra={"lease": name, "holder": holder, "expires_at": expires_at.isoformat()},
        )
        return True

    def release(self, name: str, holder: str) -> bool:
        """Drop the lease if ``holder`` owns it.  Returns whether a row was removed."""
        session = self._session_factory()
        try:
            row = session.execute(
                select(JobLeaseModel).where(JobLeaseModel.name == name)
            ).scalar_one_or_none()
            if row is None or row.holder != holder:
                session.rollback()
                return False
            session.delete(row)
            session.commit()
        finally:
            session.close()

        logger.info("lease_released", extra={"lease": name, "holder": holder})
        return True

    def current_holder(self, name: str) -> str | None:
        """Holder of an unexpired lease on ``name``, or None."""
        now = as_utc(self._clock.now())
        session = self._session_factory()
        try:
            row = session.execute(
                select(JobLeaseModel).where(JobLeaseModel.name == name)
            ).scalar_one_or_none()
            if row is None or as_utc(row.expires_at) <= now:
                return None
            return row.holder
        finally:
            session.close()
