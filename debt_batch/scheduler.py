"""
DailyUpdateScheduler -- In-process timer firing the daily debt update.

Contract:
    Fires ``DailyUpdateService.run`` once per day at a configured UTC
    hour/minute from a background thread, and on demand via ``run_now()``.

Architecture: debt_batch.  Opens one session per run from the injected
    factory, commits on success and rolls back on any failure.

Invariants enforced:
    - All timestamps come from the injected Clock.
    - Next-run computation is pure (``compute_next_run``).
    - At most one run per scheduler instance at a time (lock-guarded flag);
      with a RunLease, at most one run per lease name across processes.
    - Graceful shutdown: the loop waits on a stop event, never sleeps blind.

Failure modes:
    - A failing debt aborts the whole run: the exception is caught here,
      logged with ``daily_update_failed`` and the session rolled back.
"""

from __future__ import annotations

import socket
import threading
from datetime import date, datetime, timedelta
from typing import Callable
from uuid import uuid4

from sqlalchemy.orm import Session

from debt_kernel.domain.clock import Clock, SystemClock, as_utc
from debt_kernel.exceptions import ConfigurationError
from debt_kernel.logging_config import LogContext, get_logger
from debt_kernel.services.authorization_service import AuthorizationService
from debt_services.daily_update_service import DailyUpdateService, DailyUpdateSummary

from debt_batch.lease import RunLease

logger = get_logger("batch.scheduler")

DAILY_UPDATE_LEASE = "daily_update"


def compute_next_run(now: datetime, hour: int, minute: int) -> datetime:
    """Next UTC occurrence of ``hour:minute`` strictly after ``now``."""
    now = as_utc(now)
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def _default_service_factory(session: Session, clock: Clock) -> DailyUpdateService:
    return DailyUpdateService.from_session(session, clock)


class DailyUpdateScheduler:
    """Once-a-day scheduler for the daily debt update.

    Contract:
        - ``run_now()`` executes one run synchronously (public for manual
          triggers and tests); returns the summary, or None when skipped or
          failed.
        - ``start()`` / ``stop()`` manage the background thread.

    Non-goals:
        - NOT a general job scheduler: one job, one daily slot.
        - Does not catch up missed days after downtime.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        service_factory: Callable[[Session, Clock], DailyUpdateService] | None = None,
        clock: Clock | None = None,
        hour: int = 2,
        minute: int = 0,
        lease: RunLease | None = None,
        holder: str | None = None,
        lease_ttl_seconds: int = 3600,
        authorization_timeout_hours: int | None = None,
        max_wait_seconds: float = 60.0,
    ):
        if not 0 <= hour <= 23:
            raise ConfigurationError("hour", f"must be 0-23 (got {hour})")
        if not 0 <= minute <= 59:
            raise ConfigurationError("minute", f"must be 0-59 (got {minute})")
        self._session_factory = session_factory
        self._service_factory = service_factory or _default_service_factory
        self._clock = clock or SystemClock()
        self._hour = hour
        self._minute = minute
        self._lease = lease
        self._holder = holder or f"{socket.gethostname()}:{uuid4()}"
        self._lease_ttl = lease_ttl_seconds
        self._authorization_timeout_hours = authorization_timeout_hours
        self._max_wait = max_wait_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._run_guard = threading.Lock()
        self._running = False

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def next_run_at(self) -> datetime:
        return compute_next_run(self._clock.now(), self._hour, self._minute)

    def run_now(self, reference_date: date | None = None) -> DailyUpdateSummary | None:
        with self._run_guard:
            if self._running:
                logger.warning("daily_update_already_running")
                return None
            self._running = True

        try:
            if self._lease is not None and not self._lease.acquire(
                DAILY_UPDATE_LEASE, self._holder, self._lease_ttl,
            ):
                logger.warning(
                    "daily_update_skipped_lease_held",
                    extra={"lease": DAILY_UPDATE_LEASE, "holder": self._holder},
                )
                return None
            try:
                return self._execute(reference_date)
            finally:
                if self._lease is not None:
                    self._lease.release(DAILY_UPDATE_LEASE, self._holder)
        finally:
            with self._run_guard:
                self._running = False

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            logger.warning("scheduler_already_started")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="daily-update-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "scheduler_started",
            extra={"next_run_at": self.next_run_at().isoformat()},
        )

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the loop to finish.

        Args:
            timeout: Max seconds to wait for the thread to finish.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("scheduler_stopped")

    @property
    def is_active(self) -> bool:
        """True while the background loop is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_running(self) -> bool:
        """True while a run is in progress."""
        with self._run_guard:
            return self._running

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            target = self.next_run_at()
            while not self._stop_event.is_set():
                remaining = (target - as_utc(self._clock.now())).total_seconds()
                if remaining <= 0:
                    break
                self._stop_event.wait(timeout=min(remaining, self._max_wait))
            if self._stop_event.is_set():
                break
            self.run_now()

    def _execute(self, reference_date: date | None) -> DailyUpdateSummary | None:
        run_id = uuid4()
        session = self._session_factory()
        try:
            with LogContext.bind(run_id=run_id):
                service = self._service_factory(session, self._clock)
                summary = service.run(reference_date)
                if self._authorization_timeout_hours is not None:
                    AuthorizationService.from_session(session, self._clock).expire_stale_requests(
                        self._clock.now(), self._authorization_timeout_hours,
                    )
                session.commit()
            return summary
        except Exception:
            session.rollback()
            logger.exception("daily_update_failed", extra={"run_id": str(run_id)})
            return None
        finally:
            session.close()
