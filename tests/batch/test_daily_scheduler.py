"""
Tests for DailyUpdateScheduler.

Verifies:
- Next-run computation in UTC
- run_now() commits on success and rolls back on failure
- Single-flight: concurrent run_now() and lease-held skips
- Optional authorization expiry after the update
- Background thread lifecycle
"""

import threading
from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from debt_kernel.domain.authorization import AuthorizationRequest, AuthorizationStatus
from debt_kernel.domain.clock import DeterministicClock
from debt_kernel.domain.debt import DebtState
from debt_kernel.exceptions import ConfigurationError
from debt_kernel.repositories import (
    SqlAlchemyAuthorizationRequestRepository,
    SqlAlchemyDebtRepository,
)
from debt_batch.lease import RunLease
from debt_batch.scheduler import DAILY_UPDATE_LEASE, DailyUpdateScheduler, compute_next_run
from debt_services.daily_update_service import DailyUpdateService

from tests.conftest import COLLECTOR_ID, make_debt


def _save_debt(session_factory, debt):
    with session_factory() as s:
        SqlAlchemyDebtRepository(s).save(debt)
        s.commit()
    return debt


def _load_debt(session_factory, debt_id):
    with session_factory() as s:
        return SqlAlchemyDebtRepository(s).get(debt_id)


# =============================================================================
# compute_next_run
# =============================================================================


class TestComputeNextRun:
    def test_later_today(self):
        now = datetime(2024, 3, 1, 1, 30, tzinfo=UTC)
        assert compute_next_run(now, 2, 0) == datetime(2024, 3, 1, 2, 0, tzinfo=UTC)

    def test_already_passed_rolls_to_tomorrow(self):
        now = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
        assert compute_next_run(now, 2, 0) == datetime(2024, 3, 2, 2, 0, tzinfo=UTC)

    def test_exact_slot_rolls_to_tomorrow(self):
        now = datetime(2024, 3, 1, 2, 0, tzinfo=UTC)
        assert compute_next_run(now, 2, 0) == datetime(2024, 3, 2, 2, 0, tzinfo=UTC)

    def test_naive_now_treated_as_utc(self):
        assert compute_next_run(datetime(2024, 2, 29, 23, 59), 0, 15) == datetime(
            2024, 3, 1, 0, 15, tzinfo=UTC,
        )

    def test_scheduler_next_run_uses_clock(self, session_factory, clock):
        scheduler = DailyUpdateScheduler(session_factory, clock=clock, hour=13, minute=45)
        assert scheduler.next_run_at() == datetime(2024, 3, 1, 13, 45, tzinfo=UTC)

    @pytest.mark.parametrize("hour,minute", [(24, 0), (-1, 0), (2, 60)])
    def test_invalid_slot_rejected(self, session_factory, hour, minute):
        with pytest.raises(ConfigurationError):
            DailyUpdateScheduler(session_factory, hour=hour, minute=minute)


# =============================================================================
# run_now
# =============================================================================


class TestRunNow:
    def test_commits_successful_run(self, session_factory, clock, captured_logs):
        debt = _save_debt(session_factory, make_debt())
        scheduler = DailyUpdateScheduler(session_factory, clock=clock)

        summary = scheduler.run_now()

        assert summary is not None
        assert summary.debts_processed == 1
        stored = _load_debt(session_factory, debt.id)
        assert stored.moratory_interest_total == Decimal("2.739726027")
        assert stored.days_overdue == 10

        completed = [r for r in captured_logs() if r["message"] == "daily_update_completed"]
        assert "run_id" in completed[0]

    def test_failure_rolls_back_everything(self, session_factory, clock, captured_logs):
        debt = _save_debt(session_factory, make_debt())

        class _Exploding(DailyUpdateService):
            def _process(self, debt, reference_date):
                super()._process(debt, reference_date)
                raise RuntimeError("disk on fire")

        scheduler = DailyUpdateScheduler(
            session_factory,
            service_factory=lambda s, c: _Exploding.from_session(s, c),
            clock=clock,
        )

        assert scheduler.run_now() is None
        assert _load_debt(session_factory, debt.id).moratory_interest_total == Decimal("0")
        assert not scheduler.is_running

        failures = [r for r in captured_logs() if r["message"] == "daily_update_failed"]
        assert len(failures) == 1
        assert failures[0]["level"] == "ERROR"
        assert failures[0]["exc_message"] == "disk on fire"

    def test_explicit_reference_date(self, session_factory, clock):
        _save_debt(session_factory, make_debt())
        scheduler = DailyUpdateScheduler(session_factory, clock=clock)
        summary = scheduler.run_now(datetime(2024, 2, 25).date())
        assert summary.reference_date == datetime(2024, 2, 25).date()

    def test_concurrent_run_is_skipped(self, session_factory, clock, captured_logs):
        entered = threading.Event()
        release = threading.Event()

        class _Blocking:
            def run(self, reference_date=None):
                entered.set()
                release.wait(timeout=5)
                return "done"

        def factory(session, clk):
            return _Blocking()

        scheduler = DailyUpdateScheduler(session_factory, service_factory=factory, clock=clock)
        results = []
        worker = threading.Thread(target=lambda: results.append(scheduler.run_now()))
        worker.start()
        assert entered.wait(timeout=5)

        assert scheduler.is_running
        assert scheduler.run_now() is None

        release.set()
        worker.join(timeout=5)
        assert results == ["done"]
        assert not scheduler.is_running
        assert any(r["message"] == "daily_update_already_running" for r in captured_logs())

    def test_expires_stale_authorizations_when_configured(self, session_factory, clock):
        debt = _save_debt(session_factory, make_debt())
        with session_factory() as s:
            request = AuthorizationRequest.create(
                uuid4(), debt.id, DebtState.IN_MANAGEMENT, DebtState.JUDICIALIZED,
                COLLECTOR_ID, DeterministicClock(datetime(2024, 2, 1, 9, 0)),
            )
            SqlAlchemyAuthorizationRequestRepository(s).create(request)
            s.commit()

        scheduler = DailyUpdateScheduler(
            session_factory, clock=clock, authorization_timeout_hours=72,
        )
        scheduler.run_now()

        with session_factory() as s:
            stored = SqlAlchemyAuthorizationRequestRepository(s).get(request.id)
        assert stored.status == AuthorizationStatus.EXPIRED


# =============================================================================
# Lease integration
# =============================================================================


class TestLease:
    def test_skips_when_another_holder_owns_lease(self, session_factory, clock, captured_logs):
        lease = RunLease(session_factory, clock)
        lease.acquire(DAILY_UPDATE_LEASE, "other-host", 3600)
        debt = _save_debt(session_factory, make_debt())

        scheduler = DailyUpdateScheduler(
            session_factory, clock=clock, lease=lease, holder="this-host",
        )

        assert scheduler.run_now() is None
        assert _load_debt(session_factory, debt.id).moratory_interest_total == Decimal("0")
        assert any(
            r["message"] == "daily_update_skipped_lease_held" for r in captured_logs()
        )

    def test_lease_released_after_run(self, session_factory, clock):
        lease = RunLease(session_factory, clock)
        scheduler = DailyUpdateScheduler(
            session_factory, clock=clock, lease=lease, holder="this-host",
        )

        assert scheduler.run_now() is not None
        assert lease.current_holder(DAILY_UPDATE_LEASE) is None


# =============================================================================
# Background thread
# =============================================================================


class TestLifecycle:
    def test_start_and_stop(self, session_factory, clock):
        scheduler = DailyUpdateScheduler(session_factory, clock=clock, max_wait_seconds=0.05)
        scheduler.start()
        try:
            assert scheduler.is_active
        finally:
            scheduler.stop(timeout=5)
        assert not scheduler.is_active

    def test_double_start_warns(self, session_factory, clock, captured_logs):
        scheduler = DailyUpdateScheduler(session_factory, clock=clock, max_wait_seconds=0.05)
        scheduler.start()
        try:
            scheduler.start()
        finally:
            scheduler.stop(timeout=5)
        assert any(r["message"] == "scheduler_already_started" for r in captured_logs())

    def test_stop_without_start_is_harmless(self, session_factory):
        scheduler = DailyUpdateScheduler(session_factory)
        scheduler.stop()
        assert not scheduler.is_active
