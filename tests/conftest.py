"""
Pytest fixtures for the debt kernel test suite.

Provides:
- In-memory SQLite engine and sessions over the real ORM models
- A naive DeterministicClock (SQLite strips tzinfo)
- Builders for debts, installments, graph edges, rules and supervisors
- Structured log capture
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import debt_kernel.models  # noqa: F401
from debt_kernel.db.base import Base
from debt_kernel.domain.clock import DeterministicClock
from debt_kernel.domain.debt import Debt, DebtState, Installment, InstallmentState
from debt_kernel.domain.transition_graph import AllowedTransition
from debt_kernel.domain.transition_rule import TransitionRule
from debt_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from debt_kernel.models.rules import AllowedTransitionModel, TransitionRuleModel
from debt_kernel.models.user import UserModel, UserRole
from debt_kernel.repositories import SqlAlchemyDebtRepository

COLLECTOR_ID = UUID("00000000-0000-4000-8000-0000000000c1")
OTHER_COLLECTOR_ID = UUID("00000000-0000-4000-8000-0000000000c2")
MANAGEMENT_TYPE_ID = UUID("00000000-0000-4000-8000-0000000000a1")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture debt_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, daily_update_service):
            daily_update_service.run()
            logs = captured_logs()
            assert any(r["message"] == "daily_update_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("debt_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def clock():
    # Naive datetimes for SQLite compatibility (SQLite strips tzinfo)
    return DeterministicClock(fixed_time=datetime(2024, 3, 1, 12, 0, 0))


@pytest.fixture
def debt_repo(session):
    return SqlAlchemyDebtRepository(session)


# =============================================================================
# Builders
# =============================================================================


def make_installment(
    sequence_number: int = 1,
    due_date: date = date(2024, 2, 20),
    principal: Decimal = Decimal("1000"),
    state: InstallmentState = InstallmentState.PENDING,
    moratory: Decimal = Decimal("0"),
    punitive: Decimal = Decimal("0"),
) -> Installment:
    return Installment.create(
        sequence_number,
        due_date,
        principal,
        accrued_moratory_interest=moratory,
        accrued_punitive_interest=punitive,
        state=state,
    )


def make_debt(
    installments: list[Installment] | None = None,
    state: DebtState = DebtState.IN_MANAGEMENT,
    collector_id: UUID | None = COLLECTOR_ID,
    moratory_rate: Decimal | None = Decimal("10"),
    punitive_rate: Decimal | None = Decimal("5"),
    collection_costs: Decimal = Decimal("0"),
    agreement_expiration_date: date | None = None,
    assigned_on: date | None = date(2024, 1, 1),
) -> Debt:
    debt = Debt.create(
        "ACME Lending",
        uuid4(),
        "Personal loan",
        installments=installments if installments is not None else [make_installment()],
        collection_costs=collection_costs,
        moratory_rate=moratory_rate,
        punitive_rate=punitive_rate,
    )
    debt.change_state(state)
    if collector_id is not None and assigned_on is not None:
        debt.assign_collector(collector_id, assigned_on)
    debt.agreement_expiration_date = agreement_expiration_date
    return debt


def add_edge(
    session: Session,
    origin: DebtState,
    destination: DebtState,
    requires_authorization: bool = False,
) -> None:
    session.add(
        AllowedTransitionModel.from_dto(
            AllowedTransition(origin, destination, requires_authorization)
        )
    )
    session.flush()


def add_rule(session: Session, **kwargs) -> TransitionRule:
    kwargs.setdefault("management_type_id", MANAGEMENT_TYPE_ID)
    management_type_id = kwargs.pop("management_type_id")
    rule = TransitionRule.create(management_type_id, **kwargs)
    session.add(TransitionRuleModel.from_dto(rule))
    session.flush()
    return rule


def add_supervisor(
    session: Session,
    email: str,
    active: bool = True,
    role: UserRole = UserRole.SUPERVISOR,
) -> UUID:
    user = UserModel(id=uuid4(), name=email.split("@")[0], email=email, role=role.value, active=active)
    session.add(user)
    session.flush()
    return user.id
