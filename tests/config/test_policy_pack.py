"""
Tests for the YAML policy pack: loading, validation, seeding and the
bundled default pack driving a real follow-up, and settings wiring into
the follow-up use case.
"""

from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select

from debt_kernel.db.engine import get_session_factory, reset_engine
from debt_kernel.domain.authorization import AuthorizationPriority
from debt_kernel.domain.conditions import normalize_condition
from debt_kernel.domain.debt import DebtState
from debt_kernel.exceptions import ConfigurationError
from debt_kernel.models.rules import AllowedTransitionModel, TransitionRuleModel
from debt_kernel.repositories import SqlAlchemyTransitionRuleRepository
from debt_services.follow_up_service import FollowUpService
from debt_config import (
    DEFAULT_POLICY_PATH,
    KernelSettings,
    bootstrap,
    build_follow_up_service,
    build_scheduler,
    compute_checksum,
    load_policy_pack,
    seed_policy_pack,
)
from debt_config.loader import parse_policy_pack

from tests.conftest import (
    COLLECTOR_ID,
    MANAGEMENT_TYPE_ID,
    add_edge,
    add_rule,
    add_supervisor,
    make_debt,
    make_installment,
)

PAYMENT_AGREEMENT = UUID("5d2b8f30-7c1e-4f4a-8b6e-2a9d1c0e7f22")


def _count(session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


# =============================================================================
# Loading
# =============================================================================


class TestDefaultPack:
    def test_loads(self):
        pack = load_policy_pack(DEFAULT_POLICY_PATH)
        assert len(pack.transitions) == 10
        assert len(pack.rules) == 4
        assert pack.source == str(DEFAULT_POLICY_PATH)
        assert len(pack.checksum) == 64

    def test_checksum_is_stable(self):
        assert load_policy_pack(DEFAULT_POLICY_PATH).checksum == (
            load_policy_pack(DEFAULT_POLICY_PATH).checksum
        )

    def test_authorization_edges(self):
        pack = load_policy_pack(DEFAULT_POLICY_PATH)
        gated = {t.destination_state for t in pack.transitions if t.requires_authorization}
        assert gated == {DebtState.JUDICIALIZED, DebtState.UNCOLLECTIBLE, DebtState.DECEASED}


class TestParsePolicyPack:
    def test_empty_pack(self):
        pack = parse_policy_pack({})
        assert pack.transitions == ()
        assert pack.rules == ()

    def test_rule_without_id_gets_deterministic_id(self):
        entry = {"management_type_id": str(uuid4()), "destination": "suspended"}
        first = parse_policy_pack({"rules": [entry]}).rules[0]
        second = parse_policy_pack({"rules": [dict(entry)]}).rules[0]
        assert first.id == second.id
        assert first.origin_state is None
        assert first.destination_state == DebtState.SUSPENDED

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": [1, 2]}) == compute_checksum({"b": [1, 2], "a": 1})

    @pytest.mark.parametrize("data,setting", [
        ({"transitions": [{"origin": "new"}]}, "transitions[0]"),
        ({"transitions": [{"origin": "new", "destination": "paid"}]}, "transitions[0].destination"),
        ({"rules": [{"destination": "suspended"}]}, "rules[0]"),
        ({"rules": [{"management_type_id": "not-a-uuid"}]}, "rules[0]"),
        (
            {"rules": [{"management_type_id": str(uuid4()), "origin": "closed"}]},
            "rules[0].origin",
        ),
        (
            {"rules": [{
                "management_type_id": str(uuid4()),
                "condition": {"type": "comparison", "field": "x", "operator": "like", "value": 1},
            }]},
            "rules[0].condition",
        ),
        (
            {"rules": [{"management_type_id": str(uuid4()), "ui_message": "x" * 501}]},
            "rules[0].ui_message",
        ),
    ])
    def test_invalid_entries(self, data, setting):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_policy_pack(data)
        assert exc_info.value.setting == setting

    def test_legacy_condition_loads_as_unconstrained(self):
        entry = {
            "management_type_id": str(uuid4()),
            "destination": "suspended",
            "condition": {"minDays": 30},
        }
        rule = parse_policy_pack({"rules": [entry]}).rules[0]
        assert rule.condition == {"minDays": 30}
        assert normalize_condition(rule.condition) is None

    def test_duplicate_edges_rejected(self):
        edge = {"origin": "new", "destination": "in_management"}
        with pytest.raises(ConfigurationError) as exc_info:
            parse_policy_pack({"transitions": [edge, dict(edge)]})
        assert exc_info.value.setting == "transitions"


# =============================================================================
# Seeding
# =============================================================================


class TestSeedPolicyPack:
    def test_seed_writes_everything(self, session):
        result = seed_policy_pack(session, load_policy_pack(DEFAULT_POLICY_PATH))

        assert (result.transitions_created, result.rules_created) == (10, 4)
        assert _count(session, AllowedTransitionModel) == 10
        assert _count(session, TransitionRuleModel) == 4

    def test_seed_twice_is_noop(self, session):
        pack = load_policy_pack(DEFAULT_POLICY_PATH)
        seed_policy_pack(session, pack)

        result = seed_policy_pack(session, pack)

        assert result == type(result)()
        assert _count(session, TransitionRuleModel) == 4

    def test_edited_pack_updates_in_place(self, session):
        rule_id = "0f6c2d7a-1b3e-4c5d-8e9f-a0b1c2d3e4ff"
        base = {
            "transitions": [{"origin": "new", "destination": "in_management"}],
            "rules": [{
                "id": rule_id,
                "management_type_id": str(PAYMENT_AGREEMENT),
                "destination": "in_management",
                "priority": 1,
            }],
        }
        seed_policy_pack(session, parse_policy_pack(base))

        base["transitions"][0]["requires_authorization"] = True
        base["rules"][0]["priority"] = 7
        result = seed_policy_pack(session, parse_policy_pack(base))

        assert (result.transitions_updated, result.rules_updated) == (1, 1)
        rules = SqlAlchemyTransitionRuleRepository(session).list_active_by_management_type(
            PAYMENT_AGREEMENT,
        )
        assert [(str(r.id), r.priority) for r in rules] == [(rule_id, 7)]


class TestDefaultPackDrivesFollowUps:
    """The bundled rules gate large payment agreements behind a supervisor."""

    @pytest.fixture(autouse=True)
    def _seeded(self, session):
        seed_policy_pack(session, load_policy_pack(DEFAULT_POLICY_PATH))
        add_supervisor(session, "sofia@example.com")

    def test_small_agreement_applies_immediately(self, session, debt_repo, clock):
        debt = debt_repo.save(make_debt())

        result = FollowUpService.from_session(session, clock).create_follow_up(
            COLLECTOR_ID, uuid4(), [debt.id], PAYMENT_AGREEMENT,
        )

        assert result.outcome_for(debt.id).new_state == DebtState.WITH_AGREEMENT
        assert result.authorization_requests == ()

    def test_large_agreement_needs_approval(self, session, debt_repo, clock):
        debt = debt_repo.save(make_debt(
            installments=[make_installment(principal=Decimal("150000"))],
        ))

        result = FollowUpService.from_session(session, clock).create_follow_up(
            COLLECTOR_ID, uuid4(), [debt.id], PAYMENT_AGREEMENT,
        )

        outcome = result.outcome_for(debt.id)
        assert outcome.authorization_pending
        assert outcome.new_state == DebtState.IN_MANAGEMENT
        assert result.authorization_requests[0].destination_state == DebtState.WITH_AGREEMENT


# =============================================================================
# Process wiring
# =============================================================================


class TestFollowUpServiceWiring:
    """Environment settings reach the follow-up use case."""

    @pytest.fixture(autouse=True)
    def _judicial_rule(self, session):
        add_edge(session, DebtState.IN_MANAGEMENT, DebtState.JUDICIALIZED)
        add_rule(
            session,
            origin_state=DebtState.IN_MANAGEMENT,
            destination_state=DebtState.JUDICIALIZED,
            requires_authorization=True,
        )

    def _record(self, settings, session, debt_repo, clock, count=1):
        debts = [debt_repo.save(make_debt()) for _ in range(count)]
        return build_follow_up_service(settings, session, clock).create_follow_up(
            COLLECTOR_ID, uuid4(), [d.id for d in debts], MANAGEMENT_TYPE_ID,
        )

    def test_first_active_strategy_from_env(self, session, debt_repo, clock):
        first = add_supervisor(session, "ana@example.com")
        add_supervisor(session, "bruno@example.com")
        settings = KernelSettings.from_env({"DEBT_KERNEL_SUPERVISOR_STRATEGY": "first_active"})

        result = self._record(settings, session, debt_repo, clock, count=2)

        assert [r.assigned_supervisor_id for r in result.authorization_requests] == [first, first]

    def test_default_strategy_rotates(self, session, debt_repo, clock):
        first = add_supervisor(session, "ana@example.com")
        second = add_supervisor(session, "bruno@example.com")

        result = self._record(KernelSettings.from_env({}), session, debt_repo, clock, count=2)

        assert [r.assigned_supervisor_id for r in result.authorization_requests] == [first, second]

    def test_priority_thresholds_from_env(self, session, debt_repo, clock):
        add_supervisor(session, "ana@example.com")
        settings = KernelSettings.from_env({
            "DEBT_KERNEL_HIGH_PRIORITY_THRESHOLD": "500",
            "DEBT_KERNEL_LOW_PRIORITY_THRESHOLD": "100",
        })

        result = self._record(settings, session, debt_repo, clock)

        assert result.authorization_requests[0].priority == AuthorizationPriority.HIGH


class TestBootstrap:
    @pytest.fixture(autouse=True)
    def _reset_engine(self):
        yield
        reset_engine()

    def test_bootstrap_and_scheduler(self, clock):
        settings = KernelSettings(
            database_url="sqlite:///:memory:", daily_run_hour=5, daily_run_minute=15,
        )

        assert bootstrap(settings, create_schema=True) is settings

        factory = get_session_factory()
        with factory() as s:
            seed_policy_pack(s, load_policy_pack(DEFAULT_POLICY_PATH))
            s.commit()

        scheduler = build_scheduler(settings, clock=clock)
        assert scheduler.next_run_at().hour == 5
        assert scheduler.next_run_at().minute == 15
        summary = scheduler.run_now()
        assert summary is not None
        assert summary.debts_processed == 0
