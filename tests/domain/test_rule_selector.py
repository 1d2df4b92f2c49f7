"""
Tests for RuleSelector: applicability filtering, priority selection,
tie-break and the RULE_SELECTION_TRACE record.
"""

from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings
from hypothesis import strategies as st

from debt_kernel.domain.debt import DebtState
from debt_kernel.domain.rule_selector import RuleSelector
from debt_kernel.domain.transition_rule import TransitionRule

from tests.conftest import MANAGEMENT_TYPE_ID, make_debt, make_installment


def _rule(**kwargs) -> TransitionRule:
    return TransitionRule.create(kwargs.pop("management_type_id", MANAGEMENT_TYPE_ID), **kwargs)


# =============================================================================
# Applicability
# =============================================================================


class TestRuleApplies:
    def test_other_management_type_never_applies(self):
        rule = _rule(management_type_id=uuid4())
        assert not RuleSelector().rule_applies(rule, make_debt(), MANAGEMENT_TYPE_ID)

    def test_inactive_rule_never_applies(self):
        rule = _rule(active=False)
        assert not RuleSelector().rule_applies(rule, make_debt(), MANAGEMENT_TYPE_ID)

    def test_null_origin_matches_any_state(self):
        rule = _rule(origin_state=None, destination_state=DebtState.SUSPENDED)
        for state in (DebtState.NEW, DebtState.IN_MANAGEMENT, DebtState.WITH_AGREEMENT):
            assert RuleSelector().rule_applies(rule, make_debt(state=state), MANAGEMENT_TYPE_ID)

    def test_origin_must_match_current_state(self):
        rule = _rule(origin_state=DebtState.NEW)
        debt = make_debt(state=DebtState.IN_MANAGEMENT)
        assert not RuleSelector().rule_applies(rule, debt, MANAGEMENT_TYPE_ID)

    def test_condition_evaluated_against_debt(self):
        rule = _rule(condition={
            "type": "comparison", "field": "debt_total", "operator": "gt", "value": 100000,
        })
        small = make_debt(installments=[make_installment(principal=Decimal("5000"))])
        large = make_debt(installments=[make_installment(principal=Decimal("150000"))])
        assert not RuleSelector().rule_applies(rule, small, MANAGEMENT_TYPE_ID)
        assert RuleSelector().rule_applies(rule, large, MANAGEMENT_TYPE_ID)

    def test_legacy_condition_shape_applies_unconditionally(self):
        rule = _rule(condition={"minDays": 30})
        assert RuleSelector().rule_applies(rule, make_debt(), MANAGEMENT_TYPE_ID)


# =============================================================================
# Selection
# =============================================================================


class TestSelect:
    def test_no_rules_returns_none(self):
        assert RuleSelector().select([], make_debt(), MANAGEMENT_TYPE_ID) is None

    def test_highest_priority_wins(self):
        low = _rule(priority=10, destination_state=DebtState.SUSPENDED)
        high = _rule(priority=20, destination_state=DebtState.WITH_AGREEMENT)
        selected = RuleSelector().select([low, high], make_debt(), MANAGEMENT_TYPE_ID)
        assert selected == high

    def test_equal_priority_keeps_first_in_input_order(self):
        first = _rule(priority=10, destination_state=DebtState.SUSPENDED)
        second = _rule(priority=10, destination_state=DebtState.WITH_AGREEMENT)
        selected = RuleSelector().select([first, second], make_debt(), MANAGEMENT_TYPE_ID)
        assert selected == first

    def test_higher_priority_rule_for_wrong_origin_is_skipped(self):
        wrong = _rule(priority=99, origin_state=DebtState.NEW)
        right = _rule(priority=1, origin_state=DebtState.IN_MANAGEMENT)
        debt = make_debt(state=DebtState.IN_MANAGEMENT)
        assert RuleSelector().select([wrong, right], debt, MANAGEMENT_TYPE_ID) == right

    def test_emits_selection_trace(self, captured_logs):
        rule = _rule(priority=5)
        debt = make_debt()
        RuleSelector().select([rule, _rule(active=False)], debt, MANAGEMENT_TYPE_ID)

        traces = [r for r in captured_logs() if r["message"] == "RULE_SELECTION_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["debt_id"] == str(debt.id)
        assert trace["rules_considered"] == 2
        assert trace["rules_applicable"] == 1
        assert trace["selected_rule_id"] == str(rule.id)
        assert trace["selected_priority"] == 5


# =============================================================================
# Properties
# =============================================================================


_states = st.sampled_from(list(DebtState))
_rules = st.lists(
    st.builds(
        lambda origin, priority, active: _rule(
            origin_state=origin, priority=priority, active=active,
        ),
        st.one_of(st.none(), _states),
        st.integers(min_value=0, max_value=50),
        st.booleans(),
    ),
    max_size=12,
)


class TestSelectionProperties:
    @given(rules=_rules, state=_states)
    @settings(max_examples=200, deadline=None)
    def test_selected_rule_origin_matches_or_is_null(self, rules, state):
        selected = RuleSelector().select(rules, make_debt(state=state), MANAGEMENT_TYPE_ID)
        if selected is not None:
            assert selected.active
            assert selected.origin_state in (None, state)

    @given(rules=_rules, state=_states)
    @settings(max_examples=200, deadline=None)
    def test_selected_priority_is_maximum_of_applicable(self, rules, state):
        selector = RuleSelector()
        debt = make_debt(state=state)
        applicable = [r for r in rules if selector.rule_applies(r, debt, MANAGEMENT_TYPE_ID)]
        selected = selector.select(rules, debt, MANAGEMENT_TYPE_ID)
        if not applicable:
            assert selected is None
        else:
            assert selected.priority == max(r.priority for r in applicable)
