"""
RuleSelector -- pick the transition rule that governs a debt.

Responsibility:
    Given the active rules of a management type and a debt, return the
    single rule that applies, or None.  A rule applies when it is active,
    belongs to the management type, its origin is unset or equals the
    debt's current state, and its condition (if any) holds for the debt.

Architecture position:
    Kernel > Domain.  Pure apart from the trace log record.

Invariants enforced:
    - Never returns a rule whose non-null origin differs from the debt's
      current state.
    - Highest priority wins; among equal priorities the earlier rule in
      the input order wins.  Repositories order rules by priority
      descending then rule id, so the result is deterministic.

Failure modes:
    - MalformedConditionError propagates from a rule whose stored
      condition has a ``type`` key but an invalid shape.
"""

from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from debt_kernel.domain.conditions import evaluate_condition, normalize_condition
from debt_kernel.domain.debt import Debt
from debt_kernel.domain.transition_rule import TransitionRule
from debt_kernel.logging_config import get_logger

logger = get_logger("domain.rule_selector")


class RuleSelector:
    """Stateless rule selection over a debt snapshot."""

    @staticmethod
    def build_context(debt: Debt) -> dict[str, Any]:
        """Flat snapshot of the debt used as the condition context."""
        return {
            "debt_total": debt.total_debt,
            "outstanding_principal_total": debt.outstanding_principal_total,
            "days_overdue": debt.days_overdue,
            "days_in_management": debt.days_in_management,
            "current_state": debt.current_state,
            "assigned_collector_id": debt.assigned_collector_id,
            "has_agreement": debt.has_agreement,
            "agreement_expiration_date": debt.agreement_expiration_date,
            "moratory_interest": debt.moratory_interest_total,
            "punitive_interest": debt.punitive_interest_total,
            "collection_costs": debt.collection_costs,
            "scheduled_amount": debt.scheduled_amount,
        }

    def rule_applies(
        self,
        rule: TransitionRule,
        debt: Debt,
        management_type_id: UUID,
        context: dict[str, Any] | None = None,
    ) -> bool:
        if not rule.applies_to(management_type_id, debt.current_state):
            return False
        condition = normalize_condition(rule.condition)
        if condition is None:
            return True
        return evaluate_condition(condition, context or self.build_context(debt))

    def select(
        self,
        rules: Sequence[TransitionRule],
        debt: Debt,
        management_type_id: UUID,
    ) -> TransitionRule | None:
        context = self.build_context(debt)
        selected: TransitionRule | None = None
        candidates = 0
        for rule in rules:
            if not self.rule_applies(rule, debt, management_type_id, context):
                continue
            candidates += 1
            if selected is None or rule.priority > selected.priority:
                selected = rule

        logger.info(
            "RULE_SELECTION_TRACE",
            extra={
                "trace_type": "RULE_SELECTION_TRACE",
                "debt_id": str(debt.id),
                "management_type_id": str(management_type_id),
                "current_state": debt.current_state.value,
                "rules_considered": len(rules),
                "rules_applicable": candidates,
                "selected_rule_id": str(selected.id) if selected else None,
                "selected_priority": selected.priority if selected else None,
            },
        )
        return selected
