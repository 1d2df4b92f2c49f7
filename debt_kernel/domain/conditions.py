"""
Condition trees for transition rules (``debt_kernel.domain.conditions``).

Responsibility
--------------
Parse the free-form ``condition`` stored on a transition rule into a typed
tree, and evaluate that tree against a flat snapshot of a debt.

Grammar (stored as JSON/YAML mappings)::

    {"type": "comparison", "field": "days_overdue", "operator": "gte", "value": 30}
    {"type": "logical", "operator": "and", "conditions": [<node>, ...]}

Comparison operators: eq, neq, gt, gte, lt, lte, in, not_in.
Logical operators: and, or, not (``not`` takes exactly one child).

Architecture position
---------------------
**Kernel domain layer** -- pure, ZERO I/O.

Invariants enforced
-------------------
* A tree that parses is structurally valid: unknown node types, unknown
  operators, missing keys and a ``not`` without exactly one child are
  rejected by ``parse_condition`` before any evaluation happens.
* ``and`` / ``or`` evaluate every child before combining.
* Evaluation never raises for data problems: a missing context field is
  ``None``, and ordering against ``None`` or an incomparable type is False.

Failure modes
-------------
* ``MalformedConditionError`` from ``parse_condition``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from debt_kernel.exceptions import MalformedConditionError


class ComparisonOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"


class LogicalOperator(str, Enum):
    AND = "and"
    OR = "or"
    NOT = "not"


@dataclass(frozen=True)
class Comparison:
    field: str
    operator: ComparisonOperator
    value: Any


@dataclass(frozen=True)
class Logical:
    operator: LogicalOperator
    children: tuple[Condition, ...]


Condition = Comparison | Logical


# Keys every rule-evaluation context provides.
CONTEXT_FIELDS: frozenset[str] = frozenset({
    "debt_total",
    "outstanding_principal_total",
    "days_overdue",
    "days_in_management",
    "current_state",
    "assigned_collector_id",
    "has_agreement",
    "agreement_expiration_date",
    "moratory_interest",
    "punitive_interest",
    "collection_costs",
    "scheduled_amount",
})


# =========================================================================
# Parsing
# =========================================================================


def _require(raw: Mapping[str, Any], key: str) -> Any:
    if key not in raw:
        raise MalformedConditionError(f"missing key '{key}'", dict(raw))
    return raw[key]


def _normalize_literal(value: Any) -> Any:
    """Floats become Decimals so comparisons against money stay exact."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, list):
        return tuple(_normalize_literal(v) for v in value)
    return value


def parse_condition(raw: Any) -> Condition:
    """Build a condition tree from its stored mapping form.

    Raises:
        MalformedConditionError: the mapping does not describe a valid tree.
    """
    if not isinstance(raw, Mapping):
        raise MalformedConditionError("condition node must be a mapping", raw)

    node_type = _require(raw, "type")

    if node_type == "comparison":
        field = _require(raw, "field")
        if not isinstance(field, str) or not field:
            raise MalformedConditionError("comparison field must be a non-empty string", dict(raw))
        op_raw = _require(raw, "operator")
        try:
            operator = ComparisonOperator(op_raw)
        except ValueError:
            raise MalformedConditionError(f"unknown comparison operator '{op_raw}'", dict(raw)) from None
        value = _normalize_literal(_require(raw, "value"))
        return Comparison(field=field, operator=operator, value=value)

    if node_type == "logical":
        op_raw = _require(raw, "operator")
        try:
            operator = LogicalOperator(op_raw)
        except ValueError:
            raise MalformedConditionError(f"unknown logical operator '{op_raw}'", dict(raw)) from None
        children_raw = _require(raw, "conditions")
        if not isinstance(children_raw, (list, tuple)):
            raise MalformedConditionError("logical 'conditions' must be a list", dict(raw))
        if operator == LogicalOperator.NOT and len(children_raw) != 1:
            raise MalformedConditionError(
                f"'not' takes exactly one condition (got {len(children_raw)})", dict(raw)
            )
        children = tuple(parse_condition(child) for child in children_raw)
        return Logical(operator=operator, children=children)

    raise MalformedConditionError(f"unknown condition type '{node_type}'", dict(raw))


def normalize_condition(raw: Any) -> Condition | None:
    """Interpret a rule's stored condition.

    ``None`` or an empty value means "no constraint".  A mapping with a
    ``type`` key is parsed (and may raise).  Any other legacy shape, such
    as ``{"minDays": 30}``, is not evaluable and also means "no constraint".
    """
    if not raw:
        return None
    if isinstance(raw, Mapping) and "type" in raw:
        return parse_condition(raw)
    return None


# =========================================================================
# Evaluation
# =========================================================================


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    return value


def _coerce_pair(left: Any, right: Any) -> tuple[Any, Any]:
    left, right = _plain(left), _plain(right)
    if isinstance(left, date) and isinstance(right, str):
        try:
            right = date.fromisoformat(right)
        except ValueError:
            pass
    return left, right


def _compare(node: Comparison, context: Mapping[str, Any]) -> bool:
    actual = context.get(node.field)
    op = node.operator

    if op in (ComparisonOperator.IN, ComparisonOperator.NOT_IN):
        if not isinstance(node.value, (list, tuple)):
            return False
        members = [_plain(v) for v in node.value]
        contained = _plain(actual) in members
        return contained if op == ComparisonOperator.IN else not contained

    left, right = _coerce_pair(actual, node.value)

    if op == ComparisonOperator.EQ:
        return left == right
    if op == ComparisonOperator.NEQ:
        return left != right

    if left is None or right is None:
        return False
    try:
        if op == ComparisonOperator.GT:
            return left > right
        if op == ComparisonOperator.GTE:
            return left >= right
        if op == ComparisonOperator.LT:
            return left < right
        return left <= right
    except TypeError:
        return False


def evaluate_condition(node: Condition, context: Mapping[str, Any]) -> bool:
    """Evaluate a parsed tree against a flat context mapping."""
    if isinstance(node, Comparison):
        return _compare(node, context)
    if isinstance(node, Logical):
        results = [evaluate_condition(child, context) for child in node.children]
        if node.operator == LogicalOperator.AND:
            return all(results)
        if node.operator == LogicalOperator.OR:
            return any(results)
        return not results[0]
    raise MalformedConditionError(f"unsupported condition node {type(node).__name__}", node)
