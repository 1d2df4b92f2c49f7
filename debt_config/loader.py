"""
Policy pack loader (``debt_config.loader``).

Responsibility
--------------
Loads a YAML policy pack -- the debt state graph and the transition rules
per management type -- and parses it into frozen kernel domain objects.

Architecture position
---------------------
**Config layer** -- build and deployment tooling.  Consumed by
``debt_config.seeding`` to write the pack into the database; services
only ever read rules through the repositories.

Pack format
-----------
.. code-block:: yaml

    transitions:
      - origin: new
        destination: in_management
        requires_authorization: false
        description: First contact
    rules:
      - id: 7b0c...              # optional; derived from the entry if absent
        management_type_id: 3f1e...
        origin: in_management    # optional, null matches any state
        destination: with_agreement
        requires_authorization: true
        priority: 20
        condition: {type: comparison, field: debt_total, operator: gt, value: 50000}
        ui_message: Agreement requires supervisor sign-off

Invariants enforced
-------------------
* Every state name is a ``DebtState`` value.
* Every typed condition parses with ``normalize_condition``.  Untyped
  legacy mappings load unchanged and constrain nothing.  The raw mapping is
  kept for storage.
* Rules without an explicit id get a deterministic UUIDv5 of their
  canonical content, so re-seeding the same pack updates instead of
  duplicating.
* ``compute_checksum`` is a deterministic SHA-256 of the canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys, unknown states, bad conditions  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import NAMESPACE_URL, UUID, uuid5

import yaml

from debt_kernel.domain.conditions import normalize_condition
from debt_kernel.domain.debt import DebtState
from debt_kernel.domain.transition_graph import AllowedTransition
from debt_kernel.domain.transition_rule import TransitionRule
from debt_kernel.exceptions import ConfigurationError, InvalidEntityError, MalformedConditionError

_RULE_NAMESPACE = uuid5(NAMESPACE_URL, "debt-kernel:transition-rule")


@dataclass(frozen=True)
class PolicyPack:
    transitions: tuple[AllowedTransition, ...]
    rules: tuple[TransitionRule, ...]
    checksum: str
    source: str | None = None


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_state(value: Any, setting: str) -> DebtState:
    try:
        return DebtState(value)
    except ValueError:
        raise ConfigurationError(setting, f"unknown debt state {value!r}") from None


def parse_optional_state(value: Any, setting: str) -> DebtState | None:
    if value is None:
        return None
    return parse_state(value, setting)


def parse_transition(data: dict[str, Any], index: int) -> AllowedTransition:
    where = f"transitions[{index}]"
    if "origin" not in data or "destination" not in data:
        raise ConfigurationError(where, "origin and destination are required")
    return AllowedTransition(
        origin_state=parse_state(data["origin"], f"{where}.origin"),
        destination_state=parse_state(data["destination"], f"{where}.destination"),
        requires_authorization=bool(data.get("requires_authorization", False)),
        description=data.get("description"),
    )


def parse_rule(data: dict[str, Any], index: int) -> TransitionRule:
    where = f"rules[{index}]"
    if "management_type_id" not in data:
        raise ConfigurationError(where, "management_type_id is required")

    try:
        management_type_id = UUID(str(data["management_type_id"]))
        rule_id = UUID(str(data["id"])) if data.get("id") else uuid5(
            _RULE_NAMESPACE, json.dumps(data, sort_keys=True, default=str),
        )
    except ValueError as exc:
        raise ConfigurationError(where, f"invalid UUID: {exc}") from None

    condition = data.get("condition")
    if condition:
        try:
            normalize_condition(condition)
        except MalformedConditionError as exc:
            raise ConfigurationError(f"{where}.condition", exc.reason) from exc

    try:
        return TransitionRule.create(
            management_type_id,
            id=rule_id,
            origin_state=parse_optional_state(data.get("origin"), f"{where}.origin"),
            destination_state=parse_optional_state(
                data.get("destination"), f"{where}.destination",
            ),
            requires_authorization=bool(data.get("requires_authorization", False)),
            condition=condition or None,
            priority=int(data.get("priority", 0)),
            active=bool(data.get("active", True)),
            ui_message=data.get("ui_message"),
        )
    except InvalidEntityError as exc:
        raise ConfigurationError(f"{where}.{exc.field}", exc.reason) from exc


def parse_policy_pack(data: dict[str, Any], source: str | None = None) -> PolicyPack:
    transitions = tuple(
        parse_transition(entry, i) for i, entry in enumerate(data.get("transitions") or [])
    )
    rules = tuple(parse_rule(entry, i) for i, entry in enumerate(data.get("rules") or []))

    edges = {(t.origin_state, t.destination_state) for t in transitions}
    if len(edges) != len(transitions):
        raise ConfigurationError("transitions", "duplicate origin/destination edge")

    return PolicyPack(
        transitions=transitions,
        rules=rules,
        checksum=compute_checksum(data),
        source=source,
    )


def load_policy_pack(path: Path | str) -> PolicyPack:
    path = Path(path)
    return parse_policy_pack(load_yaml_file(path), source=str(path))
