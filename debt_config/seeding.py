"""
Policy pack seeding (``debt_config.seeding``).

Writes a loaded ``PolicyPack`` into the transition graph and rule tables.
Edges are matched on (origin, destination) and rules on id, so seeding the
same pack twice is a no-op and seeding an edited pack updates in place.
Flushes through the caller's session; never commits.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from debt_kernel.logging_config import get_logger
from debt_kernel.models.rules import AllowedTransitionModel, TransitionRuleModel

from debt_config.loader import PolicyPack

logger = get_logger("config.seeding")


@dataclass(frozen=True)
class SeedResult:
    transitions_created: int = 0
    transitions_updated: int = 0
    rules_created: int = 0
    rules_updated: int = 0


def seed_policy_pack(session: Session, pack: PolicyPack) -> SeedResult:
    transitions_created = transitions_updated = 0
    for edge in pack.transitions:
        row = session.execute(
            select(AllowedTransitionModel).where(
                AllowedTransitionModel.origin_state == edge.origin_state.value,
                AllowedTransitionModel.destination_state == edge.destination_state.value,
            )
        ).scalar_one_or_none()
        if row is None:
            session.add(AllowedTransitionModel.from_dto(edge))
            transitions_created += 1
        elif (row.requires_authorization, row.description) != (
            edge.requires_authorization, edge.description,
        ):
            row.requires_authorization = edge.requires_authorization
            row.description = edge.description
            transitions_updated += 1

    rules_created = rules_updated = 0
    for rule in pack.rules:
        row = session.get(TransitionRuleModel, rule.id)
        if row is None:
            session.add(TransitionRuleModel.from_dto(rule))
            rules_created += 1
        elif row.to_dto() != rule:
            fresh = TransitionRuleModel.from_dto(rule)
            for column in (
                "management_type_id", "origin_state", "destination_state",
                "requires_authorization", "condition", "priority", "active", "ui_message",
            ):
                setattr(row, column, getattr(fresh, column))
            rules_updated += 1

    session.flush()

    result = SeedResult(
        transitions_created=transitions_created,
        transitions_updated=transitions_updated,
        rules_created=rules_created,
        rules_updated=rules_updated,
    )
    logger.info(
        "policy_pack_seeded",
        extra={
            "checksum": pack.checksum,
            "source": pack.source,
            "transitions_created": transitions_created,
            "transitions_updated": transitions_updated,
            "rules_created": rules_created,
            "rules_updated": rules_updated,
        },
    )
    return result
