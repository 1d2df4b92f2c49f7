"""Follow-up record: one collector contact covering one or more debts of a subject."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True)
class FollowUp:
    id: UUID
    collector_id: UUID
    subject_id: UUID
    management_type_id: UUID
    recorded_at: datetime
    note: str | None = None
    needs_further_follow_up: bool = False
    next_follow_up_date: date | None = None
    debt_ids: tuple[UUID, ...] = ()

    @classmethod
    def create(
        cls,
        collector_id: UUID,
        subject_id: UUID,
        management_type_id: UUID,
        recorded_at: datetime,
        *,
        note: str | None = None,
        needs_further_follow_up: bool = False,
        next_follow_up_date: date | None = None,
        debt_ids: tuple[UUID, ...] = (),
    ) -> FollowUp:
        return cls(
            id=uuid4(),
            collector_id=collector_id,
            subject_id=subject_id,
            management_type_id=management_type_id,
            recorded_at=recorded_at,
            note=note,
            needs_further_follow_up=needs_further_follow_up,
            next_follow_up_date=next_follow_up_date,
            debt_ids=tuple(debt_ids),
        )
