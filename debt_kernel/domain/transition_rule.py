"""
Transition rule domain type (``debt_kernel.domain.transition_rule``).

A transition rule says: for a debt handled under management type X, in
state S (or any state), when the condition holds, move it to state D (or
leave it), optionally only after a supervisor approves.  Rules are
configuration data; the rule selector decides which one applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID, uuid4

from debt_kernel.domain.debt import DebtState
from debt_kernel.exceptions import InvalidEntityError


@dataclass(frozen=True)
class TransitionRule:
    """A configured rule linking a management type to a state change.

    ``origin_state=None`` matches any state; ``destination_state=None``
    leaves the state unchanged.  ``condition`` is the raw stored predicate
    and is interpreted by ``debt_kernel.domain.conditions``.  Higher
    ``priority`` wins.
    """

    id: UUID
    management_type_id: UUID
    origin_state: DebtState | None = None
    destination_state: DebtState | None = None
    requires_authorization: bool = False
    condition: Any = None
    priority: int = 0
    active: bool = True
    ui_message: str | None = None

    @classmethod
    def create(
        cls,
        management_type_id: UUID,
        *,
        id: UUID | None = None,
        origin_state: DebtState | None = None,
        destination_state: DebtState | None = None,
        requires_authorization: bool = False,
        condition: Any = None,
        priority: int = 0,
        active: bool = True,
        ui_message: str | None = None,
    ) -> TransitionRule:
        if ui_message is not None and len(ui_message) > 500:
            raise InvalidEntityError("TransitionRule", "ui_message", "longer than 500 characters")
        return cls(
            id=id or uuid4(),
            management_type_id=management_type_id,
            origin_state=origin_state,
            destination_state=destination_state,
            requires_authorization=requires_authorization,
            condition=condition,
            priority=priority,
            active=active,
            ui_message=ui_message,
        )

    def applies_to(self, management_type_id: UUID, current_state: DebtState) -> bool:
        """Active, same management type, and origin either unset or equal."""
        if not self.active or self.management_type_id != management_type_id:
            return False
        return self.origin_state is None or self.origin_state == current_state

    def destination_for(self, current_state: DebtState) -> DebtState:
        return self.destination_state if self.destination_state is not None else current_state
