"""
Transition graph value types (``debt_kernel.domain.transition_graph``).

The graph of permitted debt state changes is configuration: each edge is
an ``AllowedTransition``.  The validator answers lookups with a
``TransitionCheck``.
"""

from __future__ import annotations

from dataclasses import dataclass

from debt_kernel.domain.debt import DebtState


@dataclass(frozen=True)
class AllowedTransition:
    """One permitted edge ``origin_state -> destination_state``."""

    origin_state: DebtState
    destination_state: DebtState
    requires_authorization: bool = False
    description: str | None = None


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of validating a proposed state change."""

    valid: bool
    requires_authorization: bool = False
    description: str | None = None

    @classmethod
    def unchanged(cls) -> TransitionCheck:
        return cls(valid=True, requires_authorization=False)

    @classmethod
    def denied(cls) -> TransitionCheck:
        return cls(valid=False, requires_authorization=False)

    @classmethod
    def from_edge(cls, edge: AllowedTransition) -> TransitionCheck:
        return cls(
            valid=True,
            requires_authorization=edge.requires_authorization,
            description=edge.description,
        )
