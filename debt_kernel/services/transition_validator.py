"""
debt_kernel.services.transition_validator -- Legality of debt state changes.

Responsibility:
    Answers "may a debt move from state A to state B?" against the
    configured transition graph, and whether the graph marks the edge as
    needing authorization.

Architecture position:
    Kernel > Services.  Depends on the ``TransitionGraphRepository`` contract.

Invariants enforced:
    - A move to the same state is always valid, needs no authorization and
      does not touch the graph.
    - Any other move is valid iff the graph holds that exact edge.
"""

from __future__ import annotations

from debt_kernel.domain.debt import DebtState
from debt_kernel.domain.repositories import TransitionGraphRepository
from debt_kernel.domain.transition_graph import AllowedTransition, TransitionCheck
from debt_kernel.logging_config import get_logger

logger = get_logger("services.transition_validator")


class TransitionValidator:
    def __init__(self, graph: TransitionGraphRepository) -> None:
        self._graph = graph

    def validate(self, origin: DebtState, destination: DebtState) -> TransitionCheck:
        if origin == destination:
            return TransitionCheck.unchanged()

        edge = self._graph.get_edge(origin, destination)
        if edge is None:
            logger.debug(
                "transition_denied",
                extra={"origin": origin.value, "destination": destination.value},
            )
            return TransitionCheck.denied()
        return TransitionCheck.from_edge(edge)

    def is_valid(self, origin: DebtState, destination: DebtState) -> bool:
        return self.validate(origin, destination).valid

    def allowed_transitions(self, origin: DebtState) -> list[AllowedTransition]:
        """Edges leaving ``origin``, e.g. to offer destination choices."""
        return list(self._graph.list_edges_from(origin))
