"""
debt_kernel.services.supervisor_assigner -- Choose the supervisor for a request.

Responsibility:
    Picks one active supervisor to own a new authorization request.

Architecture position:
    Kernel > Services.  Depends on the ``SupervisorDirectory`` contract.

Invariants enforced:
    - Only active supervisors are ever returned.
    - ROUND_ROBIN spreads requests evenly: with ``n`` supervisors and
      cursor ``c`` it returns ``supervisors[c % n]`` and stores ``c + 1``.
      A fresh cursor (0) picks the first supervisor, the same one
      FIRST_ACTIVE always picks.

Failure modes:
    - NoActiveSupervisorsError when the directory lists nobody.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from debt_kernel.domain.repositories import SupervisorDirectory
from debt_kernel.exceptions import NoActiveSupervisorsError
from debt_kernel.logging_config import get_logger

logger = get_logger("services.supervisor_assigner")


class AssignmentStrategy(str, Enum):
    FIRST_ACTIVE = "first_active"
    ROUND_ROBIN = "round_robin"


class SupervisorAssigner:
    def __init__(
        self,
        directory: SupervisorDirectory,
        strategy: AssignmentStrategy = AssignmentStrategy.ROUND_ROBIN,
    ) -> None:
        self._directory = directory
        self._strategy = strategy

    @property
    def strategy(self) -> AssignmentStrategy:
        return self._strategy

    def assign(self) -> UUID:
        supervisors = list(self._directory.list_active_supervisors())
        if not supervisors:
            raise NoActiveSupervisorsError()

        if self._strategy == AssignmentStrategy.FIRST_ACTIVE:
            chosen = supervisors[0]
        else:
            cursor = self._directory.get_rotation_cursor()
            chosen = supervisors[cursor % len(supervisors)]
            self._directory.set_rotation_cursor(cursor + 1)

        logger.debug(
            "supervisor_assigned",
            extra={
                "supervisor_id": str(chosen),
                "strategy": self._strategy.value,
                "candidates": len(supervisors),
            },
        )
        return chosen
