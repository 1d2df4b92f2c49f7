"""
Module: debt_kernel.repositories.base
Responsibility: Shared base for the SQLAlchemy implementations of the
    repository contracts in ``debt_kernel.domain.repositories``.
Architecture position: Kernel > Repositories.  May import from db/, models/
    and domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Session ownership: repositories accept a Session from the caller and
      never create, commit or roll back transactions.  Writes are flushed
      so later reads in the same unit of work see them.
    - DTO return convention: repositories return domain objects, never ORM
      instances.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from debt_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Abstract base class for all repositories.

    Contract:
        Subclasses declare ``model`` and implement the domain-level methods of
        the corresponding Protocol.
    """

    model: type[ModelType]

    def __init__(self, session: Session):
        self.session = session

    def _get_model(self, id_) -> ModelType | None:
        return self.session.get(self.model, id_)
