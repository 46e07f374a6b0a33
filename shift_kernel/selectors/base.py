"""
Module: shift_kernel.selectors.base
Responsibility: Common ground for the read-only query objects.  A selector
    runs SELECTs against the caller's session and hands back frozen DTOs,
    so nothing outside the services ever holds a live ORM instance.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/dtos.  MUST NOT import from services/.

Invariants enforced:
    - No add/delete/flush/commit on the session.
    - Every row leaves through its model's ``to_dto()``.
"""

from abc import ABC
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select
from sqlalchemy.orm import Session

from shift_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only queries over one aggregate.  The session belongs to the caller."""

    def __init__(self, session: Session):
        self.session = session

    def _get_dto(self, model: type[Base], entity_id: UUID) -> Any | None:
        found = self.session.get(model, entity_id)
        return found.to_dto() if found is not None else None

    def _all(self, stmt: Select) -> list[Any]:
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def _first(self, stmt: Select) -> Any | None:
        found = self.session.scalars(stmt).first()
        return found.to_dto() if found is not None else None
