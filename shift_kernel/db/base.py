"""
Module: shift_kernel.db.base
Responsibility: Declarative bases for the shift kernel's ORM models: the
    uuid4 primary key, the Python-type-to-column map, and the creator /
    modifier stamps every row carries.
Architecture position: Kernel > DB.  Imported by every model module.  MUST
    NOT import from models/, services/, selectors/, or domain/.

Invariants enforced:
    - Businesses, employees and actors are owned by external collaborators;
      rows reference them by bare UUID columns, never by relationships.
    - ``datetime`` columns are UTCDateTime and ``Decimal`` columns hold hour
      quantities with two decimals.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shift_kernel.db.types import UTCDateTime, UUIDString


class Base(DeclarativeBase):
    """Root of the schema.  Every table gets a uuid4 ``id``."""

    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        datetime: UTCDateTime(),
        Decimal: Numeric(6, 2),
        int: Integer,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Rows that remember when and by whom they were written.

    ``created_by_id`` is mandatory: a shift is created by a merchant, a
    break or anomaly by the employee's own action.  ``updated_by_id`` is
    filled by the conditional UPDATEs in the services.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[UUID]
    updated_by_id: Mapped[UUID | None]
