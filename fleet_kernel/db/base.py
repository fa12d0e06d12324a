"""
Module: fleet_kernel.db.base
Responsibility: Declarative bases shared by the four fleet tables.
Architecture position: Kernel > DB.  Imported by every model; imports
    nothing from models/, services/, selectors/ or domain/.

Invariants enforced:
    - Ids are database-generated integers.  Drivers, clients and trips are
      addressed by id at the boundary, so ids must round-trip through a
      decimal string (see domain.references.parse_entity_id).
    - A ``Decimal`` annotation maps to Numeric(18, 2); money is never float.
    - Unique constraints carry explicit names (uq_truck_plate, ...); the
      entity store matches them to report which field collided.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Root of the ORM hierarchy: integer id plus the money type map."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
    }

    # Integer (not BigInteger) so SQLite aliases it to the rowid
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TrackedBase(Base):
    """
    Abstract base stamping rows with server-side timestamps.

    ``created_at`` is written once on INSERT; ``updated_at`` is refreshed by
    every ORM UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
