"""
Module: fleet_kernel.models.truck
Responsibility: ORM persistence for trucks.  A truck is addressed at the
    boundary by its plate, which is stored trimmed and uppercase.
Architecture position: Kernel > Models.  May import from db/ only (base
    and the column widths in db/types.py).

Invariants enforced:
    - plate is globally unique (uq_truck_plate).  Normalization happens
      before insert (domain.references.normalize_plate) so "abc1234" and
      "ABC1234" collide.

Failure modes:
    - IntegrityError on duplicate plate, translated to UniqueConflictError
      by the entity store.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase
from fleet_kernel.db.types import NAME_LENGTH, STATUS_LENGTH

DEFAULT_TRUCK_STATUS = "Available"


class Truck(TrackedBase):
    """
    A vehicle of the fleet.

    Contract:
        status is free text maintained by the registry; the trip lifecycle
        never changes it and never deletes trucks.
    """

    __tablename__ = "trucks"

    __table_args__ = (
        UniqueConstraint("plate", name="uq_truck_plate"),
    )

    plate: Mapped[str] = mapped_column(String(10), nullable=False)

    # Optional display name ("Scania 2", "Blue Volvo")
    name: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)

    status: Mapped[str] = mapped_column(
        String(STATUS_LENGTH),
        nullable=False,
        default=DEFAULT_TRUCK_STATUS,
    )

    def __repr__(self) -> str:
        return f"<Truck {self.plate} ({self.status})>"
