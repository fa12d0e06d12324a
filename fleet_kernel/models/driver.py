"""
Module: fleet_kernel.models.driver
Responsibility: ORM persistence for drivers.
Architecture position: Kernel > Models.  May import from db/ only (base
    and the column widths in db/types.py).

Invariants enforced:
    - name is unique (uq_driver_name).
    - A driver referenced by any trip cannot be deleted.  The guard lives in
      FleetRegistryService.delete_driver; the trips.driver_id foreign key
      (no cascade) is the storage-level backstop.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase
from fleet_kernel.db.types import LICENSE_LENGTH, NAME_LENGTH, PHONE_LENGTH


class Driver(TrackedBase):
    """A person who drives fleet trucks."""

    __tablename__ = "drivers"

    __table_args__ = (
        UniqueConstraint("name", name="uq_driver_name"),
    )

    name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)

    phone: Mapped[str | None] = mapped_column(String(PHONE_LENGTH), nullable=True)

    # Deprecated; kept for records imported from older data sets
    license_number: Mapped[str | None] = mapped_column(
        String(LICENSE_LENGTH), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Driver {self.id} {self.name}>"
