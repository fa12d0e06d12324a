"""
Module: fleet_kernel.models.client
Responsibility: ORM persistence for clients (the parties trips are hauled for).
Architecture position: Kernel > Models.  May import from db/ only (base
    and the column widths in db/types.py).

Invariants enforced:
    - email is unique when present (uq_client_email).  NULL emails never
      collide, on SQLite or PostgreSQL.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase
from fleet_kernel.db.types import ADDRESS_LENGTH, EMAIL_LENGTH, NAME_LENGTH, PHONE_LENGTH


class Client(TrackedBase):
    """A customer of the fleet."""

    __tablename__ = "clients"

    __table_args__ = (
        UniqueConstraint("email", name="uq_client_email"),
    )

    name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)

    phone: Mapped[str | None] = mapped_column(String(PHONE_LENGTH), nullable=True)

    email: Mapped[str | None] = mapped_column(String(EMAIL_LENGTH), nullable=True)

    address: Mapped[str | None] = mapped_column(
        String(ADDRESS_LENGTH), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Client {self.id} {self.name}>"
