"""
Module: fleet_kernel.models.trip
Responsibility: ORM persistence for trips -- one haul linking a truck, a
    driver and a client, with its revenue, cost and derived profit.
Architecture position: Kernel > Models.  May import from db/ and from the
    pure value types in domain/trip_workflow.py.

Invariants enforced:
    - truck_id, driver_id, client_id are NOT NULL foreign keys without
      cascade.  Existence is validated by the lifecycle service before the
      write; the constraints are the backstop.
    - status is one of TripStatus (ck_trip_status).
    - revenue >= 0 and cost >= 0 (ck_trip_revenue_non_negative,
      ck_trip_cost_non_negative).
    - profit is always written as revenue - cost by the lifecycle service.
    - version is the optimistic lock counter (version_id_col): every UPDATE
      is issued WHERE version = <read version>, so a concurrent writer that
      read the same row fails with StaleDataError instead of overwriting.

Failure modes:
    - IntegrityError on a dangling foreign key or a check violation.
    - StaleDataError on a lost optimistic-lock race.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase
from fleet_kernel.db.types import DATE_LENGTH, PLACE_LENGTH
from fleet_kernel.domain.trip_workflow import TripStatus


class Trip(TrackedBase):
    """
    A single haul assignment.

    Contract:
        start_date, end_date and completion_date are opaque caller-supplied
        strings; they are stored verbatim and never parsed.
    """

    __tablename__ = "trips"

    __table_args__ = (
        CheckConstraint(
            "status IN ('InProgress', 'Finished')", name="ck_trip_status"
        ),
        CheckConstraint("revenue >= 0", name="ck_trip_revenue_non_negative"),
        CheckConstraint("cost >= 0", name="ck_trip_cost_non_negative"),
        Index("idx_trip_status", "status"),
        Index("idx_trip_truck", "truck_id"),
        Index("idx_trip_driver", "driver_id"),
    )

    truck_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trucks.id"), nullable=False
    )
    driver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("drivers.id"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False
    )

    start_date: Mapped[str] = mapped_column(String(DATE_LENGTH), nullable=False)
    end_date: Mapped[str] = mapped_column(String(DATE_LENGTH), nullable=False)

    origin: Mapped[str] = mapped_column(String(PLACE_LENGTH), nullable=False)
    destination: Mapped[str] = mapped_column(String(PLACE_LENGTH), nullable=False)

    revenue: Mapped[Decimal] = mapped_column(nullable=False)
    cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    profit: Mapped[Decimal] = mapped_column(nullable=False)

    completion_date: Mapped[str | None] = mapped_column(
        String(DATE_LENGTH), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TripStatus.IN_PROGRESS.value,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_finished(self) -> bool:
        return self.status == TripStatus.FINISHED.value

    def __repr__(self) -> str:
        return f"<Trip {self.id} {self.origin}->{self.destination} ({self.status})>"
