"""
Module: fleet_kernel.selectors.trip_selector
Responsibility: Read-only joined views of trips -- per truck, active,
    finished, the current situation board, and the productivity report.
Architecture position: Kernel > Selectors.  May import from models/,
    selectors/base.py and the pure value objects in domain/.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - Every view is an inner join of Trip with Truck, Driver and Client,
      ordered by trip id for deterministic output.
    - Productivity classification comes from the injected ProductivityRule;
      the threshold is never hard-coded here.

Failure modes:
    - TruckNotFoundError from list_by_truck() when the plate is unknown.
    - TripNotFoundError from get_trip_view() when the id is unknown.
    - Every other view returns an empty list when nothing matches.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from fleet_kernel.domain.dtos import ProductivityRow, SituationRow, TripView, TruckTrips
from fleet_kernel.domain.financials import ProductivityRule
from fleet_kernel.domain.references import normalize_plate, parse_entity_id
from fleet_kernel.domain.trip_workflow import TripStatus
from fleet_kernel.exceptions import TripNotFoundError, TruckNotFoundError
from fleet_kernel.models import Client, Driver, Trip, Truck
from fleet_kernel.selectors.base import BaseSelector


class TripSelector(BaseSelector):
    """Joined, read-only trip queries."""

    def __init__(
        self,
        session: Session,
        productivity_rule: ProductivityRule | None = None,
    ):
        super().__init__(session)
        self._rule = productivity_rule or ProductivityRule()

    def _joined(self) -> Select:
        return (
            select(
                Trip,
                Truck.plate,
                Truck.name.label("truck_name"),
                Driver.name.label("driver_name"),
                Client.name.label("client_name"),
            )
            .join(Truck, Trip.truck_id == Truck.id)
            .join(Driver, Trip.driver_id == Driver.id)
            .join(Client, Trip.client_id == Client.id)
            .order_by(Trip.id)
        )

    def _rows(self, *criteria: Any) -> list[Any]:
        return list(self.session.execute(self._joined().where(*criteria)).all())

    def _to_view(self, row: Any) -> TripView:
        trip = row.Trip
        return TripView(
            id=trip.id,
            plate=row.plate,
            truck_name=row.truck_name,
            driver_id=trip.driver_id,
            driver_name=row.driver_name,
            client_id=trip.client_id,
            client_name=row.client_name,
            start_date=trip.start_date,
            end_date=trip.end_date,
            origin=trip.origin,
            destination=trip.destination,
            revenue=trip.revenue,
            cost=trip.cost,
            profit=trip.profit,
            completion_date=trip.completion_date,
            status=trip.status,
        )

    def list_by_truck(self, plate: Any) -> TruckTrips:
        """
        All trips of one truck.

        Raises:
            InvalidInputError: Empty or over-long plate.
            TruckNotFoundError: No truck with this plate.
        """
        plate = normalize_plate(plate, "plate")
        truck_id = self.session.execute(
            select(Truck.id).where(Truck.plate == plate)
        ).scalar_one_or_none()
        if truck_id is None:
            raise TruckNotFoundError(plate)
        trips = tuple(self._to_view(r) for r in self._rows(Trip.truck_id == truck_id))
        return TruckTrips(plate=plate, trips=trips)

    def list_active(self) -> list[TripView]:
        return [
            self._to_view(r)
            for r in self._rows(Trip.status == TripStatus.IN_PROGRESS.value)
        ]

    def list_finished(self) -> list[TripView]:
        return [
            self._to_view(r)
            for r in self._rows(Trip.status == TripStatus.FINISHED.value)
        ]

    def list_all(self) -> list[TripView]:
        return [self._to_view(r) for r in self._rows()]

    def get_trip_view(self, trip_id: Any) -> TripView:
        """
        One trip, joined.

        Raises:
            InvalidInputError: trip_id is not a positive integer.
            TripNotFoundError: No trip with this id.
        """
        trip_id = parse_entity_id(trip_id, "trip_id")
        rows = self._rows(Trip.id == trip_id)
        if not rows:
            raise TripNotFoundError(trip_id)
        return self._to_view(rows[0])

    def current_situation(self) -> list[SituationRow]:
        """Who is driving which truck, for whom, right now."""
        return [
            SituationRow(
                plate=r.plate,
                trip_id=r.Trip.id,
                start_date=r.Trip.start_date,
                status=r.Trip.status,
                origin=r.Trip.origin,
                destination=r.Trip.destination,
                driver_name=r.driver_name,
                client_name=r.client_name,
            )
            for r in self._rows(Trip.status == TripStatus.IN_PROGRESS.value)
        ]

    def productivity(self) -> list[ProductivityRow]:
        """Every trip's profit with its profit/loss classification."""
        return [
            ProductivityRow(
                plate=r.plate,
                profit=r.Trip.profit,
                completion_date=r.Trip.completion_date,
                driver_name=r.driver_name,
                origin=r.Trip.origin,
                destination=r.Trip.destination,
                classification=self._rule.classify(r.Trip.profit),
            )
            for r in self._rows()
        ]
