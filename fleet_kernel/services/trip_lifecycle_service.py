"""
TripLifecycleService -- create, edit and finalize trips.

Responsibility:
    The trip lifecycle engine.  Every mutation follows the same pipeline:

        1. Boundary validation   TripInput.from_mapping / parse_money
        2. Reference resolution  truck -> driver -> client (FOR SHARE)
        3. Financial derivation  compute_profit
        4. State discipline      TRIP_WORKFLOW
        5. Persistence           EntityStore (flush only)

Invariants enforced:
    - Validation completes before any store access; the first invalid field
      wins.
    - References are resolved in the caller's transaction, so resolution and
      the write are one atomic unit.
    - profit is always revenue - cost; it is never taken from the caller.
    - Status moves InProgress -> Finished only through finalize_trip();
      edit_trip() may restate the current status but never change it.
    - A Finished trip cannot be finalized again.

Failure modes:
    - InvalidInputError, Truck/Driver/Client/TripNotFoundError,
      InvalidTransitionError, TripAlreadyFinishedError, OptimisticLockError.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from fleet_kernel.db.types import DATE_LENGTH
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.dtos import TripRecord
from fleet_kernel.domain.financials import compute_profit
from fleet_kernel.domain.references import parse_entity_id
from fleet_kernel.domain.trip_input import TripInput, optional_text, parse_money
from fleet_kernel.domain.trip_workflow import TRIP_WORKFLOW, TripStatus
from fleet_kernel.logging_config import LogContext, get_logger
from fleet_kernel.models import Trip
from fleet_kernel.services.entity_store import EntityStore
from fleet_kernel.services.reference_resolver import ReferenceResolver

logger = get_logger("services.trip_lifecycle")

ZERO = Decimal("0.00")


def to_trip_record(trip: Trip) -> TripRecord:
    """Convert an ORM Trip to its TripRecord DTO."""
    return TripRecord(
        id=trip.id,
        truck_id=trip.truck_id,
        driver_id=trip.driver_id,
        client_id=trip.client_id,
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


class TripLifecycleService:
    """
    Service for the trip lifecycle.

    All public methods return TripRecord DTOs, never ORM entities.
    """

    def __init__(self, store: EntityStore, clock: Clock | None = None):
        """
        Args:
            store: Entity store bound to the caller's session.
            clock: Clock used to stamp completion dates. Defaults to
                SystemClock.
        """
        self._store = store
        self._resolver = ReferenceResolver(store)
        self._clock = clock or SystemClock()

    def _parse_input(self, trip_input: TripInput | Mapping[str, Any]) -> TripInput:
        if isinstance(trip_input, TripInput):
            return trip_input
        return TripInput.from_mapping(trip_input)

    def _resolve_references(self, trip_input: TripInput) -> tuple[int, int, int]:
        truck_id = self._resolver.resolve_truck(trip_input.truck_plate, lock=True)
        driver_id = self._resolver.resolve_driver(trip_input.driver_id, lock=True)
        client_id = self._resolver.resolve_client(trip_input.client_id, lock=True)
        return truck_id, driver_id, client_id

    def create_trip(self, trip_input: TripInput | Mapping[str, Any]) -> TripRecord:
        """
        Create a trip.

        Args:
            trip_input: A parsed TripInput, or a raw payload to parse.

        Returns:
            The persisted TripRecord, with its generated id and the
            resolved foreign ids.

        Raises:
            InvalidInputError: A field failed validation.
            TruckNotFoundError / DriverNotFoundError / ClientNotFoundError:
                A referenced entity does not exist (checked in that order).
        """
        data = self._parse_input(trip_input)
        truck_id, driver_id, client_id = self._resolve_references(data)

        cost = data.cost if data.cost is not None else ZERO
        completion_date = data.completion_date
        if data.status is TripStatus.FINISHED and completion_date is None:
            completion_date = self._clock.today_iso()

        trip = Trip(
            truck_id=truck_id,
            driver_id=driver_id,
            client_id=client_id,
            start_date=data.start_date,
            end_date=data.end_date,
            origin=data.origin,
            destination=data.destination,
            revenue=data.revenue,
            cost=cost,
            profit=compute_profit(data.revenue, cost),
            completion_date=completion_date,
            status=data.status.value,
        )
        trip_id = self._store.insert(trip)

        with LogContext.bind(trip_id=str(trip_id)):
            logger.info(
                "trip_created",
                extra={
                    "truck_id": truck_id,
                    "driver_id": driver_id,
                    "client_id": client_id,
                    "status": trip.status,
                    "profit": trip.profit,
                },
            )
        return to_trip_record(trip)

    def edit_trip(
        self,
        trip_id: Any,
        trip_input: TripInput | Mapping[str, Any],
    ) -> TripRecord:
        """
        Replace a trip's fields.

        Full-update semantics: every scalar and reference field is taken
        from the input.  cost and completion_date are fixed by finalize, so
        when the input omits them the stored values are kept.  profit is
        recomputed from the resulting revenue and cost.

        Raises:
            InvalidInputError: A field failed validation.
            TripNotFoundError: No trip with trip_id.
            InvalidTransitionError: The input status differs from the
                current status.
            TruckNotFoundError / DriverNotFoundError / ClientNotFoundError.
            OptimisticLockError: The trip changed concurrently.
        """
        trip_id = parse_entity_id(trip_id, "trip_id")
        data = self._parse_input(trip_input)

        trip = self._store.lock(Trip, trip_id)
        TRIP_WORKFLOW.require_unchanged(trip.status, data.status.value)
        truck_id, driver_id, client_id = self._resolve_references(data)

        cost = data.cost if data.cost is not None else trip.cost
        completion_date = (
            data.completion_date
            if data.completion_date is not None
            else trip.completion_date
        )

        self._store.update(
            Trip,
            trip_id,
            {
                "truck_id": truck_id,
                "driver_id": driver_id,
                "client_id": client_id,
                "start_date": data.start_date,
                "end_date": data.end_date,
                "origin": data.origin,
                "destination": data.destination,
                "revenue": data.revenue,
                "cost": cost,
                "profit": compute_profit(data.revenue, cost),
                "completion_date": completion_date,
            },
            entity=trip,
        )

        with LogContext.bind(trip_id=str(trip_id)):
            logger.info(
                "trip_edited",
                extra={"profit": trip.profit, "version": trip.version},
            )
        return to_trip_record(trip)

    def finalize_trip(
        self,
        trip_id: Any,
        cost: Any,
        completion_date: str | None = None,
    ) -> TripRecord:
        """
        Complete a trip: fix its cost, derive profit, move it to Finished.

        Args:
            trip_id: Id of an InProgress trip.
            cost: Final cost, a non-negative amount.
            completion_date: Opaque date string; defaults to today's UTC
                date from the injected clock.

        Raises:
            InvalidInputError: Malformed id, cost or completion_date.
            TripNotFoundError: No trip with trip_id.
            TripAlreadyFinishedError: The trip is already Finished.
            OptimisticLockError: A concurrent finalize won the race.
        """
        trip_id = parse_entity_id(trip_id, "trip_id")
        final_cost = parse_money(cost, "cost")
        completion_date = (
            optional_text(completion_date, "completion_date", DATE_LENGTH)
            or self._clock.today_iso()
        )

        trip = self._store.lock(Trip, trip_id)
        target = TRIP_WORKFLOW.require_transition(
            trip.status, "finalize", entity_id=trip_id
        )
        profit = compute_profit(trip.revenue, final_cost)

        self._store.update(
            Trip,
            trip_id,
            {
                "status": target,
                "cost": final_cost,
                "profit": profit,
                "completion_date": completion_date,
            },
            entity=trip,
        )

        with LogContext.bind(trip_id=str(trip_id)):
            logger.info(
                "trip_finalized",
                extra={
                    "cost": final_cost,
                    "profit": profit,
                    "completion_date": completion_date,
                },
            )
        return to_trip_record(trip)

    def get_trip(self, trip_id: Any) -> TripRecord:
        """
        Get a trip by id.

        Raises:
            InvalidInputError: trip_id is not a positive integer.
            TripNotFoundError: No trip with trip_id.
        """
        trip_id = parse_entity_id(trip_id, "trip_id")
        return to_trip_record(self._store.get_by_id(Trip, trip_id))
