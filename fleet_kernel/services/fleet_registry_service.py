"""
Service layer for the fleet registry.

Registers and lists trucks, drivers and clients, updates a truck's status,
and deletes drivers behind the referential guard: a driver that any trip
references cannot be deleted.

Returns TruckInfo / DriverInfo / ClientInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from typing import Any

from fleet_kernel.db.types import (
    ADDRESS_LENGTH,
    EMAIL_LENGTH,
    LICENSE_LENGTH,
    NAME_LENGTH,
    PHONE_LENGTH,
    STATUS_LENGTH,
)
from fleet_kernel.domain.dtos import ClientInfo, DriverInfo, TruckInfo
from fleet_kernel.domain.references import normalize_plate, parse_entity_id
from fleet_kernel.domain.trip_input import optional_text, require_text
from fleet_kernel.exceptions import DriverReferencedError, InvalidInputError
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models import DEFAULT_TRUCK_STATUS, Client, Driver, Trip, Truck
from fleet_kernel.services.entity_store import EntityStore

logger = get_logger("services.fleet_registry")


def normalize_email(value: Any, field: str = "email") -> str | None:
    """Trim and lowercase an optional email address."""
    email = optional_text(value, field, EMAIL_LENGTH)
    if email is None:
        return None
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise InvalidInputError(field, "must be an email address")
    return email.lower()


class FleetRegistryService:
    """
    Service for the entities trips reference.

    Uniqueness of plate, driver name and client email is enforced by the
    store, which raises UniqueConflictError.
    """

    def __init__(
        self,
        store: EntityStore,
        default_truck_status: str = DEFAULT_TRUCK_STATUS,
    ):
        self._store = store
        self._default_truck_status = default_truck_status

    def _truck_dto(self, truck: Truck) -> TruckInfo:
        return TruckInfo(
            id=truck.id, plate=truck.plate, name=truck.name, status=truck.status
        )

    def _driver_dto(self, driver: Driver) -> DriverInfo:
        return DriverInfo(
            id=driver.id,
            name=driver.name,
            phone=driver.phone,
            license_number=driver.license_number,
        )

    def _client_dto(self, client: Client) -> ClientInfo:
        return ClientInfo(
            id=client.id,
            name=client.name,
            phone=client.phone,
            email=client.email,
            address=client.address,
        )

    # Trucks

    def register_truck(
        self,
        plate: Any,
        name: Any = None,
        status: Any = None,
    ) -> TruckInfo:
        """
        Register a truck.

        Args:
            plate: Plate; stored trimmed and uppercase.
            name: Optional display name.
            status: Free-text status; defaults to the configured default.

        Raises:
            InvalidInputError: Bad plate, or a name or status too long.
            UniqueConflictError: The plate is already registered.
        """
        truck = Truck(
            plate=normalize_plate(plate, "plate"),
            name=optional_text(name, "name", NAME_LENGTH),
            status=(
                optional_text(status, "status", STATUS_LENGTH)
                or self._default_truck_status
            ),
        )
        self._store.insert(truck)
        logger.info("truck_registered", extra={"plate": truck.plate})
        return self._truck_dto(truck)

    def get_truck(self, plate: Any) -> TruckInfo:
        plate = normalize_plate(plate, "plate")
        return self._truck_dto(self._store.get_by_unique_key(Truck, "plate", plate))

    def list_trucks(self) -> list[TruckInfo]:
        return [
            self._truck_dto(t)
            for t in self._store.find_all(Truck, order_by=Truck.plate)
        ]

    def update_truck_status(self, plate: Any, status: Any) -> TruckInfo:
        """
        Set a truck's free-text status.

        Raises:
            InvalidInputError: Empty plate, or a blank or too long status.
            TruckNotFoundError: Unknown plate.
        """
        plate = normalize_plate(plate, "plate")
        new_status = require_text(status, "status", STATUS_LENGTH)
        truck = self._store.get_by_unique_key(Truck, "plate", plate)
        self._store.update(Truck, truck.id, {"status": new_status}, entity=truck)
        logger.info(
            "truck_status_updated", extra={"plate": plate, "status": new_status}
        )
        return self._truck_dto(truck)

    # Drivers

    def register_driver(
        self,
        name: Any,
        phone: Any = None,
        license_number: Any = None,
    ) -> DriverInfo:
        """
        Register a driver.

        license_number is kept for older records only; it is optional and
        never checked for uniqueness.

        Raises:
            InvalidInputError: Empty name, or a field too long for its column.
            UniqueConflictError: A driver with this name exists.
        """
        driver = Driver(
            name=require_text(name, "name", NAME_LENGTH),
            phone=optional_text(phone, "phone", PHONE_LENGTH),
            license_number=optional_text(
                license_number, "license_number", LICENSE_LENGTH
            ),
        )
        self._store.insert(driver)
        logger.info("driver_registered", extra={"driver_id": driver.id})
        return self._driver_dto(driver)

    def get_driver(self, driver_id: Any) -> DriverInfo:
        driver_id = parse_entity_id(driver_id, "driver_id")
        return self._driver_dto(self._store.get_by_id(Driver, driver_id))

    def list_drivers(self) -> list[DriverInfo]:
        return [
            self._driver_dto(d)
            for d in self._store.find_all(Driver, order_by=Driver.name)
        ]

    def delete_driver(self, driver_id: Any) -> None:
        """
        Delete a driver no trip references.

        The driver row is locked FOR UPDATE before trips are counted, so a
        concurrent trip creation that reads the driver FOR SHARE either
        completes first (and is counted) or waits for this delete.

        Raises:
            InvalidInputError: driver_id is not a positive integer.
            DriverNotFoundError: No such driver.
            DriverReferencedError: One or more trips reference the driver.
        """
        driver_id = parse_entity_id(driver_id, "driver_id")
        self._store.lock(Driver, driver_id)

        trip_count = self._store.count_referencing(Trip, "driver_id", driver_id)
        if trip_count > 0:
            logger.warning(
                "driver_delete_blocked",
                extra={"driver_id": driver_id, "trip_count": trip_count},
            )
            raise DriverReferencedError(driver_id, trip_count)

        self._store.delete(Driver, driver_id)
        logger.info("driver_deleted", extra={"driver_id": driver_id})

    # Clients

    def register_client(
        self,
        name: Any,
        phone: Any = None,
        email: Any = None,
        address: Any = None,
    ) -> ClientInfo:
        """
        Register a client.

        Raises:
            InvalidInputError: Empty name, malformed email, or a field too long
                for its column.
            UniqueConflictError: Another client has this email.
        """
        client = Client(
            name=require_text(name, "name", NAME_LENGTH),
            phone=optional_text(phone, "phone", PHONE_LENGTH),
            email=normalize_email(email),
            address=optional_text(address, "address", ADDRESS_LENGTH),
        )
        self._store.insert(client)
        logger.info("client_registered", extra={"client_id": client.id})
        return self._client_dto(client)

    def get_client(self, client_id: Any) -> ClientInfo:
        client_id = parse_entity_id(client_id, "client_id")
        return self._client_dto(self._store.get_by_id(Client, client_id))

    def list_clients(self) -> list[ClientInfo]:
        return [
            self._client_dto(c)
            for c in self._store.find_all(Client, order_by=Client.name)
        ]
