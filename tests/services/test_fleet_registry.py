"""
Tests for FleetRegistryService.

Covers:
- Truck, driver and client registration with normalization
- Uniqueness conflicts surfaced as UniqueConflictError
- Text fields bounded by their column widths
- Listings and lookups
- Truck status updates
- The driver deletion guard
"""

import pytest

from fleet_kernel.db.types import (
    ADDRESS_LENGTH,
    EMAIL_LENGTH,
    LICENSE_LENGTH,
    NAME_LENGTH,
    PHONE_LENGTH,
    STATUS_LENGTH,
)
from fleet_kernel.domain.dtos import ClientInfo, DriverInfo, TruckInfo
from fleet_kernel.exceptions import (
    ClientNotFoundError,
    DriverNotFoundError,
    DriverReferencedError,
    ErrorKind,
    InvalidInputError,
    TruckNotFoundError,
    UniqueConflictError,
)
from fleet_kernel.services.fleet_registry_service import (
    FleetRegistryService,
    normalize_email,
)


class TestTrucks:
    def test_register(self, registry):
        """Plates are normalized and the default status applied."""
        truck = registry.register_truck(" abc1234 ", name="Scania")
        assert isinstance(truck, TruckInfo)
        assert truck.plate == "ABC1234"
        assert truck.name == "Scania"
        assert truck.status == "Available"

    def test_configured_default_status(self, store):
        """The registry's configured default status is used when none is given."""
        registry = FleetRegistryService(store, default_truck_status="Idle")
        assert registry.register_truck("ABC1234").status == "Idle"

    def test_explicit_status(self, registry):
        """An explicit status overrides the default."""
        assert registry.register_truck("ABC1234", status="Maintenance").status == "Maintenance"

    def test_duplicate_plate_differs_only_in_case(self, registry):
        """Plates that normalize to the same value conflict."""
        registry.register_truck("ABC1234")
        with pytest.raises(UniqueConflictError) as exc_info:
            registry.register_truck("abc1234")
        assert exc_info.value.value == "ABC1234"

    def test_invalid_plate(self, registry):
        """An empty plate is invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_truck("")
        assert exc_info.value.field == "plate"

    def test_get_and_list(self, registry):
        """Lookup is case-insensitive and listing is ordered by plate."""
        registry.register_truck("ZZZ0001")
        registry.register_truck("AAA0001")
        assert registry.get_truck("zzz0001").plate == "ZZZ0001"
        assert [t.plate for t in registry.list_trucks()] == ["AAA0001", "ZZZ0001"]

    def test_get_unknown(self, registry):
        """Unknown plates raise TruckNotFoundError."""
        with pytest.raises(TruckNotFoundError):
            registry.get_truck("NOPE")

    def test_update_status(self, registry):
        """A status update is returned and persisted."""
        registry.register_truck("ABC1234")
        updated = registry.update_truck_status("abc1234", "On route")
        assert updated.status == "On route"
        assert registry.get_truck("ABC1234").status == "On route"

    def test_update_status_requires_text(self, registry):
        """A blank status is rejected."""
        registry.register_truck("ABC1234")
        with pytest.raises(InvalidInputError) as exc_info:
            registry.update_truck_status("ABC1234", " ")
        assert exc_info.value.field == "status"

    def test_update_status_unknown_truck(self, registry):
        """Updating an unknown truck raises TruckNotFoundError."""
        with pytest.raises(TruckNotFoundError):
            registry.update_truck_status("NOPE", "Available")


class TestDrivers:
    def test_register(self, registry):
        """Driver fields are trimmed and stored."""
        driver = registry.register_driver(" Jo ", phone="555", license_number="L-1")
        assert isinstance(driver, DriverInfo)
        assert driver.name == "Jo"
        assert driver.phone == "555"
        assert driver.license_number == "L-1"

    def test_license_number_not_unique(self, registry):
        """Two drivers may share a license number."""
        registry.register_driver("Jo", license_number="L-1")
        registry.register_driver("Ana", license_number="L-1")
        assert len(registry.list_drivers()) == 2

    def test_duplicate_name(self, registry):
        """Driver names are unique."""
        registry.register_driver("Jo")
        with pytest.raises(UniqueConflictError) as exc_info:
            registry.register_driver("Jo")
        assert exc_info.value.entity == "driver"

    def test_name_required(self, registry):
        """A driver needs a name."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_driver(None)
        assert exc_info.value.field == "name"

    def test_get_unknown(self, registry):
        """Unknown driver ids raise DriverNotFoundError."""
        with pytest.raises(DriverNotFoundError):
            registry.get_driver(404)


class TestFieldWidths:
    def _assert_too_long(self, exc_info, field, limit):
        assert exc_info.value.field == field
        assert exc_info.value.reason == f"must be at most {limit} characters"

    def test_driver_name_too_long(self, registry):
        """A driver name wider than its column is invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_driver("n" * (NAME_LENGTH + 1))
        self._assert_too_long(exc_info, "name", NAME_LENGTH)

    def test_driver_phone_too_long(self, registry):
        """A driver phone wider than its column is invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_driver("Jo", phone="5" * (PHONE_LENGTH + 1))
        self._assert_too_long(exc_info, "phone", PHONE_LENGTH)

    def test_license_number_too_long(self, registry):
        """A license number wider than its column is invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_driver("Jo", license_number="L" * (LICENSE_LENGTH + 1))
        self._assert_too_long(exc_info, "license_number", LICENSE_LENGTH)

    def test_client_email_too_long(self, registry):
        """An email wider than its column is invalid input."""
        email = "a" * EMAIL_LENGTH + "@x.com"
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_client("X", email=email)
        self._assert_too_long(exc_info, "email", EMAIL_LENGTH)

    def test_client_address_too_long(self, registry):
        """An address wider than its column is invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_client("X", address="r" * (ADDRESS_LENGTH + 1))
        self._assert_too_long(exc_info, "address", ADDRESS_LENGTH)

    def test_truck_status_too_long(self, registry):
        """Truck statuses are bounded on registration and update."""
        with pytest.raises(InvalidInputError) as exc_info:
            registry.register_truck("ABC1234", status="s" * (STATUS_LENGTH + 1))
        self._assert_too_long(exc_info, "status", STATUS_LENGTH)

        registry.register_truck("ABC1234")
        with pytest.raises(InvalidInputError) as exc_info:
            registry.update_truck_status("ABC1234", "s" * (STATUS_LENGTH + 1))
        self._assert_too_long(exc_info, "status", STATUS_LENGTH)

    def test_exact_widths_accepted(self, registry):
        """Values exactly as wide as their columns are stored."""
        driver = registry.register_driver("n" * NAME_LENGTH, phone="5" * PHONE_LENGTH)
        client = registry.register_client("X", address="r" * ADDRESS_LENGTH)
        assert len(driver.name) == NAME_LENGTH
        assert len(driver.phone) == PHONE_LENGTH
        assert len(client.address) == ADDRESS_LENGTH

    def test_rejected_value_is_not_stored(self, registry):
        """A rejected registration leaves nothing behind."""
        with pytest.raises(InvalidInputError):
            registry.register_client("n" * (NAME_LENGTH + 1))
        assert registry.list_clients() == []


class TestDeleteDriver:
    def test_unreferenced_driver_is_deleted(self, registry):
        """A driver with no trips can be deleted."""
        driver = registry.register_driver("Jo")
        registry.delete_driver(driver.id)
        with pytest.raises(DriverNotFoundError):
            registry.get_driver(driver.id)

    def test_referenced_driver_is_kept(self, registry, lifecycle, trip_payload, refs):
        """A driver referenced by a trip is not deleted."""
        trip = lifecycle.create_trip(trip_payload())

        with pytest.raises(DriverReferencedError) as exc_info:
            registry.delete_driver(refs.driver.id)

        assert exc_info.value.kind is ErrorKind.REFERENTIAL_CONFLICT
        assert exc_info.value.trip_count == 1
        assert registry.get_driver(refs.driver.id) == refs.driver
        assert lifecycle.get_trip(trip.id) == trip

    def test_blocked_delete_is_logged(self, registry, lifecycle, trip_payload, refs, captured_logs):
        """A blocked delete logs the driver and its trip count."""
        lifecycle.create_trip(trip_payload())
        with pytest.raises(DriverReferencedError):
            registry.delete_driver(refs.driver.id)

        blocked = [r for r in captured_logs() if r["message"] == "driver_delete_blocked"]
        assert blocked[0]["driver_id"] == refs.driver.id
        assert blocked[0]["trip_count"] == 1

    def test_unknown_driver(self, registry):
        """Deleting an unknown driver raises DriverNotFoundError."""
        with pytest.raises(DriverNotFoundError):
            registry.delete_driver(404)

    def test_invalid_id(self, registry):
        """A malformed driver id is invalid input."""
        with pytest.raises(InvalidInputError):
            registry.delete_driver("one")


class TestClients:
    def test_register(self, registry):
        """Client emails are trimmed and lowercased."""
        client = registry.register_client(
            "X", phone="555", email=" X@X.com ", address="Rua 1"
        )
        assert isinstance(client, ClientInfo)
        assert client.email == "x@x.com"
        assert client.address == "Rua 1"

    def test_duplicate_email_differs_only_in_case(self, registry):
        """Emails that normalize to the same value conflict."""
        registry.register_client("X", email="x@x.com")
        with pytest.raises(UniqueConflictError) as exc_info:
            registry.register_client("Y", email="X@X.COM")
        assert exc_info.value.field == "email"

    def test_clients_without_email(self, registry):
        """Any number of clients may omit an email."""
        registry.register_client("X")
        registry.register_client("Y")
        assert [c.name for c in registry.list_clients()] == ["X", "Y"]

    def test_get_unknown(self, registry):
        """Unknown client ids raise ClientNotFoundError."""
        with pytest.raises(ClientNotFoundError):
            registry.get_client(404)


class TestNormalizeEmail:
    def test_absent(self):
        """None and blank emails mean no email."""
        assert normalize_email(None) is None
        assert normalize_email("  ") is None

    @pytest.mark.parametrize("raw", ["nope", "@x.com", "x@", 42])
    def test_malformed(self, raw):
        """Values that are not addresses are rejected."""
        with pytest.raises(InvalidInputError) as exc_info:
            normalize_email(raw)
        assert exc_info.value.field == "email"
