"""
Shared fixtures.

Every test gets its own SQLite file under tmp_path, so tests never share
rows.  Kernel services are built on a single rolled-back session; the
``operations`` facade opens its own sessions per call.
"""

import json
import logging
from dataclasses import dataclass
from io import StringIO

import pytest

from fleet_kernel.db.engine import FleetDatabase
from fleet_kernel.domain.clock import DeterministicClock
from fleet_kernel.domain.dtos import ClientInfo, DriverInfo, TruckInfo
from fleet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fleet_kernel.selectors.trip_selector import TripSelector
from fleet_kernel.services.entity_store import EntityStore
from fleet_kernel.services.fleet_registry_service import FleetRegistryService
from fleet_kernel.services.trip_lifecycle_service import TripLifecycleService
from fleet_services.fleet_operations import FleetOperations


# -- logging ------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _json_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _isolated_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Records logged under fleet_kernel during the test, as parsed JSON.

    The fixture value is a callable; each call returns everything logged so
    far, e.g. ``[r for r in captured_logs() if r["message"] == "trip_created"]``.
    """
    buffer = StringIO()
    tap = logging.StreamHandler(buffer)
    tap.setFormatter(StructuredFormatter())
    namespace = logging.getLogger("fleet_kernel")
    saved_level = namespace.level
    namespace.setLevel(logging.DEBUG)
    namespace.addHandler(tap)

    yield lambda: [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    namespace.removeHandler(tap)
    namespace.setLevel(saved_level)


# -- storage and services -------------------------------------------------


@pytest.fixture
def database(tmp_path):
    """A fresh SQLite database file with all tables created."""
    db = FleetDatabase(
        f"sqlite:///{tmp_path / 'fleet.db'}",
        busy_timeout_seconds=10.0,
    )
    db.create_tables()
    yield db
    db.close()


@pytest.fixture
def session(database):
    """
    A session whose work is rolled back after the test.

    Holds the SQLite write lock once it writes, so tests that open other
    sessions (the operations facade, threads) must not use this fixture.
    """
    sess = database.session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def store(session):
    return EntityStore(session)


@pytest.fixture
def lifecycle(store, deterministic_clock):
    return TripLifecycleService(store, deterministic_clock)


@pytest.fixture
def registry(store):
    return FleetRegistryService(store)


@pytest.fixture
def selector(session):
    return TripSelector(session)


@pytest.fixture
def operations(database, deterministic_clock):
    """The facade over the test database, with library-default settings."""
    return FleetOperations(database, clock=deterministic_clock)


# -- reference data -------------------------------------------------------


@dataclass(frozen=True)
class FleetRefs:
    truck: TruckInfo
    driver: DriverInfo
    client: ClientInfo


@pytest.fixture
def refs(registry) -> FleetRefs:
    """One registered truck, driver and client."""
    return FleetRefs(
        truck=registry.register_truck("ABC1234", name="Scania"),
        driver=registry.register_driver("Jo", phone="555-0100"),
        client=registry.register_client("X", email="x@x.com"),
    )


@pytest.fixture
def trip_payload(refs):
    """
    Factory for valid trip payloads referencing ``refs``.

    Usage::

        payload = trip_payload(revenue="1500.00", status="Finished")
    """

    def _make(**overrides) -> dict:
        payload = {
            "truck_plate": refs.truck.plate,
            "driver_id": refs.driver.id,
            "client_id": refs.client.id,
            "start_date": "2024-01-01",
            "end_date": "2024-01-05",
            "origin": "Curitiba",
            "destination": "Santos",
            "revenue": "1000",
            "status": "InProgress",
        }
        payload.update(overrides)
        return payload

    return _make
