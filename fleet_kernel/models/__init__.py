"""ORM models for the fleet kernel."""

from fleet_kernel.models.client import Client
from fleet_kernel.models.driver import Driver
from fleet_kernel.models.trip import Trip
from fleet_kernel.models.truck import DEFAULT_TRUCK_STATUS, Truck

__all__ = [
    "Client",
    "DEFAULT_TRUCK_STATUS",
    "Driver",
    "Trip",
    "Truck",
]
