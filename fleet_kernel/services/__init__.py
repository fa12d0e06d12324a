"""Services for the fleet kernel (write side)."""

from fleet_kernel.services.entity_store import EntityStore
from fleet_kernel.services.fleet_registry_service import FleetRegistryService
from fleet_kernel.services.reference_resolver import ReferenceResolver
from fleet_kernel.services.trip_lifecycle_service import TripLifecycleService

__all__ = [
    "EntityStore",
    "FleetRegistryService",
    "ReferenceResolver",
    "TripLifecycleService",
]
