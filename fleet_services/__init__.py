"""
fleet_services -- Package init and public API.

Responsibility:
    The application facade.  FleetOperations owns the transaction boundary
    and turns every kernel outcome into an OperationResult.

Architecture position:
    Services -- orchestration over the kernel and configuration.

        fleet_services/ -> fleet_kernel/  (allowed)
        fleet_services/ -> fleet_config/  (allowed)
        fleet_kernel/   -> fleet_services/ (FORBIDDEN)
"""

from fleet_services.fleet_operations import FleetOperations, OperationResult, open_fleet

__all__ = [
    "FleetOperations",
    "OperationResult",
    "open_fleet",
]
