"""
FleetOperations -- the application facade over the fleet kernel.

Responsibility:
    One method per canonical operation (trip lifecycle, registry, reports).
    Each call runs in its own transaction and returns an OperationResult;
    no kernel or storage exception escapes.

Architecture position:
    Services -- composes kernel services and selectors over a FleetDatabase
    built from configuration.  Owns the transaction boundary: commit on
    success, rollback on any error, so a failed operation writes nothing.

Invariants enforced:
    - Every call is tagged with a fresh correlation_id and the operation name
      (LogContext), and logs operation_started / operation_completed /
      operation_failed with its duration.
    - FleetKernelError is reported with its own kind and code; any other
      SQLAlchemyError becomes StorageFailureError.
    - No ambient singletons: the database is passed in and closed by close().
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleet_config import FleetConfig, get_active_config
from fleet_config.bridges import apply_logging, build_database, build_productivity_rule
from fleet_kernel.db.engine import FleetDatabase
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.financials import ProductivityRule
from fleet_kernel.exceptions import ErrorKind, FleetKernelError, StorageFailureError
from fleet_kernel.logging_config import LogContext, get_logger
from fleet_kernel.models import DEFAULT_TRUCK_STATUS
from fleet_kernel.selectors.trip_selector import TripSelector
from fleet_kernel.services.entity_store import EntityStore
from fleet_kernel.services.fleet_registry_service import FleetRegistryService
from fleet_kernel.services.trip_lifecycle_service import TripLifecycleService

logger = get_logger("services.fleet_operations")


def _render(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_render(v) for v in value]
    if isinstance(value, dict):
        return {k: _render(v) for k, v in value.items()}
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class OperationResult:
    """Result of a facade operation: a value on success, an error otherwise."""

    ok: bool
    value: Any = None
    error: FleetKernelError | None = None

    @classmethod
    def success(cls, value: Any = None) -> OperationResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: FleetKernelError) -> OperationResult:
        return cls(ok=False, error=error)

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    @property
    def code(self) -> str | None:
        return self.error.code if self.error is not None else None

    @property
    def message(self) -> str | None:
        return str(self.error) if self.error is not None else None

    @property
    def context(self) -> dict[str, Any]:
        return dict(self.error.context) if self.error is not None else {}

    def to_dict(self) -> dict[str, Any]:
        """Transport-ready mapping."""
        if self.ok:
            return {"ok": True, "value": _render(self.value)}
        return {
            "ok": False,
            "error": {
                "kind": self.kind.value,
                "code": self.code,
                "message": self.message,
                "context": _render(self.context),
            },
        }


class FleetOperations:
    """
    Canonical operations of the fleet system.

    Usage:
        ops = FleetOperations(database, config)
        result = ops.create_trip({...})
        if result.ok:
            trip = result.value
        ops.close()
    """

    def __init__(
        self,
        database: FleetDatabase,
        config: FleetConfig | None = None,
        clock: Clock | None = None,
    ):
        """
        Args:
            database: Database handle; owned by this facade from now on.
            config: Runtime configuration; library defaults when None.
            clock: Clock for completion dates. Defaults to SystemClock.
        """
        self._database = database
        self._clock = clock or SystemClock()
        if config is not None:
            self._rule = build_productivity_rule(config)
            self._default_truck_status = config.fleet.default_truck_status
        else:
            self._rule = ProductivityRule()
            self._default_truck_status = DEFAULT_TRUCK_STATUS

    @property
    def database(self) -> FleetDatabase:
        return self._database

    def close(self) -> None:
        self._database.close()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        work: Callable[[Session], Any],
        *,
        trip_id: Any = None,
    ) -> OperationResult:
        correlation_id = str(uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            operation=operation,
            trip_id=str(trip_id) if trip_id is not None else None,
        ):
            start = time.monotonic()
            logger.info("operation_started")
            try:
                with self._database.session_scope() as session:
                    value = work(session)
            except FleetKernelError as exc:
                logger.warning(
                    "operation_failed",
                    extra={
                        "error_code": exc.code,
                        "error_kind": exc.kind,
                        "duration_ms": _elapsed_ms(start),
                    },
                )
                return OperationResult.failure(exc)
            except SQLAlchemyError as exc:
                logger.error(
                    "operation_failed",
                    extra={
                        "error_code": StorageFailureError.code,
                        "error_kind": ErrorKind.STORAGE_FAILURE,
                        "duration_ms": _elapsed_ms(start),
                    },
                    exc_info=True,
                )
                return OperationResult.failure(
                    StorageFailureError(operation, str(exc))
                )

            logger.info(
                "operation_completed", extra={"duration_ms": _elapsed_ms(start)}
            )
            return OperationResult.success(value)

    def _lifecycle(self, session: Session) -> TripLifecycleService:
        return TripLifecycleService(EntityStore(session), self._clock)

    def _registry(self, session: Session) -> FleetRegistryService:
        return FleetRegistryService(
            EntityStore(session), default_truck_status=self._default_truck_status
        )

    def _selector(self, session: Session) -> TripSelector:
        return TripSelector(session, productivity_rule=self._rule)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> OperationResult:
        """Check the database answers."""
        if self._database.ping():
            return OperationResult.success(True)
        return OperationResult.failure(
            StorageFailureError("ping", "database did not answer")
        )

    # ------------------------------------------------------------------
    # Trip lifecycle
    # ------------------------------------------------------------------

    def create_trip(self, payload: Mapping[str, Any]) -> OperationResult:
        return self._run(
            "create_trip", lambda s: self._lifecycle(s).create_trip(payload)
        )

    def edit_trip(self, trip_id: Any, payload: Mapping[str, Any]) -> OperationResult:
        return self._run(
            "edit_trip",
            lambda s: self._lifecycle(s).edit_trip(trip_id, payload),
            trip_id=trip_id,
        )

    def finalize_trip(
        self,
        trip_id: Any,
        cost: Any,
        completion_date: str | None = None,
    ) -> OperationResult:
        return self._run(
            "finalize_trip",
            lambda s: self._lifecycle(s).finalize_trip(trip_id, cost, completion_date),
            trip_id=trip_id,
        )

    def get_trip(self, trip_id: Any) -> OperationResult:
        return self._run(
            "get_trip", lambda s: self._lifecycle(s).get_trip(trip_id), trip_id=trip_id
        )

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_truck(
        self, plate: Any, name: Any = None, status: Any = None
    ) -> OperationResult:
        return self._run(
            "register_truck",
            lambda s: self._registry(s).register_truck(plate, name, status),
        )

    def get_truck(self, plate: Any) -> OperationResult:
        return self._run("get_truck", lambda s: self._registry(s).get_truck(plate))

    def list_trucks(self) -> OperationResult:
        return self._run("list_trucks", lambda s: self._registry(s).list_trucks())

    def update_truck_status(self, plate: Any, status: Any) -> OperationResult:
        return self._run(
            "update_truck_status",
            lambda s: self._registry(s).update_truck_status(plate, status),
        )

    def register_driver(
        self, name: Any, phone: Any = None, license_number: Any = None
    ) -> OperationResult:
        return self._run(
            "register_driver",
            lambda s: self._registry(s).register_driver(name, phone, license_number),
        )

    def get_driver(self, driver_id: Any) -> OperationResult:
        return self._run(
            "get_driver", lambda s: self._registry(s).get_driver(driver_id)
        )

    def list_drivers(self) -> OperationResult:
        return self._run("list_drivers", lambda s: self._registry(s).list_drivers())

    def delete_driver(self, driver_id: Any) -> OperationResult:
        return self._run(
            "delete_driver", lambda s: self._registry(s).delete_driver(driver_id)
        )

    def register_client(
        self,
        name: Any,
        phone: Any = None,
        email: Any = None,
        address: Any = None,
    ) -> OperationResult:
        return self._run(
            "register_client",
            lambda s: self._registry(s).register_client(name, phone, email, address),
        )

    def get_client(self, client_id: Any) -> OperationResult:
        return self._run(
            "get_client", lambda s: self._registry(s).get_client(client_id)
        )

    def list_clients(self) -> OperationResult:
        return self._run("list_clients", lambda s: self._registry(s).list_clients())

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def list_trips_by_truck(self, plate: Any) -> OperationResult:
        return self._run(
            "list_trips_by_truck", lambda s: self._selector(s).list_by_truck(plate)
        )

    def list_active_trips(self) -> OperationResult:
        return self._run(
            "list_active_trips", lambda s: self._selector(s).list_active()
        )

    def list_finished_trips(self) -> OperationResult:
        return self._run(
            "list_finished_trips", lambda s: self._selector(s).list_finished()
        )

    def list_all_trips(self) -> OperationResult:
        return self._run("list_all_trips", lambda s: self._selector(s).list_all())

    def get_trip_view(self, trip_id: Any) -> OperationResult:
        return self._run(
            "get_trip_view",
            lambda s: self._selector(s).get_trip_view(trip_id),
            trip_id=trip_id,
        )

    def current_situation(self) -> OperationResult:
        return self._run(
            "current_situation", lambda s: self._selector(s).current_situation()
        )

    def productivity_report(self) -> OperationResult:
        return self._run(
            "productivity_report", lambda s: self._selector(s).productivity()
        )


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 3)


def open_fleet(
    config: FleetConfig | None = None,
    *,
    clock: Clock | None = None,
    create_tables: bool = True,
) -> FleetOperations:
    """
    Build a ready FleetOperations from configuration.

    Loads the active configuration when none is given, configures logging,
    constructs the database and (by default) creates missing tables.  The
    caller closes the returned facade on shutdown.
    """
    config = config or get_active_config()
    apply_logging(config)
    database = build_database(config)
    if create_tables:
        database.create_tables()
    return FleetOperations(database, config, clock)
