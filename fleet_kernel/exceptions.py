"""
Typed Exception Hierarchy for the Fleet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the operations facade, a transport layer, tests) must be able to
tell "truck not found" from "driver not found" from "client not found"
without parsing message strings.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. A KIND class attribute (one of the ErrorKind categories below)
  4. Structured DATA as instance attributes (field, entity, key, ...)

Example:
    try:
        service.create_trip(trip_input)
    except TruckNotFoundError as e:
        respond(404, code=e.code, plate=e.key)
    except InvalidInputError as e:
        respond(400, code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FleetKernelError (base)
    |
    +-- InvalidInputError                 INVALID_INPUT
    |
    +-- NotFoundError                     NOT_FOUND
    |   +-- TruckNotFoundError
    |   +-- DriverNotFoundError
    |   +-- ClientNotFoundError
    |   +-- TripNotFoundError
    |
    +-- UniqueConflictError               UNIQUE_CONFLICT
    |
    +-- ReferentialConflictError          REFERENTIAL_CONFLICT
    |   +-- DriverReferencedError
    |   +-- ForeignKeyViolationError
    |
    +-- StateConflictError                STATE_CONFLICT
    |   +-- TripAlreadyFinishedError
    |   +-- InvalidTransitionError
    |   +-- OptimisticLockError
    |
    +-- StorageFailureError               STORAGE_FAILURE

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Kind            | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Invalid input   | INVALID_INPUT               | Missing/mistyped field, negative amount,
                |                             | bad status value, non-integer id
----------------|-----------------------------|-----------------------------------------
Not found       | TRUCK_NOT_FOUND             | No truck with the given plate
                | DRIVER_NOT_FOUND            | No driver with the given id
                | CLIENT_NOT_FOUND            | No client with the given id
                | TRIP_NOT_FOUND              | No trip with the given id
----------------|-----------------------------|-----------------------------------------
Unique conflict | UNIQUE_CONFLICT             | Duplicate plate, driver name, client email
----------------|-----------------------------|-----------------------------------------
Referential     | DRIVER_REFERENCED           | Deleting a driver that trips reference
                | FOREIGN_KEY_VIOLATION       | Storage-level FK backstop fired
----------------|-----------------------------|-----------------------------------------
State conflict  | TRIP_ALREADY_FINISHED       | Finalizing a Finished trip
                | INVALID_TRANSITION          | Status change outside the workflow
                | OPTIMISTIC_LOCK_CONFLICT    | Concurrent modification detected
----------------|-----------------------------|-----------------------------------------
Storage         | STORAGE_FAILURE             | Database unreachable / unexpected error
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-distinguishable error category carried by every kernel error."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UNIQUE_CONFLICT = "unique_conflict"
    REFERENTIAL_CONFLICT = "referential_conflict"
    STATE_CONFLICT = "state_conflict"
    STORAGE_FAILURE = "storage_failure"


class FleetKernelError(Exception):
    """
    Base exception for all fleet kernel errors.

    All subclasses must have `code` and `kind` class attributes.
    """

    code: str = "FLEET_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.STORAGE_FAILURE

    @property
    def context(self) -> dict:
        """Structured, public attributes of the error."""
        return {
            k: v for k, v in vars(self).items()
            if not k.startswith("_") and k != "args"
        }


# Input validation


class InvalidInputError(FleetKernelError):
    """A field is missing, has the wrong type, or violates a domain constraint."""

    code: str = "INVALID_INPUT"
    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {reason}")


# Lookup failures


class NotFoundError(FleetKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND
    entity: str = "entity"

    def __init__(self, key: object):
        self.key = key
        super().__init__(f"{self.entity.capitalize()} not found: {key}")

    @property
    def context(self) -> dict:
        return {"entity": self.entity, "key": self.key}


class TruckNotFoundError(NotFoundError):
    """No truck is registered under the given plate."""

    code: str = "TRUCK_NOT_FOUND"
    entity: str = "truck"


class DriverNotFoundError(NotFoundError):
    """No driver with the given id."""

    code: str = "DRIVER_NOT_FOUND"
    entity: str = "driver"


class ClientNotFoundError(NotFoundError):
    """No client with the given id."""

    code: str = "CLIENT_NOT_FOUND"
    entity: str = "client"


class TripNotFoundError(NotFoundError):
    """No trip with the given id."""

    code: str = "TRIP_NOT_FOUND"
    entity: str = "trip"


# Uniqueness


class UniqueConflictError(FleetKernelError):
    """A create or update would duplicate a unique key."""

    code: str = "UNIQUE_CONFLICT"
    kind: ErrorKind = ErrorKind.UNIQUE_CONFLICT

    def __init__(self, entity: str, field: str, value: object):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field}={value!r} already exists")


# Referential integrity


class ReferentialConflictError(FleetKernelError):
    """Base exception for operations blocked by dependent rows."""

    code: str = "REFERENTIAL_CONFLICT"
    kind: ErrorKind = ErrorKind.REFERENTIAL_CONFLICT


class DriverReferencedError(ReferentialConflictError):
    """Driver cannot be deleted while trips reference it."""

    code: str = "DRIVER_REFERENCED"

    def __init__(self, driver_id: int, trip_count: int):
        self.driver_id = driver_id
        self.trip_count = trip_count
        super().__init__(
            f"Driver {driver_id} cannot be deleted: referenced by {trip_count} trip(s)"
        )


class ForeignKeyViolationError(ReferentialConflictError):
    """The storage-level foreign key constraint rejected a write."""

    code: str = "FOREIGN_KEY_VIOLATION"

    def __init__(self, entity: str, detail: str):
        self.entity = entity
        self.detail = detail
        super().__init__(f"Foreign key violation on {entity}: {detail}")


# State machine


class StateConflictError(FleetKernelError):
    """Base exception for operations that conflict with the current state."""

    code: str = "STATE_CONFLICT"
    kind: ErrorKind = ErrorKind.STATE_CONFLICT


class TripAlreadyFinishedError(StateConflictError):
    """Finalize was invoked on a trip that is already Finished."""

    code: str = "TRIP_ALREADY_FINISHED"

    def __init__(self, trip_id: int):
        self.trip_id = trip_id
        super().__init__(f"Trip {trip_id} is already finished")


class InvalidTransitionError(StateConflictError):
    """Requested status change is not a transition of the trip workflow."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_state: str, to_state: str, reason: str):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason
        super().__init__(
            f"Cannot move trip from {from_state} to {to_state}: {reason}"
        )


class OptimisticLockError(StateConflictError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity} {entity_id}: "
            "entity was modified by another transaction"
        )


# Storage


class StorageFailureError(FleetKernelError):
    """The entity store is unreachable or returned an unexpected error."""

    code: str = "STORAGE_FAILURE"
    kind: ErrorKind = ErrorKind.STORAGE_FAILURE

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")
