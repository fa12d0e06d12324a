"""
EntityStore -- keyed storage for trucks, drivers, clients and trips.

Responsibility:
    The single persistence seam the lifecycle, registry and resolver use.
    Wraps a caller-owned SQLAlchemy ``Session`` and translates storage
    outcomes into the kernel's typed exceptions:

        insert            -> id             | UniqueConflictError
        get_by_id         -> entity         | <Entity>NotFoundError
        get_by_unique_key -> entity         | <Entity>NotFoundError
        update            -> entity         | NotFound / UniqueConflict /
                                              OptimisticLockError
        delete            -> None           | NotFound / ForeignKeyViolation
        count_referencing -> int

Invariants enforced:
    - Uniqueness is enforced by database constraints, never only by a
      pre-check.  Writes run inside a SAVEPOINT so a violation rolls back
      the failed statement and leaves the surrounding transaction usable.
    - Flush-only: the store never commits (see BaseService).
    - Optimistic locking: entities with a version_id_col raise
      OptimisticLockError when the row changed since it was read.

Failure modes:
    - Any SQLAlchemyError not classified here propagates unchanged; the
      operations facade reports it as StorageFailureError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from fleet_kernel.db.base import Base
from fleet_kernel.exceptions import (
    ClientNotFoundError,
    DriverNotFoundError,
    FleetKernelError,
    ForeignKeyViolationError,
    NotFoundError,
    OptimisticLockError,
    StorageFailureError,
    TripNotFoundError,
    TruckNotFoundError,
    UniqueConflictError,
)
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models import Client, Driver, Trip, Truck
from fleet_kernel.services.base import BaseService

logger = get_logger("services.entity_store")

EntityT = TypeVar("EntityT", bound=Base)

_NOT_FOUND: dict[type[Base], type[NotFoundError]] = {
    Truck: TruckNotFoundError,
    Driver: DriverNotFoundError,
    Client: ClientNotFoundError,
    Trip: TripNotFoundError,
}

# field -> constraint name, per model
_UNIQUE_KEYS: dict[type[Base], dict[str, str]] = {
    Truck: {"plate": "uq_truck_plate"},
    Driver: {"name": "uq_driver_name"},
    Client: {"email": "uq_client_email"},
}


def entity_name(model: type[Base]) -> str:
    """Lowercase singular entity name used in errors and logs."""
    return model.__name__.lower()


class EntityStore(BaseService):
    """
    Mapping-style access to the four fleet entities.

    Contract:
        Every method works inside the caller's transaction.  Lookups that
        miss raise the NotFound subclass for the model; ``find_*`` variants
        return None instead.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, model: type[EntityT], entity_id: int) -> EntityT | None:
        return self.session.get(model, entity_id)

    def get_by_id(self, model: type[EntityT], entity_id: int) -> EntityT:
        entity = self.find_by_id(model, entity_id)
        if entity is None:
            raise self._not_found(model, entity_id)
        return entity

    def lock(
        self,
        model: type[EntityT],
        entity_id: int,
        *,
        shared: bool = False,
    ) -> EntityT:
        """
        Re-read a row under a row lock (FOR UPDATE, or FOR SHARE if shared).

        The row is refreshed from the database even if it is already in the
        identity map, so the caller sees the committed state it locked.
        """
        stmt = (
            select(model)
            .where(model.id == entity_id)
            .with_for_update(read=shared)
            .execution_options(populate_existing=True)
        )
        entity = self.session.execute(stmt).scalar_one_or_none()
        if entity is None:
            raise self._not_found(model, entity_id)
        return entity

    def find_by_unique_key(
        self,
        model: type[EntityT],
        column: str,
        key: Any,
        *,
        lock: bool = False,
    ) -> EntityT | None:
        stmt = select(model).where(getattr(model, column) == key)
        if lock:
            stmt = stmt.with_for_update(read=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_unique_key(
        self,
        model: type[EntityT],
        column: str,
        key: Any,
        *,
        lock: bool = False,
    ) -> EntityT:
        entity = self.find_by_unique_key(model, column, key, lock=lock)
        if entity is None:
            raise self._not_found(model, key)
        return entity

    def find_all(
        self,
        model: type[EntityT],
        *criteria: Any,
        order_by: Any = None,
    ) -> list[EntityT]:
        stmt = select(model).where(*criteria)
        stmt = stmt.order_by(order_by if order_by is not None else model.id)
        return list(self.session.execute(stmt).scalars().all())

    def count_referencing(
        self,
        model: type[Base],
        foreign_key: str,
        entity_id: int,
    ) -> int:
        """Number of ``model`` rows whose ``foreign_key`` column equals entity_id."""
        stmt = (
            select(func.count())
            .select_from(model)
            .where(getattr(model, foreign_key) == entity_id)
        )
        return int(self.session.execute(stmt).scalar_one())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, entity: EntityT) -> int:
        """Persist a new entity and return its generated id."""
        model = type(entity)
        self._flush_guarded(
            model,
            "insert",
            lambda: self.session.add(entity),
            values={f: getattr(entity, f) for f in _UNIQUE_KEYS.get(model, {})},
        )
        logger.debug(
            "entity_inserted",
            extra={"entity": entity_name(model), "entity_id": entity.id},
        )
        return entity.id

    def update(
        self,
        model: type[EntityT],
        entity_id: int,
        patch: Mapping[str, Any],
        *,
        entity: EntityT | None = None,
    ) -> EntityT:
        """
        Apply ``patch`` to the entity and flush.

        Args:
            entity: An already loaded (possibly locked) instance to patch
                instead of loading by id.
        """
        target = entity if entity is not None else self.get_by_id(model, entity_id)
        for field in patch:
            if not hasattr(model, field) or field in ("id", "version"):
                raise ValueError(f"{model.__name__} has no updatable field {field!r}")

        def apply() -> None:
            for field, value in patch.items():
                setattr(target, field, value)

        self._flush_guarded(
            model, "update", apply, entity_id=entity_id, values=patch
        )
        return target

    def delete(self, model: type[Base], entity_id: int) -> None:
        entity = self.get_by_id(model, entity_id)
        self._flush_guarded(
            model, "delete", lambda: self.session.delete(entity), entity_id=entity_id
        )
        logger.debug(
            "entity_deleted",
            extra={"entity": entity_name(model), "entity_id": entity_id},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _flush_guarded(
        self,
        model: type[Base],
        operation: str,
        mutate,
        *,
        entity_id: Any = None,
        values: Mapping[str, Any] | None = None,
    ) -> None:
        try:
            with self.session.begin_nested():
                mutate()
                self.session.flush()
        except IntegrityError as exc:
            raise self._translate_integrity(model, operation, exc, values or {}) from exc
        except StaleDataError as exc:
            logger.warning(
                "optimistic_lock_conflict",
                extra={"entity": entity_name(model), "entity_id": entity_id},
            )
            raise OptimisticLockError(entity_name(model), entity_id) from exc

    def _translate_integrity(
        self,
        model: type[Base],
        operation: str,
        exc: IntegrityError,
        values: Mapping[str, Any],
    ) -> FleetKernelError:
        message = str(exc.orig)
        lowered = message.lower()
        name = entity_name(model)

        for field, constraint in _UNIQUE_KEYS.get(model, {}).items():
            if constraint in message or f"{model.__tablename__}.{field}" in message:
                value = values.get(field)
                logger.info(
                    "unique_conflict",
                    extra={"entity": name, "field": field},
                )
                return UniqueConflictError(name, field, value)

        if "foreign key" in lowered:
            return ForeignKeyViolationError(name, message)

        return StorageFailureError(f"{name} {operation}", message)

    def _not_found(self, model: type[Base], key: Any) -> NotFoundError:
        error_cls = _NOT_FOUND.get(model, NotFoundError)
        return error_cls(key)
