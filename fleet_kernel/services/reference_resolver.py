"""
ReferenceResolver -- turn the keys a trip names into canonical ids.

Responsibility:
    A trip payload identifies its truck by plate and its driver and client
    by id.  The resolver normalizes each key and confirms the referenced row
    exists, returning its canonical id.

Invariants enforced:
    - No side effects.  With ``lock=True`` the row is read FOR SHARE so a
      concurrent delete of the referenced entity waits for the caller's
      transaction (PostgreSQL; SQLite serializes writers instead).
    - Each kind has its own NotFound subclass so callers can tell a missing
      truck from a missing driver or client.
"""

from __future__ import annotations

from typing import Any

from fleet_kernel.domain.references import EntityKind, normalize_plate, parse_entity_id
from fleet_kernel.models import Client, Driver, Truck
from fleet_kernel.services.entity_store import EntityStore

_ID_MODELS = {
    EntityKind.DRIVER: (Driver, "driver_id"),
    EntityKind.CLIENT: (Client, "client_id"),
}


class ReferenceResolver:
    """Resolves plates and ids against the entity store."""

    def __init__(self, store: EntityStore):
        self._store = store

    def resolve(self, kind: EntityKind, key: Any, *, lock: bool = False) -> int:
        """
        Resolve ``key`` to the id of an existing entity of ``kind``.

        Raises:
            InvalidInputError: the key is malformed (empty plate, non-integer id).
            TruckNotFoundError / DriverNotFoundError / ClientNotFoundError:
                no such entity.
        """
        kind = EntityKind(kind)
        if kind is EntityKind.TRUCK:
            plate = normalize_plate(key)
            truck = self._store.get_by_unique_key(Truck, "plate", plate, lock=lock)
            return truck.id

        model, field = _ID_MODELS[kind]
        entity_id = parse_entity_id(key, field)
        if lock:
            entity = self._store.lock(model, entity_id, shared=True)
        else:
            entity = self._store.get_by_id(model, entity_id)
        return entity.id

    def resolve_truck(self, plate: Any, *, lock: bool = False) -> int:
        return self.resolve(EntityKind.TRUCK, plate, lock=lock)

    def resolve_driver(self, driver_id: Any, *, lock: bool = False) -> int:
        return self.resolve(EntityKind.DRIVER, driver_id, lock=lock)

    def resolve_client(self, client_id: Any, *, lock: bool = False) -> int:
        return self.resolve(EntityKind.CLIENT, client_id, lock=lock)
