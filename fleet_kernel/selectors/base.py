"""
Module: fleet_kernel.selectors.base
Responsibility: Base for the read side of the kernel.
Architecture position: Kernel > Selectors.  May import from models/ and the
    pure value objects in domain/, never from services/.

Invariants enforced:
    - A selector only issues SELECTs on the session it is given.  No add,
      delete, flush or commit.
    - Results are frozen DTOs from domain/dtos.py, not ORM rows, so nothing
      a caller does to a result can reach the session.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Read-only queries over a caller-owned session."""

    def __init__(self, session: Session):
        self.session = session
