"""
Common base for kernel services.

A service works inside a transaction it does not own: it may flush, but
committing or rolling back is left to whoever opened the session
(FleetOperations in production, the ``session`` fixture in tests).  That
keeps reference resolution and the write that depends on it in one unit.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """Holds the caller's session; never commits or rolls it back."""

    def __init__(self, session: Session):
        self.session = session
