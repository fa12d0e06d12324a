"""
Module: fleet_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  This is the single point of database
    connection configuration for the entire system.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, domain/, or outer layers
    (except create_tables, which imports models so metadata is complete).

Invariants enforced:
    - No module-level engine.  A FleetDatabase is constructed once at process
      start, handed to whoever needs it, and closed on shutdown.
    - PostgreSQL sessions run at READ COMMITTED with explicit row-level
      locking (FOR UPDATE / FOR SHARE) where stronger isolation is needed.
    - SQLite connections enable foreign keys, set a busy timeout, and open
      every transaction with BEGIN IMMEDIATE so that writers serialize on the
      database lock instead of failing mid-transaction.

Failure modes:
    - OperationalError when the database is unreachable (surfaced to callers
      as StorageFailureError by the operations facade).
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fleet_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _install_sqlite_listeners(engine: Engine, busy_timeout_ms: int) -> None:
    """Apply per-connection pragmas and take over transaction begin."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy (not pysqlite) emit BEGIN so SAVEPOINT works
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class FleetDatabase:
    """
    Explicitly constructed database handle.

    Contract:
        Owns one Engine and one sessionmaker.  Callers obtain sessions via
        session_scope() (commit on success, rollback on error) or session()
        (caller manages the transaction).  close() disposes the pool.

    Non-goals:
        - Does NOT retry failed transactions; retries belong to the caller.
        - Does NOT run schema migrations; create_tables() only creates
          missing tables.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        busy_timeout_seconds: float = 30.0,
    ):
        """
        Initialize the engine from a database URL.

        Args:
            url: SQLAlchemy URL (sqlite:///path.db or postgresql://...).
            echo: If True, log all SQL statements.
            pool_size: Connections kept in the pool (PostgreSQL only).
            max_overflow: Connections beyond pool_size (PostgreSQL only).
            pool_timeout: Seconds to wait for a pooled connection.
            pool_recycle: Seconds after which a connection is recycled.
            busy_timeout_seconds: How long a SQLite writer waits for the lock.
        """
        self.url = url
        backend = make_url(url).get_backend_name()
        self.is_sqlite = backend == "sqlite"

        if self.is_sqlite:
            self._engine = create_engine(
                url,
                echo=echo,
                pool_timeout=pool_timeout,
                connect_args={"check_same_thread": False},
            )
            _install_sqlite_listeners(
                self._engine, int(busy_timeout_seconds * 1000)
            )
        else:
            self._engine = create_engine(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                isolation_level="READ COMMITTED",
            )

        self._session_factory = sessionmaker(
            bind=self._engine, expire_on_commit=False
        )

        logger.info(
            "engine_initialized",
            extra={
                "dialect": backend,
                "pool_size": None if self.is_sqlite else pool_size,
                "echo": echo,
            },
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Session factory for multi-threaded callers needing their own sessions."""
        return self._session_factory

    def session(self) -> Session:
        """Get a new session; the caller owns commit/rollback/close."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with database.session_scope() as session:
                store = EntityStore(session)
                ...
                # Commits on successful exit, rolls back on exception
        """
        session = self.session()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.debug("transaction_rolled_back")
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables defined in the models (missing tables only)."""
        from fleet_kernel.db.base import Base
        import fleet_kernel.models  # noqa: F401

        Base.metadata.create_all(self._engine)
        logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        from fleet_kernel.db.base import Base
        import fleet_kernel.models  # noqa: F401

        Base.metadata.drop_all(self._engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.error("database_ping_failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        """Dispose the connection pool."""
        self._engine.dispose()
        logger.info("engine_disposed")
