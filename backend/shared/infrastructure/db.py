"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns over SQLite.

A single engine is created per process; each request gets its own Session
through ``get_db``. Multi-step mutations run inside ``transaction()``, which
commits once at the end or rolls everything back.
"""

from collections.abc import Callable, Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from shared.config.settings import DATABASE_URL
from shared.config.logging import get_logger
from shared.utils.exceptions import AppException, DatabaseError

logger = get_logger(__name__)

IS_SQLITE = DATABASE_URL.startswith("sqlite")


def build_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine with the SQLite pragmas the store relies on.

    Foreign keys are off by default in SQLite; turn them on for every
    connection so line items, movements and payments cannot point at
    missing rows.
    """
    connect_args = {"check_same_thread": False, "timeout": 30} if url.startswith("sqlite") else {}
    new_engine = create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        echo=False,
        **kwargs,
    )

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragmas(dbapi_connection, connection_record):
            cur = dbapi_connection.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA busy_timeout=30000;")
            cur.close()

    return new_engine


engine = build_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.scalars(select(Item)).all()

    The session is automatically closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            seed(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_unique_violation(error: IntegrityError) -> bool:
    """True when the store rejected a duplicate value of a unique column."""
    message = str(error.orig).lower()
    return "unique" in message or "duplicate key" in message


@contextmanager
def transaction(
    db: Session,
    operation: str,
    on_duplicate: Callable[[], AppException] | None = None,
) -> Generator[Session, None, None]:
    """
    Run a block of writes as one atomic unit.

    Commits when the block finishes. On any exception the whole unit is
    rolled back before the error propagates: typed ``AppException`` errors
    are re-raised unchanged, store failures are wrapped in ``DatabaseError``.

    ``on_duplicate`` builds the error raised instead when a unique column
    rejects the write, which happens when two requests pass the same
    uniqueness check concurrently.

    Usage:
        with transaction(db, "cancelar orden"):
            restore_stock(...)
            order.status = OrderStatus.CANCELADA.value
    """
    try:
        yield db
        db.commit()
    except AppException:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if on_duplicate is not None and is_unique_violation(e):
            logger.warning("Unique constraint rejected write", operation=operation)
            raise on_duplicate() from e
        logger.error("Transaction rolled back", operation=operation, error=str(e))
        raise DatabaseError(operation) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Transaction rolled back", operation=operation, error=str(e))
        raise DatabaseError(operation) from e
    except Exception:
        db.rollback()
        raise
