"""Shared database helpers: session scopes and store error translation."""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from api.shared.exceptions import (
    ConnectivityError,
    ConstraintViolationError,
    PersistenceError,
    TransactionAbortedError,
)
from infra.resources import DatabaseResource


def to_persistence_error(exc: BaseException, operation: str) -> PersistenceError:
    """Map a store failure onto the persistence error taxonomy."""
    details = {"operation": operation, "cause": exc.__class__.__name__}
    if isinstance(exc, IntegrityError):
        return ConstraintViolationError(f"{operation}: constraint violated", details)
    if isinstance(exc, (OperationalError, InterfaceError, PoolTimeoutError, OSError)):
        return ConnectivityError(f"{operation}: store unavailable", details)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return ConnectivityError(f"{operation}: connection lost", details)
    return PersistenceError(f"{operation}: {exc}", details=details)


@asynccontextmanager
async def translate_db_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise store failures as persistence errors, keeping the original as ``__cause__``."""
    try:
        yield
    except PersistenceError:
        raise
    except (SQLAlchemyError, OSError) as exc:
        raise to_persistence_error(exc, operation) from exc


@asynccontextmanager
async def session_scope(database: DatabaseResource) -> AsyncIterator[AsyncSession]:
    """Yield a session for one unit of work and always close it."""
    session = database.get_session()
    try:
        yield session
    finally:
        await session.close()


@asynccontextmanager
async def transaction_scope(
    database: DatabaseResource, operation: str
) -> AsyncIterator[AsyncSession]:
    """Run the body inside one transaction; any failure rolls back everything.

    Store errors raised inside the block surface as ``TransactionAbortedError``.
    """
    async with session_scope(database) as session:
        try:
            async with session.begin():
                yield session
        except PersistenceError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            details = {"operation": operation, "cause": exc.__class__.__name__}
            raise TransactionAbortedError(
                f"{operation}: transaction rolled back", details
            ) from exc
