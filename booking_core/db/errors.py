"""
Classification of driver errors surfaced through SQLAlchemy.

PostgreSQL drivers expose the SQLSTATE as ``sqlstate`` (asyncpg, psycopg)
or ``pgcode`` (psycopg2); SQLite exposes ``sqlite_errorname``.
"""

import asyncio

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

UNIQUE_VIOLATION = "23505"

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03", "57014"}


def _sqlstate(exc: DBAPIError):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: BaseException) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    orig = exc.orig
    if getattr(orig, "sqlite_errorname", None) == "SQLITE_CONSTRAINT_UNIQUE":
        return True
    return "UNIQUE constraint failed" in str(orig)


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (asyncio.TimeoutError, PoolTimeoutError, OSError)):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated or isinstance(exc, OperationalError):
            return True
        return _sqlstate(exc) in TRANSIENT_SQLSTATES
    return False
