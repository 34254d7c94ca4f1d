"""
Classify store failures into coarse kinds for logging.

The HTTP contract does not distinguish failure kinds (every store failure is a
500 carrying the store's message), but operators do: a burst of "unique"
failures means clients are re-posting, a burst of "pool_timeout" means the pool
is too small. The gateway attaches the kind to its log records and to
`PersistenceError.kind`.
"""

import logging
from enum import Enum

from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class StoreErrorKind(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    POOL_TIMEOUT = "pool_timeout"
    CONNECTIVITY = "connectivity"
    STATEMENT = "statement"
    UNKNOWN = "unknown"


# MySQL / MariaDB server and client error numbers
MYSQL_ERRNO_KINDS = {
    1062: StoreErrorKind.UNIQUE,        # ER_DUP_ENTRY
    1048: StoreErrorKind.NOT_NULL,      # ER_BAD_NULL_ERROR
    1364: StoreErrorKind.NOT_NULL,      # ER_NO_DEFAULT_FOR_FIELD
    1451: StoreErrorKind.FOREIGN_KEY,   # ER_ROW_IS_REFERENCED_2
    1452: StoreErrorKind.FOREIGN_KEY,   # ER_NO_REFERENCED_ROW_2
    3819: StoreErrorKind.CHECK,         # ER_CHECK_CONSTRAINT_VIOLATED
    2003: StoreErrorKind.CONNECTIVITY,  # CR_CONN_HOST_ERROR
    2006: StoreErrorKind.CONNECTIVITY,  # CR_SERVER_GONE_ERROR
    2013: StoreErrorKind.CONNECTIVITY,  # CR_SERVER_LOST
}


def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _from_driver_codes(orig) -> StoreErrorKind | None:
    args = getattr(orig, "args", None) or ()
    if args and isinstance(args[0], int):
        return MYSQL_ERRNO_KINDS.get(args[0])
    return None


def _from_message(msg: str) -> StoreErrorKind | None:
    normalized = msg.lower()

    if _match_any(normalized, ["unique constraint", "duplicate"]):
        return StoreErrorKind.UNIQUE
    if _match_any(normalized, ["not null constraint", "cannot be null"]):
        return StoreErrorKind.NOT_NULL
    if _match_any(normalized, ["foreign key"]):
        return StoreErrorKind.FOREIGN_KEY
    if _match_any(normalized, ["check constraint"]):
        return StoreErrorKind.CHECK
    if _match_any(normalized, ["no such table", "no such column", "doesn't exist", "unknown column", "syntax error"]):
        return StoreErrorKind.STATEMENT
    return None


def classify_store_error(exc: BaseException) -> StoreErrorKind:
    """
    Best-effort classification of an exception raised while executing a statement.
    """
    if isinstance(exc, sa_exc.TimeoutError):
        return StoreErrorKind.POOL_TIMEOUT

    if isinstance(exc, sa_exc.DBAPIError):
        orig = exc.orig
        kind = _from_driver_codes(orig) or _from_message(str(orig))
        if kind is not None:
            return kind
        if exc.connection_invalidated or isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError)):
            return StoreErrorKind.CONNECTIVITY
        if isinstance(exc, sa_exc.ProgrammingError):
            return StoreErrorKind.STATEMENT

    if isinstance(exc, OSError):
        return StoreErrorKind.CONNECTIVITY

    logger.debug("Unclassified store error", extra={"exc_type": type(exc).__name__})
    return StoreErrorKind.UNKNOWN


def store_error_message(exc: BaseException) -> str:
    """The store's own message: the driver exception text when there is one."""
    if isinstance(exc, sa_exc.DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


__all__ = ["StoreErrorKind", "classify_store_error", "store_error_message"]
