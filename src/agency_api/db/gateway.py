"""
Persistence gateway: run one statement on one pooled connection.

`PersistenceGateway.execute(statement)` checks a connection out of the engine
pool, executes exactly one statement, commits if it was a write, and gives the
connection back to the pool on every exit path (success, store error, pool
timeout, cancellation) before the caller sees the result or the error.

Store errors are not told apart here: each one becomes a `PersistenceError`
carrying the driver's message. The failure kind is still classified and
logged so operators can tell a duplicate key from an exhausted pool.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from sqlalchemy.engine import CursorResult, Dialect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from agency_api.exceptions.base import PersistenceError
from agency_api.exceptions.classifier import classify_store_error, store_error_message

from .statements import Statement, StatementKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one statement: rows for a SELECT, counts for a write."""

    rows: list[dict[str, Any]] | None = None
    affected_rows: int = 0
    insert_id: Any = None
    statement_kind: StatementKind = field(default=StatementKind.SELECT)

    def to_payload(self) -> Any:
        if self.rows is not None:
            return self.rows
        payload: dict[str, Any] = {"affectedRows": self.affected_rows}
        if self.statement_kind is StatementKind.INSERT:
            payload["insertId"] = self.insert_id
        return payload


def _last_insert_id(result: CursorResult) -> Any:
    # Not every driver reports one (asyncpg does not); a missing id is not an error.
    try:
        return result.lastrowid
    except (AttributeError, NotImplementedError):
        return None


@asynccontextmanager
async def store_error_scope(statement: Statement) -> AsyncIterator[None]:
    """
    Translate anything the store raises inside the block into PersistenceError.

    Usage:
        async with store_error_scope(stmt):
            async with engine.connect() as conn:
                ...
    Keep the connection block *inside* this scope so the connection is already
    released when the translated error leaves it.
    """
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        kind = classify_store_error(exc)
        message = store_error_message(exc)
        logger.warning(
            "gateway.persistence_failure",
            extra={
                "statement_kind": statement.kind.value,
                "failure_kind": kind.value,
                "exc_type": type(exc).__name__,
            },
        )
        # SQL text carries no values, so it is safe at DEBUG
        logger.debug("gateway.persistence_failure.sql", extra={"sql": statement.sql})
        raise PersistenceError(message, kind=kind.value) from exc


class PersistenceGateway:
    """
    Executes statements against an injected AsyncEngine.

    The engine (and its pool) is owned by the caller; tests hand in an SQLite
    engine, the application hands in the configured MySQL/MariaDB one.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @property
    def dialect(self) -> Dialect:
        return self.engine.dialect

    @property
    def paramstyle(self) -> str:
        return self.engine.dialect.paramstyle

    async def execute(self, statement: Statement) -> QueryResult:
        """
        Run `statement` and return its QueryResult.

        Raises:
            PersistenceError: the store failed, or no pooled connection freed up in time.
        """
        start = time.perf_counter()

        async with store_error_scope(statement):
            async with self.engine.connect() as conn:
                result = await conn.exec_driver_sql(statement.sql, statement.args or None)

                if statement.returns_rows:
                    rows = [dict(row._mapping) for row in result]
                    outcome = QueryResult(rows=rows, statement_kind=statement.kind)
                else:
                    outcome = QueryResult(
                        affected_rows=result.rowcount,
                        insert_id=_last_insert_id(result) if statement.kind is StatementKind.INSERT else None,
                        statement_kind=statement.kind,
                    )
                    await conn.commit()

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(
            "gateway.execute.success",
            extra={
                "statement_kind": statement.kind.value,
                "row_count": len(outcome.rows) if outcome.rows is not None else outcome.affected_rows,
                "duration_ms": duration_ms,
            },
        )
        return outcome


__all__ = ["QueryResult", "PersistenceGateway", "store_error_scope"]
