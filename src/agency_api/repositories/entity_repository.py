"""
Repository for the four entity collections (agents, company, customer, orders).

One `EntityRepository` serves one registry entry. Each operation validates the
request body for its mode, builds exactly one parameterized statement and
hands it to the persistence gateway:

    list_all()          SELECT every column of every row
    create(body)        INSERT with every column (absent ones NULL)
    replace(key, body)  UPDATE every mutable column
    patch(key, body)    UPDATE only the columns present in the body
    delete(key)         DELETE by primary key

A key that matches no row is not an error: the write reports affectedRows 0.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from agency_api.db.gateway import PersistenceGateway, QueryResult
from agency_api.db.statements import Statement, StatementBuilder
from agency_api.exceptions.base import RequestValidationFailed
from agency_api.schemas.registry import EntitySchema
from agency_api.validators.request_validator import Mode, validate

logger = logging.getLogger(__name__)


class EntityRepository:
    """
    Validate-build-execute pipeline for one entity.

    Args:
        schema: registry entry of the entity.
        gateway: gateway whose engine the statements run on. The statement
            builder follows the gateway's dialect for placeholders and quoting.
    """

    def __init__(self, schema: EntitySchema, gateway: PersistenceGateway):
        self.schema = schema
        self.gateway = gateway
        self.builder = StatementBuilder.for_dialect(gateway.dialect)

    async def _run(self, operation: str, statement: Statement, **log_fields: Any) -> QueryResult:
        start = time.perf_counter()
        result = await self.gateway.execute(statement)
        duration_ms = int((time.perf_counter() - start) * 1000)

        extra = {
            "entity": self.schema.kind.value,
            "operation": operation,
            "duration_ms": duration_ms,
            **log_fields,
        }
        if result.rows is not None:
            extra["row_count"] = len(result.rows)
        else:
            extra["affected_rows"] = result.affected_rows
        logger.info(f"repo.{operation}.success", extra=extra)
        return result

    def _validate(self, operation: str, mode: Mode, body: Any) -> dict[str, Any]:
        # keys only; values may be anything a client sent
        logger.debug(
            f"repo.{operation}.start",
            extra={
                "entity": self.schema.kind.value,
                "operation": operation,
                "provided_keys": sorted(body.keys()) if isinstance(body, dict) else None,
            },
        )
        try:
            return validate(self.schema, mode, body)
        except RequestValidationFailed as exc:
            logger.info(
                f"repo.{operation}.invalid",
                extra={
                    "entity": self.schema.kind.value,
                    "operation": operation,
                    "invalid_fields": exc.fields,
                },
            )
            raise

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def list_all(self) -> list[dict[str, Any]]:
        result = await self._run("list", self.builder.select_all(self.schema))
        return result.rows or []

    # =================================================================================================================
    # Write
    # =================================================================================================================

    async def create(self, body: Any) -> QueryResult:
        """
        Insert one record.

        Raises:
            RequestValidationFailed: body violates the create rules; nothing is executed.
            PersistenceError: the store rejected the insert (e.g. duplicate key).
        """
        fields = self._validate("create", Mode.CREATE, body)
        statement = self.builder.insert(self.schema, fields)
        return await self._run("create", statement, key=fields.get(self.schema.primary_key.name))

    async def replace(self, key: str, body: Any) -> QueryResult:
        """Overwrite every mutable column of the row identified by `key`."""
        fields = self._validate("replace", Mode.REPLACE, body)
        statement = self.builder.update_full(self.schema, fields, key)
        return await self._run("replace", statement, key=key)

    async def patch(self, key: str, body: Any) -> QueryResult:
        """
        Update only the columns present in `body`.

        An empty body is valid and still runs a no-op UPDATE, so the result tells
        whether `key` exists.
        """
        fields = self._validate("patch", Mode.PATCH, body)
        statement = self.builder.update_partial(self.schema, fields, key)
        return await self._run("patch", statement, key=key, updated_fields=list(fields))

    async def delete(self, key: str) -> QueryResult:
        logger.debug(
            "repo.delete.start",
            extra={"entity": self.schema.kind.value, "operation": "delete", "key": key},
        )
        return await self._run("delete", self.builder.delete(self.schema, key), key=key)


__all__ = ["EntityRepository"]
