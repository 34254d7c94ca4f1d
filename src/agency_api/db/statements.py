"""
Build parameterized SQL statements from the schema registry.

Every statement is a `Statement(kind, sql, args)`: the SQL text carries only
identifiers taken from the registry and placeholders; every value travels in
`args`, in placeholder order. Nothing a client sends is ever spliced into the
SQL text.

Placeholders follow the DB-API paramstyle of the driver in use, so the text
can go straight to `AsyncConnection.exec_driver_sql()`:

    qmark           ?          (sqlite3 / aiosqlite)
    format          %s         (pymysql / aiomysql)
    pyformat        %s         (psycopg)
    numeric         :1         (positional numeric)
    numeric_dollar  $1         (asyncpg)

Example:
    builder = StatementBuilder()
    stmt = builder.update_partial(get_schema("agents"), {"COUNTRY": "USA"}, "A001")
    stmt.sql   # 'UPDATE agents SET COUNTRY = ? WHERE AGENT_CODE = ?'
    stmt.args  # ('USA', 'A001')
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from sqlalchemy.engine import Dialect

from agency_api.schemas.registry import EntitySchema


class StatementKind(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Statement:
    kind: StatementKind
    sql: str
    args: tuple[Any, ...] = ()

    @property
    def returns_rows(self) -> bool:
        return self.kind is StatementKind.SELECT


def _identity(name: str) -> str:
    return name


class StatementBuilder:
    """
    Turns (schema, validated fields, key) into a `Statement`.

    Args:
        paramstyle: DB-API paramstyle of the target driver.
        quote: identifier quoting function; defaults to no quoting.
    """

    def __init__(self, paramstyle: str = "qmark", quote: Callable[[str], str] | None = None):
        if paramstyle not in ("qmark", "format", "pyformat", "numeric", "numeric_dollar"):
            raise ValueError(f"Unsupported paramstyle for positional binding: {paramstyle!r}")
        self.paramstyle = paramstyle
        self.quote = quote or _identity

    @classmethod
    def for_dialect(cls, dialect: Dialect) -> "StatementBuilder":
        """Use the dialect's paramstyle and its identifier quoting rules."""
        return cls(dialect.paramstyle, dialect.identifier_preparer.quote)

    # -----------------------
    # helpers
    # -----------------------

    def _placeholder(self, position: int) -> str:
        # position is 1-based
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle in ("format", "pyformat"):
            return "%s"
        if self.paramstyle == "numeric":
            return f":{position}"
        return f"${position}"

    def _assignments(self, schema: EntitySchema, names: list[str]) -> str:
        return ", ".join(
            f"{self.quote(schema.field(name).name)} = {self._placeholder(i)}"
            for i, name in enumerate(names, start=1)
        )

    def _key_predicate(self, schema: EntitySchema, position: int) -> str:
        return f"{self.quote(schema.primary_key.name)} = {self._placeholder(position)}"

    # -----------------------
    # statements
    # -----------------------

    def select_all(self, schema: EntitySchema) -> Statement:
        columns = ", ".join(self.quote(name) for name in schema.column_names)
        sql = f"SELECT {columns} FROM {self.quote(schema.table)}"
        return Statement(StatementKind.SELECT, sql)

    def insert(self, schema: EntitySchema, fields: Mapping[str, Any]) -> Statement:
        """Insert every registry column in fixed order; absent fields bind NULL."""
        for name in fields:
            schema.field(name)  # KeyError on anything outside the registry

        columns = ", ".join(self.quote(name) for name in schema.column_names)
        placeholders = ", ".join(self._placeholder(i) for i in range(1, len(schema.fields) + 1))
        sql = f"INSERT INTO {self.quote(schema.table)} ({columns}) VALUES ({placeholders})"
        args = tuple(fields.get(name) for name in schema.column_names)
        return Statement(StatementKind.INSERT, sql, args)

    def update_full(self, schema: EntitySchema, fields: Mapping[str, Any], key: Any) -> Statement:
        """Set every mutable column in fixed order; missing entries bind NULL."""
        for name in fields:
            if schema.field(name).primary_key:
                raise KeyError(f"{name} is the primary key of {schema.label}")

        names = [f.name for f in schema.mutable_fields]
        sql = (
            f"UPDATE {self.quote(schema.table)} SET {self._assignments(schema, names)} "
            f"WHERE {self._key_predicate(schema, len(names) + 1)}"
        )
        args = tuple(fields.get(name) for name in names) + (key,)
        return Statement(StatementKind.UPDATE, sql, args)

    def update_partial(self, schema: EntitySchema, fields: Mapping[str, Any], key: Any) -> Statement:
        """
        Set only the given columns, in the map's order.

        An empty map still yields a valid statement: the key column is assigned to
        itself, which changes nothing but reports whether the row exists.
        """
        names = list(fields)
        for name in names:
            if schema.field(name).primary_key:
                raise KeyError(f"{name} is the primary key of {schema.label}")

        table = self.quote(schema.table)
        if not names:
            pk = self.quote(schema.primary_key.name)
            sql = f"UPDATE {table} SET {pk} = {pk} WHERE {self._key_predicate(schema, 1)}"
            return Statement(StatementKind.UPDATE, sql, (key,))

        sql = (
            f"UPDATE {table} SET {self._assignments(schema, names)} "
            f"WHERE {self._key_predicate(schema, len(names) + 1)}"
        )
        args = tuple(fields[name] for name in names) + (key,)
        return Statement(StatementKind.UPDATE, sql, args)

    def delete(self, schema: EntitySchema, key: Any) -> Statement:
        sql = f"DELETE FROM {self.quote(schema.table)} WHERE {self._key_predicate(schema, 1)}"
        return Statement(StatementKind.DELETE, sql, (key,))


__all__ = ["StatementKind", "Statement", "StatementBuilder"]
