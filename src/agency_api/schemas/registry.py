"""
Schema registry: the static description of every entity the API serves.

Each entity kind maps to an `EntitySchema` holding its table, URL path, label
and the ordered list of field descriptors. The descriptors are read once from
the SQLAlchemy tables in `agency_api.models`, so the DDL and the validation
rules cannot drift apart:

    - column order        -> field order (INSERT column list, full UPDATE SET list)
    - column type         -> field kind (string / integer / float / date)
    - nullable=False / PK -> required

Nothing here has behavior beyond lookup.

Usage:
    from agency_api.schemas.registry import EntityKind, get_schema

    schema = get_schema(EntityKind.AGENT)
    schema.primary_key.name        # "AGENT_CODE"
    [f.name for f in schema.mutable_fields]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from sqlalchemy import Column, Date, Integer, Numeric, String

from agency_api.database.base import Base
from agency_api.models import Agent, Company, Customer, Order


class EntityKind(str, Enum):
    """Entity kinds; the value is the URL path segment."""

    AGENT = "agents"
    COMPANY = "company"
    CUSTOMER = "customer"
    ORDER = "orders"


class FieldKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    required: bool
    primary_key: bool = False


@dataclass(frozen=True)
class EntitySchema:
    kind: EntityKind
    label: str              # "Agent", used in response messages
    table: str
    key_param: str          # name of the path parameter in docs ("code", "id", "number")
    fields: tuple[FieldSpec, ...]

    @property
    def path(self) -> str:
        return f"/{self.kind.value}"

    @property
    def primary_key(self) -> FieldSpec:
        return next(f for f in self.fields if f.primary_key)

    @property
    def mutable_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if not f.primary_key)

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"{self.label} has no field {name!r}")


# =================================================================================================================
# Building descriptors from table metadata
# =================================================================================================================

def _field_kind(column: Column) -> FieldKind:
    # Order matters only for readability: none of these types subclass each other.
    if isinstance(column.type, Date):
        return FieldKind.DATE
    if isinstance(column.type, Integer):
        return FieldKind.INTEGER
    if isinstance(column.type, Numeric):     # Float is a Numeric
        return FieldKind.FLOAT
    if isinstance(column.type, String):
        return FieldKind.STRING
    raise TypeError(f"Unsupported column type for {column.name}: {column.type!r}")


def _fields_from_model(model: type[Base]) -> tuple[FieldSpec, ...]:
    fields = []
    for column in model.__table__.columns:
        fields.append(
            FieldSpec(
                name=column.name,
                kind=_field_kind(column),
                required=bool(column.primary_key or not column.nullable),
                primary_key=bool(column.primary_key),
            )
        )
    if sum(f.primary_key for f in fields) != 1:
        raise TypeError(f"{model.__name__} must have exactly one primary key column")
    return tuple(fields)


def _build_schema(kind: EntityKind, model: type[Base], key_param: str) -> EntitySchema:
    return EntitySchema(
        kind=kind,
        label=model.__name__,
        table=model.__tablename__,
        key_param=key_param,
        fields=_fields_from_model(model),
    )


REGISTRY: Mapping[EntityKind, EntitySchema] = MappingProxyType({
    EntityKind.AGENT: _build_schema(EntityKind.AGENT, Agent, "code"),
    EntityKind.COMPANY: _build_schema(EntityKind.COMPANY, Company, "id"),
    EntityKind.CUSTOMER: _build_schema(EntityKind.CUSTOMER, Customer, "code"),
    EntityKind.ORDER: _build_schema(EntityKind.ORDER, Order, "number"),
})


def get_schema(kind: EntityKind | str) -> EntitySchema:
    """
    Look up an entity schema by kind or by its path segment ("agents", "orders", ...).

    Raises:
        KeyError: unknown entity kind.
    """
    try:
        return REGISTRY[EntityKind(kind)]
    except ValueError:
        raise KeyError(f"Unknown entity kind: {kind!r}") from None


__all__ = [
    "EntityKind",
    "FieldKind",
    "FieldSpec",
    "EntitySchema",
    "REGISTRY",
    "get_schema",
]
