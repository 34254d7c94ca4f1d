"""
Pydantic record models for list responses, generated from the schema registry.

FastAPI uses them as `response_model` so the generated OpenAPI document lists
every column with its type, and each row coming back from the store is coerced
into the declared types (e.g. DECIMAL -> float) before serialization.
"""

from __future__ import annotations

from datetime import date
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, create_model

from .registry import REGISTRY, EntityKind, EntitySchema, FieldKind

_PYTHON_TYPES: dict[FieldKind, type] = {
    FieldKind.STRING: str,
    FieldKind.INTEGER: int,
    FieldKind.FLOAT: float,
    FieldKind.DATE: date,
}


class EntityRecord(BaseModel):
    # Column names are upper-case and come straight from the table definition.
    model_config = ConfigDict(extra="ignore")


def build_record_model(schema: EntitySchema) -> type[EntityRecord]:
    definitions: dict[str, Any] = {}
    for spec in schema.fields:
        py_type = _PYTHON_TYPES[spec.kind]
        if spec.required:
            definitions[spec.name] = (py_type, ...)
        else:
            definitions[spec.name] = (py_type | None, None)
    return create_model(schema.label, __base__=EntityRecord, **definitions)


RECORD_MODELS: Mapping[EntityKind, type[EntityRecord]] = MappingProxyType(
    {kind: build_record_model(schema) for kind, schema in REGISTRY.items()}
)


def get_record_model(kind: EntityKind) -> type[EntityRecord]:
    return RECORD_MODELS[kind]
