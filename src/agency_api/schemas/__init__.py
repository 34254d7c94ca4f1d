from .registry import EntityKind, FieldKind, FieldSpec, EntitySchema, REGISTRY, get_schema
from .entities import EntityRecord, get_record_model

__all__ = [
    "EntityKind",
    "FieldKind",
    "FieldSpec",
    "EntitySchema",
    "REGISTRY",
    "get_schema",
    "EntityRecord",
    "get_record_model",
]
