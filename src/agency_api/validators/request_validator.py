"""
Request body validation for entity writes.

`validate(schema, mode, raw)` checks a decoded JSON body against the schema
registry and returns the normalized field map, or raises
`RequestValidationFailed` with every violation it found.

Modes:
    create   all required fields must be present (primary key and name)
    replace  every mutable field must be present; optional ones may be null
    patch    nothing is required; absent fields are left out of the update

Normalization by field kind:
    string   trimmed, markup characters escaped
    integer  parsed to int
    float    parsed to float
    date     parsed to datetime.date from YYYY-MM-DD

Explicit null is kept (and later stored as NULL) for optional fields and is a
violation for required ones. The primary key may not appear in a replace or
patch body: the key comes from the URL and is never updated.
"""

from __future__ import annotations

import math
import re
from datetime import date
from enum import Enum
from typing import Any, Callable, Mapping

from agency_api.exceptions.base import RequestValidationFailed, Violation
from agency_api.schemas.registry import EntitySchema, FieldKind, FieldSpec


class Mode(str, Enum):
    CREATE = "create"
    REPLACE = "replace"
    PATCH = "patch"


# Same replacements as validator.js `escape()`.
_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})

# Numeric and date input is ASCII only.
_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def escape_markup(value: str) -> str:
    return value.translate(_HTML_ESCAPES)


# =================================================================================================================
# Per-kind coercion. Each returns the normalized value or raises ValueError(reason).
# =================================================================================================================

def _to_string(spec: FieldSpec, value: Any, mode: Mode) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(f"{spec.name} must be a string")

    text = str(value).strip()
    if spec.required and mode is not Mode.PATCH and not text:
        raise ValueError(f"{spec.name} is required")
    return escape_markup(text)


def _to_integer(spec: FieldSpec, value: Any, mode: Mode) -> int:
    if not isinstance(value, bool):
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and _INTEGER_RE.fullmatch(value.strip()):
            return int(value.strip())
    raise ValueError(f"{spec.name} must be an integer")


def _to_float(spec: FieldSpec, value: Any, mode: Mode) -> float:
    parsed: float | None = None
    if not isinstance(value, bool):
        if isinstance(value, (int, float)):
            try:
                parsed = float(value)
            except OverflowError:
                pass  # integer beyond float range
        elif isinstance(value, str) and _FLOAT_RE.fullmatch(value.strip()):
            parsed = float(value.strip())

    if parsed is None or not math.isfinite(parsed):
        raise ValueError(f"{spec.name} must be a number")
    return parsed


def _to_date(spec: FieldSpec, value: Any, mode: Mode) -> date:
    if isinstance(value, str) and _ISO_DATE_RE.fullmatch(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass  # well-formed but not a calendar date, e.g. 2024-02-30
    raise ValueError(f"{spec.name} must be a valid date")


_COERCERS: dict[FieldKind, Callable[[FieldSpec, Any, Mode], Any]] = {
    FieldKind.STRING: _to_string,
    FieldKind.INTEGER: _to_integer,
    FieldKind.FLOAT: _to_float,
    FieldKind.DATE: _to_date,
}


# =================================================================================================================
# Entry point
# =================================================================================================================

def _fields_to_check(schema: EntitySchema, mode: Mode, raw: Mapping[str, Any]) -> tuple[FieldSpec, ...]:
    if mode is Mode.CREATE:
        return schema.fields
    if mode is Mode.REPLACE:
        return schema.mutable_fields
    # patch: only what the caller sent, in the caller's order
    return tuple(
        schema.field(name)
        for name in raw
        if schema.has_field(name) and not schema.field(name).primary_key
    )


def validate(schema: EntitySchema, mode: Mode | str, raw: Any) -> dict[str, Any]:
    """
    Validate and normalize a request body.

    Args:
        schema: registry entry of the target entity.
        mode: "create", "replace" or "patch".
        raw: decoded JSON body.

    Returns:
        Normalized field map. Schema order for create/replace, body order for patch.

    Raises:
        RequestValidationFailed: with all violations, in field order, followed by
            violations for unknown or non-updatable fields.
    """
    mode = Mode(mode)

    if not isinstance(raw, Mapping):
        raise RequestValidationFailed([Violation("body", "Request body must be a JSON object")])

    violations: list[Violation] = []
    normalized: dict[str, Any] = {}

    for spec in _fields_to_check(schema, mode, raw):
        if spec.name not in raw:
            if mode is Mode.REPLACE or (mode is Mode.CREATE and spec.required):
                violations.append(Violation(spec.name, f"{spec.name} is required"))
            continue

        value = raw[spec.name]
        if value is None:
            if spec.required:
                violations.append(Violation(spec.name, f"{spec.name} is required"))
            else:
                normalized[spec.name] = None
            continue

        try:
            normalized[spec.name] = _COERCERS[spec.kind](spec, value, mode)
        except ValueError as exc:
            violations.append(Violation(spec.name, str(exc)))

    for name in raw:
        if not schema.has_field(name):
            violations.append(Violation(name, f"{name} is not a known field"))
        elif mode is not Mode.CREATE and schema.field(name).primary_key:
            violations.append(Violation(name, f"{name} is the primary key and cannot be updated"))

    if violations:
        raise RequestValidationFailed(violations)
    return normalized


__all__ = ["Mode", "validate", "escape_markup"]
