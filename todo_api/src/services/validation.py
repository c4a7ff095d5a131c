"""
Declarative payload validation.

A schema maps field names to a typed ``FieldRule``::

    schema = {
        "name": FieldRule(FieldKind.STRING, required=True),
        "completed": FieldRule(FieldKind.BOOLEAN),
    }

The compact pipe notation used by older endpoint declarations is accepted
as well and produces the same rule objects::

    schema = rules({"name": "string|required", "completed": "boolean"})

``validate`` checks every field, accumulates all failures and returns the
coerced values of the fields that passed.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_TRUE_VALUES = {"true", "1"}
_FALSE_VALUES = {"false", "0"}


class FieldKind(str, Enum):
    """Type a field value must satisfy."""
    STRING = "string"
    INTEGER = "integer"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one payload field."""

    kind: FieldKind
    required: bool = False

    @classmethod
    def parse(cls, rule_text: str) -> "FieldRule":
        """
        Build a rule from pipe notation such as ``"string|required"``.

        Token order does not matter. Exactly one type token is expected.

        Raises:
            ValueError: On unknown tokens or a missing/duplicated type
        """
        kind: Optional[FieldKind] = None
        required = False

        for token in (t.strip().lower() for t in rule_text.split("|")):
            if not token:
                continue
            if token == "required":
                required = True
                continue
            try:
                parsed = FieldKind(token)
            except ValueError:
                raise ValueError(f"Unknown validation rule '{token}' in '{rule_text}'")
            if kind is not None:
                raise ValueError(f"More than one type rule in '{rule_text}'")
            kind = parsed

        if kind is None:
            raise ValueError(f"No type rule in '{rule_text}'")

        return cls(kind=kind, required=required)


Schema = Mapping[str, FieldRule]


def rules(rule_texts: Mapping[str, str]) -> Dict[str, FieldRule]:
    """Build a schema from pipe-notation rule strings."""
    return {name: FieldRule.parse(rule_text) for name, rule_text in rule_texts.items()}


@dataclass
class ValidationResult:
    """
    Outcome of ``validate``.

    ``error`` is None when the payload passed; otherwise it maps each failing
    field to ``{"rule": ..., "message": ...}``.
    """

    error: Optional[Dict[str, Dict[str, str]]] = None
    values: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


class _Invalid(Exception):
    pass


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _coerce_string(value: Any) -> str:
    if not isinstance(value, str):
        raise _Invalid()
    return value


def _coerce_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise _Invalid()
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    raise _Invalid()


def _coerce_numeric(value: Any) -> float:
    if isinstance(value, bool):
        raise _Invalid()
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise _Invalid()
        return float(value)
    if isinstance(value, str) and _NUMERIC_RE.match(value.strip()):
        return float(value.strip())
    raise _Invalid()


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise _Invalid()


_COERCERS = {
    FieldKind.STRING: _coerce_string,
    FieldKind.INTEGER: _coerce_integer,
    FieldKind.NUMERIC: _coerce_numeric,
    FieldKind.BOOLEAN: _coerce_boolean,
}

_MESSAGES = {
    FieldKind.STRING: "The {field} must be a string.",
    FieldKind.INTEGER: "The {field} must be an integer.",
    FieldKind.NUMERIC: "The {field} must be a number.",
    FieldKind.BOOLEAN: "The {field} must be a boolean.",
}


def validate(schema: Schema, payload: Optional[Mapping[str, Any]]) -> ValidationResult:
    """
    Validate a payload against a schema.

    Args:
        schema: Field name -> rule
        payload: Incoming request body (None is treated as empty)

    Returns:
        ValidationResult with accumulated errors, or the coerced values of
        the schema fields when everything passed. Fields not named in the
        schema never appear in ``values``.
    """
    payload = payload or {}
    errors: Dict[str, Dict[str, str]] = {}
    values: Dict[str, Any] = {}

    for name, rule in schema.items():
        value = payload.get(name)

        if _is_empty(value):
            if rule.required:
                errors[name] = {
                    "rule": "required",
                    "message": f"The {name} field is mandatory.",
                }
            continue

        try:
            values[name] = _COERCERS[rule.kind](value)
        except _Invalid:
            errors[name] = {
                "rule": rule.kind.value,
                "message": _MESSAGES[rule.kind].format(field=name),
            }

    if errors:
        logger.debug("payload_validation_failed", fields=sorted(errors))
        return ValidationResult(error=errors)

    return ValidationResult(values=values)
