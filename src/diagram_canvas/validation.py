"""
Input validation for diagram canvas server tool parameters.

Everything an MCP caller sends is checked here before it reaches an
``EditorSession``; the editing core treats misuse as a silent no-op and
never raises, so this module is where callers get told what went wrong.
"""

from __future__ import annotations

import math
from typing import Any

from diagram_canvas.models import DiagramFamily


class ValidationError(Exception):
    """A caller-supplied parameter was rejected; ``message`` is caller-facing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def _kind_of(value: Any) -> str:
    return type(value).__name__


def _expect(value: Any, types: type | tuple[type, ...], field_name: str, what: str) -> None:
    # bool is an int subclass but never a valid number or id here
    if isinstance(value, bool) or not isinstance(value, types):
        raise ValidationError(f"'{field_name}' must be {what}, got {_kind_of(value)}.")


def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Return *value* stripped; blank or non-string values are rejected."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ValidationError(f"'{field_name}' must be a non-empty string.")


def validate_string(value: Any, field_name: str, *, allow_empty: bool = True) -> str:
    _expect(value, str, field_name, "a string")
    if not (allow_empty or value.strip()):
        raise ValidationError(f"'{field_name}' must not be empty.")
    return value


def validate_number(value: Any, field_name: str) -> float:
    """A finite canvas coordinate."""
    _expect(value, (int, float), field_name, "a number")
    result = float(value)
    if not math.isfinite(result):
        raise ValidationError(f"'{field_name}' must be finite, got {result}.")
    return result


def validate_int(value: Any, field_name: str, *, min_val: int | None = None) -> int:
    _expect(value, int, field_name, "an integer")
    if min_val is not None and value < min_val:
        raise ValidationError(f"'{field_name}' must be >= {min_val}, got {value}.")
    return value


def validate_enum(value: Any, field_name: str, allowed: set[str]) -> str:
    """Match *value* against *allowed* ignoring case; returns the upper-case form."""
    _expect(value, str, field_name, "a string")
    key = value.strip().upper()
    if key in {choice.upper() for choice in allowed}:
        return key
    raise ValidationError(
        f"'{field_name}' must be one of [{', '.join(sorted(allowed))}], got '{value}'."
    )


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    _expect(value, list, field_name, "a list")
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' needs at least {min_length} item(s), got {len(value)}."
        )
    return value


# ---------------------------------------------------------------------------
# Actions, families, coordinates
# ---------------------------------------------------------------------------
_FAMILIES = {f.value.upper() for f in DiagramFamily}

_SESSION_ACTIONS = {
    "CREATE", "LIST", "DELETE", "SET_FAMILY", "SET_TOOL", "UNDO", "CLEAR",
}
_GESTURE_ACTIONS = {"PRESS", "MOVE", "RELEASE", "LEAVE", "DOUBLE_PRESS"}
_ERD_ACTIONS = {"FROM_SPEC", "FROM_MODEL"}
_INSPECT_ACTIONS = {"SHAPES", "HIT_TEST", "ENDPOINTS", "INFO", "PREVIEW"}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Return the lower-cased action if it belongs to *allowed* (upper-case names)."""
    valid = ", ".join(sorted(a.lower() for a in allowed))
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {valid}."
        )
    action = value.strip()
    if action.upper() not in allowed:
        raise ValidationError(f"Unknown {tool_name} action '{value}'. Valid actions: {valid}.")
    return action.lower()


def validate_family(value: Any) -> DiagramFamily:
    """Validate a diagram family name (er, usecase, class, ...)."""
    return DiagramFamily(validate_enum(value, "family", _FAMILIES).lower())


def validate_point(x: Any, y: Any) -> tuple[float, float]:
    """Validate a canvas coordinate pair."""
    return validate_number(x, "x"), validate_number(y, "y")


# ---------------------------------------------------------------------------
# ERD model dict validators
# ---------------------------------------------------------------------------

# Keys marking an attribute as primary key in structured ERD input
PK_KEYS = ("is_pk", "isPk")


def validate_entity_dict(e: Any, index: int) -> None:
    """Validate a single entity dict: {name, attributes}.

    ``attributes`` is either a list of {name, is_pk?} dicts (``isPk`` is
    accepted as an alias) or a comma-separated string such as ``"*id, name"``.
    """
    if not isinstance(e, dict):
        raise ValidationError(f"Entity at index {index} must be a dict/object.")
    if "name" not in e:
        raise ValidationError(f"Entity at index {index} missing required key 'name'.")
    if not isinstance(e["name"], str) or not e["name"].strip():
        raise ValidationError(f"Entity at index {index}: 'name' must be a non-empty string.")
    attrs = e.get("attributes", [])
    if isinstance(attrs, str):
        return
    if not isinstance(attrs, list):
        raise ValidationError(
            f"Entity at index {index}: 'attributes' must be a list or a "
            f"comma-separated string, got {type(attrs).__name__}."
        )
    for j, a in enumerate(attrs):
        if not isinstance(a, dict):
            raise ValidationError(f"Entity at index {index}: attribute {j} must be a dict/object.")
        if not isinstance(a.get("name"), str) or not a["name"].strip():
            raise ValidationError(
                f"Entity at index {index}: attribute {j} 'name' must be a non-empty string."
            )
        for key in PK_KEYS:
            if key in a and not isinstance(a[key], bool):
                raise ValidationError(
                    f"Entity at index {index}: attribute {j} '{key}' must be a boolean."
                )


def validate_relationship_dict(r: Any, index: int) -> None:
    """Validate a single relationship dict: {name, e1, card1, e2, card2}."""
    if not isinstance(r, dict):
        raise ValidationError(f"Relationship at index {index} must be a dict/object.")
    for key in ("name", "e1", "e2"):
        if key not in r:
            raise ValidationError(f"Relationship at index {index} missing required key '{key}'.")
        if not isinstance(r[key], str) or not r[key].strip():
            raise ValidationError(
                f"Relationship at index {index}: '{key}' must be a non-empty string."
            )
    for key in ("card1", "card2"):
        if key in r and not isinstance(r[key], str):
            raise ValidationError(
                f"Relationship at index {index}: '{key}' must be a string."
            )
    if r["e1"].strip() == r["e2"].strip():
        raise ValidationError(
            f"Relationship at index {index}: 'e1' and 'e2' must name two different entities."
        )
