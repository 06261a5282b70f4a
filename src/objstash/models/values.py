"""Classification and canonical string forms of JSON document values."""

import math
from typing import Any

from objstash.models.enums import ValueKind

_MAX_EXACT_FLOAT_INT = 2**53


def classify(value: Any) -> ValueKind:
    """Map a decoded JSON value to its :class:`ValueKind`.

    ``bool`` is checked before numbers since it subclasses ``int``.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"not a JSON value: {type(value).__name__}")


def canonical_scalar(value: Any) -> str | None:
    """Return the canonical string of a scalar, or None for non-scalars."""
    kind = classify(value)
    if kind is ValueKind.STRING:
        return value
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return _format_number(value)
    return None


def is_finite_json(value: Any) -> bool:
    """True unless a float anywhere inside ``value`` is NaN or infinite."""
    kind = classify(value)
    if kind is ValueKind.NUMBER:
        return not isinstance(value, float) or math.isfinite(value)
    if kind is ValueKind.ARRAY:
        return all(is_finite_json(element) for element in value)
    if kind is ValueKind.OBJECT:
        return all(is_finite_json(element) for element in value.values())
    return True


def _format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    # Integral floats beyond 2**53 are no longer exact integers.
    if value.is_integer() and abs(value) < _MAX_EXACT_FLOAT_INT:
        return str(int(value))
    return repr(value)


__all__ = ["classify", "canonical_scalar", "is_finite_json"]
