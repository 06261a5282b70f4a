"""Composite index key generation and prefix matching.

A document's value for each indexed field is expanded into a list of
canonical strings, and the cartesian product of those lists (in declared
field order) gives the composite keys stored for the index. Each segment
is escaped before joining, so a delimiter inside a value can never be
mistaken for a segment boundary:

    "9823", ["1234", "5678"]  ->  "9823|1234", "9823|5678"
    "a|b"                     ->  "a\\|b"

Values free of ``|`` and ``\\`` encode exactly as the bare join.
"""

import itertools
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import ColumnElement, and_, or_, true

from objstash.models.enums import ValueKind
from objstash.models.values import canonical_scalar, classify

DELIMITER = "|"
ESCAPE = "\\"
PLACEHOLDER = ""

# First character sorting after DELIMITER; bounds the range scan for a prefix.
_DELIMITER_UPPER_BOUND = chr(ord(DELIMITER) + 1)

_MISSING = object()


def encode_segment(value: str) -> str:
    return value.replace(ESCAPE, ESCAPE * 2).replace(DELIMITER, ESCAPE + DELIMITER)


def join_segments(values: Iterable[str]) -> str:
    return DELIMITER.join(encode_segment(value) for value in values)


def field_values(document: Mapping[str, Any], field: str) -> list[str]:
    """Resolve one indexed field of a document to its list of index values.

    Missing, null and object values yield a single placeholder. Arrays yield
    one entry per element, with non-scalar elements as placeholders; an empty
    array also yields a single placeholder so the document stays indexed.
    """
    value = document.get(field, _MISSING)
    if value is _MISSING:
        return [PLACEHOLDER]

    kind = classify(value)
    if kind is ValueKind.ARRAY:
        values = [_element_value(element) for element in value]
        return values or [PLACEHOLDER]
    if kind in (ValueKind.NULL, ValueKind.OBJECT):
        return [PLACEHOLDER]
    return [canonical_scalar(value)]


def _element_value(element: Any) -> str:
    canonical = canonical_scalar(element)
    return PLACEHOLDER if canonical is None else canonical


def composite_keys(document: Mapping[str, Any], fields: Sequence[str]) -> list[str]:
    """All distinct composite keys of ``document`` for an index over ``fields``."""
    per_field = [field_values(document, field) for field in fields]
    keys = (join_segments(combination) for combination in itertools.product(*per_field))
    return list(dict.fromkeys(keys))


def prefix_condition(column: Any, known_values: Sequence[str]) -> ColumnElement[bool]:
    """SQL condition matching keys whose leading segments equal ``known_values``.

    Matching is segment-aligned: ``["12"]`` matches ``"12"`` and ``"12|..."``
    but never ``"123"``. Implemented as an equality plus a range scan rather
    than LIKE, so it is case-sensitive and immune to SQL wildcards.
    """
    if not known_values:
        return true()
    prefix = join_segments(known_values)
    return or_(
        column == prefix,
        and_(column >= prefix + DELIMITER, column < prefix + _DELIMITER_UPPER_BOUND),
    )


__all__ = [
    "DELIMITER",
    "PLACEHOLDER",
    "encode_segment",
    "join_segments",
    "field_values",
    "composite_keys",
    "prefix_condition",
]
