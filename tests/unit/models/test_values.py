import pytest

from objstash.models.enums import ValueKind
from objstash.models.values import canonical_scalar, classify, is_finite_json


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        (None, ValueKind.NULL),
        (True, ValueKind.BOOL),
        (0, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        ("", ValueKind.STRING),
        ([], ValueKind.ARRAY),
        ({}, ValueKind.OBJECT),
    ],
)
def test_classify(value, kind: ValueKind) -> None:
    assert classify(value) is kind


def test_classify_rejects_non_json_values() -> None:
    with pytest.raises(TypeError):
        classify(object())


def test_canonical_numbers_have_no_grouping_or_trailing_zero() -> None:
    assert canonical_scalar(1234567) == "1234567"
    assert canonical_scalar(1e15) == "1000000000000000"
    assert canonical_scalar(1e20) == "1e+20"
    assert canonical_scalar(-0.125) == "-0.125"


def test_non_scalars_have_no_canonical_form() -> None:
    assert canonical_scalar(None) is None
    assert canonical_scalar([1]) is None
    assert canonical_scalar({"a": 1}) is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"a": 1.5, "b": [1, "x", None]}, True),
        ({"a": float("nan")}, False),
        ([1.0, [float("inf")]], False),
        ({"nested": {"deep": float("-inf")}}, False),
    ],
)
def test_is_finite_json(value, expected: bool) -> None:
    assert is_finite_json(value) is expected
