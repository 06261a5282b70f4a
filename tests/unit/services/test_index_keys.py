"""Unit tests for composite index key generation."""

import pytest
from sqlalchemy import column, true
from sqlalchemy.dialects import sqlite

from objstash.services.index_keys import (
    PLACEHOLDER,
    composite_keys,
    encode_segment,
    field_values,
    join_segments,
    prefix_condition,
)


class TestFieldValues:
    """Tests for resolving a single indexed field."""

    def test_string_value(self) -> None:
        assert field_values({"user_id": "9823"}, "user_id") == ["9823"]

    def test_missing_field_is_placeholder(self) -> None:
        assert field_values({"id": "x"}, "user_id") == [PLACEHOLDER]

    @pytest.mark.parametrize("value", [None, {"nested": "object"}])
    def test_null_and_object_are_placeholder(self, value) -> None:
        assert field_values({"field": value}, "field") == [PLACEHOLDER]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (42, "42"),
            (-7, "-7"),
            (3.0, "3"),
            (2.5, "2.5"),
            (123456789.0, "123456789"),
            (2.0**53, "9007199254740992.0"),
            (1e300, "1e+300"),
            (-1e20, "-1e+20"),
            (True, "true"),
            (False, "false"),
        ],
    )
    def test_scalars_are_canonicalized(self, value, expected: str) -> None:
        assert field_values({"field": value}, "field") == [expected]

    def test_array_yields_one_value_per_element(self) -> None:
        assert field_values({"boards": ["1234", 5, True]}, "boards") == ["1234", "5", "true"]

    def test_non_scalar_array_elements_are_placeholders(self) -> None:
        values = field_values({"boards": ["a", None, {"x": 1}, ["nested"]]}, "boards")

        assert values == ["a", PLACEHOLDER, PLACEHOLDER, PLACEHOLDER]

    def test_empty_array_is_placeholder(self) -> None:
        assert field_values({"boards": []}, "boards") == [PLACEHOLDER]


class TestCompositeKeys:
    """Tests for the cartesian expansion of field values."""

    def test_scalar_and_array(self) -> None:
        document = {"user_id": "9823", "boards": ["1234", "5678"]}

        assert composite_keys(document, ("user_id", "boards")) == ["9823|1234", "9823|5678"]

    def test_product_preserves_field_order(self) -> None:
        document = {"a": ["1", "2"], "b": ["x", "y"]}

        assert composite_keys(document, ("a", "b")) == ["1|x", "1|y", "2|x", "2|y"]
        assert composite_keys(document, ("b", "a")) == ["x|1", "x|2", "y|1", "y|2"]

    def test_all_fields_missing_yields_single_key(self) -> None:
        assert composite_keys({"id": "x"}, ("user_id", "boards")) == ["|"]

    def test_duplicate_combinations_are_collapsed(self) -> None:
        assert composite_keys({"boards": ["1", "1", "2"]}, ("boards",)) == ["1", "2"]


class TestSegmentEncoding:
    """Tests for escaping values that contain the delimiter."""

    def test_plain_values_are_unchanged(self) -> None:
        assert encode_segment("hello world") == "hello world"
        assert join_segments(["9823", "1234"]) == "9823|1234"

    def test_delimiter_and_escape_are_escaped(self) -> None:
        assert encode_segment("a|b") == "a\\|b"
        assert encode_segment("a\\b") == "a\\\\b"

    def test_distinct_tuples_never_share_a_key(self) -> None:
        assert join_segments(["a|b", "c"]) != join_segments(["a", "b|c"])
        assert join_segments(["a\\", "b"]) != join_segments(["a\\|b"])


class TestPrefixCondition:
    """Tests for the SQL prefix predicate."""

    def _compile(self, known_values: list[str]) -> str:
        condition = prefix_condition(column("vals"), known_values)
        return str(condition.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))

    def test_empty_known_values_matches_everything(self) -> None:
        assert prefix_condition(column("vals"), []).compare(true())

    def test_prefix_is_equality_or_delimiter_range(self) -> None:
        sql = self._compile(["9823"])

        assert "vals = '9823'" in sql
        assert "vals >= '9823|'" in sql
        assert "vals < '9823}'" in sql
        assert "LIKE" not in sql
