"""Unit tests for shared configuration parsing helpers."""

import pytest

from bookreel.parsing import (
    normalize_optional_string,
    parse_non_negative_float,
    parse_positive_int,
)


def test_normalize_optional_string_handles_blank_values() -> None:
    """Normalization should return `None` for `None` and blank textual values."""

    assert normalize_optional_string(None) is None
    assert normalize_optional_string("") is None
    assert normalize_optional_string("   ") is None


def test_normalize_optional_string_strips_non_blank_values() -> None:
    """Normalization should return stripped content for non-empty values."""

    assert normalize_optional_string("  value  ") == "value"
    assert normalize_optional_string(42) == "42"


@pytest.mark.parametrize(("value", "expected"), [(3, 3), (" 3000 ", 3000), ("1", 1)])
def test_parse_positive_int_accepts_ints_and_numeric_strings(value: object, expected: int) -> None:
    """Positive-int parsing should accept integers and trimmed numeric strings."""

    assert parse_positive_int(value, "field") == expected


@pytest.mark.parametrize("value", [0, -1, True, "", "1.5", "many", None])
def test_parse_positive_int_rejects_invalid_values(value: object) -> None:
    """Positive-int parsing should reject booleans, blanks, fractions, and non-positive values."""

    with pytest.raises(ValueError, match="`field` must be a positive integer"):
        parse_positive_int(value, "field")


@pytest.mark.parametrize(("value", "expected"), [(0, 0.0), (2, 2.0), ("0.25", 0.25), (" 30 ", 30.0)])
def test_parse_non_negative_float_accepts_numbers(value: object, expected: float) -> None:
    """Float parsing should accept numbers and numeric strings including zero."""

    assert parse_non_negative_float(value, "field") == expected


@pytest.mark.parametrize("value", [-0.1, False, "", "nan", "inf", "fast"])
def test_parse_non_negative_float_rejects_invalid_values(value: object) -> None:
    """Float parsing should reject negatives, booleans, and non-finite values."""

    with pytest.raises(ValueError, match="`field` must be a non-negative number"):
        parse_non_negative_float(value, "field")
