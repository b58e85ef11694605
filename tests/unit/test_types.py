"""
Unit tests for attribute type handlers.

Tests cover:
- Coercion of each built-in type incl. stepping and case conversion
- Definition checks normalizing constraints
- Validation messages
- (De)serialization of stored values
- Comparison operations used for searching
"""

import re
from datetime import datetime, timezone

import pytest

from kvmodel.errors import FieldValidationError
from kvmodel.types import (
    BooleanType,
    DateType,
    IntegerType,
    NumberType,
    StringType,
    is_nan,
)
from kvmodel.types.date import EPOCH


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestStringType:
    """Tests for StringType."""

    def test_coerce_keeps_none(self):
        """None stays None, even when required."""
        assert StringType.coerce(None, {}) is None
        assert StringType.coerce(None, {"required": True}) is None

    def test_coerce_converts_to_string(self):
        """Non-string input is converted."""
        assert StringType.coerce(12, {}) == "12"

    def test_coerce_booleans_and_integral_floats(self):
        """Booleans become lower case words, integral floats lose the fraction."""
        assert StringType.coerce(True, {}) == "true"
        assert StringType.coerce(False, {}) == "false"
        assert StringType.coerce(1.0, {}) == "1"
        assert StringType.coerce(1.5, {}) == "1.5"

    def test_coerce_trims_and_reduces_space(self):
        """Whitespace runs incl. CR/LF/tab collapse into single spaces."""
        value = StringType.coerce("  a \r\n\t b  ", {"trim": True, "reduce_space": True})
        assert value == "a b"

    def test_coerce_upper_and_lower_case(self):
        """Case conversion is applied."""
        assert StringType.coerce("Jane", {"upper_case": True}) == "JANE"
        assert StringType.coerce("Jane", {"lower_case": True}) == "jane"

    def test_coerce_turkish_case(self):
        """Turkish locale uses dotted and dotless i."""
        assert StringType.coerce("istanbul", {"upper_case": "tr"}) == "İSTANBUL"
        assert StringType.coerce("ISTANBUL", {"lower_case": "tr-TR"}) == "ıstanbul"

    def test_coerce_is_idempotent(self):
        """Coercing twice yields the same result."""
        spec = {"trim": True, "reduce_space": True, "upper_case": True}
        once = StringType.coerce(" foo \n bar ", spec)
        assert StringType.coerce(once, spec) == once

    def test_check_definition_rejects_ambiguous_case(self):
        """upper_case and lower_case are mutually exclusive."""
        errors = StringType.check_definition({"upper_case": True, "lower_case": True})
        assert len(errors) == 1

    def test_check_definition_swaps_lengths(self):
        """Inverted length limits are swapped."""
        definition = {"min_length": 5, "max_length": 2}
        assert StringType.check_definition(definition) == []
        assert definition["min_length"] == 2
        assert definition["max_length"] == 5

    def test_check_definition_maps_length(self):
        """length is the maximum length."""
        definition = {"length": 3}
        assert StringType.check_definition(definition) == []
        assert definition["max_length"] == 3

    def test_check_definition_rejects_invalid_limits(self):
        """Limits must be usable."""
        assert StringType.check_definition({"length": 0})
        assert StringType.check_definition({"min_length": -1})
        assert StringType.check_definition({"max_length": "ten"})

    def test_check_definition_rejects_invalid_pattern(self):
        """Pattern must compile."""
        assert StringType.check_definition({"pattern": "("})
        assert StringType.check_definition({"pattern": 42})
        assert StringType.check_definition({"pattern": re.compile("^a")}) == []

    def test_is_valid_required(self):
        """Missing required value is reported."""
        errors = []
        StringType.is_valid("name", None, {"required": True}, errors)

        assert len(errors) == 1
        assert isinstance(errors[0], FieldValidationError)
        assert str(errors[0]) == "name is required, but missing"
        assert errors[0].field_name == "name"

    def test_is_valid_lengths(self):
        """Length limits are checked."""
        errors = []
        StringType.is_valid("name", "abcd", {"max_length": 3}, errors)
        StringType.is_valid("name", "a", {"min_length": 2}, errors)

        assert len(errors) == 2
        assert "maximum length of 3" in str(errors[0])
        assert "at least 2" in str(errors[1])

    def test_is_valid_pattern(self):
        """Pattern may be given as string or compiled."""
        errors = []
        StringType.is_valid("code", "ab12", {"pattern": r"^\d+$"}, errors)
        StringType.is_valid("code", "1234", {"pattern": re.compile(r"^\d+$")}, errors)

        assert len(errors) == 1
        assert "pattern" in str(errors[0])

    def test_serialize(self):
        """Strings are stored as is."""
        assert StringType.serialize("x") == "x"
        assert StringType.serialize(None) is None


class TestNumberType:
    """Tests for NumberType."""

    def test_coerce_numeric_strings(self):
        """Numeric strings are parsed, others become NaN."""
        assert NumberType.coerce("3.5", {}) == 3.5
        assert NumberType.coerce(" 1e2 ", {}) == 100.0
        assert is_nan(NumberType.coerce("abc", {}))
        assert is_nan(NumberType.coerce(True, {}))
        assert NumberType.coerce("", {}) is None

    def test_coerce_step_without_rounding(self):
        """Steps snap relative to min without rounding to integers."""
        assert NumberType.coerce(7.3, {"step": 0.5}) == 7.5
        assert NumberType.coerce(4, {"step": 3}) == 3.0
        assert NumberType.coerce(2.1, {"step": 0.5, "min": 0.25}) == 2.25

    def test_check_definition_swaps_limits(self):
        """Inverted limits are swapped."""
        definition = {"min": 10, "max": 1}
        assert NumberType.check_definition(definition) == []
        assert definition["min"] == 1
        assert definition["max"] == 10

    def test_check_definition_normalizes_numeric_strings(self):
        """Numeric strings in constraints are converted."""
        definition = {"min": "5"}
        assert NumberType.check_definition(definition) == []
        assert definition["min"] == 5.0

    def test_check_definition_rejects_invalid(self):
        """Non-numeric limits and non-positive steps are rejected."""
        assert NumberType.check_definition({"min": "abc"})
        assert NumberType.check_definition({"step": 0})
        assert NumberType.check_definition({"step": -1})

    def test_is_valid_limits(self):
        """Values outside limits are reported."""
        errors = []
        NumberType.is_valid("size", -5, {"min": 0}, errors)
        NumberType.is_valid("size", 11, {"max": 10}, errors)

        assert len(errors) == 2
        assert "minimum" in str(errors[0])
        assert "maximum" in str(errors[1])

    def test_is_valid_nan(self):
        """NaN fails when required or limited."""
        errors = []
        NumberType.is_valid("size", float("nan"), {"required": True}, errors)
        assert len(errors) == 1

        errors = []
        NumberType.is_valid("size", float("nan"), {"min": 0, "max": 10}, errors)
        assert len(errors) == 2

        errors = []
        NumberType.is_valid("size", float("nan"), {}, errors)
        assert errors == []

    def test_serialize_and_deserialize(self):
        """NaN is stored as None."""
        assert NumberType.serialize(1.5) == 1.5
        assert NumberType.serialize(float("nan")) is None
        assert NumberType.deserialize("null") is None
        assert NumberType.deserialize("12") == 12.0


class TestIntegerType:
    """Tests for IntegerType."""

    def test_coerce_rounds_half_up(self):
        """Values round to the nearest integer, halves upwards."""
        assert IntegerType.coerce("4.5", {}) == 5
        assert IntegerType.coerce(2.5, {}) == 3
        assert IntegerType.coerce(-2.5, {}) == -2
        assert isinstance(IntegerType.coerce(3.2, {}), int)

    def test_coerce_step_relative_to_min(self):
        """Steps snap relative to min, which defaults to 0."""
        assert IntegerType.coerce(4, {"step": 3, "min": 1}) == 4
        assert IntegerType.coerce(4, {"step": 3}) == 3

    def test_coerce_is_idempotent(self):
        """Coercing twice yields the same result."""
        spec = {"step": 3, "min": 1}
        for value in (0, 2, 5.5, "17", -4):
            once = IntegerType.coerce(value, spec)
            assert IntegerType.coerce(once, spec) == once

    def test_non_numeric_is_nan(self):
        """Non-numeric strings coerce to NaN."""
        assert is_nan(IntegerType.coerce("twelve", {}))

    def test_serialize_and_deserialize(self):
        """Stored values are integers."""
        assert IntegerType.serialize(3.0) == 3
        assert IntegerType.serialize(2**70) == 2**70
        assert IntegerType.serialize(float("nan")) is None
        assert IntegerType.deserialize("7") == 7
        assert IntegerType.deserialize(None) is None


class TestBooleanType:
    """Tests for BooleanType."""

    def test_deserialize_and_serialize(self):
        """Textual spellings are understood, storage uses 1/0."""
        assert BooleanType.deserialize("yes") is True
        assert BooleanType.deserialize("off") is False
        assert BooleanType.serialize(True) == 1
        assert BooleanType.serialize(None) is None

    @pytest.mark.parametrize("text", ["y", "Yes", "j", "JA", "on", "hi", "high", "true", "T", "set", "x"])
    def test_deserialize_truthy_spellings(self, text):
        """All truthy spellings are recognized, case-insensitively."""
        assert BooleanType.deserialize(text) is True

    @pytest.mark.parametrize("text", ["n", "No", "nein", "off", "lo", "LOW", "false", "f", "clr", "clear", "-", "", "  "])
    def test_deserialize_falsy_spellings(self, text):
        """All falsy spellings are recognized, case-insensitively."""
        assert BooleanType.deserialize(text) is False

    def test_deserialize_numeric_strings(self):
        """Numeric strings use their value."""
        assert BooleanType.deserialize("0.0") is False
        assert BooleanType.deserialize("2") is True

    def test_deserialize_fallback(self):
        """Other input falls back to truthiness."""
        assert BooleanType.deserialize("maybe") is True
        assert BooleanType.deserialize(0) is False
        assert BooleanType.deserialize(None) is None

    def test_coerce(self):
        """Coercion uses truthiness, keeping None."""
        assert BooleanType.coerce(None, {}) is None
        assert BooleanType.coerce(0, {}) is False
        assert BooleanType.coerce("x", {}) is True

    def test_is_valid(self):
        """Required and is_set are checked."""
        errors = []
        BooleanType.is_valid("active", None, {"required": True}, errors)
        BooleanType.is_valid("active", False, {"is_set": True}, errors)
        BooleanType.is_valid("active", True, {"is_set": True}, errors)

        assert [str(e) for e in errors] == ["active must be boolean value", "active must be set"]


class TestDateType:
    """Tests for DateType."""

    def test_coerce_iso_string(self):
        """ISO-8601 strings are parsed into UTC datetimes."""
        assert DateType.coerce("2021-03-04T05:06:07Z", {}) == utc(2021, 3, 4, 5, 6, 7)
        assert DateType.coerce("2021-03-04T07:06:07+02:00", {}) == utc(2021, 3, 4, 5, 6, 7)

    def test_coerce_naive_as_utc(self):
        """Naive datetimes are taken as UTC."""
        assert DateType.coerce(datetime(2021, 3, 4, 5, 6), {}) == utc(2021, 3, 4, 5, 6)

    def test_coerce_timestamps(self):
        """Numbers and numeric strings are milliseconds since epoch."""
        assert DateType.coerce(0, {}) == EPOCH
        assert DateType.coerce("1000", {}) == utc(1970, 1, 1, 0, 0, 1)

    def test_coerce_invalid(self):
        """Unparseable input is NaN, empty input None."""
        assert is_nan(DateType.coerce("xyz", {}))
        assert DateType.coerce("", {}) is None
        assert DateType.coerce(None, {}) is None

    def test_coerce_without_time(self):
        """time=False drops time of day."""
        value = DateType.coerce("2021-03-04T05:06:07Z", {"time": False})
        assert value == utc(2021, 3, 4)

    def test_coerce_step(self):
        """Steps are milliseconds."""
        value = DateType.coerce("2021-03-04T05:06:40Z", {"step": 60000})
        assert value == utc(2021, 3, 4, 5, 7)

    def test_check_definition_normalizes_limits(self):
        """Limits become datetimes and are swapped if inverted."""
        definition = {"min": "2022-01-01", "max": "2021-01-01"}
        assert DateType.check_definition(definition) == []
        assert definition["min"] == utc(2021, 1, 1)
        assert definition["max"] == utc(2022, 1, 1)

    def test_check_definition_rejects_invalid(self):
        """Invalid limits and steps are rejected."""
        assert DateType.check_definition({"min": "xyz"})
        assert DateType.check_definition({"step": 0})

    def test_is_valid_limits(self):
        """Values outside limits are reported."""
        errors = []
        definition = {"min": utc(2021, 1, 1), "max": utc(2022, 1, 1)}
        DateType.is_valid("born", utc(2020, 1, 1), definition, errors)
        DateType.is_valid("born", utc(2023, 1, 1), definition, errors)
        DateType.is_valid("born", utc(2021, 6, 1), definition, errors)

        assert len(errors) == 2

    def test_serialize(self):
        """Dates are stored as ISO-8601 strings, invalid ones as None."""
        assert DateType.serialize(utc(2021, 3, 4, 5, 6, 7)) == "2021-03-04T05:06:07Z"
        assert DateType.serialize("2021") is None
        assert DateType.serialize(float("nan")) is None

    def test_serialize_pads_year(self):
        """Years below 1000 are written with four digits."""
        assert DateType.serialize(utc(999, 1, 2)) == "0999-01-02T00:00:00Z"
        assert DateType.serialize(utc(5, 6, 7, 8, 9, 10)) == "0005-06-07T08:09:10Z"

    def test_round_trip(self):
        """Serialized dates coerce back into the same instant."""
        value = DateType.coerce("2021-03-04T05:06:07Z", {})
        assert DateType.coerce(DateType.deserialize(DateType.serialize(value)), {}) == value


class TestCompare:
    """Tests for comparing values."""

    def test_equality(self):
        """eq and noteq compare values."""
        assert StringType.compare("a", "a", "eq")
        assert StringType.compare("a", "b", "noteq")

    def test_null_checks(self):
        """null, notnull and not ignore the reference."""
        assert IntegerType.compare(None, 3, "null")
        assert IntegerType.compare(0, None, "notnull")
        assert IntegerType.compare(0, None, "not")

    def test_ordered(self):
        """Ordered operations compare values."""
        assert IntegerType.compare(3, 5, "lt")
        assert IntegerType.compare(5, 5, "lte")
        assert IntegerType.compare(6, 5, "gt")
        assert not IntegerType.compare(4, 5, "gte")
        assert StringType.compare("a", "b", "lt")

    def test_ordered_with_none(self):
        """Missing values never match ordered operations."""
        assert not IntegerType.compare(None, 5, "gt")

    def test_unknown_operation(self):
        """Unknown operations never match."""
        assert not IntegerType.compare(1, 1, "like")

    def test_dates(self):
        """Dates compare by instant."""
        assert DateType.compare(utc(2021, 1, 1), utc(2022, 1, 1), "lt")
        assert DateType.compare(utc(2021, 1, 1), datetime(2021, 1, 1), "eq")
