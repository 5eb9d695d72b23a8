# ============================================================================
# DURATION PARSER TESTS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Tests - Duration parsing and formatting
# PURPOSE: Verify parse/format/convert behavior and rejection of bad input
# CREATED: 17 OCT 2026
# ============================================================================
"""
Duration Parser Tests

Run with:
    pytest tests/test_duration.py -v
"""

import math

import pytest

from core.duration import (
    DurationParser,
    DurationUnit,
    duration_parser,
    format_duration,
    parse_duration,
)
from core.errors import ErrorCode, InvalidIntervalError


# ============================================================================
# PARSE
# ============================================================================

class TestParse:
    """parse() accepted forms."""

    @pytest.mark.parametrize("expression,expected_ms,unit", [
        ("500ms", 500, DurationUnit.MILLISECONDS),
        ("30s", 30_000, DurationUnit.SECONDS),
        ("5m", 300_000, DurationUnit.MINUTES),
        ("1h", 3_600_000, DurationUnit.HOURS),
        ("1d", 86_400_000, DurationUnit.DAYS),
        ("2500", 2500, DurationUnit.MILLISECONDS),
    ])
    def test_units(self, expression, expected_ms, unit):
        parsed = duration_parser.parse(expression)
        assert parsed.milliseconds == expected_ms
        assert parsed.unit == unit

    def test_structured_result(self):
        parsed = duration_parser.parse("30s")
        assert parsed.value == 30
        assert parsed.expression == "30s"

    def test_bare_number_string_normalized_to_ms(self):
        assert duration_parser.parse("2500").expression == "2500ms"

    def test_whitespace_trimmed(self):
        assert duration_parser.parse("  10s ").milliseconds == 10_000

    def test_integer_is_milliseconds(self):
        parsed = duration_parser.parse(5000)
        assert parsed.milliseconds == 5000
        assert parsed.unit == DurationUnit.MILLISECONDS
        assert parsed.expression == "5000ms"

    def test_integral_float_accepted(self):
        assert duration_parser.parse(1500.0).milliseconds == 1500

    def test_zero(self):
        assert parse_duration("0s") == 0
        assert parse_duration(0) == 0


class TestParseRejects:
    """parse() failures."""

    @pytest.mark.parametrize("value", [
        "", "   ", "10x", "1h30m", "-5s", "1.5s", "s", "10 s", "ten", "٣s",
    ])
    def test_bad_strings(self, value):
        with pytest.raises(InvalidIntervalError):
            duration_parser.parse(value)

    @pytest.mark.parametrize("value", [-1, -0.5, math.inf, -math.inf, math.nan, 1.5])
    def test_bad_numbers(self, value):
        with pytest.raises(InvalidIntervalError):
            duration_parser.parse(value)

    @pytest.mark.parametrize("value", [True, None, [10]])
    def test_bad_types(self, value):
        with pytest.raises(InvalidIntervalError):
            duration_parser.parse(value)

    def test_error_carries_code_and_input(self):
        with pytest.raises(InvalidIntervalError) as exc_info:
            duration_parser.parse("10x")
        assert exc_info.value.code == ErrorCode.INVALID_INTERVAL
        assert exc_info.value.interval == "10x"
        assert "10x" in str(exc_info.value)


# ============================================================================
# FORMAT
# ============================================================================

class TestFormat:
    """format() and format_short()."""

    @pytest.mark.parametrize("ms,expected", [
        (0, "0s"),
        (250, "250ms"),
        (5000, "5s"),
        (30_000, "30s"),
        (90_000, "1m 30s"),
        (3_661_000, "1h 1m 1s"),
        (90_061_000, "1d 1h 1m 1s"),
        (86_400_000, "1d"),
        (1500, "1s"),
    ])
    def test_format(self, ms, expected):
        assert format_duration(ms) == expected

    def test_round_trip_exact_units(self):
        for expression in ("30s", "5m", "1h", "1d"):
            assert format_duration(parse_duration(expression)) == expression

    @pytest.mark.parametrize("value", [-1, math.inf, math.nan])
    def test_format_rejects(self, value):
        with pytest.raises(InvalidIntervalError):
            format_duration(value)

    @pytest.mark.parametrize("ms,expected", [
        (0, "0s"),
        (500, "500ms"),
        (5000, "5s"),
        (1500, "1.5s"),
        (90_000, "1.5m"),
        (3_600_000, "1h"),
        (129_600_000, "1.5d"),
    ])
    def test_format_short(self, ms, expected):
        assert duration_parser.format_short(ms) == expected


# ============================================================================
# HELPERS
# ============================================================================

class TestHelpers:
    """convert(), is_valid(), get_unit()."""

    def test_convert(self):
        parser = DurationParser()
        assert parser.convert(5, "m", "s") == 300
        assert parser.convert(1, DurationUnit.HOURS, DurationUnit.MINUTES) == 60
        assert parser.convert(1500, "ms", "s") == 1.5

    def test_convert_rejects_unknown_unit(self):
        with pytest.raises(ValueError):
            duration_parser.convert(1, "w", "s")

    def test_is_valid(self):
        assert duration_parser.is_valid("30s")
        assert duration_parser.is_valid(100)
        assert not duration_parser.is_valid("invalid")

    def test_get_unit(self):
        assert duration_parser.get_unit("5m") == DurationUnit.MINUTES
        assert duration_parser.get_unit(5000) == DurationUnit.MILLISECONDS
        assert duration_parser.get_unit("nope") is None
