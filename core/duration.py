# ============================================================================
# DURATION PARSER
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Duration expressions
# PURPOSE: Convert "30s" / "5m" / 30000 style durations to milliseconds and back
# CREATED: 17 OCT 2026
# ============================================================================
"""
Duration Parser

Parses human duration expressions into milliseconds and renders
milliseconds back into human text. Used by configuration normalization
and by the scheduler when a probe interval needs resolving.

Accepted input:
    30000      -> 30000 ms (int, already milliseconds)
    "30000"    -> 30000 ms (bare integer string)
    "500ms"    -> 500 ms
    "30s"      -> 30000 ms
    "5m"       -> 300000 ms
    "1h"       -> 3600000 ms
    "1d"       -> 86400000 ms

Combined units ("1h30m"), signs, decimals and empty strings are rejected.

Usage:
    from core.duration import parse_duration, format_duration

    parse_duration("30s")        # 30000
    format_duration(90000)       # "1m 30s"
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from core.errors import InvalidIntervalError


DurationInput = Union[int, float, str]


class DurationUnit(str, Enum):
    """Units understood by the parser, smallest first."""
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"
    DAYS = "d"

    @property
    def milliseconds(self) -> int:
        """Length of one unit in milliseconds."""
        return _UNIT_MS[self]


_UNIT_MS = {
    DurationUnit.MILLISECONDS: 1,
    DurationUnit.SECONDS: 1000,
    DurationUnit.MINUTES: 60 * 1000,
    DurationUnit.HOURS: 60 * 60 * 1000,
    DurationUnit.DAYS: 24 * 60 * 60 * 1000,
}

# "ms" must precede "m" in the alternation
_PATTERN = re.compile(r"([0-9]+)(ms|s|m|h|d)?")


@dataclass(frozen=True)
class ParsedDuration:
    """Structured result of parsing a duration expression."""
    milliseconds: int
    unit: DurationUnit
    value: int
    expression: str


# ============================================================================
# PARSER
# ============================================================================

class DurationParser:
    """
    Stateless duration parser.

    All methods are pure. A module-level instance is exported as
    ``duration_parser``.
    """

    def parse(self, value: DurationInput) -> ParsedDuration:
        """
        Parse a duration expression.

        Args:
            value: Milliseconds as a number, or a duration string

        Returns:
            ParsedDuration with milliseconds, unit, numeric value and
            normalized expression

        Raises:
            InvalidIntervalError: Empty, negative, non-finite, fractional
                or otherwise malformed input
        """
        if isinstance(value, bool):
            raise InvalidIntervalError(value)

        if isinstance(value, (int, float)):
            ms = self._validate_number(value)
            return ParsedDuration(
                milliseconds=ms,
                unit=DurationUnit.MILLISECONDS,
                value=ms,
                expression=f"{ms}ms",
            )

        if not isinstance(value, str):
            raise InvalidIntervalError(value)

        text = value.strip()
        if not text:
            raise InvalidIntervalError(f'"{value}"')

        match = _PATTERN.fullmatch(text)
        if match is None:
            raise InvalidIntervalError(text)

        amount = int(match.group(1))
        unit = DurationUnit(match.group(2) or "ms")
        return ParsedDuration(
            milliseconds=amount * unit.milliseconds,
            unit=unit,
            value=amount,
            expression=f"{amount}{unit.value}",
        )

    def format(self, ms: Union[int, float]) -> str:
        """
        Render milliseconds as space-joined components.

        Examples:
            format(5000)     -> "5s"
            format(90000)    -> "1m 30s"
            format(3661000)  -> "1h 1m 1s"
            format(250)      -> "250ms"
            format(0)        -> "0s"
        """
        total = self._validate_number(ms, allow_fraction=True)
        if total == 0:
            return "0s"

        parts = []
        remaining = total
        for unit in (DurationUnit.DAYS, DurationUnit.HOURS,
                     DurationUnit.MINUTES, DurationUnit.SECONDS):
            count, remaining = divmod(remaining, unit.milliseconds)
            if count > 0:
                parts.append(f"{count}{unit.value}")

        # Sub-second remainder only shows when nothing larger does
        if remaining > 0 and not parts:
            parts.append(f"{remaining}ms")

        return " ".join(parts)

    def format_short(self, ms: Union[int, float]) -> str:
        """
        Render milliseconds in the single largest fitting unit.

        Examples:
            format_short(5000)     -> "5s"
            format_short(90000)    -> "1.5m"
            format_short(3661000)  -> "1h"
        """
        total = self._validate_number(ms, allow_fraction=True)
        if total == 0:
            return "0s"
        if total < 1000:
            return f"{total}ms"

        unit = DurationUnit.SECONDS
        for candidate in (DurationUnit.MINUTES, DurationUnit.HOURS, DurationUnit.DAYS):
            if total >= candidate.milliseconds:
                unit = candidate

        text = f"{total / unit.milliseconds:.1f}"
        if text.endswith(".0"):
            text = text[:-2]
        return f"{text}{unit.value}"

    def convert(
        self,
        value: Union[int, float],
        from_unit: Union[DurationUnit, str],
        to_unit: Union[DurationUnit, str],
    ) -> float:
        """Convert a numeric value between units. Only the units are validated."""
        source = DurationUnit(from_unit)
        target = DurationUnit(to_unit)
        return value * source.milliseconds / target.milliseconds

    def is_valid(self, value: DurationInput) -> bool:
        """True if value parses."""
        try:
            self.parse(value)
        except InvalidIntervalError:
            return False
        return True

    def get_unit(self, value: DurationInput) -> Optional[DurationUnit]:
        """Unit of a duration expression, or None if it does not parse."""
        try:
            return self.parse(value).unit
        except InvalidIntervalError:
            return None

    @staticmethod
    def _validate_number(value: Union[int, float], allow_fraction: bool = False) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidIntervalError(value)
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidIntervalError(value)
        if value < 0:
            raise InvalidIntervalError(value)
        if isinstance(value, float):
            if not value.is_integer() and not allow_fraction:
                raise InvalidIntervalError(value)
            value = int(value)
        return value


# ============================================================================
# MODULE-LEVEL HELPERS
# ============================================================================

duration_parser = DurationParser()


def parse_duration(value: DurationInput) -> int:
    """Parse a duration expression to milliseconds."""
    return duration_parser.parse(value).milliseconds


def format_duration(ms: Union[int, float]) -> str:
    """Format milliseconds as a duration string."""
    return duration_parser.format(ms)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DurationInput",
    "DurationUnit",
    "ParsedDuration",
    "DurationParser",
    "duration_parser",
    "parse_duration",
    "format_duration",
]
