#!/usr/bin/env python3
"""
DecimalValue Primitive Type

Immutable exact-decimal wrapper used for every monetary amount, rate and
percentage in the bookkeeping engine. Prevents floating-point drift and keeps
report generation total: invalid input and division by zero degrade to zero
with a logged warning instead of raising.

Conventions:
- Amounts are persisted as decimal strings ("1234.50", "-45.99")
- All arithmetic runs at full working precision (28 significant digits)
- Rounding (ROUND_HALF_UP) happens only when formatting for display
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any, NamedTuple, Union

logger = logging.getLogger(__name__)

# Working context for all arithmetic
WORKING_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)

# Wider context for quantizing, so large values never overflow the precision
_DISPLAY_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)

_CURRENCY_NOISE = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class DecimalValue:
    """
    Immutable exact decimal value.

    Supports signed amounts: positive for inflows, negative for outflows.

    Examples:
        >>> a = DecimalValue.parse("0.1")
        >>> b = DecimalValue.parse("0.2")
        >>> (a + b).to_string()
        '0.3'

        >>> DecimalValue.parse("1234.5").to_fixed(2)
        '1234.50'

        >>> DecimalValue.parse("not a number")
        DecimalValue('0')
    """

    value: Decimal

    @classmethod
    def parse(cls, raw: "DecimalInput") -> "DecimalValue":
        """
        Parse a string or number, returning zero for invalid input.

        Args:
            raw: Decimal string, int, Decimal, DecimalValue, float or None

        Returns:
            DecimalValue (zero when the input is empty or unparsable)
        """
        return parse_with_diagnostic(raw).value

    @classmethod
    def zero(cls) -> "DecimalValue":
        """Get the zero value."""
        return cls(Decimal(0))

    def to_fixed(self, decimals: int = 2) -> str:
        """
        Format with a fixed number of decimal places (round-half-up).

        This is the single point where precision is reduced for display.
        """
        exponent = Decimal(1).scaleb(-decimals)
        rounded = self.value.quantize(exponent, rounding=ROUND_HALF_UP, context=_DISPLAY_CONTEXT)
        if rounded.is_zero():
            rounded = rounded.copy_abs()
        return format(rounded, "f")

    def rounded(self, decimals: int = 2) -> "DecimalValue":
        """Value rounded half-up to decimals places, as a DecimalValue."""
        return DecimalValue(Decimal(self.to_fixed(decimals)))

    def to_string(self) -> str:
        """Canonical string without exponent notation or trailing zeros."""
        if self.value.is_zero():
            return "0"
        return format(self.value.normalize(context=_DISPLAY_CONTEXT), "f")

    def to_plain_string(self) -> str:
        """Exact string form keeping the original scale ("100.50" stays "100.50")."""
        return format(self.value, "f")

    def to_decimal(self) -> Decimal:
        """Get the underlying Decimal."""
        return self.value

    def abs(self) -> "DecimalValue":
        """Return absolute value."""
        return DecimalValue(self.value.copy_abs())

    def is_zero(self) -> bool:
        """Check if value equals zero."""
        return self.value.is_zero()

    def is_positive(self) -> bool:
        """Check if value is strictly greater than zero."""
        return self.value > 0

    def is_negative(self) -> bool:
        """Check if value is strictly less than zero."""
        return self.value < 0

    def __add__(self, other: "DecimalInput") -> "DecimalValue":
        return DecimalValue(WORKING_CONTEXT.add(self.value, _coerce(other)))

    def __radd__(self, other: "DecimalInput") -> "DecimalValue":
        # Lets the builtin sum() start from int 0
        return DecimalValue(WORKING_CONTEXT.add(_coerce(other), self.value))

    def __sub__(self, other: "DecimalInput") -> "DecimalValue":
        return DecimalValue(WORKING_CONTEXT.subtract(self.value, _coerce(other)))

    def __mul__(self, other: "DecimalInput") -> "DecimalValue":
        return DecimalValue(WORKING_CONTEXT.multiply(self.value, _coerce(other)))

    def __truediv__(self, other: "DecimalInput") -> "DecimalValue":
        return divide(self, other)

    def __neg__(self) -> "DecimalValue":
        return DecimalValue(self.value.copy_negate())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DecimalValue):
            return self.value == other.value
        if isinstance(other, (int, Decimal)):
            return self.value == other
        if isinstance(other, str):
            result = parse_with_diagnostic(other)
            return result.error is None and self.value == result.value.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: "DecimalInput") -> bool:
        return self.value < _coerce(other)

    def __le__(self, other: "DecimalInput") -> bool:
        return self.value <= _coerce(other)

    def __gt__(self, other: "DecimalInput") -> bool:
        return self.value > _coerce(other)

    def __ge__(self, other: "DecimalInput") -> bool:
        return self.value >= _coerce(other)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"DecimalValue('{self.to_string()}')"


DecimalInput = Union[DecimalValue, Decimal, str, int, float, None]


class DecimalParseResult(NamedTuple):
    """Parsed value plus an optional data-quality diagnostic."""

    value: DecimalValue
    error: str | None = None


def parse_with_diagnostic(raw: DecimalInput) -> DecimalParseResult:
    """
    Parse a value into a DecimalValue, reporting problems instead of raising.

    Empty and missing input is zero without a diagnostic. Unparsable input is
    zero with a diagnostic message (also logged as a warning).

    Args:
        raw: Value to parse

    Returns:
        DecimalParseResult with the value and an error message or None
    """
    if isinstance(raw, DecimalValue):
        return DecimalParseResult(raw)
    if raw is None:
        return DecimalParseResult(DecimalValue.zero())
    if isinstance(raw, bool):
        return _invalid(raw)

    try:
        if isinstance(raw, Decimal):
            candidate = raw
        elif isinstance(raw, int):
            candidate = Decimal(raw)
        elif isinstance(raw, float):
            # repr() keeps the shortest round-tripping form: 0.1 -> "0.1"
            candidate = Decimal(repr(raw))
        else:
            text = str(raw).strip()
            if not text:
                return DecimalParseResult(DecimalValue.zero())
            candidate = Decimal(text)
    except (InvalidOperation, ValueError, TypeError):
        return _invalid(raw)

    if not candidate.is_finite():
        return _invalid(raw)

    return DecimalParseResult(DecimalValue(candidate))


def _invalid(raw: Any) -> DecimalParseResult:
    message = f"Invalid decimal value: {raw!r}"
    logger.warning(message)
    return DecimalParseResult(DecimalValue.zero(), message)


def _coerce(value: DecimalInput) -> Decimal:
    return DecimalValue.parse(value).value


def parse(value: DecimalInput) -> DecimalValue:
    """Parse a value, returning zero for invalid input."""
    return DecimalValue.parse(value)


def is_valid_decimal(value: str | None) -> bool:
    """Check if a string is a valid, finite decimal number."""
    if value is None or not str(value).strip():
        return False
    try:
        return Decimal(str(value).strip()).is_finite()
    except InvalidOperation:
        return False


def parse_currency(value: str) -> DecimalValue:
    """
    Parse a formatted currency string.

    Examples:
        parse_currency("$1,234.56") -> 1234.56
        parse_currency("-$1,234.56") -> -1234.56
    """
    return DecimalValue.parse(_CURRENCY_NOISE.sub("", value or ""))


# ============================================
# Arithmetic
# ============================================


def add(*values: DecimalInput) -> DecimalValue:
    """Add any number of values together."""
    return sum_values(values)


def sum_values(values: Iterable[DecimalInput]) -> DecimalValue:
    """Sum an iterable of values exactly."""
    total = Decimal(0)
    for value in values:
        total = WORKING_CONTEXT.add(total, _coerce(value))
    return DecimalValue(total)


def subtract(a: DecimalInput, b: DecimalInput) -> DecimalValue:
    """Subtract b from a."""
    return DecimalValue(WORKING_CONTEXT.subtract(_coerce(a), _coerce(b)))


def multiply(a: DecimalInput, b: DecimalInput) -> DecimalValue:
    """Multiply two values."""
    return DecimalValue(WORKING_CONTEXT.multiply(_coerce(a), _coerce(b)))


def divide(a: DecimalInput, b: DecimalInput) -> DecimalValue:
    """
    Divide a by b.

    Returns zero (and logs a warning) when b is zero.
    """
    divisor = _coerce(b)
    if divisor.is_zero():
        logger.warning("Division by zero attempted")
        return DecimalValue.zero()
    return DecimalValue(WORKING_CONTEXT.divide(_coerce(a), divisor))


def percent_of(value: DecimalInput, total: DecimalInput) -> DecimalValue:
    """
    Calculate (value / total) * 100.

    Returns zero when total is zero.
    """
    total_decimal = _coerce(total)
    if total_decimal.is_zero():
        return DecimalValue.zero()
    ratio = WORKING_CONTEXT.divide(_coerce(value), total_decimal)
    return DecimalValue(WORKING_CONTEXT.multiply(ratio, Decimal(100)))


def apply_rate(value: DecimalInput, rate_percent: DecimalInput) -> DecimalValue:
    """
    Apply a percentage rate to a value: value * (rate / 100).

    Example:
        apply_rate(1000, 15) -> 150
    """
    rate = WORKING_CONTEXT.divide(_coerce(rate_percent), Decimal(100))
    return DecimalValue(WORKING_CONTEXT.multiply(_coerce(value), rate))


def abs_value(value: DecimalInput) -> DecimalValue:
    """Get absolute value."""
    return DecimalValue.parse(value).abs()


def negate(value: DecimalInput) -> DecimalValue:
    """Flip the sign of a value."""
    return -DecimalValue.parse(value)


def maximum(*values: DecimalInput) -> DecimalValue:
    """Largest of the values (zero when no values are given)."""
    if not values:
        return DecimalValue.zero()
    return max(DecimalValue.parse(v) for v in values)


def minimum(*values: DecimalInput) -> DecimalValue:
    """Smallest of the values (zero when no values are given)."""
    if not values:
        return DecimalValue.zero()
    return min(DecimalValue.parse(v) for v in values)


# ============================================
# Comparison
# ============================================


def compare(a: DecimalInput, b: DecimalInput) -> int:
    """Compare two values: -1 if a < b, 0 if equal, 1 if a > b."""
    left, right = _coerce(a), _coerce(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def is_zero(value: DecimalInput) -> bool:
    return DecimalValue.parse(value).is_zero()


def is_positive(value: DecimalInput) -> bool:
    return DecimalValue.parse(value).is_positive()


def is_negative(value: DecimalInput) -> bool:
    return DecimalValue.parse(value).is_negative()


# ============================================
# Aggregation
# ============================================

KeySpec = Union[str, Callable[[Any], Any]]


def _extract(item: Any, key: KeySpec) -> Any:
    if callable(key):
        return key(item)
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _summable(value: Any) -> bool:
    return isinstance(value, (DecimalValue, Decimal, str, int)) and not isinstance(value, bool)


def sum_by(items: Iterable[Any], key: KeySpec) -> DecimalValue:
    """
    Sum a field across items.

    Args:
        items: Objects or dicts
        key: Attribute/dict key name, or a callable returning the value

    Returns:
        Exact sum; values that are not numeric-like are skipped
    """
    total = Decimal(0)
    for item in items:
        value = _extract(item, key)
        if _summable(value):
            total = WORKING_CONTEXT.add(total, _coerce(value))
    return DecimalValue(total)


def group_and_sum(items: Iterable[Any], group_key: KeySpec, sum_key: KeySpec) -> dict[str, DecimalValue]:
    """
    Group items by a key and sum a field within each group.

    Groups keep first-seen order.
    """
    result: dict[str, DecimalValue] = {}
    for item in items:
        value = _extract(item, sum_key)
        if not _summable(value):
            continue
        group = str(_extract(item, group_key))
        result[group] = result.get(group, DecimalValue.zero()) + value
    return result


# ============================================
# Formatting
# ============================================


def to_fixed(value: DecimalInput, decimals: int = 2) -> str:
    """Format with fixed decimal places."""
    return DecimalValue.parse(value).to_fixed(decimals)


def to_string(value: DecimalInput) -> str:
    """Format without trailing zeros."""
    return DecimalValue.parse(value).to_string()


def format_currency(value: DecimalInput, symbol: str = "$", decimals: int = 2) -> str:
    """
    Format as currency string with symbol and thousands separators.

    Example:
        format_currency("-1234.5", "$") -> "-$1,234.50"
    """
    d = DecimalValue.parse(value)
    fixed = Decimal(d.abs().to_fixed(decimals))
    sign = "-" if d.is_negative() and not fixed.is_zero() else ""
    return f"{sign}{symbol}{fixed:,f}"


def format_whole_number(value: DecimalInput) -> str:
    """Format as whole number with thousands separators: 1234.5 -> "1,235"."""
    whole = Decimal(DecimalValue.parse(value).to_fixed(0))
    return f"{whole:,f}"


def format_percentage(value: DecimalInput, decimals: int = 2) -> str:
    """Format as percentage string: 15.5 -> "15.50%"."""
    return f"{to_fixed(value, decimals)}%"
