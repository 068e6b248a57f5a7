"""Canonical text for the numbers sent to StatsD.

The aggregator parses values as plain ASCII decimal tokens, so formatting
must never depend on the host locale:

    integers (any width)  ->  exact base-10 digits          "42", "-7", "18446744073709551616"
    floating point        ->  two digits after a '.'        "3.14", "0.00"
    non-finite floats     ->  "NaN", "Infinity", "-Infinity"

Everything is normalized through ``coerce_number`` onto int or float first;
values outside that closed set are rejected with ``None``.
"""

import math
import numbers
from decimal import Decimal
from typing import Optional, Union


def coerce_number(value) -> Optional[Union[int, float]]:
    """Map a supported numeric value onto ``int`` or ``float``.

    Integral values of any width (Python ints, numpy integer scalars) become
    ``int``. Real values (floats, numpy floating scalars, fractions) and
    Decimals become ``float``. ``bool`` is not treated as a number, and
    anything else returns ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, (numbers.Real, Decimal)):
        return float(value)
    return None


def format_long(value: int) -> str:
    return str(int(value))


def format_double(value: float) -> str:
    """Two-decimal text for ``value``; NaN and infinities are spelled out."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    # format specs ignore LC_NUMERIC
    return f"{value:.2f}"


def format_value(value) -> Optional[str]:
    """Format any supported numeric value, or return ``None`` for unsupported kinds."""
    number = coerce_number(value)
    if number is None:
        return None
    if isinstance(number, int):
        return format_long(number)
    return format_double(number)
