"""
Number Formatting Utilities

Display helpers shared by the swap form, the confirmation messages and the CLI.
Output mirrors what an en-US number formatter produces: thousands separators,
at most N fraction digits, trailing zeros dropped.
"""

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext


def _fixed(value: float, digits: int, grouping: str = "") -> str:
    """Round half-up to `digits` fraction digits and render in fixed-point notation."""
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        # Room for every integer digit of large amounts plus the fraction
        ctx.prec = max(28, exact.adjusted() + digits + 2)
        rounded = exact.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
        return f"{rounded:{grouping}.{digits}f}"


def format_token(value: float, maximum_fraction_digits: int = 6) -> str:
    """
    Format a token amount.

    Examples:
        >>> format_token(1234.5)
        '1,234.5'
        >>> format_token(0.05250001, 4)
        '0.0525'
    """
    if not math.isfinite(value):
        return "NaN" if math.isnan(value) else ("∞" if value > 0 else "-∞")
    text = _fixed(value, maximum_fraction_digits, ",")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_fiat(value: float, maximum_fraction_digits: int = 2) -> str:
    """
    Format a USD value.

    Examples:
        >>> format_fiat(2100)
        '$2,100'
        >>> format_fiat(-12.345)
        '-$12.35'
    """
    amount = format_token(abs(value), maximum_fraction_digits)
    sign = "-" if value < 0 and amount != "0" else ""
    return f"{sign}${amount}"


def format_input_value(value: float) -> str:
    """
    Normalize a number for an amount input box.

    Fixed to 6 fraction digits, trailing zeros (and a dangling dot) removed,
    no thousands separators. Non-finite values become an empty string.

    Examples:
        >>> format_input_value(12.5)
        '12.5'
        >>> format_input_value(100)
        '100'
        >>> format_input_value(0.0000001)
        '0'
    """
    if not math.isfinite(value):
        return ""
    normalized = _fixed(value, 6).rstrip("0").rstrip(".")
    if normalized in ("", "-0"):
        return "0"
    return normalized
