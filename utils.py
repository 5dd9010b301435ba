"""
Utility functions for SplitCheck money handling
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

CENT = Decimal("0.01")
# Integer digits from which a value is too large to be money; such input is
# rejected on ingestion so sums stay inside the decimal context range
MAX_DIGITS = 64


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def to_decimal(x: Any) -> Optional[Decimal]:
    """
    Convert untrusted numeric input to Decimal.
    Floats go through str() so 0.1 stays 0.1. Returns None for anything that
    is not a finite number (bools, NaN, infinities, junk strings) and for
    values with MAX_DIGITS or more integer digits.
    """
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, Decimal):
        d = x
    elif isinstance(x, (int, float)):
        d = Decimal(str(x))
    elif isinstance(x, str):
        try:
            d = Decimal(x.strip().replace(",", ""))
        except InvalidOperation:
            return None
    else:
        return None
    if not d.is_finite() or d.adjusted() >= MAX_DIGITS:
        return None
    return d


def safe_decimal(x: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Convert to Decimal safely, returning default on error"""
    d = to_decimal(x)
    return default if d is None else d


def round_half_up(d: Decimal, exp: Decimal) -> Decimal:
    """
    d.quantize(exp) with round-half-up, in a context wide enough for any
    ingested value. Values too large to carry the fraction come back unchanged.
    """
    if d.adjusted() >= MAX_DIGITS:
        return d
    with localcontext() as ctx:
        ctx.prec = MAX_DIGITS + 4
        return d.quantize(exp, rounding=ROUND_HALF_UP)


def quantize_money(d: Decimal) -> Decimal:
    """Round to the currency scale using round-half-up"""
    return round_half_up(d, CENT)


def fraction_digits(d: Decimal) -> int:
    """Number of significant fractional digits (trailing zeros ignored)"""
    if d == d.to_integral_value():
        return 0
    exp = d.normalize().as_tuple().exponent
    return max(0, -exp)


def format_money(d: Decimal) -> str:
    """1100 -> '1,100.00'; oversized values fall back to str()"""
    if d.adjusted() >= MAX_DIGITS:
        return str(d)
    return f"{quantize_money(d):,.2f}"


def format_number(d: Decimal) -> str:
    """Plain rendering without exponent or trailing zeros"""
    if d.adjusted() >= MAX_DIGITS:
        return str(d)
    return f"{d.normalize():f}"
