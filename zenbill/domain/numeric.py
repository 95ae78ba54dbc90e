"""Permissive numeric parsing and money rounding.

Every calculation in ``zenbill.domain`` reads its numbers through
``parse_numeric_or_zero``: anything that does not look like a number counts as
zero instead of raising. Callers that need validation do it before calling in.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Magnitudes a double can hold; anything outside reads as zero.
_MAX_ADJUSTED = 308
_MIN_ADJUSTED = -324

# Leading numeric prefix: "12.5kg" -> "12.5", "1e3x" -> "1e3".
_FLOAT_PREFIX_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_numeric_or_zero(value: object) -> Decimal:
    """Coerce ``value`` to a finite Decimal, or ``Decimal("0")``.

    Strings are read by their leading numeric prefix, so ``"12.5 kg"`` is
    ``12.5`` while ``"abc"`` is zero. Never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(str(value))
    else:
        match = _FLOAT_PREFIX_RE.match(str(value))
        if not match:
            return ZERO
        try:
            number = Decimal(match.group(1))
        except InvalidOperation:
            return ZERO

    if not number.is_finite():
        return ZERO
    if number and not _MIN_ADJUSTED <= number.adjusted() <= _MAX_ADJUSTED:
        return ZERO
    return number


def parse_int_or_default(value: object, default: int) -> int:
    """Integer prefix of ``value``; zero or unparseable values give ``default``."""
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, int):
        number = value
    elif isinstance(value, (float, Decimal)):
        if not Decimal(str(value)).is_finite():
            return default
        number = int(value)
    else:
        match = _INT_PREFIX_RE.match(str(value))
        if not match:
            return default
        number = int(match.group(1))

    return number or default


def quantize_half_up(value: Decimal, exponent: Decimal) -> Decimal:
    """Quantize half-up; precision grows with the coefficient so large amounts fit."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - exponent.adjusted() + 2)
        return value.quantize(exponent, rounding=ROUND_HALF_UP)


def round_money(value: Decimal | int | float | str | None) -> Decimal:
    """Round to cents, half away from zero.

    Decimal arithmetic means a half cent always rounds up: 1.005 gives 1.01.
    """
    if isinstance(value, Decimal) and value.is_finite():
        number = value
    else:
        number = parse_numeric_or_zero(value)
    return quantize_half_up(number, CENT)


def percent_of(base: Decimal, rate: Decimal) -> Decimal:
    return base * rate / HUNDRED
