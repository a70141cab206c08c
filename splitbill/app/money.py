"""
money.py — Decimal helpers shared by the split and balance services.

All monetary values are Decimal with 2-digit cent precision. Float arithmetic
must never appear in or around money calculations: floats coming in from JSON
or from callers are converted through str() so 0.1 stays Decimal("0.1").
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# Largest single amount accepted anywhere (expense total, exact share,
# ledger record). Sums over a full ledger stay well inside the default
# 28-digit context.
MAX_AMOUNT = Decimal("9999999999.99")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Converts a numeric value to Decimal without binary float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not monetary amounts.")
    return Decimal(str(value))


def round2(value: Decimal | int | float | str) -> Decimal:
    """
    Rounds to whole cents, half away from zero.

    Example: round2("10.005") == Decimal("10.01"), round2(33.3333) == Decimal("33.33")
    """
    value = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs one digit per cent of the integer part.
        if value.is_finite():
            ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Serialises an amount as a 2-dp string, e.g. Decimal("50") -> "50.00"."""
    return str(round2(value))
