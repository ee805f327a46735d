"""Fixed-point amount comparison with bounded decimal precision.

Amounts travel as integers in token base units (``10**decimals`` per token).
Simulation and on-chain arithmetic may disagree in the last digits, so two
amounts are equal when their decimal forms agree after rounding to
``precision`` fractional digits.
"""
from __future__ import annotations

import decimal as dec
from decimal import ROUND_HALF_UP, Decimal

from ringcheck.domain.errors import ToleranceViolation
from ringcheck.infrastructure.config.settings import get_settings

__all__ = ["to_decimal", "quantize_amount", "amounts_equal", "assert_amounts_equal"]


def _make_quant(scale: int) -> Decimal:
    # Decimal tuple: sign=0, digits=(1,), exponent=-scale -> 10^-scale
    return Decimal((0, (1,), -scale))


def _local_context(amount: int, scale: int) -> dec.Context:
    s = get_settings()
    # every digit of the amount plus the full fractional part stays exact
    prec = max(100, len(str(abs(int(amount))))) + scale
    return dec.Context(prec=prec, rounding=getattr(dec, s.rounding, ROUND_HALF_UP))


def to_decimal(amount: int, decimals: int | None = None) -> Decimal:
    """Return ``amount / 10**decimals`` as an exact Decimal."""
    scale = get_settings().token_decimals if decimals is None else decimals
    return _local_context(amount, scale).divide(Decimal(int(amount)), Decimal(10) ** scale)


def quantize_amount(amount: int, precision: int | None = None, decimals: int | None = None) -> Decimal:
    """Decimal form of ``amount`` rounded to ``precision`` fractional digits."""
    scale = get_settings().token_decimals if decimals is None else decimals
    p = get_settings().amount_precision if precision is None else precision
    # digits past the token scale are always zero
    p = min(p, scale)
    return to_decimal(amount, scale).quantize(_make_quant(p), context=_local_context(amount, scale))


def amounts_equal(a: int, b: int, precision: int | None = None, decimals: int | None = None) -> bool:
    """Tolerance-aware equality of two base-unit amounts.

    Negative amounts never occur in a valid settlement and always mismatch.
    """
    if a < 0 or b < 0:
        return False
    if a == b:
        return True
    return quantize_amount(a, precision, decimals) == quantize_amount(b, precision, decimals)


def assert_amounts_equal(
    observed: int,
    predicted: int,
    precision: int | None = None,
    *,
    path: str = "amount",
) -> None:
    """Raise ``ToleranceViolation`` when the amounts differ beyond ``precision``."""
    if not amounts_equal(observed, predicted, precision):
        p = get_settings().amount_precision if precision is None else precision
        raise ToleranceViolation(
            f"{path}: observed {to_decimal(observed)} != predicted {to_decimal(predicted)} "
            f"at {p} decimal places",
            path=path,
        )
