"""Utility helpers for calculator modules."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from uaetax.backend.app.errors import InvalidInput

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")
ZERO = Decimal("0")
# Products of amounts below this bound still quantize to cents in the default context.
MAX_AMOUNT = Decimal("1e15")


def round_currency(value: Decimal) -> Decimal:
    """Round monetary amounts to two decimals, half away from zero."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_rate(value: Decimal) -> Decimal:
    """Round rate values to four decimals."""

    return value.quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Render ``value`` with exactly two decimals and a ``.`` separator."""

    return f"{round_currency(value):.2f}"


def format_percentage(rate: Decimal) -> str:
    """Return the percentage for ``rate`` with two decimals (``0.05`` -> ``5.00``)."""

    return f"{(rate * 100).quantize(CENT, rounding=ROUND_HALF_UP):.2f}"


def require_non_negative(value: Decimal, field: str) -> Decimal:
    """Reject amounts outside ``[0, MAX_AMOUNT)`` before any arithmetic happens."""

    if not value.is_finite():
        raise InvalidInput(f"Field '{field}' must be a finite number", field=field)
    if value < 0:
        raise InvalidInput(f"Field '{field}' cannot be negative", field=field)
    if value >= MAX_AMOUNT:
        raise InvalidInput(
            f"Field '{field}' exceeds the maximum supported amount", field=field
        )
    return value
