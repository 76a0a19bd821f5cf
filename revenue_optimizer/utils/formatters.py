"""Numeric coercion and output formatting helpers."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce a Shopify numeric field to float.

    Shopify sends money as strings ("19.99") and may send null for
    optional numbers. Anything unparseable becomes ``default``.

    Args:
        value: Raw value (str, int, float, Decimal or None)
        default: Value returned for missing or invalid input

    Returns:
        Parsed float
    """
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_decimal(value: Any) -> Decimal:
    """Coerce a money value to Decimal, 0 on missing or invalid input."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def round_half_up(value: Any, places: int = 2) -> float:
    """
    Round with half-up semantics (2.675 -> 2.68), unlike builtin round().

    Args:
        value: Number to round
        places: Decimal places to keep

    Returns:
        Rounded float
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value: float, places: int = 2) -> str:
    """Fixed-point text using half-up rounding."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_threshold(value: float) -> str:
    """Render a threshold without a trailing ``.0`` (10.0 -> "10", 7.5 -> "7.5")."""
    return f"{value:g}"
