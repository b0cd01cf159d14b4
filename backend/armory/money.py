# Overview: Decimal helpers for unit costs and cost totals.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# Unit costs keep four places so weighted averages stay stable across many receipts
COST_QUANT = Decimal("0.0001")
ZERO_COST = Decimal("0.0000")


def to_cost(value: Decimal | int | float | str) -> Decimal:
    try:
        return Decimal(str(value)).quantize(COST_QUANT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"invalid cost value: {value!r}")


def cost_str(value: Decimal | None) -> str | None:
    """Serialize a cost for JSON responses (strings, never floats)."""
    if value is None:
        return None
    return str(to_cost(value))
