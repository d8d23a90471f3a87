"""
Quantity values as exact decimals.

Postgres stores quantities as `numeric`; Python does its arithmetic in Decimal so a
0.3 kg post is filled exactly by claims of 0.1 and 0.2. Values leave the service as
JSON numbers: int when integral, float otherwise.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union


def to_decimal(value: Any) -> Decimal:
    """Exact Decimal for a stored quantity. None counts as 0; raises ValueError on garbage."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"not a quantity: {value!r}")
    try:
        # str() first: Decimal(0.1) would keep the binary float error
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"not a quantity: {value!r}") from exc


def parse_quantity(value: Any) -> Optional[Decimal]:
    """A finite quantity greater than zero, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        quantity = to_decimal(value)
    except ValueError:
        return None
    if not quantity.is_finite() or quantity <= 0:
        return None
    return quantity


def as_number(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def format_quantity(value: Decimal) -> str:
    return format(value.normalize(), "f")
