# app/services/availability.py
"""
Leftover-quantity arithmetic for a post.

    total_claimed = sum of claimed_quantity over every claim (any status)
    leftover      = quantity_value - total_claimed
    is_available  = leftover > 0

All sums are exact Decimals, matching the `numeric` columns they come from.
Leftover is not clamped: it goes negative if claims were ever over-admitted, and
callers displaying it must cope with that.
"""
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from app.models.quantity import to_decimal


def total_claimed(claims: Iterable[Mapping[str, Any]]) -> Decimal:
    # numeric columns can come back from PostgREST as strings
    return sum((to_decimal(c.get("claimed_quantity")) for c in claims), Decimal(0))


def compute_availability(
    post: Mapping[str, Any], claims: Iterable[Mapping[str, Any]]
) -> Tuple[Decimal, bool]:
    """Return (leftover_quantity, is_available) for `post` given all of its claims."""
    claims = list(claims)
    post_id = post.get("id")
    for claim in claims:
        if claim.get("post_id") != post_id:
            raise ValueError(
                f"claim {claim.get('id')!r} references post {claim.get('post_id')!r}, not {post_id!r}"
            )
    leftover = to_decimal(post.get("quantity_value")) - total_claimed(claims)
    return leftover, leftover > 0


def group_claims_by_post(
    claims: Iterable[Mapping[str, Any]],
) -> Dict[Any, List[Mapping[str, Any]]]:
    grouped: Dict[Any, List[Mapping[str, Any]]] = defaultdict(list)
    for claim in claims:
        grouped[claim.get("post_id")].append(claim)
    return grouped
