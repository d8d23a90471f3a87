# app/services/identity.py
"""Caller-supplied identifiers arrive as numbers or numeric strings."""
from __future__ import annotations

from typing import Any, Optional


def parse_id(value: Any) -> Optional[int]:
    """Return the integer id, or None when `value` does not parse as one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None
