"""
User schemas for registration and credential checks.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    USER = "USER"
    DONOR = "DONOR"


def role_for_account_type(account_type: str) -> Role:
    """Registration form sends 'donor' or 'recipient'; anything else is a recipient."""
    return Role.DONOR if (account_type or "").strip().lower() == "donor" else Role.USER


class LoginRequest(BaseModel):
    # missing fields fail as bad credentials, not as a malformed body
    email: Optional[str] = None
    password: Optional[str] = None
