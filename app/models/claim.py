"""
Claim schemas: a recipient's reservation against a post.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ClaimStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class ClaimRequest(BaseModel):
    # accepted loosely; submit_claim classifies a missing user or a bad quantity
    user_id: Optional[Any] = None
    quantity: Optional[Any] = Field(None, description="Requested quantity, in the post's unit")
