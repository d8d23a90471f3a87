"""
Post schemas: a donor's surplus-food listing.

Rows live in the Supabase `posts` table; these models validate input before insert.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, Field, field_serializer, field_validator

from app.models.quantity import as_number


class FoodType(str, Enum):
    VEG = "veg"
    NONVEG = "nonveg"


class QuantityType(str, Enum):
    PLATES = "plates"
    KG = "kg"
    ITEMS = "items"


class FreshnessStatus(str, Enum):
    FRESHCOOKED = "freshcooked"
    PACKAGED = "packaged"
    NEAR_EXPIRY = "near_expiry"
    UNKNOWN = "unknown"


class PostCreate(BaseModel):
    """Fields a donor submits for a new listing (images are uploaded separately)."""

    food_name: str = Field(..., min_length=1, description="Free-text label, e.g. Veg Biryani")
    food_type: FoodType
    quantity_value: Decimal = Field(..., gt=0, allow_inf_nan=False, description="Total quantity offered")
    quantity_type: QuantityType
    expiry_timer: dt.datetime = Field(..., description="Advisory expiry; not enforced on claims")
    freshness_status: FreshnessStatus
    address: Optional[str] = Field(None, description="Pickup location")

    @field_validator("food_name")
    @classmethod
    def strip_food_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("food_name must not be blank")
        return v

    @field_validator("address")
    @classmethod
    def blank_address_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_serializer("quantity_value")
    def quantity_as_number(self, v: Decimal) -> Union[int, float]:
        # integral quantities are stored as 12, not 12.0
        return as_number(v)

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


@dataclass(frozen=True)
class ImageFile:
    """Raw image bytes handed to the upload collaborator."""

    data: bytes
    content_type: str = "image/jpeg"
    filename: Optional[str] = None
