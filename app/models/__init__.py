"""Schemas for the food-sharing marketplace."""
from app.models.claim import ClaimRequest, ClaimStatus
from app.models.post import FoodType, FreshnessStatus, ImageFile, PostCreate, QuantityType
from app.models.user import LoginRequest, Role, role_for_account_type

__all__ = [
    "ClaimRequest",
    "ClaimStatus",
    "FoodType",
    "FreshnessStatus",
    "ImageFile",
    "LoginRequest",
    "PostCreate",
    "QuantityType",
    "Role",
    "role_for_account_type",
]
