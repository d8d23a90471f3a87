# app/api/dependencies.py
"""
Service singletons for route handlers.

Handlers take these through Depends() so tests can swap them with
app.dependency_overrides. ClaimService must stay a singleton: it owns the
per-post admission locks.
"""
from functools import lru_cache

from app.services.auth_service import AuthService
from app.services.claim_service import ClaimService
from app.services.image_upload import CloudinaryUploader
from app.services.listing_service import ListingService
from app.services.post_service import PostService
from app.services.store import FoodShareStore


@lru_cache(maxsize=1)
def get_store() -> FoodShareStore:
    return FoodShareStore()


@lru_cache(maxsize=1)
def get_post_service() -> PostService:
    return PostService(store=get_store(), uploader=CloudinaryUploader())


@lru_cache(maxsize=1)
def get_listing_service() -> ListingService:
    return ListingService(store=get_store())


@lru_cache(maxsize=1)
def get_claim_service() -> ClaimService:
    return ClaimService(store=get_store())


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return AuthService(store=get_store())
