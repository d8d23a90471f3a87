# app/services/listing_service.py
"""
Per-viewer annotated listing of posts.

Every post gets `leftover_quantity` and `is_available`. When the viewer id parses,
every post also gets `user_claim_status` (the viewer's claim status or None); an
absent or unparseable viewer id drops that key without raising.

Claims for all listed posts are loaded with one batched query.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.models.quantity import as_number
from app.services.availability import compute_availability, group_claims_by_post
from app.services.identity import parse_id
from app.services.results import StorageError, ok_result, storage_failure
from app.services.store import FoodShareStore

logger = logging.getLogger(__name__)


class ListingService:

    def __init__(self, store: Optional[FoodShareStore] = None):
        self.store = store or FoodShareStore()

    async def list_posts(self, viewer_id: Any = None) -> Dict[str, Any]:
        viewer = parse_id(viewer_id)
        if viewer_id is not None and viewer is None:
            logger.debug("list_posts: ignoring unparseable viewer id %r", viewer_id)

        try:
            posts = await self.store.list_posts()
            claims = await self.store.list_claims_for_posts(p.get("id") for p in posts)
        except StorageError as exc:
            logger.exception("list_posts failed: %s", exc)
            return storage_failure(exc)

        by_post = group_claims_by_post(claims)
        annotated = []
        for post in posts:
            post_claims = by_post.get(post.get("id"), [])
            leftover, available = compute_availability(post, post_claims)
            item = {**post, "leftover_quantity": as_number(leftover), "is_available": available}
            if viewer is not None:
                mine = next((c for c in post_claims if c.get("user_id") == viewer), None)
                item["user_claim_status"] = mine.get("status") if mine else None
            annotated.append(item)

        # newest first, whatever order the store returned
        annotated.sort(key=lambda p: p.get("id") or 0, reverse=True)
        return ok_result(
            annotated,
            {"count": len(annotated), "personalized": viewer is not None},
        )
