# app/services/claim_service.py
"""
Claim admission and per-user claim history.

submit_claim decides, in order:
  1. user id parses            -> else InvalidUser
  2. post exists               -> else PostNotFound
  3. no claim by this user yet -> else DuplicateClaim (whatever the quantity)
  4. leftover from all claims on the post
  5. requested <= leftover     -> else InsufficientQuantity {leftover, requested}
  6. insert the claim

Steps 2-6 are re-run inside the `admit_claim` database function, which locks the post
row, so two concurrent submissions cannot both take the last portion. Submissions for
an existing post inside this process are also serialized with a per-post asyncio.Lock;
locks live in a WeakValueDictionary and disappear once no submission holds them.

Quantities are Decimals throughout and go out as JSON numbers.
"""
from __future__ import annotations

import asyncio
import logging
import weakref
from decimal import Decimal
from typing import Any, Dict, Optional

from app.models.claim import ClaimStatus
from app.models.quantity import as_number, format_quantity, parse_quantity, to_decimal
from app.services import results
from app.services.availability import compute_availability
from app.services.identity import parse_id
from app.services.results import StorageError, error_result, ok_result, storage_failure
from app.services.store import ADMITTED, DUPLICATE, INSUFFICIENT, NOT_FOUND, FoodShareStore

logger = logging.getLogger(__name__)

_POST_SUMMARY_FIELDS = ("id", "food_name", "quantity_type", "image", "address", "expiry_timer")


def claim_status_for(requested: Decimal, leftover: Decimal) -> ClaimStatus:
    """
    Status recorded on a new claim.

    The pending branch only triggers when a request exceeds the leftover, which
    admission has already rejected, so every admitted claim is accepted.
    """
    return ClaimStatus.ACCEPTED if requested <= leftover else ClaimStatus.PENDING


def _post_not_found(post_id: Any) -> Dict[str, Any]:
    return error_result(results.POST_NOT_FOUND, "Post not found", {"post_id": post_id})


def _duplicate(post_id: int, user_id: int) -> Dict[str, Any]:
    return error_result(
        results.DUPLICATE_CLAIM,
        "You have already claimed this food",
        {"post_id": post_id, "user_id": user_id},
    )


def _insufficient(post: Dict[str, Any], leftover: Decimal, requested: Decimal) -> Dict[str, Any]:
    unit = f" {post['quantity_type']}" if post.get("quantity_type") else ""
    shown = format_quantity(max(leftover, Decimal(0)))
    return error_result(
        results.INSUFFICIENT_QUANTITY,
        f"Only {shown}{unit} left, but you requested {format_quantity(requested)}{unit}",
        {"leftover": as_number(leftover), "requested": as_number(requested)},
    )


class ClaimService:

    def __init__(self, store: Optional[FoodShareStore] = None):
        self.store = store or FoodShareStore()
        self._post_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, post_id: int) -> asyncio.Lock:
        lock = self._post_locks.get(post_id)
        if lock is None:
            lock = asyncio.Lock()
            self._post_locks[post_id] = lock
        return lock

    async def submit_claim(
        self, post_id: Any, user_id: Any, requested_quantity: Any
    ) -> Dict[str, Any]:
        """
        Record a claim of `requested_quantity` on `post_id` for `user_id`.

        Returns {"ok": True, "data": claim_row, "diagnostics": {"leftover": ...}} or an
        error result whose kind is one of InvalidUser, ValidationError, PostNotFound,
        DuplicateClaim, InsufficientQuantity, StorageFailure.
        """
        uid = parse_id(user_id)
        if uid is None:
            return error_result(
                results.INVALID_USER,
                "You must be logged in to claim food",
                {"user_id": str(user_id)},
            )

        pid = parse_id(post_id)
        if pid is None:
            return _post_not_found(str(post_id))

        quantity = parse_quantity(requested_quantity)
        if quantity is None:
            return error_result(
                results.VALIDATION_ERROR,
                "Please enter a valid quantity greater than 0",
                {"field": "quantity"},
            )

        logger.info("submit_claim post=%s user=%s quantity=%s", pid, uid, quantity)
        try:
            post = await self.store.get_post(pid)
            if post is None:
                return _post_not_found(pid)
            async with self._lock_for(pid):
                return await self._admit(post, uid, quantity)
        except StorageError as exc:
            logger.exception("submit_claim failed post=%s user=%s: %s", pid, uid, exc)
            return storage_failure(exc)

    async def _admit(self, post: Dict[str, Any], user_id: int, quantity: Decimal) -> Dict[str, Any]:
        post_id = post["id"]
        if await self.store.get_claim(post_id, user_id) is not None:
            return _duplicate(post_id, user_id)

        claims = await self.store.list_claims_for_post(post_id)
        leftover, _ = compute_availability(post, claims)
        if quantity > leftover:
            return _insufficient(post, leftover, quantity)

        status = claim_status_for(quantity, leftover)
        outcome = await self.store.admit_claim(post_id, user_id, quantity, status.value)
        kind = outcome.get("outcome")

        # the database saw a different state than the pre-check; trust the database
        if kind == NOT_FOUND:
            return _post_not_found(post_id)
        if kind == DUPLICATE:
            return _duplicate(post_id, user_id)
        if kind == INSUFFICIENT:
            return _insufficient(post, to_decimal(outcome.get("leftover")), quantity)
        if kind != ADMITTED or not outcome.get("claim"):
            raise StorageError("admit_claim", RuntimeError(f"unexpected outcome {kind!r}"))

        claim = outcome["claim"]
        logger.info(
            "claim admitted id=%s post=%s user=%s status=%s",
            claim.get("id"),
            post_id,
            user_id,
            claim.get("status"),
        )
        return ok_result(claim, {"leftover": as_number(leftover - quantity)})

    async def list_user_claims(self, user_id: Any) -> Dict[str, Any]:
        """A user's claims, newest first, each with a summary of the claimed post."""
        uid = parse_id(user_id)
        if uid is None:
            return error_result(results.INVALID_USER, "Invalid user", {"user_id": str(user_id)})

        try:
            claims = await self.store.list_claims_for_user(uid)
            posts = await self.store.get_posts_by_ids(c.get("post_id") for c in claims)
        except StorageError as exc:
            logger.exception("list_user_claims failed user=%s: %s", uid, exc)
            return storage_failure(exc)

        by_id = {p.get("id"): p for p in posts}
        out = []
        for claim in claims:
            post = by_id.get(claim.get("post_id"))
            summary = {k: post.get(k) for k in _POST_SUMMARY_FIELDS} if post else None
            out.append({**claim, "post": summary})
        return ok_result(out, {"count": len(out)})
