# app/services/store.py
"""
Supabase-backed Post / Claim / User store.

- Blocking supabase-py calls run through asyncio.to_thread so the event loop never blocks.
- Responses are normalized defensively (object with .data OR dict with "data").
- Every failure (no client, SDK exception) is raised as StorageError; the services turn
  it into a StorageFailure result.
- Claims for a listing are fetched with one batched `post_id IN (...)` query.
- New claims go through the `admit_claim` Postgres function (sql/schema.sql), which
  locks the post row and re-checks duplicate/leftover before inserting.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.config import supabase as supabase_config
from app.models.quantity import format_quantity, to_decimal
from app.services.results import StorageError

logger = logging.getLogger(__name__)

POSTS = "posts"
CLAIMS = "claims"
USERS = "users"

ADMIT_CLAIM_FN = "admit_claim"

# outcomes reported by admit_claim
ADMITTED = "admitted"
NOT_FOUND = "not_found"
DUPLICATE = "duplicate"
INSUFFICIENT = "insufficient"


def _response_data(resp: Any) -> Any:
    if resp is None:
        return None
    if hasattr(resp, "data"):
        return getattr(resp, "data")
    if isinstance(resp, dict):
        return resp.get("data")
    return None


def _rows(resp: Any) -> List[Dict[str, Any]]:
    data = _response_data(resp)
    if not data:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def _first(resp: Any) -> Optional[Dict[str, Any]]:
    rows = _rows(resp)
    return rows[0] if rows else None


async def _run_blocking(fn: Callable, *args, **kwargs) -> Any:
    return await asyncio.to_thread(lambda: fn(*args, **kwargs))


class FoodShareStore:

    def __init__(self, client: Optional[Any] = None):
        if client is None:
            client = getattr(supabase_config.supabase_client, "client", None)
        self.client = client
        if self.client is None:
            logger.warning("FoodShareStore: Supabase client not available. DB operations will fail.")

    async def _execute(self, operation: str, fn: Callable[[], Any]) -> Any:
        if self.client is None:
            raise StorageError(operation, RuntimeError("no_supabase_client"))
        logger.debug("DB call: %s", operation)
        try:
            return await _run_blocking(fn)
        except Exception as exc:
            raise StorageError(operation, exc) from exc

    # -----------------------
    # Posts
    # -----------------------
    async def insert_post(self, row: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._execute(
            "insert_post", lambda: self.client.table(POSTS).insert(row).execute()
        )
        created = _first(resp)
        if created is None:
            raise StorageError("insert_post", RuntimeError("no_data_returned"))
        return created

    async def get_post(self, post_id: int) -> Optional[Dict[str, Any]]:
        resp = await self._execute(
            "get_post",
            lambda: self.client.table(POSTS).select("*").eq("id", post_id).limit(1).execute(),
        )
        return _first(resp)

    async def list_posts(self) -> List[Dict[str, Any]]:
        """All posts, newest (highest id) first."""
        resp = await self._execute(
            "list_posts",
            lambda: self.client.table(POSTS).select("*").order("id", desc=True).execute(),
        )
        return _rows(resp)

    async def get_posts_by_ids(self, post_ids: Iterable[int]) -> List[Dict[str, Any]]:
        ids = sorted(set(post_ids))
        if not ids:
            return []
        resp = await self._execute(
            "get_posts_by_ids",
            lambda: self.client.table(POSTS).select("*").in_("id", ids).execute(),
        )
        return _rows(resp)

    # -----------------------
    # Claims
    # -----------------------
    async def list_claims_for_post(self, post_id: int) -> List[Dict[str, Any]]:
        resp = await self._execute(
            "list_claims_for_post",
            lambda: self.client.table(CLAIMS).select("*").eq("post_id", post_id).execute(),
        )
        return _rows(resp)

    async def list_claims_for_posts(self, post_ids: Iterable[int]) -> List[Dict[str, Any]]:
        ids = sorted(set(post_ids))
        if not ids:
            return []
        resp = await self._execute(
            "list_claims_for_posts",
            lambda: self.client.table(CLAIMS).select("*").in_("post_id", ids).execute(),
        )
        return _rows(resp)

    async def get_claim(self, post_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        resp = await self._execute(
            "get_claim",
            lambda: self.client.table(CLAIMS)
            .select("*")
            .eq("post_id", post_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute(),
        )
        return _first(resp)

    async def list_claims_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        """A user's claims, most recent first."""
        resp = await self._execute(
            "list_claims_for_user",
            lambda: self.client.table(CLAIMS)
            .select("*")
            .eq("user_id", user_id)
            .order("claimed_at", desc=True)
            .execute(),
        )
        return _rows(resp)

    async def admit_claim(
        self, post_id: int, user_id: int, quantity: Any, status: str
    ) -> Dict[str, Any]:
        """
        Atomically re-check and insert a claim.

        Returns the function's JSON payload: {"outcome": ..., "claim": {...}} on success,
        {"outcome": "insufficient", "leftover": n}, {"outcome": "duplicate"} or
        {"outcome": "not_found"} otherwise.

        The quantity is sent as decimal text so Postgres `numeric` receives it exactly.
        """
        params = {
            "p_post_id": post_id,
            "p_user_id": user_id,
            "p_quantity": format_quantity(to_decimal(quantity)),
            "p_status": status,
        }
        resp = await self._execute(
            "admit_claim", lambda: self.client.rpc(ADMIT_CLAIM_FN, params).execute()
        )
        payload = _response_data(resp)
        if isinstance(payload, list):
            payload = payload[0] if payload else None
        if not isinstance(payload, dict) or "outcome" not in payload:
            raise StorageError("admit_claim", RuntimeError(f"unexpected payload: {payload!r}"))
        return payload

    # -----------------------
    # Users
    # -----------------------
    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        resp = await self._execute(
            "get_user_by_email",
            lambda: self.client.table(USERS).select("*").eq("email", email).limit(1).execute(),
        )
        return _first(resp)

    async def insert_user(self, row: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._execute(
            "insert_user", lambda: self.client.table(USERS).insert(row).execute()
        )
        created = _first(resp)
        if created is None:
            raise StorageError("insert_user", RuntimeError("no_data_returned"))
        return created
