# tests/test_claim_service.py
import asyncio

import pytest

from app.models.claim import ClaimStatus
from app.services.claim_service import ClaimService, claim_status_for
from app.services.store import FoodShareStore


@pytest.mark.asyncio
async def test_ten_plates_scenario(claim_service, seed_post, fake_supabase_client):
    post = seed_post(quantity_value=10, quantity_type="plates")

    a = await claim_service.submit_claim(post["id"], "1", 4)
    assert a["ok"] is True
    assert a["data"]["status"] == "accepted"
    assert a["data"]["claimed_quantity"] == 4
    assert a["diagnostics"]["leftover"] == 6

    b = await claim_service.submit_claim(post["id"], "2", 6)
    assert b["ok"] is True
    assert b["diagnostics"]["leftover"] == 0

    c = await claim_service.submit_claim(post["id"], "3", 1)
    assert c["ok"] is False
    assert c["error"] == "InsufficientQuantity"
    assert c["diagnostics"] == {"leftover": 0, "requested": 1}
    assert "0 plates" in c["message"]

    assert len(fake_supabase_client.tables["claims"]) == 2


@pytest.mark.asyncio
async def test_second_claim_by_same_user_is_duplicate(claim_service, seed_post, fake_supabase_client):
    post = seed_post(quantity_value=10)
    first = await claim_service.submit_claim(post["id"], 1, 2)
    assert first["ok"] is True

    for qty in (1, 2, 8):
        again = await claim_service.submit_claim(post["id"], 1, qty)
        assert again["ok"] is False
        assert again["error"] == "DuplicateClaim"
    assert len(fake_supabase_client.tables["claims"]) == 1


@pytest.mark.asyncio
async def test_over_claim_is_rejected_without_insert(claim_service, seed_post, fake_supabase_client):
    post = seed_post(quantity_value=3, quantity_type="kg")
    res = await claim_service.submit_claim(post["id"], 5, 3.5)
    assert res["error"] == "InsufficientQuantity"
    assert res["diagnostics"] == {"leftover": 3, "requested": 3.5}
    assert fake_supabase_client.tables["claims"] == []


@pytest.mark.asyncio
async def test_fractional_claims_fill_a_post_exactly(claim_service, listing_service, seed_post):
    post = seed_post(quantity_value=0.3, quantity_type="kg")

    first = await claim_service.submit_claim(post["id"], 1, 0.1)
    assert first["ok"] is True
    assert first["diagnostics"]["leftover"] == 0.2

    second = await claim_service.submit_claim(post["id"], 2, "0.2")
    assert second["ok"] is True
    assert second["diagnostics"]["leftover"] == 0

    third = await claim_service.submit_claim(post["id"], 3, 0.1)
    assert third["error"] == "InsufficientQuantity"
    assert third["message"] == "Only 0 kg left, but you requested 0.1 kg"

    listing = await listing_service.list_posts()
    assert listing["data"][0]["leftover_quantity"] == 0
    assert listing["data"][0]["is_available"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [None, "", "abc", "12x", True])
async def test_unparseable_user_is_invalid(claim_service, seed_post, user_id):
    post = seed_post()
    res = await claim_service.submit_claim(post["id"], user_id, 1)
    assert res["ok"] is False
    assert res["error"] == "InvalidUser"


@pytest.mark.asyncio
async def test_missing_post(claim_service):
    res = await claim_service.submit_claim(404, 1, 1)
    assert res["error"] == "PostNotFound"
    res = await claim_service.submit_claim("not-a-number", 1, 1)
    assert res["error"] == "PostNotFound"


@pytest.mark.asyncio
async def test_claims_on_unknown_posts_leave_no_locks_behind(claim_service, seed_post):
    for post_id in range(10000, 10200):
        res = await claim_service.submit_claim(post_id, 1, 1)
        assert res["error"] == "PostNotFound"
    assert len(claim_service._post_locks) == 0

    post = seed_post()
    assert (await claim_service.submit_claim(post["id"], 1, 1))["ok"] is True
    assert len(claim_service._post_locks) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -1, "lots", None, float("nan")])
async def test_bad_quantity_is_validation_error(claim_service, seed_post, quantity):
    post = seed_post()
    res = await claim_service.submit_claim(post["id"], 1, quantity)
    assert res["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_concurrent_claims_cannot_overcommit(claim_service, seed_post, fake_supabase_client):
    post = seed_post(quantity_value=10)
    results = await asyncio.gather(
        *(claim_service.submit_claim(post["id"], uid, 6) for uid in (1, 2, 3))
    )
    assert sum(1 for r in results if r["ok"]) == 1
    assert {r["error"] for r in results if not r["ok"]} == {"InsufficientQuantity"}
    claimed = sum(c["claimed_quantity"] for c in fake_supabase_client.tables["claims"])
    assert claimed <= 10


class _RacingStore(FoodShareStore):
    """Pre-checks see stale state; another writer takes the stock before admit_claim runs."""

    def __init__(self, client, rival_quantity):
        super().__init__(client=client)
        self._rival_quantity = rival_quantity

    async def admit_claim(self, post_id, user_id, quantity, status):
        self.client.insert(
            "claims",
            {"post_id": post_id, "user_id": 999, "claimed_quantity": self._rival_quantity},
        )
        return await super().admit_claim(post_id, user_id, quantity, status)


@pytest.mark.asyncio
async def test_database_check_wins_over_stale_precheck(fake_supabase_client, seed_post):
    post = seed_post(quantity_value=10)
    svc = ClaimService(store=_RacingStore(fake_supabase_client, rival_quantity=8))
    res = await svc.submit_claim(post["id"], 1, 5)
    assert res["error"] == "InsufficientQuantity"
    assert res["diagnostics"] == {"leftover": 2, "requested": 5}
    assert [c["user_id"] for c in fake_supabase_client.tables["claims"]] == [999]


@pytest.mark.asyncio
async def test_storage_failure_is_reported_not_raised(claim_service, seed_post, fake_supabase_client):
    post = seed_post()
    fake_supabase_client.failing.add("claims")
    res = await claim_service.submit_claim(post["id"], 1, 1)
    assert res["ok"] is False
    assert res["error"] == "StorageFailure"
    assert "connection refused" not in res["message"]
    assert res["diagnostics"]["operation"] == "get_claim"


def test_status_rule_only_accepts_within_leftover():
    assert claim_status_for(4, 10) is ClaimStatus.ACCEPTED
    assert claim_status_for(10, 10) is ClaimStatus.ACCEPTED
    assert claim_status_for(11, 10) is ClaimStatus.PENDING


@pytest.mark.asyncio
async def test_list_user_claims_newest_first_with_post_summary(claim_service, seed_post):
    first = seed_post(food_name="Idli")
    second = seed_post(food_name="Dal Rice", quantity_type="kg")
    other = seed_post(food_name="Samosa", quantity_type="items")
    await claim_service.submit_claim(first["id"], 1, 1)
    await claim_service.submit_claim(other["id"], 2, 1)
    await claim_service.submit_claim(second["id"], 1, 2)

    res = await claim_service.list_user_claims("1")
    assert res["ok"] is True
    claims = res["data"]
    assert [c["post_id"] for c in claims] == [second["id"], first["id"]]
    assert claims[0]["post"]["food_name"] == "Dal Rice"
    assert claims[0]["post"]["quantity_type"] == "kg"
    assert claims[1]["post"]["image"] == first["image"]


@pytest.mark.asyncio
async def test_list_user_claims_invalid_user(claim_service):
    res = await claim_service.list_user_claims("me")
    assert res["error"] == "InvalidUser"


@pytest.mark.asyncio
async def test_list_user_claims_empty(claim_service):
    res = await claim_service.list_user_claims(42)
    assert res == {"ok": True, "data": [], "diagnostics": {"count": 0}}
