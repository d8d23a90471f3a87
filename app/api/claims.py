# app/api/claims.py
"""Claim endpoints: submit a claim on a post, list a user's claims."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import get_claim_service
from app.api.responses import result_response
from app.models.claim import ClaimRequest
from app.services.claim_service import ClaimService

router = APIRouter()


@router.post("/posts/{post_id}/claims")
async def submit_claim(
    post_id: str,
    body: ClaimRequest,
    service: ClaimService = Depends(get_claim_service),
):
    result = await service.submit_claim(post_id, body.user_id, body.quantity)
    return result_response(result, success_status=201)


@router.get("/users/{user_id}/claims")
async def list_user_claims(
    user_id: str,
    service: ClaimService = Depends(get_claim_service),
):
    return result_response(await service.list_user_claims(user_id))
