# app/api/posts.py
"""
Post endpoints.

Identity is explicit: the creating donor sends X-User-Id / X-User-Role, and a viewer
passes ?viewer_id= to get their own claim status on each post.
"""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, Query, UploadFile

from app.api.dependencies import get_listing_service, get_post_service
from app.api.responses import result_response
from app.models.post import ImageFile
from app.services.listing_service import ListingService
from app.services.post_service import PostService

router = APIRouter()


@router.post("/posts")
async def create_post(
    food_name: Optional[str] = Form(None),
    food_type: Optional[str] = Form(None),
    quantity_value: Optional[str] = Form(None),
    quantity_type: Optional[str] = Form(None),
    expiry_timer: Optional[str] = Form(None),
    freshness_status: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    service: PostService = Depends(get_post_service),
):
    submitted = {
        "food_name": food_name,
        "food_type": food_type,
        "quantity_value": quantity_value,
        "quantity_type": quantity_type,
        "expiry_timer": expiry_timer,
        "freshness_status": freshness_status,
        "address": address,
    }
    # blank form inputs count as missing
    fields = {k: v for k, v in submitted.items() if v not in (None, "")}

    files = []
    for upload in images or []:
        data = await upload.read()
        if data:
            files.append(
                ImageFile(
                    data=data,
                    content_type=upload.content_type or "application/octet-stream",
                    filename=upload.filename,
                )
            )

    result = await service.create_post(
        fields, files, role=x_user_role or "", donor_id=x_user_id
    )
    return result_response(result, success_status=201)


@router.get("/posts")
async def list_posts(
    viewer_id: Optional[str] = Query(None),
    service: ListingService = Depends(get_listing_service),
):
    return result_response(await service.list_posts(viewer_id))
