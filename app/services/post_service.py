# app/services/post_service.py
"""
Post creation: validate the listing, upload its images, persist it.

Nothing is written unless every image uploads. The first failing image aborts the whole
operation and the error names it (1-based, in submission order).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from app.models.post import ImageFile, PostCreate
from app.models.user import Role
from app.services import results
from app.services.identity import parse_id
from app.services.image_upload import CloudinaryUploader
from app.services.results import StorageError, UploadError, error_result, ok_result, storage_failure
from app.services.store import FoodShareStore

logger = logging.getLogger(__name__)


def _validation_message(exc: PydanticValidationError) -> Dict[str, Any]:
    first = exc.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or "post"
    if first.get("type") == "missing":
        return {"field": field, "message": "All fields are required"}
    return {"field": field, "message": f"Invalid value for {field}: {first.get('msg')}"}


class PostService:

    def __init__(self, store: Optional[FoodShareStore] = None, uploader: Optional[Any] = None):
        self.store = store or FoodShareStore()
        self.uploader = uploader or CloudinaryUploader()

    async def create_post(
        self,
        fields: Mapping[str, Any],
        images: Sequence[ImageFile],
        role: Optional[str] = None,
        donor_id: Any = None,
    ) -> Dict[str, Any]:
        """
        Create a listing.

        `role`, when given, must be DONOR. `fields` holds food_name, food_type,
        quantity_value, quantity_type, expiry_timer, freshness_status and optional address.
        """
        if role is not None and role != Role.DONOR.value:
            return error_result(
                results.FORBIDDEN, "Only donors can create posts", {"role": role}
            )

        try:
            post = PostCreate.model_validate(dict(fields))
        except PydanticValidationError as exc:
            detail = _validation_message(exc)
            return error_result(results.VALIDATION_ERROR, detail["message"], {"field": detail["field"]})

        images = [img for img in (images or []) if img is not None]
        if not images:
            return error_result(
                results.VALIDATION_ERROR, "At least one image is required", {"field": "images"}
            )

        urls = []
        for index, image in enumerate(images, start=1):
            try:
                urls.append(await self.uploader.upload(image.data, image.content_type))
            except UploadError as exc:
                logger.error("Error uploading image %s: %s", index, exc)
                return error_result(
                    results.UPLOAD_FAILURE,
                    f"Failed to upload image {index}",
                    {"image": index, "filename": image.filename},
                )

        if not urls:
            return error_result(results.UPLOAD_FAILURE, "No images were successfully uploaded")

        row = {**post.to_row(), "image": urls}
        donor = parse_id(donor_id)
        if donor is not None:
            row["donor_id"] = donor

        try:
            created = await self.store.insert_post(row)
        except StorageError as exc:
            logger.exception("create_post failed: %s", exc)
            return storage_failure(exc)

        logger.info("Post created id=%s food=%s images=%s", created.get("id"), post.food_name, len(urls))
        return ok_result(created, {"image_count": len(urls)})
