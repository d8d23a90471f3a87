# app/services/image_upload.py
"""
Image upload collaborator backed by the Cloudinary SDK.

upload(data, content_type) -> secure URL, or raises UploadError.

The image is sent as a base64 data URI into the configured folder (default
"foodshare"). The SDK call is blocking, so it runs in a worker thread.
"""
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from app.config.settings import settings
from app.services.results import UploadError

logger = logging.getLogger(__name__)


def to_data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class CloudinaryUploader:
    """
    Credentials default to the CLOUDINARY_* settings; pass them explicitly to
    upload somewhere else.
    """

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        folder: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._from_settings = not (cloud_name or api_key or api_secret)
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self.folder = folder or settings.cloudinary_folder
        self.timeout = timeout or settings.upload_timeout
        if not self.configured:
            logger.warning("CloudinaryUploader: credentials missing - uploads will fail")

    @property
    def cloud_name(self) -> Optional[str]:
        return self._cloud_name or settings.cloudinary_cloud_name

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or settings.cloudinary_api_key

    def _secret(self) -> Optional[str]:
        return self._api_secret or settings.cloudinary_api_secret

    @property
    def configured(self) -> bool:
        if self._from_settings:
            return settings.cloudinary_configured
        return bool(self.cloud_name and self.api_key and self._secret())

    async def upload(self, data: bytes, content_type: str = "image/jpeg") -> str:
        if not self.configured:
            raise UploadError("cloudinary_not_configured")
        if not data:
            raise UploadError("empty_image")

        try:
            body = await asyncio.to_thread(
                cloudinary.uploader.upload,
                to_data_uri(data, content_type),
                folder=self.folder,
                resource_type="image",
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self._secret(),
                timeout=self.timeout,
            )
        except cloudinary.exceptions.Error as exc:
            logger.warning("Cloudinary upload rejected: %s", exc)
            raise UploadError(str(exc)) from exc
        except OSError as exc:
            logger.exception("Cloudinary upload failed: %s", exc)
            raise UploadError(str(exc)) from exc

        secure_url = body.get("secure_url") if isinstance(body, dict) else None
        if not secure_url:
            raise UploadError("no_secure_url_in_response")
        logger.debug("Uploaded image bytes=%s -> %s", len(data), secure_url)
        return secure_url
