# app/services/results.py
"""
Result shape shared by every public service operation.

    {"ok": True,  "data": ..., "diagnostics": {...}}
    {"ok": False, "error": <kind>, "message": <human text>, "diagnostics": {...}}

Service methods never let exceptions escape; they log and return one of these.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

# Error kinds
VALIDATION_ERROR = "ValidationError"
UPLOAD_FAILURE = "UploadFailure"
INVALID_USER = "InvalidUser"
POST_NOT_FOUND = "PostNotFound"
DUPLICATE_CLAIM = "DuplicateClaim"
INSUFFICIENT_QUANTITY = "InsufficientQuantity"
STORAGE_FAILURE = "StorageFailure"
FORBIDDEN = "Forbidden"
DUPLICATE_USER = "DuplicateUser"
INVALID_CREDENTIALS = "InvalidCredentials"

STORAGE_FAILURE_MESSAGE = "Something went wrong while talking to the database. Please try again."


class StorageError(Exception):
    """Raised by the store when a persistence call fails or no client is configured."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}" if cause else f"{operation} failed")


class UploadError(Exception):
    """Raised by an image uploader when an upload does not yield a URL."""


def ok_result(data: Any, diagnostics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"ok": True, "data": data, "diagnostics": diagnostics or {}}


def error_result(
    error: str,
    message: str,
    diagnostics: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "ok": False,
        "error": error,
        "message": message,
        "diagnostics": diagnostics or {},
    }


def storage_failure(exc: StorageError) -> Dict[str, Any]:
    # the cause is logged by the caller; only the failing operation name is surfaced
    return error_result(
        STORAGE_FAILURE, STORAGE_FAILURE_MESSAGE, {"operation": exc.operation}
    )
