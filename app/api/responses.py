# app/api/responses.py
"""Turn service result dicts into JSON responses with a matching status code."""
from __future__ import annotations

from typing import Any, Dict

from fastapi.responses import JSONResponse

from app.services import results

_STATUS_BY_ERROR = {
    results.VALIDATION_ERROR: 422,
    results.UPLOAD_FAILURE: 502,
    results.INVALID_USER: 400,
    results.POST_NOT_FOUND: 404,
    results.DUPLICATE_CLAIM: 409,
    results.DUPLICATE_USER: 409,
    results.INSUFFICIENT_QUANTITY: 409,
    results.FORBIDDEN: 403,
    results.INVALID_CREDENTIALS: 401,
    results.STORAGE_FAILURE: 500,
}


def result_response(result: Dict[str, Any], success_status: int = 200) -> JSONResponse:
    if result.get("ok"):
        return JSONResponse(result, status_code=success_status)
    return JSONResponse(result, status_code=_STATUS_BY_ERROR.get(result.get("error"), 500))
