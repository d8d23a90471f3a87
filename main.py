# main.py
"""
FastAPI entry point for the FoodShare campus food-donation marketplace.

Startup/readiness checks against Supabase, request-id middleware with request
logging, and routers for posts, claims and auth.
"""
import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.auth import router as auth_router
from app.api.claims import router as claims_router
from app.api.posts import router as posts_router
from app.config.supabase import supabase_client  # global instance; sync client with health_check()
from app.services import results
from app.services.results import error_result

logger = logging.getLogger("uvicorn.error")

# config
HEALTH_CHECK_TIMEOUT = float(os.getenv("HEALTH_CHECK_TIMEOUT", "5.0"))
FAIL_ON_DB_STARTUP = os.getenv("FAIL_ON_DB_STARTUP", "false").lower() in ("1", "true", "yes")


async def _run_sync_in_executor(fn, *args, timeout: float = HEALTH_CHECK_TIMEOUT):
    """Run a blocking function in the default threadpool, raising TimeoutError past `timeout`."""
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(loop.run_in_executor(None, fn, *args), timeout=timeout)


async def _database_healthy(timeout: float = HEALTH_CHECK_TIMEOUT) -> bool:
    try:
        return bool(await _run_sync_in_executor(supabase_client.health_check, timeout=timeout))
    except asyncio.TimeoutError:
        logger.warning("Supabase health_check timed out after %.1fs", timeout)
    except Exception as exc:
        logger.exception("Unexpected error calling supabase_client.health_check: %s", exc)
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting FoodShare API...")

    app.state.supabase_healthy = await _database_healthy()
    logger.info("Supabase health: %s", app.state.supabase_healthy)

    if not app.state.supabase_healthy and FAIL_ON_DB_STARTUP:
        logger.error("FAIL_ON_DB_STARTUP enabled and Supabase unhealthy. Aborting startup.")
        raise RuntimeError("Supabase unhealthy on startup")

    try:
        yield
    finally:
        logger.info("Shutting down FoodShare API...")


app = FastAPI(
    title="FoodShare",
    description="Campus surplus-food donations: donors post, recipients claim.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # lock down in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id
    logger.info("→ Incoming request %s %s id=%s", request.method, request.url.path, request_id)
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        logger.exception("Handler error for request id=%s: %s", request_id, exc)
        return JSONResponse(
            {"ok": False, "error": "InternalError", "message": "Internal server error", "diagnostics": {}},
            status_code=500,
        )
    logger.info("← Completed request id=%s status=%s", request_id, getattr(response, "status_code", None))
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and params get the same result shape as service failures."""
    errors = exc.errors()
    fields = [".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in errors]
    logger.info("Rejected request %s %s: %s", request.method, request.url.path, fields)
    return JSONResponse(
        error_result(
            results.VALIDATION_ERROR,
            "Invalid request",
            {"fields": fields, "errors": [e.get("msg") for e in errors]},
        ),
        status_code=422,
    )


app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(posts_router, prefix="/api", tags=["posts"])
app.include_router(claims_router, prefix="/api", tags=["claims"])


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "FoodShare API is running!", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Liveness: the process is up. Reports degraded (503) when the database is unreachable."""
    db_ok = await _database_healthy()
    return JSONResponse(
        {
            "status": "healthy" if db_ok else "degraded",
            "service": "foodshare",
            "database": "connected" if db_ok else "disconnected",
            "supabase": supabase_client.diagnostics(),
        },
        status_code=200 if db_ok else 503,
    )


@app.get("/ready")
async def readiness_check():
    """Readiness: uses the startup result when present, otherwise one bounded check."""
    supabase_state: Optional[bool] = getattr(app.state, "supabase_healthy", None)
    if supabase_state is None:
        supabase_state = await _database_healthy(timeout=2.0)

    if supabase_state:
        return JSONResponse({"ready": True, "database": "connected"}, status_code=200)
    return JSONResponse({"ready": False, "database": "disconnected"}, status_code=503)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", 5000)), reload=True)
