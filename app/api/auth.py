# app/api/auth.py
"""Registration and login. Login returns the caller's id and role; no session is kept."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Form

from app.api.dependencies import get_auth_service
from app.api.responses import result_response
from app.models.user import LoginRequest
from app.services.auth_service import AuthService

router = APIRouter()


@router.post("/register")
async def register(
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    accountType: str = Form("recipient"),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.register_user(email, password, accountType)
    return result_response(result, success_status=201)


@router.post("/login")
async def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return result_response(await service.login(body.email, body.password))
