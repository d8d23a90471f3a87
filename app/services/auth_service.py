# app/services/auth_service.py
"""
Registration and credential verification.

Passwords are stored as werkzeug password hashes. `verify` is the credential
collaborator used by login: it returns {"id", "role"} or None and never says which
of email/password was wrong.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from app.models.user import role_for_account_type
from app.services import results
from app.services.results import StorageError, error_result, ok_result, storage_failure
from app.services.store import FoodShareStore

logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AuthService:

    def __init__(self, store: Optional[FoodShareStore] = None):
        self.store = store or FoodShareStore()

    async def register_user(
        self, email: Optional[str], password: Optional[str], account_type: str = "recipient"
    ) -> Dict[str, Any]:
        email = _normalize_email(email)
        password = (password or "").strip()
        if not email or not password:
            return error_result(results.VALIDATION_ERROR, "Email and password are required")

        role = role_for_account_type(account_type)
        try:
            if await self.store.get_user_by_email(email) is not None:
                return error_result(
                    results.DUPLICATE_USER, "An account with this email already exists"
                )
            user = await self.store.insert_user(
                {
                    "email": email,
                    "password_hash": generate_password_hash(password),
                    "role": role.value,
                }
            )
        except StorageError as exc:
            logger.exception("register_user failed: %s", exc)
            return storage_failure(exc)

        logger.info("Registered user id=%s role=%s", user.get("id"), role.value)
        return ok_result({"id": user.get("id"), "email": email, "role": role.value})

    async def verify(self, email: Optional[str], password: Optional[str]) -> Optional[Dict[str, Any]]:
        """Return {"id", "role"} for matching credentials, else None. Raises StorageError."""
        email = _normalize_email(email)
        if not email or not password:
            return None
        user = await self.store.get_user_by_email(email)
        if user is None or not check_password_hash(user.get("password_hash") or "", password):
            return None
        return {"id": user.get("id"), "role": user.get("role")}

    async def login(self, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        try:
            identity = await self.verify(email, password)
        except StorageError as exc:
            logger.exception("login failed: %s", exc)
            return storage_failure(exc)
        if identity is None:
            return error_result(results.INVALID_CREDENTIALS, "Invalid email or password")
        return ok_result(identity)
