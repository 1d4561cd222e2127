"""
Auth API routes — signup, login.

Route prefix: /auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from api.dependencies import get_credential_store
from auth.dependencies import get_token_service
from auth.jwt import TokenService
from services.users import CredentialStore
from utils.schemas import AuthPayload, LoginRequest, SignupRequest, UserPublic, envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _auth_payload(tokens: TokenService, user) -> Dict[str, Any]:
    payload = AuthPayload(
        token=tokens.issue(user.id, user.email),
        user=UserPublic.model_validate(user),
    )
    return payload.model_dump(mode="json")


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    req: SignupRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Register a new user and return a token for it."""
    user = await store.create_user(req.name, req.email, req.password)
    return envelope(_auth_payload(tokens, user), message="User created successfully")


@router.post("/login")
async def login(
    req: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Login with email + password."""
    user = await store.verify_password(req.email, req.password)
    logger.info("Login: user %s", user.id)
    return envelope(_auth_payload(tokens, user), message="Login successful")
