"""
FastAPI dependencies for authentication.

Provides ``db_session``, ``get_token_service`` and ``get_current_identity``
dependencies that are used across all protected routes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import InvalidTokenError, TokenService
from database.session import get_db_session
from utils.errors import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_token_service(request: Request) -> TokenService:
    """The process-wide ``TokenService`` built in ``create_app``."""
    return request.app.state.token_service


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an ``Authorization`` header value.

    Raises ``UnauthorizedError`` with code ``missing_header`` when there is
    no header and ``missing_token`` when the prefix or the token is absent.
    """
    if authorization is None:
        raise UnauthorizedError("No authorization header provided", code="missing_header")
    if not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError("No token provided", code="missing_token")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError("No token provided", code="missing_token")
    return token


async def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Verify the Bearer token and attach the caller's ``Identity`` to
    ``request.state.identity``.  Any failure short-circuits with a 401.
    """
    try:
        token = extract_bearer_token(authorization)
        claims = tokens.verify(token)
    except InvalidTokenError as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc.code)
        raise
    except UnauthorizedError as exc:
        logger.info("Unauthenticated request %s %s: %s", request.method, request.url.path, exc.code)
        raise

    identity = Identity(user_id=claims.user_id, email=claims.email)
    request.state.identity = identity
    return identity
