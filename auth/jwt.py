"""
JWT-style token creation and verification.

Tokens are base64-encoded JSON payloads signed with HMAC-SHA256::

    b64(json({"sub", "email", "iat", "exp"})) + "." + hex(hmac_sha256(secret, json))

The secret is handed to ``TokenService`` once, at app construction
(env var: ``JWT_SECRET``).  Tokens are not revocable: a token stays valid
until ``exp`` whatever happens to the account in the meantime.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
from base64 import b64decode, b64encode
from dataclasses import dataclass
from typing import Callable

from utils.errors import UnauthorizedError


class InvalidTokenError(UnauthorizedError):
    code = "token_invalid"


class MalformedTokenError(InvalidTokenError):
    code = "token_malformed"

    def __init__(self, message: str = "Invalid token format") -> None:
        super().__init__(message)


class BadSignatureError(InvalidTokenError):
    code = "token_bad_signature"

    def __init__(self, message: str = "Token signature mismatch") -> None:
        super().__init__(message)


class ExpiredTokenError(InvalidTokenError):
    code = "token_expired"

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    issued_at: int
    expires_at: int


class TokenService:
    """Issues and verifies signed, time-limited identity assertions."""

    def __init__(
        self,
        secret: str,
        expiry_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret.encode()
        self.expiry_seconds = expiry_seconds
        self._clock = clock

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def issue(self, user_id: int, email: str) -> str:
        """Create a signed token for ``user_id`` valid for ``expiry_seconds``."""
        now = int(self._clock())
        payload = {
            "sub": user_id,
            "email": email,
            "iat": now,
            "exp": now + self.expiry_seconds,
        }
        raw = json.dumps(payload, separators=(",", ":")).encode()
        return b64encode(raw).decode() + "." + self._sign(raw)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify ``token`` and return its claims.

        Raises ``MalformedTokenError``, ``BadSignatureError`` or
        ``ExpiredTokenError``; the token is still valid at exactly ``exp``.
        """
        parts = token.split(".")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise MalformedTokenError()
        try:
            raw = b64decode(parts[0], validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedTokenError() from exc

        expected_sig = self._sign(raw)
        if not hmac.compare_digest(parts[1].encode(), expected_sig.encode()):
            raise BadSignatureError()

        try:
            payload = json.loads(raw)
            claims = TokenClaims(
                user_id=int(payload["sub"]),
                email=str(payload["email"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (ValueError, TypeError, KeyError) as exc:
            raise MalformedTokenError() from exc

        if self._clock() > claims.expires_at:
            raise ExpiredTokenError()
        return claims
