"""
Credential store — user accounts, password checks and profile updates.

Emails are trimmed and lower-cased before they are stored or looked up,
so uniqueness is case-insensitive.  Deleting a user removes everything
the user owns.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.password import MAX_PASSWORD_BYTES, hash_password_async, verify_password_async
from database.models import Category, Expense, User
from services.base import require_text, violates
from utils.errors import ConflictError, InvalidCredentialsError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EMAIL_IN_USE = "User already exists with this email"


def normalize_email(value: Optional[str]) -> str:
    email = require_text(value, "email").lower()
    if len(email) > 255 or not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


def _check_password(password: Optional[str]) -> str:
    if not password or not isinstance(password, str):
        raise ValidationError("Please provide password")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


class CredentialStore:
    """Persists user identity and checks credentials."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _flush_unique_email(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if violates(exc, "email"):
                raise ConflictError(EMAIL_IN_USE) from exc
            raise

    async def create_user(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        name = require_text(name, "name")
        email = normalize_email(email)
        password = _check_password(password)

        if await self._find_by_email(email) is not None:
            raise ConflictError(EMAIL_IN_USE)

        user = User(
            name=name,
            email=email,
            password_hash=await hash_password_async(password),
        )
        self.session.add(user)
        await self._flush_unique_email()
        await self.session.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    async def verify_password(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Return the user for valid credentials.

        Unknown email and wrong password raise the same
        ``InvalidCredentialsError`` after the same amount of bcrypt work.
        """
        if not email or not password:
            raise ValidationError("Please provide email and password")
        user = await self._find_by_email(email.strip().lower())
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            ok = False
        else:
            ok = await verify_password_async(password, user.password_hash if user is not None else None)
        if user is None or not ok:
            raise InvalidCredentialsError()
        return user

    async def get_by_id(self, user_id: int) -> User:
        user = await self.session.get(User, user_id, populate_existing=True)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        if name is None and email is None:
            raise ValidationError("Please provide data to update")

        new_name = require_text(name, "name") if name is not None else None
        new_email = normalize_email(email) if email is not None else None

        user = await self.get_by_id(user_id)
        if new_email is not None and new_email != user.email:
            clash = await self.session.execute(
                select(User.id).where(User.email == new_email, User.id != user_id)
            )
            if clash.scalar_one_or_none() is not None:
                raise ConflictError("Email already in use")
            user.email = new_email
        if new_name is not None:
            user.name = new_name

        await self._flush_unique_email()
        await self.session.refresh(user)
        return user

    async def delete_user(self, user_id: int) -> None:
        """Remove the user with their expenses and categories; no-op if absent."""
        await self.session.execute(delete(Expense).where(Expense.user_id == user_id))
        await self.session.execute(delete(Category).where(Category.user_id == user_id))
        result = await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.flush()
        if result.rowcount:
            logger.info("Deleted user %s and owned resources", user_id)
