"""
OwnerScopedRepository — abstract CRUD over rows that belong to one user.

Every query goes through ``_scoped()``, which filters on ``(user_id, id)``.
A row owned by someone else is indistinguishable from a missing row: both
raise ``NotFoundError``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def violates(exc: IntegrityError, marker: str) -> bool:
    """True if the driver message names ``marker`` (constraint name or kind)."""
    return marker.lower() in str(exc.orig).lower()


def require_text(value: Optional[str], field: str) -> str:
    """Return ``value`` trimmed; reject ``None`` and blank strings."""
    if value is None:
        raise ValidationError(f"Please provide {field}")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} must not be empty")
    return trimmed


class OwnerScopedRepository(ABC, Generic[ModelT]):
    """Abstract base for per-user resources (categories, expenses)."""

    model: Type[ModelT]
    label: str = "Resource"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Query shape ─────────────────────────────────────────────────────

    @abstractmethod
    def _ordering(self) -> Sequence[Any]:
        """ORDER BY clauses for ``list()``."""
        ...

    def _scoped(self, owner_id: int) -> Select:
        return select(self.model).where(self.model.user_id == owner_id)

    async def _require_owner(self, owner_id: int) -> None:
        # a still-valid token can outlive its account
        found = await self.session.execute(select(User.id).where(User.id == owner_id))
        if found.scalar_one_or_none() is None:
            raise NotFoundError("User not found")

    # ── Reads ───────────────────────────────────────────────────────────

    async def list(self, owner_id: int) -> List[ModelT]:
        stmt = self._scoped(owner_id).order_by(*self._ordering())
        result = await self.session.execute(stmt)
        return list(result.unique().scalars())

    async def find(self, owner_id: int, item_id: int) -> Optional[ModelT]:
        stmt = (
            self._scoped(owner_id)
            .where(self.model.id == item_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def get(self, owner_id: int, item_id: int) -> ModelT:
        item = await self.find(owner_id, item_id)
        if item is None:
            raise NotFoundError(f"{self.label} not found")
        return item

    # ── Writes ──────────────────────────────────────────────────────────

    @abstractmethod
    async def create(self, owner_id: int, **fields: Any) -> ModelT:
        ...

    @abstractmethod
    async def update(self, owner_id: int, item_id: int, **fields: Any) -> ModelT:
        ...

    async def _before_delete(self, owner_id: int, item: ModelT) -> None:
        """Hook: raise to block the delete."""

    async def delete(self, owner_id: int, item_id: int) -> None:
        item = await self.get(owner_id, item_id)
        await self._before_delete(owner_id, item)
        await self.session.delete(item)
        await self.session.flush()
        logger.info("Deleted %s %s for user %s", self.label.lower(), item_id, owner_id)
