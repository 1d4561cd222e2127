"""
Category service — per-user spending categories.

Names are unique per owner, compared case-insensitively.  A category that
is still referenced by an expense cannot be deleted.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from database.models import Category, Expense
from services.base import OwnerScopedRepository, require_text, violates
from utils.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Category with this name already exists"
IN_USE = "Cannot delete category with existing expenses"


class CategoryRepository(OwnerScopedRepository[Category]):
    model = Category
    label = "Category"

    def _ordering(self) -> Sequence[Any]:
        return (func.lower(Category.name), Category.id)

    async def _ensure_unique_name(self, owner_id: int, name: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(Category.id).where(
            Category.user_id == owner_id,
            func.lower(Category.name) == name.lower(),
        )
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(DUPLICATE_NAME)

    async def _flush(self) -> None:
        # a concurrent writer may still win the race; the unique index decides
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if violates(exc, "uq_categories_user_lower_name"):
                raise ConflictError(DUPLICATE_NAME) from exc
            if violates(exc, "foreign key"):
                raise NotFoundError("User not found") from exc
            raise

    async def create(self, owner_id: int, name: Optional[str] = None) -> Category:
        name = require_text(name, "category name")
        await self._require_owner(owner_id)
        await self._ensure_unique_name(owner_id, name)

        category = Category(name=name, user_id=owner_id)
        self.session.add(category)
        await self._flush()
        logger.info("Created category %s (%r) for user %s", category.id, name, owner_id)
        return await self.get(owner_id, category.id)

    async def update(self, owner_id: int, item_id: int, name: Optional[str] = None) -> Category:
        category = await self.get(owner_id, item_id)
        name = require_text(name, "category name")
        await self._ensure_unique_name(owner_id, name, exclude_id=category.id)

        category.name = name
        await self._flush()
        return await self.get(owner_id, item_id)

    async def count_expenses(self, owner_id: int, category_id: int) -> int:
        stmt = select(func.count(Expense.id)).where(
            Expense.user_id == owner_id,
            Expense.category_id == category_id,
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def _before_delete(self, owner_id: int, item: Category) -> None:
        if await self.count_expenses(owner_id, item.id) > 0:
            raise ConflictError(IN_USE)

    async def delete(self, owner_id: int, item_id: int) -> None:
        try:
            await super().delete(owner_id, item_id)
        except IntegrityError as exc:
            if violates(exc, "foreign key"):
                raise ConflictError(IN_USE) from exc
            raise
