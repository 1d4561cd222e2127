"""
Expense service — per-user expense records.

An expense must point at a category owned by the same user and carry a
strictly positive amount.  Rows are returned with ``category_name`` so a
client can render them without a second lookup.
"""

from __future__ import annotations

import logging
from datetime import date as date_type, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from database.models import Category, Expense
from services.base import OwnerScopedRepository, violates
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_MAX_AMOUNT = Decimal("9999999999.99")  # Numeric(12, 2)

_UPDATABLE = ("category_id", "amount", "description", "date")


def parse_amount(value: Any) -> Decimal:
    """Coerce to a 2-place Decimal; reject non-numeric, non-finite and <= 0."""
    if value is None:
        raise ValidationError("Please provide amount")
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Amount must be a number") from exc
    if not amount.is_finite():
        raise ValidationError("Amount must be a finite number")
    amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    if amount > _MAX_AMOUNT:
        raise ValidationError("Amount is too large")
    return amount


def parse_date(value: Any) -> date_type:
    if value is None:
        raise ValidationError("Please provide date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    try:
        return date_type.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError("Date must be formatted YYYY-MM-DD") from exc


class ExpenseRepository(OwnerScopedRepository[Expense]):
    model = Expense
    label = "Expense"

    def _ordering(self) -> Sequence[Any]:
        return (Expense.date.desc(), Expense.id.desc())

    async def _require_owned_category(self, owner_id: int, category_id: Any) -> int:
        if category_id is None:
            raise ValidationError("Please provide category")
        if isinstance(category_id, bool) or not isinstance(category_id, int):
            raise ValidationError("Invalid category")
        stmt = select(Category.id).where(
            Category.id == category_id,
            Category.user_id == owner_id,
        )
        if (await self.session.execute(stmt)).scalar_one_or_none() is None:
            raise ValidationError("Invalid category")
        return category_id

    async def _flush(self) -> None:
        # the category may vanish between the check and the write
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if violates(exc, "ck_expenses_amount_positive"):
                raise ValidationError("Amount must be greater than 0") from exc
            if violates(exc, "foreign key"):
                raise ValidationError("Invalid category") from exc
            raise

    async def create(
        self,
        owner_id: int,
        category_id: Any = None,
        amount: Any = None,
        date: Any = None,
        description: Optional[str] = None,
    ) -> Expense:
        amount = parse_amount(amount)
        spent_on = parse_date(date)
        await self._require_owner(owner_id)
        category_id = await self._require_owned_category(owner_id, category_id)

        expense = Expense(
            user_id=owner_id,
            category_id=category_id,
            amount=amount,
            description=(description or "").strip(),
            date=spent_on,
        )
        self.session.add(expense)
        await self._flush()
        logger.info("Created expense %s (%s) for user %s", expense.id, amount, owner_id)
        return await self.get(owner_id, expense.id)

    async def update(self, owner_id: int, item_id: int, **fields: Any) -> Expense:
        """Partial update: only keys present in ``fields`` are changed."""
        unknown = set(fields) - set(_UPDATABLE)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        expense = await self.get(owner_id, item_id)

        changes: Dict[str, Any] = {}
        if "category_id" in fields:
            changes["category_id"] = await self._require_owned_category(owner_id, fields["category_id"])
        if "amount" in fields:
            changes["amount"] = parse_amount(fields["amount"])
        if "date" in fields:
            changes["date"] = parse_date(fields["date"])
        if "description" in fields:
            changes["description"] = (fields["description"] or "").strip()

        for field, value in changes.items():
            setattr(expense, field, value)
        await self._flush()
        return await self.get(owner_id, item_id)
