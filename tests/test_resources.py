"""
Tests for the owner-scoped category and expense services.
"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError

from database.models import Category, Expense
from services.base import require_text
from services.categories import CategoryRepository
from services.expenses import ExpenseRepository, parse_amount
from utils.errors import ConflictError, NotFoundError, ValidationError


@pytest_asyncio.fixture
async def owners(users):
    ann = await users.create_user("Ann", "ann@x.com", "Secret123")
    bob = await users.create_user("Bob", "bob@x.com", "Secret123")
    return ann.id, bob.id


class TestValidators:
    def test_require_text_trims(self):
        assert require_text("  Food ", "name") == "Food"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_text_rejects(self, value):
        with pytest.raises(ValidationError):
            require_text(value, "name")

    @pytest.mark.parametrize("value", [0, -5, "0", "-0.01", "abc", "NaN", "Infinity", "0.004", True])
    def test_parse_amount_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value)

    def test_parse_amount_accepts_smallest_unit(self):
        assert parse_amount(0.01) == Decimal("0.01")
        assert parse_amount("12.5") == Decimal("12.50")


class TestCategories:
    @pytest.mark.asyncio
    async def test_name_unique_per_owner_case_insensitive(self, categories, owners):
        ann, bob = owners
        await categories.create(ann, name="Food")
        with pytest.raises(ConflictError):
            await categories.create(ann, name="food")
        other = await categories.create(bob, name="food")
        assert other.user_id == bob

    @pytest.mark.asyncio
    async def test_list_sorted_by_name_and_scoped(self, categories, owners):
        ann, bob = owners
        for name in ("travel", "Food", "bills"):
            await categories.create(ann, name=name)
        await categories.create(bob, name="Secret")
        names = [c.name for c in await categories.list(ann)]
        assert names == ["bills", "Food", "travel"]

    @pytest.mark.asyncio
    async def test_rename(self, categories, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        await categories.create(ann, name="Rent")
        renamed = await categories.update(ann, food.id, name="  Groceries ")
        assert renamed.name == "Groceries"
        # same name, different case, on itself is allowed
        assert (await categories.update(ann, food.id, name="GROCERIES")).name == "GROCERIES"
        with pytest.raises(ConflictError):
            await categories.update(ann, food.id, name="rent")

    @pytest.mark.asyncio
    async def test_foreign_category_is_not_found(self, categories, owners):
        ann, bob = owners
        food = await categories.create(ann, name="Food")
        with pytest.raises(NotFoundError):
            await categories.get(bob, food.id)
        with pytest.raises(NotFoundError):
            await categories.update(bob, food.id, name="Mine")
        with pytest.raises(NotFoundError):
            await categories.delete(bob, food.id)
        assert (await categories.get(ann, food.id)).name == "Food"

    @pytest.mark.asyncio
    async def test_delete_blocked_by_expense(self, categories, expenses, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        expense = await expenses.create(ann, category_id=food.id, amount="3.20", date="2024-02-01")
        with pytest.raises(ConflictError):
            await categories.delete(ann, food.id)

        await expenses.delete(ann, expense.id)
        await categories.delete(ann, food.id)
        assert await categories.list(ann) == []


class TestExpenses:
    @pytest.mark.asyncio
    async def test_create_returns_category_name(self, categories, expenses, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        expense = await expenses.create(
            ann, category_id=food.id, amount=Decimal("12.50"), date=date(2024, 1, 1), description=" lunch "
        )
        assert expense.amount == Decimal("12.50")
        assert expense.category_name == "Food"
        assert expense.description == "lunch"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_non_positive_amount(self, categories, expenses, owners, amount):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        with pytest.raises(ValidationError):
            await expenses.create(ann, category_id=food.id, amount=amount, date="2024-01-01")

    @pytest.mark.asyncio
    async def test_smallest_positive_amount(self, categories, expenses, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        expense = await expenses.create(ann, category_id=food.id, amount="0.01", date="2024-01-01")
        assert expense.amount == Decimal("0.01")

    @pytest.mark.asyncio
    async def test_foreign_or_missing_category_rejected(self, categories, expenses, owners):
        ann, bob = owners
        bobs = await categories.create(bob, name="Food")
        with pytest.raises(ValidationError):
            await expenses.create(ann, category_id=bobs.id, amount="1.00", date="2024-01-01")
        with pytest.raises(ValidationError):
            await expenses.create(ann, category_id=9999, amount="1.00", date="2024-01-01")

    @pytest.mark.asyncio
    async def test_list_ordered_by_date_then_newest(self, categories, expenses, owners):
        ann, bob = owners
        food = await categories.create(ann, name="Food")
        first = await expenses.create(ann, category_id=food.id, amount="1.00", date="2024-01-01")
        later = await expenses.create(ann, category_id=food.id, amount="2.00", date="2024-03-01")
        same_day = await expenses.create(ann, category_id=food.id, amount="3.00", date="2024-01-01")
        bob_food = await categories.create(bob, name="Food")
        await expenses.create(bob, category_id=bob_food.id, amount="9.00", date="2024-05-01")

        listed = await expenses.list(ann)
        assert [e.id for e in listed] == [later.id, same_day.id, first.id]
        assert all(e.category_name == "Food" for e in listed)

    @pytest.mark.asyncio
    async def test_partial_update(self, categories, expenses, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        rent = await categories.create(ann, name="Rent")
        expense = await expenses.create(
            ann, category_id=food.id, amount="10.00", date="2024-01-01", description="keep"
        )

        updated = await expenses.update(ann, expense.id, amount="15.75")
        assert updated.amount == Decimal("15.75")
        assert updated.description == "keep"
        assert updated.category_id == food.id

        moved = await expenses.update(ann, expense.id, category_id=rent.id)
        assert moved.category_name == "Rent"

    @pytest.mark.asyncio
    async def test_update_rechecks_rules(self, categories, expenses, owners):
        ann, bob = owners
        food = await categories.create(ann, name="Food")
        bobs = await categories.create(bob, name="Food")
        expense = await expenses.create(ann, category_id=food.id, amount="10.00", date="2024-01-01")
        with pytest.raises(ValidationError):
            await expenses.update(ann, expense.id, amount=0)
        with pytest.raises(ValidationError):
            await expenses.update(ann, expense.id, category_id=bobs.id)
        with pytest.raises(ValidationError):
            await expenses.update(ann, expense.id, date=None)

    @pytest.mark.asyncio
    async def test_foreign_expense_is_not_found(self, categories, expenses, owners):
        ann, bob = owners
        food = await categories.create(ann, name="Food")
        expense = await expenses.create(ann, category_id=food.id, amount="10.00", date="2024-01-01")
        with pytest.raises(NotFoundError):
            await expenses.get(bob, expense.id)
        with pytest.raises(NotFoundError):
            await expenses.update(bob, expense.id, amount="1.00")
        with pytest.raises(NotFoundError):
            await expenses.delete(bob, expense.id)
        assert await expenses.list(bob) == []


async def _skip(*args, **kwargs):
    return None


class TestStoreConstraints:
    """The schema holds the invariants even when a write gets past the service checks."""

    @pytest.mark.asyncio
    async def test_unique_index_rejects_duplicate_name(self, session, categories, owners):
        ann, _ = owners
        await categories.create(ann, name="Food")
        session.add(Category(name="food", user_id=ann))
        with pytest.raises(IntegrityError):
            await session.flush()

    @pytest.mark.asyncio
    async def test_composite_key_rejects_foreign_category(self, session, categories, owners):
        ann, bob = owners
        theirs = await categories.create(bob, name="Food")
        session.add(Expense(user_id=ann, category_id=theirs.id, amount=Decimal("1.00"), date=date(2024, 1, 1)))
        with pytest.raises(IntegrityError):
            await session.flush()

    @pytest.mark.asyncio
    async def test_check_rejects_zero_amount(self, session, categories, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        session.add(Expense(user_id=ann, category_id=food.id, amount=Decimal("0"), date=date(2024, 1, 1)))
        with pytest.raises(IntegrityError):
            await session.flush()

    @pytest.mark.asyncio
    async def test_lost_name_race_is_conflict(self, monkeypatch, categories, owners):
        ann, _ = owners
        await categories.create(ann, name="Food")
        monkeypatch.setattr(CategoryRepository, "_ensure_unique_name", _skip)
        with pytest.raises(ConflictError, match="already exists"):
            await categories.create(ann, name="FOOD")

    @pytest.mark.asyncio
    async def test_lost_rename_race_is_conflict(self, monkeypatch, categories, owners):
        ann, _ = owners
        await categories.create(ann, name="Food")
        rent = await categories.create(ann, name="Rent")
        monkeypatch.setattr(CategoryRepository, "_ensure_unique_name", _skip)
        with pytest.raises(ConflictError, match="already exists"):
            await categories.update(ann, rent.id, name="food")

    @pytest.mark.asyncio
    async def test_missing_owner_is_not_found_not_conflict(self, monkeypatch, categories):
        monkeypatch.setattr(CategoryRepository, "_require_owner", _skip)
        with pytest.raises(NotFoundError, match="User not found"):
            await categories.create(9999, name="Food")

    @pytest.mark.asyncio
    async def test_missing_owner_checked_before_write(self, categories, expenses):
        with pytest.raises(NotFoundError, match="User not found"):
            await categories.create(9999, name="Food")
        with pytest.raises(NotFoundError, match="User not found"):
            await expenses.create(9999, category_id=1, amount="1.00", date="2024-01-01")

    @pytest.mark.asyncio
    async def test_delete_race_with_new_expense_is_conflict(self, monkeypatch, categories, expenses, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        await expenses.create(ann, category_id=food.id, amount="3.20", date="2024-02-01")

        async def _no_expenses(self, owner_id, category_id):
            return 0

        monkeypatch.setattr(CategoryRepository, "count_expenses", _no_expenses)
        with pytest.raises(ConflictError, match="existing expenses"):
            await categories.delete(ann, food.id)

    @pytest.mark.asyncio
    async def test_unchecked_foreign_category_on_create(self, monkeypatch, categories, expenses, owners):
        ann, bob = owners
        theirs = await categories.create(bob, name="Food")

        async def _trust(self, owner_id, category_id):
            return category_id

        monkeypatch.setattr(ExpenseRepository, "_require_owned_category", _trust)
        with pytest.raises(ValidationError, match="Invalid category"):
            await expenses.create(ann, category_id=theirs.id, amount="1.00", date="2024-01-01")

    @pytest.mark.asyncio
    async def test_unchecked_foreign_category_on_update(self, monkeypatch, categories, expenses, owners):
        ann, bob = owners
        mine = await categories.create(ann, name="Food")
        theirs = await categories.create(bob, name="Food")
        expense = await expenses.create(ann, category_id=mine.id, amount="1.00", date="2024-01-01")

        async def _trust(self, owner_id, category_id):
            return category_id

        monkeypatch.setattr(ExpenseRepository, "_require_owned_category", _trust)
        with pytest.raises(ValidationError, match="Invalid category"):
            await expenses.update(ann, expense.id, category_id=theirs.id)

    @pytest.mark.asyncio
    async def test_unchecked_zero_amount_is_validation_error(self, monkeypatch, categories, expenses, owners):
        ann, _ = owners
        food = await categories.create(ann, name="Food")
        monkeypatch.setattr("services.expenses.parse_amount", lambda value: Decimal(str(value)))
        with pytest.raises(ValidationError, match="greater than 0"):
            await expenses.create(ann, category_id=food.id, amount=0, date="2024-01-01")
