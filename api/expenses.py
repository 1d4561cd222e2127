"""
Expense routes — all scoped to the authenticated user.

Route prefix: /expenses
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from api.dependencies import Identity, get_current_identity, get_expense_repository
from services.expenses import ExpenseRepository
from utils.schemas import ExpenseCreate, ExpenseRead, ExpenseUpdate, envelope

router = APIRouter(tags=["expenses"])


def _dump(expense) -> Dict[str, Any]:
    return ExpenseRead.model_validate(expense).model_dump(mode="json")


@router.get("")
async def list_expenses(
    identity: Identity = Depends(get_current_identity),
    repo: ExpenseRepository = Depends(get_expense_repository),
) -> Dict[str, Any]:
    expenses = await repo.list(identity.user_id)
    return envelope([_dump(e) for e in expenses])


@router.get("/{expense_id}")
async def get_expense(
    expense_id: int,
    identity: Identity = Depends(get_current_identity),
    repo: ExpenseRepository = Depends(get_expense_repository),
) -> Dict[str, Any]:
    return envelope(_dump(await repo.get(identity.user_id, expense_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    req: ExpenseCreate,
    identity: Identity = Depends(get_current_identity),
    repo: ExpenseRepository = Depends(get_expense_repository),
) -> Dict[str, Any]:
    expense = await repo.create(
        identity.user_id,
        category_id=req.category_id,
        amount=req.amount,
        date=req.date,
        description=req.description,
    )
    return envelope(_dump(expense), message="Expense created successfully")


@router.put("/{expense_id}")
async def update_expense(
    expense_id: int,
    req: ExpenseUpdate,
    identity: Identity = Depends(get_current_identity),
    repo: ExpenseRepository = Depends(get_expense_repository),
) -> Dict[str, Any]:
    # only the keys the client actually sent
    changes = req.model_dump(exclude_unset=True)
    expense = await repo.update(identity.user_id, expense_id, **changes)
    return envelope(_dump(expense), message="Expense updated successfully")


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    identity: Identity = Depends(get_current_identity),
    repo: ExpenseRepository = Depends(get_expense_repository),
) -> Dict[str, Any]:
    await repo.delete(identity.user_id, expense_id)
    return envelope(message="Expense deleted successfully")
