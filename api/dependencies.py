"""
FastAPI dependencies (shared across routes).
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import Identity, db_session, get_current_identity  # noqa: F401
from services.categories import CategoryRepository
from services.expenses import ExpenseRepository
from services.users import CredentialStore


def get_credential_store(session: AsyncSession = Depends(db_session)) -> CredentialStore:
    return CredentialStore(session)


def get_category_repository(session: AsyncSession = Depends(db_session)) -> CategoryRepository:
    return CategoryRepository(session)


def get_expense_repository(session: AsyncSession = Depends(db_session)) -> ExpenseRepository:
    return ExpenseRepository(session)
