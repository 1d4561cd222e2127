"""
Category routes — all scoped to the authenticated user.

Route prefix: /categories
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from api.dependencies import Identity, get_category_repository, get_current_identity
from services.categories import CategoryRepository
from utils.schemas import CategoryRead, CategoryWrite, envelope

router = APIRouter(tags=["categories"])


def _dump(category) -> Dict[str, Any]:
    return CategoryRead.model_validate(category).model_dump(mode="json")


@router.get("")
async def list_categories(
    identity: Identity = Depends(get_current_identity),
    repo: CategoryRepository = Depends(get_category_repository),
) -> Dict[str, Any]:
    categories = await repo.list(identity.user_id)
    return envelope([_dump(c) for c in categories])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    req: CategoryWrite,
    identity: Identity = Depends(get_current_identity),
    repo: CategoryRepository = Depends(get_category_repository),
) -> Dict[str, Any]:
    category = await repo.create(identity.user_id, name=req.name)
    return envelope(_dump(category), message="Category created successfully")


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    req: CategoryWrite,
    identity: Identity = Depends(get_current_identity),
    repo: CategoryRepository = Depends(get_category_repository),
) -> Dict[str, Any]:
    category = await repo.update(identity.user_id, category_id, name=req.name)
    return envelope(_dump(category), message="Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    identity: Identity = Depends(get_current_identity),
    repo: CategoryRepository = Depends(get_category_repository),
) -> Dict[str, Any]:
    await repo.delete(identity.user_id, category_id)
    return envelope(message="Category deleted successfully")
