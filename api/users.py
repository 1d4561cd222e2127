"""
Profile routes for the authenticated user.

Route prefix: /users
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import Identity, get_credential_store, get_current_identity
from services.users import CredentialStore
from utils.schemas import ProfileUpdateRequest, UserProfile, envelope

router = APIRouter(tags=["users"])


@router.get("/me")
async def get_me(
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
) -> Dict[str, Any]:
    user = await store.get_by_id(identity.user_id)
    return envelope(UserProfile.model_validate(user).model_dump(mode="json"))


@router.put("/me")
async def update_me(
    req: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
) -> Dict[str, Any]:
    user = await store.update_profile(identity.user_id, name=req.name, email=req.email)
    return envelope(
        UserProfile.model_validate(user).model_dump(mode="json"),
        message="Profile updated successfully",
    )


@router.delete("/me")
async def delete_me(
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
) -> Dict[str, Any]:
    """Delete the account along with its categories and expenses."""
    await store.delete_user(identity.user_id)
    return envelope(message="Account deleted successfully")
