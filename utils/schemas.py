"""
Pydantic schemas for request bodies, response rows and the JSON envelope.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════════════
# Envelope
# ═══════════════════════════════════════════════════════════════════════════════


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope shared by every route: ``{success, message?, data}``."""
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Auth / users
# ═══════════════════════════════════════════════════════════════════════════════


class SignupRequest(BaseModel):
    name: str = Field(..., max_length=128)
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=128)
    email: Optional[str] = Field(None, max_length=255)


class UserPublic(ORMModel):
    id: int
    name: str
    email: str


class UserProfile(UserPublic):
    created_at: dt.datetime


class AuthPayload(BaseModel):
    token: str
    user: UserPublic


# ═══════════════════════════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════════════════════════


class CategoryWrite(BaseModel):
    name: str = Field(..., max_length=100)


class CategoryRead(ORMModel):
    id: int
    name: str
    user_id: int
    created_at: dt.datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Expenses
# ═══════════════════════════════════════════════════════════════════════════════


class ExpenseCreate(BaseModel):
    category_id: int
    amount: Decimal
    date: dt.date
    description: Optional[str] = None


class ExpenseUpdate(BaseModel):
    """All optional; only fields present in the body are applied."""

    category_id: Optional[int] = None
    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None
    description: Optional[str] = None


class ExpenseRead(ORMModel):
    id: int
    user_id: int
    category_id: int
    category_name: Optional[str] = None
    amount: Decimal
    description: str
    date: dt.date
    created_at: dt.datetime
