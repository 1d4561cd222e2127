"""
SQLAlchemy ORM models for users, categories and expenses.

Ownership and referential rules live in the schema as well as in the
services: the store is the final arbiter for concurrent writers.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (
        # target of the (category_id, user_id) composite key on expenses
        UniqueConstraint("id", "user_id", name="uq_categories_id_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


Index(
    "uq_categories_user_lower_name",
    Category.user_id,
    func.lower(Category.name),
    unique=True,
)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        ForeignKeyConstraint(
            ["category_id", "user_id"],
            ["categories.id", "categories.user_id"],
            name="fk_expenses_category_owner",
        ),
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False, default="")
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    category = relationship(
        "Category",
        primaryjoin="and_(Expense.category_id == Category.id, Expense.user_id == Category.user_id)",
        foreign_keys=[category_id, user_id],
        viewonly=True,
        lazy="joined",
    )

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category is not None else None
