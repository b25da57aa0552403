# app/services/categories.py
"""
Income/expense categories. Transfers never carry one.
"""

import logging

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from db import atomic
from app.errors import NotFoundError, ValidationError
from app.services.date_helpers import get_month_range, validate_period
from app.services.money import to_money
from models import CATEGORY_TYPES, Category, Transaction

logger = logging.getLogger(__name__)


def get_category(db: Session, owner_id: int, category_id: int) -> Category:
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.user_id == owner_id)
        .one_or_none()
    )
    if category is None:
        raise NotFoundError("Category not found")
    return category


def list_categories(db: Session, owner_id: int, type_: str | None = None) -> list[Category]:
    query = db.query(Category).filter(
        Category.user_id == owner_id,
        Category.is_active.is_(True),
    )
    if type_ is not None:
        query = query.filter(Category.type == type_)
    return query.order_by(Category.type, Category.name).all()


def create_category(
    db: Session,
    owner_id: int,
    name: str,
    type_: str,
    icon: str | None = None,
    color: str | None = None,
) -> Category:
    if not name or not name.strip():
        raise ValidationError("name is required.")
    if type_ not in CATEGORY_TYPES:
        raise ValidationError(f"Invalid category type: {type_!r}")

    with atomic(db):
        category = Category(
            user_id=owner_id,
            name=name.strip(),
            type=type_,
            icon=icon or "📦",
            color=color or "bg-gray-500",
            is_active=True,
        )
        db.add(category)

    logger.info("created %s category %s for user %s", type_, category.id, owner_id)
    return category


def update_category(db: Session, category: Category, changes: dict) -> Category:
    """Name/icon/color only; flipping the type would orphan existing transactions."""
    if changes.get("type") is not None and changes["type"] != category.type:
        raise ValidationError("Category type cannot be changed.")

    with atomic(db):
        if changes.get("name") is not None:
            if not changes["name"].strip():
                raise ValidationError("name cannot be empty.")
            category.name = changes["name"].strip()
        if changes.get("icon") is not None:
            category.icon = changes["icon"]
        if changes.get("color") is not None:
            category.color = changes["color"]
    return category


def delete_category(db: Session, category: Category) -> Category:
    # Soft delete; historical transactions keep pointing at it
    with atomic(db):
        category.is_active = False
    return category


def get_category_spending(db: Session, owner_id: int, month: int, year: int) -> list[dict]:
    """Expense total and count per active expense category for the month."""
    month, year = validate_period(month, year)
    start, end = get_month_range(month, year)

    join_on = and_(
        Transaction.category_id == Category.id,
        Transaction.type == "expense",
        Transaction.transaction_date >= start,
        Transaction.transaction_date < end,
    )
    rows = (
        db.query(
            Category,
            func.coalesce(func.sum(Transaction.amount), 0).label("spent"),
            func.count(Transaction.id).label("count"),
        )
        .outerjoin(Transaction, join_on)
        .filter(
            Category.user_id == owner_id,
            Category.type == "expense",
            Category.is_active.is_(True),
        )
        .group_by(Category.id)
        .order_by(Category.name)
        .all()
    )

    return [
        {"category": category, "spent": to_money(spent), "count": int(count)}
        for category, spent, count in rows
    ]
