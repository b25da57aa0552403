# app/services/budgets.py
"""
Monthly category budgets.

Only the limit is stored. Spent, remaining, progress and the over-budget flag
are computed from the transaction table every time they are read, so they
cannot drift from the ledger.
"""

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db import atomic
from app.clock import Clock
from app.errors import NotFoundError, ValidationError
from app.services.date_helpers import get_month_range, next_period, validate_period
from app.services.money import ZERO, percent, to_money
from models import Budget, Category, Transaction

logger = logging.getLogger(__name__)


# ---- Derived values ----

def get_spent(db: Session, owner_id: int, category_id: int, month: int, year: int) -> Decimal:
    """Expenses in the category whose transaction_date falls in month/year."""
    start, end = get_month_range(month, year)
    value = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(
            Transaction.user_id == owner_id,
            Transaction.category_id == category_id,
            Transaction.type == "expense",
            Transaction.transaction_date >= start,
            Transaction.transaction_date < end,
        )
        .scalar()
    )
    return to_money(value)


def budget_status(db: Session, budget: Budget) -> dict:
    amount = to_money(budget.amount)
    spent = get_spent(db, budget.user_id, budget.category_id, budget.month, budget.year)
    return {
        "amount": amount,
        "spent": spent,
        # May go negative once overspent
        "remaining": amount - spent,
        # Capped for display; the over-budget flag uses the raw comparison
        "progress": percent(spent, amount),
        "is_over_budget": spent > amount,
    }


# ---- Lookups ----

def get_budget(db: Session, owner_id: int, budget_id: int) -> Budget:
    budget = (
        db.query(Budget)
        .filter(Budget.id == budget_id, Budget.user_id == owner_id)
        .one_or_none()
    )
    if budget is None:
        raise NotFoundError("Budget not found")
    return budget


def list_budgets(db: Session, owner_id: int, month: int, year: int) -> list[Budget]:
    month, year = validate_period(month, year)
    return (
        db.query(Budget)
        .filter(Budget.user_id == owner_id, Budget.month == month, Budget.year == year)
        .order_by(Budget.id)
        .all()
    )


def _period_or_now(month: int | None, year: int | None, clock: Clock) -> tuple[int, int]:
    today = clock.today()
    return validate_period(month or today.month, year or today.year)


# ---- Mutations ----

def create_budget(
    db: Session,
    owner_id: int,
    category_id: int,
    amount,
    clock: Clock,
    month: int | None = None,
    year: int | None = None,
) -> Budget:
    amount = to_money(amount)
    if amount < 0:
        raise ValidationError("amount cannot be negative.")
    month, year = _period_or_now(month, year, clock)

    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.user_id == owner_id)
        .one_or_none()
    )
    if category is None:
        raise ValidationError("category_id does not exist.")
    if category.type != "expense":
        raise ValidationError("Budgets can only be set on expense categories.")

    try:
        with atomic(db):
            budget = Budget(
                user_id=owner_id,
                category_id=category_id,
                amount=amount,
                month=month,
                year=year,
            )
            db.add(budget)
    except IntegrityError:
        raise ValidationError(f"A budget for this category already exists for {year}-{month:02d}.")

    logger.info("created budget %s (%s/%s) for user %s", budget.id, month, year, owner_id)
    return budget


def update_budget(db: Session, budget: Budget, amount) -> Budget:
    amount = to_money(amount)
    if amount < 0:
        raise ValidationError("amount cannot be negative.")
    with atomic(db):
        budget.amount = amount
    return budget


def delete_budget(db: Session, budget: Budget) -> None:
    with atomic(db):
        db.delete(budget)


def copy_budgets_to_next_month(db: Session, owner_id: int, month: int, year: int) -> list[Budget]:
    """
    Carry every budget of month/year into the following month.

    Find-or-create per category: a budget that already exists in the target
    month keeps its amount, so running this twice changes nothing.
    """
    month, year = validate_period(month, year)
    next_month, next_year = validate_period(*next_period(month, year))

    copied: list[Budget] = []
    created = 0

    with atomic(db):
        for source in list_budgets(db, owner_id, month, year):
            target = (
                db.query(Budget)
                .filter(
                    Budget.user_id == owner_id,
                    Budget.category_id == source.category_id,
                    Budget.month == next_month,
                    Budget.year == next_year,
                )
                .one_or_none()
            )
            if target is None:
                target = Budget(
                    user_id=owner_id,
                    category_id=source.category_id,
                    amount=source.amount,
                    month=next_month,
                    year=next_year,
                )
                db.add(target)
                db.flush()
                created += 1
            copied.append(target)

    logger.info(
        "copied budgets %s/%s -> %s/%s for user %s: %d new, %d kept",
        month, year, next_month, next_year, owner_id, created, len(copied) - created,
    )
    return copied


# ---- Summaries ----

def get_budgets_with_spending(
    db: Session,
    owner_id: int,
    clock: Clock,
    month: int | None = None,
    year: int | None = None,
) -> list[dict]:
    month, year = _period_or_now(month, year, clock)
    rows = []
    for budget in list_budgets(db, owner_id, month, year):
        status = budget_status(db, budget)
        rows.append(
            {
                "id": budget.id,
                "category": {
                    "id": budget.category.id,
                    "name": budget.category.name,
                    "icon": budget.category.icon,
                    "color": budget.category.color,
                },
                "month": budget.month,
                "year": budget.year,
                **status,
            }
        )
    return rows


def get_budget_summary(
    db: Session,
    owner_id: int,
    clock: Clock,
    month: int | None = None,
    year: int | None = None,
) -> dict:
    month, year = _period_or_now(month, year, clock)
    budgets = get_budgets_with_spending(db, owner_id, clock, month, year)

    total_budget = sum((b["amount"] for b in budgets), ZERO)
    total_spent = sum((b["spent"] for b in budgets), ZERO)

    return {
        "month": month,
        "year": year,
        "budgets": budgets,
        "total_budget": total_budget,
        "total_spent": total_spent,
        "total_remaining": total_budget - total_spent,
        "overall_progress": percent(total_spent, total_budget),
    }
