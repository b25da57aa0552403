# app/services/goals.py
"""
Savings goals and their funding history.

A goal is either active or completed. current_amount moves only through
allocations (add_funds / withdraw_funds), each of which appends one signed
GoalAllocation row and adjusts the counter in the same unit of work:

    active    --add_funds, current >= target-->      completed
    completed --withdraw_funds, current < target-->  active

Progress, remaining and days_remaining are derived on read.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from db import atomic
from app.clock import Clock
from app.errors import NotFoundError, ValidationError
from app.services.date_helpers import days_between, months_between
from app.services.money import CENT, ZERO, percent, positive_money, to_money
from models import Account, Goal, GoalAllocation

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Derived values
# -------------------------------------------------------------------

def goal_progress(goal: Goal) -> float:
    return percent(to_money(goal.current_amount), to_money(goal.target_amount))


def goal_remaining(goal: Goal) -> Decimal:
    return max(to_money(goal.target_amount) - to_money(goal.current_amount), ZERO)


def goal_days_remaining(goal: Goal, clock: Clock) -> int | None:
    if goal.deadline is None:
        return None
    return max(days_between(clock.today(), goal.deadline), 0)


def derive_monthly_target(target, current, deadline: date, today: date) -> Decimal:
    """What has to be saved per month to hit the target by the deadline."""
    months = max(months_between(today, deadline), 1)
    needed = to_money(target) - to_money(current)
    return (needed / months).quantize(CENT, rounding=ROUND_HALF_UP)


def goal_view(goal: Goal, clock: Clock) -> dict:
    return {
        "id": goal.id,
        "name": goal.name,
        "icon": goal.icon,
        "color": goal.color,
        "account_id": goal.account_id,
        "target_amount": to_money(goal.target_amount),
        "current_amount": to_money(goal.current_amount),
        "remaining": goal_remaining(goal),
        "progress": round(goal_progress(goal), 1),
        "deadline": goal.deadline,
        "days_remaining": goal_days_remaining(goal, clock),
        "monthly_target": to_money(goal.monthly_target) if goal.monthly_target is not None else None,
        "is_completed": goal.is_completed,
    }


# -------------------------------------------------------------------
# Lookups
# -------------------------------------------------------------------

def get_goal(db: Session, owner_id: int, goal_id: int) -> Goal:
    goal = (
        db.query(Goal)
        .filter(Goal.id == goal_id, Goal.user_id == owner_id)
        .one_or_none()
    )
    if goal is None:
        raise NotFoundError("Goal not found")
    return goal


def list_goals(db: Session, owner_id: int, include_completed: bool = False) -> list[Goal]:
    query = db.query(Goal).filter(Goal.user_id == owner_id)
    if not include_completed:
        query = query.filter(Goal.is_completed.is_(False))
    # Goals without a deadline go last
    return query.order_by(Goal.deadline.is_(None), Goal.deadline, Goal.id).all()


def get_top_goals(db: Session, owner_id: int, limit: int = 3) -> list[Goal]:
    return list_goals(db, owner_id)[:limit]


def get_allocations(db: Session, goal: Goal) -> list[GoalAllocation]:
    return (
        db.query(GoalAllocation)
        .filter(GoalAllocation.goal_id == goal.id)
        .order_by(GoalAllocation.allocation_date.desc(), GoalAllocation.id.desc())
        .all()
    )


def _optional_account(db: Session, owner_id: int, account_id: int | None) -> int | None:
    if account_id is None:
        return None
    exists = (
        db.query(Account.id)
        .filter(Account.id == account_id, Account.user_id == owner_id)
        .one_or_none()
    )
    if exists is None:
        raise ValidationError("account_id does not exist.")
    return account_id


def _lock_goal(db: Session, goal: Goal) -> Goal:
    return (
        db.query(Goal)
        .filter(Goal.id == goal.id)
        .with_for_update()
        .populate_existing()
        .one()
    )


def _sync_completion(goal: Goal) -> None:
    goal.is_completed = to_money(goal.current_amount) >= to_money(goal.target_amount)


# -------------------------------------------------------------------
# Goal CRUD
# -------------------------------------------------------------------

def create_goal(
    db: Session,
    owner_id: int,
    name: str,
    target_amount,
    clock: Clock,
    current_amount=None,
    deadline: date | None = None,
    monthly_target=None,
    account_id: int | None = None,
    icon: str | None = None,
    color: str | None = None,
) -> Goal:
    """
    Create a goal. A starting balance is booked as an opening allocation so
    current_amount always equals the sum of the goal's allocations.
    """
    if not name or not name.strip():
        raise ValidationError("name is required.")
    target = positive_money(target_amount, "target_amount")
    opening = to_money(current_amount)
    if opening < 0:
        raise ValidationError("current_amount cannot be negative.")
    if monthly_target is not None:
        monthly_target = to_money(monthly_target)
        if monthly_target < 0:
            raise ValidationError("monthly_target cannot be negative.")
    account_id = _optional_account(db, owner_id, account_id)

    if deadline is not None and not monthly_target:
        monthly_target = derive_monthly_target(target, opening, deadline, clock.today())

    with atomic(db):
        goal = Goal(
            user_id=owner_id,
            account_id=account_id,
            name=name.strip(),
            icon=icon or "🎯",
            color=color or "bg-blue-500",
            target_amount=target,
            current_amount=opening,
            deadline=deadline,
            monthly_target=monthly_target,
            is_completed=False,
        )
        db.add(goal)
        db.flush()
        if opening > 0:
            db.add(
                GoalAllocation(
                    goal_id=goal.id,
                    user_id=owner_id,
                    account_id=account_id,
                    amount=opening,
                    notes="Initial amount",
                    allocation_date=clock.today(),
                )
            )
        _sync_completion(goal)

    logger.info("created goal %s (target %s) for user %s", goal.id, target, owner_id)
    return goal


def update_goal(db: Session, goal: Goal, changes: dict) -> Goal:
    """
    Edit goal metadata. current_amount is not editable here; use
    add_funds / withdraw_funds.
    """
    if changes.get("current_amount") is not None:
        raise ValidationError("current_amount changes only through allocations.")

    updates = {k: v for k, v in changes.items() if v is not None}
    if "name" in updates and not updates["name"].strip():
        raise ValidationError("name cannot be empty.")
    if "target_amount" in updates:
        updates["target_amount"] = positive_money(updates["target_amount"], "target_amount")
    if "monthly_target" in updates:
        updates["monthly_target"] = to_money(updates["monthly_target"])
        if updates["monthly_target"] < 0:
            raise ValidationError("monthly_target cannot be negative.")
    if "account_id" in updates:
        _optional_account(db, goal.user_id, updates["account_id"])

    with atomic(db):
        for field in ("name", "icon", "color", "target_amount", "deadline", "monthly_target", "account_id"):
            if field in updates:
                value = updates[field]
                setattr(goal, field, value.strip() if field == "name" else value)
        _sync_completion(goal)
    return goal


def delete_goal(db: Session, goal: Goal) -> None:
    goal_id = goal.id
    with atomic(db):
        db.delete(goal)
    logger.info("deleted goal %s", goal_id)


# -------------------------------------------------------------------
# Funding
# -------------------------------------------------------------------

def add_funds(
    db: Session,
    goal: Goal,
    amount,
    clock: Clock,
    account_id: int | None = None,
    notes: str | None = None,
    allocation_date: date | None = None,
) -> GoalAllocation:
    amount = positive_money(amount)
    account_id = _optional_account(db, goal.user_id, account_id)

    with atomic(db):
        locked = _lock_goal(db, goal)
        allocation = GoalAllocation(
            goal_id=locked.id,
            user_id=locked.user_id,
            account_id=account_id if account_id is not None else locked.account_id,
            amount=amount,
            notes=notes,
            allocation_date=allocation_date or clock.today(),
        )
        db.add(allocation)
        locked.current_amount = to_money(locked.current_amount) + amount
        if locked.current_amount >= to_money(locked.target_amount):
            locked.is_completed = True

    logger.info("goal %s funded %s -> %s", goal.id, amount, goal.current_amount)
    return allocation


def withdraw_funds(
    db: Session,
    goal: Goal,
    amount,
    clock: Clock,
    account_id: int | None = None,
    notes: str | None = None,
    allocation_date: date | None = None,
) -> GoalAllocation:
    """
    Take money back out of a goal. Rejected, with nothing written, if the
    amount exceeds what the goal currently holds.
    """
    amount = positive_money(amount)
    account_id = _optional_account(db, goal.user_id, account_id)

    with atomic(db):
        locked = _lock_goal(db, goal)
        # Checked against the locked row, not the value the caller saw
        if amount > to_money(locked.current_amount):
            logger.warning(
                "goal %s withdrawal of %s rejected, holds %s", goal.id, amount, locked.current_amount
            )
            raise ValidationError(
                f"Cannot withdraw {amount}; the goal only holds {to_money(locked.current_amount)}."
            )
        allocation = GoalAllocation(
            goal_id=locked.id,
            user_id=locked.user_id,
            account_id=account_id if account_id is not None else locked.account_id,
            amount=-amount,
            notes=notes or "Withdrawal",
            allocation_date=allocation_date or clock.today(),
        )
        db.add(allocation)
        locked.current_amount = to_money(locked.current_amount) - amount
        if locked.current_amount < to_money(locked.target_amount):
            locked.is_completed = False

    logger.info("goal %s withdrew %s -> %s", goal.id, amount, goal.current_amount)
    return allocation


def allocation_total(db: Session, goal: Goal) -> Decimal:
    """Sum of the allocation history; equals current_amount when consistent."""
    return sum((to_money(a.amount) for a in get_allocations(db, goal)), ZERO)


# -------------------------------------------------------------------
# Summary
# -------------------------------------------------------------------

def get_goals_summary(
    db: Session, owner_id: int, clock: Clock, include_completed: bool = False
) -> dict:
    goals = list_goals(db, owner_id, include_completed=include_completed)

    total_target = sum((to_money(g.target_amount) for g in goals), ZERO)
    total_saved = sum((to_money(g.current_amount) for g in goals), ZERO)

    return {
        "goals": [goal_view(g, clock) for g in goals],
        "total_target": total_target,
        "total_saved": total_saved,
        "overall_progress": round(percent(total_saved, total_target, cap=False), 1),
    }
