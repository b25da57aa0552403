# app/services/dashboard.py
"""
Read-only overview of the current month: totals, budget status, goals.
"""

from decimal import Decimal

from sqlalchemy.orm import Session

from app.clock import Clock
from app.services import accounts, budgets, goals, transactions
from app.services.date_helpers import previous_period
from app.services.money import ZERO, percent, to_money


def _change(current: Decimal, previous: Decimal) -> float:
    # Percentage change relative to the previous month's magnitude
    if previous == 0:
        return 0.0
    return float((current - previous) / abs(previous) * 100)


def get_dashboard_data(db: Session, owner_id: int, clock: Clock, savings_goal=0) -> dict:
    today = clock.today()
    month, year = today.month, today.year
    savings_goal = to_money(savings_goal)

    income = transactions.get_monthly_income(db, owner_id, month, year)
    expenses = transactions.get_monthly_expenses(db, owner_id, month, year)
    projected = income - expenses
    on_track = projected >= savings_goal

    recent = [
        {
            "id": tx.id,
            "description": tx.description,
            "amount": to_money(tx.amount),
            "type": tx.type,
            "category": tx.category.name if tx.category else None,
            "account": tx.account.name,
            "transaction_date": tx.transaction_date,
        }
        for tx in transactions.get_recent(db, owner_id, limit=5)
    ]

    return {
        "stats": {
            "total_balance": accounts.get_total_balance(db, owner_id),
            "monthly_income": income,
            "monthly_expenses": expenses,
            "projected_savings": projected,
        },
        "monthly_tracker": {
            "income": income,
            "expenses": expenses,
            "net_savings": projected,
            "savings_goal": savings_goal,
            "savings_progress": percent(projected, savings_goal) if projected > 0 else 0.0,
            "is_on_track": on_track,
            "shortfall": ZERO if on_track else savings_goal - projected,
        },
        "recent_transactions": recent,
        "budget_status": budgets.get_budgets_with_spending(db, owner_id, clock, month, year),
        "savings_goals": [
            goals.goal_view(goal, clock) for goal in goals.get_top_goals(db, owner_id, 3)
        ],
        "current_month": {
            "month": month,
            "year": year,
            "month_name": today.strftime("%B %Y"),
        },
    }


def get_stats_comparison(db: Session, owner_id: int, clock: Clock) -> dict:
    """This month against last month."""
    today = clock.today()
    month, year = today.month, today.year
    last_month, last_year = previous_period(month, year)

    income = transactions.get_monthly_income(db, owner_id, month, year)
    last_income = transactions.get_monthly_income(db, owner_id, last_month, last_year)
    expenses = transactions.get_monthly_expenses(db, owner_id, month, year)
    last_expenses = transactions.get_monthly_expenses(db, owner_id, last_month, last_year)

    savings = income - expenses
    last_savings = last_income - last_expenses

    return {
        "income": {
            "current": income,
            "previous": last_income,
            "change": _change(income, last_income),
            "trend": "up" if income >= last_income else "down",
        },
        "expenses": {
            "current": expenses,
            "previous": last_expenses,
            "change": _change(expenses, last_expenses),
            # Spending less counts as the good direction
            "trend": "up" if expenses <= last_expenses else "down",
        },
        "savings": {
            "current": savings,
            "previous": last_savings,
            "change": _change(savings, last_savings),
            "trend": "up" if savings >= last_savings else "down",
        },
    }
