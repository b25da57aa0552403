# routes_budgets.py
"""
Routes for monthly budgets and the copy-to-next-month helper.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock
from app.deps import get_clock, get_current_user, get_db
from app.schemas import BudgetCopy, BudgetCreate, BudgetDetailOut, BudgetOut, BudgetUpdate
from app.services import budgets as budget_service
from models import User

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("")
def budget_summary(
    month: int | None = Query(None),
    year: int | None = Query(None),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return budget_service.get_budget_summary(db, user.id, clock, month, year)


@router.post("", response_model=BudgetOut, status_code=201)
def create_budget(
    body: BudgetCreate,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return budget_service.create_budget(
        db,
        user.id,
        category_id=body.category_id,
        amount=body.amount,
        clock=clock,
        month=body.month,
        year=body.year,
    )


@router.post("/copy-to-next-month")
def copy_to_next_month(
    body: BudgetCopy,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    today = clock.today()
    copied = budget_service.copy_budgets_to_next_month(
        db, user.id, body.month or today.month, body.year or today.year
    )
    return {
        "message": "Budgets copied to next month",
        "budgets": [BudgetOut.model_validate(b) for b in copied],
    }


@router.get("/{budget_id}", response_model=BudgetDetailOut)
def show_budget(
    budget_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    budget = budget_service.get_budget(db, user.id, budget_id)
    status = budget_service.budget_status(db, budget)
    return {
        "budget": budget,
        "spent": status["spent"],
        "remaining": status["remaining"],
        "progress": status["progress"],
        "is_over_budget": status["is_over_budget"],
    }


@router.put("/{budget_id}", response_model=BudgetOut)
def update_budget(
    budget_id: int,
    body: BudgetUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    budget = budget_service.get_budget(db, user.id, budget_id)
    return budget_service.update_budget(db, budget, body.amount)


@router.delete("/{budget_id}")
def delete_budget(
    budget_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    budget = budget_service.get_budget(db, user.id, budget_id)
    budget_service.delete_budget(db, budget)
    return {"message": "Budget deleted"}
