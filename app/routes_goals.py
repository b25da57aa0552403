# routes_goals.py
"""
Routes for savings goals: CRUD plus add-funds / withdraw-funds.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock
from app.deps import get_clock, get_current_user, get_db
from app.errors import ValidationError
from app.schemas import FundsOut, FundsRequest, GoalCreate, GoalDetailOut, GoalOut, GoalUpdate
from app.services import goals as goal_service
from app.services.money import to_money
from models import User

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("")
def goals_summary(
    include_completed: bool = Query(False),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return goal_service.get_goals_summary(db, user.id, clock, include_completed=include_completed)


@router.post("", response_model=GoalOut, status_code=201)
def create_goal(
    body: GoalCreate,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    if body.deadline is not None and body.deadline <= clock.today():
        raise ValidationError("deadline must be in the future.")

    goal = goal_service.create_goal(
        db,
        user.id,
        name=body.name,
        target_amount=body.target_amount,
        clock=clock,
        current_amount=body.current_amount,
        deadline=body.deadline,
        monthly_target=body.monthly_target,
        account_id=body.account_id,
        icon=body.icon,
        color=body.color,
    )
    return goal_service.goal_view(goal, clock)


@router.get("/{goal_id}", response_model=GoalDetailOut)
def show_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    return {
        "goal": goal_service.goal_view(goal, clock),
        "allocations": goal_service.get_allocations(db, goal),
    }


@router.put("/{goal_id}", response_model=GoalOut)
def update_goal(
    goal_id: int,
    body: GoalUpdate,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    goal = goal_service.update_goal(db, goal, body.model_dump(exclude_unset=True))
    return goal_service.goal_view(goal, clock)


@router.delete("/{goal_id}")
def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    goal_service.delete_goal(db, goal)
    return {"message": "Goal deleted"}


@router.post("/{goal_id}/add-funds", response_model=FundsOut)
def add_funds(
    goal_id: int,
    body: FundsRequest,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_goal(db, user.id, goal_id)
    allocation = goal_service.add_funds(
        db,
        goal,
        body.amount,
        clock,
        account_id=body.account_id,
        notes=body.notes,
        allocation_date=body.allocation_date,
    )
    return {
        "message": "Funds added successfully",
        "allocation": allocation,
        "goal": goal_service.goal_view(goal, clock),
    }


@router.post("/{goal_id}/withdraw-funds", response_model=FundsOut)
def withdraw_funds(
    goal_id: int,
    body: FundsRequest,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_goal(db, user.id, goal_id)

    # Request-level check; the service repeats it under a row lock
    if to_money(body.amount) > to_money(goal.current_amount):
        raise ValidationError(f"amount may not be greater than {to_money(goal.current_amount)}.")

    allocation = goal_service.withdraw_funds(
        db,
        goal,
        body.amount,
        clock,
        account_id=body.account_id,
        notes=body.notes,
        allocation_date=body.allocation_date,
    )
    return {
        "message": "Funds withdrawn successfully",
        "allocation": allocation,
        "goal": goal_service.goal_view(goal, clock),
    }
