# app/routes_dashboard.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock
from app.deps import get_clock, get_current_user, get_db
from app.services import dashboard as dashboard_service
from models import User

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
def dashboard_page(
    savings_goal: float = Query(0, ge=0),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return dashboard_service.get_dashboard_data(db, user.id, clock, savings_goal=savings_goal)


@router.get("/comparison")
def dashboard_comparison(
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return dashboard_service.get_stats_comparison(db, user.id, clock)
