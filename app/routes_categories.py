# routes_categories.py
"""
Routes for income/expense categories and per-category spending.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock
from app.deps import get_clock, get_current_user, get_db
from app.schemas import CategoryCreate, CategoryOut, CategoryUpdate
from app.services import categories as category_service
from models import User

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    type: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return category_service.list_categories(db, user.id, type_=type)


@router.get("/spending")
def category_spending(
    month: int | None = Query(None),
    year: int | None = Query(None),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    today = clock.today()
    rows = category_service.get_category_spending(
        db, user.id, month or today.month, year or today.year
    )
    return [
        {
            "id": row["category"].id,
            "name": row["category"].name,
            "icon": row["category"].icon,
            "color": row["category"].color,
            "spent": row["spent"],
            "count": row["count"],
        }
        for row in rows
    ]


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    body: CategoryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return category_service.create_category(
        db, user.id, name=body.name, type_=body.type, icon=body.icon, color=body.color
    )


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    body: CategoryUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = category_service.get_category(db, user.id, category_id)
    return category_service.update_category(db, category, body.model_dump(exclude_unset=True))


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = category_service.get_category(db, user.id, category_id)
    category_service.delete_category(db, category)
    return {"message": "Category deleted"}
