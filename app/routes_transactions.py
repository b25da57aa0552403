# routes_transactions.py
"""
Routes for transactions: list/filter, create, edit, delete, monthly summary.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock
from app.deps import get_clock, get_current_user, get_db
from app.errors import ValidationError
from app.schemas import MonthlySummaryOut, TransactionCreate, TransactionOut, TransactionUpdate
from app.services import transactions as tx_service
from app.services.transactions import ExpenseData, IncomeData, TransferData
from models import User

router = APIRouter(prefix="/transactions", tags=["transactions"])


def build_payload(body: TransactionCreate):
    """Turn the flat request body into the payload variant for its type."""
    if body.type == "transfer":
        return TransferData(
            amount=body.amount,
            account_id=body.from_account_id or body.account_id,
            to_account_id=body.to_account_id,
            transaction_date=body.transaction_date,
            description=body.description or "Transfer",
            notes=body.notes,
        )

    if body.from_account_id is not None or body.to_account_id is not None:
        raise ValidationError("from_account_id/to_account_id are only valid for transfers.")

    payload_cls = IncomeData if body.type == "income" else ExpenseData
    return payload_cls(
        amount=body.amount,
        description=body.description,
        account_id=body.account_id,
        category_id=body.category_id,
        transaction_date=body.transaction_date,
        notes=body.notes,
    )


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    type: str | None = Query(None),
    account_id: int | None = Query(None),
    category_id: int | None = Query(None),
    month: int | None = Query(None),
    year: int | None = Query(None),
    search: str | None = Query(None),
    limit: int = Query(20, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return tx_service.list_transactions(
        db,
        user.id,
        type_=type,
        account_id=account_id,
        category_id=category_id,
        month=month,
        year=year,
        search=search,
        limit=limit,
    )


@router.get("/summary", response_model=MonthlySummaryOut)
def monthly_summary(
    month: int | None = Query(None),
    year: int | None = Query(None),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    today = clock.today()
    month = month or today.month
    year = year or today.year
    summary = tx_service.get_monthly_summary(db, user.id, month, year)
    return {"month": month, "year": year, **summary}


@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(
    body: TransactionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return tx_service.create_transaction(db, user.id, build_payload(body))


@router.get("/{transaction_id}", response_model=TransactionOut)
def show_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return tx_service.get_transaction(db, user.id, transaction_id)


@router.put("/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int,
    body: TransactionUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tx = tx_service.get_transaction(db, user.id, transaction_id)
    return tx_service.update_transaction(db, tx, body.model_dump(exclude_unset=True))


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tx = tx_service.get_transaction(db, user.id, transaction_id)
    tx_service.delete_transaction(db, tx)
    return {"message": "Transaction deleted"}
