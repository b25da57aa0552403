# routes_accounts.py
"""
Routes for accounts: summary list, create, edit, soft/hard delete, reconcile.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.deps import get_current_user, get_db
from app.schemas import AccountCreate, AccountOut, AccountsSummaryOut, AccountUpdate, ReconcileOut
from app.services import accounts as account_service
from models import User

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=AccountsSummaryOut)
def accounts_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return account_service.get_accounts_summary(db, user.id)


@router.post("", response_model=AccountOut, status_code=201)
def create_account(
    body: AccountCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return account_service.create_account(
        db,
        user.id,
        name=body.name,
        type_=body.type,
        balance=body.balance,
        icon=body.icon,
        color=body.color,
    )


@router.get("/{account_id}", response_model=AccountOut)
def show_account(
    account_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return account_service.get_account(db, user.id, account_id)


@router.put("/{account_id}", response_model=AccountOut)
def update_account(
    account_id: int,
    body: AccountUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = account_service.get_account(db, user.id, account_id)
    return account_service.update_account(db, account, body.model_dump(exclude_unset=True))


@router.delete("/{account_id}")
def delete_account(
    account_id: int,
    force: bool = Query(False),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = account_service.get_account(db, user.id, account_id)
    if force:
        account_service.force_delete_account(db, account)
    else:
        account_service.delete_account(db, account)
    return {"message": "Account deleted"}


@router.post("/{account_id}/reconcile", response_model=ReconcileOut)
def reconcile_account(
    account_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Recompute the balance from transaction history and store it.
    Returns the balance as it was stored before, for comparison.
    """
    account = account_service.get_account(db, user.id, account_id)
    stored = account.balance
    account = account_service.recalculate_balance(db, account)
    return {
        "account": account,
        "stored_balance": stored,
        "ledger_balance": account.balance,
    }
