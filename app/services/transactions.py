# app/services/transactions.py
"""
Transaction lifecycle: create / update / delete with their balance effects.

Every mutation runs in one unit of work (db.atomic): the row change and the
balance change commit together or not at all. Validation happens first, so a
rejected request never touches the store.

Creation takes one of three payload variants:

    IncomeData    account + income category
    ExpenseData   account + expense category
    TransferData  from account + different to account, no category
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from db import atomic
from app.errors import NotFoundError, ValidationError
from app.services.balance_engine import apply_effect, effect_of, replace_effect, reverse_effect
from app.services.date_helpers import get_month_range, validate_period
from app.services.money import positive_money, to_money
from models import Account, Category, Transaction

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Payloads
# -------------------------------------------------------------------

@dataclass(frozen=True)
class IncomeData:
    amount: Decimal
    description: str
    account_id: int
    category_id: int
    transaction_date: date
    notes: str | None = None


@dataclass(frozen=True)
class ExpenseData:
    amount: Decimal
    description: str
    account_id: int
    category_id: int
    transaction_date: date
    notes: str | None = None


@dataclass(frozen=True)
class TransferData:
    amount: Decimal
    account_id: int
    to_account_id: int
    transaction_date: date
    description: str = "Transfer"
    notes: str | None = None


TransactionData = IncomeData | ExpenseData | TransferData

UPDATABLE_FIELDS = (
    "amount",
    "description",
    "account_id",
    "to_account_id",
    "category_id",
    "transaction_date",
    "notes",
)


# -------------------------------------------------------------------
# Validation helpers
# -------------------------------------------------------------------

def _owned_account(db: Session, owner_id: int, account_id: int | None, field: str) -> Account:
    if account_id is None:
        raise ValidationError(f"{field} is required.")
    account = (
        db.query(Account)
        .filter(Account.id == account_id, Account.user_id == owner_id)
        .one_or_none()
    )
    if account is None:
        raise ValidationError(f"{field} does not exist.")
    return account


def _owned_category(db: Session, owner_id: int, category_id: int | None, type_: str) -> Category:
    if category_id is None:
        raise ValidationError("category_id is required.")
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.user_id == owner_id)
        .one_or_none()
    )
    if category is None:
        raise ValidationError("category_id does not exist.")
    if category.type != type_:
        raise ValidationError(f"category_id must be an {type_} category.")
    return category


def _require_description(description: str | None) -> str:
    if description is None or not str(description).strip():
        raise ValidationError("description is required.")
    return str(description).strip()


def _require_date(value) -> date:
    if not isinstance(value, date):
        raise ValidationError("transaction_date must be a date.")
    return value


def _validate_shape(
    db: Session,
    owner_id: int,
    type_: str,
    account_id: int | None,
    to_account_id: int | None,
    category_id: int | None,
) -> None:
    """Role checks shared by create and update."""
    match type_:
        case "income" | "expense":
            if to_account_id is not None:
                raise ValidationError("to_account_id is only valid for transfers.")
            _owned_account(db, owner_id, account_id, "account_id")
            _owned_category(db, owner_id, category_id, type_)
        case "transfer":
            if category_id is not None:
                raise ValidationError("Transfers cannot have a category.")
            _owned_account(db, owner_id, account_id, "from_account_id")
            _owned_account(db, owner_id, to_account_id, "to_account_id")
            if account_id == to_account_id:
                raise ValidationError("to_account_id must be different from from_account_id.")
        case _:
            raise ValidationError(f"Invalid transaction type: {type_!r}")


# -------------------------------------------------------------------
# Lifecycle
# -------------------------------------------------------------------

def create_transaction(db: Session, owner_id: int, data: TransactionData) -> Transaction:
    """Persist the transaction and apply its balance effect exactly once."""
    amount = positive_money(data.amount)
    transaction_date = _require_date(data.transaction_date)

    match data:
        case IncomeData() | ExpenseData():
            type_ = "income" if isinstance(data, IncomeData) else "expense"
            to_account_id = None
            category_id = data.category_id
            description = _require_description(data.description)
        case TransferData():
            type_ = "transfer"
            to_account_id = data.to_account_id
            category_id = None
            description = (data.description or "").strip() or "Transfer"
        case _:
            raise ValidationError(f"Unsupported transaction payload: {type(data).__name__}")

    _validate_shape(db, owner_id, type_, data.account_id, to_account_id, category_id)

    with atomic(db):
        tx = Transaction(
            user_id=owner_id,
            type=type_,
            amount=amount,
            account_id=data.account_id,
            to_account_id=to_account_id,
            category_id=category_id,
            description=description,
            notes=data.notes,
            transaction_date=transaction_date,
        )
        db.add(tx)
        db.flush()
        apply_effect(db, effect_of(tx))

    logger.info("created %s %s of %s for user %s", type_, tx.id, amount, owner_id)
    return tx


def update_transaction(db: Session, tx: Transaction, changes: dict) -> Transaction:
    """
    Apply a partial edit. Keys with a None value are left unchanged.

    The effect stored before the edit is reversed and the effect of the edited
    row is applied, even when only description or notes changed.
    """
    changes = dict(changes)
    new_type = changes.pop("type", None)
    if new_type is not None and new_type != tx.type:
        raise ValidationError("Transaction type cannot be changed.")

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    updates = {k: v for k, v in changes.items() if v is not None}

    if "amount" in updates:
        updates["amount"] = positive_money(updates["amount"])
    if "description" in updates:
        updates["description"] = _require_description(updates["description"])
    if "transaction_date" in updates:
        _require_date(updates["transaction_date"])

    # Validate the row as it will look after the edit
    _validate_shape(
        db,
        tx.user_id,
        tx.type,
        updates.get("account_id", tx.account_id),
        updates.get("to_account_id", tx.to_account_id),
        updates.get("category_id", tx.category_id),
    )

    with atomic(db):
        old_effect = effect_of(tx)
        for field, value in updates.items():
            setattr(tx, field, value)
        db.flush()
        replace_effect(db, old_effect, effect_of(tx))

    logger.info("updated transaction %s (%s)", tx.id, ", ".join(sorted(updates)) or "no changes")
    return tx


def delete_transaction(db: Session, tx: Transaction) -> None:
    """Reverse the effect, then remove the row."""
    tx_id = tx.id
    with atomic(db):
        reverse_effect(db, effect_of(tx))
        db.delete(tx)
    logger.info("deleted transaction %s", tx_id)


# -------------------------------------------------------------------
# Queries
# -------------------------------------------------------------------

def get_transaction(db: Session, owner_id: int, transaction_id: int) -> Transaction:
    tx = (
        db.query(Transaction)
        .filter(Transaction.id == transaction_id, Transaction.user_id == owner_id)
        .one_or_none()
    )
    if tx is None:
        raise NotFoundError("Transaction not found")
    return tx


def list_transactions(
    db: Session,
    owner_id: int,
    type_: str | None = None,
    account_id: int | None = None,
    category_id: int | None = None,
    month: int | None = None,
    year: int | None = None,
    search: str | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    query = db.query(Transaction).filter(Transaction.user_id == owner_id)

    if type_:
        query = query.filter(Transaction.type == type_)

    # Both sides of a transfer show up in an account's list
    if account_id:
        query = query.filter(
            or_(Transaction.account_id == account_id, Transaction.to_account_id == account_id)
        )

    if category_id:
        query = query.filter(Transaction.category_id == category_id)

    if month and year:
        month, year = validate_period(month, year)
        start, end = get_month_range(month, year)
        query = query.filter(
            Transaction.transaction_date >= start,
            Transaction.transaction_date < end,
        )

    if search:
        query = query.filter(Transaction.description.ilike(f"%{search}%"))

    query = query.order_by(
        Transaction.transaction_date.desc(),
        Transaction.created_at.desc(),
        Transaction.id.desc(),
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_recent(db: Session, owner_id: int, limit: int = 10) -> list[Transaction]:
    return list_transactions(db, owner_id, limit=limit)


def _monthly_total(db: Session, owner_id: int, type_: str, month: int, year: int) -> Decimal:
    month, year = validate_period(month, year)
    start, end = get_month_range(month, year)
    value = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(
            Transaction.user_id == owner_id,
            Transaction.type == type_,
            Transaction.transaction_date >= start,
            Transaction.transaction_date < end,
        )
        .scalar()
    )
    return to_money(value)


def get_monthly_income(db: Session, owner_id: int, month: int, year: int) -> Decimal:
    return _monthly_total(db, owner_id, "income", month, year)


def get_monthly_expenses(db: Session, owner_id: int, month: int, year: int) -> Decimal:
    return _monthly_total(db, owner_id, "expense", month, year)


def get_monthly_summary(db: Session, owner_id: int, month: int, year: int) -> dict:
    income = get_monthly_income(db, owner_id, month, year)
    expenses = get_monthly_expenses(db, owner_id, month, year)
    return {
        "income": income,
        "expenses": expenses,
        "net": income - expenses,
    }
