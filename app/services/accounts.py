# app/services/accounts.py
"""
Account management and balance reconciliation.

Balances are never written here directly except on creation and during
reconciliation; day-to-day movement goes through the balance engine.
"""

import logging
from decimal import Decimal

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from db import atomic
from app.errors import NotFoundError, ValidationError
from app.services.balance_engine import Effect, compute_effect, reverse_effect
from app.services.money import ZERO, to_money
from models import ACCOUNT_TYPES, Account, Transaction

logger = logging.getLogger(__name__)


def _check_type(type_: str) -> str:
    if type_ not in ACCOUNT_TYPES:
        raise ValidationError(
            f"Invalid account type: {type_!r} (expected one of {', '.join(ACCOUNT_TYPES)})"
        )
    return type_


# ---- Lookups ----

def get_account(db: Session, owner_id: int, account_id: int) -> Account:
    """Owner-scoped lookup. Someone else's account is simply not found."""
    account = (
        db.query(Account)
        .filter(Account.id == account_id, Account.user_id == owner_id)
        .one_or_none()
    )
    if account is None:
        raise NotFoundError("Account not found")
    return account


def list_accounts(db: Session, owner_id: int, include_inactive: bool = False) -> list[Account]:
    query = db.query(Account).filter(Account.user_id == owner_id)
    if not include_inactive:
        query = query.filter(Account.is_active.is_(True))
    return query.order_by(Account.name).all()


# ---- Mutations ----

def create_account(
    db: Session,
    owner_id: int,
    name: str,
    type_: str,
    balance=0,
    icon: str | None = None,
    color: str | None = None,
) -> Account:
    if not name or not name.strip():
        raise ValidationError("name is required.")
    _check_type(type_)
    opening = to_money(balance)

    with atomic(db):
        account = Account(
            user_id=owner_id,
            name=name.strip(),
            type=type_,
            opening_balance=opening,
            balance=opening,
            icon=icon,
            color=color or "bg-blue-500",
            is_active=True,
        )
        db.add(account)

    logger.info("created account %s (%s) for user %s", account.id, account.type, owner_id)
    return account


def update_account(db: Session, account: Account, changes: dict) -> Account:
    """Rename/retype an account. The balance is not editable here."""
    if "balance" in changes or "opening_balance" in changes:
        raise ValidationError("Balances change only through transactions.")

    with atomic(db):
        if changes.get("name") is not None:
            if not changes["name"].strip():
                raise ValidationError("name cannot be empty.")
            account.name = changes["name"].strip()
        if changes.get("type") is not None:
            account.type = _check_type(changes["type"])
        if changes.get("icon") is not None:
            account.icon = changes["icon"]
        if changes.get("color") is not None:
            account.color = changes["color"]
    return account


def delete_account(db: Session, account: Account) -> Account:
    """Soft delete: the account and its history stay, it just stops being listed."""
    with atomic(db):
        account.is_active = False
    logger.info("deactivated account %s", account.id)
    return account


def force_delete_account(db: Session, account: Account) -> None:
    """
    Hard delete. The account's transactions cascade away with it, so first
    reverse their legs on the *other* accounts (transfers in and out);
    otherwise those balances would keep money from rows that no longer exist.
    """
    with atomic(db):
        transfers = (
            db.query(Transaction)
            .filter(
                Transaction.type == "transfer",
                or_(
                    Transaction.account_id == account.id,
                    Transaction.to_account_id == account.id,
                ),
            )
            .all()
        )
        for tx in transfers:
            effect = compute_effect(tx.type, tx.amount, tx.account_id, tx.to_account_id)
            other_legs = tuple(leg for leg in effect.legs if leg.account_id != account.id)
            reverse_effect(db, Effect(other_legs))
            db.delete(tx)

        db.delete(account)

    logger.info("deleted account %s and %d transfer(s)", account.id, len(transfers))


# ---- Reconciliation ----

def compute_ledger_balance(db: Session, account: Account) -> Decimal:
    """
    Balance implied by history:
    opening + income - expense - transfers out + transfers in.
    """

    def total(*criteria) -> Decimal:
        value = (
            db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(*criteria)
            .scalar()
        )
        return to_money(value)

    income = total(Transaction.account_id == account.id, Transaction.type == "income")
    expenses = total(Transaction.account_id == account.id, Transaction.type == "expense")
    transfers_out = total(Transaction.account_id == account.id, Transaction.type == "transfer")
    transfers_in = total(Transaction.to_account_id == account.id, Transaction.type == "transfer")

    return to_money(account.opening_balance) + income - expenses - transfers_out + transfers_in


def recalculate_balance(db: Session, account: Account) -> Account:
    """Overwrite the stored balance with the one implied by history."""
    with atomic(db):
        expected = compute_ledger_balance(db, account)
        if to_money(account.balance) != expected:
            logger.warning(
                "account %s drifted: stored %s, ledger %s", account.id, account.balance, expected
            )
        account.balance = expected
    return account


# ---- Aggregates ----

def get_total_balance(db: Session, owner_id: int) -> Decimal:
    return sum((to_money(a.balance) for a in list_accounts(db, owner_id)), ZERO)


def get_total_assets(db: Session, owner_id: int) -> Decimal:
    return sum(
        (to_money(a.balance) for a in list_accounts(db, owner_id) if a.balance > 0), ZERO
    )


def get_total_liabilities(db: Session, owner_id: int) -> Decimal:
    return abs(
        sum((to_money(a.balance) for a in list_accounts(db, owner_id) if a.balance < 0), ZERO)
    )


def get_accounts_summary(db: Session, owner_id: int) -> dict:
    accounts = list_accounts(db, owner_id)
    assets = get_total_assets(db, owner_id)
    liabilities = get_total_liabilities(db, owner_id)
    return {
        "accounts": accounts,
        "total_balance": get_total_balance(db, owner_id),
        "total_assets": assets,
        "total_liabilities": liabilities,
        "net_worth": assets - liabilities,
    }
