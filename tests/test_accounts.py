"""
Tests for account management, reconciliation and summaries.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.errors import NotFoundError, ValidationError
from app.services import accounts, transactions
from app.services.transactions import ExpenseData, TransferData
from models import Account, Transaction


def test_create_sets_opening_and_running_balance(db, user):
    account = accounts.create_account(db, user.id, "  Cash on Hand ", "cash", balance="12.5")
    assert account.name == "Cash on Hand"
    assert account.opening_balance == Decimal("12.50")
    assert account.balance == Decimal("12.50")
    assert account.is_active is True


def test_invalid_type_is_rejected(db, user):
    with pytest.raises(ValidationError):
        accounts.create_account(db, user.id, "Stocks", "brokerage")


def test_lookup_of_foreign_account_is_not_found(db, user, other_user, bank):
    with pytest.raises(NotFoundError):
        accounts.get_account(db, other_user.id, bank.id)


def test_balance_is_not_editable(db, bank):
    with pytest.raises(ValidationError):
        accounts.update_account(db, bank, {"balance": 5})


def test_soft_delete_hides_account(db, user, bank, wallet):
    accounts.delete_account(db, bank)
    assert [a.name for a in accounts.list_accounts(db, user.id)] == ["GCash"]
    assert len(accounts.list_accounts(db, user.id, include_inactive=True)) == 2


def test_recalculate_repairs_drift(db, user, bank, food):
    transactions.create_transaction(
        db,
        user.id,
        ExpenseData(
            amount=Decimal("200"),
            description="Groceries",
            account_id=bank.id,
            category_id=food.id,
            transaction_date=date(2026, 10, 5),
        ),
    )
    bank.balance = Decimal("1.00")
    db.commit()

    assert accounts.compute_ledger_balance(db, bank) == Decimal("800.00")
    accounts.recalculate_balance(db, bank)
    assert bank.balance == Decimal("800.00")


def test_force_delete_unwinds_transfers_on_other_accounts(db, user, bank, wallet, food):
    transactions.create_transaction(
        db,
        user.id,
        TransferData(
            amount=Decimal("40"),
            account_id=bank.id,
            to_account_id=wallet.id,
            transaction_date=date(2026, 10, 5),
        ),
    )
    transactions.create_transaction(
        db,
        user.id,
        TransferData(
            amount=Decimal("15"),
            account_id=wallet.id,
            to_account_id=bank.id,
            transaction_date=date(2026, 10, 6),
        ),
    )
    transactions.create_transaction(
        db,
        user.id,
        ExpenseData(
            amount=Decimal("5"),
            description="Snack",
            account_id=bank.id,
            category_id=food.id,
            transaction_date=date(2026, 10, 7),
        ),
    )
    assert wallet.balance == Decimal("125.00")

    bank_id = bank.id
    accounts.force_delete_account(db, bank)

    db.refresh(wallet)
    assert wallet.balance == Decimal("100.00")
    assert wallet.balance == accounts.compute_ledger_balance(db, wallet)
    assert db.get(Account, bank_id) is None
    assert db.query(Transaction).count() == 0


def test_accounts_summary(db, user):
    accounts.create_account(db, user.id, "Savings", "bank", balance=1500)
    accounts.create_account(db, user.id, "Visa", "credit_card", balance=-400)
    closed = accounts.create_account(db, user.id, "Old", "bank", balance=999)
    accounts.delete_account(db, closed)

    summary = accounts.get_accounts_summary(db, user.id)

    assert [a.name for a in summary["accounts"]] == ["Savings", "Visa"]
    assert summary["total_balance"] == Decimal("1100.00")
    assert summary["total_assets"] == Decimal("1500.00")
    assert summary["total_liabilities"] == Decimal("400.00")
    assert summary["net_worth"] == Decimal("1100.00")
