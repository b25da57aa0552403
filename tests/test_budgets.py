"""
Tests for budget aggregation and copy-to-next-month.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.errors import NotFoundError, ValidationError
from app.services import budgets, categories, transactions
from app.services.transactions import ExpenseData, IncomeData
from models import Budget


def spend(db, user, account, category, amount, day):
    transactions.create_transaction(
        db,
        user.id,
        ExpenseData(
            amount=Decimal(amount),
            description="Spend",
            account_id=account.id,
            category_id=category.id,
            transaction_date=day,
        ),
    )


class TestSpending:
    def test_over_budget_scenario(self, db, user, bank, food, clock):
        budget = budgets.create_budget(db, user.id, food.id, Decimal("500"), clock, month=10, year=2026)
        spend(db, user, bank, food, "350", date(2026, 10, 3))
        spend(db, user, bank, food, "250", date(2026, 10, 31))

        status = budgets.budget_status(db, budget)

        assert status["spent"] == Decimal("600.00")
        assert status["remaining"] == Decimal("-100.00")
        assert status["progress"] == 100.0
        assert status["is_over_budget"] is True

    def test_only_expenses_in_the_calendar_month_count(self, db, user, bank, food, salary, clock):
        budget = budgets.create_budget(db, user.id, food.id, Decimal("400"), clock, month=10, year=2026)
        spend(db, user, bank, food, "100", date(2026, 9, 30))
        spend(db, user, bank, food, "100", date(2026, 10, 15))
        spend(db, user, bank, food, "100", date(2026, 11, 1))
        transactions.create_transaction(
            db,
            user.id,
            IncomeData(
                amount=Decimal("999"),
                description="Salary",
                account_id=bank.id,
                category_id=salary.id,
                transaction_date=date(2026, 10, 15),
            ),
        )

        status = budgets.budget_status(db, budget)

        assert status["spent"] == Decimal("100.00")
        assert status["remaining"] == Decimal("300.00")
        assert status["progress"] == 25.0
        assert status["is_over_budget"] is False

    def test_spent_follows_transaction_edits(self, db, user, bank, food, clock):
        budget = budgets.create_budget(db, user.id, food.id, Decimal("100"), clock)
        spend(db, user, bank, food, "80", date(2026, 10, 2))
        tx = transactions.list_transactions(db, user.id)[0]

        transactions.update_transaction(db, tx, {"transaction_date": date(2026, 11, 2)})

        assert budgets.budget_status(db, budget)["spent"] == Decimal("0.00")

    def test_zero_budget_has_zero_progress_but_is_over(self, db, user, bank, food, clock):
        budget = budgets.create_budget(db, user.id, food.id, 0, clock)
        spend(db, user, bank, food, "1", date(2026, 10, 2))

        status = budgets.budget_status(db, budget)
        assert status["progress"] == 0.0
        assert status["is_over_budget"] is True


class TestCrud:
    def test_defaults_to_current_period(self, db, user, food, clock):
        budget = budgets.create_budget(db, user.id, food.id, Decimal("300"), clock)
        assert (budget.month, budget.year) == (10, 2026)

    def test_duplicate_period_is_rejected(self, db, user, food, clock):
        budgets.create_budget(db, user.id, food.id, Decimal("300"), clock)
        with pytest.raises(ValidationError):
            budgets.create_budget(db, user.id, food.id, Decimal("400"), clock)
        assert db.query(Budget).count() == 1

    def test_income_category_is_rejected(self, db, user, salary, clock):
        with pytest.raises(ValidationError):
            budgets.create_budget(db, user.id, salary.id, Decimal("300"), clock)

    def test_negative_amount_is_rejected(self, db, user, food, clock):
        with pytest.raises(ValidationError):
            budgets.create_budget(db, user.id, food.id, Decimal("-1"), clock)

    def test_get_is_owner_scoped(self, db, user, other_user, food, clock):
        budget = budgets.create_budget(db, user.id, food.id, Decimal("300"), clock)
        with pytest.raises(NotFoundError):
            budgets.get_budget(db, other_user.id, budget.id)


class TestCopyToNextMonth:
    def test_copies_every_budget(self, db, user, food, clock):
        transport = categories.create_category(db, user.id, "Transportation", "expense")
        budgets.create_budget(db, user.id, food.id, Decimal("500"), clock, month=10, year=2026)
        budgets.create_budget(db, user.id, transport.id, Decimal("120"), clock, month=10, year=2026)

        copied = budgets.copy_budgets_to_next_month(db, user.id, 10, 2026)

        assert {(b.category_id, b.amount, b.month, b.year) for b in copied} == {
            (food.id, Decimal("500.00"), 11, 2026),
            (transport.id, Decimal("120.00"), 11, 2026),
        }

    def test_december_rolls_into_january(self, db, user, food, clock):
        budgets.create_budget(db, user.id, food.id, Decimal("500"), clock, month=12, year=2026)

        copied = budgets.copy_budgets_to_next_month(db, user.id, 12, 2026)

        assert [(b.month, b.year) for b in copied] == [(1, 2027)]

    def test_existing_target_is_not_overwritten(self, db, user, food, clock):
        budgets.create_budget(db, user.id, food.id, Decimal("500"), clock, month=10, year=2026)
        budgets.create_budget(db, user.id, food.id, Decimal("650"), clock, month=11, year=2026)

        copied = budgets.copy_budgets_to_next_month(db, user.id, 10, 2026)

        assert [b.amount for b in copied] == [Decimal("650.00")]

    def test_running_twice_is_idempotent(self, db, user, food, clock):
        budgets.create_budget(db, user.id, food.id, Decimal("500"), clock, month=10, year=2026)

        budgets.copy_budgets_to_next_month(db, user.id, 10, 2026)
        budgets.copy_budgets_to_next_month(db, user.id, 10, 2026)

        november = budgets.list_budgets(db, user.id, 11, 2026)
        assert [(b.category_id, b.amount) for b in november] == [(food.id, Decimal("500.00"))]


def test_budget_summary_totals(db, user, bank, food, clock):
    transport = categories.create_category(db, user.id, "Transportation", "expense")
    budgets.create_budget(db, user.id, food.id, Decimal("300"), clock)
    budgets.create_budget(db, user.id, transport.id, Decimal("100"), clock)
    spend(db, user, bank, food, "150", date(2026, 10, 9))
    spend(db, user, bank, transport, "150", date(2026, 10, 9))

    summary = budgets.get_budget_summary(db, user.id, clock)

    assert summary["total_budget"] == Decimal("400.00")
    assert summary["total_spent"] == Decimal("300.00")
    assert summary["total_remaining"] == Decimal("100.00")
    assert summary["overall_progress"] == 75.0
    over = {b["category"]["name"]: b["is_over_budget"] for b in summary["budgets"]}
    assert over == {"Food & Dining": False, "Transportation": True}


def test_copy_past_last_supported_year_is_rejected(db, user, food, clock):
    budgets.create_budget(db, user.id, food.id, Decimal("500"), clock, month=12, year=2100)

    with pytest.raises(ValidationError):
        budgets.copy_budgets_to_next_month(db, user.id, 12, 2100)

    assert db.query(Budget).count() == 1
    assert len(budgets.list_budgets(db, user.id, 12, 2100)) == 1
