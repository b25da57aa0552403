"""
Tests for the goal funding state machine.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.errors import NotFoundError, ValidationError
from app.services import accounts, goals
from app.services.date_helpers import months_between
from models import GoalAllocation


def assert_allocations_match(db, goal):
    db.refresh(goal)
    assert goal.current_amount == goals.allocation_total(db, goal)


class TestCreate:
    def test_monthly_target_derived_from_deadline(self, db, user, clock):
        goal = goals.create_goal(
            db, user.id, "Emergency Fund", Decimal("1000"), clock, deadline=date(2027, 4, 18)
        )
        assert goal.monthly_target == Decimal("166.67")
        assert goal.current_amount == Decimal("0.00")
        assert goal.is_completed is False

    def test_explicit_monthly_target_is_kept(self, db, user, clock):
        goal = goals.create_goal(
            db, user.id, "Laptop", 1200, clock, deadline=date(2027, 4, 18), monthly_target=50
        )
        assert goal.monthly_target == Decimal("50.00")

    def test_near_deadline_divides_by_one_month(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Gift", 90, clock, deadline=date(2026, 10, 30))
        assert goal.monthly_target == Decimal("90.00")

    def test_no_deadline_no_monthly_target(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Someday", 90, clock)
        assert goal.monthly_target is None
        assert goals.goal_days_remaining(goal, clock) is None

    def test_opening_amount_is_booked_as_allocation(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 1000, clock, current_amount=250)

        allocations = goals.get_allocations(db, goal)
        assert [a.amount for a in allocations] == [Decimal("250.00")]
        assert_allocations_match(db, goal)

    def test_target_must_be_positive(self, db, user, clock):
        with pytest.raises(ValidationError):
            goals.create_goal(db, user.id, "Nothing", 0, clock)


class TestFunding:
    def test_complete_then_reopen(self, db, user, clock):
        goal = goals.create_goal(
            db, user.id, "Emergency Fund", Decimal("1000"), clock, deadline=date(2027, 4, 18)
        )

        allocation = goals.add_funds(db, goal, Decimal("1000"), clock)
        assert allocation.amount == Decimal("1000.00")
        assert allocation.allocation_date == date(2026, 10, 18)
        assert goal.current_amount == Decimal("1000.00")
        assert goal.is_completed is True

        withdrawal = goals.withdraw_funds(db, goal, Decimal("1"), clock)
        assert withdrawal.amount == Decimal("-1.00")
        assert withdrawal.notes == "Withdrawal"
        assert goal.current_amount == Decimal("999.00")
        assert goal.is_completed is False
        assert_allocations_match(db, goal)

    def test_overdraw_is_rejected_without_changes(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 1000, clock)
        goals.add_funds(db, goal, Decimal("100"), clock)

        with pytest.raises(ValidationError):
            goals.withdraw_funds(db, goal, Decimal("100.01"), clock)

        db.refresh(goal)
        assert goal.current_amount == Decimal("100.00")
        assert db.query(GoalAllocation).filter(GoalAllocation.goal_id == goal.id).count() == 1

    def test_withdraw_everything(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 1000, clock)
        goals.add_funds(db, goal, Decimal("100"), clock)
        goals.withdraw_funds(db, goal, Decimal("100"), clock)
        assert goal.current_amount == Decimal("0.00")
        assert_allocations_match(db, goal)

    def test_allocation_defaults_to_goal_account(self, db, user, bank, clock):
        goal = goals.create_goal(db, user.id, "Trip", 1000, clock, account_id=bank.id)
        allocation = goals.add_funds(db, goal, 10, clock, notes="first", allocation_date=date(2026, 10, 1))
        assert allocation.account_id == bank.id
        assert allocation.notes == "first"
        assert allocation.allocation_date == date(2026, 10, 1)

    def test_foreign_account_is_rejected(self, db, user, other_user, clock):
        theirs = accounts.create_account(db, other_user.id, "Theirs", "bank")
        goal = goals.create_goal(db, user.id, "Trip", 1000, clock)
        with pytest.raises(ValidationError):
            goals.add_funds(db, goal, 10, clock, account_id=theirs.id)

    def test_allocation_sum_invariant_over_history(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Car", 5000, clock, current_amount=500)
        for amount in ("100.10", "200.20", "300.30"):
            goals.add_funds(db, goal, amount, clock)
        goals.withdraw_funds(db, goal, "50.05", clock)

        assert goal.current_amount == Decimal("1050.55")
        assert_allocations_match(db, goal)


class TestDerived:
    def test_progress_remaining_days(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 400, clock, deadline=date(2026, 11, 17))
        goals.add_funds(db, goal, 100, clock)

        assert goals.goal_progress(goal) == 25.0
        assert goals.goal_remaining(goal) == Decimal("300.00")
        assert goals.goal_days_remaining(goal, clock) == 30

    def test_overfunded_goal_caps_progress_and_remaining(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 100, clock)
        goals.add_funds(db, goal, 150, clock)

        assert goals.goal_progress(goal) == 100.0
        assert goals.goal_remaining(goal) == Decimal("0.00")

    def test_raising_target_reopens_goal(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 100, clock)
        goals.add_funds(db, goal, 100, clock)
        assert goal.is_completed is True

        goals.update_goal(db, goal, {"target_amount": 200})
        assert goal.is_completed is False

    def test_current_amount_cannot_be_edited_directly(self, db, user, clock):
        goal = goals.create_goal(db, user.id, "Trip", 100, clock)
        with pytest.raises(ValidationError):
            goals.update_goal(db, goal, {"current_amount": 50})


def test_summary_excludes_completed_by_default(db, user, clock):
    done = goals.create_goal(db, user.id, "Done", 100, clock)
    goals.add_funds(db, done, 100, clock)
    goals.create_goal(db, user.id, "Open", 300, clock, current_amount=150)

    summary = goals.get_goals_summary(db, user.id, clock)
    assert [g["name"] for g in summary["goals"]] == ["Open"]
    assert summary["total_target"] == Decimal("300.00")
    assert summary["total_saved"] == Decimal("150.00")
    assert summary["overall_progress"] == 50.0

    everything = goals.get_goals_summary(db, user.id, clock, include_completed=True)
    assert len(everything["goals"]) == 2


def test_get_goal_is_owner_scoped(db, user, other_user, clock):
    goal = goals.create_goal(db, user.id, "Trip", 100, clock)
    with pytest.raises(NotFoundError):
        goals.get_goal(db, other_user.id, goal.id)


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (date(2026, 10, 18), date(2027, 4, 18), 6),
        (date(2026, 10, 18), date(2027, 4, 17), 5),
        (date(2026, 10, 18), date(2026, 10, 30), 0),
        (date(2026, 10, 18), date(2026, 8, 18), -2),
    ],
)
def test_months_between(start, end, expected):
    assert months_between(start, end) == expected
