"""
Tests for the balance engine: effect computation, apply/reverse, replace.
"""

from decimal import Decimal

import pytest

from app.errors import ConsistencyError
from app.services.balance_engine import (
    Effect,
    Leg,
    apply_effect,
    compute_effect,
    replace_effect,
    reverse_effect,
)


class TestComputeEffect:
    def test_income_credits_account(self):
        effect = compute_effect("income", Decimal("50"), 1)
        assert effect.legs == (Leg(1, Decimal("50.00")),)

    def test_expense_debits_account(self):
        effect = compute_effect("expense", "12.345", 1)
        assert effect.legs == (Leg(1, Decimal("-12.35")),)

    def test_transfer_moves_between_accounts(self):
        effect = compute_effect("transfer", Decimal("50"), 1, 2)
        assert effect.deltas() == {1: Decimal("-50.00"), 2: Decimal("50.00")}

    def test_transfer_without_destination_only_has_source_leg(self):
        effect = compute_effect("transfer", Decimal("50"), 1, None)
        assert effect.deltas() == {1: Decimal("-50.00")}

    def test_unknown_type_is_a_consistency_error(self):
        with pytest.raises(ConsistencyError):
            compute_effect("refund", Decimal("1"), 1)

    def test_inverse_negates_every_leg(self):
        effect = compute_effect("transfer", Decimal("5"), 1, 2)
        assert effect.inverse().deltas() == {1: Decimal("5.00"), 2: Decimal("-5.00")}


class TestApplyReverse:
    def test_apply_then_reverse_restores_balances(self, db, bank, wallet):
        effect = compute_effect("transfer", Decimal("123.45"), bank.id, wallet.id)

        apply_effect(db, effect)
        assert bank.balance == Decimal("876.55")
        assert wallet.balance == Decimal("223.45")

        reverse_effect(db, effect)
        assert bank.balance == Decimal("1000.00")
        assert wallet.balance == Decimal("100.00")

    def test_replace_effect_nets_old_and_new(self, db, bank):
        old = compute_effect("expense", Decimal("200"), bank.id)
        apply_effect(db, old)
        assert bank.balance == Decimal("800.00")

        replace_effect(db, old, compute_effect("expense", Decimal("150"), bank.id))
        assert bank.balance == Decimal("850.00")

    def test_replace_with_identical_effect_changes_nothing(self, db, bank):
        effect = compute_effect("income", Decimal("10"), bank.id)
        apply_effect(db, effect)

        replace_effect(db, effect, effect)
        assert bank.balance == Decimal("1010.00")

    def test_replace_can_move_effect_to_another_account(self, db, bank, wallet):
        old = compute_effect("expense", Decimal("40"), bank.id)
        apply_effect(db, old)

        replace_effect(db, old, compute_effect("expense", Decimal("40"), wallet.id))
        assert bank.balance == Decimal("1000.00")
        assert wallet.balance == Decimal("60.00")

    def test_missing_account_fails_loudly(self, db, bank):
        with pytest.raises(ConsistencyError):
            apply_effect(db, Effect((Leg(bank.id, Decimal("1")), Leg(9999, Decimal("-1")))))
