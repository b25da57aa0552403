# app/services/balance_engine.py
"""
Balance engine.

A transaction's effect is the set of signed deltas it puts on account
balances:

    income    +amount on account
    expense   -amount on account
    transfer  -amount on account, +amount on to_account

Effects are computed from a snapshot of the transaction, so the effect that
was applied before an edit can still be reversed after the row has changed.
None of these functions commit; callers run them inside db.atomic().
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from app.errors import ConsistencyError
from app.services.money import to_money
from models import Account, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leg:
    account_id: int
    delta: Decimal


@dataclass(frozen=True)
class Effect:
    legs: tuple[Leg, ...] = ()

    def inverse(self) -> "Effect":
        return Effect(tuple(Leg(leg.account_id, -leg.delta) for leg in self.legs))

    def deltas(self) -> dict[int, Decimal]:
        """Net delta per account (a leg list may touch one account twice)."""
        out: dict[int, Decimal] = {}
        for leg in self.legs:
            out[leg.account_id] = out.get(leg.account_id, Decimal("0")) + leg.delta
        return out


NO_EFFECT = Effect()


def compute_effect(
    type_: str,
    amount,
    account_id: int,
    to_account_id: int | None = None,
) -> Effect:
    """Pure: signed deltas for a transaction of this shape."""
    amount = to_money(amount)

    match type_:
        case "income":
            return Effect((Leg(account_id, amount),))
        case "expense":
            return Effect((Leg(account_id, -amount),))
        case "transfer":
            legs = [Leg(account_id, -amount)]
            # Destination missing only if the row is already inconsistent
            if to_account_id is not None:
                legs.append(Leg(to_account_id, amount))
            return Effect(tuple(legs))
        case _:
            raise ConsistencyError(f"Unknown transaction type: {type_!r}")


def effect_of(tx: Transaction) -> Effect:
    return compute_effect(tx.type, tx.amount, tx.account_id, tx.to_account_id)


def _lock_account(db: Session, account_id: int) -> Account:
    # FOR UPDATE serializes concurrent increments on databases that support it
    account = (
        db.query(Account)
        .filter(Account.id == account_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if account is None:
        raise ConsistencyError(f"Account {account_id} referenced by a transaction no longer exists.")
    return account


def apply_effect(db: Session, effect: Effect) -> None:
    """Add every leg's delta to its account balance and flush."""
    for account_id, delta in effect.deltas().items():
        if delta == 0:
            continue
        account = _lock_account(db, account_id)
        account.balance = to_money(account.balance) + delta
        logger.debug("account %s balance %+s -> %s", account_id, delta, account.balance)
    db.flush()


def reverse_effect(db: Session, effect: Effect) -> None:
    """Apply the algebraic inverse of a previously applied effect."""
    apply_effect(db, effect.inverse())


def replace_effect(db: Session, old: Effect, new: Effect) -> None:
    """
    Reverse `old` and apply `new`.

    Always runs both phases; an edit that leaves the money untouched nets
    out to zero per account.
    """
    reverse_effect(db, old)
    apply_effect(db, new)
