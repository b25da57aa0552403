# models.py
# Role: SQLAlchemy ORM models for the finance ledger domain.
#       Users own accounts, categories, transactions, budgets and goals;
#       goals keep an append-only history of allocations.

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from db import Base

ACCOUNT_TYPES = ("bank", "ewallet", "cash", "credit_card")
CATEGORY_TYPES = ("income", "expense")
TRANSACTION_TYPES = ("income", "expense", "transfer")

# Decimal(15, 2) money column
Money = Numeric(15, 2, asdecimal=True)


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class User(TimestampMixin, Base):
    """Owner of every other row. Authentication lives outside this service."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)


class Account(TimestampMixin, Base):
    """
    A place money lives (bank, e-wallet, cash, credit card).

    `balance` is a running total maintained by the balance engine:
    opening_balance plus the signed effect of every transaction touching it.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "type IN ('bank','ewallet','cash','credit_card')", name="ck_account_type"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String(20), nullable=False)

    # Balance given at creation; reconciliation starts from here
    opening_balance = Column(Money, nullable=False, default=0)
    balance = Column(Money, nullable=False, default=0)

    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Category(TimestampMixin, Base):
    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("type IN ('income','expense')", name="ck_category_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String(10), nullable=False)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Transaction(TimestampMixin, Base):
    """
    A single income, expense or transfer.

    The amount is always positive; its sign comes from the type and, for
    transfers, from the side (account_id pays, to_account_id receives).
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        CheckConstraint(
            "type IN ('income','expense','transfer')", name="ck_transaction_type"
        ),
        Index("ix_transactions_user_date", "user_id", "transaction_date"),
        Index("ix_transactions_user_type", "user_id", "type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    type = Column(String(10), nullable=False)
    amount = Column(Money, nullable=False)

    # Source account for every type
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    # Destination account, transfers only
    to_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True)
    # Income/expense only
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    description = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    transaction_date = Column(Date, nullable=False)

    account = relationship("Account", foreign_keys=[account_id])
    to_account = relationship("Account", foreign_keys=[to_account_id])
    category = relationship("Category")


class Budget(TimestampMixin, Base):
    """Monthly spending limit for one expense category. Spend is never stored."""

    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "month", "year", name="uq_budget_period"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_budget_month"),
        CheckConstraint("amount >= 0", name="ck_budget_amount"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)

    amount = Column(Money, nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    category = relationship("Category")


class Goal(TimestampMixin, Base):
    """
    A savings target. current_amount only moves through allocations
    (see app/services/goals.py).
    """

    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    name = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)

    target_amount = Column(Money, nullable=False)
    current_amount = Column(Money, nullable=False, default=0)
    deadline = Column(Date, nullable=True)
    # Suggested monthly contribution
    monthly_target = Column(Money, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)

    account = relationship("Account")
    allocations = relationship(
        "GoalAllocation",
        back_populates="goal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class GoalAllocation(TimestampMixin, Base):
    """One funding (positive) or withdrawal (negative) event. Never updated."""

    __tablename__ = "goal_allocations"
    __table_args__ = (
        Index("ix_goal_allocations_user_date", "user_id", "allocation_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    amount = Column(Money, nullable=False)
    notes = Column(Text, nullable=True)
    allocation_date = Column(Date, nullable=False)

    goal = relationship("Goal", back_populates="allocations")
    account = relationship("Account")
