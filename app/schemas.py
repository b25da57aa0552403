# app/schemas.py
# Role: Pydantic request/response bodies for the JSON API.

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.services.date_helpers import MAX_YEAR, MIN_YEAR

AccountType = Literal["bank", "ewallet", "cash", "credit_card"]
CategoryType = Literal["income", "expense"]
TransactionType = Literal["income", "expense", "transfer"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Accounts
# -------------------------------------------------------------------

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: AccountType
    balance: Decimal = Decimal("0")
    icon: str | None = None
    color: str | None = Field(None, max_length=50)


class AccountUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    type: AccountType | None = None
    icon: str | None = None
    color: str | None = Field(None, max_length=50)


class AccountOut(ORMModel):
    id: int
    name: str
    type: str
    balance: Decimal
    opening_balance: Decimal
    icon: str | None
    color: str | None
    is_active: bool


class AccountsSummaryOut(BaseModel):
    accounts: list[AccountOut]
    total_balance: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal


class ReconcileOut(BaseModel):
    account: AccountOut
    stored_balance: Decimal
    ledger_balance: Decimal


# -------------------------------------------------------------------
# Categories
# -------------------------------------------------------------------

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: CategoryType
    icon: str | None = None
    color: str | None = Field(None, max_length=50)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    icon: str | None = None
    color: str | None = Field(None, max_length=50)


class CategoryOut(ORMModel):
    id: int
    name: str
    type: str
    icon: str | None
    color: str | None
    is_active: bool


# -------------------------------------------------------------------
# Transactions
# -------------------------------------------------------------------

class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., gt=0)
    description: str | None = Field(None, max_length=255)
    # income/expense
    account_id: int | None = None
    category_id: int | None = None
    # transfer
    from_account_id: int | None = None
    to_account_id: int | None = None
    transaction_date: date
    notes: str | None = None


class TransactionUpdate(BaseModel):
    amount: Decimal | None = Field(None, gt=0)
    description: str | None = Field(None, max_length=255)
    account_id: int | None = None
    to_account_id: int | None = None
    category_id: int | None = None
    transaction_date: date | None = None
    notes: str | None = None


class TransactionOut(ORMModel):
    id: int
    type: str
    amount: Decimal
    account_id: int
    to_account_id: int | None
    category_id: int | None
    description: str
    notes: str | None
    transaction_date: date


class MonthlySummaryOut(BaseModel):
    month: int
    year: int
    income: Decimal
    expenses: Decimal
    net: Decimal


# -------------------------------------------------------------------
# Budgets
# -------------------------------------------------------------------

class BudgetCreate(BaseModel):
    category_id: int
    amount: Decimal = Field(..., ge=0)
    month: int | None = Field(None, ge=1, le=12)
    year: int | None = Field(None, ge=MIN_YEAR, le=MAX_YEAR)


class BudgetUpdate(BaseModel):
    amount: Decimal = Field(..., ge=0)


class BudgetCopy(BaseModel):
    month: int | None = Field(None, ge=1, le=12)
    year: int | None = Field(None, ge=MIN_YEAR, le=MAX_YEAR)


class BudgetOut(ORMModel):
    id: int
    category_id: int
    amount: Decimal
    month: int
    year: int


class BudgetDetailOut(BaseModel):
    budget: BudgetOut
    spent: Decimal
    remaining: Decimal
    progress: float
    is_over_budget: bool


# -------------------------------------------------------------------
# Goals
# -------------------------------------------------------------------

class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal | None = Field(None, ge=0)
    deadline: date | None = None
    monthly_target: Decimal | None = Field(None, ge=0)
    icon: str | None = Field(None, max_length=50)
    color: str | None = Field(None, max_length=50)
    account_id: int | None = None


class GoalUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    target_amount: Decimal | None = Field(None, gt=0)
    deadline: date | None = None
    monthly_target: Decimal | None = Field(None, ge=0)
    icon: str | None = Field(None, max_length=50)
    color: str | None = Field(None, max_length=50)
    account_id: int | None = None


class FundsRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    account_id: int | None = None
    notes: str | None = Field(None, max_length=255)
    allocation_date: date | None = None


class AllocationOut(ORMModel):
    id: int
    goal_id: int
    account_id: int | None
    amount: Decimal
    notes: str | None
    allocation_date: date


class GoalOut(BaseModel):
    id: int
    name: str
    icon: str | None
    color: str | None
    account_id: int | None
    target_amount: Decimal
    current_amount: Decimal
    remaining: Decimal
    progress: float
    deadline: date | None
    days_remaining: int | None
    monthly_target: Decimal | None
    is_completed: bool


class GoalDetailOut(BaseModel):
    goal: GoalOut
    allocations: list[AllocationOut]


class FundsOut(BaseModel):
    message: str
    allocation: AllocationOut
    goal: GoalOut
