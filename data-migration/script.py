"""
This script migrates normalized transaction history from monthly CSV tables
into the ledger database for one user and one account.

All source files are pre-cleaned and normalized (consistent headers, date format,
and numeric values) before import. The script validates required fields, removes
empty rows, and books every row through the transaction service so the account
balance ends up equal to its ledger (positive sums are income, negative sums
are expenses).

Purpose:
- Bring historical data into the ledger without hand-editing balances
- Serve as a one-time / repeatable migration step during development
"""


from __future__ import annotations

import argparse
import logging
from pathlib import Path
from datetime import datetime

import pandas as pd
from sqlalchemy.orm import Session

from db import SessionLocal, engine, Base
from app.services.transactions import ExpenseData, IncomeData, create_transaction
from app.services.money import to_money
from models import Account, Category


NORMALIZED_DIR = Path("data-migration/normalized")
UNCATEGORIZED = "Uncategorized"

logger = logging.getLogger("data_migration")


def _parse_date_ddmmyyyy(s: str):
    return datetime.strptime(str(s).strip(), "%d-%m-%Y").date()


def _none_if_nan(x):
    if pd.isna(x):
        return None
    s = str(x).strip()
    return None if s == "" or s.lower() == "nan" else s


def _category_id(session: Session, owner_id: int, name: str | None, type_: str, cache: dict) -> int:
    """Find-or-create a category by (name, type) for the owner."""
    name = name or UNCATEGORIZED
    key = (name.lower(), type_)
    if key in cache:
        return cache[key]

    category = (
        session.query(Category)
        .filter(Category.user_id == owner_id, Category.type == type_, Category.name == name)
        .one_or_none()
    )
    if category is None:
        category = Category(user_id=owner_id, name=name, type=type_, is_active=True)
        session.add(category)
        session.commit()

    cache[key] = category.id
    return category.id


def import_normalized_csvs_to_db(
    owner_id: int,
    account_id: int,
    folder: Path = NORMALIZED_DIR,
    session: Session | None = None,
) -> int:
    folder = Path(folder)
    csv_files = sorted(folder.glob("*.csv"))
    if not csv_files:
        raise FileNotFoundError(f"No CSV files found in: {folder.resolve()}")

    own_session = session is None
    if own_session:
        Base.metadata.create_all(bind=engine)
        session = SessionLocal()

    total_inserted = 0
    categories: dict = {}

    try:
        account = (
            session.query(Account)
            .filter(Account.id == account_id, Account.user_id == owner_id)
            .one_or_none()
        )
        if account is None:
            raise ValueError(f"Account {account_id} not found for user {owner_id}")

        for f in csv_files:
            df = pd.read_csv(f)

            # normalize headers
            df.columns = df.columns.str.strip().str.lower()

            # required
            required = {"date", "description", "sum"}
            missing = required - set(df.columns)
            if missing:
                raise ValueError(f"{f.name}: missing required columns: {sorted(missing)}")

            # optional
            if "category" not in df.columns:
                df["category"] = None
            if "notes" not in df.columns:
                df["notes"] = None

            # drop fully empty rows
            df = df.dropna(how="all").copy()

            # parse date (strict DD-MM-YYYY)
            df["date"] = df["date"].apply(_parse_date_ddmmyyyy)

            # parse sum (handle commas just in case)
            sum_clean = (
                df["sum"]
                .astype(str)
                .str.replace(" ", "", regex=False)
                .str.replace(",", ".", regex=False)
                .str.strip()
            )
            df["sum"] = pd.to_numeric(sum_clean, errors="raise")

            inserted = 0
            for row in df.itertuples(index=False):
                desc_val = _none_if_nan(getattr(row, "description"))
                raw_sum = getattr(row, "sum")
                if desc_val is None or pd.isna(raw_sum):
                    if desc_val is not None:
                        logger.warning("%s: skipping %r, sum is empty", f.name, desc_val)
                    continue

                amount = to_money(str(raw_sum))
                # zero rows carry no balance effect
                if amount == 0:
                    continue

                type_ = "income" if amount > 0 else "expense"
                payload_cls = IncomeData if type_ == "income" else ExpenseData
                create_transaction(
                    session,
                    owner_id,
                    payload_cls(
                        amount=abs(amount),
                        description=desc_val,
                        account_id=account_id,
                        category_id=_category_id(
                            session, owner_id, _none_if_nan(getattr(row, "category")), type_, categories
                        ),
                        transaction_date=getattr(row, "date"),
                        notes=_none_if_nan(getattr(row, "notes")),
                    ),
                )
                inserted += 1

            total_inserted += inserted
            logger.info("imported %d rows from %s", inserted, f.name)

        logger.info("done, total inserted: %d", total_inserted)
        return total_inserted

    except Exception:
        session.rollback()
        raise
    finally:
        if own_session:
            session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    parser = argparse.ArgumentParser(description="Import normalized CSV history into an account.")
    parser.add_argument("--user-id", type=int, required=True)
    parser.add_argument("--account-id", type=int, required=True)
    parser.add_argument("--folder", type=Path, default=NORMALIZED_DIR)
    args = parser.parse_args()

    import_normalized_csvs_to_db(args.user_id, args.account_id, args.folder)
