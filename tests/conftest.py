"""
Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite schema, one user and a clock frozen
at 2026-10-18 12:00.
"""

import os

# Must be set before db.py is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from db import Base, SessionLocal, engine
from app.clock import FixedClock
from app.deps import get_clock
from app.services import accounts, categories
from models import User

TODAY = date(2026, 10, 18)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 18, 12, 0))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db):
    u = User(name="Ana", email="ana@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def other_user(db):
    u = User(name="Ben", email="ben@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def bank(db, user):
    return accounts.create_account(db, user.id, "BDO Savings", "bank", balance=Decimal("1000"))


@pytest.fixture
def wallet(db, user):
    return accounts.create_account(db, user.id, "GCash", "ewallet", balance=Decimal("100"))


@pytest.fixture
def food(db, user):
    return categories.create_category(db, user.id, "Food & Dining", "expense")


@pytest.fixture
def salary(db, user):
    return categories.create_category(db, user.id, "Salary", "income")


@pytest.fixture
def client(db, user, clock):
    from main import app

    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app, headers={"X-User-Id": str(user.id)}) as c:
        yield c
    app.dependency_overrides.clear()
