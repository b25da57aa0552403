# app/deps.py
# Role: Shared request-level dependencies.
#       Provides the SQLAlchemy session, the calling user (owner scope for
#       every query) and the clock injected into date-dependent operations.

"""
Shared dependencies for the finance ledger API.
"""

from typing import Generator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from db import SessionLocal
from app.clock import Clock, SystemClock
from models import User

# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# Owner scope
# -------------------------------------------------------------------

def get_current_user(
    x_user_id: int | None = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the caller from the X-User-Id header.

    Authentication happens in front of this service; by the time a request
    gets here the header is trusted.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")

    user = db.get(User, x_user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# -------------------------------------------------------------------
# Clock
# -------------------------------------------------------------------

_SYSTEM_CLOCK = SystemClock()


def get_clock() -> Clock:
    """Overridden in tests with a FixedClock."""
    return _SYSTEM_CLOCK
