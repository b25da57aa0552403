# db.py
# Role: Database bootstrap for the finance ledger.
#       Defines the SQLAlchemy engine, session factory, declarative Base,
#       and the atomic() unit-of-work helper used by every financial mutation.

"""
Database setup for the finance ledger.

- Reads DATABASE_URL from the environment (a .env file is honoured).
- Defaults to a SQLite database at: <project_root>/database/finance.db
- Turns on foreign key enforcement for SQLite connections.
"""

import os
from contextlib import contextmanager
from typing import Iterator

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv()

# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Folder for the default SQLite DB
DB_DIR = os.path.join(BASE_DIR, "database")
DB_PATH = os.path.join(DB_DIR, "finance.db")

# SQLAlchemy connection URL
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


def build_engine(url: str):
    """
    Create an engine for the given URL.

    SQLite needs check_same_thread=False for FastAPI (threaded request handling);
    in-memory SQLite additionally shares one connection so every session sees
    the same database.
    """
    kwargs = {"echo": _env_truthy("SQL_ECHO")}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        elif url == f"sqlite:///{DB_PATH}":
            os.makedirs(DB_DIR, exist_ok=True)

    new_engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    return new_engine


engine = build_engine(DATABASE_URL)

# Standard session factory used via dependency injection (see app/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    One unit of work: commit when the block finishes, roll back and re-raise
    on any error so a balance/allocation side effect never outlives its row.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
