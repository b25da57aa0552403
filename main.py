# main.py
# Role: Application entry point for the finance ledger.
#       Configures logging, creates database tables, maps ledger errors
#       to HTTP responses, and registers all route modules.

"""
Main FastAPI app for the personal finance ledger.

Here we only:
- configure logging
- create the FastAPI app
- create DB tables
- translate ledger errors into JSON responses
- include route modules
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from db import Base, engine
from app.errors import ConsistencyError, LedgerError
from app.routes_root import router as root_router
from app.routes_accounts import router as accounts_router
from app.routes_categories import router as categories_router
from app.routes_transactions import router as transactions_router
from app.routes_budgets import router as budgets_router
from app.routes_goals import router as goals_router
from app.routes_dashboard import router as dashboard_router


# -------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finance_ledger")


# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

# Create database tables (only if they don't exist yet).
# This is safe to run on startup for SQLite and development usage.
Base.metadata.create_all(bind=engine)

# FastAPI application instance
app = FastAPI(title="Finance Ledger")


# -------------------------------------------------------------------
# Error handling
# -------------------------------------------------------------------

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    # Validation and not-found are normal client outcomes; consistency is not
    if isinstance(exc, ConsistencyError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# -------------------------------------------------------------------
# Include routers
# -------------------------------------------------------------------

# Health / landing
app.include_router(root_router)

# Accounts, balances, reconciliation
app.include_router(accounts_router)

# Income/expense categories
app.include_router(categories_router)

# Transactions and their balance effects
app.include_router(transactions_router)

# Monthly budgets
app.include_router(budgets_router)

# Savings goals and allocations
app.include_router(goals_router)

# Dashboard (monthly overview, comparison)
app.include_router(dashboard_router)
