# app/errors.py
# Role: Error taxonomy shared by the ledger services and the HTTP layer.

"""
Ledger errors.

- ValidationError: bad or missing input, raised before anything is mutated.
- NotFoundError: entity absent or owned by someone else (never "forbidden").
- ConsistencyError: the store is not in the state the engine relies on;
  aborts the whole unit of work.
"""


class LedgerError(Exception):
    """Base class for errors raised by the ledger services."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    status_code = 422


class NotFoundError(LedgerError):
    status_code = 404


class ConsistencyError(LedgerError):
    status_code = 409
