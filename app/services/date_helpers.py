# app/services/date_helpers.py
#
# Date Helper Functions
# Calendar-month ranges and period arithmetic used by budgets, goals and
# the dashboard.

from datetime import date

from app.errors import ValidationError


# ---- Month periods ----

MIN_YEAR = 2000
MAX_YEAR = 2100


def validate_period(month: int, year: int) -> tuple[int, int]:
    try:
        month = int(month)
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError("month and year must be integers.")
    if not (1 <= month <= 12):
        raise ValidationError(f"Invalid month: {month}")
    if not (MIN_YEAR <= year <= MAX_YEAR):
        raise ValidationError(f"Invalid year: {year}")
    return month, year


def get_month_range(month: int, year: int) -> tuple[date, date]:
    """
    Returns (start_date, end_date_exclusive) for the calendar month,
    so callers can filter with start <= d < end.
    """
    start_date = date(year, month, 1)
    if month == 12:
        end_date_exclusive = date(year + 1, 1, 1)
    else:
        end_date_exclusive = date(year, month + 1, 1)
    return start_date, end_date_exclusive


def next_period(month: int, year: int) -> tuple[int, int]:
    # December rolls over into January of the following year
    if month == 12:
        return 1, year + 1
    return month + 1, year


def previous_period(month: int, year: int) -> tuple[int, int]:
    if month == 1:
        return 12, year - 1
    return month - 1, year


# ---- Distances ----

def months_between(start: date, end: date) -> int:
    """
    Whole calendar months from start to end (negative if end is earlier).
    A month only counts once its day-of-month has been reached.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def days_between(start: date, end: date) -> int:
    return (end - start).days
