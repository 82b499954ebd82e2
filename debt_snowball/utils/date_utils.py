"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import Optional


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of short months"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_months_or_none(from_date: date, months: int) -> Optional[date]:
    """add_months, or None when the result falls outside the representable date range"""
    try:
        return add_months(from_date, months)
    except (ValueError, OverflowError):
        return None


def add_years(from_date: date, years: int) -> date:
    """Shift a date by whole years (Feb 29 falls back to Feb 28)"""
    return add_months(from_date, years * 12)


def days_from(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def is_reasonable_statement_date(value: date, today: Optional[date] = None) -> bool:
    """Statement dates must fall between five years ago and one year ahead"""
    today = today or date.today()
    return add_years(today, -5) <= value <= add_years(today, 1)
