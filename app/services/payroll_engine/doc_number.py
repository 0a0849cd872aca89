"""
Payroll Journal Engine - Document Numbers and Pay Dates

Every ledger transaction from a payroll run carries a document number of
the form Payroll_YYYY_MM plus an optional suffix, which is how a run's
transactions are found again in the ledger.
"""

from datetime import date, datetime
from typing import Optional, Union

from app.services.payroll_engine.lookup import PayrollLookup, default_lookup
from app.utils.error_handling import InvalidDateFormatException


def _parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidDateFormatException(value) from None


def generate_doc_number(
    pay_period_date: Union[str, date],
    suffix: str = "",
    lookup: Optional[PayrollLookup] = None,
) -> str:
    """
    Document number for a pay period.

    >>> generate_doc_number("2025-04-25")
    'Payroll_2025_04'

    The result is cut to the ledger's maximum document number length.
    """
    lookup = lookup or default_lookup()
    pay_date = _parse_date(pay_period_date)
    doc_number = f"{lookup.docnumber_prefix}{pay_date.year:04d}_{pay_date.month:02d}{suffix}"
    return doc_number[:lookup.docnumber_max_length]


def calculate_payroll_date(
    tax_year: str,
    fiscal_month: int,
    lookup: Optional[PayrollLookup] = None,
) -> date:
    """
    Pay date for a month of a tax year.

    Args:
        tax_year: e.g. "2024-2025"; the tax year runs April to March
        fiscal_month: 1 (April) to 12 (March)

    Returns:
        The pay day of that calendar month, e.g. ("2024-2025", 1) -> 2024-04-25
        and ("2024-2025", 10) -> 2025-01-25
    """
    lookup = lookup or default_lookup()
    settings = lookup.settings

    if fiscal_month not in settings.fiscal_months:
        raise InvalidDateFormatException(fiscal_month, expected_format="month 1-12", field="month")

    try:
        start_year = int(str(tax_year)[:4])
    except ValueError:
        raise InvalidDateFormatException(tax_year, expected_format="YYYY-YYYY", field="tax_year") from None

    calendar_month = settings.fiscal_months.index(fiscal_month) + 1
    year = start_year + 1 if fiscal_month >= settings.fiscal_months_next_year_threshold else start_year
    try:
        return date(year, calendar_month, settings.payroll_day_of_month)
    except ValueError:
        # Year 0 and years past 9999 have no calendar date
        raise InvalidDateFormatException(tax_year, expected_format="YYYY-YYYY", field="tax_year") from None
