"""
Payroll Journal Engine - Posting State

Tracks which cost streams of each payslip are already in the ledger, so
that a payroll run can be re-submitted without posting anything twice.
Payslips are immutable; every change returns new copies.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from app.schemas.payroll import Payslip, TransactionType
from app.services.payroll_engine.lookup import PayrollLookup, default_lookup
from app.utils.error_handling import InvalidTransactionTypeException
from app.utils.money import to_decimal

POSTED_FLAGS: Dict[TransactionType, str] = {
    TransactionType.EMPLOYEE: "salary_journal_posted",
    TransactionType.EMPLOYER_NI: "employer_ni_posted",
    TransactionType.PENSIONS: "pension_bill_posted",
    TransactionType.SHOP_PAYROLL: "shop_journal_posted",
}

# Payslip amounts that make up each transaction type
POSTED_AMOUNTS: Dict[TransactionType, Tuple[str, ...]] = {
    TransactionType.EMPLOYEE: (
        "total_pay", "paye", "employee_ni", "salary_sacrifice", "employee_pension",
        "other_deductions", "student_loan", "net_pay",
    ),
    TransactionType.EMPLOYER_NI: ("employer_ni",),
    TransactionType.PENSIONS: ("salary_sacrifice", "employee_pension", "employer_pension"),
    TransactionType.SHOP_PAYROLL: ("total_pay", "employer_ni", "employer_pension"),
}


def parse_transaction_type(value: Union[str, TransactionType]) -> TransactionType:
    """Validate a transaction type coming from outside the engine."""
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError:
        raise InvalidTransactionTypeException(value, [t.value for t in TransactionType]) from None


def is_posted(payslip: Payslip, transaction_type: Union[str, TransactionType]) -> bool:
    return getattr(payslip, POSTED_FLAGS[parse_transaction_type(transaction_type)])


def filter_unposted(payslips: Iterable[Payslip], transaction_type) -> List[Payslip]:
    """Payslips whose journal of this type has not been posted."""
    transaction_type = parse_transaction_type(transaction_type)
    return [p for p in payslips if not is_posted(p, transaction_type)]


def needs_posting(payslips: Iterable[Payslip], transaction_type) -> bool:
    return len(filter_unposted(payslips, transaction_type)) > 0


def mark_posted(
    payslips: Sequence[Payslip],
    transaction_type,
    payroll_numbers: Optional[Iterable[int]] = None,
) -> List[Payslip]:
    """
    Copies of the payslips with the posted flag for this type set.

    Only payslips whose payroll number is in payroll_numbers are changed
    when it is given; the rest are returned as they were.
    """
    flag = POSTED_FLAGS[parse_transaction_type(transaction_type)]
    selected = set(payroll_numbers) if payroll_numbers is not None else None

    updated = []
    for payslip in payslips:
        if selected is None or payslip.payroll_number in selected:
            payslip = payslip.model_copy(update={flag: True})
        updated.append(payslip)
    return updated


def reconcile_posted(
    payslips: Sequence[Payslip],
    ledger_payslips: Iterable[Payslip],
    transaction_type,
    lookup: Optional[PayrollLookup] = None,
) -> List[Payslip]:
    """
    Set the posted flag where the ledger already holds matching amounts.

    ledger_payslips are per-employee summaries read back from the ledger.
    A payslip counts as posted when every amount of the transaction type
    matches its ledger summary within the zero threshold.
    """
    lookup = lookup or default_lookup()
    transaction_type = parse_transaction_type(transaction_type)
    fields = POSTED_AMOUNTS[transaction_type]
    threshold = lookup.amount_zero_threshold
    in_ledger = {p.payroll_number: p for p in ledger_payslips}

    matched = []
    for payslip in payslips:
        ledger = in_ledger.get(payslip.payroll_number)
        if ledger is None:
            continue
        if all(
            abs(to_decimal(getattr(payslip, f)) - to_decimal(getattr(ledger, f))) <= threshold
            for f in fields
        ):
            matched.append(payslip.payroll_number)

    return mark_posted(payslips, transaction_type, matched)
