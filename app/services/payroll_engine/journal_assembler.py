"""
Payroll Journal Engine - Journal Assembler

Turns allocated cost-stream lines plus fixed lines into a validated
JournalEntry, and builds the per-employee salary journal inputs.

A journal is only returned if it is postable:
- lines below MIN_LINE_AMOUNT are dropped
- no more than MAX_JOURNAL_LINES lines
- at least one line left to post
- sum of lines equals the expected balance within BALANCE_TOLERANCE
- descriptions no longer than the ledger accepts
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Union

from app.schemas.payroll import (
    AllocationRule,
    LineItem,
    JournalEntry,
    Payslip,
    PayrollJournalEntry,
    TransactionType,
)
from app.services.payroll_engine.allocation import group_rules, split
from app.services.payroll_engine.lookup import PayrollLookup, default_lookup
from app.utils.error_handling import (
    EmptyJournalException,
    TooManyLinesException,
    UnbalancedJournalException,
)
from app.utils.money import ZERO, round_money, to_decimal

logger = logging.getLogger(__name__)

DescriptionFn = Callable[[str, LineItem], str]


# ===========================================
# BALANCE CHECKS
# ===========================================

def is_zero_amount(amount, lookup: Optional[PayrollLookup] = None) -> bool:
    """True when the amount is at or below the zero threshold."""
    lookup = lookup or default_lookup()
    return abs(to_decimal(amount)) <= lookup.amount_zero_threshold


def is_balanced(balance, lookup: Optional[PayrollLookup] = None) -> bool:
    """True when the discrepancy is strictly inside the balance tolerance."""
    lookup = lookup or default_lookup()
    return abs(to_decimal(balance)) < lookup.balance_tolerance


def journal_balance(amounts: Iterable[Union[LineItem, Decimal, int, float, str]]) -> Decimal:
    """Sum of line amounts (or raw numbers). Zero for a balanced journal."""
    total = ZERO
    for item in amounts:
        if isinstance(item, LineItem):
            total += item.amount
        else:
            total += to_decimal(item)
    return total


# ===========================================
# ASSEMBLY
# ===========================================

def assemble(
    streams: Mapping[str, Sequence[LineItem]],
    fixed_lines: Sequence[LineItem] = (),
    description_fn: Optional[DescriptionFn] = None,
    *,
    txn_date: date,
    doc_number: str,
    description: str = "",
    transaction_type: Optional[TransactionType] = None,
    expected_balance=ZERO,
    lookup: Optional[PayrollLookup] = None,
) -> JournalEntry:
    """
    Combine stream lines and fixed lines into one validated journal.

    Args:
        streams: Named groups of allocated lines, in the order they appear
        fixed_lines: Lines not produced by allocation (totals, deductions)
        description_fn: Optional relabelling of stream lines, called with
            (stream_name, line)
        expected_balance: What the lines should sum to; zero for a journal,
            the bill total for a bill

    Raises:
        EmptyJournalException: no line is large enough to post
        TooManyLinesException: more lines than the ledger accepts
        UnbalancedJournalException: lines do not sum to expected_balance
    """
    lookup = lookup or default_lookup()
    max_description = lookup.description_max_length

    lines: List[LineItem] = []
    for stream_name, stream_lines in streams.items():
        for line in stream_lines:
            if description_fn is not None:
                line = line.model_copy(update={"description": description_fn(stream_name, line)})
            lines.append(line)
    lines.extend(fixed_lines)
    lines = [
        line.model_copy(update={"description": line.description[:max_description]})
        if len(line.description) > max_description else line
        for line in lines
    ]

    min_amount = lookup.min_line_amount
    postable = [line for line in lines if abs(line.amount) >= min_amount]
    if len(postable) != len(lines):
        logger.debug(f"{doc_number}: dropped {len(lines) - len(postable)} lines below {min_amount}")

    if not postable:
        raise EmptyJournalException(doc_number=doc_number, dropped_lines=len(lines))

    if len(postable) > lookup.max_journal_lines:
        raise TooManyLinesException(len(postable), lookup.max_journal_lines, doc_number=doc_number)

    expected = to_decimal(expected_balance)
    total = journal_balance(postable)
    discrepancy = total - expected
    if not is_balanced(discrepancy, lookup):
        raise UnbalancedJournalException(
            discrepancy,
            lookup.balance_tolerance,
            doc_number=doc_number,
            details={"total": str(total), "expected_balance": str(expected)},
        )

    entry = JournalEntry(
        doc_number=doc_number,
        txn_date=txn_date,
        description=description[:max_description],
        transaction_type=transaction_type,
        lines=postable,
        balance=round_money(total),
        expected_balance=round_money(expected),
        realm_id=lookup.realm_id(transaction_type) if transaction_type else None,
    )
    logger.debug(f"Assembled {doc_number} with {entry.line_count} lines, total {entry.balance}")
    return entry


# ===========================================
# EMPLOYEE SALARY JOURNAL INPUTS
# ===========================================

def employee_journal_entries(
    payslips: Sequence[Payslip],
    rules: Sequence[AllocationRule],
    lookup: Optional[PayrollLookup] = None,
) -> List[PayrollJournalEntry]:
    """
    One salary journal input per payslip.

    Gross pay is split by the employee's rules. An employee without rules
    gets a single unallocated line on the default salaries account and
    admin class, flagged with allocated=False.
    """
    lookup = lookup or default_lookup()
    grouped = group_rules(rules)
    gross_description = lookup.description("GROSS_SALARY")

    entries: List[PayrollJournalEntry] = []
    for payslip in payslips:
        employee_rules = [r for r in grouped.get(payslip.payroll_number, []) if r.percentage != 0]

        if employee_rules:
            total_pay = split(
                payslip.total_pay,
                employee_rules,
                lookup,
                description=gross_description,
                employee_name=payslip.employee_name,
            )
            allocated = True
        else:
            logger.warning(
                f"No allocation rules for {payslip.employee_name} "
                f"(payroll number {payslip.payroll_number}); gross pay left unallocated"
            )
            total_pay = [LineItem(
                account_id=lookup.charity_account("STAFF_SALARIES_ACCOUNT"),
                class_id=lookup.class_id("ADMIN_CLASS"),
                amount=payslip.total_pay,
                description=gross_description,
                employee_name=payslip.employee_name,
                payroll_number=payslip.payroll_number,
                quickbooks_id=payslip.quickbooks_id,
                is_shop_employee=payslip.is_shop_employee,
            )]
            allocated = False

        entries.append(PayrollJournalEntry(
            payroll_number=payslip.payroll_number,
            employee_name=payslip.employee_name,
            quickbooks_id=payslip.quickbooks_id,
            allocated=allocated,
            total_pay=total_pay,
            # Deductions already negative
            paye=payslip.paye,
            employee_ni=payslip.employee_ni,
            student_loan=payslip.student_loan,
            other_deductions=payslip.other_deductions,
            # Supplied positive, credited on the journal
            salary_sacrifice=-payslip.salary_sacrifice,
            employee_pension=-payslip.employee_pension,
            net_pay=-payslip.net_pay,
        ))

    return entries
