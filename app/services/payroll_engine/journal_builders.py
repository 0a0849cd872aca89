"""
Payroll Journal Engine - Journal Builders

One builder per transaction type. Each produces the ledger lines for its
journal and hands them to the assembler for validation.

    employee      salary journal for one employee
    employer_ni   employer NI across the batch
    pensions      pension provider bill
    shop_payroll  recharge of shop staff costs in the enterprises ledger
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from app.schemas.payroll import (
    AllocationRule,
    JournalEntry,
    LineItem,
    Payslip,
    PayrollJournalEntry,
    TransactionType,
)
from app.services.payroll_engine.allocation import (
    CostStream,
    calculate_total,
    employer_ni_allocated_costs,
    pension_allocated_costs,
)
from app.services.payroll_engine.journal_assembler import assemble, journal_balance
from app.services.payroll_engine.lookup import PayrollLookup, default_lookup
from app.utils.money import ZERO

logger = logging.getLogger(__name__)


def _admin_line(lookup: PayrollLookup, account_key: str, description_key: str, amount,
                employee_name: Optional[str] = None, payroll_number: Optional[int] = None) -> LineItem:
    return LineItem(
        account_id=lookup.charity_account(account_key),
        class_id=lookup.class_id("ADMIN_CLASS"),
        amount=amount,
        description=lookup.description(description_key),
        employee_name=employee_name,
        payroll_number=payroll_number,
    )


def _keep_auew_or(line: LineItem, lookup: PayrollLookup, default_account_key: str) -> LineItem:
    """Costs allocated to AUEW stay on the AUEW account, everything else goes to the default."""
    auew = lookup.charity_account("AUEW_ACCOUNT")
    account_id = auew if line.account_id == auew else lookup.charity_account(default_account_key)
    return line.model_copy(update={"account_id": account_id})


# ===========================================
# EMPLOYEE SALARY JOURNAL
# ===========================================

def build_employee_journal(
    entry: PayrollJournalEntry,
    *,
    txn_date: date,
    doc_number: str,
    lookup: Optional[PayrollLookup] = None,
) -> JournalEntry:
    """
    Salary journal for one employee.

    Allocated gross pay is debited per class; PAYE, NI, salary sacrifice,
    pension, other deductions, student loan and net pay are credited on the
    admin class. Balances at zero.
    """
    lookup = lookup or default_lookup()
    name = entry.employee_name
    number = entry.payroll_number

    gross_lines = [_keep_auew_or(line, lookup, "STAFF_SALARIES_ACCOUNT") for line in entry.total_pay]

    fixed_lines = [
        _admin_line(lookup, "TAX_ACCOUNT", "PAYE", entry.paye, name, number),
        _admin_line(lookup, "TAX_ACCOUNT", "EMPLOYEE_NI", entry.employee_ni, name, number),
        _admin_line(lookup, "SALARY_SACRIFICE_ACCOUNT", "SALARY_SACRIFICE", entry.salary_sacrifice, name, number),
        _admin_line(lookup, "EMPLOYEE_PENSION_CONTRIB_ACCOUNT", "EMPLOYEE_PENSION_CONT", entry.employee_pension,
                    name, number),
        _admin_line(lookup, "OTHER_DEDUCTIONS_ACCOUNT", "OTHER_DEDUCTIONS", entry.other_deductions, name, number),
        _admin_line(lookup, "TAX_ACCOUNT", "STUDENT_LOAN", entry.student_loan, name, number),
        _admin_line(lookup, "NET_PAY_ACCOUNT", "NET_PAY", entry.net_pay, name, number),
    ]

    return assemble(
        {CostStream.GROSS_PAY.value: gross_lines},
        fixed_lines,
        txn_date=txn_date,
        doc_number=doc_number,
        description=name,
        transaction_type=TransactionType.EMPLOYEE,
        lookup=lookup,
    )


# ===========================================
# EMPLOYER NI JOURNAL
# ===========================================

def build_employer_ni_journal(
    payslips: Sequence[Payslip],
    rules: Sequence[AllocationRule],
    *,
    txn_date: date,
    doc_number: str,
    lookup: Optional[PayrollLookup] = None,
) -> JournalEntry:
    """Employer NI debited per class, credited in total to the tax account."""
    lookup = lookup or default_lookup()

    ni_lines = [
        line.model_copy(update={"account_id": lookup.ni_account_for_employee(line.is_shop_employee)})
        for line in employer_ni_allocated_costs(payslips, rules, lookup)
    ]

    allocated_total = journal_balance(ni_lines)
    payslip_total = calculate_total(payslips, CostStream.EMPLOYER_NI)
    if allocated_total != payslip_total:
        logger.warning(
            f"{doc_number}: employer NI allocated {allocated_total} "
            f"of {payslip_total} on payslips"
        )

    total_line = LineItem(
        account_id=lookup.charity_account("TAX_ACCOUNT"),
        class_id=lookup.class_id("ADMIN_CLASS"),
        amount=-allocated_total,
        description=f"Total of {lookup.description('EMPLOYER_NI')}",
    )

    return assemble(
        {CostStream.EMPLOYER_NI.value: ni_lines},
        [total_line],
        txn_date=txn_date,
        doc_number=doc_number,
        description=lookup.description("EMPLOYER_NI"),
        transaction_type=TransactionType.EMPLOYER_NI,
        lookup=lookup,
    )


# ===========================================
# PENSION BILL
# ===========================================

def build_pension_bill(
    payslips: Sequence[Payslip],
    rules: Sequence[AllocationRule],
    *,
    txn_date: date,
    doc_number: str,
    lookup: Optional[PayrollLookup] = None,
) -> JournalEntry:
    """
    Bill from the pension provider.

    Salary sacrifice and employee contributions are debited as monthly
    totals; employer contributions are debited per class. The lines must add
    up to the bill total taken from the payslips.
    """
    lookup = lookup or default_lookup()

    salary_sacrifice_total = calculate_total(payslips, lambda p: p.salary_sacrifice)
    employee_pension_total = calculate_total(payslips, lambda p: p.employee_pension)
    employer_pension_total = calculate_total(payslips, CostStream.EMPLOYER_PENSION)
    bill_total = salary_sacrifice_total + employee_pension_total + employer_pension_total

    fixed_lines = [
        _admin_line(lookup, "SALARY_SACRIFICE_ACCOUNT", "SALARY_SACRIFICE_TOTAL", salary_sacrifice_total),
        _admin_line(lookup, "EMPLOYEE_PENSION_CONTRIB_ACCOUNT", "EMPLOYEE_PENSION_TOTAL", employee_pension_total),
    ]

    pension_lines = [
        _keep_auew_or(line, lookup, "PENSION_COSTS_ACCOUNT")
        for line in pension_allocated_costs(payslips, rules, lookup)
    ]

    return assemble(
        {CostStream.EMPLOYER_PENSION.value: pension_lines},
        fixed_lines,
        lambda _stream, line: line.employee_name or line.description,
        txn_date=txn_date,
        doc_number=doc_number,
        description=f"Pension bill, vendor {lookup.settings.pension_vendor_id}",
        transaction_type=TransactionType.PENSIONS,
        expected_balance=bill_total,
        lookup=lookup,
    )


# ===========================================
# SHOP PAYROLL JOURNAL
# ===========================================

_SHOP_STREAMS = (
    (CostStream.GROSS_PAY, "AUEW_SALARIES_ACCOUNT", "GROSS_SALARY"),
    (CostStream.EMPLOYER_NI, "AUEW_NI_ACCOUNT", "EMPLOYER_NI"),
    (CostStream.EMPLOYER_PENSION, "AUEW_PENSIONS_ACCOUNT", "EMPLOYER_PENSION_CONT"),
)


def build_shop_journal(
    payslips: Sequence[Payslip],
    *,
    txn_date: date,
    doc_number: str,
    lookup: Optional[PayrollLookup] = None,
) -> JournalEntry:
    """
    Shop staff costs in the enterprises ledger.

    Each non-zero cost of each shop payslip is debited to its expense
    account and credited to the inter-company account, on the shop class.
    """
    lookup = lookup or default_lookup()
    shop_class = lookup.class_id("HARROW_ROAD_CLASS")
    interco = lookup.enterprises_account("AUKW_INTERCO_ACCOUNT")

    lines: List[LineItem] = []
    for payslip in payslips:
        for stream, account_key, description_key in _SHOP_STREAMS:
            amount = stream.select(payslip)
            if amount == ZERO:
                continue
            common = dict(
                class_id=shop_class,
                description=lookup.description(description_key),
                employee_name=payslip.employee_name,
                payroll_number=payslip.payroll_number,
                quickbooks_id=payslip.quickbooks_id,
                is_shop_employee=True,
            )
            lines.append(LineItem(account_id=lookup.enterprises_account(account_key), amount=amount, **common))
            lines.append(LineItem(account_id=interco, amount=-amount, **common))

    return assemble(
        {},
        lines,
        txn_date=txn_date,
        doc_number=doc_number,
        description="Shop payroll recharge",
        transaction_type=TransactionType.SHOP_PAYROLL,
        lookup=lookup,
    )
