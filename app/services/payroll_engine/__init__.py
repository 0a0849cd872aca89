"""
Payroll Journal Engine - Core Package

Turns a payroll run into ledger-ready journals.

Modules:
- lookup: account/class/description keys and validation thresholds
- allocation: percentage split of payroll costs across classes
- journal_assembler: validated journal entries, salary journal inputs
- journal_builders: employee, employer NI, pension bill and shop journals
- posting_state: posted flags per transaction type
- doc_number: Payroll_YYYY_MM document numbers and pay dates
"""

from decimal import Decimal
from typing import List, Sequence

from app.schemas.payroll import AllocationRule, LineItem
from app.services.payroll_engine.lookup import PayrollLookup, default_lookup
from app.services.payroll_engine.allocation import (
    CostStream,
    allocate_stream,
    calculate_total,
    employer_ni_allocated_costs,
    gross_salary_allocated_costs,
    group_rules,
    pension_allocated_costs,
    shop_payslips,
    split,
    totals_by_class,
    validate_allocations,
)
from app.services.payroll_engine.journal_assembler import (
    assemble,
    employee_journal_entries,
    is_balanced,
    is_zero_amount,
    journal_balance,
)
from app.services.payroll_engine.journal_builders import (
    build_employee_journal,
    build_employer_ni_journal,
    build_pension_bill,
    build_shop_journal,
)
from app.services.payroll_engine.posting_state import (
    POSTED_FLAGS,
    filter_unposted,
    is_posted,
    mark_posted,
    needs_posting,
    parse_transaction_type,
    reconcile_posted,
)
from app.services.payroll_engine.doc_number import calculate_payroll_date, generate_doc_number


# ===========================================
# CONVENIENCE FUNCTIONS
# ===========================================

def split_amount(amount: Decimal, rules: Sequence[AllocationRule], description: str = "") -> List[LineItem]:
    """
    Split an amount across one employee's rules using the default settings.

    Example:
        split_amount(Decimal("1000"), rules)  # 33/33/34 -> 330.00, 330.00, 340.00
    """
    return split(amount, rules, default_lookup(), description=description)


__all__ = [
    "PayrollLookup",
    "default_lookup",
    "CostStream",
    "split",
    "split_amount",
    "allocate_stream",
    "group_rules",
    "gross_salary_allocated_costs",
    "employer_ni_allocated_costs",
    "pension_allocated_costs",
    "calculate_total",
    "totals_by_class",
    "validate_allocations",
    "shop_payslips",
    "assemble",
    "employee_journal_entries",
    "is_balanced",
    "is_zero_amount",
    "journal_balance",
    "build_employee_journal",
    "build_employer_ni_journal",
    "build_pension_bill",
    "build_shop_journal",
    "POSTED_FLAGS",
    "filter_unposted",
    "is_posted",
    "mark_posted",
    "needs_posting",
    "parse_transaction_type",
    "reconcile_posted",
    "generate_doc_number",
    "calculate_payroll_date",
]
