"""
Payroll Journal Engine - Allocation

Splits payroll costs across the accounting classes an employee is
allocated to.

Splitting rules (per employee, rules taken in order):
- estimate = round(amount * percentage) / 100, to 2 decimal places
- never allocate more than is left (min for positive amounts, max for negative)
- when the estimate is within ALLOCATION_REMAINDER_THRESHOLD (1.00) of what
  is left, take everything that is left
- the last rule takes exactly what is left, so the lines sum to the amount
- 0% rules and zero amounts produce no line
"""

import logging
from collections import OrderedDict
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from app.schemas.payroll import AllocationRule, LineItem, Payslip
from app.services.payroll_engine.lookup import PayrollLookup, default_lookup
from app.utils.error_handling import AllocationPercentageException
from app.utils.money import ZERO, round_money, round_units, to_decimal

logger = logging.getLogger(__name__)

# Tolerance on the sum of one employee's percentages
PERCENTAGE_SUM_TOLERANCE = Decimal("0.5")


class CostStream(str, Enum):
    """Payslip amounts that are split by allocation rules."""
    GROSS_PAY = "gross_pay"
    EMPLOYER_NI = "employer_ni"
    EMPLOYER_PENSION = "employer_pension"

    def select(self, payslip: Payslip) -> Decimal:
        return getattr(payslip, _STREAM_FIELDS[self])

    @property
    def description_key(self) -> str:
        return _STREAM_DESCRIPTIONS[self]


_STREAM_FIELDS = {
    CostStream.GROSS_PAY: "total_pay",
    CostStream.EMPLOYER_NI: "employer_ni",
    CostStream.EMPLOYER_PENSION: "employer_pension",
}

_STREAM_DESCRIPTIONS = {
    CostStream.GROSS_PAY: "GROSS_SALARY",
    CostStream.EMPLOYER_NI: "EMPLOYER_NI",
    CostStream.EMPLOYER_PENSION: "EMPLOYER_PENSION_CONT",
}

Selector = Union[CostStream, Callable[[Payslip], Decimal]]


# ===========================================
# ALLOCATION SPLITTER
# ===========================================

def split(
    amount,
    rules: Sequence[AllocationRule],
    lookup: Optional[PayrollLookup] = None,
    description: str = "",
    employee_name: Optional[str] = None,
) -> List[LineItem]:
    """
    Split one amount across one employee's allocation rules.

    Args:
        amount: Amount to allocate, may be negative
        rules: Allocation rules for a single employee, in allocation order
        lookup: Thresholds; defaults to the process-wide settings
        description: Description put on every line
        employee_name: Overrides the name held on the rules

    Returns:
        One LineItem per rule that receives a non-zero amount. An empty
        rule list gives an empty result.
    """
    lookup = lookup or default_lookup()
    total = to_decimal(amount)
    snap_threshold = lookup.allocation_remainder_threshold

    active = [rule for rule in rules if rule.percentage != 0]
    lines: List[LineItem] = []
    allocated = ZERO

    for index, rule in enumerate(active):
        remainder = total - allocated

        if index == len(active) - 1:
            # Last rule takes whatever is left, so the lines always sum to the amount
            line_amount = round_money(remainder)
        else:
            estimate = round_money(round_units(total * rule.percentage) / 100)

            # Never allocate more than is left
            if total < 0:
                line_amount = max(estimate, remainder)
            else:
                line_amount = min(estimate, remainder)

            if abs(remainder - line_amount) < snap_threshold:
                line_amount = round_money(remainder)

        allocated += line_amount

        if line_amount == 0:
            continue

        lines.append(LineItem(
            account_id=rule.account_id,
            class_id=rule.class_id,
            class_name=rule.class_name,
            amount=line_amount,
            description=description,
            employee_name=employee_name if employee_name is not None else rule.employee_name,
            payroll_number=rule.payroll_number,
            quickbooks_id=rule.quickbooks_id,
            is_shop_employee=rule.is_shop_employee,
        ))

    percentage_sum = sum((r.percentage for r in active), ZERO)
    if active and percentage_sum != 100:
        logger.warning(
            f"Percentages for payroll number {active[0].payroll_number} sum to {percentage_sum}; "
            "the last class takes the remainder"
        )

    return lines


# ===========================================
# COST-STREAM AGGREGATOR
# ===========================================

def group_rules(rules: Iterable[AllocationRule]) -> "OrderedDict[int, List[AllocationRule]]":
    """Group rules by payroll number, keeping first-seen and in-group order."""
    grouped: "OrderedDict[int, List[AllocationRule]]" = OrderedDict()
    for rule in rules:
        grouped.setdefault(rule.payroll_number, []).append(rule)
    return grouped


def _selector_fn(selector: Selector) -> Callable[[Payslip], Decimal]:
    if isinstance(selector, CostStream):
        return selector.select
    return selector


def allocate_stream(
    payslips: Sequence[Payslip],
    rules: Sequence[AllocationRule],
    selector: Selector,
    lookup: Optional[PayrollLookup] = None,
) -> List[LineItem]:
    """
    Allocate one cost stream (gross pay, employer NI or employer pension)
    for a whole payslip batch.

    Output order is payslip order, then rule order within each payslip.
    Payslips with a zero amount, and employees with no rules, give no lines.
    """
    lookup = lookup or default_lookup()
    select = _selector_fn(selector)
    description = ""
    if isinstance(selector, CostStream):
        description = lookup.description(selector.description_key)

    grouped = group_rules(rules)
    lines: List[LineItem] = []

    for payslip in payslips:
        amount = to_decimal(select(payslip))
        if amount == 0:
            continue

        employee_rules = [r for r in grouped.get(payslip.payroll_number, []) if r.percentage != 0]
        if not employee_rules:
            logger.debug(
                f"No allocation rules for payroll number {payslip.payroll_number}; "
                f"{amount} left unallocated"
            )
            continue

        employee_lines = split(
            amount,
            employee_rules,
            lookup,
            description=description,
            employee_name=payslip.employee_name,
        )
        logger.debug(
            f"Allocated {amount} for payroll number {payslip.payroll_number} "
            f"across {len(employee_lines)} lines"
        )
        lines.extend(employee_lines)

    return lines


def gross_salary_allocated_costs(payslips, rules, lookup=None) -> List[LineItem]:
    return allocate_stream(payslips, rules, CostStream.GROSS_PAY, lookup)


def employer_ni_allocated_costs(payslips, rules, lookup=None) -> List[LineItem]:
    return allocate_stream(payslips, rules, CostStream.EMPLOYER_NI, lookup)


def pension_allocated_costs(payslips, rules, lookup=None) -> List[LineItem]:
    return allocate_stream(payslips, rules, CostStream.EMPLOYER_PENSION, lookup)


# ===========================================
# RULE VALIDATION & SUMMARIES
# ===========================================

def validate_allocations(rules: Sequence[AllocationRule]) -> bool:
    """
    Check allocation rules before they are saved to the rules store.

    Every employee needs at least one rule, each percentage in [0, 100],
    and percentages summing to 100 (within PERCENTAGE_SUM_TOLERANCE).
    """
    if not rules:
        raise AllocationPercentageException("At least one allocation is required")

    for payroll_number, employee_rules in group_rules(rules).items():
        for rule in employee_rules:
            if rule.percentage < 0 or rule.percentage > 100:
                raise AllocationPercentageException(
                    f"Allocation percentage must be between 0 and 100. Got: {rule.percentage}%",
                    payroll_number=payroll_number,
                    details={"class_name": rule.class_name, "percentage": str(rule.percentage)},
                )

        percentage_sum = sum((r.percentage for r in employee_rules), ZERO)
        if abs(percentage_sum - 100) > PERCENTAGE_SUM_TOLERANCE:
            raise AllocationPercentageException(
                f"Allocation percentages must sum to 100%. Current sum: {percentage_sum}%",
                payroll_number=payroll_number,
                details={
                    "expected_sum": 100,
                    "actual_sum": str(percentage_sum),
                    "allocations": [
                        {"class_name": r.class_name, "percentage": str(r.percentage)}
                        for r in employee_rules
                    ],
                },
            )

    return True


def calculate_total(payslips: Iterable[Payslip], selector: Selector) -> Decimal:
    """Total of one payslip amount across a batch, rounded to 2 places."""
    select = _selector_fn(selector)
    return round_money(sum((to_decimal(select(p)) for p in payslips), ZERO))


def totals_by_class(lines: Iterable[LineItem]) -> List[Tuple[str, str, Decimal]]:
    """(class_name, class_id, total) per class, sorted by class name."""
    totals: Dict[str, List] = {}
    for line in lines:
        entry = totals.setdefault(line.class_id, [line.class_name, ZERO])
        entry[1] += line.amount

    results = [(name, class_id, round_money(total)) for class_id, (name, total) in totals.items()]
    results.sort(key=lambda row: row[0])
    return results


def shop_payslips(payslips: Iterable[Payslip], rules: Iterable[AllocationRule]) -> List[Payslip]:
    """Payslips of shop staff whose shop journal is not yet posted."""
    shop_employees = {r.payroll_number for r in rules if r.is_shop_employee}
    return [
        p for p in payslips
        if not p.shop_journal_posted and p.payroll_number in shop_employees
    ]
