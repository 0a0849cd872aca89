"""
Payroll Journal Engine - Payroll Schemas

Pydantic schemas for payslips, allocation rules, journal lines and
journal entries, plus the request/response bodies of the preview API.

Domain records are frozen: posting-state changes produce new copies.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.money import round_money


# ===========================================
# ENUMS
# ===========================================

class TransactionType(str, Enum):
    """The journals produced for one payroll run."""
    EMPLOYEE = "employee"
    EMPLOYER_NI = "employer_ni"
    PENSIONS = "pensions"
    SHOP_PAYROLL = "shop_payroll"


class PostingType(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


# ===========================================
# INPUT RECORDS
# ===========================================

class Payslip(BaseModel):
    """
    One employee's payslip for one pay period, as supplied by the payroll provider.

    Sign convention follows the provider's gross-to-net report: PAYE,
    employee NI, student loan and other deductions arrive negative;
    salary sacrifice, employee pension and net pay arrive positive.
    """
    model_config = ConfigDict(frozen=True)

    payroll_number: int
    employee_name: str = ""
    payroll_date: Optional[date] = None
    quickbooks_id: Optional[int] = None
    is_shop_employee: bool = False

    total_pay: Decimal = Decimal("0.00")
    paye: Decimal = Decimal("0.00")
    employee_ni: Decimal = Decimal("0.00")
    employer_ni: Decimal = Decimal("0.00")
    employee_pension: Decimal = Decimal("0.00")
    employer_pension: Decimal = Decimal("0.00")
    salary_sacrifice: Decimal = Decimal("0.00")
    student_loan: Decimal = Decimal("0.00")
    other_deductions: Decimal = Decimal("0.00")
    net_pay: Decimal = Decimal("0.00")

    # Posted flags, one per transaction type
    salary_journal_posted: bool = False
    employer_ni_posted: bool = False
    pension_bill_posted: bool = False
    shop_journal_posted: bool = False


class AllocationRule(BaseModel):
    """What percentage of one employee's cost goes to one account/class."""
    model_config = ConfigDict(frozen=True)

    payroll_number: int
    account_id: str
    class_id: str
    class_name: str = ""
    percentage: Decimal = Field(..., ge=-100, le=100)
    is_shop_employee: bool = False
    quickbooks_id: Optional[int] = None
    employee_name: Optional[str] = None
    account_name: Optional[str] = None

    @field_validator("account_id", "class_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        # Rule stores hold account ids as integers
        return str(v) if isinstance(v, int) else v


# ===========================================
# JOURNAL OUTPUT
# ===========================================

class LineItem(BaseModel):
    """One journal row. Positive amounts are debits, negative are credits."""
    model_config = ConfigDict(frozen=True)

    account_id: str
    class_id: str
    amount: Decimal
    description: str = ""
    class_name: str = ""
    employee_name: Optional[str] = None
    payroll_number: Optional[int] = None
    quickbooks_id: Optional[int] = None
    is_shop_employee: bool = False

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        return round_money(v)

    @property
    def posting_type(self) -> PostingType:
        return PostingType.CREDIT if self.amount < 0 else PostingType.DEBIT


class JournalEntry(BaseModel):
    """A validated, postable journal entry."""
    model_config = ConfigDict(frozen=True)

    doc_number: str
    txn_date: date
    description: str = ""
    transaction_type: Optional[TransactionType] = None
    lines: List[LineItem] = Field(default_factory=list)
    balance: Decimal = Decimal("0.00")
    expected_balance: Decimal = Decimal("0.00")
    realm_id: Optional[str] = None

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.amount > 0), Decimal("0.00"))

    @property
    def total_credits(self) -> Decimal:
        return sum((-line.amount for line in self.lines if line.amount < 0), Decimal("0.00"))


class PayrollJournalEntry(BaseModel):
    """
    Salary journal input for one employee: allocated gross pay plus the
    fixed deduction fields. Deductions that reduce net pay are negative.
    """
    model_config = ConfigDict(frozen=True)

    payroll_number: int
    employee_name: str = ""
    quickbooks_id: Optional[int] = None
    allocated: bool = True
    total_pay: List[LineItem] = Field(default_factory=list)
    paye: Decimal = Decimal("0.00")
    employee_ni: Decimal = Decimal("0.00")
    other_deductions: Decimal = Decimal("0.00")
    salary_sacrifice: Decimal = Decimal("0.00")
    employee_pension: Decimal = Decimal("0.00")
    student_loan: Decimal = Decimal("0.00")
    net_pay: Decimal = Decimal("0.00")

    @property
    def gross_total(self) -> Decimal:
        return sum((line.amount for line in self.total_pay), Decimal("0.00"))

    @property
    def balance(self) -> Decimal:
        return (
            self.gross_total + self.paye + self.employee_ni + self.other_deductions
            + self.salary_sacrifice + self.employee_pension + self.student_loan
            + self.net_pay
        )


# ===========================================
# PREVIEW API SCHEMAS
# ===========================================

class JournalPreviewRequest(BaseModel):
    """Build every unposted journal for a payroll run."""
    payroll_date: date
    payslips: List[Payslip]
    allocations: List[AllocationRule] = Field(default_factory=list)
    transaction_types: Optional[List[TransactionType]] = None


class JournalRejection(BaseModel):
    """A journal that could not be built as postable."""
    transaction_type: TransactionType
    doc_number: Optional[str] = None
    payroll_number: Optional[int] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class JournalBatchResult(BaseModel):
    """Journals ready to post, what was rejected, and the updated payslips."""
    payroll_date: date
    journals: List[JournalEntry] = Field(default_factory=list)
    rejected: List[JournalRejection] = Field(default_factory=list)
    already_posted: List[TransactionType] = Field(default_factory=list)
    payslips: List[Payslip] = Field(default_factory=list)


class AllocationSplitRequest(BaseModel):
    """Split one amount across one employee's rules."""
    amount: Decimal
    allocations: List[AllocationRule]
    description: str = ""


class AllocationSplitResponse(BaseModel):
    lines: List[LineItem]
    total: Decimal


class DocNumberResponse(BaseModel):
    doc_number: str


class PayrollDateResponse(BaseModel):
    tax_year: str
    month: int
    payroll_date: date
