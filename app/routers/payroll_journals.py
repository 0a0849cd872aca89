"""
Payroll Journal Engine - Payroll Journals Router

Preview endpoints: build and validate payroll journals without posting
anything to the ledger.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.schemas.payroll import (
    AllocationSplitRequest,
    AllocationSplitResponse,
    DocNumberResponse,
    JournalBatchResult,
    JournalPreviewRequest,
    PayrollDateResponse,
)
from app.services.payroll_engine import (
    PayrollLookup,
    calculate_payroll_date,
    default_lookup,
    generate_doc_number,
    journal_balance,
    split,
)
from app.services.payroll_journal_service import PayrollJournalService


router = APIRouter()


def get_lookup() -> PayrollLookup:
    return default_lookup()


# ===========================================
# JOURNAL ENDPOINTS
# ===========================================

@router.post(
    "/journals/preview",
    response_model=JournalBatchResult,
    summary="Preview payroll journals",
    description="Build every unposted journal for a payroll run. Unbalanced or oversized "
                "journals are reported as rejected; nothing is posted.",
)
async def preview_journals(
    data: JournalPreviewRequest,
    lookup: PayrollLookup = Depends(get_lookup),
):
    """Build the journals of a payroll run."""
    service = PayrollJournalService(lookup)
    return service.build_batch(
        data.payslips,
        data.allocations,
        data.payroll_date,
        data.transaction_types,
    )


# ===========================================
# ALLOCATION ENDPOINTS
# ===========================================

@router.post(
    "/allocations/split",
    response_model=AllocationSplitResponse,
    summary="Split an amount across allocation rules",
)
async def split_allocation(
    data: AllocationSplitRequest,
    lookup: PayrollLookup = Depends(get_lookup),
):
    lines = split(data.amount, data.allocations, lookup, description=data.description)
    return AllocationSplitResponse(lines=lines, total=journal_balance(lines))


# ===========================================
# DOCUMENT NUMBER & PAY CALENDAR
# ===========================================

@router.get(
    "/doc-number",
    response_model=DocNumberResponse,
    summary="Document number for a pay period",
)
async def get_doc_number(
    payroll_date: str = Query(..., description="Pay date, YYYY-MM-DD"),
    suffix: str = Query("", description="Appended after Payroll_YYYY_MM"),
    lookup: PayrollLookup = Depends(get_lookup),
):
    return DocNumberResponse(doc_number=generate_doc_number(payroll_date, suffix, lookup))


@router.get(
    "/payroll-date",
    response_model=PayrollDateResponse,
    summary="Pay date for a month of a tax year",
)
async def get_payroll_date(
    tax_year: str = Query(..., description="Tax year, e.g. 2024-2025"),
    month: int = Query(..., description="Month of the tax year, 1 (April) to 12 (March)"),
    lookup: PayrollLookup = Depends(get_lookup),
):
    payroll_date: date = calculate_payroll_date(tax_year, month, lookup)
    return PayrollDateResponse(tax_year=tax_year, month=month, payroll_date=payroll_date)
