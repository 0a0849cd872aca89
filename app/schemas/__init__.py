"""
Payroll Journal Engine - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.payroll import (
    # Enums
    TransactionType,
    PostingType,
    # Domain records
    Payslip,
    AllocationRule,
    LineItem,
    JournalEntry,
    PayrollJournalEntry,
    # Preview API
    JournalPreviewRequest,
    JournalRejection,
    JournalBatchResult,
    AllocationSplitRequest,
    AllocationSplitResponse,
    DocNumberResponse,
    PayrollDateResponse,
)

__all__ = [
    "TransactionType",
    "PostingType",
    "Payslip",
    "AllocationRule",
    "LineItem",
    "JournalEntry",
    "PayrollJournalEntry",
    "JournalPreviewRequest",
    "JournalRejection",
    "JournalBatchResult",
    "AllocationSplitRequest",
    "AllocationSplitResponse",
    "DocNumberResponse",
    "PayrollDateResponse",
]
