"""
Payroll Journal Engine - Services Package

Business logic services.
"""

from app.services.payroll_journal_service import PayrollJournalService

__all__ = [
    "PayrollJournalService",
]
