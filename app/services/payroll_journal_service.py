"""
Payroll Journal Engine - Payroll Journal Service

Builds every journal for one payroll run: the salary journal of each
employee, the employer NI journal, the pension bill and the shop payroll
journal.

Work already posted is skipped. A journal that fails validation is
reported as rejected and its payslips stay unposted, so the run can be
corrected and re-submitted. Nothing is sent to the ledger here; the caller
posts the returned journals and persists the returned payslips.
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence

from app.schemas.payroll import (
    AllocationRule,
    JournalBatchResult,
    JournalEntry,
    JournalRejection,
    Payslip,
    TransactionType,
)
from app.services.payroll_engine import (
    PayrollLookup,
    build_employee_journal,
    build_employer_ni_journal,
    build_pension_bill,
    build_shop_journal,
    default_lookup,
    employee_journal_entries,
    filter_unposted,
    generate_doc_number,
    mark_posted,
    shop_payslips,
)
from app.utils.error_handling import AppException, InvalidConfigKeyException


# ===========================================
# DOCUMENT NUMBER SUFFIXES
# ===========================================

EMPLOYER_NI_SUFFIX = "_NI"
PENSIONS_SUFFIX = "_PEN"
SHOP_PAYROLL_SUFFIX = "_SHOP"

logger = logging.getLogger(__name__)


def employee_suffix(payroll_number: int) -> str:
    return f"_{payroll_number}"


class PayrollJournalService:
    """Builds the journals of a payroll run and tracks what has been posted."""

    def __init__(self, lookup: Optional[PayrollLookup] = None):
        self.lookup = lookup or default_lookup()

    def build_batch(
        self,
        payslips: Sequence[Payslip],
        rules: Sequence[AllocationRule],
        payroll_date: date,
        transaction_types: Optional[Sequence[TransactionType]] = None,
    ) -> JournalBatchResult:
        """
        Build the journals of the requested transaction types.

        Args:
            payslips: Payslips of the run, with their current posted flags
            rules: Allocation rules for the employees on the run
            payroll_date: Pay date, used for document numbers and txn dates
            transaction_types: Types to build; all when omitted

        Returns:
            Postable journals, rejections, the types with nothing left to
            post, and the payslips with flags set for every built journal
        """
        result = JournalBatchResult(payroll_date=payroll_date)
        types = list(transaction_types) if transaction_types else list(TransactionType)
        current = list(payslips)

        for transaction_type in types:
            if transaction_type == TransactionType.EMPLOYEE:
                current = self._build_employee_journals(current, rules, payroll_date, result)
            elif transaction_type == TransactionType.EMPLOYER_NI:
                current = self._build_batch_journal(
                    current, payroll_date, result, transaction_type,
                    filter_unposted(current, transaction_type), EMPLOYER_NI_SUFFIX,
                    lambda batch, **kw: build_employer_ni_journal(batch, rules, **kw),
                )
            elif transaction_type == TransactionType.PENSIONS:
                current = self._build_batch_journal(
                    current, payroll_date, result, transaction_type,
                    filter_unposted(current, transaction_type), PENSIONS_SUFFIX,
                    lambda batch, **kw: build_pension_bill(batch, rules, **kw),
                )
            elif transaction_type == TransactionType.SHOP_PAYROLL:
                current = self._build_shop_journal(current, rules, payroll_date, result)

        result.payslips = current
        logger.info(
            f"Payroll run {payroll_date}: {len(result.journals)} journals built, "
            f"{len(result.rejected)} rejected"
        )
        return result

    # ===========================================
    # PER TRANSACTION TYPE
    # ===========================================

    def _build_employee_journals(
        self,
        payslips: List[Payslip],
        rules: Sequence[AllocationRule],
        payroll_date: date,
        result: JournalBatchResult,
    ) -> List[Payslip]:
        unposted = filter_unposted(payslips, TransactionType.EMPLOYEE)
        if not unposted:
            result.already_posted.append(TransactionType.EMPLOYEE)
            return payslips

        built = []
        for entry in employee_journal_entries(unposted, rules, self.lookup):
            doc_number = generate_doc_number(payroll_date, employee_suffix(entry.payroll_number), self.lookup)
            journal = self._try_build(
                result,
                TransactionType.EMPLOYEE,
                doc_number,
                lambda: build_employee_journal(
                    entry, txn_date=payroll_date, doc_number=doc_number, lookup=self.lookup
                ),
                payroll_number=entry.payroll_number,
            )
            if journal is not None:
                built.append(entry.payroll_number)

        return mark_posted(payslips, TransactionType.EMPLOYEE, built)

    def _build_shop_journal(
        self,
        payslips: List[Payslip],
        rules: Sequence[AllocationRule],
        payroll_date: date,
        result: JournalBatchResult,
    ) -> List[Payslip]:
        shop_staff = {r.payroll_number for r in rules if r.is_shop_employee}
        if not any(p.payroll_number in shop_staff for p in payslips):
            logger.debug(f"Payroll run {payroll_date}: no shop staff on this run")
            return payslips

        return self._build_batch_journal(
            payslips, payroll_date, result, TransactionType.SHOP_PAYROLL,
            shop_payslips(payslips, rules), SHOP_PAYROLL_SUFFIX,
            lambda batch, **kw: build_shop_journal(batch, **kw),
        )

    def _build_batch_journal(
        self,
        payslips: List[Payslip],
        payroll_date: date,
        result: JournalBatchResult,
        transaction_type: TransactionType,
        batch: List[Payslip],
        suffix: str,
        builder: Callable[..., JournalEntry],
    ) -> List[Payslip]:
        """One journal covering every unposted payslip in the batch."""
        if not batch:
            result.already_posted.append(transaction_type)
            return payslips

        doc_number = generate_doc_number(payroll_date, suffix, self.lookup)
        journal = self._try_build(
            result,
            transaction_type,
            doc_number,
            lambda: builder(batch, txn_date=payroll_date, doc_number=doc_number, lookup=self.lookup),
        )
        if journal is None:
            return payslips
        return mark_posted(payslips, transaction_type, [p.payroll_number for p in batch])

    def _try_build(
        self,
        result: JournalBatchResult,
        transaction_type: TransactionType,
        doc_number: str,
        build: Callable[[], JournalEntry],
        payroll_number: Optional[int] = None,
    ) -> Optional[JournalEntry]:
        try:
            journal = build()
        except InvalidConfigKeyException:
            raise
        except AppException as e:
            logger.warning(f"Rejected {transaction_type.value} journal {doc_number}: {e.message}")
            result.rejected.append(JournalRejection(
                transaction_type=transaction_type,
                doc_number=doc_number,
                payroll_number=payroll_number,
                code=e.code.value,
                message=e.message,
                details=e.details,
            ))
            return None

        logger.info(
            f"Built {transaction_type.value} journal {doc_number}: "
            f"{journal.line_count} lines, total {journal.balance}"
        )
        result.journals.append(journal)
        return journal
