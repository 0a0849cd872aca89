"""
Tests for Posting State

Tests cover posted flags per transaction type, filtering, marking and
reconciliation against amounts already in the ledger.
"""

import pytest
from decimal import Decimal

from app.schemas.payroll import TransactionType
from app.services.payroll_engine import (
    POSTED_FLAGS,
    filter_unposted,
    is_posted,
    mark_posted,
    needs_posting,
    parse_transaction_type,
    reconcile_posted,
)
from app.utils.error_handling import ErrorCode, InvalidTransactionTypeException


class TestTransactionTypes:
    """Test transaction type validation."""

    @pytest.mark.parametrize("value", ["employee", "employer_ni", "pensions", "shop_payroll"])
    def test_valid(self, value):
        assert parse_transaction_type(value) == TransactionType(value)

    def test_enum_passthrough(self):
        assert parse_transaction_type(TransactionType.PENSIONS) is TransactionType.PENSIONS

    def test_invalid(self):
        with pytest.raises(InvalidTransactionTypeException) as exc_info:
            parse_transaction_type("bonus")
        assert exc_info.value.code == ErrorCode.INVALID_TRANSACTION_TYPE
        assert "shop_payroll" in exc_info.value.details["valid_types"]

    def test_every_type_has_a_flag(self):
        assert set(POSTED_FLAGS) == set(TransactionType)


class TestPostedFlags:
    """Test marking and filtering."""

    def test_fresh_payslips_unposted(self, payslips):
        for transaction_type in TransactionType:
            assert filter_unposted(payslips, transaction_type) == payslips
            assert needs_posting(payslips, transaction_type)

    def test_mark_posted_returns_copies(self, payslips):
        updated = mark_posted(payslips, TransactionType.EMPLOYEE)

        assert all(p.salary_journal_posted for p in updated)
        assert not any(p.salary_journal_posted for p in payslips)
        assert not any(p.employer_ni_posted for p in updated)

    def test_mark_posted_is_idempotent(self, payslips):
        once = mark_posted(payslips, "pensions")
        twice = mark_posted(once, "pensions")
        assert all(is_posted(p, TransactionType.PENSIONS) for p in twice)
        assert twice == once

    def test_filter_after_mark(self, payslips):
        updated = mark_posted(payslips, TransactionType.EMPLOYER_NI)
        assert filter_unposted(updated, TransactionType.EMPLOYER_NI) == []
        assert not needs_posting(updated, TransactionType.EMPLOYER_NI)

    def test_mark_selected_payroll_numbers(self, payslips):
        updated = mark_posted(payslips, TransactionType.SHOP_PAYROLL, [102])
        assert [p.shop_journal_posted for p in updated] == [False, True]
        assert [p.payroll_number for p in filter_unposted(updated, "shop_payroll")] == [101]

    def test_empty_selection_changes_nothing(self, payslips):
        assert mark_posted(payslips, TransactionType.EMPLOYEE, []) == payslips

    def test_invalid_type_rejected(self, payslips):
        with pytest.raises(InvalidTransactionTypeException):
            filter_unposted(payslips, "bonus")


class TestReconcilePosted:
    """Test flags set from amounts already in the ledger."""

    def test_matching_amounts_marked(self, lookup, payslips):
        ledger = [payslips[0]]
        updated = reconcile_posted(payslips, ledger, TransactionType.EMPLOYER_NI, lookup)
        assert [p.employer_ni_posted for p in updated] == [True, False]

    def test_difference_within_threshold(self, lookup, office_payslip):
        ledger = office_payslip.model_copy(update={"employer_ni": Decimal("150.004")})
        updated = reconcile_posted([office_payslip], [ledger], "employer_ni", lookup)
        assert updated[0].employer_ni_posted is True

    def test_different_amount_not_marked(self, lookup, office_payslip):
        ledger = office_payslip.model_copy(update={"employer_pension": Decimal("59.00")})
        updated = reconcile_posted([office_payslip], [ledger], TransactionType.PENSIONS, lookup)
        assert updated[0].pension_bill_posted is False

    def test_only_fields_of_the_type_compared(self, lookup, office_payslip):
        """A different net pay does not stop the employer NI match."""
        ledger = office_payslip.model_copy(update={"net_pay": Decimal("0")})
        updated = reconcile_posted([office_payslip], [ledger], TransactionType.EMPLOYER_NI, lookup)
        assert updated[0].employer_ni_posted is True
        updated = reconcile_posted([office_payslip], [ledger], TransactionType.EMPLOYEE, lookup)
        assert updated[0].salary_journal_posted is False
