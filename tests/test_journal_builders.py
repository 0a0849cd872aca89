"""
Tests for the Journal Builders

One class per transaction type: employee salary journal, employer NI
journal, pension bill and shop payroll journal.
"""

import pytest
from decimal import Decimal

from app.schemas.payroll import Payslip, TransactionType
from app.services.payroll_engine import (
    build_employee_journal,
    build_employer_ni_journal,
    build_pension_bill,
    build_shop_journal,
    employee_journal_entries,
)
from app.utils.error_handling import UnbalancedJournalException


ADMIN_CLASS = "1400000000000130710"
HARROW_ROAD_CLASS = "400000000000618070"


def rows(entry):
    return [(l.account_id, l.class_id, l.amount) for l in entry.lines]


class TestEmployeeJournal:
    """Test the salary journal of one employee."""

    def test_office_employee(self, lookup, payslips, rules, payroll_date):
        entry = employee_journal_entries(payslips, rules, lookup)[0]
        journal = build_employee_journal(
            entry, txn_date=payroll_date, doc_number="Payroll_2025_04_101", lookup=lookup
        )

        assert journal.transaction_type == TransactionType.EMPLOYEE
        assert journal.description == "Alice Smith"
        assert journal.balance == Decimal("0.00")
        assert rows(journal) == [
            ("261", ADMIN_CLASS, Decimal("1200.00")),
            ("261", HARROW_ROAD_CLASS, Decimal("800.00")),
            ("256", ADMIN_CLASS, Decimal("-200.00")),     # PAYE
            ("256", ADMIN_CLASS, Decimal("-100.00")),     # employee NI
            ("375", ADMIN_CLASS, Decimal("-50.00")),      # salary sacrifice
            ("66", ADMIN_CLASS, Decimal("-80.00")),       # employee pension
            ("503", ADMIN_CLASS, Decimal("-10.00")),      # other deductions
            ("256", ADMIN_CLASS, Decimal("-30.00")),      # student loan
            ("98", ADMIN_CLASS, Decimal("-1530.00")),     # net pay
        ]
        assert journal.lines[2].description == "PAYE"
        assert journal.lines[-1].description == "Net Pay"

    def test_shop_employee_keeps_auew_account(self, lookup, payslips, rules, payroll_date):
        """Zero deductions are dropped; gross stays on the AUEW account."""
        entry = employee_journal_entries(payslips, rules, lookup)[1]
        journal = build_employee_journal(entry, txn_date=payroll_date, doc_number="D", lookup=lookup)

        assert rows(journal) == [
            ("65", HARROW_ROAD_CLASS, Decimal("1000.00")),
            ("256", ADMIN_CLASS, Decimal("-50.00")),
            ("256", ADMIN_CLASS, Decimal("-40.00")),
            ("66", ADMIN_CLASS, Decimal("-40.00")),
            ("98", ADMIN_CLASS, Decimal("-870.00")),
        ]

    def test_other_accounts_map_to_staff_salaries(self, lookup, office_payslip, make_rules, payroll_date):
        rules = [r.model_copy(update={"account_id": "999"}) for r in make_rules(100, payroll_number=101)]
        entry = employee_journal_entries([office_payslip], rules, lookup)[0]
        journal = build_employee_journal(entry, txn_date=payroll_date, doc_number="D", lookup=lookup)
        assert journal.lines[0].account_id == "261"

    def test_inconsistent_net_pay_rejected(self, lookup, office_payslip, rules, payroll_date):
        payslip = office_payslip.model_copy(update={"net_pay": Decimal("1500.00")})
        entry = employee_journal_entries([payslip], rules, lookup)[0]
        with pytest.raises(UnbalancedJournalException) as exc_info:
            build_employee_journal(entry, txn_date=payroll_date, doc_number="D", lookup=lookup)
        assert exc_info.value.balance == Decimal("30.00")


class TestEmployerNIJournal:
    """Test the employer NI journal."""

    def test_lines_and_total(self, lookup, payslips, rules, payroll_date):
        journal = build_employer_ni_journal(
            payslips, rules, txn_date=payroll_date, doc_number="Payroll_2025_04_NI", lookup=lookup
        )

        assert journal.transaction_type == TransactionType.EMPLOYER_NI
        assert rows(journal) == [
            ("95", ADMIN_CLASS, Decimal("90.00")),
            ("95", HARROW_ROAD_CLASS, Decimal("60.00")),
            ("65", HARROW_ROAD_CLASS, Decimal("60.00")),   # shop staff via AUEW
            ("256", ADMIN_CLASS, Decimal("-210.00")),
        ]
        assert journal.lines[-1].description == "Total of Employer NI"
        assert journal.balance == Decimal("0.00")

    def test_unallocated_employee_left_out(self, lookup, payslips, rules, payroll_date):
        """The total covers what was allocated, so the journal still balances."""
        journal = build_employer_ni_journal(
            payslips, rules[:2], txn_date=payroll_date, doc_number="D", lookup=lookup
        )
        assert journal.lines[-1].amount == Decimal("-150.00")


class TestPensionBill:
    """Test the pension provider bill."""

    def test_bill_lines(self, lookup, payslips, rules, payroll_date):
        bill = build_pension_bill(
            payslips, rules, txn_date=payroll_date, doc_number="Payroll_2025_04_PEN", lookup=lookup
        )

        assert bill.transaction_type == TransactionType.PENSIONS
        assert rows(bill) == [
            ("285", ADMIN_CLASS, Decimal("36.00")),
            ("285", HARROW_ROAD_CLASS, Decimal("24.00")),
            ("65", HARROW_ROAD_CLASS, Decimal("30.00")),
            ("375", ADMIN_CLASS, Decimal("50.00")),
            ("66", ADMIN_CLASS, Decimal("120.00")),
        ]
        assert bill.balance == Decimal("260.00")
        assert bill.expected_balance == Decimal("260.00")

    def test_employer_lines_described_by_employee(self, lookup, payslips, rules, payroll_date):
        bill = build_pension_bill(payslips, rules, txn_date=payroll_date, doc_number="D", lookup=lookup)
        assert [l.description for l in bill.lines[:3]] == ["Alice Smith", "Alice Smith", "Bob Jones"]
        assert bill.lines[3].description == "Monthly total of salary sacrifices"

    def test_unallocated_employee_rejected(self, lookup, payslips, rules, payroll_date):
        """Employer pension with no rules leaves the bill short."""
        with pytest.raises(UnbalancedJournalException) as exc_info:
            build_pension_bill(payslips, rules[:2], txn_date=payroll_date, doc_number="D", lookup=lookup)
        assert exc_info.value.balance == Decimal("-30.00")


class TestShopJournal:
    """Test the shop payroll journal in the enterprises ledger."""

    def test_recharge_lines(self, lookup, shop_payslip, payroll_date):
        journal = build_shop_journal(
            [shop_payslip], txn_date=payroll_date, doc_number="Payroll_2025_04_SHOP", lookup=lookup
        )

        assert journal.transaction_type == TransactionType.SHOP_PAYROLL
        assert journal.realm_id == "9130350604308576"
        assert rows(journal) == [
            ("106", HARROW_ROAD_CLASS, Decimal("1000.00")),
            ("80", HARROW_ROAD_CLASS, Decimal("-1000.00")),
            ("150", HARROW_ROAD_CLASS, Decimal("60.00")),
            ("80", HARROW_ROAD_CLASS, Decimal("-60.00")),
            ("139", HARROW_ROAD_CLASS, Decimal("30.00")),
            ("80", HARROW_ROAD_CLASS, Decimal("-30.00")),
        ]
        assert journal.balance == Decimal("0.00")

    def test_zero_costs_skipped(self, lookup, payroll_date):
        payslip = Payslip(payroll_number=7, employee_name="Cara", total_pay=Decimal("500.00"))
        journal = build_shop_journal([payslip], txn_date=payroll_date, doc_number="D", lookup=lookup)
        assert journal.line_count == 2
