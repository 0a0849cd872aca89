"""
Payroll Journal Engine - Test Configuration

Pytest fixtures and configuration.
"""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.config import Settings
from app.schemas.payroll import AllocationRule, Payslip
from app.services.payroll_engine import PayrollLookup
from main import app


ADMIN_CLASS = "1400000000000130710"
HARROW_ROAD_CLASS = "400000000000618070"
STAFF_SALARIES_ACCOUNT = "261"
AUEW_ACCOUNT = "65"

PAYROLL_DATE = date(2025, 4, 25)


@pytest.fixture
def lookup() -> PayrollLookup:
    """Lookup over default settings, independent of any .env file."""
    return PayrollLookup(Settings(_env_file=None))


@pytest.fixture
def payroll_date() -> date:
    return PAYROLL_DATE


@pytest.fixture
def office_payslip() -> Payslip:
    """Office employee split 60/40 between admin and the shop class."""
    return Payslip(
        payroll_number=101,
        employee_name="Alice Smith",
        payroll_date=PAYROLL_DATE,
        quickbooks_id=501,
        total_pay=Decimal("2000.00"),
        paye=Decimal("-200.00"),
        employee_ni=Decimal("-100.00"),
        employer_ni=Decimal("150.00"),
        employee_pension=Decimal("80.00"),
        employer_pension=Decimal("60.00"),
        salary_sacrifice=Decimal("50.00"),
        student_loan=Decimal("-30.00"),
        other_deductions=Decimal("-10.00"),
        net_pay=Decimal("1530.00"),
    )


@pytest.fixture
def shop_payslip() -> Payslip:
    """Shop employee charged entirely to AUEW."""
    return Payslip(
        payroll_number=102,
        employee_name="Bob Jones",
        payroll_date=PAYROLL_DATE,
        quickbooks_id=502,
        is_shop_employee=True,
        total_pay=Decimal("1000.00"),
        paye=Decimal("-50.00"),
        employee_ni=Decimal("-40.00"),
        employer_ni=Decimal("60.00"),
        employee_pension=Decimal("40.00"),
        employer_pension=Decimal("30.00"),
        net_pay=Decimal("870.00"),
    )


@pytest.fixture
def payslips(office_payslip, shop_payslip) -> List[Payslip]:
    return [office_payslip, shop_payslip]


@pytest.fixture
def rules() -> List[AllocationRule]:
    return [
        AllocationRule(
            payroll_number=101,
            employee_name="Alice Smith",
            quickbooks_id=501,
            account_id=STAFF_SALARIES_ACCOUNT,
            class_id=ADMIN_CLASS,
            class_name="Admin",
            percentage=Decimal("60"),
        ),
        AllocationRule(
            payroll_number=101,
            employee_name="Alice Smith",
            quickbooks_id=501,
            account_id=STAFF_SALARIES_ACCOUNT,
            class_id=HARROW_ROAD_CLASS,
            class_name="Harrow Road",
            percentage=Decimal("40"),
        ),
        AllocationRule(
            payroll_number=102,
            employee_name="Bob Jones",
            quickbooks_id=502,
            account_id=AUEW_ACCOUNT,
            class_id=HARROW_ROAD_CLASS,
            class_name="Harrow Road",
            percentage=Decimal("100"),
            is_shop_employee=True,
        ),
    ]


def _rules_for(*percentages, payroll_number: int = 1) -> List[AllocationRule]:
    return [
        AllocationRule(
            payroll_number=payroll_number,
            account_id=STAFF_SALARIES_ACCOUNT,
            class_id=str(1000 + i),
            class_name=f"Class {i}",
            percentage=Decimal(str(pct)),
        )
        for i, pct in enumerate(percentages)
    ]


@pytest.fixture
def make_rules():
    """Factory: one rule per percentage, each on its own class."""
    return _rules_for


@pytest_asyncio.fixture(scope="function")
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create a test client for the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
