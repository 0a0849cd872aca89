"""
Payroll Journal Engine - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.

Account, class and description maps are realm specific. Complex values
(dicts) can be overridden from the environment as JSON, e.g.
CHARITY_ACCOUNTS='{"TAX_ACCOUNT": "256", ...}'.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Dict, List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "Payroll Journal Engine"
    app_env: str = "development"
    debug: bool = True
    api_version: str = "v1"

    # ===========================================
    # LEDGER REALMS (one per legal entity)
    # ===========================================
    charity_realm_id: str = "123145825016867"
    enterprises_realm_id: str = "9130350604308576"

    # ===========================================
    # CHARITY ACCOUNT IDS
    # If any account id clashes with the AUEW account ids then check the
    # gross salary account selection in the journal builders.
    # ===========================================
    charity_accounts: Dict[str, str] = Field(default_factory=lambda: {
        "AUEW_ACCOUNT": "65",
        "EMPLOYEE_PENSION_CONTRIB_ACCOUNT": "66",
        "EMPLOYER_NI_ACCOUNT": "95",
        "SALARY_SACRIFICE_ACCOUNT": "375",
        "NET_PAY_ACCOUNT": "98",
        "OTHER_DEDUCTIONS_ACCOUNT": "503",
        "PENSION_COSTS_ACCOUNT": "285",
        "STAFF_SALARIES_ACCOUNT": "261",
        "TAX_ACCOUNT": "256",
        "PLEO_ACCOUNT": "429",
    })

    # ===========================================
    # ENTERPRISES (SHOP) ACCOUNT IDS
    # ===========================================
    enterprises_accounts: Dict[str, str] = Field(default_factory=lambda: {
        "AUKW_INTERCO_ACCOUNT": "80",
        "AUEW_PAIDBYPARENT_ACCOUNT": "102",
        "AUEW_SALARIES_ACCOUNT": "106",
        "AUEW_NI_ACCOUNT": "150",
        "AUEW_PENSIONS_ACCOUNT": "139",
    })

    # ===========================================
    # CLASS IDS
    # ===========================================
    classes: Dict[str, str] = Field(default_factory=lambda: {
        "ADMIN_CLASS": "1400000000000130710",
        "HARROW_ROAD_CLASS": "400000000000618070",
    })

    # ===========================================
    # TRANSACTION DESCRIPTIONS
    # ===========================================
    descriptions: Dict[str, str] = Field(default_factory=lambda: {
        "EMPLOYEE_NI": "Employee NI",
        "EMPLOYER_NI": "Employer NI",
        "EMPLOYEE_PENSION_CONT": "Employee Pension Contribution",
        "EMPLOYER_PENSION_CONT": "Employer Pension Contribution",
        "GROSS_SALARY": "Gross Salary",
        "NET_PAY": "Net Pay",
        "OTHER_DEDUCTIONS": "Other Deductions",
        "PAYE": "PAYE",
        "SALARY_SACRIFICE": "Salary Sacrifice",
        "STUDENT_LOAN": "Student Loan Deductions",
        "SALARY_SACRIFICE_TOTAL": "Monthly total of salary sacrifices",
        "EMPLOYEE_PENSION_TOTAL": "Monthly total of employee pension contributions",
    })

    # ===========================================
    # TAX CODES & VENDORS
    # ===========================================
    tax_codes: Dict[str, str] = Field(default_factory=lambda: {
        "NOVAT": "20",
        "ZERO_RATED": "4",
        "STANDARD_RATED": "2",
        "ZERO_RATED_PURCHASES": "8",
        "STANDARD_RATED_PURCHASES": "4",
    })
    pension_vendor_id: str = "357"  # Legal & General

    # ===========================================
    # LEDGER CONSTRAINTS
    # ===========================================
    qbo_docnumber_max_length: int = 21
    qbo_description_max_length: int = 4000
    docnumber_prefix: str = "Payroll_"

    # ===========================================
    # VALIDATION RULES
    # ===========================================
    # Amounts at or below this are treated as zero (floating point noise)
    amount_zero_threshold: Decimal = Decimal("0.005")
    # Debits must equal credits within this tolerance
    balance_tolerance: Decimal = Decimal("0.005")
    # Lines below this amount are not created
    min_line_amount: Decimal = Decimal("0.01")
    max_journal_lines: int = 100
    # An allocation within this amount of the remainder takes the remainder
    allocation_remainder_threshold: Decimal = Decimal("1.00")

    # ===========================================
    # PAY CALENDAR
    # ===========================================
    payroll_day_of_month: int = 25
    # Fiscal month number of each calendar month, January first (April = 1)
    fiscal_months: List[int] = Field(default_factory=lambda: [10, 11, 12, 1, 2, 3, 4, 5, 6, 7, 8, 9])
    fiscal_months_next_year_threshold: int = 10

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
