"""
Payroll Journal Engine - Configuration Lookup

Resolves symbolic keys (accounts, classes, descriptions, tax codes) to
ledger identifiers and exposes the validation thresholds. One instance is
built from Settings at start-up and passed to every component, so a
different realm or legal entity only needs a different Settings object.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from app.config import Settings, get_settings
from app.schemas.payroll import TransactionType
from app.utils.error_handling import InvalidConfigKeyException
from app.utils.money import to_decimal


class PayrollLookup:
    """Key -> value lookups and numeric limits for one ledger configuration."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ===========================================
    # KEY LOOKUPS
    # ===========================================

    @staticmethod
    def _resolve(kind: str, table: Mapping[str, str], key: str) -> str:
        try:
            return table[key]
        except KeyError:
            raise InvalidConfigKeyException(kind, key, table.keys()) from None

    def charity_account(self, key: str) -> str:
        """Account id in the charity realm, e.g. 'TAX_ACCOUNT'."""
        return self._resolve("charity account", self.settings.charity_accounts, key)

    def enterprises_account(self, key: str) -> str:
        """Account id in the enterprises (shop) realm, e.g. 'AUKW_INTERCO_ACCOUNT'."""
        return self._resolve("enterprises account", self.settings.enterprises_accounts, key)

    def account(self, key: str, enterprises: bool = False) -> str:
        if enterprises:
            return self.enterprises_account(key)
        return self.charity_account(key)

    def class_id(self, key: str) -> str:
        return self._resolve("class", self.settings.classes, key)

    def description(self, key: str) -> str:
        return self._resolve("description", self.settings.descriptions, key)

    def tax_code(self, key: str) -> str:
        return self._resolve("tax code", self.settings.tax_codes, key)

    def realm_id(self, transaction_type: TransactionType) -> str:
        """Shop journals go to the enterprises ledger, everything else to the charity."""
        if transaction_type == TransactionType.SHOP_PAYROLL:
            return self.settings.enterprises_realm_id
        return self.settings.charity_realm_id

    def ni_account_for_employee(self, is_shop_employee: bool) -> str:
        """Employer NI for shop staff is recharged through the AUEW account."""
        if is_shop_employee:
            return self.charity_account("AUEW_ACCOUNT")
        return self.charity_account("EMPLOYER_NI_ACCOUNT")

    # ===========================================
    # THRESHOLDS
    # ===========================================

    @property
    def amount_zero_threshold(self) -> Decimal:
        return to_decimal(self.settings.amount_zero_threshold)

    @property
    def balance_tolerance(self) -> Decimal:
        return to_decimal(self.settings.balance_tolerance)

    @property
    def min_line_amount(self) -> Decimal:
        return to_decimal(self.settings.min_line_amount)

    @property
    def max_journal_lines(self) -> int:
        return self.settings.max_journal_lines

    @property
    def allocation_remainder_threshold(self) -> Decimal:
        return to_decimal(self.settings.allocation_remainder_threshold)

    @property
    def docnumber_max_length(self) -> int:
        return self.settings.qbo_docnumber_max_length

    @property
    def docnumber_prefix(self) -> str:
        return self.settings.docnumber_prefix

    @property
    def description_max_length(self) -> int:
        return self.settings.qbo_description_max_length

    def as_dict(self) -> Dict[str, Any]:
        """Thresholds as plain values, for logging and API responses."""
        return {
            "amount_zero_threshold": str(self.amount_zero_threshold),
            "balance_tolerance": str(self.balance_tolerance),
            "min_line_amount": str(self.min_line_amount),
            "max_journal_lines": self.max_journal_lines,
            "allocation_remainder_threshold": str(self.allocation_remainder_threshold),
            "docnumber_max_length": self.docnumber_max_length,
        }


_default_lookup: Optional[PayrollLookup] = None


def default_lookup() -> PayrollLookup:
    """Lookup built from the process-wide Settings."""
    global _default_lookup
    if _default_lookup is None:
        _default_lookup = PayrollLookup(get_settings())
    return _default_lookup
