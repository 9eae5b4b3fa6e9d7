"""
General Ledger Records

Chart-of-Accounts entries and the balance-bearing ledger accounts attached
to them. Balances are computed by the remote posting engine; these records
only carry what it reports.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from .records import ApiRecord


class AccountType(Enum):
    """Standard accounting account types"""
    ASSET = "ASSET"           # Debit normal balance
    LIABILITY = "LIABILITY"   # Credit normal balance
    EQUITY = "EQUITY"         # Credit normal balance
    REVENUE = "REVENUE"       # Credit normal balance
    EXPENSE = "EXPENSE"       # Debit normal balance


class LedgerAccountStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


@dataclass(frozen=True)
class ChartOfAccount(ApiRecord):
    """
    Hierarchical accounting category

    Root entries have no parent and level 1; a child shares its parent's
    account type and sits one level below it.
    """
    code: str
    name: str
    account_type: AccountType
    level: int = 1
    parent_code: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: bool = True

    @property
    def is_root(self) -> bool:
        return self.parent_code is None


@dataclass(frozen=True)
class LedgerAccount(ApiRecord):
    """Concrete GL account tied to one Chart-of-Accounts entry"""
    code: str
    name: str
    chart_of_account_code: str
    account_type: AccountType
    currency: str
    status: LedgerAccountStatus = LedgerAccountStatus.ACTIVE
    balance: Decimal = Decimal("0")
    available_balance: Decimal = Decimal("0")

    @property
    def is_active(self) -> bool:
        return self.status == LedgerAccountStatus.ACTIVE

    @property
    def display_name(self) -> str:
        return f"{self.code} - {self.name}"
