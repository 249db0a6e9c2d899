"""Domain model entities for shopledger.

These are pure data classes representing business concepts, independent of
database schema. Balances are only ever changed through the ledger and the
balance adjustment services, so entities are frozen snapshots.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Caller role as supplied by the authentication layer."""

    ADMIN = "ADMIN"
    USER = "USER"


class AccountCategory(str, Enum):
    """Explicit account category, fixed when the account is created."""

    CASH = "CASH"
    BANK = "BANK"
    CUSTOMER = "CUSTOMER"
    EXPENSE = "EXPENSE"


class TransactionType(str, Enum):
    """Kind of ledger movement."""

    SALE = "SALE"
    PURCHASE = "PURCHASE"
    EXPENSE = "EXPENSE"
    PAYMENT = "PAYMENT"
    TRANSFER = "TRANSFER"


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller, resolved by the excluded auth layer."""

    user_id: str
    role: Role
    assigned_shop_id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Shop:
    """Shop (tenant) domain entity."""

    id: int
    name_en: str
    name_ar: str
    code: str
    owner_user_id: str
    timezone: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Balance-holding account domain entity."""

    id: int
    shop_id: int
    category: AccountCategory
    name_en: str
    name_ar: str
    code: Optional[str]
    bank_name: Optional[str]
    opening_balance: Decimal
    current_balance: Decimal
    is_default: bool
    is_active: bool
    version: int
    created_at: datetime
    # Expense accounts only: the account this one is grouped under
    parent_id: Optional[int] = None


@dataclass(frozen=True)
class Transaction:
    """Double-entry transaction domain entity."""

    id: int
    shop_id: int
    transaction_type: TransactionType
    amount: Decimal
    amount_paid: Optional[Decimal]
    debit_account_id: int
    credit_account_id: int
    description: Optional[str]
    created_at: datetime
    created_by_user_id: str
    idempotency_key: Optional[str] = None
    reverses_transaction_id: Optional[int] = None
    reversed_at: Optional[datetime] = None
    reversed_by_transaction_id: Optional[int] = None
    synced_at: Optional[datetime] = None

    @property
    def is_reversal(self) -> bool:
        return self.reverses_transaction_id is not None

    @property
    def is_reversed(self) -> bool:
        return self.reversed_at is not None

    @property
    def outstanding_amount(self) -> Optional[Decimal]:
        """Part of the amount not yet paid, when amount_paid was recorded."""
        if self.amount_paid is None:
            return None
        return self.amount - self.amount_paid


@dataclass(frozen=True)
class BalanceHistoryEntry:
    """Audit record of an out-of-ledger balance change."""

    id: int
    shop_id: int
    account_id: int
    account_category: AccountCategory
    previous_balance: Decimal
    new_balance: Decimal
    change_amount: Decimal
    change_reason: str
    created_at: datetime
    created_by_user_id: str


@dataclass(frozen=True)
class DailyAggregate:
    """Derived per-day figures for a shop."""

    sales: Decimal = Decimal("0.00")
    purchases: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")

    @property
    def net_cash_flow(self) -> Decimal:
        return self.sales - self.purchases - self.expenses


@dataclass(frozen=True)
class DashboardFigures:
    """Balances and activity of one shop, read from a single storage snapshot."""

    cash_balance: Decimal
    bank_balance: Decimal
    totals: dict[TransactionType, Decimal]
    pending_sync_count: int


@dataclass(frozen=True)
class DashboardSnapshot:
    """Point-in-time dashboard figures for a shop."""

    shop_id: int
    day: date
    cash_balance: Decimal
    bank_balance: Decimal
    today_stats: DailyAggregate
    pending_sync_count: int
    window_start: datetime
    window_end: datetime
    as_of: datetime
