"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, Iterable, Sequence

# Import entities directly; shopledger.domain exports its services lazily
from shopledger.domain.entities import (
    Shop,
    Account,
    AccountCategory,
    Transaction,
    TransactionType,
    BalanceHistoryEntry,
    DashboardFigures,
)


class Database(ABC):
    """Abstract database interface for shopledger.

    Every mutating method is a single atomic unit: it either applies all of
    its writes or none of them.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Shop operations
    @abstractmethod
    def create_shop(
        self,
        name_en: str,
        name_ar: str,
        code: str,
        owner_user_id: str,
        timezone: str,
        default_accounts: Sequence[dict] = (),
    ) -> int:
        """Create a shop together with its seeded accounts. Returns shop ID."""
        pass

    @abstractmethod
    def get_shop(self, shop_id: int) -> Optional[Shop]:
        """Get shop by ID."""
        pass

    @abstractmethod
    def list_shops(
        self,
        owner_user_id: Optional[str] = None,
        shop_id: Optional[int] = None,
        include_inactive: bool = False,
    ) -> list[Shop]:
        """List shops, optionally filtered by owner or a single ID."""
        pass

    @abstractmethod
    def set_shop_active(self, shop_id: int, is_active: bool) -> None:
        """Activate or soft-deactivate a shop."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        shop_id: int,
        category: AccountCategory,
        name_en: str,
        name_ar: str,
        opening_balance: Decimal,
        is_default: bool = False,
        code: Optional[str] = None,
        bank_name: Optional[str] = None,
        parent_id: Optional[int] = None,
        max_depth: int = 3,
    ) -> int:
        """Create an account with current balance equal to its opening balance."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        shop_id: int,
        category: Optional[AccountCategory] = None,
        include_inactive: bool = False,
    ) -> list[Account]:
        """List a shop's accounts, default accounts first."""
        pass

    @abstractmethod
    def get_default_account(self, shop_id: int, category: AccountCategory) -> Optional[Account]:
        """Get the active default account of a category."""
        pass

    @abstractmethod
    def set_default_account(self, account_id: int) -> Account:
        """Make an account the only default of its (shop, category) pair."""
        pass

    @abstractmethod
    def deactivate_account(self, account_id: int, require_zero_balance: bool = True) -> Account:
        """Deactivate an account, clearing its default flag."""
        pass

    @abstractmethod
    def set_account_parent(
        self, account_id: int, parent_id: Optional[int], max_depth: int = 3
    ) -> Account:
        """Move an expense account under another one, or to the top level.

        Raises:
            InvalidHierarchyError: If the parent is unusable, the move would
                create a cycle, or the tree would exceed max_depth levels
        """
        pass

    @abstractmethod
    def get_account_shop_ids(self, account_ids: Iterable[int]) -> dict[int, int]:
        """Map each existing account ID to its shop ID."""
        pass

    # Transaction operations
    @abstractmethod
    def record_transaction(
        self,
        shop_id: int,
        transaction_type: TransactionType,
        amount: Decimal,
        debit_account_id: int,
        credit_account_id: int,
        created_by_user_id: str,
        created_at: datetime,
        amount_paid: Optional[Decimal] = None,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Transaction:
        """Insert a transaction and apply both balance deltas atomically."""
        pass

    @abstractmethod
    def reverse_transaction(
        self,
        transaction_id: int,
        created_by_user_id: str,
        created_at: datetime,
        description: Optional[str] = None,
    ) -> Transaction:
        """Insert the compensating entry and mark the original reversed."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def get_transaction_by_idempotency_key(self, shop_id: int, key: str) -> Optional[Transaction]:
        """Get the transaction recorded under an idempotency key."""
        pass

    @abstractmethod
    def get_transaction_shop_ids(self, transaction_ids: Iterable[int]) -> dict[int, int]:
        """Map each existing transaction ID to its shop ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        shop_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        account_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions newest first, with created_at in [start, end)."""
        pass

    @abstractmethod
    def get_dashboard_figures(self, shop_id: int, start: datetime, end: datetime) -> DashboardFigures:
        """Read balances, per-type totals in [start, end) and the unsynced count.

        Every figure comes from one consistent snapshot. Reversals count
        negative in the totals.
        """
        pass

    @abstractmethod
    def mark_transactions_synced(
        self, shop_id: int, transaction_ids: Iterable[int], synced_at: datetime
    ) -> int:
        """Mark transactions synced. Returns number newly marked."""
        pass

    # Balance adjustment operations
    @abstractmethod
    def apply_balance_adjustment(
        self,
        account: Account,
        new_balance: Decimal,
        change_reason: str,
        created_by_user_id: str,
        created_at: datetime,
    ) -> BalanceHistoryEntry:
        """Set a balance if the account version is unchanged and record the change.

        Raises:
            ConcurrentModificationError: If the account changed since it was read
        """
        pass

    @abstractmethod
    def list_balance_history(
        self,
        shop_id: int,
        account_id: Optional[int] = None,
        category: Optional[AccountCategory] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[BalanceHistoryEntry]:
        """List balance history entries, most recent first."""
        pass
