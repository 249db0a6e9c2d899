"""Balance adjustment service with an append-only audit trail."""

import logging
from datetime import datetime
from typing import Callable, Optional, Union

from shopledger.database.base import Database
from shopledger.domain.account import parse_category
from shopledger.domain.concurrency import run_with_retry
from shopledger.domain.entities import AccountCategory, BalanceHistoryEntry, CallerContext
from shopledger.domain.errors import (
    InvalidAccountError,
    ReasonRequiredError,
    ValidationError,
    account_not_usable,
)
from shopledger.domain.money import to_money
from shopledger.domain.tenancy import TenancyGuard
from shopledger.utils.date_parser import utc_now

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 500


def _check_page(limit: int, offset: int) -> None:
    if not 1 <= limit <= MAX_HISTORY_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_HISTORY_LIMIT}, got {limit}")
    if offset < 0:
        raise ValidationError(f"offset must not be negative, got {offset}")


class BalanceService:
    """Service for out-of-ledger balance corrections.

    Adjustments set an account to a new balance and record the change, the
    reason and the acting user. History entries are never updated or removed.
    """

    def __init__(
        self,
        db: Database,
        guard: Optional[TenancyGuard] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize balance service.

        Args:
            db: Database instance
            guard: Tenancy guard (one is created for db if omitted)
            clock: Returns the current UTC time; used for created_at stamps
        """
        self.db = db
        self.guard = guard or TenancyGuard(db)
        self.clock = clock

    def adjust_balance(
        self, caller: CallerContext, account_id: int, new_balance, change_reason: str
    ) -> BalanceHistoryEntry:
        """Set an account's balance and record the adjustment.

        The write is a compare-and-set on the account version; if a concurrent
        write wins, the account is re-read and the adjustment retried.

        Args:
            caller: Authenticated caller
            account_id: Account to adjust
            new_balance: Target balance (two decimals, may be negative)
            change_reason: Required explanation for the audit trail

        Returns:
            The recorded history entry

        Raises:
            AccessDeniedError: If the account is missing or foreign, or the
                caller is not an administrator
            ShopInactiveError: If the account's shop is deactivated
            ReasonRequiredError: If change_reason is blank
            InvalidAmountError: If new_balance is invalid
            InvalidAccountError: If the account is inactive
            ConcurrentModificationError: If retries are exhausted
        """
        shop, _ = self.guard.authorize_account(caller, account_id, require_active=True)
        self.guard.require_admin(caller, "adjust balances")

        change_reason = (change_reason or "").strip()
        if not change_reason:
            raise ReasonRequiredError("A reason is required for balance adjustments")
        new_balance = to_money(new_balance, "new_balance")

        def attempt() -> BalanceHistoryEntry:
            account = self.db.get_account(account_id)
            if account is None or not account.is_active:
                raise InvalidAccountError(account_not_usable(account_id))
            return self.db.apply_balance_adjustment(
                account,
                new_balance=new_balance,
                change_reason=change_reason,
                created_by_user_id=caller.user_id,
                created_at=self.clock(),
            )

        entry = run_with_retry(attempt, "adjust_balance")
        logger.info(
            "Adjusted account balance",
            extra={
                "shop_id": shop.id,
                "account_id": account_id,
                "change_amount": str(entry.change_amount),
                "user_id": caller.user_id,
            },
        )
        return entry

    def get_balance_history(
        self, caller: CallerContext, account_id: int, limit: int = 50, offset: int = 0
    ) -> list[BalanceHistoryEntry]:
        """List an account's adjustments, most recent first."""
        shop, _ = self.guard.authorize_account(caller, account_id)
        _check_page(limit, offset)
        return self.db.list_balance_history(shop.id, account_id=account_id, limit=limit, offset=offset)

    def get_shop_balance_history(
        self,
        caller: CallerContext,
        shop_id: int,
        category: Optional[Union[AccountCategory, str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[BalanceHistoryEntry]:
        """List adjustments across a shop, most recent first.

        Args:
            caller: Authenticated caller
            shop_id: Shop to list
            category: Only adjustments of accounts in this category
            start: Optional inclusive lower bound on created_at
            end: Optional exclusive upper bound on created_at
            limit: Page size (1..500)
            offset: Entries to skip
        """
        shop = self.guard.authorize(caller, shop_id)
        _check_page(limit, offset)
        if category is not None:
            category = parse_category(category)
        return self.db.list_balance_history(
            shop.id, category=category, start=start, end=end, limit=limit, offset=offset
        )
