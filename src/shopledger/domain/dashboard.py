"""Dashboard aggregation service."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from shopledger.database.base import Database
from shopledger.domain.entities import (
    CallerContext,
    DailyAggregate,
    DashboardSnapshot,
    Shop,
    Transaction,
    TransactionType,
)
from shopledger.domain.tenancy import TenancyGuard
from shopledger.utils.date_parser import local_day_bounds, local_today, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class DashboardService:
    """Read-only point-in-time summaries for a shop.

    Balances are summed live from the accounts table and daily figures from
    the transactions table on every call, all inside one storage snapshot.
    Nothing is cached.
    """

    def __init__(
        self,
        db: Database,
        guard: Optional[TenancyGuard] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize dashboard service.

        Args:
            db: Database instance
            guard: Tenancy guard (one is created for db if omitted)
            clock: Returns the current UTC time; decides "today"
        """
        self.db = db
        self.guard = guard or TenancyGuard(db)
        self.clock = clock

    def _day_window(self, shop: Shop, day: Optional[date]) -> tuple[date, datetime, datetime]:
        day = day or local_today(shop.timezone, self.clock())
        start, end = local_day_bounds(day, shop.timezone)
        return day, start, end

    def get_dashboard(
        self, caller: CallerContext, shop_id: int, day: Optional[date] = None
    ) -> DashboardSnapshot:
        """Build the dashboard for a shop.

        Args:
            caller: Authenticated caller
            shop_id: Shop to summarize
            day: Local calendar day for the stats (defaults to today in the
                shop's timezone)

        Returns:
            Snapshot with live cash and bank balances, the day's aggregate and
            the number of transactions awaiting sync
        """
        shop = self.guard.authorize(caller, shop_id)
        as_of = self.clock()
        day, start, end = self._day_window(shop, day)

        figures = self.db.get_dashboard_figures(shop.id, start, end)
        totals = figures.totals
        today_stats = DailyAggregate(
            sales=totals.get(TransactionType.SALE, ZERO),
            purchases=totals.get(TransactionType.PURCHASE, ZERO),
            expenses=totals.get(TransactionType.EXPENSE, ZERO),
        )

        return DashboardSnapshot(
            shop_id=shop.id,
            day=day,
            cash_balance=figures.cash_balance,
            bank_balance=figures.bank_balance,
            today_stats=today_stats,
            pending_sync_count=figures.pending_sync_count,
            window_start=start,
            window_end=end,
            as_of=as_of,
        )

    def get_daily_transactions(
        self, caller: CallerContext, shop_id: int, day: Optional[date] = None
    ) -> list[Transaction]:
        """List the transactions of one local day, newest first."""
        shop = self.guard.authorize(caller, shop_id)
        _, start, end = self._day_window(shop, day)
        return self.db.list_transactions(shop.id, start=start, end=end)

    def mark_synced(self, caller: CallerContext, shop_id: int, transaction_ids: Iterable[int]) -> int:
        """Acknowledge transactions as synced to a client.

        Already-synced transactions are left untouched.

        Returns:
            Number of transactions newly marked
        """
        transaction_ids = list(transaction_ids)
        shop = self.guard.authorize(caller, shop_id, transaction_ids=transaction_ids)
        marked = self.db.mark_transactions_synced(shop.id, transaction_ids, self.clock())
        logger.info(
            "Marked transactions synced",
            extra={"shop_id": shop.id, "count": marked, "user_id": caller.user_id},
        )
        return marked
