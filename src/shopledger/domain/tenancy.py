"""Tenancy guard: resolves and enforces a caller's shop scope."""

import logging
from typing import Iterable

from shopledger.database.base import Database
from shopledger.domain.entities import Account, CallerContext, Shop, Transaction
from shopledger.domain.errors import AccessDeniedError, ShopInactiveError

logger = logging.getLogger(__name__)


class TenancyGuard:
    """Authorizes callers against shops and shop-owned resources.

    Admins are authorized for the shops recorded as theirs in storage; other
    callers only for the shop the auth layer assigned them. Every failure is
    the same AccessDeniedError, whether the resource is missing or foreign.
    """

    def __init__(self, db: Database):
        """Initialize tenancy guard.

        Args:
            db: Database instance
        """
        self.db = db

    def has_scope(self, caller: CallerContext, shop: Shop) -> bool:
        """Return True if the caller may act on the shop."""
        if caller.is_admin:
            return shop.owner_user_id == caller.user_id
        return caller.assigned_shop_id is not None and caller.assigned_shop_id == shop.id

    def authorize(
        self,
        caller: CallerContext,
        shop_id: int,
        account_ids: Iterable[int] = (),
        transaction_ids: Iterable[int] = (),
        require_active: bool = False,
    ) -> Shop:
        """Authorize a caller for a shop and every referenced resource.

        Args:
            caller: Authenticated caller context
            shop_id: Shop the operation targets
            account_ids: Accounts the operation references
            transaction_ids: Transactions the operation references
            require_active: Reject inactive shops (used by writes)

        Returns:
            The authorized shop

        Raises:
            AccessDeniedError: If the caller lacks scope or any resource is
                missing or belongs to another shop
            ShopInactiveError: If require_active is set and the shop is inactive
        """
        shop = self.db.get_shop(shop_id) if shop_id is not None else None
        if shop is None or not self.has_scope(caller, shop):
            self._deny(caller, shop_id)

        account_ids = set(account_ids)
        if account_ids:
            owners = self.db.get_account_shop_ids(account_ids)
            if any(owners.get(account_id) != shop.id for account_id in account_ids):
                self._deny(caller, shop_id)

        transaction_ids = set(transaction_ids)
        if transaction_ids:
            owners = self.db.get_transaction_shop_ids(transaction_ids)
            if any(owners.get(txn_id) != shop.id for txn_id in transaction_ids):
                self._deny(caller, shop_id)

        if require_active and not shop.is_active:
            raise ShopInactiveError(f"Shop {shop.id} is inactive")

        return shop

    def authorize_account(
        self, caller: CallerContext, account_id: int, require_active: bool = False
    ) -> tuple[Shop, Account]:
        """Resolve an account's shop and authorize the caller for it."""
        account = self.db.get_account(account_id)
        if account is None:
            self._deny(caller, None)
        shop = self.authorize(caller, account.shop_id, require_active=require_active)
        return shop, account

    def authorize_transaction(
        self, caller: CallerContext, transaction_id: int, require_active: bool = False
    ) -> tuple[Shop, Transaction]:
        """Resolve a transaction's shop and authorize the caller for it."""
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            self._deny(caller, None)
        shop = self.authorize(caller, transaction.shop_id, require_active=require_active)
        return shop, transaction

    def require_admin(self, caller: CallerContext, action: str) -> None:
        """Reject non-admin callers for admin-only actions."""
        if not caller.is_admin:
            logger.warning(
                "Non-admin caller attempted admin action",
                extra={"user_id": caller.user_id, "action": action},
            )
            raise AccessDeniedError(f"Administrator role required to {action}")

    def _deny(self, caller: CallerContext, shop_id) -> None:
        logger.warning(
            "Access denied",
            extra={"user_id": caller.user_id, "role": caller.role.value, "shop_id": shop_id},
        )
        raise AccessDeniedError()
