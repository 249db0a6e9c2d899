"""Shop domain service."""

import logging
from decimal import Decimal
from typing import Optional

from shopledger.config import get_default_timezone
from shopledger.database.base import Database
from shopledger.domain.entities import AccountCategory, CallerContext, Shop
from shopledger.domain.errors import ValidationError
from shopledger.domain.tenancy import TenancyGuard
from shopledger.utils.date_parser import resolve_timezone

logger = logging.getLogger(__name__)


def default_accounts_for_shop(code: str) -> list[dict]:
    """Return the accounts every new shop starts with.

    Names carry the shop code as a suffix so accounts stay distinguishable
    when an owner looks across shops.
    """
    return [
        {
            "category": AccountCategory.CASH,
            "code": f"CASH-{code}",
            "name_en": f"Cash-{code}",
            "name_ar": f"النقد-{code}",
            "opening_balance": Decimal("0.00"),
            "is_default": True,
        },
        {
            "category": AccountCategory.CUSTOMER,
            "code": f"DSALES-{code}",
            "name_en": f"Direct Sales-{code}",
            "name_ar": f"المبيعات المباشرة-{code}",
            "opening_balance": Decimal("0.00"),
            "is_default": True,
        },
        {
            "category": AccountCategory.EXPENSE,
            "code": f"EXP-{code}",
            "name_en": f"General Expenses-{code}",
            "name_ar": f"المصروفات العامة-{code}",
            "opening_balance": Decimal("0.00"),
            "is_default": True,
        },
    ]


class ShopService:
    """Service for managing shops (tenants)."""

    def __init__(self, db: Database, guard: Optional[TenancyGuard] = None):
        """Initialize shop service.

        Args:
            db: Database instance
            guard: Tenancy guard (one is created for db if omitted)
        """
        self.db = db
        self.guard = guard or TenancyGuard(db)

    def create_shop(
        self,
        caller: CallerContext,
        name_en: str,
        name_ar: str,
        code: str,
        timezone: Optional[str] = None,
    ) -> Shop:
        """Create a shop owned by the calling administrator.

        The shop's default cash, direct-sales and expense accounts are created
        in the same storage transaction.

        Args:
            caller: Administrator creating the shop
            name_en: English display name
            name_ar: Arabic display name
            code: Unique shop code
            timezone: IANA timezone for day boundaries (defaults to
                SHOPLEDGER_DEFAULT_TIMEZONE)

        Returns:
            Created shop

        Raises:
            AccessDeniedError: If the caller is not an administrator
            ValidationError: If a name or code is blank or the timezone is unknown
            ConflictError: If the code is already used
        """
        self.guard.require_admin(caller, "create shops")

        name_en = (name_en or "").strip()
        name_ar = (name_ar or "").strip()
        code = (code or "").strip()
        if not name_en or not name_ar:
            raise ValidationError("Shop names are required in both locales")
        if not code:
            raise ValidationError("Shop code is required")

        timezone = timezone or get_default_timezone()
        try:
            resolve_timezone(timezone)
        except ValueError as e:
            raise ValidationError(str(e))

        shop_id = self.db.create_shop(
            name_en=name_en,
            name_ar=name_ar,
            code=code,
            owner_user_id=caller.user_id,
            timezone=timezone,
            default_accounts=default_accounts_for_shop(code),
        )
        logger.info("Created shop", extra={"shop_id": shop_id, "user_id": caller.user_id})
        return self.db.get_shop(shop_id)

    def get_shop(self, caller: CallerContext, shop_id: int) -> Shop:
        """Get a shop the caller is authorized for."""
        return self.guard.authorize(caller, shop_id)

    def list_shops(self, caller: CallerContext, include_inactive: bool = False) -> list[Shop]:
        """List the shops visible to the caller.

        Administrators see the shops they own; other callers see their
        assigned shop.
        """
        if caller.is_admin:
            return self.db.list_shops(owner_user_id=caller.user_id, include_inactive=include_inactive)
        if caller.assigned_shop_id is None:
            return []
        return self.db.list_shops(shop_id=caller.assigned_shop_id, include_inactive=include_inactive)

    def deactivate_shop(self, caller: CallerContext, shop_id: int) -> Shop:
        """Soft-deactivate a shop. Its ledger stays readable."""
        self.guard.require_admin(caller, "deactivate shops")
        self.guard.authorize(caller, shop_id)
        self.db.set_shop_active(shop_id, False)
        logger.info("Deactivated shop", extra={"shop_id": shop_id, "user_id": caller.user_id})
        return self.db.get_shop(shop_id)
