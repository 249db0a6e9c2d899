"""Account domain service."""

import logging
from decimal import Decimal
from typing import Any, Optional, Union

from shopledger.database.base import Database
from shopledger.domain.concurrency import run_with_retry
from shopledger.domain.entities import Account, AccountCategory, CallerContext
from shopledger.domain.errors import (
    InvalidAccountError,
    InvalidHierarchyError,
    ValidationError,
    account_not_usable,
)
from shopledger.domain.money import to_money
from shopledger.domain.tenancy import TenancyGuard

logger = logging.getLogger(__name__)

# Levels an expense account tree may have, the top level included
MAX_EXPENSE_DEPTH = 3

# Expense groupings a shop can import in one step; parents precede children
EXPENSE_ACCOUNT_TEMPLATES = [
    {"code": "SALARIES", "name_en": "Salaries and Wages", "name_ar": "المرتبات والأجور"},
    {"code": "UTILITIES", "name_en": "Utilities", "name_ar": "المرافق العامة"},
    {"code": "UTILITIES_ELECTRIC", "name_en": "Electricity", "name_ar": "الكهرباء", "parent_code": "UTILITIES"},
    {"code": "UTILITIES_WATER", "name_en": "Water", "name_ar": "المياه", "parent_code": "UTILITIES"},
    {"code": "SUPPLIES", "name_en": "Office Supplies", "name_ar": "اللوازم المكتبية"},
    {"code": "TRANSPORT", "name_en": "Transportation", "name_ar": "النقل والمواصلات"},
    {"code": "TRANSPORT_FUEL", "name_en": "Fuel", "name_ar": "الوقود", "parent_code": "TRANSPORT"},
    {
        "code": "TRANSPORT_MAINTENANCE",
        "name_en": "Vehicle Maintenance",
        "name_ar": "صيانة المركبات",
        "parent_code": "TRANSPORT",
    },
    {"code": "OTHER", "name_en": "Other", "name_ar": "أخرى"},
]


def parse_category(category: Union[AccountCategory, str]) -> AccountCategory:
    """Coerce a category name to AccountCategory.

    Raises:
        ValidationError: If the name is not a known category
    """
    try:
        return AccountCategory(str(category.value if isinstance(category, AccountCategory) else category).upper())
    except ValueError:
        allowed = ", ".join(c.value for c in AccountCategory)
        raise ValidationError(f"Unknown account category '{category}'. Expected one of: {allowed}")


class AccountService:
    """Service for managing accounts.

    Reads are open to every caller scoped to the shop. Creating accounts,
    changing defaults, grouping expense accounts and deactivating accounts
    are administrator actions.
    """

    def __init__(self, db: Database, guard: Optional[TenancyGuard] = None):
        """Initialize account service.

        Args:
            db: Database instance
            guard: Tenancy guard (one is created for db if omitted)
        """
        self.db = db
        self.guard = guard or TenancyGuard(db)

    def create_account(
        self,
        caller: CallerContext,
        shop_id: int,
        category: Union[AccountCategory, str],
        name_en: str,
        name_ar: str,
        opening_balance=Decimal("0.00"),
        is_default: bool = False,
        code: Optional[str] = None,
        bank_name: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> Account:
        """Create a new account.

        The current balance starts equal to the opening balance. When
        is_default is set, the previous default of the category is cleared
        in the same storage transaction.

        Args:
            caller: Authenticated administrator
            shop_id: Owning shop
            category: Account category
            name_en: English display name
            name_ar: Arabic display name
            opening_balance: Opening balance (two decimals, may be negative)
            is_default: Make this the category's default account
            code: Optional account code, unique within the shop
            bank_name: Optional bank name for bank accounts
            parent_id: Expense account to group this one under (expense
                accounts only)

        Returns:
            Created account

        Raises:
            AccessDeniedError: If the caller has no scope over the shop or is
                not an administrator
            ValidationError: If names or category are invalid
            InvalidAmountError: If the opening balance is not a valid amount
            InvalidHierarchyError: If parent_id cannot group the new account
            ConflictError: If the code already exists in the shop
        """
        shop = self.guard.authorize(caller, shop_id, require_active=True)
        self.guard.require_admin(caller, "create accounts")
        category = parse_category(category)

        name_en = (name_en or "").strip()
        name_ar = (name_ar or "").strip()
        if not name_en or not name_ar:
            raise ValidationError("Account names are required in both locales")
        if parent_id is not None and category != AccountCategory.EXPENSE:
            raise InvalidHierarchyError("Only expense accounts can be grouped under a parent")

        opening_balance = to_money(opening_balance, "opening_balance")
        code = code.strip() if code and code.strip() else None

        account_id = run_with_retry(
            lambda: self.db.create_account(
                shop_id=shop.id,
                category=category,
                name_en=name_en,
                name_ar=name_ar,
                opening_balance=opening_balance,
                is_default=is_default,
                code=code,
                bank_name=bank_name,
                parent_id=parent_id,
                max_depth=MAX_EXPENSE_DEPTH,
            ),
            "create_account",
        )
        logger.info(
            "Created account",
            extra={
                "shop_id": shop.id,
                "account_id": account_id,
                "category": category.value,
                "user_id": caller.user_id,
            },
        )
        return self.db.get_account(account_id)

    def get_account(self, caller: CallerContext, account_id: int) -> Account:
        """Get an account the caller is authorized for."""
        _, account = self.guard.authorize_account(caller, account_id)
        return account

    def list_accounts(
        self,
        caller: CallerContext,
        shop_id: int,
        category: Optional[Union[AccountCategory, str]] = None,
        include_inactive: bool = False,
    ) -> list[Account]:
        """List a shop's accounts, optionally of a single category."""
        shop = self.guard.authorize(caller, shop_id)
        if category is not None:
            category = parse_category(category)
        return self.db.list_accounts(shop.id, category=category, include_inactive=include_inactive)

    def get_default_account(
        self, caller: CallerContext, shop_id: int, category: Union[AccountCategory, str]
    ) -> Optional[Account]:
        """Get a shop's default account of a category, if one is set."""
        shop = self.guard.authorize(caller, shop_id)
        return self.db.get_default_account(shop.id, parse_category(category))

    def set_default(
        self, caller: CallerContext, account_id: int, category: Union[AccountCategory, str]
    ) -> Account:
        """Make an account the default of its category.

        Raises:
            AccessDeniedError: If the caller is not an administrator
            InvalidAccountError: If the account is inactive or not of the category
        """
        shop, account = self.guard.authorize_account(caller, account_id, require_active=True)
        self.guard.require_admin(caller, "change default accounts")
        category = parse_category(category)
        if account.category != category or not account.is_active:
            raise InvalidAccountError(account_not_usable(account_id))

        updated = run_with_retry(lambda: self.db.set_default_account(account_id), "set_default")
        logger.info(
            "Changed default account",
            extra={
                "shop_id": shop.id,
                "account_id": account_id,
                "category": category.value,
                "user_id": caller.user_id,
            },
        )
        return updated

    def deactivate(self, caller: CallerContext, account_id: int, override: bool = False) -> Account:
        """Deactivate an account.

        An account with a nonzero balance is only deactivated when override
        is passed. Expense accounts that still group active accounts cannot
        be deactivated.

        Raises:
            AccessDeniedError: If the caller is not an administrator
            NonZeroBalanceError: If the balance is nonzero and override is not set
            InvalidHierarchyError: If active expense accounts are grouped under it
        """
        shop, account = self.guard.authorize_account(caller, account_id, require_active=True)
        self.guard.require_admin(caller, "deactivate accounts")
        if not account.is_active:
            return account

        deactivated = run_with_retry(
            lambda: self.db.deactivate_account(account_id, require_zero_balance=not override),
            "deactivate",
        )
        if override and deactivated.current_balance != 0:
            logger.warning(
                "Deactivated account with nonzero balance",
                extra={
                    "shop_id": shop.id,
                    "account_id": account_id,
                    "balance": str(deactivated.current_balance),
                    "user_id": caller.user_id,
                },
            )
        else:
            logger.info(
                "Deactivated account",
                extra={"shop_id": shop.id, "account_id": account_id, "user_id": caller.user_id},
            )
        return deactivated

    def set_parent(self, caller: CallerContext, account_id: int, parent_id: Optional[int]) -> Account:
        """Group an expense account under another, or move it to the top level.

        Args:
            caller: Authenticated administrator
            account_id: Expense account to move
            parent_id: New parent expense account, or None for the top level

        Returns:
            The moved account

        Raises:
            AccessDeniedError: If either account is foreign or the caller is
                not an administrator
            InvalidHierarchyError: If the move would create a cycle, exceed
                MAX_EXPENSE_DEPTH levels, or the accounts are not expense accounts
        """
        shop, _ = self.guard.authorize_account(caller, account_id, require_active=True)
        if parent_id is not None:
            self.guard.authorize(caller, shop.id, account_ids=[parent_id])
        self.guard.require_admin(caller, "group expense accounts")

        moved = run_with_retry(
            lambda: self.db.set_account_parent(account_id, parent_id, max_depth=MAX_EXPENSE_DEPTH),
            "set_parent",
        )
        logger.info(
            "Moved expense account",
            extra={
                "shop_id": shop.id,
                "account_id": account_id,
                "parent_id": parent_id,
                "user_id": caller.user_id,
            },
        )
        return moved

    def get_expense_tree(
        self, caller: CallerContext, shop_id: int, include_inactive: bool = False
    ) -> list[dict[str, Any]]:
        """Get a shop's expense accounts as a tree.

        Returns:
            Top-level nodes, each a dict with "account", "depth" (0 for the
            top level) and "children" (nested nodes), ordered by code then name
        """
        accounts = self.list_accounts(
            caller, shop_id, category=AccountCategory.EXPENSE, include_inactive=include_inactive
        )
        visible = {acc.id for acc in accounts}
        accounts.sort(key=lambda acc: (acc.code or "", acc.name_en))

        def build_tree(parent_id: Optional[int], depth: int) -> list[dict[str, Any]]:
            result = []
            for acc in accounts:
                # Accounts whose parent is hidden are shown at the top level
                acc_parent = acc.parent_id if acc.parent_id in visible else None
                if acc_parent == parent_id:
                    result.append(
                        {"account": acc, "depth": depth, "children": build_tree(acc.id, depth + 1)}
                    )
            return result

        return build_tree(None, 0)

    def import_expense_templates(self, caller: CallerContext, shop_id: int) -> tuple[list[Account], int]:
        """Create the standard expense groupings a shop does not have yet.

        Templates whose code already exists in the shop are skipped, so the
        import can be repeated safely.

        Returns:
            Tuple of (created accounts, number of skipped templates)
        """
        shop = self.guard.authorize(caller, shop_id, require_active=True)
        self.guard.require_admin(caller, "import expense accounts")

        by_code = {
            acc.code: acc for acc in self.db.list_accounts(shop.id, include_inactive=True) if acc.code
        }
        created: list[Account] = []
        skipped = 0
        for template in EXPENSE_ACCOUNT_TEMPLATES:
            if template["code"] in by_code:
                skipped += 1
                continue
            parent = by_code.get(template.get("parent_code"))
            account_id = run_with_retry(
                lambda: self.db.create_account(
                    shop_id=shop.id,
                    category=AccountCategory.EXPENSE,
                    name_en=template["name_en"],
                    name_ar=template["name_ar"],
                    opening_balance=Decimal("0.00"),
                    code=template["code"],
                    parent_id=parent.id if parent is not None else None,
                    max_depth=MAX_EXPENSE_DEPTH,
                ),
                "import_expense_templates",
            )
            account = self.db.get_account(account_id)
            by_code[account.code] = account
            created.append(account)

        logger.info(
            "Imported expense accounts",
            extra={
                "shop_id": shop.id,
                "created": len(created),
                "skipped": skipped,
                "user_id": caller.user_id,
            },
        )
        return created, skipped
