"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so services never hold live ORM
objects whose balance attributes could be mutated outside a sanctioned path.
"""

from decimal import Decimal
from typing import Optional

from shopledger.domain import entities as domain
from shopledger.database.models import (
    Shop as ORMShop,
    Account as ORMAccount,
    Transaction as ORMTransaction,
    BalanceHistory as ORMBalanceHistory,
)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT)


def _optional_money(value) -> Optional[Decimal]:
    return None if value is None else _money(value)


def shop_to_domain(orm_shop: ORMShop) -> domain.Shop:
    """Convert SQLAlchemy Shop model to domain Shop entity."""
    return domain.Shop(
        id=orm_shop.id,
        name_en=orm_shop.name_en,
        name_ar=orm_shop.name_ar,
        code=orm_shop.code,
        owner_user_id=orm_shop.owner_user_id,
        timezone=orm_shop.timezone,
        is_active=orm_shop.is_active,
        created_at=orm_shop.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        shop_id=orm_account.shop_id,
        category=domain.AccountCategory(orm_account.category),
        name_en=orm_account.name_en,
        name_ar=orm_account.name_ar,
        code=orm_account.code,
        bank_name=orm_account.bank_name,
        opening_balance=_money(orm_account.opening_balance),
        current_balance=_money(orm_account.current_balance),
        is_default=orm_account.is_default,
        is_active=orm_account.is_active,
        version=orm_account.version,
        created_at=orm_account.created_at,
        parent_id=orm_account.parent_id,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        shop_id=orm_transaction.shop_id,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        amount=_money(orm_transaction.amount),
        amount_paid=_optional_money(orm_transaction.amount_paid),
        debit_account_id=orm_transaction.debit_account_id,
        credit_account_id=orm_transaction.credit_account_id,
        description=orm_transaction.description,
        created_at=orm_transaction.created_at,
        created_by_user_id=orm_transaction.created_by_user_id,
        idempotency_key=orm_transaction.idempotency_key,
        reverses_transaction_id=orm_transaction.reverses_transaction_id,
        reversed_at=orm_transaction.reversed_at,
        reversed_by_transaction_id=orm_transaction.reversed_by_transaction_id,
        synced_at=orm_transaction.synced_at,
    )


def balance_history_to_domain(orm_entry: ORMBalanceHistory) -> domain.BalanceHistoryEntry:
    """Convert SQLAlchemy BalanceHistory model to domain BalanceHistoryEntry entity."""
    return domain.BalanceHistoryEntry(
        id=orm_entry.id,
        shop_id=orm_entry.shop_id,
        account_id=orm_entry.account_id,
        account_category=domain.AccountCategory(orm_entry.account_category),
        previous_balance=_money(orm_entry.previous_balance),
        new_balance=_money(orm_entry.new_balance),
        change_amount=_money(orm_entry.change_amount),
        change_reason=orm_entry.change_reason,
        created_at=orm_entry.created_at,
        created_by_user_id=orm_entry.created_by_user_id,
    )
