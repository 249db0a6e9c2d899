"""Ledger engine: records and reverses double-entry transactions."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Union

from shopledger.database.base import Database
from shopledger.domain.concurrency import run_with_retry
from shopledger.domain.entities import (
    Account,
    AccountCategory,
    CallerContext,
    Transaction,
    TransactionType,
)
from shopledger.domain.errors import (
    AlreadyReversedError,
    IdempotencyConflictError,
    InvalidAccountError,
    SameAccountError,
    ValidationError,
    account_not_usable,
    already_reversed,
    idempotency_conflict,
    no_default_account,
    same_account,
)
from shopledger.domain.money import to_money
from shopledger.domain.tenancy import TenancyGuard
from shopledger.utils.date_parser import utc_now

logger = logging.getLogger(__name__)

# (debit category, credit category) used when a side is not given explicitly
DEFAULT_COUNTER_ACCOUNTS = {
    TransactionType.SALE: (AccountCategory.CASH, AccountCategory.CUSTOMER),
    TransactionType.PURCHASE: (AccountCategory.CUSTOMER, AccountCategory.CASH),
    TransactionType.EXPENSE: (AccountCategory.EXPENSE, AccountCategory.CASH),
}


def parse_transaction_type(transaction_type: Union[TransactionType, str]) -> TransactionType:
    """Coerce a type name to TransactionType.

    Raises:
        ValidationError: If the name is not a known transaction type
    """
    if isinstance(transaction_type, TransactionType):
        return transaction_type
    try:
        return TransactionType(str(transaction_type).upper())
    except ValueError:
        allowed = ", ".join(t.value for t in TransactionType)
        raise ValidationError(
            f"Unknown transaction type '{transaction_type}'. Expected one of: {allowed}"
        )


class LedgerService:
    """Service for recording transactions.

    This is the only code path that moves ``current_balance`` as the result of
    a transaction. Each write is one storage transaction that locks both
    accounts, applies both deltas and inserts the ledger row.
    """

    def __init__(
        self,
        db: Database,
        guard: Optional[TenancyGuard] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize ledger service.

        Args:
            db: Database instance
            guard: Tenancy guard (one is created for db if omitted)
            clock: Returns the current UTC time; used for created_at stamps
        """
        self.db = db
        self.guard = guard or TenancyGuard(db)
        self.clock = clock

    def record_transaction(
        self,
        caller: CallerContext,
        shop_id: int,
        transaction_type: Union[TransactionType, str],
        amount,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        amount_paid=None,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction and update both account balances atomically.

        Args:
            caller: Authenticated caller
            shop_id: Shop the transaction belongs to
            transaction_type: SALE, PURCHASE, EXPENSE, PAYMENT or TRANSFER
            amount: Positive amount with at most two decimal places
            debit_account_id: Account whose balance increases (defaults by type)
            credit_account_id: Account whose balance decreases (defaults by type)
            amount_paid: Optional amount actually settled (informational)
            description: Optional free-text description
            idempotency_key: Optional client key; a repeated request with the
                same key returns the originally recorded transaction

        Returns:
            Recorded (or previously recorded) transaction

        Raises:
            AccessDeniedError: If the caller has no scope over the shop or a
                referenced account
            ShopInactiveError: If the shop is deactivated
            InvalidAmountError: If amount or amount_paid is invalid
            InvalidAccountError: If an account is inactive or cannot be resolved
            SameAccountError: If debit and credit resolve to one account
            IdempotencyConflictError: If the key was used for another request
            ConcurrentModificationError: If retries are exhausted
        """
        explicit_ids = [i for i in (debit_account_id, credit_account_id) if i is not None]
        shop = self.guard.authorize(caller, shop_id, account_ids=explicit_ids, require_active=True)

        transaction_type = parse_transaction_type(transaction_type)
        amount = to_money(amount, "amount", positive=True)

        description = description.strip() if description and description.strip() else None
        idempotency_key = idempotency_key.strip() if idempotency_key and idempotency_key.strip() else None

        def attempt() -> Transaction:
            if idempotency_key is not None:
                existing = self.db.get_transaction_by_idempotency_key(shop.id, idempotency_key)
                if existing is not None:
                    return self._replay(
                        existing,
                        transaction_type,
                        amount,
                        debit_account_id,
                        credit_account_id,
                        amount_paid,
                        idempotency_key,
                    )

            debit = self._resolve_account(shop.id, debit_account_id, transaction_type, 0)
            credit = self._resolve_account(shop.id, credit_account_id, transaction_type, 1)
            if debit.id == credit.id:
                raise SameAccountError(same_account(debit.id))

            paid = None
            if amount_paid is not None:
                paid = to_money(amount_paid, "amount_paid", non_negative=True)

            return self.db.record_transaction(
                shop_id=shop.id,
                transaction_type=transaction_type,
                amount=amount,
                debit_account_id=debit.id,
                credit_account_id=credit.id,
                created_by_user_id=caller.user_id,
                created_at=self.clock(),
                amount_paid=paid,
                description=description,
                idempotency_key=idempotency_key,
            )

        transaction = run_with_retry(attempt, "record_transaction")
        logger.info(
            "Recorded transaction",
            extra={
                "shop_id": shop.id,
                "transaction_id": transaction.id,
                "transaction_type": transaction.transaction_type.value,
                "amount": str(transaction.amount),
                "user_id": caller.user_id,
            },
        )
        return transaction

    def _resolve_account(
        self,
        shop_id: int,
        account_id: Optional[int],
        transaction_type: TransactionType,
        side: int,
    ) -> Account:
        """Load an explicit account or the shop default for one side of a type."""
        if account_id is None:
            categories = DEFAULT_COUNTER_ACCOUNTS.get(transaction_type)
            if categories is None:
                raise InvalidAccountError(
                    f"{transaction_type.value} transactions require both debit and credit accounts"
                )
            account = self.db.get_default_account(shop_id, categories[side])
            if account is None:
                raise InvalidAccountError(no_default_account(categories[side].value))
        else:
            account = self.db.get_account(account_id)

        if account is None or account.shop_id != shop_id or not account.is_active:
            raise InvalidAccountError(account_not_usable(account.id if account else account_id))
        return account

    def _replay(
        self,
        existing: Transaction,
        transaction_type: TransactionType,
        amount: Decimal,
        debit_account_id: Optional[int],
        credit_account_id: Optional[int],
        amount_paid,
        idempotency_key: str,
    ) -> Transaction:
        paid = None if amount_paid is None else to_money(amount_paid, "amount_paid", non_negative=True)
        matches = (
            existing.transaction_type == transaction_type
            and existing.amount == amount
            and existing.amount_paid == paid
            and (debit_account_id is None or existing.debit_account_id == debit_account_id)
            and (credit_account_id is None or existing.credit_account_id == credit_account_id)
        )
        if not matches:
            raise IdempotencyConflictError(idempotency_conflict(idempotency_key))
        logger.info(
            "Returning transaction recorded under idempotency key",
            extra={"shop_id": existing.shop_id, "transaction_id": existing.id},
        )
        return existing

    def reverse_transaction(
        self, caller: CallerContext, transaction_id: int, reason: Optional[str] = None
    ) -> Transaction:
        """Reverse a transaction with a compensating entry.

        The compensating entry has the same type and amount with debit and
        credit swapped. The original stays in the ledger, marked reversed.

        Args:
            caller: Authenticated caller
            transaction_id: Transaction to reverse
            reason: Optional description for the compensating entry

        Returns:
            The compensating transaction

        Raises:
            AccessDeniedError: If the transaction is missing or foreign
            AlreadyReversedError: If it was already reversed or is a reversal
            InvalidAccountError: If either account has been deactivated
        """
        shop, original = self.guard.authorize_transaction(caller, transaction_id, require_active=True)
        if original.is_reversal or original.is_reversed:
            raise AlreadyReversedError(already_reversed(transaction_id))

        reason = reason.strip() if reason and reason.strip() else None
        reversal = run_with_retry(
            lambda: self.db.reverse_transaction(
                transaction_id,
                created_by_user_id=caller.user_id,
                created_at=self.clock(),
                description=reason,
            ),
            "reverse_transaction",
        )
        logger.info(
            "Reversed transaction",
            extra={
                "shop_id": shop.id,
                "transaction_id": transaction_id,
                "reversal_id": reversal.id,
                "user_id": caller.user_id,
            },
        )
        return reversal

    def get_transaction(self, caller: CallerContext, transaction_id: int) -> Transaction:
        """Get a transaction the caller is authorized for."""
        _, transaction = self.guard.authorize_transaction(caller, transaction_id)
        return transaction

    def list_transactions(
        self,
        caller: CallerContext,
        shop_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        account_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List a shop's transactions, newest first.

        Args:
            caller: Authenticated caller
            shop_id: Shop to list
            start: Optional inclusive lower bound on created_at
            end: Optional exclusive upper bound on created_at
            account_id: Only transactions touching this account
        """
        account_ids = [account_id] if account_id is not None else []
        shop = self.guard.authorize(caller, shop_id, account_ids=account_ids)
        return self.db.list_transactions(shop.id, start=start, end=end, account_id=account_id)
