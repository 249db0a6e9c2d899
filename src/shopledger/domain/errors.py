"""Shared domain error messages and error types.

Every error carries a stable, locale-independent ``code`` so transports can
map rejections to their own status codes and translated messages.
"""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    code = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Amount is not a positive, finite, two-decimal value."""

    code = "INVALID_AMOUNT"


class InvalidAccountError(ValidationError):
    """Account is missing, inactive, foreign to the shop or of the wrong category."""

    code = "INVALID_ACCOUNT"


class SameAccountError(ValidationError):
    """Debit and credit sides reference the same account."""

    code = "SAME_ACCOUNT"


class ReasonRequiredError(ValidationError):
    """A balance adjustment was requested without a reason."""

    code = "REASON_REQUIRED"


class InvalidHierarchyError(ValidationError):
    """Expense account grouping would break the tree or its depth limit."""

    code = "INVALID_HIERARCHY"


class AccessDeniedError(DomainError):
    """Caller has no scope over the shop or resource.

    The message never distinguishes a missing resource from a foreign one.
    """

    code = "DENIED"

    def __init__(self, message: str = "Resource not found or access denied"):
        super().__init__(message)


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    code = "NOT_FOUND"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    code = "CONFLICT"


class ConcurrentModificationError(ConflictError):
    """An account changed underneath an optimistic write; safe to retry."""

    code = "CONCURRENT_MODIFICATION"


class IdempotencyConflictError(ConflictError):
    """Idempotency key was reused for a different request."""

    code = "IDEMPOTENCY_CONFLICT"


class AlreadyReversedError(ConflictError):
    """Transaction was already reversed or is itself a reversal."""

    code = "ALREADY_REVERSED"


class IntegrityViolationError(DomainError):
    """Operation would break a ledger integrity rule."""

    code = "INTEGRITY_VIOLATION"


class NonZeroBalanceError(IntegrityViolationError):
    """Account still holds a balance and cannot be deactivated."""

    code = "NON_ZERO_BALANCE"


class DirectBalanceMutationError(IntegrityViolationError):
    """Balance fields were written outside the ledger or adjustment paths."""

    code = "DIRECT_BALANCE_MUTATION"


class ShopInactiveError(IntegrityViolationError):
    """Writes were attempted against a deactivated shop."""

    code = "SHOP_INACTIVE"


def account_not_usable(account_id: int) -> str:
    """Return message for an account that cannot take part in a write."""
    return f"Account {account_id} does not exist in this shop or is inactive"


def no_default_account(category: str) -> str:
    """Return message when a counter-account cannot be resolved by default."""
    return f"No default {category.lower()} account is configured for this shop"


def same_account(account_id: int) -> str:
    """Return message for a transaction that debits and credits one account."""
    return f"Debit and credit account must differ (both are {account_id})"


def invalid_amount(field: str, value: object, detail: str) -> str:
    """Return message for an amount that failed validation."""
    return f"Invalid {field} '{value}': {detail}"


def non_zero_balance(account_id: int, balance: object) -> str:
    """Return message when deactivation is blocked by a balance."""
    return (
        f"Cannot deactivate account {account_id}: balance is {balance}. "
        "Bring the balance to zero or deactivate with override."
    )


def already_reversed(transaction_id: int) -> str:
    """Return message for a transaction that cannot be reversed again."""
    return f"Transaction {transaction_id} is already reversed or is a reversal"


def idempotency_conflict(key: str) -> str:
    """Return message when an idempotency key is reused with other data."""
    return f"Idempotency key '{key}' was already used for a different transaction"


def duplicate_shop_code(code: str) -> str:
    """Return message for duplicate shop code."""
    return f"Shop with code '{code}' already exists"


def duplicate_account_code(code: str) -> str:
    """Return message for duplicate account code within a shop."""
    return f"Account with code '{code}' already exists in this shop"


def invalid_parent(parent_id: int) -> str:
    """Return message for a parent that cannot group expense accounts."""
    return f"Account {parent_id} cannot group expense accounts: it must be an active expense account of this shop"


def has_active_children(account_id: int) -> str:
    """Return message when deactivation would orphan grouped expense accounts."""
    return f"Account {account_id} still groups active expense accounts; move or deactivate them first"


def circular_hierarchy(account_id: int, parent_id: int) -> str:
    """Return message when a move would put an account under its own subtree."""
    return f"Moving account {account_id} under account {parent_id} would create a circular hierarchy"


def hierarchy_too_deep(max_depth: int) -> str:
    """Return message when an expense hierarchy would exceed its depth limit."""
    return f"Expense accounts can be nested at most {max_depth} levels deep"
