"""Resolve account references typed on the command line."""

from shopledger.domain.account import AccountService
from shopledger.domain.entities import CallerContext


def resolve_account(
    account_service: AccountService, caller: CallerContext, shop_id: int, account: str | int
) -> int:
    """Resolve an account ID, code or name within a shop to an account ID.

    Numeric references are treated as IDs and checked through the service, so
    an ID from another shop is denied rather than resolved. Other references
    are matched against the shop's active accounts by code, then by English
    or Arabic name.

    Args:
        account_service: AccountService instance
        caller: Caller performing the lookup
        shop_id: Shop to search
        account: Account ID, code or name

    Returns:
        Account ID

    Raises:
        ValueError: If no account matches or a name matches several accounts
        AccessDeniedError: If a numeric ID is missing or foreign
    """
    if isinstance(account, int):
        return account_service.get_account(caller, account).id

    reference = account.strip()
    if reference.isdigit():
        return account_service.get_account(caller, int(reference)).id

    accounts = account_service.list_accounts(caller, shop_id)
    for acc in accounts:
        if acc.code is not None and acc.code.lower() == reference.lower():
            return acc.id

    matches = [acc for acc in accounts if reference in (acc.name_en, acc.name_ar)]
    if len(matches) > 1:
        raise ValueError(f"Account name '{reference}' is ambiguous; use the account ID or code")
    if matches:
        return matches[0].id

    raise ValueError(f"Account '{reference}' not found")
