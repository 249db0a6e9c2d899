"""Transaction commands."""

import click
from shopledger.cli.account_resolution import resolve_account_or_exit
from shopledger.cli.day_resolution import resolve_day_or_exit
from shopledger.cli.error_handling import handle_domain_error, require_shop
from shopledger.domain.account import AccountService
from shopledger.domain.dashboard import DashboardService
from shopledger.domain.entities import Transaction, TransactionType
from shopledger.domain.ledger import LedgerService
from shopledger.utils.amount_parser import parse_amount


def format_transaction(txn: Transaction) -> str:
    """Render one transaction as a list row."""
    marker = ""
    if txn.is_reversal:
        marker = f" (reverses #{txn.reverses_transaction_id})"
    elif txn.is_reversed:
        marker = f" (reversed by #{txn.reversed_by_transaction_id})"
    return (
        f"#{txn.id:<5d} {txn.created_at:%Y-%m-%d %H:%M} | {txn.transaction_type.value:8s} | "
        f"{txn.amount:>12} | Dr {txn.debit_account_id} / Cr {txn.credit_account_id} | "
        f"{txn.description or ''}{marker}"
    )


@click.group()
def transaction_group():
    """Record and inspect transactions."""
    pass


@transaction_group.command("record")
@click.argument("transaction_type", type=click.Choice([t.value for t in TransactionType], case_sensitive=False))
@click.argument("amount")
@click.option("--debit", help="Debit account ID, code or name (defaults by type)")
@click.option("--credit", help="Credit account ID, code or name (defaults by type)")
@click.option("--paid", "amount_paid", help="Amount actually paid, if partial")
@click.option("--description", help="Transaction description")
@click.option("--key", "idempotency_key", help="Idempotency key; repeating it returns the first result")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def record_transaction(
    ctx,
    transaction_type: str,
    amount: str,
    debit: str | None,
    credit: str | None,
    amount_paid: str | None,
    description: str | None,
    idempotency_key: str | None,
    shop_id: int | None,
):
    """Record a transaction.

    SALE, PURCHASE and EXPENSE fall back to the shop's default accounts.
    PAYMENT and TRANSFER need both --debit and --credit.

    Examples:
        shopledger --shop 1 txn record SALE 150
        shopledger --shop 1 txn record TRANSFER 500 --debit "Al Rajhi" --credit CASH-RYD1
    """
    shop_id = require_shop(ctx, shop_id)
    db = ctx.obj["db"]
    account_service = AccountService(db)

    debit_id = resolve_account_or_exit(ctx, account_service, shop_id, debit) if debit else None
    credit_id = resolve_account_or_exit(ctx, account_service, shop_id, credit) if credit else None

    try:
        txn = LedgerService(db).record_transaction(
            ctx.obj["caller"],
            shop_id,
            transaction_type=transaction_type,
            amount=parse_amount(amount),
            debit_account_id=debit_id,
            credit_account_id=credit_id,
            amount_paid=parse_amount(amount_paid) if amount_paid is not None else None,
            description=description,
            idempotency_key=idempotency_key,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded {txn.transaction_type.value} of {txn.amount} (ID: {txn.id})")
    if txn.outstanding_amount:
        click.echo(f"Outstanding: {txn.outstanding_amount}")


@transaction_group.command("reverse")
@click.argument("transaction_id", type=int)
@click.option("--reason", help="Why the transaction is reversed")
@click.pass_context
def reverse_transaction(ctx, transaction_id: int, reason: str | None):
    """Reverse a transaction with a compensating entry."""
    try:
        reversal = LedgerService(ctx.obj["db"]).reverse_transaction(
            ctx.obj["caller"], transaction_id, reason=reason
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reversed transaction {transaction_id} (reversal ID: {reversal.id})")


@transaction_group.command("list")
@click.option("--day", help="Local day to show (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--account", help="Only transactions touching this account")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def list_transactions(ctx, day: str | None, account: str | None, shop_id: int | None):
    """List transactions, newest first."""
    shop_id = require_shop(ctx, shop_id)
    db = ctx.obj["db"]
    caller = ctx.obj["caller"]

    try:
        if day is not None:
            local_day = resolve_day_or_exit(ctx, shop_id, day)
            transactions = DashboardService(db).get_daily_transactions(caller, shop_id, day=local_day)
            if account is not None:
                account_id = resolve_account_or_exit(ctx, AccountService(db), shop_id, account)
                transactions = [
                    t for t in transactions if account_id in (t.debit_account_id, t.credit_account_id)
                ]
        else:
            account_id = None
            if account is not None:
                account_id = resolve_account_or_exit(ctx, AccountService(db), shop_id, account)
            transactions = LedgerService(db).list_transactions(caller, shop_id, account_id=account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return
    for txn in transactions:
        click.echo(format_transaction(txn))


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
