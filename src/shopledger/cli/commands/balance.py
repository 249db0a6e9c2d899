"""Balance adjustment commands."""

import click
from shopledger.cli.account_resolution import resolve_account_or_exit
from shopledger.cli.error_handling import handle_domain_error, require_shop
from shopledger.domain.account import AccountService
from shopledger.domain.balance import BalanceService
from shopledger.utils.amount_parser import parse_amount


@click.group()
def balance_group():
    """Adjust balances and view the adjustment history."""
    pass


@balance_group.command("adjust")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_balance")
@click.option("--reason", required=True, help="Reason recorded in the audit history")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def adjust_balance(ctx, account: str, new_balance: str, reason: str, shop_id: int | None):
    """Set ACCOUNT's balance to NEW_BALANCE.

    Examples:
        shopledger --shop 1 balance adjust CASH-RYD1 1200 --reason "Till count"
    """
    shop_id = require_shop(ctx, shop_id)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), shop_id, account)
    try:
        entry = BalanceService(db).adjust_balance(
            ctx.obj["caller"], account_id, parse_amount(new_balance), reason
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Balance changed from {entry.previous_balance} to {entry.new_balance} "
        f"({entry.change_amount:+})"
    )


@balance_group.command("history")
@click.argument("account", metavar="ACCOUNT", required=False)
@click.option("--limit", type=int, default=50, show_default=True, help="Entries to show (1-500)")
@click.option("--offset", type=int, default=0, help="Entries to skip")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def balance_history(ctx, account: str | None, limit: int, offset: int, shop_id: int | None):
    """Show balance adjustments, most recent first.

    Without ACCOUNT, shows adjustments across the whole shop.
    """
    shop_id = require_shop(ctx, shop_id)
    db = ctx.obj["db"]
    service = BalanceService(db)
    try:
        if account is not None:
            account_id = resolve_account_or_exit(ctx, AccountService(db), shop_id, account)
            entries = service.get_balance_history(ctx.obj["caller"], account_id, limit=limit, offset=offset)
        else:
            entries = service.get_shop_balance_history(ctx.obj["caller"], shop_id, limit=limit, offset=offset)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not entries:
        click.echo("No balance adjustments found.")
        return
    for entry in entries:
        click.echo(
            f"{entry.created_at:%Y-%m-%d %H:%M} | account {entry.account_id} | "
            f"{entry.previous_balance} -> {entry.new_balance} ({entry.change_amount:+}) | "
            f"{entry.change_reason} | by {entry.created_by_user_id}"
        )


def register_commands(cli):
    """Register balance commands with main CLI."""
    cli.add_command(balance_group, name="balance")
