"""Dashboard command."""

import click
from shopledger.cli.day_resolution import resolve_day_or_exit
from shopledger.cli.error_handling import handle_domain_error, require_shop
from shopledger.domain.dashboard import DashboardService


@click.command("dashboard")
@click.option("--day", help="Local day (YYYY-MM-DD or 'yesterday'); defaults to today in the shop's timezone")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def dashboard(ctx, day: str | None, shop_id: int | None):
    """Show live balances and the day's figures for a shop."""
    shop_id = require_shop(ctx, shop_id)

    local_day = resolve_day_or_exit(ctx, shop_id, day) if day is not None else None

    try:
        snapshot = DashboardService(ctx.obj["db"]).get_dashboard(ctx.obj["caller"], shop_id, day=local_day)
    except ValueError as e:
        handle_domain_error(ctx, e)

    stats = snapshot.today_stats
    click.echo(f"\nShop {snapshot.shop_id} - {snapshot.day.isoformat()}")
    click.echo("-" * 40)
    click.echo(f"Cash balance:   {snapshot.cash_balance:>14}")
    click.echo(f"Bank balance:   {snapshot.bank_balance:>14}")
    click.echo(f"Sales:          {stats.sales:>14}")
    click.echo(f"Purchases:      {stats.purchases:>14}")
    click.echo(f"Expenses:       {stats.expenses:>14}")
    click.echo(f"Net cash flow:  {stats.net_cash_flow:>14}")
    click.echo(f"Pending sync:   {snapshot.pending_sync_count:>14}")


def register_commands(cli):
    """Register dashboard command with main CLI."""
    cli.add_command(dashboard)
