"""CLI helpers for resolving --day options against a shop's calendar."""

from __future__ import annotations

from datetime import date

import click
from shopledger.cli.error_handling import handle_domain_error
from shopledger.domain.shop import ShopService
from shopledger.utils.date_parser import local_today, parse_date


def resolve_day_or_exit(ctx: click.Context, shop_id: int, day: str) -> date:
    """Parse a --day value, or exit with a CLI error.

    Relative names such as "today" and "yesterday" count from the current
    date in the shop's timezone, not the host's.
    """
    try:
        shop = ShopService(ctx.obj["db"]).get_shop(ctx.obj["caller"], shop_id)
    except ValueError as exc:
        handle_domain_error(ctx, exc)

    try:
        return parse_date(day, today=local_today(shop.timezone))
    except ValueError as exc:
        click.echo(f"Error: Invalid day: {exc}", err=True)
        ctx.exit(1)
