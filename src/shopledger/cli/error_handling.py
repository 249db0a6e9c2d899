"""CLI error handling helpers."""

import click

from shopledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error with its code and exit with failure."""
    code = getattr(error, "code", "INVALID_INPUT")
    click.echo(f"Error [{code}]: {error}", err=True)
    ctx.exit(1)


def require_shop(ctx: click.Context, shop_id: int | None) -> int:
    """Return the shop a command targets, or exit if none was given.

    An explicit command option wins over the global --shop option.
    """
    shop_id = shop_id if shop_id is not None else ctx.obj.get("shop_id")
    if shop_id is None:
        click.echo("Error: No shop selected. Pass --shop or set SHOPLEDGER_SHOP_ID.", err=True)
        ctx.exit(1)
    return shop_id
