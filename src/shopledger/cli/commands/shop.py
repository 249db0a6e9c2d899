"""Shop management commands."""

import click
from shopledger.cli.error_handling import handle_domain_error
from shopledger.domain.shop import ShopService


@click.group()
def shop_group():
    """Manage shops."""
    pass


@shop_group.command("create")
@click.argument("code")
@click.option("--name-en", required=True, help="English shop name")
@click.option("--name-ar", required=True, help="Arabic shop name")
@click.option("--timezone", help="IANA timezone for day boundaries (e.g., Asia/Riyadh)")
@click.pass_context
def create_shop(ctx, code: str, name_en: str, name_ar: str, timezone: str | None):
    """Create a shop owned by the current administrator.

    The shop starts with default cash, direct-sales and expense accounts.

    Examples:
        shopledger shop create RYD1 --name-en "Riyadh Main" --name-ar "الرياض" --timezone Asia/Riyadh
    """
    service = ShopService(ctx.obj["db"])
    try:
        shop = service.create_shop(
            ctx.obj["caller"], name_en=name_en, name_ar=name_ar, code=code, timezone=timezone
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created shop '{shop.name_en}' (ID: {shop.id}, code: {shop.code}, timezone: {shop.timezone})")


@shop_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated shops")
@click.pass_context
def list_shops(ctx, include_inactive: bool):
    """List the shops you can access."""
    service = ShopService(ctx.obj["db"])
    shops = service.list_shops(ctx.obj["caller"], include_inactive=include_inactive)
    if not shops:
        click.echo("No shops found.")
        return

    click.echo("\nShops:")
    click.echo("-" * 70)
    for s in shops:
        status = "" if s.is_active else " (inactive)"
        click.echo(f"ID: {s.id:3d} | {s.code:10s} | {s.name_en:25s} | {s.timezone}{status}")


@shop_group.command("deactivate")
@click.argument("shop_id", type=int)
@click.pass_context
def deactivate_shop(ctx, shop_id: int):
    """Deactivate a shop. Its history stays readable."""
    service = ShopService(ctx.obj["db"])
    try:
        shop = service.deactivate_shop(ctx.obj["caller"], shop_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated shop '{shop.name_en}'")


def register_commands(cli):
    """Register shop commands with main CLI."""
    cli.add_command(shop_group, name="shop")
