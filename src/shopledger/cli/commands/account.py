"""Account management commands."""

import click
from shopledger.cli.account_resolution import resolve_account_or_exit
from shopledger.cli.error_handling import handle_domain_error, require_shop
from shopledger.domain.account import AccountService
from shopledger.domain.entities import AccountCategory
from shopledger.utils.amount_parser import parse_amount

CATEGORY_CHOICE = click.Choice([c.value for c in AccountCategory], case_sensitive=False)


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("category", type=CATEGORY_CHOICE)
@click.option("--name-en", required=True, help="English account name")
@click.option("--name-ar", required=True, help="Arabic account name")
@click.option("--opening-balance", default="0", show_default=True, help="Opening balance")
@click.option("--code", help="Account code, unique within the shop")
@click.option("--bank", "bank_name", help="Bank name (bank accounts)")
@click.option("--default", "is_default", is_flag=True, help="Make this the category's default account")
@click.option("--parent", "parent", help="Expense account to group this one under (ID, code or name)")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def create_account(
    ctx,
    category: str,
    name_en: str,
    name_ar: str,
    opening_balance: str,
    code: str | None,
    bank_name: str | None,
    is_default: bool,
    parent: str | None,
    shop_id: int | None,
):
    """Create a new account.

    Examples:
        shopledger --shop 1 account create BANK --name-en "Al Rajhi" --name-ar "الراجحي" --bank "Al Rajhi"
        shopledger --shop 1 account create CASH --name-en "Till 2" --name-ar "الصندوق ٢" --opening-balance 500
        shopledger --shop 1 account create EXPENSE --name-en "Rent" --name-ar "الإيجار" --parent UTILITIES
    """
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    parent_id = resolve_account_or_exit(ctx, service, shop_id, parent) if parent else None
    try:
        account = service.create_account(
            ctx.obj["caller"],
            shop_id,
            category=category,
            name_en=name_en,
            name_ar=name_ar,
            opening_balance=parse_amount(opening_balance),
            is_default=is_default,
            code=code,
            bank_name=bank_name,
            parent_id=parent_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{account.name_en}' (ID: {account.id}, balance: {account.current_balance})")


@account_group.command("list")
@click.option("--category", type=CATEGORY_CHOICE, help="Only accounts of this category")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def list_accounts(ctx, category: str | None, include_inactive: bool, shop_id: int | None):
    """List a shop's accounts."""
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    try:
        accounts = service.list_accounts(
            ctx.obj["caller"], shop_id, category=category, include_inactive=include_inactive
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        flags = []
        if acc.is_default:
            flags.append("default")
        if not acc.is_active:
            flags.append("inactive")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.category.value:8s} | {acc.name_en:25s} | "
            f"{acc.current_balance:>12}{suffix}"
        )


@account_group.command("set-default")
@click.argument("account", metavar="ACCOUNT")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def set_default(ctx, account: str, shop_id: int | None):
    """Make ACCOUNT the default of its category.

    ACCOUNT can be an account ID, code or name.
    """
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, shop_id, account)
    try:
        current = service.get_account(ctx.obj["caller"], account_id)
        updated = service.set_default(ctx.obj["caller"], account_id, current.category)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"'{updated.name_en}' is now the default {updated.category.value} account")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.option("--override", is_flag=True, help="Deactivate even with a nonzero balance (administrators only)")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def deactivate_account(ctx, account: str, override: bool, shop_id: int | None):
    """Deactivate ACCOUNT.

    The balance must be zero unless --override is given.
    """
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, shop_id, account)
    try:
        deactivated = service.deactivate(ctx.obj["caller"], account_id, override=override)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account '{deactivated.name_en}'")


@account_group.command("set-parent")
@click.argument("account", metavar="ACCOUNT")
@click.argument("parent", metavar="PARENT", required=False)
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def set_parent(ctx, account: str, parent: str | None, shop_id: int | None):
    """Group expense ACCOUNT under PARENT.

    Without PARENT the account moves to the top level.

    Examples:
        shopledger --shop 1 account set-parent "Rent" UTILITIES
        shopledger --shop 1 account set-parent "Rent"
    """
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, shop_id, account)
    parent_id = resolve_account_or_exit(ctx, service, shop_id, parent) if parent else None
    try:
        moved = service.set_parent(ctx.obj["caller"], account_id, parent_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if parent_id is None:
        click.echo(f"'{moved.name_en}' is now a top-level expense account")
    else:
        click.echo(f"'{moved.name_en}' is now grouped under account {parent_id}")


@account_group.command("tree")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def expense_tree(ctx, include_inactive: bool, shop_id: int | None):
    """Show expense accounts as a tree."""
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    try:
        tree = service.get_expense_tree(ctx.obj["caller"], shop_id, include_inactive=include_inactive)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not tree:
        click.echo("No expense accounts found.")
        return

    def print_nodes(nodes):
        for node in nodes:
            acc = node["account"]
            indent = "  " * node["depth"]
            code = f" ({acc.code})" if acc.code else ""
            click.echo(f"{indent}{acc.name_en}{code} [ID: {acc.id}] {acc.current_balance}")
            print_nodes(node["children"])

    print_nodes(tree)


@account_group.command("import-templates")
@click.option("--shop-id", type=int, help="Shop (defaults to --shop)")
@click.pass_context
def import_templates(ctx, shop_id: int | None):
    """Create the standard expense accounts the shop does not have yet."""
    shop_id = require_shop(ctx, shop_id)
    service = AccountService(ctx.obj["db"])
    try:
        created, skipped = service.import_expense_templates(ctx.obj["caller"], shop_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {len(created)} expense accounts ({skipped} already present)")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
