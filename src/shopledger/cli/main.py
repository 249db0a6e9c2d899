"""Main CLI entry point."""

import logging

import click
from shopledger.database.factories import create_database, create_sqlite_database
from shopledger.domain.entities import CallerContext, Role

# Import and register all commands at module level
from shopledger.cli.commands import (
    account,
    balance,
    dashboard,
    shop,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SHOPLEDGER_DB_PATH environment variable)",
    envvar="SHOPLEDGER_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="SHOPLEDGER_DATABASE_URL",
)
@click.option(
    "--user-id",
    default="owner",
    show_default=True,
    help="Acting user, as issued by the authentication layer",
    envvar="SHOPLEDGER_USER_ID",
)
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role], case_sensitive=False),
    default=Role.ADMIN.value,
    show_default=True,
    help="Role of the acting user",
    envvar="SHOPLEDGER_ROLE",
)
@click.option(
    "--shop",
    "shop_id",
    type=int,
    help="Shop to operate on (the assigned shop for USER callers)",
    envvar="SHOPLEDGER_SHOP_ID",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
    envvar="SHOPLEDGER_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, db_url: str | None, user_id: str, role: str, shop_id: int | None, log_level: str):
    """Shopledger - multi-shop bookkeeping.

    Record sales, purchases, expenses, payments and transfers as double-entry
    transactions, keep cash and bank balances consistent, and see what
    happened today in each shop.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx.obj["caller"] = CallerContext(
        user_id=user_id,
        role=Role(role.upper()),
        assigned_shop_id=shop_id,
    )
    ctx.obj["shop_id"] = shop_id

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        if db_url:
            db = create_database(db_url)
        else:
            db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
shop.register_commands(cli)
account.register_commands(cli)
transaction.register_commands(cli)
balance.register_commands(cli)
dashboard.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
