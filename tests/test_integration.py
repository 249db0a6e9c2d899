"""End-to-end tests through the command-line interface."""

import pytest
from datetime import datetime, UTC
from decimal import Decimal

from shopledger.cli.main import cli
from shopledger.utils import date_parser
from shopledger.domain.entities import AccountCategory


def test_full_workflow(cli_runner, temp_db):
    """Create a shop, record activity, adjust, reverse and read the dashboard."""
    db_args = ["--db-path", temp_db.database_path, "--user-id", "owner-1"]

    # Step 1: Create a shop
    result = cli_runner.invoke(
        cli,
        db_args + ["shop", "create", "MAIN", "--name-en", "Main Street", "--name-ar", "الشارع الرئيسي"],
    )
    assert result.exit_code == 0
    assert "Created shop 'Main Street'" in result.output
    shop = temp_db.list_shops(owner_user_id="owner-1")[0]
    shop_args = db_args + ["--shop", str(shop.id)]

    # Step 2: Record a sale against the default accounts
    result = cli_runner.invoke(cli, shop_args + ["txn", "record", "SALE", "150", "--key", "sale-1"])
    assert result.exit_code == 0
    assert "Recorded SALE of 150.00" in result.output

    # Replaying the same key does not record twice
    result = cli_runner.invoke(cli, shop_args + ["txn", "record", "SALE", "150", "--key", "sale-1"])
    assert result.exit_code == 0
    assert len(temp_db.list_transactions(shop.id)) == 1

    # Step 3: Record a partially paid purchase
    result = cli_runner.invoke(cli, shop_args + ["txn", "record", "purchase", "80", "--paid", "50"])
    assert result.exit_code == 0
    assert "Outstanding: 30.00" in result.output

    cash = temp_db.get_default_account(shop.id, AccountCategory.CASH)
    assert cash.current_balance == Decimal("70.00")

    # Step 4: Adjust the cash balance after a till count
    result = cli_runner.invoke(
        cli, shop_args + ["balance", "adjust", "CASH-MAIN", "100", "--reason", "Till count"]
    )
    assert result.exit_code == 0
    assert "Balance changed from 70.00 to 100.00 (+30.00)" in result.output

    result = cli_runner.invoke(cli, shop_args + ["balance", "history", "CASH-MAIN"])
    assert result.exit_code == 0
    assert "Till count" in result.output

    # Step 5: Reverse the purchase
    purchase = temp_db.list_transactions(shop.id)[0]
    result = cli_runner.invoke(cli, shop_args + ["txn", "reverse", str(purchase.id), "--reason", "Returned"])
    assert result.exit_code == 0
    assert f"Reversed transaction {purchase.id}" in result.output

    result = cli_runner.invoke(cli, shop_args + ["txn", "reverse", str(purchase.id)])
    assert result.exit_code == 1
    assert "Error [ALREADY_REVERSED]" in result.output

    # Step 6: Dashboard
    result = cli_runner.invoke(cli, shop_args + ["dashboard"])
    assert result.exit_code == 0
    assert "180.00" in result.output  # cash: 100 after count + 80 back from the reversal
    assert "Pending sync:" in result.output

    # Step 7: Transaction list
    result = cli_runner.invoke(cli, shop_args + ["txn", "list"])
    assert result.exit_code == 0
    assert "reverses #" in result.output
    assert "reversed by #" in result.output


def test_user_cannot_reach_other_shop(cli_runner, temp_db, sample_shop, other_shop):
    """A USER caller assigned to one shop is denied another shop's accounts."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "--user-id",
            "clerk-1",
            "--role",
            "USER",
            "--shop",
            str(sample_shop.id),
            "txn",
            "record",
            "SALE",
            "10",
            "--shop-id",
            str(other_shop.id),
        ],
    )

    assert result.exit_code == 1
    assert "Error [DENIED]" in result.output
    assert temp_db.list_transactions(other_shop.id) == []


def test_user_cannot_create_shop(cli_runner, temp_db):
    """Only administrators can create shops."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "--role",
            "user",
            "shop",
            "create",
            "X1",
            "--name-en",
            "X",
            "--name-ar",
            "س",
        ],
    )

    assert result.exit_code == 1
    assert "Error [DENIED]" in result.output


def test_shop_list(cli_runner, temp_db, sample_shop, other_shop):
    """Administrators see only their own shops."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--user-id", "owner-1", "shop", "list"])

    assert result.exit_code == 0
    assert "Main Street" in result.output
    assert "Harbor" not in result.output


def test_dashboard_invalid_day(cli_runner, temp_db, sample_shop):
    """Unparseable days are rejected."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "--user-id", "owner-1", "--shop", str(sample_shop.id), "dashboard", "--day", "someday"],
    )

    assert result.exit_code == 1
    assert "Invalid day" in result.output


def test_db_url_takes_precedence(cli_runner, temp_db, sample_shop, tmp_path):
    """--db-url selects the database even when --db-path is also given."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            str(tmp_path / "unused.db"),
            "--db-url",
            f"sqlite:///{temp_db.database_path}",
            "--user-id",
            "owner-1",
            "shop",
            "list",
        ],
    )

    assert result.exit_code == 0
    assert "Main Street" in result.output
    assert not (tmp_path / "unused.db").exists()


def test_db_url_from_environment(cli_runner, temp_db, sample_shop, monkeypatch):
    """SHOPLEDGER_DATABASE_URL is read when no option is given."""
    monkeypatch.delenv("SHOPLEDGER_DB_PATH", raising=False)
    monkeypatch.setenv("SHOPLEDGER_DATABASE_URL", f"sqlite:///{temp_db.database_path}")

    result = cli_runner.invoke(cli, ["--user-id", "owner-1", "shop", "list"])

    assert result.exit_code == 0
    assert "Main Street" in result.output


def test_dashboard_yesterday_uses_shop_calendar(cli_runner, temp_db, shop_service, admin, monkeypatch):
    """'yesterday' counts back from the current date in the shop's timezone."""
    shop = shop_service.create_shop(admin, "Riyadh", "الرياض", "RYD", timezone="Asia/Riyadh")
    # 01:00 on 2024-03-11 in Riyadh, still 2024-03-10 in UTC
    monkeypatch.setattr(date_parser, "utc_now", lambda: datetime(2024, 3, 10, 22, 0, tzinfo=UTC))

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "--user-id", "owner-1", "--shop", str(shop.id), "dashboard", "--day", "yesterday"],
    )

    assert result.exit_code == 0
    assert f"Shop {shop.id} - 2024-03-10" in result.output
