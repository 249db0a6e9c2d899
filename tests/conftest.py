"""Shared pytest fixtures for shopledger tests."""

import tempfile
import os
from datetime import datetime, timedelta, UTC
from decimal import Decimal
import pytest

from shopledger.database.factories import create_sqlite_database
from shopledger.domain.account import AccountService
from shopledger.domain.balance import BalanceService
from shopledger.domain.dashboard import DashboardService
from shopledger.domain.entities import AccountCategory, CallerContext, Role
from shopledger.domain.ledger import LedgerService
from shopledger.domain.shop import ShopService


class FakeClock:
    """Controllable replacement for utc_now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """A clock fixed at midday UTC, 2024-03-10."""
    return FakeClock(datetime(2024, 3, 10, 12, 0, tzinfo=UTC))


@pytest.fixture
def admin():
    """Administrator who owns the sample shop."""
    return CallerContext(user_id="owner-1", role=Role.ADMIN)


@pytest.fixture
def other_admin():
    """Administrator of an unrelated shop."""
    return CallerContext(user_id="owner-2", role=Role.ADMIN)


@pytest.fixture
def shop_service(temp_db):
    """Create a ShopService with a temporary database."""
    return ShopService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def ledger_service(temp_db, clock):
    """Create a LedgerService with a temporary database and fixed clock."""
    return LedgerService(temp_db, clock=clock)


@pytest.fixture
def balance_service(temp_db, clock):
    """Create a BalanceService with a temporary database and fixed clock."""
    return BalanceService(temp_db, clock=clock)


@pytest.fixture
def dashboard_service(temp_db, clock):
    """Create a DashboardService with a temporary database and fixed clock."""
    return DashboardService(temp_db, clock=clock)


@pytest.fixture
def sample_shop(shop_service, admin):
    """Create a shop with its seeded default accounts."""
    return shop_service.create_shop(admin, name_en="Main Street", name_ar="الشارع الرئيسي", code="MAIN")


@pytest.fixture
def other_shop(shop_service, other_admin):
    """Create a shop owned by another administrator."""
    return shop_service.create_shop(other_admin, name_en="Harbor", name_ar="الميناء", code="HRB")


@pytest.fixture
def shop_user(sample_shop):
    """Non-admin caller assigned to the sample shop."""
    return CallerContext(user_id="clerk-1", role=Role.USER, assigned_shop_id=sample_shop.id)


@pytest.fixture
def cash_account(account_service, admin, sample_shop):
    """Default cash account with an opening balance of 1000.00."""
    return account_service.create_account(
        admin,
        sample_shop.id,
        category=AccountCategory.CASH,
        name_en="Till",
        name_ar="الصندوق",
        opening_balance=Decimal("1000.00"),
        is_default=True,
        code="TILL",
    )


@pytest.fixture
def customer_account(account_service, admin, sample_shop):
    """The shop's seeded default customer account."""
    return account_service.get_default_account(admin, sample_shop.id, AccountCategory.CUSTOMER)


@pytest.fixture
def bank_account(account_service, admin, sample_shop):
    """Bank account with an opening balance of 5000.00."""
    return account_service.create_account(
        admin,
        sample_shop.id,
        category=AccountCategory.BANK,
        name_en="Al Rajhi",
        name_ar="الراجحي",
        opening_balance=Decimal("5000.00"),
        bank_name="Al Rajhi Bank",
        code="RAJHI",
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
