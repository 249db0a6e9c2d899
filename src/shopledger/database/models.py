"""SQLAlchemy models for shopledger database."""

from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    Enum,
    Index,
    UniqueConstraint,
    CheckConstraint,
    TypeDecorator,
    create_engine,
    event,
    inspect,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session, validates

from shopledger.domain.entities import AccountCategory, TransactionType
from shopledger.domain.errors import DirectBalanceMutationError, IntegrityViolationError
from shopledger.utils.date_parser import utc_now

Base = declarative_base()

MONEY = Numeric(14, 2)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC timestamps and returns timezone-aware UTC values."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Shop(Base):
    """Shop (tenant) model."""

    __tablename__ = "shops"

    id = Column(Integer, primary_key=True)
    name_en = Column(String, nullable=False)
    name_ar = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=False)
    owner_user_id = Column(String, nullable=False, index=True)
    timezone = Column(String, nullable=False, default="UTC")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="shop")
    transactions = relationship("Transaction", back_populates="shop")


class Account(Base):
    """Balance-holding account model, tagged by category."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False, index=True)
    category = Column(Enum(AccountCategory, native_enum=False, length=16), nullable=False)
    name_en = Column(String, nullable=False)
    name_ar = Column(String, nullable=False)
    code = Column(String, nullable=True)
    bank_name = Column(String, nullable=True)
    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)
    opening_balance = Column(MONEY, nullable=False)
    current_balance = Column(MONEY, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, default=1, nullable=False)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)

    # At most one default account per (shop, category)
    __table_args__ = (
        UniqueConstraint("shop_id", "code", name="uq_account_shop_code"),
        Index(
            "uq_account_default_per_category",
            "shop_id",
            "category",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default = true"),
        ),
    )

    # Relationships
    shop = relationship("Shop", back_populates="accounts")
    parent = relationship("Account", remote_side=[id], backref="children")
    balance_history = relationship("BalanceHistory", back_populates="account")

    @validates("opening_balance", "current_balance")
    def _reject_direct_balance_write(self, key, value):
        # Persisted balances only move through SQL-side ledger/adjustment updates
        if inspect(self).has_identity:
            raise DirectBalanceMutationError(
                f"{key} of account {self.id} cannot be assigned directly"
            )
        return value


class Transaction(Base):
    """Double-entry transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False)
    transaction_type = Column(Enum(TransactionType, native_enum=False, length=16), nullable=False)
    amount = Column(MONEY, nullable=False)
    amount_paid = Column(MONEY, nullable=True)
    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    description = Column(String, nullable=True)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    created_by_user_id = Column(String, nullable=False)
    idempotency_key = Column(String, nullable=True)
    reverses_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    reversed_at = Column(UTCDateTime, nullable=True)
    reversed_by_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    synced_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("shop_id", "idempotency_key", name="uq_transaction_idempotency_key"),
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        CheckConstraint("debit_account_id <> credit_account_id", name="ck_transaction_distinct_accounts"),
        Index("ix_transactions_shop_created", "shop_id", "created_at"),
    )

    # Relationships
    shop = relationship("Shop", back_populates="transactions")
    debit_account = relationship("Account", foreign_keys=[debit_account_id])
    credit_account = relationship("Account", foreign_keys=[credit_account_id])


class BalanceHistory(Base):
    """Append-only audit record of a non-transactional balance change."""

    __tablename__ = "balance_history"

    id = Column(Integer, primary_key=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    account_category = Column(Enum(AccountCategory, native_enum=False, length=16), nullable=False)
    previous_balance = Column(MONEY, nullable=False)
    new_balance = Column(MONEY, nullable=False)
    change_amount = Column(MONEY, nullable=False)
    change_reason = Column(String, nullable=False)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    created_by_user_id = Column(String, nullable=False)

    __table_args__ = (
        Index("ix_balance_history_account_created", "account_id", "created_at"),
    )

    # Relationships
    account = relationship("Account", back_populates="balance_history")


@event.listens_for(BalanceHistory, "before_update")
def _reject_history_update(mapper, connection, target):
    raise IntegrityViolationError(f"Balance history entry {target.id} is immutable")


@event.listens_for(BalanceHistory, "before_delete")
def _reject_history_delete(mapper, connection, target):
    raise IntegrityViolationError(f"Balance history entry {target.id} is immutable")


def _configure_sqlite_connection(dbapi_connection, connection_record):
    # pysqlite would only BEGIN before the first DML statement; transactions
    # are begun explicitly in _begin_sqlite_transaction instead
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn):
    """Begin every SQLite transaction before its first read.

    Connections opened with the ``sqlite_begin="IMMEDIATE"`` execution option
    take the write lock up front, so their reads and writes see one state.
    """
    mode = conn.get_execution_options().get("sqlite_begin")
    conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine: Engine
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=False, connect_args={"timeout": 30})
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_sqlite_transaction)
    else:
        engine = create_engine(database_url, echo=False, pool_pre_ping=True)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
