"""SQLAlchemy models for ledgerkit database."""

from sqlalchemy import (
    JSON,
    Column,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

# Money columns keep six decimal places so investment amounts survive
# shares * price without rounding to cents.
MONEY = Numeric(18, 6)
QUANTITY = Numeric(24, 8)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    balance = Column(MONEY, nullable=False, default=0)
    currency = Column(String, nullable=True)

    # Relationships
    transactions = relationship("Transaction", back_populates="account")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False)
    payee = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    category = Column(String, nullable=True)
    amount = Column(MONEY, nullable=False)
    ticker = Column(String, nullable=True)
    shares = Column(QUANTITY, nullable=True)
    price_per_share = Column(QUANTITY, nullable=True)
    fee = Column(MONEY, nullable=True)
    currency = Column(String, nullable=True)
    linked_tx_id = Column(Integer, nullable=True)

    # Relationships
    account = relationship("Account", back_populates="transactions")


class Rule(Base):
    """Categorization rule model."""

    __tablename__ = "rules"

    id = Column(Integer, primary_key=True)
    priority = Column(Integer, nullable=False, default=0)
    match_field = Column(String, nullable=False, default="")
    match_pattern = Column(String, nullable=False, default="")
    action_field = Column(String, nullable=False, default="")
    action_value = Column(String, nullable=False, default="")
    logic = Column(String, nullable=False, default="and")
    conditions = Column(JSON, nullable=False, default=list)
    actions = Column(JSON, nullable=False, default=list)


class CustomExchangeRate(Base):
    """User-entered rate-to-USD override for a currency."""

    __tablename__ = "custom_exchange_rates"

    currency = Column(String, primary_key=True)
    rate = Column(Float, nullable=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(database_url: str, lock_timeout: float = 5.0) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    Args:
        database_url: SQLAlchemy database URL
        lock_timeout: Seconds SQLite waits on a locked database before failing
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["timeout"] = lock_timeout
        # Handles serialize their own access across threads
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
