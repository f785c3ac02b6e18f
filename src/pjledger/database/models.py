"""SQLAlchemy models for the pjledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    bank_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("client_id", "name", name="uq_account_client_name"),)

    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Category(Base):
    """Chart-of-accounts node; a NULL client_id marks a global default."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    client_id = Column(String, nullable=True, index=True)
    label = Column(String, nullable=False)
    path = Column(String, nullable=False)
    parent_path = Column(String, nullable=True)
    level = Column(Integer, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    accepts_postings = Column(Boolean, default=True, nullable=False)
    ledger_group = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("client_id", "path", name="uq_category_client_path"),)


class Transaction(Base):
    """Bank transaction model with its classification columns."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String, nullable=False, default="")
    external_id = Column(String, nullable=True)
    source_hash = Column(String, nullable=True)
    legacy_category = Column(String, nullable=True)
    legacy_item = Column(String, nullable=True)
    classification_kind = Column(String, nullable=False, default="none")
    rule_id = Column(Integer, ForeignKey("categorization_rules.id"), nullable=True)
    ledger_group = Column(String, nullable=True)
    category_id = Column(String, nullable=True)
    category_path = Column(String, nullable=True)
    subcategory = Column(String, nullable=True)
    reconciled = Column(Boolean, default=False, nullable=False)
    imported_at = Column(DateTime, default=_now, nullable=False)

    account = relationship("Account", back_populates="transactions")


class CategorizationRule(Base):
    """Description pattern rule model."""

    __tablename__ = "categorization_rules"

    id = Column(Integer, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    pattern = Column(String, nullable=False)
    match_type = Column(String, nullable=False)
    ledger_group = Column(String, nullable=False)
    category_path = Column(String, nullable=True)
    subcategory = Column(String, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Sale(Base):
    """Sale model."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    invoice_number = Column(String, nullable=True)
    customer = Column(String, nullable=True)
    channel = Column(String, nullable=True)
    gross_amount = Column(Numeric(14, 2), nullable=False)
    net_amount = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    legs = relationship(
        "SaleLeg", back_populates="sale", cascade="all, delete-orphan", order_by="SaleLeg.id"
    )


class SaleLeg(Base):
    """Payment leg of a sale."""

    __tablename__ = "sale_legs"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    method = Column(String, nullable=False)
    settlement_rule = Column(String, nullable=False)
    installments = Column(Integer, default=1, nullable=False)
    gross_amount = Column(Numeric(14, 2), nullable=False)
    fees = Column(Numeric(14, 2), nullable=False)
    net_amount = Column(Numeric(14, 2), nullable=False)
    reconciliation_state = Column(String, default="pending", nullable=False)
    notes = Column(String, nullable=True)

    sale = relationship("Sale", back_populates="legs")
    parcels = relationship(
        "SettlementParcel",
        back_populates="leg",
        cascade="all, delete-orphan",
        order_by="SettlementParcel.n",
    )


class SettlementParcel(Base):
    """Expected payout of one installment of a sale leg."""

    __tablename__ = "settlement_parcels"

    id = Column(Integer, primary_key=True)
    leg_id = Column(Integer, ForeignKey("sale_legs.id"), nullable=False, index=True)
    n = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    expected_amount = Column(Numeric(14, 2), nullable=False)
    received_tx_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    received_at = Column(Date, nullable=True)

    __table_args__ = (UniqueConstraint("leg_id", "n", name="uq_parcel_leg_n"),)

    leg = relationship("SaleLeg", back_populates="parcels")


class StatementImport(Base):
    """Record of an imported statement file."""

    __tablename__ = "statement_imports"

    id = Column(Integer, primary_key=True)
    client_id = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    file_name = Column(String, nullable=False)
    file_hash = Column(String, nullable=False)
    imported_count = Column(Integer, default=0, nullable=False)
    skipped_count = Column(Integer, default=0, nullable=False)
    imported_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("client_id", "file_hash", name="uq_import_client_hash"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
