"""SQLAlchemy table mappings for the record store."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from nav_ledger.domain.models import (
    AssetEventType,
    AssetStatus,
    AssetType,
    CashflowType,
    InterestPeriod,
    LoanStatus,
)

MONEY = Numeric(20, 6)
PERCENT = Numeric(20, 10)
RATE = Numeric(9, 4)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Base(DeclarativeBase):
    pass


class AssetRow(Base):
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AssetType] = mapped_column(SAEnum(AssetType, name="asset_type_enum"), nullable=False, index=True)
    status: Mapped[AssetStatus] = mapped_column(
        SAEnum(AssetStatus, name="asset_status_enum"),
        nullable=False,
        default=AssetStatus.ACTIVE,
        index=True,
    )
    current_value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    acquired_price: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    acquired_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sale_price: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    sale_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    loan_principal: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    interest_rate: Mapped[Decimal | None] = mapped_column(RATE, nullable=True)
    interest_period: Mapped[InterestPeriod | None] = mapped_column(
        SAEnum(InterestPeriod, name="interest_period_enum"), nullable=True
    )
    maturity_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    loan_status: Mapped[LoanStatus | None] = mapped_column(SAEnum(LoanStatus, name="loan_status_enum"), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    events: Mapped[list["AssetEventRow"]] = relationship(back_populates="asset")


class AssetEventRow(Base):
    __tablename__ = "asset_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id"), nullable=False, index=True)
    type: Mapped[AssetEventType] = mapped_column(SAEnum(AssetEventType, name="asset_event_type_enum"), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_paid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    payment_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    principal_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    interest_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    reference_period_start: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    reference_period_end: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    asset: Mapped[AssetRow] = relationship(back_populates="events")


class InvestorRow(Base):
    __tablename__ = "investors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    cashflows: Mapped[list["CashflowRow"]] = relationship(back_populates="investor", cascade="all, delete-orphan")


class CashflowRow(Base):
    __tablename__ = "investor_cashflows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    investor_id: Mapped[int] = mapped_column(
        ForeignKey("investors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[CashflowType] = mapped_column(SAEnum(CashflowType, name="cashflow_type_enum"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    investor: Mapped[InvestorRow] = relationship(back_populates="cashflows")


class BankBalanceRow(Base):
    __tablename__ = "bank_balances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)


class LiabilityRow(Base):
    __tablename__ = "liabilities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    current_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    interest_rate: Mapped[Decimal | None] = mapped_column(RATE, nullable=True)
    maturity_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)


class PeriodSnapshotRow(Base):
    __tablename__ = "period_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    total_asset_value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_bank_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_liabilities: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    nav: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    performance_fee_rate: Mapped[Decimal | None] = mapped_column(RATE, nullable=True)
    total_performance_fee: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    investor_snapshots: Mapped[list["InvestorSnapshotRow"]] = relationship(
        back_populates="snapshot",
        cascade="all, delete-orphan",
        order_by="InvestorSnapshotRow.id",
    )


class InvestorSnapshotRow(Base):
    __tablename__ = "investor_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    snapshot_id: Mapped[int] = mapped_column(
        ForeignKey("period_snapshots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    investor_id: Mapped[int] = mapped_column(ForeignKey("investors.id"), nullable=False, index=True)
    capital_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    ownership_percent: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    performance_fee: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    snapshot: Mapped[PeriodSnapshotRow] = relationship(back_populates="investor_snapshots")
