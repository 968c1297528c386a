"""Domain models for the fund accounting core.

These dataclasses capture the canonical, fully typed records that the valuation,
ownership and NAV logic operate on. Storage rows are converted into them at the
data-access boundary.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class AssetType(str, Enum):
    LOAN = "LOAN"
    REAL_ESTATE = "REAL_ESTATE"
    VEHICLE = "VEHICLE"
    STOCK = "STOCK"
    INVENTORY = "INVENTORY"
    SHARE_IN_COMPANY = "SHARE_IN_COMPANY"


class AssetStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"


class LoanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    REPAID = "REPAID"
    DEFAULTED = "DEFAULTED"


class InterestPeriod(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class AssetEventType(str, Enum):
    VALUATION = "VALUATION"
    PAYMENT_IN = "PAYMENT_IN"
    PAYMENT_OUT = "PAYMENT_OUT"
    CAPEX = "CAPEX"
    NOTE = "NOTE"
    SALE = "SALE"
    LOAN_DISBURSEMENT = "LOAN_DISBURSEMENT"
    INTEREST_ACCRUAL = "INTEREST_ACCRUAL"
    INTEREST_PAYMENT = "INTEREST_PAYMENT"
    PRINCIPAL_PAYMENT = "PRINCIPAL_PAYMENT"
    LOAN_REPAYMENT = "LOAN_REPAYMENT"
    DEFAULT = "DEFAULT"


class CashflowType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class Unset(Enum):
    """Marks a patch field that was not supplied, as opposed to one cleared with ``None``."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset.UNSET


def patch_changes(patch: object) -> dict[str, Any]:
    """Return the fields of a patch dataclass that were explicitly supplied."""
    return {
        item.name: getattr(patch, item.name)
        for item in fields(patch)
        if getattr(patch, item.name) is not UNSET
    }


@dataclass(frozen=True)
class Asset:
    """A holding of the fund; ``current_value`` is a cache of the replayed event ledger."""

    id: int
    name: str
    type: AssetType
    status: AssetStatus
    current_value: Decimal
    acquired_price: Decimal | None = None
    acquired_date: date | None = None
    description: str | None = None
    sale_price: Decimal | None = None
    sale_date: date | None = None
    loan_principal: Decimal | None = None
    interest_rate: Decimal | None = None
    interest_period: InterestPeriod | None = None
    maturity_date: date | None = None
    loan_status: LoanStatus | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_sold(self) -> bool:
        return self.status is AssetStatus.SOLD

    @property
    def is_loan(self) -> bool:
        return self.type is AssetType.LOAN

    @property
    def base_value(self) -> Decimal:
        return self.acquired_price if self.acquired_price is not None else Decimal("0")

    @property
    def realized_pnl(self) -> Decimal | None:
        if not self.is_sold or self.sale_price is None:
            return None
        return self.sale_price - self.base_value


@dataclass(frozen=True)
class LoanEventFields:
    """Loan tracking details attached to an asset event."""

    is_paid: bool | None = None
    payment_date: date | None = None
    principal_amount: Decimal | None = None
    interest_amount: Decimal | None = None
    reference_period_start: date | None = None
    reference_period_end: date | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, item.name) is None for item in fields(self))


@dataclass(frozen=True)
class AssetEventDraft:
    """An event accepted for writing but not yet persisted."""

    asset_id: int
    type: AssetEventType
    date: date
    amount: Decimal | None = None
    note: str | None = None
    loan: LoanEventFields = field(default_factory=LoanEventFields)


@dataclass(frozen=True)
class AssetEvent:
    """One ledger entry affecting an asset's value."""

    id: int
    asset_id: int
    type: AssetEventType
    date: date
    amount: Decimal | None = None
    note: str | None = None
    loan: LoanEventFields = field(default_factory=LoanEventFields)
    created_at: datetime | None = None

    @property
    def effective_interest(self) -> Decimal:
        if self.loan.interest_amount is not None:
            return self.loan.interest_amount
        return self.amount if self.amount is not None else Decimal("0")


@dataclass(frozen=True)
class Investor:
    id: int
    name: str
    email: str
    phone: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class InvestorCashflow:
    id: int
    investor_id: int
    type: CashflowType
    amount: Decimal
    date: date
    note: str | None = None


@dataclass(frozen=True)
class BankBalance:
    """A point-in-time balance report for one bank account."""

    id: int
    account_name: str
    bank_name: str | None
    amount: Decimal
    currency: str
    date: date


@dataclass(frozen=True)
class Liability:
    id: int
    name: str
    current_balance: Decimal
    note: str | None = None
    interest_rate: Decimal | None = None
    maturity_date: date | None = None


@dataclass(frozen=True)
class InvestorSnapshot:
    id: int
    snapshot_id: int
    investor_id: int
    capital_amount: Decimal
    ownership_percent: Decimal
    performance_fee: Decimal | None = None


@dataclass(frozen=True)
class PeriodSnapshot:
    """An immutable fund valuation at a date together with its investor allocations."""

    id: int
    date: date
    total_asset_value: Decimal
    total_bank_balance: Decimal
    total_liabilities: Decimal
    nav: Decimal
    performance_fee_rate: Decimal | None = None
    total_performance_fee: Decimal | None = None
    investor_snapshots: tuple[InvestorSnapshot, ...] = ()
    created_at: datetime | None = None


@dataclass(frozen=True)
class InvestorSnapshotDraft:
    investor_id: int
    capital_amount: Decimal
    ownership_percent: Decimal
    performance_fee: Decimal | None = None


@dataclass(frozen=True)
class SnapshotDraft:
    date: date
    total_asset_value: Decimal
    total_bank_balance: Decimal
    total_liabilities: Decimal
    nav: Decimal
    performance_fee_rate: Decimal | None
    total_performance_fee: Decimal | None
    investors: tuple[InvestorSnapshotDraft, ...] = ()


@dataclass(frozen=True)
class AssetPatch:
    name: str | Unset = UNSET
    type: AssetType | Unset = UNSET
    description: str | None | Unset = UNSET
    acquired_price: Decimal | None | Unset = UNSET
    acquired_date: date | None | Unset = UNSET
    loan_principal: Decimal | None | Unset = UNSET
    interest_rate: Decimal | None | Unset = UNSET
    interest_period: InterestPeriod | None | Unset = UNSET
    maturity_date: date | None | Unset = UNSET


@dataclass(frozen=True)
class AssetEventPatch:
    type: AssetEventType | Unset = UNSET
    amount: Decimal | None | Unset = UNSET
    date: date | Unset = UNSET
    note: str | None | Unset = UNSET
    loan: LoanEventFields | Unset = UNSET


@dataclass(frozen=True)
class InvestorPatch:
    name: str | Unset = UNSET
    email: str | Unset = UNSET
    phone: str | None | Unset = UNSET


@dataclass(frozen=True)
class CashflowPatch:
    type: CashflowType | Unset = UNSET
    amount: Decimal | Unset = UNSET
    date: date | Unset = UNSET
    note: str | None | Unset = UNSET


@dataclass(frozen=True)
class BankBalancePatch:
    account_name: str | Unset = UNSET
    bank_name: str | None | Unset = UNSET
    amount: Decimal | Unset = UNSET
    currency: str | Unset = UNSET
    date: date | Unset = UNSET


@dataclass(frozen=True)
class LiabilityPatch:
    name: str | Unset = UNSET
    current_balance: Decimal | Unset = UNSET
    note: str | None | Unset = UNSET
    interest_rate: Decimal | None | Unset = UNSET
    maturity_date: date | None | Unset = UNSET


@dataclass(frozen=True)
class SnapshotPatch:
    date: date | Unset = UNSET
    performance_fee_rate: Decimal | None | Unset = UNSET
