"""Domain-level results for NAV, ownership and ledger queries."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Sequence

from .models import Asset, AssetEventType, Liability


@dataclass(frozen=True)
class AssetBreakdown:
    type: str
    count: int
    total_value: Decimal


@dataclass(frozen=True)
class BankBreakdown:
    currency: str
    total_amount: Decimal


@dataclass(frozen=True)
class LiabilityBreakdown:
    name: str
    current_balance: Decimal


@dataclass(frozen=True)
class NavCalculation:
    total_asset_value: Decimal
    total_bank_balance: Decimal
    total_liabilities: Decimal
    nav: Decimal
    asset_breakdown: Sequence[AssetBreakdown] = field(default_factory=tuple)
    bank_breakdown: Sequence[BankBreakdown] = field(default_factory=tuple)
    liability_breakdown: Sequence[LiabilityBreakdown] = field(default_factory=tuple)


@dataclass(frozen=True)
class InvestorOwnership:
    investor_id: int
    name: str
    email: str
    total_deposits: Decimal
    total_withdrawals: Decimal
    capital_amount: Decimal
    ownership_percent: Decimal


@dataclass(frozen=True)
class EventValidationInfo:
    """What the next event appended to an asset must satisfy."""

    can_add_events: bool
    min_date: date | None
    last_event_date: date | None
    last_event_type: AssetEventType | None
    is_sold: bool


@dataclass(frozen=True)
class AssetSummary:
    asset: Asset
    events_count: int
    total_inflows: Decimal
    total_outflows: Decimal


@dataclass(frozen=True)
class NavBalanceAnalysis:
    """NAV compared with the capital investors have contributed."""

    nav: Decimal
    total_investor_capital: Decimal
    difference: Decimal
    difference_percent: Decimal
    is_balanced: bool

    @property
    def has_unrealized_gains(self) -> bool:
        return self.difference > 0

    @property
    def has_unrealized_losses(self) -> bool:
        return self.difference < 0


@dataclass(frozen=True)
class CapitalSummary:
    investor_id: int
    total_deposits: Decimal
    total_withdrawals: Decimal
    total_capital: Decimal
    cashflow_count: int


@dataclass(frozen=True)
class AccountBalance:
    account_name: str
    bank_name: str | None
    amount: Decimal
    currency: str
    date: date


@dataclass(frozen=True)
class BankBalanceSummary:
    total_balance: Decimal
    by_currency: Sequence[BankBreakdown] = field(default_factory=tuple)
    by_account: Sequence[AccountBalance] = field(default_factory=tuple)


@dataclass(frozen=True)
class LiabilitiesSummary:
    total_balance: Decimal
    average_interest_rate: Decimal
    count: int
    upcoming_maturity: Sequence[Liability] = field(default_factory=tuple)
