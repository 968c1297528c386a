"""Repository interfaces anchoring the domain layer.

The record store is an external collaborator; these protocols are the whole of what the
core expects from it. ``UnitOfWork.run`` is the only way to obtain repositories, so every
multi-step write is committed or rolled back as one unit.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Mapping, Protocol, Sequence, TypeVar

from .models import (
    Asset,
    AssetEvent,
    AssetEventDraft,
    AssetEventType,
    AssetStatus,
    AssetType,
    BankBalance,
    CashflowType,
    Investor,
    InvestorCashflow,
    InvestorSnapshot,
    Liability,
    PeriodSnapshot,
    SnapshotDraft,
)
from .valuation import Valuation

T = TypeVar("T")


class AssetRepository(Protocol):
    def get(self, asset_id: int, for_update: bool = False) -> Asset | None:
        """Fetch an asset; ``for_update`` locks the row until the unit of work ends."""
        ...

    def list(self, asset_type: AssetType | None = None, status: AssetStatus | None = None) -> Sequence[Asset]:
        ...

    def add(self, **values: Any) -> Asset:
        ...

    def update(self, asset_id: int, changes: Mapping[str, Any]) -> Asset:
        ...

    def save_valuation(self, asset_id: int, valuation: Valuation) -> Asset:
        ...

    def delete(self, asset_id: int) -> None:
        ...


class AssetEventRepository(Protocol):
    def get(self, event_id: int) -> AssetEvent | None:
        ...

    def list_for_asset(self, asset_id: int) -> Sequence[AssetEvent]:
        """All events of one asset in ledger order."""
        ...

    def latest_for_asset(self, asset_id: int) -> AssetEvent | None:
        ...

    def count_for_asset(self, asset_id: int) -> int:
        ...

    def list(
        self,
        asset_id: int | None = None,
        event_type: AssetEventType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[AssetEvent]:
        ...

    def add(self, draft: AssetEventDraft) -> AssetEvent:
        ...

    def update(self, event_id: int, changes: Mapping[str, Any]) -> AssetEvent:
        ...

    def delete(self, event_id: int) -> None:
        ...


class InvestorRepository(Protocol):
    def get(self, investor_id: int) -> Investor | None:
        ...

    def list(self) -> Sequence[Investor]:
        ...

    def add(self, name: str, email: str, phone: str | None = None) -> Investor:
        ...

    def update(self, investor_id: int, changes: Mapping[str, Any]) -> Investor:
        ...

    def delete(self, investor_id: int) -> None:
        ...


class CashflowRepository(Protocol):
    def get(self, cashflow_id: int) -> InvestorCashflow | None:
        ...

    def list(
        self,
        investor_id: int | None = None,
        cashflow_type: CashflowType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[InvestorCashflow]:
        ...

    def add(
        self,
        investor_id: int,
        cashflow_type: CashflowType,
        amount: Decimal,
        cashflow_date: date,
        note: str | None = None,
    ) -> InvestorCashflow:
        ...

    def update(self, cashflow_id: int, changes: Mapping[str, Any]) -> InvestorCashflow:
        ...

    def delete(self, cashflow_id: int) -> None:
        ...


class BankBalanceRepository(Protocol):
    def get(self, balance_id: int) -> BankBalance | None:
        ...

    def list(self, date_from: date | None = None, date_to: date | None = None) -> Sequence[BankBalance]:
        ...

    def add(
        self,
        account_name: str,
        bank_name: str | None,
        amount: Decimal,
        currency: str,
        balance_date: date,
    ) -> BankBalance:
        ...

    def update(self, balance_id: int, changes: Mapping[str, Any]) -> BankBalance:
        ...

    def delete(self, balance_id: int) -> None:
        ...


class LiabilityRepository(Protocol):
    def get(self, liability_id: int) -> Liability | None:
        ...

    def list(self) -> Sequence[Liability]:
        ...

    def add(self, **values: Any) -> Liability:
        ...

    def update(self, liability_id: int, changes: Mapping[str, Any]) -> Liability:
        ...

    def delete(self, liability_id: int) -> None:
        ...


class SnapshotRepository(Protocol):
    def get(self, snapshot_id: int) -> PeriodSnapshot | None:
        ...

    def list(self, date_from: date | None = None, date_to: date | None = None) -> Sequence[PeriodSnapshot]:
        ...

    def latest(self) -> PeriodSnapshot | None:
        ...

    def add(self, draft: SnapshotDraft) -> PeriodSnapshot:
        """Persist the parent row and every investor row together."""
        ...

    def update(
        self,
        snapshot_id: int,
        changes: Mapping[str, Any],
        investor_fees: Mapping[int, Decimal | None] | None = None,
    ) -> PeriodSnapshot:
        """Apply header changes and, optionally, per-investor fees keyed by investor id."""
        ...

    def delete(self, snapshot_id: int) -> None:
        ...

    def list_for_investor(self, investor_id: int) -> Sequence[InvestorSnapshot]:
        ...


class Transaction(Protocol):
    """Repository handles bound to one open transaction."""

    assets: AssetRepository
    asset_events: AssetEventRepository
    investors: InvestorRepository
    cashflows: CashflowRepository
    bank_balances: BankBalanceRepository
    liabilities: LiabilityRepository
    snapshots: SnapshotRepository


class UnitOfWork(Protocol):
    def run(self, work: Callable[[Transaction], T]) -> T:
        """Run ``work`` in one transaction: fully committed on return, fully rolled back on error."""
        ...
