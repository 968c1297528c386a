"""SQLAlchemy-backed repositories returning typed domain records."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from nav_ledger.domain.errors import NotFoundError
from nav_ledger.domain.models import (
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
    LoanEventFields,
    PeriodSnapshot,
    SnapshotDraft,
)
from nav_ledger.domain.valuation import Valuation

from .tables import (
    AssetEventRow,
    AssetRow,
    BankBalanceRow,
    CashflowRow,
    InvestorRow,
    InvestorSnapshotRow,
    LiabilityRow,
    PeriodSnapshotRow,
)

RowT = TypeVar("RowT")

LOAN_COLUMNS = (
    "is_paid",
    "payment_date",
    "principal_amount",
    "interest_amount",
    "reference_period_start",
    "reference_period_end",
)


def _require(session: Session, model: type[RowT], row_id: int, label: str) -> RowT:
    row = session.get(model, row_id)
    if row is None:
        raise NotFoundError(f"{label} not found", {"id": row_id})
    return row


def _apply(row: object, changes: Mapping[str, Any]) -> None:
    for name, value in changes.items():
        setattr(row, name, value)


def _date_range(stmt: Select, column, date_from: date | None, date_to: date | None) -> Select:
    if date_from is not None:
        stmt = stmt.where(column >= date_from)
    if date_to is not None:
        stmt = stmt.where(column <= date_to)
    return stmt


def to_asset(row: AssetRow) -> Asset:
    return Asset(
        id=row.id,
        name=row.name,
        type=row.type,
        status=row.status,
        current_value=row.current_value,
        acquired_price=row.acquired_price,
        acquired_date=row.acquired_date,
        description=row.description,
        sale_price=row.sale_price,
        sale_date=row.sale_date,
        loan_principal=row.loan_principal,
        interest_rate=row.interest_rate,
        interest_period=row.interest_period,
        maturity_date=row.maturity_date,
        loan_status=row.loan_status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_event(row: AssetEventRow) -> AssetEvent:
    return AssetEvent(
        id=row.id,
        asset_id=row.asset_id,
        type=row.type,
        date=row.date,
        amount=row.amount,
        note=row.note,
        loan=LoanEventFields(**{name: getattr(row, name) for name in LOAN_COLUMNS}),
        created_at=row.created_at,
    )


def to_investor(row: InvestorRow) -> Investor:
    return Investor(id=row.id, name=row.name, email=row.email, phone=row.phone, created_at=row.created_at)


def to_cashflow(row: CashflowRow) -> InvestorCashflow:
    return InvestorCashflow(
        id=row.id,
        investor_id=row.investor_id,
        type=row.type,
        amount=row.amount,
        date=row.date,
        note=row.note,
    )


def to_bank_balance(row: BankBalanceRow) -> BankBalance:
    return BankBalance(
        id=row.id,
        account_name=row.account_name,
        bank_name=row.bank_name,
        amount=row.amount,
        currency=row.currency,
        date=row.date,
    )


def to_liability(row: LiabilityRow) -> Liability:
    return Liability(
        id=row.id,
        name=row.name,
        current_balance=row.current_balance,
        note=row.note,
        interest_rate=row.interest_rate,
        maturity_date=row.maturity_date,
    )


def to_investor_snapshot(row: InvestorSnapshotRow) -> InvestorSnapshot:
    return InvestorSnapshot(
        id=row.id,
        snapshot_id=row.snapshot_id,
        investor_id=row.investor_id,
        capital_amount=row.capital_amount,
        ownership_percent=row.ownership_percent,
        performance_fee=row.performance_fee,
    )


def to_snapshot(row: PeriodSnapshotRow) -> PeriodSnapshot:
    return PeriodSnapshot(
        id=row.id,
        date=row.date,
        total_asset_value=row.total_asset_value,
        total_bank_balance=row.total_bank_balance,
        total_liabilities=row.total_liabilities,
        nav=row.nav,
        performance_fee_rate=row.performance_fee_rate,
        total_performance_fee=row.total_performance_fee,
        investor_snapshots=tuple(to_investor_snapshot(item) for item in row.investor_snapshots),
        created_at=row.created_at,
    )


class SqlAlchemyAssetRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, asset_id: int, for_update: bool = False) -> Asset | None:
        stmt = select(AssetRow).where(AssetRow.id == asset_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.scalars(stmt).first()
        return to_asset(row) if row is not None else None

    def list(self, asset_type: AssetType | None = None, status: AssetStatus | None = None) -> Sequence[Asset]:
        stmt = select(AssetRow).order_by(AssetRow.id)
        if asset_type is not None:
            stmt = stmt.where(AssetRow.type == asset_type)
        if status is not None:
            stmt = stmt.where(AssetRow.status == status)
        return [to_asset(row) for row in self._session.scalars(stmt)]

    def add(self, **values: Any) -> Asset:
        row = AssetRow(**values)
        self._session.add(row)
        self._session.flush()
        return to_asset(row)

    def update(self, asset_id: int, changes: Mapping[str, Any]) -> Asset:
        row = _require(self._session, AssetRow, asset_id, "Asset")
        _apply(row, changes)
        self._session.flush()
        return to_asset(row)

    def save_valuation(self, asset_id: int, valuation: Valuation) -> Asset:
        return self.update(
            asset_id,
            {
                "current_value": valuation.current_value,
                "status": valuation.status,
                "sale_price": valuation.sale_price,
                "sale_date": valuation.sale_date,
                "loan_status": valuation.loan_status,
            },
        )

    def delete(self, asset_id: int) -> None:
        self._session.delete(_require(self._session, AssetRow, asset_id, "Asset"))
        self._session.flush()


class SqlAlchemyAssetEventRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, event_id: int) -> AssetEvent | None:
        row = self._session.get(AssetEventRow, event_id)
        return to_event(row) if row is not None else None

    def list_for_asset(self, asset_id: int) -> Sequence[AssetEvent]:
        stmt = (
            select(AssetEventRow)
            .where(AssetEventRow.asset_id == asset_id)
            .order_by(AssetEventRow.date, AssetEventRow.id)
        )
        return [to_event(row) for row in self._session.scalars(stmt)]

    def latest_for_asset(self, asset_id: int) -> AssetEvent | None:
        stmt = (
            select(AssetEventRow)
            .where(AssetEventRow.asset_id == asset_id)
            .order_by(AssetEventRow.date.desc(), AssetEventRow.id.desc())
            .limit(1)
        )
        row = self._session.scalars(stmt).first()
        return to_event(row) if row is not None else None

    def count_for_asset(self, asset_id: int) -> int:
        stmt = select(func.count()).select_from(AssetEventRow).where(AssetEventRow.asset_id == asset_id)
        return self._session.scalar(stmt) or 0

    def list(
        self,
        asset_id: int | None = None,
        event_type: AssetEventType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[AssetEvent]:
        stmt = select(AssetEventRow).order_by(AssetEventRow.date, AssetEventRow.id)
        if asset_id is not None:
            stmt = stmt.where(AssetEventRow.asset_id == asset_id)
        if event_type is not None:
            stmt = stmt.where(AssetEventRow.type == event_type)
        stmt = _date_range(stmt, AssetEventRow.date, date_from, date_to)
        return [to_event(row) for row in self._session.scalars(stmt)]

    def add(self, draft: AssetEventDraft) -> AssetEvent:
        row = AssetEventRow(
            asset_id=draft.asset_id,
            type=draft.type,
            amount=draft.amount,
            date=draft.date,
            note=draft.note,
            **{name: getattr(draft.loan, name) for name in LOAN_COLUMNS},
        )
        self._session.add(row)
        self._session.flush()
        return to_event(row)

    def update(self, event_id: int, changes: Mapping[str, Any]) -> AssetEvent:
        row = _require(self._session, AssetEventRow, event_id, "Asset event")
        values = dict(changes)
        loan = values.pop("loan", None)
        if loan is not None:
            values.update({name: getattr(loan, name) for name in LOAN_COLUMNS})
        _apply(row, values)
        self._session.flush()
        return to_event(row)

    def delete(self, event_id: int) -> None:
        self._session.delete(_require(self._session, AssetEventRow, event_id, "Asset event"))
        self._session.flush()


class SqlAlchemyInvestorRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, investor_id: int) -> Investor | None:
        row = self._session.get(InvestorRow, investor_id)
        return to_investor(row) if row is not None else None

    def list(self) -> Sequence[Investor]:
        return [to_investor(row) for row in self._session.scalars(select(InvestorRow).order_by(InvestorRow.id))]

    def add(self, name: str, email: str, phone: str | None = None) -> Investor:
        row = InvestorRow(name=name, email=email, phone=phone)
        self._session.add(row)
        self._session.flush()
        return to_investor(row)

    def update(self, investor_id: int, changes: Mapping[str, Any]) -> Investor:
        row = _require(self._session, InvestorRow, investor_id, "Investor")
        _apply(row, changes)
        self._session.flush()
        return to_investor(row)

    def delete(self, investor_id: int) -> None:
        self._session.delete(_require(self._session, InvestorRow, investor_id, "Investor"))
        self._session.flush()


class SqlAlchemyCashflowRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, cashflow_id: int) -> InvestorCashflow | None:
        row = self._session.get(CashflowRow, cashflow_id)
        return to_cashflow(row) if row is not None else None

    def list(
        self,
        investor_id: int | None = None,
        cashflow_type: CashflowType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[InvestorCashflow]:
        stmt = select(CashflowRow).order_by(CashflowRow.date, CashflowRow.id)
        if investor_id is not None:
            stmt = stmt.where(CashflowRow.investor_id == investor_id)
        if cashflow_type is not None:
            stmt = stmt.where(CashflowRow.type == cashflow_type)
        stmt = _date_range(stmt, CashflowRow.date, date_from, date_to)
        return [to_cashflow(row) for row in self._session.scalars(stmt)]

    def add(
        self,
        investor_id: int,
        cashflow_type: CashflowType,
        amount: Decimal,
        cashflow_date: date,
        note: str | None = None,
    ) -> InvestorCashflow:
        row = CashflowRow(investor_id=investor_id, type=cashflow_type, amount=amount, date=cashflow_date, note=note)
        self._session.add(row)
        self._session.flush()
        return to_cashflow(row)

    def update(self, cashflow_id: int, changes: Mapping[str, Any]) -> InvestorCashflow:
        row = _require(self._session, CashflowRow, cashflow_id, "Cashflow")
        _apply(row, changes)
        self._session.flush()
        return to_cashflow(row)

    def delete(self, cashflow_id: int) -> None:
        self._session.delete(_require(self._session, CashflowRow, cashflow_id, "Cashflow"))
        self._session.flush()


class SqlAlchemyBankBalanceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, balance_id: int) -> BankBalance | None:
        row = self._session.get(BankBalanceRow, balance_id)
        return to_bank_balance(row) if row is not None else None

    def list(self, date_from: date | None = None, date_to: date | None = None) -> Sequence[BankBalance]:
        stmt = select(BankBalanceRow).order_by(BankBalanceRow.date, BankBalanceRow.id)
        stmt = _date_range(stmt, BankBalanceRow.date, date_from, date_to)
        return [to_bank_balance(row) for row in self._session.scalars(stmt)]

    def add(
        self,
        account_name: str,
        bank_name: str | None,
        amount: Decimal,
        currency: str,
        balance_date: date,
    ) -> BankBalance:
        row = BankBalanceRow(
            account_name=account_name,
            bank_name=bank_name,
            amount=amount,
            currency=currency,
            date=balance_date,
        )
        self._session.add(row)
        self._session.flush()
        return to_bank_balance(row)

    def update(self, balance_id: int, changes: Mapping[str, Any]) -> BankBalance:
        row = _require(self._session, BankBalanceRow, balance_id, "Bank balance")
        _apply(row, changes)
        self._session.flush()
        return to_bank_balance(row)

    def delete(self, balance_id: int) -> None:
        self._session.delete(_require(self._session, BankBalanceRow, balance_id, "Bank balance"))
        self._session.flush()


class SqlAlchemyLiabilityRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, liability_id: int) -> Liability | None:
        row = self._session.get(LiabilityRow, liability_id)
        return to_liability(row) if row is not None else None

    def list(self) -> Sequence[Liability]:
        return [to_liability(row) for row in self._session.scalars(select(LiabilityRow).order_by(LiabilityRow.id))]

    def add(self, **values: Any) -> Liability:
        row = LiabilityRow(**values)
        self._session.add(row)
        self._session.flush()
        return to_liability(row)

    def update(self, liability_id: int, changes: Mapping[str, Any]) -> Liability:
        row = _require(self._session, LiabilityRow, liability_id, "Liability")
        _apply(row, changes)
        self._session.flush()
        return to_liability(row)

    def delete(self, liability_id: int) -> None:
        self._session.delete(_require(self._session, LiabilityRow, liability_id, "Liability"))
        self._session.flush()


class SqlAlchemySnapshotRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, snapshot_id: int) -> PeriodSnapshot | None:
        row = self._session.get(PeriodSnapshotRow, snapshot_id)
        return to_snapshot(row) if row is not None else None

    def list(self, date_from: date | None = None, date_to: date | None = None) -> Sequence[PeriodSnapshot]:
        stmt = select(PeriodSnapshotRow).order_by(PeriodSnapshotRow.date.desc(), PeriodSnapshotRow.id.desc())
        stmt = _date_range(stmt, PeriodSnapshotRow.date, date_from, date_to)
        return [to_snapshot(row) for row in self._session.scalars(stmt)]

    def latest(self) -> PeriodSnapshot | None:
        stmt = select(PeriodSnapshotRow).order_by(PeriodSnapshotRow.date.desc(), PeriodSnapshotRow.id.desc()).limit(1)
        row = self._session.scalars(stmt).first()
        return to_snapshot(row) if row is not None else None

    def add(self, draft: SnapshotDraft) -> PeriodSnapshot:
        row = PeriodSnapshotRow(
            date=draft.date,
            total_asset_value=draft.total_asset_value,
            total_bank_balance=draft.total_bank_balance,
            total_liabilities=draft.total_liabilities,
            nav=draft.nav,
            performance_fee_rate=draft.performance_fee_rate,
            total_performance_fee=draft.total_performance_fee,
            investor_snapshots=[
                InvestorSnapshotRow(
                    investor_id=item.investor_id,
                    capital_amount=item.capital_amount,
                    ownership_percent=item.ownership_percent,
                    performance_fee=item.performance_fee,
                )
                for item in draft.investors
            ],
        )
        self._session.add(row)
        self._session.flush()
        return to_snapshot(row)

    def update(
        self,
        snapshot_id: int,
        changes: Mapping[str, Any],
        investor_fees: Mapping[int, Decimal | None] | None = None,
    ) -> PeriodSnapshot:
        row = _require(self._session, PeriodSnapshotRow, snapshot_id, "Snapshot")
        _apply(row, changes)
        if investor_fees is not None:
            for item in row.investor_snapshots:
                item.performance_fee = investor_fees.get(item.investor_id)
        self._session.flush()
        return to_snapshot(row)

    def delete(self, snapshot_id: int) -> None:
        self._session.delete(_require(self._session, PeriodSnapshotRow, snapshot_id, "Snapshot"))
        self._session.flush()

    def list_for_investor(self, investor_id: int) -> Sequence[InvestorSnapshot]:
        stmt = (
            select(InvestorSnapshotRow)
            .join(PeriodSnapshotRow)
            .where(InvestorSnapshotRow.investor_id == investor_id)
            .order_by(PeriodSnapshotRow.date.desc(), PeriodSnapshotRow.id.desc())
        )
        return [to_investor_snapshot(row) for row in self._session.scalars(stmt)]
