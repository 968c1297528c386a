from datetime import date, datetime, timezone
from decimal import Decimal

from nav_ledger.domain.models import (
    Asset,
    AssetEvent,
    AssetEventType,
    AssetStatus,
    AssetType,
    BankBalance,
    LoanEventFields,
)

TODAY = date(2024, 6, 30)


def fixed_clock() -> datetime:
    return datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def make_asset(
    asset_type: AssetType = AssetType.REAL_ESTATE,
    current_value: str = "0",
    acquired_price: str | None = None,
    acquired_date: date | None = None,
    status: AssetStatus = AssetStatus.ACTIVE,
    asset_id: int = 1,
    **extra,
) -> Asset:
    return Asset(
        id=asset_id,
        name=f"Asset {asset_id}",
        type=asset_type,
        status=status,
        current_value=Decimal(current_value),
        acquired_price=Decimal(acquired_price) if acquired_price is not None else None,
        acquired_date=acquired_date,
        **extra,
    )


def make_event(
    event_id: int,
    event_type: AssetEventType,
    amount: str | None = None,
    on: date = date(2024, 1, 1),
    loan: LoanEventFields | None = None,
) -> AssetEvent:
    return AssetEvent(
        id=event_id,
        asset_id=1,
        type=event_type,
        date=on,
        amount=Decimal(amount) if amount is not None else None,
        loan=loan or LoanEventFields(),
    )


def make_balance(
    balance_id: int,
    account: str,
    amount: str,
    on: date,
    bank: str | None = "Bank",
    currency: str = "EUR",
) -> BankBalance:
    return BankBalance(
        id=balance_id,
        account_name=account,
        bank_name=bank,
        amount=Decimal(amount),
        currency=currency,
        date=on,
    )
