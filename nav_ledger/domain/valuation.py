"""Domain service implementing the asset valuation rules."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from .errors import BusinessRuleError, ValidationError
from .ledger import EventLedger, LedgerState, ledger_order
from .models import (
    Asset,
    AssetEvent,
    AssetEventType,
    AssetStatus,
    InterestPeriod,
    LoanEventFields,
    LoanStatus,
)
from .results import EventValidationInfo

_PERIOD_MULTIPLIERS = {
    InterestPeriod.MONTHLY: Decimal("1"),
    InterestPeriod.QUARTERLY: Decimal("1") / Decimal("3"),
    InterestPeriod.YEARLY: Decimal("1") / Decimal("12"),
}

_LOAN_STATUS_EVENTS = {
    AssetEventType.LOAN_REPAYMENT: LoanStatus.REPAID,
    AssetEventType.DEFAULT: LoanStatus.DEFAULTED,
}


@dataclass(frozen=True)
class Valuation:
    """Derived asset state to persist after a ledger mutation."""

    current_value: Decimal
    status: AssetStatus
    sale_price: Decimal | None
    sale_date: date | None
    loan_status: LoanStatus | None


class AssetValuationEngine:
    """Validates ledger writes and derives an asset's value and status from its events."""

    def __init__(self, ledger: EventLedger | None = None) -> None:
        self._ledger = ledger or EventLedger()

    def validation_info(self, asset: Asset, last_event: AssetEvent | None) -> EventValidationInfo:
        min_date = last_event.date if last_event is not None else asset.acquired_date
        return EventValidationInfo(
            can_add_events=not asset.is_sold,
            min_date=min_date,
            last_event_date=last_event.date if last_event is not None else None,
            last_event_type=last_event.type if last_event is not None else None,
            is_sold=asset.is_sold,
        )

    def check_append(self, asset: Asset, event_date: date, last_event: AssetEvent | None) -> None:
        info = self.validation_info(asset, last_event)
        if not info.can_add_events:
            raise BusinessRuleError(
                "Cannot add events to a sold asset",
                {"asset_id": asset.id, "sale_date": asset.sale_date},
            )
        if info.min_date is not None and event_date < info.min_date:
            raise BusinessRuleError(
                "Event date is earlier than the latest allowed date",
                {"asset_id": asset.id, "date": event_date, "min_date": info.min_date},
            )

    def check_event_date(self, asset: Asset, event_date: date) -> None:
        if asset.acquired_date is not None and event_date < asset.acquired_date:
            raise BusinessRuleError(
                "Event date is earlier than the asset acquisition date",
                {"asset_id": asset.id, "date": event_date, "min_date": asset.acquired_date},
            )

    @staticmethod
    def check_loan_fields(asset: Asset, loan: LoanEventFields) -> None:
        if loan.is_empty():
            return
        if not asset.is_loan:
            raise ValidationError(
                "Loan tracking fields are only accepted on loan assets",
                {"asset_id": asset.id, "asset_type": asset.type.value},
            )
        for name in ("interest_amount", "principal_amount"):
            value = getattr(loan, name)
            if value is not None and value < 0:
                raise ValidationError(f"{name} must not be negative", {name: value})
        start, end = loan.reference_period_start, loan.reference_period_end
        if start is not None and end is not None and end < start:
            raise ValidationError(
                "Reference period ends before it starts",
                {"reference_period_start": start, "reference_period_end": end},
            )

    def append(self, asset: Asset, event: AssetEvent, unpaid_interest: Decimal) -> Valuation:
        """Single incremental step from the persisted value."""
        state = self._ledger.step(LedgerState(asset.current_value, unpaid_interest), event, asset.type)
        status, sale_price, sale_date = asset.status, asset.sale_price, asset.sale_date
        if event.type is AssetEventType.SALE:
            status, sale_price, sale_date = AssetStatus.SOLD, event.amount, event.date
        loan_status = _LOAN_STATUS_EVENTS.get(event.type, asset.loan_status)
        return Valuation(state.value, status, sale_price, sale_date, loan_status)

    def replay(self, asset: Asset, events: Sequence[AssetEvent]) -> Valuation:
        """Full replay from the base value; status is re-derived from the remaining ledger."""
        ordered = ledger_order(events)
        state = self._ledger.replay(asset.base_value, ordered, asset.type)

        sales = [event for event in ordered if event.type is AssetEventType.SALE]
        if sales:
            status, sale_price, sale_date = AssetStatus.SOLD, sales[-1].amount, sales[-1].date
        else:
            status, sale_price, sale_date = AssetStatus.ACTIVE, None, None

        loan_status = LoanStatus.ACTIVE if asset.is_loan else asset.loan_status
        for event in ordered:
            loan_status = _LOAN_STATUS_EVENTS.get(event.type, loan_status)
        return Valuation(state.value, status, sale_price, sale_date, loan_status)

    @staticmethod
    def expected_interest(asset: Asset) -> Decimal:
        """Interest for one month of the loan at its configured rate and period."""
        if not asset.is_loan:
            raise ValidationError("Interest applies to loan assets only", {"asset_id": asset.id})
        if asset.loan_principal is None or asset.interest_rate is None:
            return Decimal("0")
        multiplier = _PERIOD_MULTIPLIERS[asset.interest_period or InterestPeriod.MONTHLY]
        return asset.loan_principal * (asset.interest_rate / Decimal("100")) * multiplier
