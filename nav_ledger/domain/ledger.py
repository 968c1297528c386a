"""Pure replay of an asset's event ledger.

Every value transform lives in :meth:`EventLedger.step`. Appending an event runs one
step from the persisted state; updating or deleting an event folds ``step`` over the
whole remaining ledger. Both paths therefore share a single arithmetic.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from .models import AssetEvent, AssetEventType, AssetType

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerState:
    """Running value plus the interest capitalized by unpaid accruals so far."""

    value: Decimal
    unpaid_interest: Decimal = ZERO


def _amount(event: AssetEvent) -> Decimal:
    return event.amount if event.amount is not None else ZERO


_TRANSFORMS: dict[AssetEventType, Callable[[Decimal, Decimal], Decimal]] = {
    AssetEventType.VALUATION: lambda value, amount: amount,
    AssetEventType.PAYMENT_IN: lambda value, amount: value + amount,
    AssetEventType.PAYMENT_OUT: lambda value, amount: value - abs(amount),
    AssetEventType.CAPEX: lambda value, amount: value + amount,
    AssetEventType.NOTE: lambda value, amount: value,
    AssetEventType.SALE: lambda value, amount: ZERO,
    AssetEventType.LOAN_DISBURSEMENT: lambda value, amount: amount,
    AssetEventType.PRINCIPAL_PAYMENT: lambda value, amount: value - abs(amount),
    AssetEventType.LOAN_REPAYMENT: lambda value, amount: ZERO,
    AssetEventType.DEFAULT: lambda value, amount: ZERO,
}

INTEREST_EVENTS = frozenset({AssetEventType.INTEREST_ACCRUAL, AssetEventType.INTEREST_PAYMENT})


def ledger_order(events: Iterable[AssetEvent]) -> list[AssetEvent]:
    """Ascending by date; events on the same day keep insertion (id) order."""
    return sorted(events, key=lambda event: (event.date, event.id))


def unpaid_interest_total(events: Iterable[AssetEvent]) -> Decimal:
    return sum(
        (
            event.effective_interest
            for event in events
            if event.type is AssetEventType.INTEREST_ACCRUAL and not event.loan.is_paid
        ),
        ZERO,
    )


class EventLedger:
    """Deterministic fold from (base value, ordered events) to current value."""

    @staticmethod
    def apply(value: Decimal, event_type: AssetEventType, amount: Decimal | None) -> Decimal:
        """Standard transform table; interest events leave the value unchanged."""
        transform = _TRANSFORMS.get(event_type)
        if transform is None:
            return value
        return transform(value, amount if amount is not None else ZERO)

    @classmethod
    def step(cls, state: LedgerState, event: AssetEvent, asset_type: AssetType) -> LedgerState:
        if asset_type is not AssetType.LOAN or event.type not in INTEREST_EVENTS:
            return LedgerState(cls.apply(state.value, event.type, event.amount), state.unpaid_interest)

        if event.type is AssetEventType.INTEREST_ACCRUAL:
            if event.loan.is_paid:
                return state
            interest = event.effective_interest
            return LedgerState(state.value + interest, state.unpaid_interest + interest)

        # INTEREST_PAYMENT: never credit more than was capitalized, never go below zero.
        credited = min(_amount(event), state.unpaid_interest)
        return LedgerState(max(ZERO, state.value - credited), state.unpaid_interest)

    @classmethod
    def replay(
        cls,
        base_value: Decimal,
        events: Sequence[AssetEvent],
        asset_type: AssetType,
    ) -> LedgerState:
        state = LedgerState(base_value)
        for event in ledger_order(events):
            state = cls.step(state, event, asset_type)
        return state
