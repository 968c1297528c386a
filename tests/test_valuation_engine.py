from datetime import date
from decimal import Decimal

import pytest

from factories import make_asset, make_event
from nav_ledger.domain.errors import BusinessRuleError, ValidationError
from nav_ledger.domain.models import (
    AssetEventType,
    AssetStatus,
    AssetType,
    InterestPeriod,
    LoanEventFields,
    LoanStatus,
)
from nav_ledger.domain.valuation import AssetValuationEngine


def test_validation_info_without_events_uses_acquired_date():
    engine = AssetValuationEngine()
    asset = make_asset(acquired_date=date(2024, 1, 10))

    info = engine.validation_info(asset, None)

    assert info.can_add_events
    assert info.min_date == date(2024, 1, 10)
    assert info.last_event_date is None
    assert info.last_event_type is None


def test_validation_info_tracks_latest_event():
    engine = AssetValuationEngine()
    asset = make_asset(acquired_date=date(2024, 1, 10))
    last = make_event(7, AssetEventType.CAPEX, "10", on=date(2024, 3, 1))

    info = engine.validation_info(asset, last)

    assert info.min_date == date(2024, 3, 1)
    assert info.last_event_type is AssetEventType.CAPEX


def test_check_append_rejects_backdated_event_with_details():
    engine = AssetValuationEngine()
    asset = make_asset()
    last = make_event(1, AssetEventType.VALUATION, "10", on=date(2024, 3, 1))

    with pytest.raises(BusinessRuleError) as excinfo:
        engine.check_append(asset, date(2024, 2, 28), last)

    assert excinfo.value.code == "BUSINESS_RULE"
    assert excinfo.value.details["date"] == date(2024, 2, 28)
    assert excinfo.value.details["min_date"] == date(2024, 3, 1)


def test_check_append_accepts_same_day():
    engine = AssetValuationEngine()
    last = make_event(1, AssetEventType.VALUATION, "10", on=date(2024, 3, 1))

    engine.check_append(make_asset(), date(2024, 3, 1), last)


def test_check_append_rejects_sold_asset():
    engine = AssetValuationEngine()
    asset = make_asset(status=AssetStatus.SOLD, sale_date=date(2024, 3, 1))

    with pytest.raises(BusinessRuleError):
        engine.check_append(asset, date(2024, 4, 1), None)


def test_loan_fields_rejected_on_non_loan_asset():
    with pytest.raises(ValidationError):
        AssetValuationEngine.check_loan_fields(make_asset(AssetType.STOCK), LoanEventFields(is_paid=True))


def test_loan_fields_reject_negative_amounts_and_inverted_period():
    loan_asset = make_asset(AssetType.LOAN)

    with pytest.raises(ValidationError):
        AssetValuationEngine.check_loan_fields(loan_asset, LoanEventFields(interest_amount=Decimal("-1")))
    with pytest.raises(ValidationError):
        AssetValuationEngine.check_loan_fields(
            loan_asset,
            LoanEventFields(reference_period_start=date(2024, 2, 1), reference_period_end=date(2024, 1, 1)),
        )


def test_append_sale_marks_asset_sold():
    engine = AssetValuationEngine()
    asset = make_asset(current_value="580000", acquired_price="500000")
    sale = make_event(3, AssetEventType.SALE, "620000", on=date(2024, 5, 1))

    valuation = engine.append(asset, sale, Decimal("0"))

    assert valuation.current_value == Decimal("0")
    assert valuation.status is AssetStatus.SOLD
    assert valuation.sale_price == Decimal("620000")
    assert valuation.sale_date == date(2024, 5, 1)


def test_replay_rederives_status_from_remaining_events():
    engine = AssetValuationEngine()
    asset = make_asset(
        AssetType.LOAN,
        status=AssetStatus.SOLD,
        sale_price=Decimal("10"),
        loan_status=LoanStatus.REPAID,
    )
    remaining = [make_event(1, AssetEventType.LOAN_DISBURSEMENT, "5000")]

    valuation = engine.replay(asset, remaining)

    assert valuation.current_value == Decimal("5000")
    assert valuation.status is AssetStatus.ACTIVE
    assert valuation.sale_price is None
    assert valuation.loan_status is LoanStatus.ACTIVE


def test_replay_uses_latest_loan_status_event():
    engine = AssetValuationEngine()
    events = [
        make_event(1, AssetEventType.LOAN_DISBURSEMENT, "5000", on=date(2024, 1, 1)),
        make_event(2, AssetEventType.DEFAULT, None, on=date(2024, 6, 1)),
    ]

    valuation = engine.replay(make_asset(AssetType.LOAN), events)

    assert valuation.current_value == Decimal("0")
    assert valuation.loan_status is LoanStatus.DEFAULTED


@pytest.mark.parametrize(
    "period, expected",
    [
        (InterestPeriod.MONTHLY, Decimal("1000")),
        (InterestPeriod.QUARTERLY, Decimal("333.33")),
        (InterestPeriod.YEARLY, Decimal("83.33")),
    ],
)
def test_expected_interest(period, expected):
    asset = make_asset(
        AssetType.LOAN,
        loan_principal=Decimal("100000"),
        interest_rate=Decimal("1"),
        interest_period=period,
    )

    assert AssetValuationEngine.expected_interest(asset).quantize(Decimal("0.01")) == expected
