from decimal import Decimal

import pytest

from nav_ledger.domain.errors import BusinessRuleError
from nav_ledger.domain.fees import allocate_fee, check_fee_rate, total_performance_fee


@pytest.mark.parametrize("rate", [None, Decimal("0")])
def test_no_fee_without_rate(rate):
    assert total_performance_fee(Decimal("1000000"), rate) is None


def test_total_fee_is_rounded_to_cents():
    assert total_performance_fee(Decimal("1000.005"), Decimal("10")) == Decimal("100.00")
    assert total_performance_fee(Decimal("250000"), Decimal("20")) == Decimal("50000.00")


@pytest.mark.parametrize("rate", [Decimal("-0.01"), Decimal("100.01")])
def test_rate_outside_bounds_is_rejected(rate):
    with pytest.raises(BusinessRuleError):
        check_fee_rate(rate)


def test_allocation_sums_exactly_to_total():
    percents = [Decimal("33.3333333333"), Decimal("33.3333333333"), Decimal("33.3333333334")]

    fees = allocate_fee(Decimal("100.00"), percents)

    assert sum(fees) == Decimal("100.00")
    assert fees[2] == Decimal("33.34")


def test_allocation_is_none_without_fee():
    assert allocate_fee(None, [Decimal("60"), Decimal("40")]) == [None, None]


def test_allocation_with_zero_ownership_is_zero():
    assert allocate_fee(Decimal("50.00"), [Decimal("0"), Decimal("0")]) == [Decimal("0"), Decimal("0")]


def test_negative_nav_gives_negative_fee():
    total = total_performance_fee(Decimal("-1000"), Decimal("10"))

    assert total == Decimal("-100.00")
    assert allocate_fee(total, [Decimal("75"), Decimal("25")]) == [Decimal("-75.00"), Decimal("-25.00")]
