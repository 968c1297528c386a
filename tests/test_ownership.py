from datetime import date
from decimal import Decimal

from nav_ledger.domain.models import CashflowType, Investor, InvestorCashflow
from nav_ledger.domain.ownership import OwnershipCalculator, capital_summary


def make_investor(investor_id: int) -> Investor:
    return Investor(id=investor_id, name=f"Investor {investor_id}", email=f"i{investor_id}@fund.test")


def make_cashflow(cashflow_id: int, investor_id: int, amount: str, kind: CashflowType = CashflowType.DEPOSIT):
    return InvestorCashflow(
        id=cashflow_id,
        investor_id=investor_id,
        type=kind,
        amount=Decimal(amount),
        date=date(2024, 1, 1),
    )


def test_equal_deposits_split_evenly():
    investors = [make_investor(1), make_investor(2)]
    cashflows = [make_cashflow(1, 1, "100000"), make_cashflow(2, 2, "100000")]

    result = OwnershipCalculator().calculate(investors, cashflows)

    assert [item.ownership_percent for item in result] == [Decimal("50"), Decimal("50")]


def test_additional_deposit_moves_every_share():
    investors = [make_investor(1), make_investor(2)]
    cashflows = [
        make_cashflow(1, 1, "100000"),
        make_cashflow(2, 2, "100000"),
        make_cashflow(3, 1, "200000"),
    ]

    result = OwnershipCalculator().calculate(investors, cashflows)

    assert result[0].capital_amount == Decimal("300000")
    assert [item.ownership_percent for item in result] == [Decimal("75"), Decimal("25")]


def test_shares_sum_to_exactly_one_hundred():
    investors = [make_investor(1), make_investor(2), make_investor(3)]
    cashflows = [make_cashflow(1, 1, "100"), make_cashflow(2, 2, "100"), make_cashflow(3, 3, "100")]

    result = OwnershipCalculator().calculate(investors, cashflows)

    assert sum(item.ownership_percent for item in result) == Decimal("100")
    assert all(item.ownership_percent.as_tuple().exponent == -10 for item in result)


def test_residual_goes_to_largest_capital():
    investors = [make_investor(1), make_investor(2), make_investor(3)]
    cashflows = [make_cashflow(1, 1, "1"), make_cashflow(2, 2, "1"), make_cashflow(3, 3, "2")]

    result = OwnershipCalculator().calculate(investors, cashflows)

    assert [item.ownership_percent for item in result] == [Decimal("25"), Decimal("25"), Decimal("50")]


def test_withdrawals_reduce_capital():
    investors = [make_investor(1), make_investor(2)]
    cashflows = [
        make_cashflow(1, 1, "100"),
        make_cashflow(2, 1, "50", CashflowType.WITHDRAWAL),
        make_cashflow(3, 2, "150"),
    ]

    result = OwnershipCalculator().calculate(investors, cashflows)

    assert result[0].total_withdrawals == Decimal("50")
    assert [item.ownership_percent for item in result] == [Decimal("25"), Decimal("75")]


def test_non_positive_total_capital_gives_zero_for_everyone():
    investors = [make_investor(1), make_investor(2)]
    cashflows = [
        make_cashflow(1, 1, "100"),
        make_cashflow(2, 1, "300", CashflowType.WITHDRAWAL),
        make_cashflow(3, 2, "100"),
    ]

    result = OwnershipCalculator().calculate(investors, cashflows)

    assert [item.ownership_percent for item in result] == [Decimal("0"), Decimal("0")]


def test_investor_without_cashflows_holds_nothing():
    investors = [make_investor(1), make_investor(2)]

    result = OwnershipCalculator().calculate(investors, [make_cashflow(1, 1, "10")])

    assert result[1].capital_amount == Decimal("0")
    assert result[1].ownership_percent == Decimal("0")
    assert result[0].ownership_percent == Decimal("100")


def test_capital_summary_counts_cashflows():
    summary = capital_summary(
        1,
        [make_cashflow(1, 1, "500"), make_cashflow(2, 1, "200", CashflowType.WITHDRAWAL)],
    )

    assert summary.total_deposits == Decimal("500")
    assert summary.total_withdrawals == Decimal("200")
    assert summary.total_capital == Decimal("300")
    assert summary.cashflow_count == 2
