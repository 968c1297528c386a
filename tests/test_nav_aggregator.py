from datetime import date
from decimal import Decimal

from factories import make_asset, make_balance
from nav_ledger.domain.models import AssetStatus, AssetType, Liability
from nav_ledger.domain.nav import NavAggregator, latest_balances
from nav_ledger.domain.results import InvestorOwnership


def make_ownership(investor_id: int, capital: str) -> InvestorOwnership:
    return InvestorOwnership(
        investor_id=investor_id,
        name="Investor",
        email="investor@fund.test",
        total_deposits=Decimal(capital),
        total_withdrawals=Decimal("0"),
        capital_amount=Decimal(capital),
        ownership_percent=Decimal("100"),
    )


def test_empty_fund_has_zero_nav():
    nav = NavAggregator().calculate([], [], [])

    assert nav.nav == Decimal("0")
    assert nav.total_asset_value == nav.total_bank_balance == nav.total_liabilities == Decimal("0")
    assert len(nav.asset_breakdown) == 0
    assert len(nav.bank_breakdown) == 0
    assert len(nav.liability_breakdown) == 0


def test_nav_identity_and_breakdown_conservation():
    assets = [
        make_asset(AssetType.REAL_ESTATE, "500000", asset_id=1),
        make_asset(AssetType.REAL_ESTATE, "250000", asset_id=2),
        make_asset(AssetType.LOAN, "100000", asset_id=3),
        make_asset(AssetType.STOCK, "0", asset_id=4, status=AssetStatus.SOLD),
    ]
    balances = [
        make_balance(1, "Operating", "20000", date(2024, 1, 31), currency="EUR"),
        make_balance(2, "Reserve", "5000", date(2024, 1, 31), currency="USD"),
    ]
    liabilities = [Liability(id=1, name="Mortgage", current_balance=Decimal("300000"))]

    nav = NavAggregator().calculate(assets, balances, liabilities)

    assert nav.total_asset_value == Decimal("850000")
    assert nav.total_bank_balance == Decimal("25000")
    assert nav.total_liabilities == Decimal("300000")
    assert nav.nav == nav.total_asset_value + nav.total_bank_balance - nav.total_liabilities
    assert sum(item.total_value for item in nav.asset_breakdown) == nav.total_asset_value
    assert sum(item.total_amount for item in nav.bank_breakdown) == nav.total_bank_balance
    by_type = {item.type: item for item in nav.asset_breakdown}
    assert by_type["REAL_ESTATE"].count == 2
    assert "STOCK" not in by_type


def test_only_latest_balance_per_account_counts():
    balances = [
        make_balance(1, "Operating", "10000", date(2024, 1, 31)),
        make_balance(2, "Operating", "12000", date(2024, 2, 29)),
    ]

    nav = NavAggregator().calculate([], balances, [])

    assert nav.total_bank_balance == Decimal("12000")


def test_account_key_ignores_case_and_whitespace():
    balances = [
        make_balance(1, "Operating ", "10000", date(2024, 1, 31), bank="ING"),
        make_balance(2, "operating", "11000", date(2024, 2, 29), bank=" ing"),
        make_balance(3, "Operating", "500", date(2024, 1, 15), bank=None),
    ]

    latest = latest_balances(balances)

    assert [balance.id for balance in latest] == [2, 3]


def test_same_day_tie_goes_to_newest_row():
    balances = [
        make_balance(5, "Operating", "100", date(2024, 3, 1)),
        make_balance(4, "Operating", "200", date(2024, 3, 1)),
    ]

    assert [balance.id for balance in latest_balances(balances)] == [5]


def test_balance_analysis_within_tolerance():
    aggregator = NavAggregator()
    nav = aggregator.calculate([make_asset(current_value="100000.50")], [], [])

    analysis = aggregator.analyze_balance(nav, [make_ownership(1, "100000")])

    assert analysis.difference == Decimal("0.50")
    assert analysis.is_balanced
    assert analysis.has_unrealized_gains


def test_balance_analysis_reports_losses():
    aggregator = NavAggregator()
    nav = aggregator.calculate([make_asset(current_value="90000")], [], [])

    analysis = aggregator.analyze_balance(nav, [make_ownership(1, "100000")])

    assert not analysis.is_balanced
    assert analysis.has_unrealized_losses
    assert analysis.difference_percent == Decimal("-10")
