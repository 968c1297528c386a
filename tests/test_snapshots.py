from datetime import date
from decimal import Decimal

import pytest

from factories import TODAY
from nav_ledger.domain.errors import BusinessRuleError, NotFoundError
from nav_ledger.domain.models import AssetType, CashflowType, SnapshotPatch


@pytest.fixture
def fund(assets, investors, banks, liabilities):
    assets.create_asset("Warehouse", AssetType.REAL_ESTATE, acquired_price=Decimal("900000"))
    banks.add_bank_balance("Operating", Decimal("150000"), date(2024, 6, 1), bank_name="ING")
    liabilities.create_liability("Mortgage", Decimal("50000"))

    alice = investors.create_investor("Alice", "alice@fund.test")
    bob = investors.create_investor("Bob", "bob@fund.test")
    carol = investors.create_investor("Carol", "carol@fund.test")
    investors.add_cashflow(alice.id, CashflowType.DEPOSIT, Decimal("300000"), date(2024, 1, 1))
    investors.add_cashflow(bob.id, CashflowType.DEPOSIT, Decimal("300000"), date(2024, 1, 1))
    investors.add_cashflow(carol.id, CashflowType.DEPOSIT, Decimal("300000"), date(2024, 1, 1))
    return alice, bob, carol


def test_snapshot_without_fee_rate_has_no_fees(snapshots, fund):
    snapshot = snapshots.create_snapshot(date(2024, 6, 30))

    assert snapshot.nav == Decimal("1000000")
    assert snapshot.total_performance_fee is None
    assert [item.performance_fee for item in snapshot.investor_snapshots] == [None, None, None]
    assert sum(item.ownership_percent for item in snapshot.investor_snapshots) == Decimal("100")


def test_snapshot_fee_allocation_sums_to_total(snapshots, fund):
    snapshot = snapshots.create_snapshot(date(2024, 6, 30), Decimal("20"))

    assert snapshot.total_performance_fee == Decimal("200000.00")
    fees = [item.performance_fee for item in snapshot.investor_snapshots]
    assert sum(fees) == snapshot.total_performance_fee
    assert snapshot.nav == snapshot.total_asset_value + snapshot.total_bank_balance - snapshot.total_liabilities


def test_snapshot_date_defaults_to_today(snapshots, fund):
    assert snapshots.create_snapshot().date == TODAY


def test_zero_capital_investor_is_included(snapshots, investors, fund):
    dormant = investors.create_investor("Dan", "dan@fund.test")

    snapshot = snapshots.create_snapshot(date(2024, 6, 30), Decimal("10"))
    row = next(item for item in snapshot.investor_snapshots if item.investor_id == dormant.id)

    assert row.capital_amount == Decimal("0")
    assert row.ownership_percent == Decimal("0")
    assert row.performance_fee == Decimal("0")


def test_snapshot_with_no_capital_assigns_zero_ownership(snapshots, investors):
    investors.create_investor("Eve", "eve@fund.test")

    snapshot = snapshots.create_snapshot(date(2024, 6, 30))

    assert snapshot.nav == Decimal("0")
    assert [item.ownership_percent for item in snapshot.investor_snapshots] == [Decimal("0")]


@pytest.mark.parametrize("rate", [Decimal("-1"), Decimal("101")])
def test_invalid_fee_rate_is_rejected(snapshots, fund, rate):
    with pytest.raises(BusinessRuleError):
        snapshots.create_snapshot(date(2024, 6, 30), rate)

    assert snapshots.get_latest_snapshot() is None


def test_update_fee_rate_reallocates(snapshots, fund):
    snapshot = snapshots.create_snapshot(date(2024, 6, 30))

    updated = snapshots.update_snapshot(snapshot.id, SnapshotPatch(performance_fee_rate=Decimal("15")))

    assert updated.total_performance_fee == Decimal("150000.00")
    assert sum(item.performance_fee for item in updated.investor_snapshots) == Decimal("150000.00")

    cleared = snapshots.update_snapshot(snapshot.id, SnapshotPatch(performance_fee_rate=None))
    assert cleared.total_performance_fee is None
    assert all(item.performance_fee is None for item in cleared.investor_snapshots)


def test_update_snapshot_date_keeps_values(snapshots, fund):
    snapshot = snapshots.create_snapshot(date(2024, 6, 30), Decimal("20"))

    updated = snapshots.update_snapshot(snapshot.id, SnapshotPatch(date=date(2024, 6, 28)))

    assert updated.date == date(2024, 6, 28)
    assert updated.total_performance_fee == snapshot.total_performance_fee


def test_snapshot_history_queries(snapshots, fund):
    alice = fund[0]
    first = snapshots.create_snapshot(date(2024, 3, 31))
    second = snapshots.create_snapshot(date(2024, 6, 30))

    assert [item.id for item in snapshots.list_snapshots()] == [second.id, first.id]
    assert [item.id for item in snapshots.list_snapshots(date_to=date(2024, 4, 30))] == [first.id]
    assert snapshots.get_latest_snapshot().id == second.id
    assert snapshots.get_snapshot(first.id).date == date(2024, 3, 31)
    history = snapshots.get_investor_snapshots(alice.id)
    assert [item.snapshot_id for item in history] == [second.id, first.id]


def test_delete_snapshot(snapshots, fund):
    snapshot = snapshots.create_snapshot(date(2024, 6, 30))

    snapshots.delete_snapshot(snapshot.id)

    with pytest.raises(NotFoundError):
        snapshots.get_snapshot(snapshot.id)
    assert snapshots.get_investor_snapshots(fund[0].id) == []


def test_snapshot_is_not_affected_by_later_cashflows(snapshots, investors, fund):
    alice = fund[0]
    snapshot = snapshots.create_snapshot(date(2024, 6, 30))

    investors.add_cashflow(alice.id, CashflowType.DEPOSIT, Decimal("300000"), date(2024, 7, 1))

    stored = snapshots.get_snapshot(snapshot.id)
    assert stored.investor_snapshots[0].capital_amount == Decimal("300000")
    assert investors.get_investor(alice.id).ownership_percent == Decimal("50")
