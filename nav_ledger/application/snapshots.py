"""Point-in-time fund valuations with investor ownership and fee allocation."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Sequence

from nav_ledger.domain.errors import NotFoundError, ValidationError
from nav_ledger.domain.fees import allocate_fee, check_fee_rate, total_performance_fee
from nav_ledger.domain.models import (
    InvestorSnapshot,
    InvestorSnapshotDraft,
    PeriodSnapshot,
    SnapshotDraft,
    SnapshotPatch,
    patch_changes,
)
from nav_ledger.domain.nav import NavAggregator
from nav_ledger.domain.ownership import OwnershipCalculator
from nav_ledger.domain.repositories import Transaction

from .context import LedgerContext

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    def __init__(
        self,
        context: LedgerContext,
        aggregator: NavAggregator | None = None,
        ownership: OwnershipCalculator | None = None,
    ) -> None:
        self._context = context
        self._aggregator = aggregator or NavAggregator(context.settings)
        self._ownership = ownership or OwnershipCalculator(context.settings)

    def create_snapshot(
        self,
        snapshot_date: date | None = None,
        performance_fee_rate: Decimal | None = None,
    ) -> PeriodSnapshot:
        """Freeze the current NAV and every investor's share of it.

        With no fee rate (or a zero rate) the total and per-investor fees are ``None``.
        Otherwise the per-investor fees are pro-rata to ownership and sum exactly to
        the total fee.
        """
        check_fee_rate(performance_fee_rate)
        snapshot_date = snapshot_date or self._context.today()
        settings = self._context.settings

        def work(tx: Transaction) -> PeriodSnapshot:
            nav = self._aggregator.calculate(tx.assets.list(), tx.bank_balances.list(), tx.liabilities.list())
            ownerships = self._ownership.calculate(tx.investors.list(), tx.cashflows.list())
            total_fee = total_performance_fee(nav.nav, performance_fee_rate, settings)
            fees = allocate_fee(total_fee, [item.ownership_percent for item in ownerships], settings)

            snapshot = tx.snapshots.add(
                SnapshotDraft(
                    date=snapshot_date,
                    total_asset_value=nav.total_asset_value,
                    total_bank_balance=nav.total_bank_balance,
                    total_liabilities=nav.total_liabilities,
                    nav=nav.nav,
                    performance_fee_rate=performance_fee_rate,
                    total_performance_fee=total_fee,
                    investors=tuple(
                        InvestorSnapshotDraft(
                            investor_id=item.investor_id,
                            capital_amount=item.capital_amount,
                            ownership_percent=item.ownership_percent,
                            performance_fee=fee,
                        )
                        for item, fee in zip(ownerships, fees)
                    ),
                )
            )
            logger.info(
                "Created snapshot %s for %s: nav=%s investors=%s fee=%s",
                snapshot.id,
                snapshot_date,
                nav.nav,
                len(ownerships),
                total_fee,
            )
            return snapshot

        return self._context.unit_of_work.run(work)

    def list_snapshots(self, date_from: date | None = None, date_to: date | None = None) -> Sequence[PeriodSnapshot]:
        if date_from is not None and date_to is not None and date_to < date_from:
            raise ValidationError("date_to is earlier than date_from", {"date_from": date_from, "date_to": date_to})
        return self._context.unit_of_work.run(lambda tx: tx.snapshots.list(date_from=date_from, date_to=date_to))

    def get_snapshot(self, snapshot_id: int) -> PeriodSnapshot:
        return self._context.unit_of_work.run(lambda tx: self._load(tx, snapshot_id))

    def get_latest_snapshot(self) -> PeriodSnapshot | None:
        return self._context.unit_of_work.run(lambda tx: tx.snapshots.latest())

    def update_snapshot(self, snapshot_id: int, patch: SnapshotPatch) -> PeriodSnapshot:
        """Administrative correction; a new fee rate re-allocates the stored fees."""
        changes = patch_changes(patch)
        if "date" in changes and changes["date"] is None:
            raise ValidationError("date cannot be cleared", {"snapshot_id": snapshot_id})
        rate_changed = "performance_fee_rate" in changes
        if rate_changed:
            check_fee_rate(changes["performance_fee_rate"])
        settings = self._context.settings

        def work(tx: Transaction) -> PeriodSnapshot:
            existing = self._load(tx, snapshot_id)
            investor_fees = None
            if rate_changed:
                total_fee = total_performance_fee(existing.nav, changes["performance_fee_rate"], settings)
                items = existing.investor_snapshots
                fees = allocate_fee(total_fee, [item.ownership_percent for item in items], settings)
                investor_fees = {item.investor_id: fee for item, fee in zip(items, fees)}
                changes["total_performance_fee"] = total_fee
            snapshot = tx.snapshots.update(snapshot_id, changes, investor_fees)
            logger.info("Updated snapshot %s: %s", snapshot_id, sorted(changes))
            return snapshot

        return self._context.unit_of_work.run(work)

    def delete_snapshot(self, snapshot_id: int) -> None:
        def work(tx: Transaction) -> None:
            self._load(tx, snapshot_id)
            tx.snapshots.delete(snapshot_id)
            logger.info("Deleted snapshot %s", snapshot_id)

        self._context.unit_of_work.run(work)

    def get_investor_snapshots(self, investor_id: int) -> Sequence[InvestorSnapshot]:
        def work(tx: Transaction) -> Sequence[InvestorSnapshot]:
            if tx.investors.get(investor_id) is None:
                raise NotFoundError("Investor not found", {"investor_id": investor_id})
            return tx.snapshots.list_for_investor(investor_id)

        return self._context.unit_of_work.run(work)

    @staticmethod
    def _load(tx: Transaction, snapshot_id: int) -> PeriodSnapshot:
        snapshot = tx.snapshots.get(snapshot_id)
        if snapshot is None:
            raise NotFoundError("Snapshot not found", {"snapshot_id": snapshot_id})
        return snapshot
