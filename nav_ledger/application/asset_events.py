"""Write path of the asset event ledger.

Every mutation reads the asset under a row lock, validates, writes the event and
persists the recomputed value and status within one unit of work.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Sequence

from nav_ledger.domain.errors import NotFoundError, ValidationError
from nav_ledger.domain.ledger import ZERO, unpaid_interest_total
from nav_ledger.domain.models import (
    Asset,
    AssetEvent,
    AssetEventDraft,
    AssetEventPatch,
    AssetEventType,
    LoanEventFields,
    patch_changes,
)
from nav_ledger.domain.repositories import Transaction
from nav_ledger.domain.results import EventValidationInfo
from nav_ledger.domain.valuation import AssetValuationEngine

from .context import LedgerContext

logger = logging.getLogger(__name__)


def load_asset(tx: Transaction, asset_id: int, for_update: bool = False) -> Asset:
    asset = tx.assets.get(asset_id, for_update=for_update)
    if asset is None:
        raise NotFoundError("Asset not found", {"asset_id": asset_id})
    return asset


class AssetEventUseCases:
    def __init__(self, context: LedgerContext, engine: AssetValuationEngine | None = None) -> None:
        self._context = context
        self._engine = engine or AssetValuationEngine()

    def append_asset_event(
        self,
        asset_id: int,
        event_type: AssetEventType,
        event_date: date,
        amount: Decimal | None = None,
        note: str | None = None,
        loan: LoanEventFields | None = None,
    ) -> AssetEvent:
        loan = loan or LoanEventFields()

        def work(tx: Transaction) -> AssetEvent:
            asset = load_asset(tx, asset_id, for_update=True)
            self._engine.check_append(asset, event_date, tx.asset_events.latest_for_asset(asset_id))
            self._engine.check_loan_fields(asset, loan)

            unpaid = ZERO
            if asset.is_loan and event_type is AssetEventType.INTEREST_PAYMENT:
                unpaid = unpaid_interest_total(tx.asset_events.list_for_asset(asset_id))

            event = tx.asset_events.add(
                AssetEventDraft(
                    asset_id=asset_id,
                    type=event_type,
                    date=event_date,
                    amount=amount,
                    note=note,
                    loan=loan,
                )
            )
            valuation = self._engine.append(asset, event, unpaid)
            tx.assets.save_valuation(asset_id, valuation)
            logger.info(
                "Appended %s event %s to asset %s; value %s -> %s",
                event_type.value,
                event.id,
                asset_id,
                asset.current_value,
                valuation.current_value,
            )
            return event

        return self._context.unit_of_work.run(work)

    def update_asset_event(self, event_id: int, patch: AssetEventPatch) -> AssetEvent:
        """Correct a recorded event and replay the asset's whole ledger.

        Looser than append: a new date is only checked against ``acquired_date``, so an
        event may move before later ones (replay re-sorts by date), and events of a SOLD
        asset stay editable. Status is re-derived from the corrected ledger.
        """
        changes = patch_changes(patch)
        for required in ("type", "date"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be cleared", {"event_id": event_id})
        if "loan" in changes and changes["loan"] is None:
            changes["loan"] = LoanEventFields()

        def work(tx: Transaction) -> AssetEvent:
            existing = self._load_event(tx, event_id)
            asset = load_asset(tx, existing.asset_id, for_update=True)
            if "date" in changes:
                self._engine.check_event_date(asset, changes["date"])
            if "loan" in changes:
                self._engine.check_loan_fields(asset, changes["loan"])

            event = tx.asset_events.update(event_id, changes)
            valuation = self._engine.replay(asset, tx.asset_events.list_for_asset(asset.id))
            tx.assets.save_valuation(asset.id, valuation)
            logger.info("Updated event %s on asset %s; value now %s", event_id, asset.id, valuation.current_value)
            return event

        return self._context.unit_of_work.run(work)

    def delete_asset_event(self, event_id: int) -> None:
        def work(tx: Transaction) -> None:
            existing = self._load_event(tx, event_id)
            asset = load_asset(tx, existing.asset_id, for_update=True)
            tx.asset_events.delete(event_id)
            valuation = self._engine.replay(asset, tx.asset_events.list_for_asset(asset.id))
            tx.assets.save_valuation(asset.id, valuation)
            logger.info(
                "Deleted %s event %s from asset %s; value now %s",
                existing.type.value,
                event_id,
                asset.id,
                valuation.current_value,
            )

        self._context.unit_of_work.run(work)

    def get_asset_event_validation_info(self, asset_id: int) -> EventValidationInfo:
        def work(tx: Transaction) -> EventValidationInfo:
            asset = load_asset(tx, asset_id)
            return self._engine.validation_info(asset, tx.asset_events.latest_for_asset(asset_id))

        return self._context.unit_of_work.run(work)

    def list_asset_events(
        self,
        asset_id: int | None = None,
        event_type: AssetEventType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[AssetEvent]:
        def work(tx: Transaction) -> Sequence[AssetEvent]:
            if asset_id is not None:
                load_asset(tx, asset_id)
            return tx.asset_events.list(asset_id=asset_id, event_type=event_type, date_from=date_from, date_to=date_to)

        return self._context.unit_of_work.run(work)

    def suggest_interest_accrual(self, asset_id: int) -> Decimal:
        """Expected interest for the next accrual of a loan asset, rounded to cents."""
        asset = self._context.unit_of_work.run(lambda tx: load_asset(tx, asset_id))
        expected = self._engine.expected_interest(asset)
        return expected.quantize(self._context.settings.money_quantum, rounding=ROUND_HALF_EVEN)

    def recalculate_asset_value(self, asset_id: int) -> Asset:
        def work(tx: Transaction) -> Asset:
            asset = load_asset(tx, asset_id, for_update=True)
            valuation = self._engine.replay(asset, tx.asset_events.list_for_asset(asset_id))
            if valuation.current_value != asset.current_value:
                logger.warning(
                    "Asset %s cached value %s differed from replay %s",
                    asset_id,
                    asset.current_value,
                    valuation.current_value,
                )
            return tx.assets.save_valuation(asset_id, valuation)

        return self._context.unit_of_work.run(work)

    @staticmethod
    def _load_event(tx: Transaction, event_id: int) -> AssetEvent:
        event = tx.asset_events.get(event_id)
        if event is None:
            raise NotFoundError("Asset event not found", {"event_id": event_id})
        return event
