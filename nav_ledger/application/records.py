"""Maintenance of the fund's records and the read-side queries built on them."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, localcontext
from typing import Any, Sequence

import pandas as pd

from nav_ledger.domain.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from nav_ledger.domain.models import (
    Asset,
    AssetEvent,
    AssetEventType,
    AssetPatch,
    AssetStatus,
    AssetType,
    BankBalance,
    BankBalancePatch,
    CashflowPatch,
    CashflowType,
    InterestPeriod,
    Investor,
    InvestorCashflow,
    InvestorPatch,
    Liability,
    LiabilityPatch,
    LoanStatus,
    patch_changes,
)
from nav_ledger.domain.nav import NavAggregator, bank_breakdown, latest_balances
from nav_ledger.domain.ownership import OwnershipCalculator, capital_summary
from nav_ledger.domain.repositories import Transaction
from nav_ledger.domain.results import (
    AccountBalance,
    AssetSummary,
    BankBalanceSummary,
    CapitalSummary,
    InvestorOwnership,
    LiabilitiesSummary,
    NavBalanceAnalysis,
    NavCalculation,
)
from nav_ledger.domain.valuation import AssetValuationEngine

from .asset_events import load_asset
from .context import LedgerContext

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_INFLOW_TYPES = {AssetEventType.PAYMENT_IN, AssetEventType.VALUATION}
_OUTFLOW_TYPES = {AssetEventType.PAYMENT_OUT, AssetEventType.CAPEX}
_LOAN_ATTRIBUTES = ("loan_principal", "interest_rate", "interest_period", "maturity_date")


def summarize_asset(asset: Asset, events: Sequence[AssetEvent]) -> AssetSummary:
    inflows = outflows = ZERO
    for event in events:
        amount = event.amount if event.amount is not None else ZERO
        if event.type in _INFLOW_TYPES and amount > 0:
            inflows += amount
        if event.type in _OUTFLOW_TYPES or amount < 0:
            outflows += abs(amount)
    return AssetSummary(asset=asset, events_count=len(events), total_inflows=inflows, total_outflows=outflows)


def _require_text(name: str, value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required", {name: value})
    return str(value).strip()


def _require_non_negative(name: str, value: Decimal | None) -> None:
    if value is not None and value < 0:
        raise ValidationError(f"{name} must not be negative", {name: value})


def _require_positive(name: str, value: Decimal) -> None:
    if value is None or value <= 0:
        raise ValidationError(f"{name} must be greater than zero", {name: value})


def _normalize_currency(value: str) -> str:
    currency = _require_text("currency", value).upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValidationError("currency must be a three-letter code", {"currency": value})
    return currency


def _validate_email(email: str) -> str:
    email = _require_text("email", email)
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValidationError("email is not a valid address", {"email": email})
    return email


class AssetRecords:
    def __init__(self, context: LedgerContext, engine: AssetValuationEngine | None = None) -> None:
        self._context = context
        self._engine = engine or AssetValuationEngine()

    def create_asset(
        self,
        name: str,
        asset_type: AssetType,
        acquired_price: Decimal | None = None,
        acquired_date: date | None = None,
        description: str | None = None,
        loan_principal: Decimal | None = None,
        interest_rate: Decimal | None = None,
        interest_period: InterestPeriod | None = None,
        maturity_date: date | None = None,
    ) -> Asset:
        values: dict[str, Any] = {
            "name": _require_text("name", name),
            "type": asset_type,
            "acquired_price": acquired_price,
            "acquired_date": acquired_date,
            "description": description,
            "loan_principal": loan_principal,
            "interest_rate": interest_rate,
            "interest_period": interest_period,
            "maturity_date": maturity_date,
        }
        self._validate(values)
        values["status"] = AssetStatus.ACTIVE
        values["current_value"] = acquired_price if acquired_price is not None else ZERO
        values["loan_status"] = LoanStatus.ACTIVE if asset_type is AssetType.LOAN else None

        asset = self._context.unit_of_work.run(lambda tx: tx.assets.add(**values))
        logger.info("Created %s asset %s (%s)", asset.type.value, asset.id, asset.name)
        return asset

    def get_asset(self, asset_id: int) -> AssetSummary:
        def work(tx: Transaction) -> AssetSummary:
            asset = load_asset(tx, asset_id)
            return summarize_asset(asset, tx.asset_events.list_for_asset(asset_id))

        return self._context.unit_of_work.run(work)

    def list_assets(
        self,
        asset_type: AssetType | None = None,
        status: AssetStatus | None = None,
    ) -> list[AssetSummary]:
        def work(tx: Transaction) -> list[AssetSummary]:
            events_by_asset: dict[int, list[AssetEvent]] = {}
            for event in tx.asset_events.list():
                events_by_asset.setdefault(event.asset_id, []).append(event)
            return [
                summarize_asset(asset, events_by_asset.get(asset.id, []))
                for asset in tx.assets.list(asset_type=asset_type, status=status)
            ]

        return self._context.unit_of_work.run(work)

    def update_asset(self, asset_id: int, patch: AssetPatch) -> Asset:
        """Apply a partial update; a new base value or type re-runs the ledger."""
        changes = patch_changes(patch)
        if "name" in changes:
            changes["name"] = _require_text("name", changes["name"])
        if "type" in changes and changes["type"] is None:
            raise ValidationError("type cannot be cleared", {"asset_id": asset_id})

        def work(tx: Transaction) -> Asset:
            current = load_asset(tx, asset_id, for_update=True)
            merged = {name: getattr(current, name) for name in ("type", *_LOAN_ATTRIBUTES, "acquired_price")}
            merged.update(changes)
            self._validate(merged)
            if "acquired_date" in changes and changes["acquired_date"] is not None:
                first = tx.asset_events.list_for_asset(asset_id)[:1]
                if first and first[0].date < changes["acquired_date"]:
                    raise BusinessRuleError(
                        "Acquisition date is later than the first event",
                        {
                            "asset_id": asset_id,
                            "acquired_date": changes["acquired_date"],
                            "first_event_date": first[0].date,
                        },
                    )
            if "type" in changes and changes["type"] is not AssetType.LOAN:
                changes["loan_status"] = None

            asset = tx.assets.update(asset_id, changes)
            if {"acquired_price", "type"} & changes.keys():
                valuation = self._engine.replay(asset, tx.asset_events.list_for_asset(asset_id))
                asset = tx.assets.save_valuation(asset_id, valuation)
            logger.info("Updated asset %s: %s", asset_id, sorted(changes))
            return asset

        return self._context.unit_of_work.run(work)

    def delete_asset(self, asset_id: int) -> None:
        def work(tx: Transaction) -> None:
            load_asset(tx, asset_id, for_update=True)
            count = tx.asset_events.count_for_asset(asset_id)
            if count:
                raise BusinessRuleError(
                    "Cannot delete an asset that has events",
                    {"asset_id": asset_id, "events_count": count},
                )
            tx.assets.delete(asset_id)
            logger.info("Deleted asset %s", asset_id)

        self._context.unit_of_work.run(work)

    @staticmethod
    def _validate(values: dict[str, Any]) -> None:
        _require_non_negative("acquired_price", values.get("acquired_price"))
        _require_non_negative("loan_principal", values.get("loan_principal"))
        _require_non_negative("interest_rate", values.get("interest_rate"))
        if values["type"] is not AssetType.LOAN:
            supplied = [name for name in _LOAN_ATTRIBUTES if values.get(name) is not None]
            if supplied:
                raise ValidationError(
                    "Loan attributes are only accepted on loan assets",
                    {"asset_type": values["type"].value, "fields": ", ".join(supplied)},
                )


class InvestorRecords:
    def __init__(self, context: LedgerContext, ownership: OwnershipCalculator | None = None) -> None:
        self._context = context
        self._ownership = ownership or OwnershipCalculator(context.settings)

    def create_investor(self, name: str, email: str, phone: str | None = None) -> Investor:
        name = _require_text("name", name)
        email = _validate_email(email)

        def work(tx: Transaction) -> Investor:
            self._ensure_unique_email(tx, email)
            return tx.investors.add(name=name, email=email, phone=phone)

        investor = self._context.unit_of_work.run(work)
        logger.info("Created investor %s", investor.id)
        return investor

    def get_investor(self, investor_id: int) -> InvestorOwnership:
        def work(tx: Transaction) -> InvestorOwnership:
            self._load(tx, investor_id)
            ownerships = self._ownership.calculate(tx.investors.list(), tx.cashflows.list())
            return next(item for item in ownerships if item.investor_id == investor_id)

        return self._context.unit_of_work.run(work)

    def list_investors(self) -> Sequence[Investor]:
        return self._context.unit_of_work.run(lambda tx: tx.investors.list())

    def update_investor(self, investor_id: int, patch: InvestorPatch) -> Investor:
        changes = patch_changes(patch)
        if "name" in changes:
            changes["name"] = _require_text("name", changes["name"])
        if "email" in changes:
            changes["email"] = _validate_email(changes["email"])

        def work(tx: Transaction) -> Investor:
            self._load(tx, investor_id)
            if "email" in changes:
                self._ensure_unique_email(tx, changes["email"], exclude_id=investor_id)
            return tx.investors.update(investor_id, changes)

        investor = self._context.unit_of_work.run(work)
        logger.info("Updated investor %s: %s", investor_id, sorted(changes))
        return investor

    def delete_investor(self, investor_id: int) -> None:
        def work(tx: Transaction) -> None:
            self._load(tx, investor_id)
            tx.investors.delete(investor_id)

        self._context.unit_of_work.run(work)
        logger.info("Deleted investor %s", investor_id)

    def get_capital_summary(self, investor_id: int) -> CapitalSummary:
        def work(tx: Transaction) -> CapitalSummary:
            self._load(tx, investor_id)
            return capital_summary(investor_id, tx.cashflows.list(investor_id=investor_id))

        return self._context.unit_of_work.run(work)

    def add_cashflow(
        self,
        investor_id: int,
        cashflow_type: CashflowType,
        amount: Decimal,
        cashflow_date: date,
        note: str | None = None,
    ) -> InvestorCashflow:
        _require_positive("amount", amount)

        def work(tx: Transaction) -> InvestorCashflow:
            self._load(tx, investor_id)
            return tx.cashflows.add(investor_id, cashflow_type, amount, cashflow_date, note)

        cashflow = self._context.unit_of_work.run(work)
        logger.info(
            "Recorded %s %s for investor %s (cashflow %s)",
            cashflow_type.value,
            amount,
            investor_id,
            cashflow.id,
        )
        return cashflow

    def list_cashflows(
        self,
        investor_id: int | None = None,
        cashflow_type: CashflowType | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[InvestorCashflow]:
        return self._context.unit_of_work.run(
            lambda tx: tx.cashflows.list(
                investor_id=investor_id,
                cashflow_type=cashflow_type,
                date_from=date_from,
                date_to=date_to,
            )
        )

    def update_cashflow(self, cashflow_id: int, patch: CashflowPatch) -> InvestorCashflow:
        changes = patch_changes(patch)
        if "amount" in changes:
            _require_positive("amount", changes["amount"])
        for required in ("type", "date"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be cleared", {"cashflow_id": cashflow_id})

        def work(tx: Transaction) -> InvestorCashflow:
            if tx.cashflows.get(cashflow_id) is None:
                raise NotFoundError("Cashflow not found", {"cashflow_id": cashflow_id})
            return tx.cashflows.update(cashflow_id, changes)

        cashflow = self._context.unit_of_work.run(work)
        logger.info("Updated cashflow %s: %s", cashflow_id, sorted(changes))
        return cashflow

    def delete_cashflow(self, cashflow_id: int) -> None:
        def work(tx: Transaction) -> None:
            if tx.cashflows.get(cashflow_id) is None:
                raise NotFoundError("Cashflow not found", {"cashflow_id": cashflow_id})
            tx.cashflows.delete(cashflow_id)

        self._context.unit_of_work.run(work)
        logger.info("Deleted cashflow %s", cashflow_id)

    @staticmethod
    def _load(tx: Transaction, investor_id: int) -> Investor:
        investor = tx.investors.get(investor_id)
        if investor is None:
            raise NotFoundError("Investor not found", {"investor_id": investor_id})
        return investor

    @staticmethod
    def _ensure_unique_email(tx: Transaction, email: str, exclude_id: int | None = None) -> None:
        for investor in tx.investors.list():
            if investor.id != exclude_id and investor.email.casefold() == email.casefold():
                raise ConflictError("Investor with this email already exists", {"email": email})


class BankBalanceRecords:
    def __init__(self, context: LedgerContext) -> None:
        self._context = context

    def add_bank_balance(
        self,
        account_name: str,
        amount: Decimal,
        balance_date: date,
        bank_name: str | None = None,
        currency: str = "EUR",
    ) -> BankBalance:
        account_name = _require_text("account_name", account_name)
        currency = _normalize_currency(currency)
        balance = self._context.unit_of_work.run(
            lambda tx: tx.bank_balances.add(account_name, bank_name, amount, currency, balance_date)
        )
        logger.info("Recorded balance %s %s for account %s on %s", amount, currency, account_name, balance_date)
        return balance

    def list_bank_balances(self, date_from: date | None = None, date_to: date | None = None) -> Sequence[BankBalance]:
        return self._context.unit_of_work.run(lambda tx: tx.bank_balances.list(date_from=date_from, date_to=date_to))

    def update_bank_balance(self, balance_id: int, patch: BankBalancePatch) -> BankBalance:
        changes = patch_changes(patch)
        if "account_name" in changes:
            changes["account_name"] = _require_text("account_name", changes["account_name"])
        if "currency" in changes:
            changes["currency"] = _normalize_currency(changes["currency"])
        for required in ("amount", "date"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be cleared", {"balance_id": balance_id})

        def work(tx: Transaction) -> BankBalance:
            if tx.bank_balances.get(balance_id) is None:
                raise NotFoundError("Bank balance not found", {"balance_id": balance_id})
            return tx.bank_balances.update(balance_id, changes)

        return self._context.unit_of_work.run(work)

    def delete_bank_balance(self, balance_id: int) -> None:
        def work(tx: Transaction) -> None:
            if tx.bank_balances.get(balance_id) is None:
                raise NotFoundError("Bank balance not found", {"balance_id": balance_id})
            tx.bank_balances.delete(balance_id)

        self._context.unit_of_work.run(work)

    def get_bank_balance_summary(self) -> BankBalanceSummary:
        current = latest_balances(self._context.unit_of_work.run(lambda tx: tx.bank_balances.list()))
        return BankBalanceSummary(
            total_balance=sum((balance.amount for balance in current), ZERO),
            by_currency=bank_breakdown(current),
            by_account=tuple(
                AccountBalance(
                    account_name=balance.account_name,
                    bank_name=balance.bank_name,
                    amount=balance.amount,
                    currency=balance.currency,
                    date=balance.date,
                )
                for balance in current
            ),
        )


class LiabilityRecords:
    def __init__(self, context: LedgerContext) -> None:
        self._context = context

    def create_liability(
        self,
        name: str,
        current_balance: Decimal,
        note: str | None = None,
        interest_rate: Decimal | None = None,
        maturity_date: date | None = None,
    ) -> Liability:
        values = {
            "name": _require_text("name", name),
            "current_balance": current_balance,
            "note": note,
            "interest_rate": interest_rate,
            "maturity_date": maturity_date,
        }
        self._validate(values)
        liability = self._context.unit_of_work.run(lambda tx: tx.liabilities.add(**values))
        logger.info("Created liability %s (%s)", liability.id, liability.name)
        return liability

    def list_liabilities(self) -> Sequence[Liability]:
        return self._context.unit_of_work.run(lambda tx: tx.liabilities.list())

    def update_liability(self, liability_id: int, patch: LiabilityPatch) -> Liability:
        changes = patch_changes(patch)
        if "name" in changes:
            changes["name"] = _require_text("name", changes["name"])
        self._validate(changes)

        def work(tx: Transaction) -> Liability:
            if tx.liabilities.get(liability_id) is None:
                raise NotFoundError("Liability not found", {"liability_id": liability_id})
            return tx.liabilities.update(liability_id, changes)

        return self._context.unit_of_work.run(work)

    def delete_liability(self, liability_id: int) -> None:
        def work(tx: Transaction) -> None:
            if tx.liabilities.get(liability_id) is None:
                raise NotFoundError("Liability not found", {"liability_id": liability_id})
            tx.liabilities.delete(liability_id)

        self._context.unit_of_work.run(work)

    def get_liabilities_summary(self) -> LiabilitiesSummary:
        liabilities = self.list_liabilities()
        rates = [liability.interest_rate for liability in liabilities if liability.interest_rate is not None]
        with localcontext(self._context.settings.decimal_context):
            average = sum(rates, ZERO) / len(rates) if rates else ZERO

        horizon = (
            pd.Timestamp(self._context.today()) + pd.DateOffset(months=self._context.settings.upcoming_maturity_months)
        ).date()
        upcoming = sorted(
            (item for item in liabilities if item.maturity_date is not None and item.maturity_date <= horizon),
            key=lambda item: item.maturity_date,
        )
        return LiabilitiesSummary(
            total_balance=sum((liability.current_balance for liability in liabilities), ZERO),
            average_interest_rate=average,
            count=len(liabilities),
            upcoming_maturity=tuple(upcoming),
        )

    @staticmethod
    def _validate(values: dict[str, Any]) -> None:
        if "current_balance" in values:
            if values["current_balance"] is None:
                raise ValidationError("current_balance is required", {"current_balance": None})
            _require_non_negative("current_balance", values["current_balance"])
        _require_non_negative("interest_rate", values.get("interest_rate"))


class FundQueries:
    """Read-side views over the whole fund."""

    def __init__(
        self,
        context: LedgerContext,
        aggregator: NavAggregator | None = None,
        ownership: OwnershipCalculator | None = None,
    ) -> None:
        self._context = context
        self._aggregator = aggregator or NavAggregator(context.settings)
        self._ownership = ownership or OwnershipCalculator(context.settings)

    def calculate_current_nav(self) -> NavCalculation:
        return self._context.unit_of_work.run(self._nav)

    def calculate_investor_ownership(self) -> list[InvestorOwnership]:
        return self._context.unit_of_work.run(self._ownerships)

    def analyze_nav_balance(self) -> NavBalanceAnalysis:
        def work(tx: Transaction) -> NavBalanceAnalysis:
            return self._aggregator.analyze_balance(self._nav(tx), self._ownerships(tx))

        return self._context.unit_of_work.run(work)

    def _nav(self, tx: Transaction) -> NavCalculation:
        return self._aggregator.calculate(tx.assets.list(), tx.bank_balances.list(), tx.liabilities.list())

    def _ownerships(self, tx: Transaction) -> list[InvestorOwnership]:
        return self._ownership.calculate(tx.investors.list(), tx.cashflows.list())

