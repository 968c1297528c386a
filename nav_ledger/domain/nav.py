"""NAV aggregation over assets, bank balances and liabilities."""
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal, localcontext
from typing import Sequence

import pandas as pd

from nav_ledger.config import SETTINGS, Settings

from .models import Asset, AssetStatus, BankBalance, Liability
from .results import (
    AssetBreakdown,
    BankBreakdown,
    InvestorOwnership,
    LiabilityBreakdown,
    NavBalanceAnalysis,
    NavCalculation,
)

ZERO = Decimal("0")
UNKNOWN_BANK = "unknown"


def account_key(balance: BankBalance) -> tuple[str, str]:
    """Grouping key for one bank account: trimmed, case-folded names."""
    bank = (balance.bank_name or "").strip() or UNKNOWN_BANK
    return balance.account_name.strip().casefold(), bank.casefold()


def latest_balances(balances: Sequence[BankBalance]) -> list[BankBalance]:
    """Keep only the latest-dated row per account; same-day ties go to the newest row."""
    if not balances:
        return []
    rows = []
    for position, balance in enumerate(balances):
        account, bank = account_key(balance)
        rows.append(
            {"account": account, "bank": bank, "date": balance.date, "id": balance.id, "position": position}
        )
    frame = pd.DataFrame(rows)
    latest = frame.sort_values(["date", "id"]).drop_duplicates(
        subset=["account", "bank"], keep="last"
    )
    return [balances[position] for position in sorted(latest["position"].tolist())]


def _asset_breakdown(assets: Sequence[Asset]) -> tuple[AssetBreakdown, ...]:
    counts: dict[str, int] = defaultdict(int)
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for asset in assets:
        counts[asset.type.value] += 1
        totals[asset.type.value] += asset.current_value
    return tuple(AssetBreakdown(type=key, count=counts[key], total_value=totals[key]) for key in counts)


def bank_breakdown(balances: Sequence[BankBalance]) -> tuple[BankBreakdown, ...]:
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for balance in balances:
        totals[balance.currency] += balance.amount
    return tuple(BankBreakdown(currency=currency, total_amount=amount) for currency, amount in totals.items())


class NavAggregator:
    """Computes ``nav = assets + bank - liabilities`` with reporting breakdowns."""

    def __init__(self, settings: Settings = SETTINGS) -> None:
        self._settings = settings

    def calculate(
        self,
        assets: Sequence[Asset],
        balances: Sequence[BankBalance],
        liabilities: Sequence[Liability],
    ) -> NavCalculation:
        # Sold assets leave the NAV base; their proceeds are reported as bank cash.
        active = [asset for asset in assets if asset.status is not AssetStatus.SOLD]
        current_balances = latest_balances(balances)

        total_asset_value = sum((asset.current_value for asset in active), ZERO)
        total_bank_balance = sum((balance.amount for balance in current_balances), ZERO)
        total_liabilities = sum((liability.current_balance for liability in liabilities), ZERO)

        return NavCalculation(
            total_asset_value=total_asset_value,
            total_bank_balance=total_bank_balance,
            total_liabilities=total_liabilities,
            nav=total_asset_value + total_bank_balance - total_liabilities,
            asset_breakdown=_asset_breakdown(active),
            bank_breakdown=bank_breakdown(current_balances),
            liability_breakdown=tuple(
                LiabilityBreakdown(name=liability.name, current_balance=liability.current_balance)
                for liability in liabilities
            ),
        )

    def analyze_balance(
        self,
        nav: NavCalculation,
        ownerships: Sequence[InvestorOwnership],
    ) -> NavBalanceAnalysis:
        total_capital = sum((ownership.capital_amount for ownership in ownerships), ZERO)
        difference = nav.nav - total_capital
        with localcontext(self._settings.decimal_context):
            percent = difference / total_capital * Decimal("100") if total_capital > 0 else ZERO
        return NavBalanceAnalysis(
            nav=nav.nav,
            total_investor_capital=total_capital,
            difference=difference,
            difference_percent=percent,
            is_balanced=abs(difference) < self._settings.balance_tolerance,
        )
