"""Ownership shares derived from every investor's net capital."""
from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal, localcontext
from typing import Iterable, Sequence

from nav_ledger.config import SETTINGS, Settings

from .models import CashflowType, Investor, InvestorCashflow
from .results import CapitalSummary, InvestorOwnership
from .rounding import largest_index, quantize_exact

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def capital_summary(investor_id: int, cashflows: Iterable[InvestorCashflow]) -> CapitalSummary:
    deposits = withdrawals = ZERO
    count = 0
    for cashflow in cashflows:
        count += 1
        if cashflow.type is CashflowType.DEPOSIT:
            deposits += cashflow.amount
        else:
            withdrawals += cashflow.amount
    return CapitalSummary(
        investor_id=investor_id,
        total_deposits=deposits,
        total_withdrawals=withdrawals,
        total_capital=deposits - withdrawals,
        cashflow_count=count,
    )


class OwnershipCalculator:
    """Computes ownership over the whole investor population at once.

    The denominator is the capital of all investors, so one investor's cashflow
    moves every other investor's percentage.
    """

    def __init__(self, settings: Settings = SETTINGS) -> None:
        self._settings = settings

    def calculate(
        self,
        investors: Sequence[Investor],
        cashflows: Iterable[InvestorCashflow],
    ) -> list[InvestorOwnership]:
        by_investor: dict[int, list[InvestorCashflow]] = defaultdict(list)
        for cashflow in cashflows:
            by_investor[cashflow.investor_id].append(cashflow)

        summaries = [capital_summary(investor.id, by_investor.get(investor.id, ())) for investor in investors]
        capitals = [summary.total_capital for summary in summaries]
        percents = self._percentages(capitals)

        return [
            InvestorOwnership(
                investor_id=investor.id,
                name=investor.name,
                email=investor.email,
                total_deposits=summary.total_deposits,
                total_withdrawals=summary.total_withdrawals,
                capital_amount=summary.total_capital,
                ownership_percent=percent,
            )
            for investor, summary, percent in zip(investors, summaries, percents)
        ]

    def _percentages(self, capitals: Sequence[Decimal]) -> list[Decimal]:
        total = sum(capitals, ZERO)
        if total <= 0:
            if capitals and total < 0:
                logger.warning("Total investor capital is negative (%s); ownership set to zero", total)
            return [ZERO for _ in capitals]
        with localcontext(self._settings.decimal_context):
            raw = [capital / total * HUNDRED for capital in capitals]
        return quantize_exact(raw, HUNDRED, self._settings.percent_quantum, largest_index(capitals))
