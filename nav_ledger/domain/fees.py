"""Performance-fee computation and pro-rata allocation."""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import Sequence

from nav_ledger.config import SETTINGS, Settings

from .errors import BusinessRuleError
from .rounding import largest_index, quantize_exact

HUNDRED = Decimal("100")


def check_fee_rate(rate: Decimal | None) -> None:
    if rate is None:
        return
    if rate < 0 or rate > HUNDRED:
        raise BusinessRuleError(
            "Performance fee rate must be between 0 and 100",
            {"performance_fee_rate": rate, "min": Decimal("0"), "max": HUNDRED},
        )


def total_performance_fee(nav: Decimal, rate: Decimal | None, settings: Settings = SETTINGS) -> Decimal | None:
    """``None`` means no fee configured, which is distinct from a fee computed as zero."""
    check_fee_rate(rate)
    if rate is None or rate == 0:
        return None
    with localcontext(settings.decimal_context):
        fee = nav * rate / HUNDRED
    return fee.quantize(settings.money_quantum, rounding=ROUND_HALF_EVEN)


def allocate_fee(
    total_fee: Decimal | None,
    ownership_percents: Sequence[Decimal],
    settings: Settings = SETTINGS,
) -> list[Decimal | None]:
    if total_fee is None:
        return [None for _ in ownership_percents]
    if not ownership_percents or sum(ownership_percents, Decimal("0")) == 0:
        return [Decimal("0") for _ in ownership_percents]
    with localcontext(settings.decimal_context):
        raw = [total_fee * percent / HUNDRED for percent in ownership_percents]
    return list(quantize_exact(raw, total_fee, settings.money_quantum, largest_index(ownership_percents)))
