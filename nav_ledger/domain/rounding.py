"""Quantization helpers that keep allocated parts summing to their whole."""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Sequence


def quantize_exact(parts: Sequence[Decimal], total: Decimal, quantum: Decimal, anchor: int) -> list[Decimal]:
    """Round every part to ``quantum`` and book the rounding residual on ``parts[anchor]``.

    ``total`` must itself be a multiple of ``quantum``; the returned parts then sum to it exactly.
    """
    rounded = [part.quantize(quantum, rounding=ROUND_HALF_EVEN) for part in parts]
    if not rounded:
        return rounded
    residual = total - sum(rounded, Decimal("0"))
    rounded[anchor] += residual
    return rounded


def largest_index(values: Sequence[Decimal]) -> int:
    """Index of the largest value; the first one wins ties."""
    best = 0
    for index, value in enumerate(values):
        if value > values[best]:
            best = index
    return best
