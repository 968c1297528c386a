"""Central configuration for the NAV ledger package."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from decimal import Context, Decimal
from typing import Mapping

DEFAULT_DATABASE_URL = "sqlite:///nav_ledger.db"


@dataclass(slots=True, frozen=True)
class Settings:
    decimal_context: Context
    money_quantum: Decimal
    percent_quantum: Decimal
    balance_tolerance: Decimal
    timezone: tzinfo
    database_url: str
    transaction_retries: int
    log_level: str
    upcoming_maturity_months: int


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        decimal_context=Context(prec=28),
        money_quantum=Decimal("0.01"),
        percent_quantum=Decimal("0.0000000001"),
        balance_tolerance=Decimal("1"),
        timezone=timezone.utc,
        database_url=env.get("NAV_LEDGER_DATABASE_URL", DEFAULT_DATABASE_URL),
        transaction_retries=int(env.get("NAV_LEDGER_TX_RETRIES", "3")),
        log_level=env.get("NAV_LEDGER_LOG_LEVEL", "INFO").upper(),
        upcoming_maturity_months=6,
    )


SETTINGS = load_settings()
