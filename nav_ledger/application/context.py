"""Collaborators shared by the application services."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable

from nav_ledger.config import SETTINGS, Settings
from nav_ledger.domain.repositories import UnitOfWork


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class LedgerContext:
    unit_of_work: UnitOfWork
    settings: Settings = SETTINGS
    clock: Callable[[], datetime] = field(default=utc_now)

    def today(self) -> date:
        return self.clock().astimezone(self.settings.timezone).date()
