"""Event-sourced asset valuation and NAV snapshots for a private fund."""
from nav_ledger.application.asset_events import AssetEventUseCases
from nav_ledger.application.context import LedgerContext
from nav_ledger.application.records import (
    AssetRecords,
    BankBalanceRecords,
    FundQueries,
    InvestorRecords,
    LiabilityRecords,
)
from nav_ledger.application.snapshots import SnapshotBuilder
from nav_ledger.domain.errors import (
    BusinessRuleError,
    ConflictError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from nav_ledger.domain.ledger import EventLedger
from nav_ledger.domain.nav import NavAggregator
from nav_ledger.domain.ownership import OwnershipCalculator
from nav_ledger.domain.valuation import AssetValuationEngine
from nav_ledger.infrastructure.database.session import create_schema, create_session_factory
from nav_ledger.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork

__all__ = [
    "AssetEventUseCases",
    "AssetRecords",
    "AssetValuationEngine",
    "BankBalanceRecords",
    "BusinessRuleError",
    "ConflictError",
    "EventLedger",
    "FundQueries",
    "InvestorRecords",
    "LedgerContext",
    "LedgerError",
    "LiabilityRecords",
    "NavAggregator",
    "NotFoundError",
    "OwnershipCalculator",
    "SnapshotBuilder",
    "SqlAlchemyUnitOfWork",
    "ValidationError",
    "create_schema",
    "create_session_factory",
]
