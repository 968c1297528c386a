from pathlib import Path

import pytest

from factories import fixed_clock
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
from nav_ledger.infrastructure.database.session import create_schema, create_session_factory
from nav_ledger.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def context(database_url: str):
    session_factory = create_session_factory(database_url)
    create_schema(session_factory)
    yield LedgerContext(unit_of_work=SqlAlchemyUnitOfWork(session_factory), clock=fixed_clock)
    session_factory.kw["bind"].dispose()


@pytest.fixture
def assets(context: LedgerContext) -> AssetRecords:
    return AssetRecords(context)


@pytest.fixture
def events(context: LedgerContext) -> AssetEventUseCases:
    return AssetEventUseCases(context)


@pytest.fixture
def investors(context: LedgerContext) -> InvestorRecords:
    return InvestorRecords(context)


@pytest.fixture
def banks(context: LedgerContext) -> BankBalanceRecords:
    return BankBalanceRecords(context)


@pytest.fixture
def liabilities(context: LedgerContext) -> LiabilityRecords:
    return LiabilityRecords(context)


@pytest.fixture
def queries(context: LedgerContext) -> FundQueries:
    return FundQueries(context)


@pytest.fixture
def snapshots(context: LedgerContext) -> SnapshotBuilder:
    return SnapshotBuilder(context)
