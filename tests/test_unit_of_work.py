from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from nav_ledger.domain.errors import ConflictError, NotFoundError
from nav_ledger.domain.models import AssetStatus, AssetType
from nav_ledger.infrastructure.database.session import create_schema, create_session_factory
from nav_ledger.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
def session_factory(database_url):
    factory = create_session_factory(database_url)
    create_schema(factory)
    return factory


def add_asset(tx, name="Plot"):
    return tx.assets.add(name=name, type=AssetType.REAL_ESTATE, status=AssetStatus.ACTIVE, current_value=Decimal("1"))


def test_commit_on_success(session_factory):
    uow = SqlAlchemyUnitOfWork(session_factory)

    asset = uow.run(add_asset)

    assert uow.run(lambda tx: tx.assets.get(asset.id)).name == "Plot"


def test_rollback_on_domain_error(session_factory):
    uow = SqlAlchemyUnitOfWork(session_factory)

    def work(tx):
        add_asset(tx)
        raise NotFoundError("Investor not found", {"investor_id": 1})

    with pytest.raises(NotFoundError):
        uow.run(work)

    assert uow.run(lambda tx: tx.assets.list()) == []


def test_transient_failures_are_retried(session_factory):
    uow = SqlAlchemyUnitOfWork(session_factory, retries=2)
    attempts = []

    def work(tx):
        attempts.append(1)
        add_asset(tx)
        if len(attempts) < 3:
            raise OperationalError("UPDATE assets", {}, Exception("database is locked"))
        return "done"

    assert uow.run(work) == "done"
    assert len(attempts) == 3
    assert len(uow.run(lambda tx: tx.assets.list())) == 1


def test_retries_are_bounded(session_factory):
    uow = SqlAlchemyUnitOfWork(session_factory, retries=1)

    def work(tx):
        raise OperationalError("UPDATE assets", {}, Exception("database is locked"))

    with pytest.raises(OperationalError):
        uow.run(work)


def test_integrity_error_becomes_conflict(session_factory):
    uow = SqlAlchemyUnitOfWork(session_factory)
    uow.run(lambda tx: tx.investors.add(name="Alice", email="alice@fund.test"))

    with pytest.raises(ConflictError):
        uow.run(lambda tx: tx.investors.add(name="Alice", email="alice@fund.test"))


def test_update_of_missing_row_is_not_found(session_factory):
    uow = SqlAlchemyUnitOfWork(session_factory)

    with pytest.raises(NotFoundError):
        uow.run(lambda tx: tx.liabilities.update(5, {"name": "Ghost"}))
