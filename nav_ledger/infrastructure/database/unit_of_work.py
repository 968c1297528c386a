"""Transaction boundary over a SQLAlchemy session factory."""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from nav_ledger.config import SETTINGS
from nav_ledger.domain.errors import ConflictError, LedgerError

from .repositories import (
    SqlAlchemyAssetEventRepository,
    SqlAlchemyAssetRepository,
    SqlAlchemyBankBalanceRepository,
    SqlAlchemyCashflowRepository,
    SqlAlchemyInvestorRepository,
    SqlAlchemyLiabilityRepository,
    SqlAlchemySnapshotRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlAlchemyTransaction:
    """Repository handles sharing one session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.assets = SqlAlchemyAssetRepository(session)
        self.asset_events = SqlAlchemyAssetEventRepository(session)
        self.investors = SqlAlchemyInvestorRepository(session)
        self.cashflows = SqlAlchemyCashflowRepository(session)
        self.bank_balances = SqlAlchemyBankBalanceRepository(session)
        self.liabilities = SqlAlchemyLiabilityRepository(session)
        self.snapshots = SqlAlchemySnapshotRepository(session)


class SqlAlchemyUnitOfWork:
    def __init__(self, session_factory: sessionmaker[Session], retries: int = SETTINGS.transaction_retries) -> None:
        self._session_factory = session_factory
        self._retries = max(0, retries)

    def run(self, work: Callable[[SqlAlchemyTransaction], T]) -> T:
        attempt = 0
        while True:
            session = self._session_factory()
            try:
                result = work(SqlAlchemyTransaction(session))
                session.commit()
                return result
            except OperationalError as exc:
                session.rollback()
                if attempt >= self._retries:
                    raise
                attempt += 1
                logger.warning("Transient storage failure, retrying (%s/%s): %s", attempt, self._retries, exc.orig)
            except IntegrityError as exc:
                session.rollback()
                logger.warning("Write rejected by storage constraint: %s", exc.orig)
                raise ConflictError("Record conflicts with existing data", {"reason": str(exc.orig)}) from exc
            except LedgerError as exc:
                session.rollback()
                logger.warning("Rejected %s: %s", exc.code, exc)
                raise
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
