"""Engine and session factory for the SQLAlchemy record store."""
from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from nav_ledger.config import SETTINGS

from .tables import Base

logger = logging.getLogger(__name__)


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # Hand transaction control to the "begin" hook below.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_immediate(connection) -> None:
    # Take the write lock up front so writers to the same asset queue behind each other.
    connection.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(database_url: str | None = None, echo: bool = False) -> sessionmaker[Session]:
    url = database_url or SETTINGS.database_url
    engine = create_engine(url, pool_pre_ping=True, echo=echo)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_immediate)
    logger.debug("Created engine for %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def create_schema(session_factory: sessionmaker[Session]) -> None:
    engine = session_factory.kw["bind"]
    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready on %s", engine.url.render_as_string(hide_password=True))
