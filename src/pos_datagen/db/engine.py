"""
Database engine creation for the audit store.

Provides synchronous SQLAlchemy engines with SQLite pragma enforcement via
connection event handling.
"""

import logging
from pathlib import Path

from sqlalchemy import Engine, event
from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool

from pos_datagen.db.config import DatabaseConfig

logger = logging.getLogger(__name__)


def create_engine(
    database_url: str = DatabaseConfig.DEFAULT_URL,
    pragmas: dict[str, str | int] | None = None,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLAlchemy engine for the audit database.

    For SQLite URLs the parent directory is created, PRAGMAs are applied on
    every new connection, and in-memory databases share one connection
    (StaticPool) so every session sees the same tables.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///data/audit.db``
        pragmas: PRAGMA settings; defaults to DatabaseConfig.SQLITE_PRAGMAS
        echo: If True, log all SQL statements

    Returns:
        Configured Engine instance
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        engine = sa_create_engine(url, echo=echo)
        logger.info(f"Created engine for audit database: {url.render_as_string(hide_password=True)}")
        return engine

    if pragmas is None:
        pragmas = DatabaseConfig.SQLITE_PRAGMAS

    in_memory = url.database in (None, "", ":memory:")
    if in_memory:
        engine = sa_create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = sa_create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Set SQLite PRAGMAs on each new connection."""
        cursor = dbapi_connection.cursor()
        try:
            for pragma, value in pragmas.items():
                cursor.execute(f"PRAGMA {pragma}={value}")
            logger.debug(f"Applied {len(pragmas)} PRAGMAs to connection for {url.database}")
        except Exception as e:
            logger.error(f"Failed to apply PRAGMAs to {url.database}: {e}")
            raise
        finally:
            cursor.close()

    logger.info(f"Created engine for audit database: {url.database or ':memory:'}")
    return engine


def create_all_tables(engine: Engine) -> None:
    from pos_datagen.db.models import Base

    Base.metadata.create_all(engine)
