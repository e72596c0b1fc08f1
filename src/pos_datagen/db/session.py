"""
Session management for the audit database.

Provides a session factory and a context manager with automatic commit and
rollback.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory with explicit transaction control."""
    return sessionmaker(
        bind=engine,
        autoflush=True,
        # Rows are read back after commit when building summaries
        expire_on_commit=False,
    )


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    Context manager for sessions with automatic transaction handling.

    Commits on successful completion and rolls back on exception before
    re-raising.

    Example:
        >>> with session_scope(factory) as session:
        ...     session.add(row)
    """
    with factory() as session:
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Audit session rolled back due to error: {e}")
            raise
