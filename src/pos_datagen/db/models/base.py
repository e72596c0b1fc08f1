"""
Base class for all SQLAlchemy ORM models.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for the audit tables.

    Uses the SQLAlchemy 2.0 declarative pattern; all models share one
    metadata so ``create_all`` builds the whole schema.
    """
    pass
