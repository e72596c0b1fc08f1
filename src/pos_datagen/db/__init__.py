"""
Audit database for the POS simulator.

A best-effort local mirror of simulated orders, payments and daily
summaries, kept with SQLAlchemy.

Usage:
    from pos_datagen.db import SqlAuditSink

    sink = SqlAuditSink.from_url("sqlite:///data/audit.db")
"""

from pos_datagen.db.audit_sink import SqlAuditSink
from pos_datagen.db.config import DatabaseConfig
from pos_datagen.db.engine import create_all_tables, create_engine
from pos_datagen.db.session import make_session_factory, session_scope

__all__ = [
    "DatabaseConfig",
    "SqlAuditSink",
    "create_all_tables",
    "create_engine",
    "make_session_factory",
    "session_scope",
]
