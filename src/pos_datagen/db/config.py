"""
Database configuration constants for the audit store.

The audit store is a single SQLite file by default; any SQLAlchemy URL is
accepted through ``AuditConfig.database_url``.
"""


class DatabaseConfig:
    """Configuration for the audit database."""

    DEFAULT_URL: str = "sqlite:///data/audit.db"

    # SQLite pragmas applied on each connection via event listeners
    SQLITE_PRAGMAS: dict[str, str | int] = {
        # Write-Ahead Logging so worker threads can write while others read
        "journal_mode": "WAL",
        # NORMAL is sufficient with WAL
        "synchronous": "NORMAL",
        "foreign_keys": 1,
        "temp_store": "MEMORY",
        # Wait up to 5 seconds when the database is locked
        "busy_timeout": 5000,
    }
