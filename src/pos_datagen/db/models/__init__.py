"""
SQLAlchemy ORM models for the audit store.

- base.py: Base class
- audit.py: simulated orders, payments and daily summaries
"""

from pos_datagen.db.models.audit import AuditOrder, AuditPayment, DailySummary
from pos_datagen.db.models.base import Base

__all__ = ["Base", "AuditOrder", "AuditPayment", "DailySummary"]
