"""
Services module for the POS data generator.

Gateways to the external point-of-sale platform: the collaborator protocols
the simulation consumes, REST implementations, and an in-memory sandbox.
"""

from .interfaces import (
    AuditSink,
    CashDrawerGateway,
    CatalogProvider,
    GiftCardGateway,
    NullAuditSink,
    OrderGateway,
    PaymentGateway,
    RefundGateway,
)

__all__ = [
    "AuditSink",
    "CashDrawerGateway",
    "CatalogProvider",
    "GiftCardGateway",
    "NullAuditSink",
    "OrderGateway",
    "PaymentGateway",
    "RefundGateway",
]
