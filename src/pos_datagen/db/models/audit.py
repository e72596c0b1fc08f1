"""
SQLAlchemy ORM models for the audit store.

Three tables mirror what the simulator sent to the platform:
1. AuditOrder - one row per paid simulated order (``simulated_orders``)
2. AuditPayment - one row per payment on those orders (``simulated_payments``)
3. DailySummary - per-merchant, per-day aggregates (``daily_summaries``)

Amounts are integer cents. Rows are written best-effort; the platform
remains the system of record.
"""

from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_datagen.db.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuditOrder(Base):
    """
    Simulated order mirror.

    Business Rules:
    - status is 'open', 'paid' or 'refunded'
    - total = subtotal + tax + tip + service charge
    """

    __tablename__ = "simulated_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    platform_order_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="paid", index=True)

    subtotal: Mapped[int] = mapped_column(Integer, default=0)
    tax_amount: Mapped[int] = mapped_column(Integer, default=0)
    tip_amount: Mapped[int] = mapped_column(Integer, default=0)
    discount_amount: Mapped[int] = mapped_column(Integer, default=0)
    service_charge_amount: Mapped[int] = mapped_column(Integer, default=0)
    total: Mapped[int] = mapped_column(Integer, default=0)

    dining_option: Mapped[str | None] = mapped_column(String(16), index=True)
    meal_period: Mapped[str | None] = mapped_column(String(16), index=True)
    order_type: Mapped[str | None] = mapped_column(String(64))
    party_size: Mapped[int] = mapped_column(Integer, default=1)
    order_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    business_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    payments: Mapped[list["AuditPayment"]] = relationship(
        back_populates="order", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_simulated_orders_merchant_date", "merchant_id", "business_date"),
        {"extend_existing": True},
    )

    def __repr__(self) -> str:
        return (
            f"<AuditOrder(platform_order_id='{self.platform_order_id}', "
            f"status='{self.status}', total={self.total})>"
        )


class AuditPayment(Base):
    """Payment mirror, linked to its order."""

    __tablename__ = "simulated_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("simulated_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform_payment_id: Mapped[str | None] = mapped_column(String(64), unique=True)
    tender_name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    payment_type: Mapped[str | None] = mapped_column(String(32))
    amount: Mapped[int] = mapped_column(Integer, default=0)
    tip_amount: Mapped[int] = mapped_column(Integer, default=0)
    tax_amount: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="success", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    order: Mapped[AuditOrder] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return (
            f"<AuditPayment(platform_payment_id='{self.platform_payment_id}', "
            f"tender='{self.tender_name}', amount={self.amount})>"
        )


class DailySummary(Base):
    """Aggregates of one merchant's paid orders on one business date."""

    __tablename__ = "daily_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    business_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    order_count: Mapped[int] = mapped_column(Integer, default=0)
    payment_count: Mapped[int] = mapped_column(Integer, default=0)
    refund_count: Mapped[int] = mapped_column(Integer, default=0)
    total_revenue: Mapped[int] = mapped_column(Integer, default=0)
    total_tax: Mapped[int] = mapped_column(Integer, default=0)
    total_tips: Mapped[int] = mapped_column(Integer, default=0)
    total_discounts: Mapped[int] = mapped_column(Integer, default=0)
    breakdown: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("merchant_id", "business_date", name="uq_daily_summary_merchant_date"),
        {"extend_existing": True},
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "merchant_id": self.merchant_id,
            "business_date": self.business_date.isoformat(),
            "order_count": self.order_count,
            "payment_count": self.payment_count,
            "refund_count": self.refund_count,
            "total_revenue": self.total_revenue,
            "total_tax": self.total_tax,
            "total_tips": self.total_tips,
            "total_discounts": self.total_discounts,
            "breakdown": dict(self.breakdown or {}),
        }
