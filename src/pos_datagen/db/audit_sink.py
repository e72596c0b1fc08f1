"""
SQLAlchemy-backed ``AuditSink``.

Every method is best-effort: database errors are logged and swallowed so a
broken audit store never interrupts a simulation run.
"""

import logging
from collections import Counter
from datetime import date
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError

from pos_datagen.db.engine import create_all_tables, create_engine
from pos_datagen.db.models import AuditOrder, AuditPayment, DailySummary
from pos_datagen.db.session import make_session_factory, session_scope
from pos_datagen.generators.base_types import SimulatedOrder
from pos_datagen.shared.models import OrderState, PaymentRecord

logger = logging.getLogger(__name__)


class SqlAuditSink:
    """Mirrors simulated orders and payments into the audit tables."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlAuditSink":
        """Create the engine and the schema, then wrap them."""
        engine = create_engine(database_url, echo=echo)
        create_all_tables(engine)
        return cls(engine)

    def record_simulated_order(self, order: SimulatedOrder, merchant_id: str) -> None:
        try:
            with session_scope(self._sessions) as session:
                if self._find_order(session, order.id) is not None:
                    logger.debug(f"Audit row for order {order.id} already exists")
                    return
                session.add(
                    AuditOrder(
                        platform_order_id=order.id,
                        merchant_id=merchant_id,
                        status=OrderState.PAID.value,
                        subtotal=order.subtotal,
                        tax_amount=order.tax_amount,
                        tip_amount=order.tip_amount,
                        discount_amount=order.discount_amount,
                        service_charge_amount=order.service_charge_amount,
                        total=order.total,
                        dining_option=order.dining_option.value,
                        meal_period=order.meal_period.value,
                        order_type=order.order_type,
                        party_size=order.party_size,
                        order_metadata=order.metadata,
                        business_date=order.business_date,
                    )
                )
        except SQLAlchemyError as e:
            logger.warning(f"Audit: failed to record order {order.id}: {e}")

    def record_simulated_payment(
        self, order_id: str, payment: PaymentRecord, tender_name: str | None, payment_type: str
    ) -> None:
        try:
            with session_scope(self._sessions) as session:
                row = self._find_order(session, order_id)
                if row is None:
                    logger.warning(f"Audit: no order row for payment {payment.id} ({order_id})")
                    return
                session.add(
                    AuditPayment(
                        order_id=row.id,
                        platform_payment_id=payment.id,
                        tender_name=tender_name or "Unknown",
                        payment_type=payment_type,
                        amount=payment.amount,
                        tip_amount=payment.tip_amount,
                        tax_amount=payment.tax_amount,
                        status=payment.result.lower(),
                    )
                )
        except SQLAlchemyError as e:
            logger.warning(f"Audit: failed to record payment {payment.id}: {e}")

    def mark_refunded(self, order_id: str) -> None:
        try:
            with session_scope(self._sessions) as session:
                row = self._find_order(session, order_id)
                if row is not None:
                    row.status = OrderState.REFUNDED.value
        except SQLAlchemyError as e:
            logger.warning(f"Audit: failed to mark order {order_id} refunded: {e}")

    def generate_daily_summary(
        self, merchant_id: str, business_date: date
    ) -> dict[str, Any] | None:
        """Aggregate the day's orders and upsert the ``daily_summaries`` row."""
        try:
            with session_scope(self._sessions) as session:
                orders = session.scalars(
                    select(AuditOrder).where(
                        AuditOrder.merchant_id == merchant_id,
                        AuditOrder.business_date == business_date,
                    )
                ).all()
                paid = [o for o in orders if o.status == OrderState.PAID.value]
                refunded = [o for o in orders if o.status == OrderState.REFUNDED.value]
                payments = [p for o in paid for p in o.payments]

                by_period: Counter = Counter()
                by_dining: Counter = Counter()
                revenue_by_period: Counter = Counter()
                revenue_by_dining: Counter = Counter()
                for o in paid:
                    by_period[o.meal_period] += 1
                    by_dining[o.dining_option] += 1
                    revenue_by_period[o.meal_period] += o.total
                    revenue_by_dining[o.dining_option] += o.total

                summary = session.scalars(
                    select(DailySummary).where(
                        DailySummary.merchant_id == merchant_id,
                        DailySummary.business_date == business_date,
                    )
                ).one_or_none()
                if summary is None:
                    summary = DailySummary(merchant_id=merchant_id, business_date=business_date)
                    session.add(summary)

                summary.order_count = len(paid)
                summary.payment_count = len(payments)
                summary.refund_count = len(refunded)
                summary.total_revenue = sum(o.total for o in paid)
                summary.total_tax = sum(o.tax_amount for o in paid)
                summary.total_tips = sum(o.tip_amount for o in paid)
                summary.total_discounts = sum(o.discount_amount for o in paid)
                summary.breakdown = {
                    "by_meal_period": dict(by_period),
                    "by_dining_option": dict(by_dining),
                    "by_tender": dict(Counter(p.tender_name for p in payments)),
                    "revenue_by_meal_period": dict(revenue_by_period),
                    "revenue_by_dining_option": dict(revenue_by_dining),
                }
                session.flush()
                return summary.to_dict()
        except SQLAlchemyError as e:
            logger.warning(f"Audit: daily summary failed for {business_date}: {e}")
            return None

    def get_daily_summary(self, merchant_id: str, business_date: date) -> dict[str, Any] | None:
        """Stored summary row, without recomputing it."""
        with session_scope(self._sessions) as session:
            summary = session.scalars(
                select(DailySummary).where(
                    DailySummary.merchant_id == merchant_id,
                    DailySummary.business_date == business_date,
                )
            ).one_or_none()
            return summary.to_dict() if summary else None

    @staticmethod
    def _find_order(session, platform_order_id: str) -> AuditOrder | None:
        return session.scalars(
            select(AuditOrder).where(AuditOrder.platform_order_id == platform_order_id)
        ).one_or_none()

    def dispose(self) -> None:
        self.engine.dispose()
