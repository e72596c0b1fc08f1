"""Post-run refunds over a batch of simulated orders."""

import logging
import math
import random

from pos_datagen.services.interfaces import AuditSink, RefundGateway
from pos_datagen.shared import metrics
from pos_datagen.shared.exceptions import ApiError
from pos_datagen.shared.money import format_cents, percent_of

from .base_types import RefundResult, SimulatedOrder
from .gates import DEFAULT_ORDER_GATES, OrderGates, should_refund_in_full
from .statistics import DailyStatistics

logger = logging.getLogger(__name__)

REFUND_REASONS = ("customer_request", "quality_issue", "wrong_order", "duplicate_charge")
PARTIAL_REFUND_RANGE = (25, 75)


class RefundProcessor:
    """Refunds a random share of completed orders, in full or in part."""

    def __init__(
        self,
        refund_gateway: RefundGateway,
        rng: random.Random,
        refund_percentage: float = 5.0,
        audit: AuditSink | None = None,
        gates: OrderGates = DEFAULT_ORDER_GATES,
    ):
        self._refunds = refund_gateway
        self._rng = rng
        self.refund_percentage = refund_percentage
        self._audit = audit
        self.gates = gates

    def refund_count(self, order_count: int) -> int:
        if order_count <= 0 or self.refund_percentage <= 0:
            return 0
        return min(order_count, math.ceil(order_count * self.refund_percentage / 100))

    def process_refunds(
        self, orders: list[SimulatedOrder], stats: DailyStatistics | None = None
    ) -> list[RefundResult]:
        count = self.refund_count(len(orders))
        if count == 0:
            return []

        logger.info("-" * 40)
        logger.info(f"PROCESSING REFUNDS: {count} orders ({self.refund_percentage}%)")

        results: list[RefundResult] = []
        for order in self._rng.sample(orders, count):
            result = self.refund_order(order)
            if result is None:
                continue
            results.append(result)
            if stats is not None:
                stats.record_refund(result)
        return results

    def refund_order(self, order: SimulatedOrder) -> RefundResult | None:
        """Refund the order's first payment; failures are logged and skipped."""
        if not order.payments:
            return None
        payment = order.payments[0]
        if payment.amount <= 0:
            return None

        full = should_refund_in_full(self._rng, self.gates)
        reason = self._rng.choice(REFUND_REASONS)

        try:
            if full:
                amount = payment.amount
                self._refunds.create_full_refund(order.id, payment.id, reason=reason)
            else:
                pct = self._rng.randint(*PARTIAL_REFUND_RANGE)
                amount = max(1, percent_of(payment.amount, pct))
                self._refunds.create_partial_refund(
                    order.id, payment.id, amount=amount, reason=reason
                )
        except ApiError as e:
            metrics.gateway_failures_total.labels(operation="refund").inc()
            logger.warning(f"  Failed to refund order {order.id}: {e}")
            return None

        kind = "full" if full else "partial"
        metrics.refunds_processed_total.labels(refund_kind=kind).inc()
        logger.info(
            f"  {kind.title()} refund: order {order.id} - {format_cents(amount)} ({reason})"
        )

        if self._audit is not None:
            try:
                self._audit.mark_refunded(order.id)
            except Exception as e:
                logger.warning(f"Audit refund mark failed for {order.id}: {e}")

        return RefundResult(
            order_id=order.id, payment_id=payment.id, amount=amount, full=full, reason=reason
        )
