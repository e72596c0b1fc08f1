"""Refund calls against the platform."""

import logging

from pos_datagen.shared.models import RefundRecord

from .client import PlatformClient

logger = logging.getLogger(__name__)


class PlatformRefundGateway:
    def __init__(self, client: PlatformClient):
        self._client = client

    def create_full_refund(self, order_id: str, payment_id: str, *, reason: str) -> RefundRecord:
        return self._create(order_id, payment_id, reason=reason)

    def create_partial_refund(
        self, order_id: str, payment_id: str, *, amount: int, reason: str
    ) -> RefundRecord:
        return self._create(order_id, payment_id, reason=reason, amount=amount)

    def _create(
        self, order_id: str, payment_id: str, *, reason: str, amount: int | None = None
    ) -> RefundRecord:
        # Omitting the amount requests a full refund
        payload = {"payment": {"id": payment_id}, "reason": reason}
        if amount is not None:
            payload["amount"] = amount
        response = self._client.post("refunds", payload)
        response.setdefault("payment_id", payment_id)
        response.setdefault("amount", amount or 0)
        response.setdefault("fullRefund", amount is None)
        logger.debug(f"Refund {response.get('id')} created for order {order_id}")
        return RefundRecord.model_validate(response)
