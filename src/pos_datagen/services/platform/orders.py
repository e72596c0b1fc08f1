"""Order lifecycle calls against the platform."""

import logging
from typing import Any

from pos_datagen.services.interfaces import OrderGateway
from pos_datagen.services.payloads import (
    build_discount_payload,
    build_service_charge_payload,
    validate_dining_option,
)
from pos_datagen.shared.models import DiningOption, LineItemRecord, OrderRecord, OrderState
from pos_datagen.shared.money import format_cents

from .client import PlatformClient

logger = logging.getLogger(__name__)


class PlatformOrderGateway(OrderGateway):
    def __init__(self, client: PlatformClient):
        self._client = client

    def create_order(self, *, employee_id: str, customer_id: str | None = None) -> OrderRecord:
        payload: dict[str, Any] = {"employee": {"id": employee_id}, "state": "open"}
        if customer_id:
            payload["customers"] = [{"id": customer_id}]
        return OrderRecord.model_validate(self._client.post("orders", payload))

    def add_line_item(
        self, order_id: str, *, item_id: str, quantity: int = 1, note: str | None = None
    ) -> LineItemRecord:
        payload: dict[str, Any] = {"item": {"id": item_id}}
        if quantity > 1:
            # Unit quantities are expressed in thousandths
            payload["unitQty"] = quantity * 1000
        if note:
            payload["note"] = note
        response = self._client.post(f"orders/{order_id}/line_items", payload)
        response.setdefault("item_id", item_id)
        response.setdefault("quantity", quantity)
        return LineItemRecord.model_validate(response)

    def set_dining_option(self, order_id: str, dining_option: DiningOption) -> None:
        option = validate_dining_option(dining_option)
        self._client.post(f"orders/{order_id}", {"diningOption": option.value})

    def set_order_type(self, order_id: str, order_type_id: str) -> None:
        self._client.post(f"orders/{order_id}", {"orderType": {"id": order_type_id}})

    def add_modification(self, order_id: str, line_item_id: str, modifier_id: str) -> None:
        self._client.post(
            f"orders/{order_id}/line_items/{line_item_id}/modifications",
            {"modifier": {"id": modifier_id}},
        )

    def apply_discount(
        self, order_id: str, *, name: str, amount: int, discount_id: str | None = None
    ) -> dict[str, Any]:
        payload = build_discount_payload(name, amount=amount, discount_id=discount_id)
        logger.debug(f"Order {order_id}: discount '{name}' {format_cents(amount)}")
        return self._client.post(f"orders/{order_id}/discounts", payload)

    def apply_line_item_discount(
        self, order_id: str, line_item_id: str, *, name: str, amount: int
    ) -> dict[str, Any]:
        payload = build_discount_payload(name, amount=amount)
        return self._client.post(f"orders/{order_id}/line_items/{line_item_id}/discounts", payload)

    def apply_service_charge(
        self, order_id: str, *, name: str, percentage: float, amount: int
    ) -> dict[str, Any]:
        payload = build_service_charge_payload(name, percentage, amount)
        return self._client.post(f"orders/{order_id}/service_charge", payload)

    def update_total(self, order_id: str, total: int) -> None:
        self._client.post(f"orders/{order_id}", {"total": total})

    def update_state(self, order_id: str, state: OrderState) -> None:
        self._client.post(f"orders/{order_id}", {"state": OrderState(state).value})

    def get_order(self, order_id: str) -> OrderRecord:
        response = self._client.get(
            f"orders/{order_id}", params={"expand": "lineItems,lineItems.modifications,discounts,payments"}
        )
        return OrderRecord.model_validate(response)

    def calculate_total(self, order_id: str) -> int:
        """Line items (with modifications) minus order and line discounts."""
        response = self._client.get(
            f"orders/{order_id}",
            params={"expand": "lineItems,lineItems.modifications,lineItems.discounts,discounts"},
        )
        total = 0
        for line in response.get("lineItems", {}).get("elements", []):
            quantity = max(1, line.get("unitQty", 1000) // 1000)
            unit = line.get("price", 0) + sum(
                m.get("amount", 0) for m in line.get("modifications", {}).get("elements", [])
            )
            total += unit * quantity
            total += sum(d.get("amount", 0) for d in line.get("discounts", {}).get("elements", []))
        total += sum(d.get("amount", 0) for d in response.get("discounts", {}).get("elements", []))
        return total
