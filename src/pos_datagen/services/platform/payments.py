"""Payment calls: tender payments, splits and ecommerce card charges."""

import logging
import random
from datetime import date
from typing import Any

from pos_datagen.services.payloads import build_split_payments
from pos_datagen.shared.models import PaymentRecord, PaymentSplit

from .client import PlatformClient

logger = logging.getLogger(__name__)

# Sandbox test card numbers
TEST_CARDS = {
    "visa": "4242424242424242",
    "visa_debit": "4005562231212123",
    "mastercard": "5200828282828210",
    "amex": "378282246310005",
    "discover": "6011111111111117",
}


class PlatformPaymentGateway:
    def __init__(self, client: PlatformClient, rng: random.Random | None = None):
        self._client = client
        self._rng = rng or random.Random()

    def process_payment(
        self,
        order_id: str,
        *,
        amount: int,
        tender_id: str,
        employee_id: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> PaymentRecord:
        payload = {
            "order": {"id": order_id},
            "tender": {"id": tender_id},
            "employee": {"id": employee_id},
            "offline": False,
            "amount": amount,
            "tipAmount": tip_amount,
            "taxAmount": tax_amount,
        }
        response = self._client.post(f"orders/{order_id}/payments", payload)
        response.setdefault("tender_id", tender_id)
        return PaymentRecord.model_validate(response)

    def process_split_payment(
        self,
        order_id: str,
        *,
        total_amount: int,
        splits: list[PaymentSplit],
        employee_id: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> list[PaymentRecord]:
        payments = []
        for share in build_split_payments(
            total_amount=total_amount, splits=splits, tip_amount=tip_amount, tax_amount=tax_amount
        ):
            payment = self.process_payment(
                order_id,
                amount=share["amount"],
                tender_id=share["tender_id"],
                employee_id=employee_id,
                tip_amount=share["tip_amount"],
                tax_amount=share["tax_amount"],
            )
            payments.append(payment.model_copy(update={"tender_label": share["tender_label"]}))
        return payments

    def create_card_token(self, card_type: str) -> dict[str, Any]:
        number = TEST_CARDS.get(card_type, TEST_CARDS["visa"])
        payload = {
            "card": {
                "number": number,
                "exp_month": f"{self._rng.randint(1, 12):02d}",
                "exp_year": str(date.today().year + 3),
                "cvv": "1234" if card_type == "amex" else "123",
            }
        }
        url = f"{self._client.ecommerce.tokenizer_environment}v1/tokens"
        return self._client.ecommerce_request("POST", url, payload, auth="public")

    def process_card_payment(
        self,
        order_id: str,
        *,
        amount: int,
        card_type: str,
        tip_amount: int = 0,
        tax_amount: int = 0,
    ) -> PaymentRecord | None:
        """Tokenize a sandbox test card and charge it; None when the charge is not captured."""
        token = self.create_card_token(card_type)
        if not token.get("id"):
            logger.warning(f"Tokenizer returned no token for {card_type}")
            return None

        url = f"{self._client.ecommerce.ecommerce_environment}v1/charges"
        charge = self._client.ecommerce_request(
            "POST",
            url,
            {
                "amount": amount,
                "currency": "usd",
                "source": token["id"],
                "order_id": order_id,
                "tip_amount": tip_amount,
                "tax_amount": tax_amount,
            },
            idempotency_key=PlatformClient.new_idempotency_key("charge"),
        )
        if not charge.get("id") or charge.get("status") not in (None, "succeeded"):
            logger.warning(f"Charge for order {order_id} not captured: {charge.get('status')}")
            return None
        return PaymentRecord(
            id=charge["id"],
            amount=amount - tip_amount,
            tip_amount=tip_amount,
            tax_amount=tax_amount,
            card_type=card_type,
            result="SUCCESS",
        )
