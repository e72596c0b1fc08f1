"""Gift card lookups and redemptions."""

import logging

from pos_datagen.shared.models import GiftCard, GiftCardRedemption

from .client import PlatformClient

logger = logging.getLogger(__name__)


class PlatformGiftCardGateway:
    def __init__(self, client: PlatformClient):
        self._client = client

    def fetch_gift_cards(self) -> list[GiftCard]:
        return [GiftCard.model_validate(g) for g in self._client.get_elements("gift_cards")]

    def check_balance(self, card_id: str) -> int:
        return GiftCard.model_validate(self._client.get(f"gift_cards/{card_id}")).balance

    def redeem_gift_card(self, card_id: str, amount: int) -> GiftCardRedemption:
        """Redeem up to ``amount``; the rest is reported as ``shortfall``."""
        balance = self.check_balance(card_id)
        if balance <= 0:
            return GiftCardRedemption(
                success=False, shortfall=amount, message="Gift card has no balance"
            )

        redeemed = min(amount, balance)
        response = self._client.post(f"gift_cards/{card_id}/redeem", {"amount": redeemed})
        remaining = response.get("balance", balance - redeemed)
        if amount > redeemed:
            logger.info(f"Gift card {card_id} short by {amount - redeemed} cents")
        return GiftCardRedemption(
            success=True,
            amount_redeemed=redeemed,
            remaining_balance=remaining,
            shortfall=amount - redeemed,
            message="Redeemed",
        )
