"""REST implementations of the engine's gateway interfaces."""

from .cash_events import PlatformCashDrawerGateway
from .catalog import PlatformCatalog
from .client import PlatformClient
from .gift_cards import PlatformGiftCardGateway
from .orders import PlatformOrderGateway
from .payments import PlatformPaymentGateway
from .refunds import PlatformRefundGateway

__all__ = [
    "PlatformCashDrawerGateway",
    "PlatformCatalog",
    "PlatformClient",
    "PlatformGiftCardGateway",
    "PlatformOrderGateway",
    "PlatformPaymentGateway",
    "PlatformRefundGateway",
]
