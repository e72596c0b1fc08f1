"""Cash drawer events."""

import logging
import time

from pos_datagen.shared.exceptions import ApiError

from .client import PlatformClient

logger = logging.getLogger(__name__)


class PlatformCashDrawerGateway:
    def __init__(self, client: PlatformClient):
        self._client = client

    def record_cash_payment(self, employee_id: str, amount: int) -> None:
        payload = {
            "type": "ADD",
            "amountChange": amount,
            "employee": {"id": employee_id},
            "timestamp": int(time.time() * 1000),
        }
        try:
            self._client.post("cash_events", payload)
        except ApiError as e:
            # Some sandboxes refuse cash event writes entirely
            if e.status_code == 405:
                logger.debug("Cash events not writable in this environment")
                return
            raise
