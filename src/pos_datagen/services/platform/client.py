"""
HTTP client for the POS platform's REST and ecommerce APIs.

All gateway classes in this package share one ``PlatformClient``. It owns a
``requests.Session`` with the merchant's bearer token and turns every
transport or HTTP failure into ``ApiError`` so the engine only ever has to
catch one exception type.
"""

import logging
import time
import uuid
from typing import Any

import requests

from pos_datagen.config.models import EcommerceConfig, MerchantConfig
from pos_datagen.shared.exceptions import ApiError, ConfigurationError

logger = logging.getLogger(__name__)


class PlatformClient:
    """Thin JSON wrapper over ``requests.Session`` for one merchant."""

    def __init__(
        self,
        merchant: MerchantConfig,
        ecommerce: EcommerceConfig | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.merchant = merchant
        self.ecommerce = ecommerce or EcommerceConfig()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {merchant.api_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def endpoint(self, path: str) -> str:
        return f"{self.merchant.environment}v3/merchants/{self.merchant.merchant_id}/{path}"

    def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.request("GET", self.endpoint(path), params=params)

    def post(self, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.request("POST", self.endpoint(path), payload=payload)

    def delete(self, path: str) -> dict[str, Any]:
        return self.request("DELETE", self.endpoint(path))

    def get_elements(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """GET a collection and unwrap its ``elements`` envelope."""
        return self.get(path, params=params).get("elements", [])

    def request(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str | None] | None = None,
    ) -> dict[str, Any]:
        """
        Send one request and return the decoded JSON body ({} when empty).

        Raises:
            ApiError: on connection errors, timeouts and non-2xx responses
        """
        logger.debug(f"-> {method} {url}")
        started = time.perf_counter()
        try:
            response = self.session.request(
                method, url, json=payload, params=params, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            body = e.response.text if e.response is not None else None
            raise ApiError(
                f"{method} {url} failed with HTTP {status}",
                operation=f"{method} {url}",
                status_code=status,
                response_body=body,
            ) from e
        except requests.RequestException as e:
            raise ApiError(f"{method} {url} failed: {e}", operation=f"{method} {url}") from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"<- {response.status_code} ({elapsed_ms:.0f}ms)")
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"{method} {url} returned invalid JSON",
                operation=f"{method} {url}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def ecommerce_request(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None = None,
        auth: str = "private",
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Call the tokenizer (public key) or ecommerce (private key) API."""
        if not self.ecommerce.enabled:
            raise ConfigurationError("Ecommerce API tokens are not configured")

        if auth == "public":
            # A None value drops the session-level merchant token
            headers = {"apikey": self.ecommerce.public_token, "Authorization": None}
        else:
            headers = {"Authorization": f"Bearer {self.ecommerce.private_token}"}
        if idempotency_key:
            headers["idempotency-key"] = idempotency_key
        return self.request(method, url, payload=payload, headers=headers)

    @staticmethod
    def new_idempotency_key(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4()}"

    def close(self) -> None:
        self.session.close()
