# shopcart/services/commerce_client.py
from typing import Any
from urllib.parse import quote

import requests

from shopcart.utils.logging import get_logger
from shopcart.utils.retry import http_retry
from shopcart.utils.settings import COMMERCE_API_TOKEN, COMMERCE_API_URL, HTTP_TIMEOUT_SECONDS

logger = get_logger(__name__)


class CommerceApiError(Exception):
    """Failure talking to the commerce service; `status` is None for network errors."""

    def __init__(self, message: str | None = None, status: int | None = None):
        super().__init__(message or f"Commerce service error (status {status})")
        self.message = message
        self.status = status

    @property
    def is_unauthenticated(self) -> bool:
        return self.status == 401

    @classmethod
    def from_response(cls, response: requests.Response) -> "CommerceApiError":
        message = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            # express style `message`, fastapi style `detail`
            for key in ("message", "detail"):
                if isinstance(body.get(key), str) and body[key]:
                    message = body[key]
                    break
        return cls(message, status=response.status_code)


class CommerceClient:
    """
    HTTP client for the commerce service cart and coupon endpoints.
    Credentials (cookies, optional bearer token) live on the shared session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        token: str | None = COMMERCE_API_TOKEN,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or COMMERCE_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Content-Type": "application/json", "Accept": "application/json"}
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    # cart

    def get_cart(self) -> list:
        return self._request("GET", "/cart", idempotent=True) or []

    def add_to_cart(self, product_id: str) -> Any:
        return self._request("POST", "/cart", {"productId": product_id})

    def remove_from_cart(self, product_id: str) -> Any:
        return self._request("DELETE", "/cart", {"productId": product_id}, idempotent=True)

    def update_quantity(self, product_id: str, quantity: int) -> Any:
        path = f"/cart/{quote(product_id, safe='')}"
        return self._request("PUT", path, {"quantity": quantity}, idempotent=True)

    # coupons

    def get_coupon(self) -> dict | None:
        return self._request("GET", "/coupons", idempotent=True) or None

    def validate_coupon(self, code: str) -> dict | None:
        return self._request("POST", "/coupons/validate", {"code": code}) or None

    # transport

    def _request(self, method: str, path: str, payload: dict | None = None, idempotent: bool = False) -> Any:
        send = self._send_with_retry if idempotent else self._send
        try:
            response = send(method, path, payload)
        except requests.HTTPError as e:
            error = CommerceApiError.from_response(e.response)
            logger.warning(f"CommerceClient {method} {path} failed with {error.status}: {error.message}")
            raise error from e
        except requests.RequestException as e:
            logger.error(f"CommerceClient {method} {path} transport error: {e}")
            raise CommerceApiError(None, status=None) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise CommerceApiError(
                "Unexpected response from commerce service", status=response.status_code
            ) from e

    def _send(self, method: str, path: str, payload: dict | None) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"CommerceClient {method} {url}")

        resp = self.session.request(method, url, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp

    @http_retry()
    def _send_with_retry(self, method: str, path: str, payload: dict | None) -> requests.Response:
        return self._send(method, path, payload)
