"""
Client for the upstream entitlement authority.
"""

import json
from typing import Optional

import httpx

from shared.errors import (
    AuthenticationError, AuthorizationError, InternalError, InvalidInputError,
    LicensingException, NotFoundError
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryError, retry_on_exception


API_KEY_HEADER = "X-Signoz-Cloud-Api-Key"

LICENSE_PATH = "/v2/licenses/me"
CHECKOUT_PATH = "/v2/subscriptions/me/sessions/checkout"
PORTAL_PATH = "/v2/subscriptions/me/sessions/portal"


def error_from_status(status_code: int, operation: str) -> LicensingException:
    """Map a non-2xx authority response onto the error taxonomy."""
    details = {"status_code": status_code, "operation": operation}
    if status_code == 400:
        return InvalidInputError("bad request", details=details)
    if status_code == 401:
        return AuthenticationError("unauthenticated", details=details)
    if status_code == 403:
        return AuthorizationError("forbidden", details=details)
    if status_code == 404:
        return NotFoundError("not found", details=details)
    return InternalError("internal", details=details)


def redirect_url_from(body: bytes) -> str:
    """The ``url`` member of a JSON object response, or "" when there is none."""
    try:
        document = json.loads(body)
    except ValueError:
        return ""
    if not isinstance(document, dict):
        return ""
    url = document.get("url")
    if url is None:
        return ""
    return url if isinstance(url, str) else json.dumps(url)


class EntitlementAuthorityClient:
    """Fetches license payloads and billing sessions from the entitlement authority.

    Every call authenticates with the license key. Transport failures are
    retried; HTTP error statuses are not.
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 retry_config: Optional[RetryConfig] = None,
                 metrics: Optional[MetricsCollector] = None,
                 api_key_header: str = API_KEY_HEADER):
        self.base_url = base_url.rstrip('/')
        self.api_key_header = api_key_header
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("licensing.upstream.client")
        self.retry_config = retry_config or RetryConfig(max_attempts=3, base_delay=0.5, max_delay=5.0)
        self._send = retry_on_exception((httpx.TransportError,), config=self.retry_config)(self._send_once)

    async def fetch_license(self, key: str) -> bytes:
        return await self._do("GET", LICENSE_PATH, key, operation="fetch_license")

    async def fetch_checkout_url(self, key: str, body: bytes) -> bytes:
        return await self._do("POST", CHECKOUT_PATH, key, body, operation="checkout")

    async def fetch_portal_url(self, key: str, body: bytes) -> bytes:
        return await self._do("POST", PORTAL_PATH, key, body, operation="portal")

    async def _send_once(self, method: str, url: str, key: str, body: Optional[bytes]) -> httpx.Response:
        headers = {
            self.api_key_header: key,
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, headers=headers, content=body)

    async def _do(self, method: str, path: str, key: str, body: Optional[bytes] = None,
                  operation: str = "") -> bytes:
        url = f"{self.base_url}{path}"
        try:
            response = await self._send(method, url, key, body)
        except RetryError as e:
            self._record(operation, "transport_error")
            self.logger.error("Entitlement authority unreachable", operation=operation,
                              attempts=e.attempts, error=str(e.last_exception))
            raise InternalError(
                "entitlement authority unreachable",
                details={"operation": operation, "error": str(e.last_exception)}
            ) from e

        if response.is_success:
            self._record(operation, "success")
            return response.content

        self._record(operation, str(response.status_code))
        self.logger.warning(
            "Entitlement authority error",
            operation=operation,
            status_code=response.status_code,
            body=response.text[:512]
        )
        raise error_from_status(response.status_code, operation)

    def _record(self, operation: str, outcome: str):
        if self.metrics is not None:
            self.metrics.record_upstream_call(operation, outcome)
