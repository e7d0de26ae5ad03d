"""
Remote carrier proxy client.

Used when the orchestrator runs apart from the proxy (LABEL_PROXY_URL set):
it calls this service's own /api/v1/shipping routes instead of the carrier.
A 404 without an error_kind envelope, or a refused connection, means the proxy
route itself is missing or unreachable. That is reported as
CONNECTIVITY_ERROR, never as SHIPMENT_NOT_FOUND.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import Settings
from app.core.logging_config import log_api_call
from app.domain.models import ErrorKind, LabelOperationResult, ShipmentRequest
from app.services.labels.error_classifier import body_excerpt, classify_proxy_response, parse_structured_body
from app.services.labels.simulation import simulated_booking, simulated_print

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
ENDPOINT_HEADER = "x-carrier-base-url"


def _exception_text(e: Exception) -> str:
    return f"{type(e).__name__}: {e}" if str(e) else type(e).__name__


class ProxyCarrierClient:
    """Carrier proxy implementation that talks to a remote label proxy over HTTP."""

    def __init__(
        self,
        proxy_base_url: str,
        placeholder_label_url: str,
        timeout_seconds: int = 20,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.proxy_base_url = proxy_base_url.rstrip("/")
        self.placeholder_label_url = placeholder_label_url
        self.timeout = ClientTimeout(total=timeout_seconds)
        self.session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProxyCarrierClient":
        """Build a client from application settings."""
        if not settings.LABEL_PROXY_URL:
            raise ValueError("LABEL_PROXY_URL is not configured")
        return cls(
            proxy_base_url=settings.LABEL_PROXY_URL,
            placeholder_label_url=settings.PLACEHOLDER_LABEL_URL,
            timeout_seconds=settings.CARRIER_REQUEST_TIMEOUT_SECONDS,
        )

    async def initialize(self):
        """Create the HTTP session if none was injected."""
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
            logger.info(f"Remote label proxy client initialized for {self.proxy_base_url}")

    async def close(self):
        """Close the HTTP session."""
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    def _headers(self, api_key: Optional[str], endpoint: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        if endpoint:
            headers[ENDPOINT_HEADER] = endpoint
        return headers

    async def _call(
        self, path: str, payload: Dict[str, Any], api_key: Optional[str], endpoint: Optional[str], shipment_id=None
    ) -> LabelOperationResult:
        """
        POST to a proxy route and normalize the answer.

        Args:
            path: Route path under the proxy base URL
            payload: JSON body
            api_key: Optional key forwarded as x-api-key
            endpoint: Optional carrier base URL forwarded as header
            shipment_id: Shipment id for failure results

        Returns:
            LabelOperationResult: Decoded success, or classified failure
        """
        if self.session is None:
            await self.initialize()

        url = f"{self.proxy_base_url}{path}"
        start = time.monotonic()
        status = 0
        try:
            async with self.session.post(
                url, json=payload, headers=self._headers(api_key, endpoint), timeout=self.timeout
            ) as response:
                status = response.status
                body = await response.text()
        except asyncio.TimeoutError as e:
            logger.error(f"Label proxy timed out at {url}")
            return LabelOperationResult.failure(
                ErrorKind.PROXY_INTERNAL_ERROR, upstream_message=_exception_text(e), shipment_id=shipment_id
            )
        except aiohttp.ClientConnectionError as e:
            # The proxy route itself could not be reached
            logger.error(f"Label proxy unreachable at {url}: {_exception_text(e)}")
            return LabelOperationResult.failure(
                ErrorKind.CONNECTIVITY_ERROR, upstream_message=_exception_text(e), shipment_id=shipment_id
            )
        except aiohttp.ClientError as e:
            logger.error(f"Label proxy call to {url} failed: {_exception_text(e)}")
            return LabelOperationResult.failure(
                ErrorKind.PROXY_INTERNAL_ERROR, upstream_message=_exception_text(e), shipment_id=shipment_id
            )
        finally:
            log_api_call("POST", url, status, time.monotonic() - start)

        envelope = parse_structured_body(body)

        if not 200 <= status < 300:
            kind = classify_proxy_response(status, body)
            upstream_status = status
            message = body_excerpt(body)
            if envelope is not None and ErrorKind.parse(envelope.get("error_kind")) is not None:
                upstream_status = envelope.get("upstream_status") or status
                message = envelope.get("upstream_body") or envelope.get("message") or message
            logger.warning(f"Label proxy {path} failed: HTTP {status} -> {kind.value}")
            return LabelOperationResult.failure(
                kind, upstream_message=message, upstream_status=upstream_status, shipment_id=shipment_id
            )

        if envelope is None:
            return LabelOperationResult.failure(
                ErrorKind.CONNECTIVITY_ERROR,
                upstream_message=f"Unexpected non-JSON response from label proxy: {body_excerpt(body, 200)}",
                upstream_status=status,
                shipment_id=shipment_id,
            )

        return LabelOperationResult.from_dict(envelope)

    async def print_label(
        self,
        shipment_id: str,
        simulate: bool = False,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> LabelOperationResult:
        """Print through the remote proxy (simulation never leaves the process)."""
        shipment_id = str(shipment_id)
        if simulate:
            return simulated_print(shipment_id, self.placeholder_label_url)
        return await self._call(
            "/api/v1/shipping/print", {"shipment_id": shipment_id}, api_key, endpoint, shipment_id=shipment_id
        )

    async def book_shipment(
        self,
        request: ShipmentRequest,
        simulate: bool = False,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> LabelOperationResult:
        """Book through the remote proxy (simulation never leaves the process)."""
        if simulate:
            return simulated_booking(self.placeholder_label_url)
        return await self._call("/api/v1/shipping/book", request.to_carrier_payload(), api_key, endpoint)

    async def probe(self, api_key: Optional[str] = None, endpoint: Optional[str] = None) -> Dict[str, Any]:
        """Ask the remote proxy to probe the carrier."""
        if self.session is None:
            await self.initialize()

        url = f"{self.proxy_base_url}/api/v1/shipping/health"
        try:
            async with self.session.get(url, headers=self._headers(api_key, endpoint), timeout=self.timeout) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return {
                "reachable": False,
                "status": None,
                "error_kind": ErrorKind.CONNECTIVITY_ERROR.value,
                "message": _exception_text(e),
                "endpoint": url,
            }

        data = parse_structured_body(body)
        if data is None:
            return {
                "reachable": False,
                "status": status,
                "error_kind": ErrorKind.CONNECTIVITY_ERROR.value,
                "message": "Label proxy health route returned a non-JSON response",
                "endpoint": url,
            }
        return {**data, "proxy_status": status}
