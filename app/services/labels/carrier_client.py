"""
Sendify carrier client (the Carrier Proxy).

Forwards label operations to the carrier and normalizes every outcome into a
LabelOperationResult:

- print_label fails closed: any non-2xx is a classified failure.
- book_shipment fails open: upstream failures still return a placeholder
  label, with a warning carrying the upstream status and body.
- simulate bypasses the network entirely and takes precedence over
  credentials.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import Settings
from app.core.logging_config import log_api_call
from app.domain.models import ErrorKind, LabelOperationResult, ShipmentRequest
from app.services.labels.credentials import CarrierCredentialResolver, CarrierCredentials
from app.services.labels.error_classifier import body_excerpt, classify_upstream_response, parse_structured_body
from app.services.labels.simulation import (
    MISSING_KEY_WARNING,
    booking_failed_warning,
    placeholder_booking,
    simulated_booking,
    simulated_print,
)
from app.utils.error_handler import MissingCredentialsException

logger = logging.getLogger(__name__)

_LABEL_URL_KEYS = ("label_url", "labelUrl", "url", "document_url")
_SHIPMENT_ID_KEYS = ("id", "shipment_id", "shipmentId")


def _first_value(data: Dict[str, Any], keys: tuple) -> Optional[Any]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


class SendifyCarrierClient:
    """
    Carrier proxy backed by the Sendify external API.

    One aiohttp session is shared by all calls; every call carries an explicit
    total timeout, and timeouts surface as PROXY_INTERNAL_ERROR.
    """

    def __init__(
        self,
        resolver: CarrierCredentialResolver,
        placeholder_label_url: str,
        timeout_seconds: int = 20,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the carrier client.

        Args:
            resolver: Credential resolver (settings threaded in at construction)
            placeholder_label_url: Deterministic placeholder document
            timeout_seconds: Total timeout for each carrier call
            session: Optional pre-built HTTP session (tests, shared pools)
        """
        self.resolver = resolver
        self.placeholder_label_url = placeholder_label_url
        self.timeout = ClientTimeout(total=timeout_seconds)
        self.session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SendifyCarrierClient":
        """Build a client from application settings."""
        return cls(
            resolver=CarrierCredentialResolver(settings),
            placeholder_label_url=settings.PLACEHOLDER_LABEL_URL,
            timeout_seconds=settings.CARRIER_REQUEST_TIMEOUT_SECONDS,
        )

    async def initialize(self):
        """Create the HTTP session if none was injected."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=aiohttp.TCPConnector(limit=50, limit_per_host=20),
                headers={"User-Agent": "OrderFlow-Label-Service"},
            )
            self._owns_session = True
            logger.info("Sendify carrier client initialized")

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session and self._owns_session:
            await self.session.close()
            logger.info("Sendify carrier client closed")
        self.session = None

    async def _post(self, url: str, payload: Dict[str, Any], credentials: CarrierCredentials) -> tuple[int, str]:
        """
        POST a JSON payload to the carrier.

        Returns:
            tuple: (status, raw body)

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError: On network failures
        """
        if self.session is None:
            await self.initialize()

        start = time.monotonic()
        status = 0
        try:
            async with self.session.post(
                url,
                data=json.dumps(payload),
                headers=credentials.headers,
                timeout=self.timeout,
            ) as response:
                status = response.status
                body = await response.text()
                return status, body
        finally:
            log_api_call("POST", url, status, time.monotonic() - start, key_source=credentials.key_source)

    async def print_label(
        self,
        shipment_id: str,
        simulate: bool = False,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> LabelOperationResult:
        """
        Retrieve the printable label of an existing shipment.

        Args:
            shipment_id: Carrier shipment id (always sent as a string)
            simulate: Skip the carrier and return the placeholder
            api_key: Per-request API key override
            endpoint: Per-request base URL override

        Returns:
            LabelOperationResult: Label URL, or a classified failure
        """
        shipment_id = str(shipment_id)

        if simulate:
            logger.info(f"Simulated print for shipment {shipment_id}")
            return simulated_print(shipment_id, self.placeholder_label_url)

        try:
            credentials = self.resolver.resolve(api_key, endpoint)
        except MissingCredentialsException as e:
            logger.warning(f"Print refused for shipment {shipment_id}: {e.message}")
            return LabelOperationResult.failure(
                ErrorKind.MISSING_CREDENTIALS, upstream_message=e.message, shipment_id=shipment_id
            )

        try:
            status, body = await self._post(credentials.print_url, {"shipment_ids": [shipment_id]}, credentials)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Carrier print request failed for shipment {shipment_id}: {type(e).__name__}: {e}")
            return LabelOperationResult.failure(
                ErrorKind.PROXY_INTERNAL_ERROR,
                upstream_message=f"{type(e).__name__}: {e}" if str(e) else type(e).__name__,
                shipment_id=shipment_id,
            )

        if not 200 <= status < 300:
            kind = classify_upstream_response(status, body)
            logger.warning(f"Carrier print for shipment {shipment_id} failed: HTTP {status} -> {kind.value}")
            return LabelOperationResult.failure(
                kind, upstream_message=body_excerpt(body), upstream_status=status, shipment_id=shipment_id
            )

        data = parse_structured_body(body) or {}
        label_url = _first_value(data, _LABEL_URL_KEYS) or credentials.label_document_url(shipment_id)
        logger.info(f"Label retrieved for shipment {shipment_id}")
        return LabelOperationResult.success(label_url=str(label_url), shipment_id=shipment_id)

    async def book_shipment(
        self,
        request: ShipmentRequest,
        simulate: bool = False,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> LabelOperationResult:
        """
        Book a new shipment with the carrier.

        Never returns a failure: missing credentials and upstream errors
        degrade to the placeholder label with a warning.

        Args:
            request: Shipment to book
            simulate: Skip the carrier (no charge)
            api_key: Per-request API key override
            endpoint: Per-request base URL override

        Returns:
            LabelOperationResult: Booked label, or placeholder with warning
        """
        if simulate:
            result = simulated_booking(self.placeholder_label_url)
            logger.info(f"Simulated booking for {request.reference} -> {result.shipment_id}")
            return result

        try:
            credentials = self.resolver.resolve(api_key, endpoint)
        except MissingCredentialsException:
            logger.warning(f"No carrier API key for booking {request.reference}, returning mock label")
            return placeholder_booking(self.placeholder_label_url, MISSING_KEY_WARNING)

        try:
            status, body = await self._post(credentials.book_url, request.to_carrier_payload(), credentials)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            detail = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            logger.error(f"Carrier booking request failed for {request.reference}: {detail}")
            return placeholder_booking(self.placeholder_label_url, booking_failed_warning(None, detail))

        if not 200 <= status < 300:
            logger.warning(f"Carrier booking for {request.reference} failed: HTTP {status}")
            return placeholder_booking(self.placeholder_label_url, booking_failed_warning(status, body_excerpt(body)))

        data = parse_structured_body(body) or {}
        shipment_id = _first_value(data, _SHIPMENT_ID_KEYS)
        if shipment_id is None:
            logger.warning(f"Carrier booking for {request.reference} returned no shipment id")
            return placeholder_booking(
                self.placeholder_label_url,
                booking_failed_warning(status, f"response without shipment id: {body_excerpt(body)}"),
            )

        shipment_id = str(shipment_id)
        logger.info(f"Shipment booked for {request.reference}: {shipment_id}")
        return LabelOperationResult.success(
            label_url=credentials.label_document_url(shipment_id),
            shipment_id=shipment_id,
        )

    async def probe(self, api_key: Optional[str] = None, endpoint: Optional[str] = None) -> Dict[str, Any]:
        """
        Explicit connectivity check against the carrier.

        Returns:
            Dict: reachable flag, HTTP status, latency and endpoint
        """
        try:
            credentials = self.resolver.resolve(api_key, endpoint)
        except MissingCredentialsException as e:
            return {
                "reachable": False,
                "authenticated": False,
                "status": None,
                "error_kind": ErrorKind.MISSING_CREDENTIALS.value,
                "message": e.message,
                "endpoint": self.resolver.resolve_endpoint(endpoint),
            }

        if self.session is None:
            await self.initialize()

        start = time.monotonic()
        try:
            async with self.session.get(credentials.probe_url, headers=credentials.headers, timeout=self.timeout) as response:
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Carrier probe failed: {type(e).__name__}: {e}")
            return {
                "reachable": False,
                "authenticated": False,
                "status": None,
                "error_kind": ErrorKind.PROXY_INTERNAL_ERROR.value,
                "message": f"{type(e).__name__}: {e}",
                "endpoint": credentials.base_url,
            }

        latency_ms = round((time.monotonic() - start) * 1000, 2)
        log_api_call("GET", credentials.probe_url, status, latency_ms / 1000)
        return {
            "reachable": True,
            "authenticated": 200 <= status < 300,
            "status": status,
            "latency_ms": latency_ms,
            "endpoint": credentials.base_url,
        }
