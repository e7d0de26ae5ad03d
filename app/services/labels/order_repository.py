"""
Order persistence collaborators for the label workflow.

Two implementations of IOrderRepository:

- InMemoryOrderRepository: process-local store for development and tests.
- HttpOrderRepository: the dashboard's order API
  (PUT /orders/{id}/label, then GET /orders/{id} for the refreshed record).

Both set label_printed_date on the transition to printed, never clear it,
and never clear an existing label URL.
"""

import asyncio
import copy
import logging
import time
from datetime import UTC, datetime
from typing import Any, Dict, Iterable, Optional

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import Settings
from app.core.logging_config import log_api_call
from app.domain.models import OrderDomain
from app.utils.error_handler import OrderNotFoundException, OrderServiceException

logger = logging.getLogger(__name__)


class InMemoryOrderRepository:
    """Order store held in process memory."""

    def __init__(self, orders: Optional[Iterable[OrderDomain]] = None):
        self._orders: Dict[int, OrderDomain] = {}
        self._lock = asyncio.Lock()
        for order in orders or []:
            self.add(order)

    def add(self, order: OrderDomain) -> None:
        """Register or replace an order."""
        self._orders[order.id] = copy.deepcopy(order)

    async def get_order(self, order_id: int) -> OrderDomain | None:
        """Return a copy of the order, or None."""
        order = self._orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def update_label_status(self, order_id: int, is_label_printed: bool, label_url: str | None) -> OrderDomain:
        """
        Record the label outcome for an order.

        Raises:
            OrderNotFoundException: If the order does not exist
        """
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)

            if is_label_printed:
                order.mark_label_printed(label_url, printed_at=datetime.now(UTC))
            elif label_url:
                order.label_url = label_url

            logger.info(f"Order {order_id} label status updated: printed={order.is_label_printed}")
            return copy.deepcopy(order)


class HttpOrderRepository:
    """Order repository backed by the dashboard's order API."""

    def __init__(self, base_url: str, timeout_seconds: int = 10, session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = ClientTimeout(total=timeout_seconds)
        self.session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpOrderRepository":
        """Build a repository from application settings."""
        if not settings.ORDER_SERVICE_URL:
            raise ValueError("ORDER_SERVICE_URL is not configured")
        return cls(settings.ORDER_SERVICE_URL, settings.ORDER_SERVICE_TIMEOUT_SECONDS)

    async def initialize(self):
        """Create the HTTP session if none was injected."""
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True

    async def close(self):
        """Close the HTTP session."""
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    async def _request(self, method: str, path: str, order_id: int, payload: Dict[str, Any] | None = None):
        if self.session is None:
            await self.initialize()

        url = f"{self.base_url}{path}"
        start = time.monotonic()
        status = 0
        try:
            async with self.session.request(method, url, json=payload, timeout=self.timeout) as response:
                status = response.status
                if status == 404:
                    return None
                if not 200 <= status < 300:
                    body = await response.text()
                    raise OrderServiceException(
                        message=f"Order service returned HTTP {status}: {body[:500]}",
                        order_id=order_id,
                        api_response_code=status,
                        endpoint=url,
                    )
                if status == 204:
                    return {}
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise OrderServiceException(
                message=f"Order service unreachable: {type(e).__name__}: {e}",
                order_id=order_id,
                endpoint=url,
            ) from e
        finally:
            log_api_call(method, url, status, time.monotonic() - start, order_id=order_id)

    async def get_order(self, order_id: int) -> OrderDomain | None:
        """Fetch an order from the order API."""
        data = await self._request("GET", f"/orders/{order_id}", order_id)
        if data is None:
            return None
        return OrderDomain.from_dict(data)

    async def update_label_status(self, order_id: int, is_label_printed: bool, label_url: str | None) -> OrderDomain:
        """
        Persist label status and return the refreshed order.

        The order API sets labelPrintedDate server-side.

        Raises:
            OrderNotFoundException: If the order does not exist
            OrderServiceException: If the order API fails
        """
        result = await self._request(
            "PUT", f"/orders/{order_id}/label", order_id, {"isPrinted": is_label_printed, "labelUrl": label_url}
        )
        if result is None:
            raise OrderNotFoundException(order_id)

        updated = await self.get_order(order_id)
        if updated is None:
            raise OrderServiceException(message="Order not found after label update", order_id=order_id)
        return updated
