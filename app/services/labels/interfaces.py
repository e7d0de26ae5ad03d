"""
Interfaces/Protocols for label services (Dependency Inversion Principle).

The orchestrator depends only on these contracts, so the carrier proxy can be
the in-process Sendify client or a remote client of the proxy routes, and
order persistence can be in-memory or the dashboard's order API.
"""

from typing import Any, Protocol

from app.domain.models import LabelOperationResult, OrderDomain, ShipmentRequest


class ICarrierProxy(Protocol):
    """Protocol for carrier proxy implementations."""

    async def book_shipment(
        self,
        request: ShipmentRequest,
        simulate: bool = False,
        api_key: str | None = None,
        endpoint: str | None = None,
    ) -> LabelOperationResult:
        """Book a new shipment; fails open with a placeholder label."""
        ...

    async def print_label(
        self,
        shipment_id: str,
        simulate: bool = False,
        api_key: str | None = None,
        endpoint: str | None = None,
    ) -> LabelOperationResult:
        """Retrieve the label of an existing shipment; fails closed."""
        ...

    async def probe(self, api_key: str | None = None, endpoint: str | None = None) -> dict[str, Any]:
        """Explicit connectivity check."""
        ...


class IOrderRepository(Protocol):
    """Protocol for the external order-persistence collaborator."""

    async def get_order(self, order_id: int) -> OrderDomain | None:
        """Load an order, or None if it does not exist."""
        ...

    async def update_label_status(self, order_id: int, is_label_printed: bool, label_url: str | None) -> OrderDomain:
        """Persist label status (printed date is set server-side) and return the refreshed order."""
        ...
