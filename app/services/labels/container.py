"""
Wiring of the label services for the application lifespan.

The proxy routes always use the direct Sendify client. The orchestrator uses
the same client, unless LABEL_PROXY_URL points it at a remote proxy.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.core.config import Settings
from app.core.redis_client import get_redis_client
from app.services.labels.carrier_client import SendifyCarrierClient
from app.services.labels.interfaces import ICarrierProxy, IOrderRepository
from app.services.labels.order_repository import HttpOrderRepository, InMemoryOrderRepository
from app.services.labels.orchestrator import LabelOrchestrator, create_label_orchestrator
from app.services.labels.proxy_client import ProxyCarrierClient

logger = logging.getLogger(__name__)


@dataclass
class LabelServices:
    """Label service instances shared by the API routes."""

    settings: Settings
    proxy: SendifyCarrierClient
    carrier: ICarrierProxy
    order_repository: IOrderRepository
    orchestrator: LabelOrchestrator
    redis_client: Optional[Any] = None

    async def initialize(self) -> None:
        """Open HTTP sessions."""
        for component in {id(c): c for c in (self.proxy, self.carrier, self.order_repository)}.values():
            initialize = getattr(component, "initialize", None)
            if initialize is not None:
                await initialize()

    async def close(self) -> None:
        """Close HTTP sessions."""
        for component in {id(c): c for c in (self.proxy, self.carrier, self.order_repository)}.values():
            close = getattr(component, "close", None)
            if close is not None:
                await close()


def build_label_services(settings: Settings) -> LabelServices:
    """
    Build all label services from settings.

    Args:
        settings: Application settings

    Returns:
        LabelServices: Wired services (sessions not yet opened)
    """
    proxy = SendifyCarrierClient.from_settings(settings)

    if settings.LABEL_PROXY_URL:
        carrier: ICarrierProxy = ProxyCarrierClient.from_settings(settings)
        logger.info(f"Label orchestrator uses remote proxy at {settings.LABEL_PROXY_URL}")
    else:
        carrier = proxy

    if settings.ORDER_SERVICE_URL:
        order_repository: IOrderRepository = HttpOrderRepository.from_settings(settings)
        logger.info(f"Order label state persisted through {settings.ORDER_SERVICE_URL}")
    else:
        order_repository = InMemoryOrderRepository()
        logger.warning("ORDER_SERVICE_URL not configured, using in-memory order repository")

    redis_client = get_redis_client(settings)

    return LabelServices(
        settings=settings,
        proxy=proxy,
        carrier=carrier,
        order_repository=order_repository,
        orchestrator=create_label_orchestrator(settings, carrier, order_repository, redis_client=redis_client),
        redis_client=redis_client,
    )
