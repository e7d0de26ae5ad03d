"""
LabelOrchestrator - drives label generation for one order.

State machine:

    IDLE -> ATTEMPTING_PRINT -> DONE
                             -> (SHIPMENT_NOT_FOUND, no manual id) ATTEMPTING_BOOK -> DONE | FAILED
                             -> FAILED
    IDLE -> PENDING_REPRINT_CONFIRMATION   (already printed, not confirmed)

The print step yields a tagged variant (Printed | NeedsBooking | PrintFailed)
instead of raising, so every transition is explicit. Only a
SHIPMENT_NOT_FOUND without a manual shipment id falls back to booking, and
it does so exactly once.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from app.core.config import Settings
from app.core.logging_config import LogContext
from app.domain.models import ErrorKind, LabelOperationResult, OrderDomain
from app.services.labels.interfaces import ICarrierProxy, IOrderRepository
from app.services.labels.shipment_builder import ShipmentRequestFactory
from app.utils.error_handler import LabelInProgressException, OrderNotFoundException, OrderServiceException
from app.utils.order_lock import LockAcquisitionError, OrderLock

logger = logging.getLogger(__name__)


class LabelState(str, Enum):
    """States of a label run."""

    IDLE = "IDLE"
    PENDING_REPRINT_CONFIRMATION = "PENDING_REPRINT_CONFIRMATION"
    ATTEMPTING_PRINT = "ATTEMPTING_PRINT"
    ATTEMPTING_BOOK = "ATTEMPTING_BOOK"
    DONE = "DONE"
    FAILED = "FAILED"


# Print step variants


@dataclass(frozen=True)
class Printed:
    result: LabelOperationResult


@dataclass(frozen=True)
class NeedsBooking:
    reason: str


@dataclass(frozen=True)
class PrintFailed:
    result: LabelOperationResult


@dataclass
class LabelOutcome:
    """
    Result of one generate_label call.

    Always carries order_id, so callers can discard outcomes for an order
    that is no longer selected.

    persisted is False when the carrier produced a label but the order could
    not be updated; label_url and shipment_id must then be recorded by hand.
    """

    order_id: int
    state: LabelState
    label_url: Optional[str] = None
    shipment_id: Optional[str] = None
    booked: bool = False
    warnings: list[str] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    upstream_status: Optional[int] = None
    upstream_message: Optional[str] = None
    order: Optional[OrderDomain] = None
    transitions: list[LabelState] = field(default_factory=list)
    persisted: bool = True

    @property
    def is_done(self) -> bool:
        return self.state == LabelState.DONE

    @property
    def is_failed(self) -> bool:
        return self.state == LabelState.FAILED

    @property
    def needs_reprint_confirmation(self) -> bool:
        return self.state == LabelState.PENDING_REPRINT_CONFIRMATION

    @property
    def warning(self) -> Optional[str]:
        """All warnings joined, or None."""
        return " ".join(self.warnings) if self.warnings else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "status": self.state.value.lower(),
            "label_url": self.label_url,
            "shipment_id": self.shipment_id,
            "booked": self.booked,
            "warning": self.warning,
            "warnings": list(self.warnings),
            "error_kind": self.error_kind.value if self.error_kind else None,
            "upstream_status": self.upstream_status,
            "upstream_message": self.upstream_message,
            "order": self.order.label_state() if self.order else None,
            "transitions": [state.value for state in self.transitions],
            "persisted": self.persisted,
        }


class LabelOrchestrator:
    """
    Coordinates print/book/persist for an order.

    Dependencies are injected; the orchestrator never talks HTTP itself.
    """

    def __init__(
        self,
        carrier: ICarrierProxy,
        order_repository: IOrderRepository,
        shipment_factory: ShipmentRequestFactory,
        redis_client=None,
        lock_timeout_seconds: int = 120,
    ):
        """
        Initialize orchestrator with service dependencies (DIP).

        Args:
            carrier: Carrier proxy (direct or remote)
            order_repository: Order persistence collaborator
            shipment_factory: Builds ShipmentRequest objects from orders
            redis_client: Optional Redis client for cross-process locks
            lock_timeout_seconds: TTL of the per-order lock
        """
        self.carrier = carrier
        self.order_repository = order_repository
        self.shipment_factory = shipment_factory
        self.redis_client = redis_client
        self.lock_timeout_seconds = lock_timeout_seconds

    async def generate_label(
        self,
        order_id: int,
        manual_shipment_id: Optional[str] = None,
        simulate: bool = False,
        confirm_reprint: bool = False,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> LabelOutcome:
        """
        Produce a label for an order.

        Args:
            order_id: Internal order id
            manual_shipment_id: Operator-supplied carrier shipment id
            simulate: Simulation mode (no real carrier call, no charge)
            confirm_reprint: Explicit confirmation for an already-printed order
            api_key: Per-request carrier API key override
            endpoint: Per-request carrier base URL override

        Returns:
            LabelOutcome: DONE, FAILED or PENDING_REPRINT_CONFIRMATION

        Raises:
            OrderNotFoundException: If the order does not exist
            LabelInProgressException: If another run for the order is in flight
        """
        try:
            async with OrderLock(order_id, timeout_seconds=self.lock_timeout_seconds, redis_client=self.redis_client):
                with LogContext(order_id=order_id):
                    return await self._run(order_id, manual_shipment_id, simulate, confirm_reprint, api_key, endpoint)
        except LockAcquisitionError as e:
            raise LabelInProgressException(order_id) from e

    async def _run(
        self,
        order_id: int,
        manual_shipment_id: Optional[str],
        simulate: bool,
        confirm_reprint: bool,
        api_key: Optional[str],
        endpoint: Optional[str],
    ) -> LabelOutcome:
        order = await self.order_repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)

        outcome = LabelOutcome(order_id=order_id, state=LabelState.IDLE, transitions=[LabelState.IDLE])

        if order.is_label_printed and not confirm_reprint:
            logger.info(f"Order {order_id} already has a label; waiting for re-print confirmation")
            self._transition(outcome, LabelState.PENDING_REPRINT_CONFIRMATION)
            outcome.label_url = order.label_url
            outcome.order = order
            return outcome

        manual_id = manual_shipment_id.strip() if manual_shipment_id and manual_shipment_id.strip() else None

        if simulate and not order.is_label_printed and manual_id is None:
            logger.info(f"Order {order_id}: simulation on a never-labelled order, skipping print attempt")
            step = NeedsBooking(reason="simulation")
        else:
            self._transition(outcome, LabelState.ATTEMPTING_PRINT)
            step = await self._attempt_print(order, manual_id, simulate, api_key, endpoint)

        if isinstance(step, Printed):
            return await self._complete(outcome, step.result, booked=False)

        if isinstance(step, PrintFailed):
            return self._fail(outcome, step.result)

        self._transition(outcome, LabelState.ATTEMPTING_BOOK)
        if step.reason == "not_found":
            logger.info(f"Order {order_id}: shipment not found upstream, booking a new shipment")

        request = self.shipment_factory.create_for_order(order)
        result = await self.carrier.book_shipment(request, simulate=simulate, api_key=api_key, endpoint=endpoint)
        if not result.ok:
            return self._fail(outcome, result)
        return await self._complete(outcome, result, booked=True)

    async def _attempt_print(
        self,
        order: OrderDomain,
        manual_id: Optional[str],
        simulate: bool,
        api_key: Optional[str],
        endpoint: Optional[str],
    ) -> Printed | NeedsBooking | PrintFailed:
        # Carriers reject numeric ids: always send a string
        shipment_id = manual_id if manual_id is not None else str(order.id)

        result = await self.carrier.print_label(shipment_id, simulate=simulate, api_key=api_key, endpoint=endpoint)

        if result.ok:
            return Printed(result)
        if result.error_kind == ErrorKind.SHIPMENT_NOT_FOUND and manual_id is None:
            return NeedsBooking(reason="not_found")
        return PrintFailed(result)

    async def _complete(self, outcome: LabelOutcome, result: LabelOperationResult, booked: bool) -> LabelOutcome:
        self._transition(outcome, LabelState.DONE)
        outcome.label_url = result.label_url
        outcome.shipment_id = result.shipment_id
        outcome.booked = booked
        if result.warning:
            outcome.warnings.append(result.warning)

        try:
            outcome.order = await self.order_repository.update_label_status(outcome.order_id, True, result.label_url)
        except (OrderServiceException, OrderNotFoundException) as e:
            # The label already exists upstream, so the outcome stays DONE
            outcome.persisted = False
            outcome.warnings.append(
                f"Label created (shipment {result.shipment_id}) but order {outcome.order_id} could not be "
                f"updated: {e.message}. Record the label URL manually before retrying."
            )
            logger.error(
                f"Label for order {outcome.order_id} not persisted (shipment {result.shipment_id}, "
                f"url {result.label_url}): {e.message}"
            )
            return outcome

        logger.info(
            f"Label ready for order {outcome.order_id} (shipment {result.shipment_id}, "
            f"{'booked' if booked else 'printed'}{', with warning' if result.warning else ''})"
        )
        return outcome

    def _fail(self, outcome: LabelOutcome, result: LabelOperationResult) -> LabelOutcome:
        self._transition(outcome, LabelState.FAILED)
        # A result without label URL and without kind is an upstream contract breach
        outcome.error_kind = result.error_kind or ErrorKind.UPSTREAM_ERROR
        outcome.upstream_status = result.upstream_status
        outcome.upstream_message = result.upstream_message
        if result.error_kind is None:
            outcome.upstream_message = "Carrier returned no label URL"
        outcome.shipment_id = result.shipment_id
        logger.warning(
            f"Label generation failed for order {outcome.order_id}: "
            f"{outcome.error_kind.value} (HTTP {result.upstream_status})"
        )
        return outcome

    @staticmethod
    def _transition(outcome: LabelOutcome, state: LabelState) -> None:
        logger.debug(f"Order {outcome.order_id}: {outcome.state.value} -> {state.value}")
        outcome.state = state
        outcome.transitions.append(state)


def create_label_orchestrator(
    settings: Settings,
    carrier: ICarrierProxy,
    order_repository: IOrderRepository,
    redis_client=None,
) -> LabelOrchestrator:
    """
    Factory function to create a fully initialized orchestrator.

    Args:
        settings: Application settings
        carrier: Carrier proxy implementation
        order_repository: Order persistence collaborator
        redis_client: Optional Redis client for distributed locks

    Returns:
        LabelOrchestrator: Configured orchestrator
    """
    return LabelOrchestrator(
        carrier=carrier,
        order_repository=order_repository,
        shipment_factory=ShipmentRequestFactory(settings),
        redis_client=redis_client,
        lock_timeout_seconds=settings.LABEL_LOCK_TIMEOUT_SECONDS,
    )
