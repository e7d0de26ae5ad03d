"""
Endpoints de generación de etiquetas por pedido.

El botón "Generar etiqueta" del panel de pedidos llama a estos endpoints. La
lógica de impresión, reserva y persistencia vive en LabelOrchestrator.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.v1.dependencies import CarrierOverrides, get_label_services
from app.api.v1.schemas.label_schemas import GenerateLabelRequest
from app.services.labels.container import LabelServices
from app.utils.error_handler import CarrierException, OrderNotFoundException

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{order_id}/label", status_code=status.HTTP_200_OK)
async def generate_order_label(
    order_id: int,
    payload: GenerateLabelRequest | None = None,
    overrides: CarrierOverrides = Depends(),
    services: LabelServices = Depends(get_label_services),
) -> Any:
    """
    Genera (o reimprime) la etiqueta de envío de un pedido.

    Primero intenta imprimir el envío existente; si el transportista no lo
    conoce y no hay id manual, reserva un envío nuevo una sola vez.

    Returns:
        200 con la etiqueta, 409 si falta confirmar la reimpresión o ya hay
        una generación en curso, y el envelope de error con error_kind si falla.

    Example:
        ```json
        {
            "order_id": 1001,
            "status": "done",
            "label_url": "https://app.sendify.se/external/v1/shipments/SH-77/label",
            "shipment_id": "SH-77",
            "booked": true,
            "warning": null,
            "order": {
                "order_id": 1001,
                "is_label_printed": true,
                "label_printed_date": "2026-10-17T09:12:44+00:00",
                "label_url": "https://app.sendify.se/external/v1/shipments/SH-77/label"
            }
        }
        ```
    """
    payload = payload or GenerateLabelRequest()

    outcome = await services.orchestrator.generate_label(
        order_id,
        manual_shipment_id=payload.manual_shipment_id,
        simulate=payload.simulate,
        confirm_reprint=payload.confirm_reprint,
        api_key=overrides.api_key,
        endpoint=overrides.endpoint,
    )

    if outcome.needs_reprint_confirmation:
        body = outcome.to_dict()
        body["message"] = f"Order {order_id} already has a label. Confirm to print it again."
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body)

    if outcome.is_failed:
        raise CarrierException(
            error_kind=outcome.error_kind,
            upstream_status=outcome.upstream_status,
            upstream_body=outcome.upstream_message,
            shipment_id=outcome.shipment_id,
            details={"order_id": order_id},
        )

    return outcome.to_dict()


@router.get("/{order_id}/label", status_code=status.HTTP_200_OK)
async def get_order_label(
    order_id: int,
    services: LabelServices = Depends(get_label_services),
) -> dict[str, Any]:
    """
    Obtiene el estado de etiqueta de un pedido.

    Example:
        ```json
        {"order_id": 1001, "is_label_printed": false, "label_printed_date": null, "label_url": null}
        ```
    """
    order = await services.order_repository.get_order(order_id)
    if order is None:
        raise OrderNotFoundException(order_id)
    return order.label_state()
