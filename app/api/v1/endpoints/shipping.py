"""
Endpoints del proxy del transportista (Sendify).

El navegador nunca llama al transportista directamente: estas rutas añaden
la API key, reenvían la llamada y normalizan los errores con un error_kind.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status

from app.api.v1.dependencies import CarrierOverrides, get_label_services
from app.api.v1.schemas.label_schemas import BookShipmentRequest, PrintLabelRequest
from app.services.labels.container import LabelServices
from app.utils.error_handler import CarrierException

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/print", status_code=status.HTTP_200_OK)
async def print_label(
    payload: PrintLabelRequest,
    overrides: CarrierOverrides = Depends(),
    services: LabelServices = Depends(get_label_services),
) -> dict[str, Any]:
    """
    Obtiene la etiqueta imprimible de un envío existente.

    Falla cerrado: sin API key responde 401 y nunca devuelve una etiqueta falsa
    salvo en modo simulación.

    Example:
        ```json
        {
            "ok": true,
            "label_url": "https://app.sendify.se/external/v1/shipments/SH-77/label",
            "shipment_id": "SH-77",
            "warning": null,
            "error_kind": null,
            "upstream_status": null,
            "upstream_message": null
        }
        ```
    """
    result = await services.proxy.print_label(
        payload.shipment_id,
        simulate=payload.simulate,
        api_key=overrides.api_key,
        endpoint=overrides.endpoint,
    )
    if not result.ok:
        raise CarrierException.from_result(result)
    return result.to_dict()


@router.post("/book", status_code=status.HTTP_200_OK)
async def book_shipment(
    payload: BookShipmentRequest,
    overrides: CarrierOverrides = Depends(),
    services: LabelServices = Depends(get_label_services),
) -> dict[str, Any]:
    """
    Reserva un envío nuevo con el transportista.

    Falla abierto: si no hay API key o el transportista rechaza la reserva se
    devuelve la etiqueta de ejemplo con un aviso.

    Example:
        ```json
        {
            "ok": true,
            "label_url": "https://www.w3.org/WAI/ER/tests/xhtml/testfiles/resources/pdf/dummy.pdf",
            "shipment_id": "SIM-4f1c2a9b7e",
            "warning": "Real booking failed (HTTP 400): {\\"error\\":\\"invalid postal code\\"}. Using placeholder label.",
            "error_kind": null,
            "upstream_status": null,
            "upstream_message": null
        }
        ```
    """
    result = await services.proxy.book_shipment(
        payload.to_domain(),
        simulate=payload.simulate,
        api_key=overrides.api_key,
        endpoint=overrides.endpoint,
    )
    return result.to_dict()


@router.get("/health", status_code=status.HTTP_200_OK)
async def carrier_health(
    overrides: CarrierOverrides = Depends(),
    services: LabelServices = Depends(get_label_services),
) -> dict[str, Any]:
    """
    Verificación explícita de conectividad con el transportista.

    Example:
        ```json
        {
            "status": "healthy",
            "carrier": {
                "reachable": true,
                "authenticated": true,
                "status": 200,
                "latency_ms": 142.3,
                "endpoint": "https://app.sendify.se/external/v1"
            }
        }
        ```
    """
    probe = await services.proxy.probe(api_key=overrides.api_key, endpoint=overrides.endpoint)

    if probe.get("reachable") and probe.get("authenticated"):
        health = "healthy"
    elif probe.get("reachable"):
        health = "degraded"
    else:
        health = "unhealthy"

    return {"status": health, "carrier": probe}
