"""
Dependencias compartidas por los endpoints v1.
"""

from fastapi import Header, Request

from app.services.labels.container import LabelServices
from app.utils.error_handler import AppException, ErrorCode, ErrorSeverity


def get_label_services(request: Request) -> LabelServices:
    """
    Obtiene los servicios de etiquetas creados en el lifespan.

    Raises:
        AppException: Si el servicio aún no está inicializado
    """
    services = getattr(request.app.state, "label_services", None)
    if services is None:
        raise AppException(
            message="Label services are not initialized",
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=503,
            severity=ErrorSeverity.HIGH,
            is_retryable=True,
        )
    return services


class CarrierOverrides:
    """Overrides de credenciales del transportista enviados por el cliente."""

    def __init__(
        self,
        x_api_key: str | None = Header(None, alias="x-api-key"),
        x_carrier_base_url: str | None = Header(None, alias="x-carrier-base-url"),
    ):
        self.api_key = x_api_key
        self.endpoint = x_carrier_base_url
