"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas del servicio de etiquetas
y la tabla que traduce cada tipo de error a su código HTTP.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from app.domain.models.label_result import ErrorKind


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores del transportista
    CARRIER_MISSING_CREDENTIALS = "CARRIER_MISSING_CREDENTIALS"
    CARRIER_SHIPMENT_NOT_FOUND = "CARRIER_SHIPMENT_NOT_FOUND"
    CARRIER_UPSTREAM_ERROR = "CARRIER_UPSTREAM_ERROR"
    CARRIER_CONNECTIVITY_ERROR = "CARRIER_CONNECTIVITY_ERROR"
    CARRIER_PROXY_INTERNAL_ERROR = "CARRIER_PROXY_INTERNAL_ERROR"

    # Errores de pedidos
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_SERVICE_ERROR = "ORDER_SERVICE_ERROR"
    LABEL_IN_PROGRESS = "LABEL_IN_PROGRESS"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Correspondencia ErrorKind -> (ErrorCode, status HTTP, severidad, reintentable)
_KIND_PROFILE: Dict[ErrorKind, tuple] = {
    ErrorKind.MISSING_CREDENTIALS: (ErrorCode.CARRIER_MISSING_CREDENTIALS, 401, ErrorSeverity.MEDIUM, False),
    ErrorKind.SHIPMENT_NOT_FOUND: (ErrorCode.CARRIER_SHIPMENT_NOT_FOUND, 404, ErrorSeverity.LOW, False),
    ErrorKind.UPSTREAM_ERROR: (ErrorCode.CARRIER_UPSTREAM_ERROR, 502, ErrorSeverity.MEDIUM, False),
    ErrorKind.CONNECTIVITY_ERROR: (ErrorCode.CARRIER_CONNECTIVITY_ERROR, 502, ErrorSeverity.HIGH, True),
    ErrorKind.PROXY_INTERNAL_ERROR: (ErrorCode.CARRIER_PROXY_INTERNAL_ERROR, 500, ErrorSeverity.HIGH, True),
}

_KIND_HINTS: Dict[ErrorKind, str] = {
    ErrorKind.MISSING_CREDENTIALS: (
        "Sendify API key is missing. Configure 'SENDIFY_API_KEY' on the server or send an x-api-key header."
    ),
    ErrorKind.SHIPMENT_NOT_FOUND: "The carrier has no shipment with this id.",
    ErrorKind.UPSTREAM_ERROR: "The carrier rejected the request.",
    ErrorKind.CONNECTIVITY_ERROR: "The carrier proxy route could not be reached or is misconfigured.",
    ErrorKind.PROXY_INTERNAL_ERROR: "Internal carrier proxy error (network failure or timeout).",
}


def http_status_for_kind(error_kind: ErrorKind, upstream_status: Optional[int] = None) -> int:
    """
    Obtiene el código HTTP a devolver para un tipo de error.

    UPSTREAM_ERROR conserva el status del transportista cuando es un error HTTP.

    Args:
        error_kind: Tipo de error normalizado
        upstream_status: Status devuelto por el transportista

    Returns:
        int: Código HTTP
    """
    if error_kind == ErrorKind.UPSTREAM_ERROR and upstream_status and 400 <= upstream_status <= 599:
        return upstream_status
    return _KIND_PROFILE[error_kind][1]


def hint_for_kind(error_kind: ErrorKind) -> str:
    """Mensaje de diagnóstico legible para un tipo de error."""
    return _KIND_HINTS[error_kind]


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para errores de validación de datos.
    """

    def __init__(
        self,
        message: str,
        field: str,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=422,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )


class CarrierException(AppException):
    """
    Excepción para fallos normalizados de operaciones con el transportista.

    Transporta el ErrorKind y el texto crudo del transportista para que el
    cliente distinga "el id de envío es incorrecto" de "el servicio está caído".
    """

    def __init__(
        self,
        error_kind: ErrorKind,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
        shipment_id: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción del transportista.

        Args:
            error_kind: Clasificación normalizada del fallo
            message: Mensaje de error (por defecto, la pista del tipo)
            upstream_status: Código HTTP devuelto por el transportista
            upstream_body: Cuerpo crudo de la respuesta o texto de la excepción
            shipment_id: Id de envío involucrado
            **kwargs: Argumentos adicionales para AppException
        """
        error_code, _, severity, is_retryable = _KIND_PROFILE[error_kind]

        super().__init__(
            message=message or hint_for_kind(error_kind),
            error_code=error_code,
            status_code=http_status_for_kind(error_kind, upstream_status),
            severity=severity,
            is_retryable=is_retryable,
            **kwargs,
        )

        self.error_kind = error_kind
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        self.shipment_id = shipment_id

        self.details.update(
            {
                "error_kind": error_kind.value,
                "upstream_status": upstream_status,
                "shipment_id": shipment_id,
            }
        )

    @classmethod
    def from_result(cls, result, message: Optional[str] = None) -> "CarrierException":
        """
        Crea la excepción a partir de un LabelOperationResult fallido.

        Args:
            result: Resultado fallido
            message: Mensaje opcional

        Returns:
            CarrierException: Excepción equivalente
        """
        if result.error_kind is None:
            raise ValueError("Cannot build CarrierException from a successful result")
        return cls(
            error_kind=result.error_kind,
            message=message,
            upstream_status=result.upstream_status,
            upstream_body=result.upstream_message,
            shipment_id=result.shipment_id,
        )


class MissingCredentialsException(CarrierException):
    """
    Excepción cuando no se puede resolver ninguna API key del transportista.
    """

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(error_kind=ErrorKind.MISSING_CREDENTIALS, message=message, **kwargs)


class OrderNotFoundException(AppException):
    """
    Excepción cuando el pedido no existe en el servicio de pedidos.
    """

    def __init__(self, order_id: int, **kwargs):
        super().__init__(
            message=f"Order {order_id} not found",
            error_code=ErrorCode.ORDER_NOT_FOUND,
            status_code=404,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.order_id = order_id
        self.details.update({"order_id": order_id})


class OrderServiceException(AppException):
    """
    Excepción para errores del servicio externo de pedidos.
    """

    def __init__(
        self,
        message: str,
        order_id: Optional[int] = None,
        api_response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción del servicio de pedidos.

        Args:
            message: Mensaje de error
            order_id: Pedido involucrado
            api_response_code: Código de respuesta del servicio
            endpoint: Endpoint que falló
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.ORDER_SERVICE_ERROR,
            status_code=502,
            severity=ErrorSeverity.HIGH,
            is_retryable=True,
            **kwargs,
        )
        self.order_id = order_id
        self.api_response_code = api_response_code
        self.endpoint = endpoint

        self.details.update({"order_id": order_id, "api_response_code": api_response_code, "endpoint": endpoint})


class LabelInProgressException(AppException):
    """
    Excepción cuando ya hay una generación de etiqueta en curso para el pedido.
    """

    def __init__(self, order_id: int, **kwargs):
        super().__init__(
            message=f"Label generation already in progress for order {order_id}",
            error_code=ErrorCode.LABEL_IN_PROGRESS,
            status_code=409,
            severity=ErrorSeverity.LOW,
            is_retryable=True,
            **kwargs,
        )
        self.order_id = order_id
        self.details.update({"order_id": order_id})
