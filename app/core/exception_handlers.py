"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Este módulo define los manejadores de excepciones personalizados y globales,
proporcionando respuestas consistentes y logging apropiado para cada tipo de error.
Los fallos del transportista siempre incluyen error_kind para que el cliente
distinga un id de envío incorrecto de un servicio caído.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.logging_config import request_id_var
from app.utils.error_handler import (
    AppException,
    CarrierException,
    ErrorSeverity,
    LabelInProgressException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def _base_content(request: Request, error_type: str, message: Any) -> Dict[str, Any]:
    return {
        "error": True,
        "error_type": error_type,
        "message": message,
        "path": str(request.url.path),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id_var.get() or request.headers.get("X-Request-ID"),
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para excepciones personalizadas de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    level = logging.ERROR if exc.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL) else logging.WARNING
    logger.log(
        level,
        f"App Exception: {exc.message} - Code: {exc.error_code.value} - URL: {request.url.path} - Details: {exc.details}",
    )

    content = _base_content(request, "application_error", exc.message)
    content["error_code"] = exc.error_code.value
    content["details"] = exc.details if get_settings().DEBUG else None

    return JSONResponse(status_code=exc.status_code, content=content)


async def carrier_exception_handler(request: Request, exc: CarrierException) -> JSONResponse:
    """
    Manejador específico para fallos del transportista.

    Args:
        request: Request de FastAPI
        exc: Excepción del transportista

    Returns:
        JSONResponse: Envelope con error_kind, upstream_status y upstream_body
    """
    level = logging.ERROR if exc.is_retryable else logging.WARNING
    logger.log(
        level,
        f"Carrier Exception: {exc.error_kind.value} - "
        f"Upstream Status: {exc.upstream_status} - "
        f"Shipment: {exc.shipment_id} - "
        f"URL: {request.url.path}",
    )

    content = _base_content(request, "carrier_error", exc.message)
    content.update(
        {
            "error_code": exc.error_code.value,
            "error_kind": exc.error_kind.value,
            "upstream_status": exc.upstream_status,
            "upstream_body": exc.upstream_body,
            "shipment_id": exc.shipment_id,
            "retryable": exc.is_retryable,
        }
    )
    order_id = exc.details.get("order_id")
    if order_id is not None:
        content["order_id"] = order_id

    return JSONResponse(status_code=exc.status_code, content=content)


async def label_in_progress_exception_handler(request: Request, exc: LabelInProgressException) -> JSONResponse:
    """
    Manejador para disparos concurrentes sobre el mismo pedido.

    Args:
        request: Request de FastAPI
        exc: Excepción de generación en curso

    Returns:
        JSONResponse: 409 con el id del pedido
    """
    logger.info(f"Label generation rejected, already in progress for order {exc.order_id}")

    content = _base_content(request, "conflict_error", exc.message)
    content.update({"error_code": exc.error_code.value, "order_id": exc.order_id, "status": "in_progress"})

    return JSONResponse(status_code=409, content=content)


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """
    Manejador para errores de validación de datos.

    Args:
        request: Request de FastAPI
        exc: Excepción de validación

    Returns:
        JSONResponse: Respuesta JSON con detalles de validación
    """
    logger.warning(f"Validation Exception: {exc.message} - Field: {exc.field} - URL: {request.url.path}")

    content = _base_content(request, "validation_error", exc.message)
    content.update(
        {
            "error_code": exc.error_code.value,
            "field": exc.field,
            "invalid_value": exc.invalid_value if get_settings().DEBUG else None,
            "expected_format": exc.expected_format,
        }
    )

    return JSONResponse(status_code=422, content=content)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Manejador para bodies o parámetros inválidos detectados por FastAPI.

    Args:
        request: Request de FastAPI
        exc: RequestValidationError

    Returns:
        JSONResponse: 422 con la lista de errores de pydantic
    """
    logger.warning(f"Request Validation Error: {len(exc.errors())} error(s) - URL: {request.url.path}")

    content = _base_content(request, "validation_error", "Request validation failed")
    content["error_code"] = "VALIDATION_ERROR"
    content["errors"] = jsonable_encoder(exc.errors())

    return JSONResponse(status_code=422, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Manejador para HTTPException estándar de FastAPI.

    Args:
        request: Request de FastAPI
        exc: HTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url.path}")

    content = _base_content(request, "http_error", exc.detail)
    content["status_code"] = exc.status_code

    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    logger.error(
        f"Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url.path} - "
        f"Traceback: {traceback.format_exc()}"
    )

    # Respuesta genérica (sin exponer detalles internos)
    debug = get_settings().DEBUG
    error_message = f"{type(exc).__name__}: {str(exc)}" if debug else "Internal server error occurred"

    content = _base_content(request, "internal_server_error", error_message)
    content["traceback"] = traceback.format_exc() if debug else None

    return JSONResponse(status_code=500, content=content)


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(CarrierException, carrier_exception_handler)
    app.add_exception_handler(LabelInProgressException, label_in_progress_exception_handler)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Manejadores HTTP estándar
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")
