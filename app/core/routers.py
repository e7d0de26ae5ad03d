"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo se encarga de registrar todos los routers de la API,
configurar endpoints base y organizar las rutas de manera estructurada.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.endpoints.labels import router as labels_router
from app.api.v1.endpoints.shipping import router as shipping_router
from app.core.config import get_settings
from app.core.health import get_health_status

logger = logging.getLogger(__name__)


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        """
        Endpoint raíz que proporciona información básica de la API.

        Returns:
            Dict con información de la API
        """
        settings = get_settings()
        return {
            "message": settings.APP_NAME,
            "description": "Generación de etiquetas de envío y proxy del transportista",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if settings.ENABLE_DOCS else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": get_router_info()["base_paths"],
        }

    @app.get("/ping", tags=["Root"], summary="Simple Ping")
    async def ping():
        """
        Endpoint simple para verificar que la API responde.

        Returns:
            Dict con pong y timestamp
        """
        return {"message": "pong", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea endpoint de health check.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check(request: Request):
        """
        Health check del servicio (sin llamar al transportista).

        Returns:
            200 si el servicio está sano, 503 en caso contrario
        """
        settings = get_settings()
        try:
            health_status = await get_health_status(getattr(request.app.state, "label_services", None))
        except Exception as e:
            logger.error(f"Error en health check: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "error": str(e),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "version": settings.APP_VERSION,
                },
            )

        return JSONResponse(
            status_code=200 if health_status["overall"] else 503,
            content={
                "status": "healthy" if health_status["overall"] else "unhealthy",
                "version": settings.APP_VERSION,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": health_status["uptime"],
                "services": health_status["services"],
                "carrier": health_status["carrier"],
                "order_service": health_status["order_service"],
                "environment": settings.ENVIRONMENT,
            },
        )


def configure_api_v1_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la API v1.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de API v1...")

    app.include_router(
        labels_router,
        prefix="/api/v1/orders",
        tags=["Labels"],
        responses={
            404: {"description": "Order or shipment not found"},
            409: {"description": "Re-print confirmation required or label generation in progress"},
            502: {"description": "Carrier or order service error"},
        },
    )
    logger.info("✅ Router de etiquetas configurado")

    app.include_router(
        shipping_router,
        prefix="/api/v1/shipping",
        tags=["Carrier Proxy"],
        responses={
            401: {"description": "Carrier API key missing"},
            500: {"description": "Carrier proxy internal error"},
        },
    )
    logger.info("✅ Router del proxy del transportista configurado")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    configure_api_v1_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")


def get_router_info() -> Dict[str, Any]:
    """
    Obtiene información sobre los routers configurados.

    Returns:
        Dict con información de routers
    """
    return {
        "api_version": "v1",
        "base_paths": {
            "root": "/",
            "health": "/health",
            "labels": "/api/v1/orders/{order_id}/label",
            "shipping": "/api/v1/shipping",
            "carrier_health": "/api/v1/shipping/health",
        },
    }
