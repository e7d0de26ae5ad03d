"""
Sistema de health checks para monitoreo del servicio de etiquetas.

El health check rápido no llama al transportista: la conectividad con Sendify
se verifica solo con el probe explícito de /api/v1/shipping/health.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.config import get_settings
from app.core.redis_client import test_redis_connection

logger = logging.getLogger(__name__)

# Variable global para tracking de uptime
_app_start_time = datetime.now(timezone.utc)


async def run_health_check_with_timeout(
    service_name: str, check_func: Callable[[], Awaitable[bool]], timeout: float
) -> Dict[str, Any]:
    """
    Ejecuta una verificación de salud con timeout.

    Args:
        service_name: Nombre del servicio
        check_func: Función async que devuelve True si el servicio está sano
        timeout: Timeout en segundos

    Returns:
        Dict: Resultado de la verificación
    """
    start = asyncio.get_running_loop().time()
    try:
        healthy = await asyncio.wait_for(check_func(), timeout=timeout)
        status = "healthy" if healthy else "unhealthy"
    except asyncio.TimeoutError:
        logger.warning(f"Health check timeout for {service_name} after {timeout}s")
        status = "timeout"
    except Exception as e:
        logger.error(f"Health check error for {service_name}: {e}")
        status = "error"

    return {
        "status": status,
        "response_time_ms": round((asyncio.get_running_loop().time() - start) * 1000, 2),
        "last_check": datetime.now(timezone.utc).isoformat(),
    }


async def get_health_status(label_services: Optional[Any] = None) -> Dict[str, Any]:
    """
    Obtiene el estado de salud del servicio.

    Args:
        label_services: Servicios de etiquetas creados en el lifespan (opcional)

    Returns:
        Dict: overall, services, uptime y configuración del transportista
    """
    settings = get_settings()
    services: Dict[str, Any] = {}

    if label_services is not None and label_services.redis_client is not None:
        redis_client = label_services.redis_client
        services["redis"] = await run_health_check_with_timeout(
            "redis", lambda: test_redis_connection(redis_client), timeout=2.0
        )

    overall = all(result["status"] == "healthy" for result in services.values())

    return {
        "overall": overall and label_services is not None,
        "services": services,
        "uptime": get_uptime_info(),
        "carrier": {
            "server_key_configured": bool(settings.SENDIFY_API_KEY),
            "endpoint": settings.sendify_base_url,
            "remote_proxy": settings.LABEL_PROXY_URL,
        },
        "order_service": settings.ORDER_SERVICE_URL or "in-memory",
        "label_services_initialized": label_services is not None,
    }


def get_uptime_info() -> Dict[str, Any]:
    """
    Obtiene información de uptime de la aplicación.

    Returns:
        Dict: Inicio, segundos y formato legible
    """
    uptime = datetime.now(timezone.utc) - _app_start_time
    return {
        "started_at": _app_start_time.isoformat(),
        "uptime_seconds": int(uptime.total_seconds()),
        "uptime_human": format_uptime(uptime),
    }


def format_uptime(uptime_delta: timedelta) -> str:
    """
    Formatea el uptime en formato legible.

    Args:
        uptime_delta: Delta de tiempo

    Returns:
        str: Uptime formateado, p.ej. "2d 3h 4m 5s"
    """
    total_seconds = int(uptime_delta.total_seconds())
    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")
    return " ".join(parts)
