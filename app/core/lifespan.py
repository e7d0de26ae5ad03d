"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown de la aplicación:
logging, verificación de configuración, creación de los servicios de
etiquetas (sesiones HTTP y Redis) y su limpieza.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import Settings, get_settings
from app.core.logging_config import setup_logging
from app.core.redis_client import close_redis, test_redis_connection
from app.services.labels.container import LabelServices, build_label_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.
    Maneja eventos de startup y shutdown de manera ordenada.

    Args:
        app: Instancia de FastAPI
    """
    settings = get_settings()

    # === STARTUP ===
    await startup_configure_logging()
    logger.info(f"🚀 Iniciando {settings.APP_NAME}...")

    try:
        # 1. Verificar configuración
        await startup_verify_configuration(settings)

        # 2. Crear servicios de etiquetas
        services = await startup_initialize_services(settings)
        app.state.label_services = services

        # 3. Verificar conexiones opcionales
        await startup_verify_connections(services)

        logger.info("🎉 Aplicación iniciada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await shutdown_cleanup_services(app)
        raise

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")

    try:
        await shutdown_cleanup_services(app)
        logger.info("👋 Aplicación cerrada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el shutdown: {e}")


# === FUNCIONES DE STARTUP ===


async def startup_configure_logging():
    """Configura el sistema de logging."""
    setup_logging()
    logger.info("✅ Sistema de logging configurado")


async def startup_verify_configuration(settings: Settings):
    """
    Verifica la configuración del transportista.

    La falta de SENDIFY_API_KEY no impide arrancar: el cliente puede enviar
    su propia key y la simulación sigue funcionando.
    """
    if settings.SENDIFY_API_KEY:
        logger.info(f"✅ Sendify API key configurada en el servidor ({settings.sendify_base_url})")
    else:
        logger.warning("⚠️ SENDIFY_API_KEY no configurada: solo keys por request o modo simulación")

    if settings.LABEL_PROXY_URL:
        logger.info(f"✅ Orquestador usando proxy remoto: {settings.LABEL_PROXY_URL}")

    logger.info("✅ Configuración verificada")


async def startup_initialize_services(settings: Settings) -> LabelServices:
    """Crea los servicios de etiquetas y abre sus sesiones HTTP."""
    services = build_label_services(settings)
    await services.initialize()
    logger.info("✅ Servicios de etiquetas inicializados")
    return services


async def startup_verify_connections(services: LabelServices):
    """Verifica Redis si está configurado (no crítico: hay lock en memoria)."""
    if services.redis_client is None:
        logger.info("ℹ️ Redis no configurado, usando locks en memoria")
        return

    if await test_redis_connection(services.redis_client):
        logger.info("✅ Conexión a Redis verificada")
    else:
        logger.warning("⚠️ Conexión a Redis falló (los locks fallarán hasta que vuelva)")


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_cleanup_services(app: FastAPI):
    """Cierra sesiones HTTP y el cliente Redis."""
    services = getattr(app.state, "label_services", None)
    if services is not None:
        await services.close()
        app.state.label_services = None
        logger.info("✅ Sesiones HTTP cerradas")

    await close_redis()
