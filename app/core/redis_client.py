"""
Cliente Redis para locks distribuidos.

Este módulo crea el cliente Redis compartido que usa OrderLock cuando el
servicio corre en varios procesos. Sin REDIS_URL se usan locks en memoria.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Global Redis client instance
_redis_client: Optional[redis.Redis] = None


def get_redis_client(settings: Settings) -> Optional[redis.Redis]:
    """
    Returns a Redis client instance, or None when Redis is not configured.

    Args:
        settings: Configuración de la aplicación

    Returns:
        redis.Redis | None: Cliente Redis
    """
    global _redis_client

    if not settings.REDIS_URL:
        return None

    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.debug("Redis client instance created")

    return _redis_client


async def test_redis_connection(client: Optional[redis.Redis]) -> bool:
    """
    Verifica la conectividad con Redis.

    Returns:
        bool: True si la conexión es exitosa, False en caso contrario
    """
    if client is None:
        return False
    try:
        return bool(await client.ping())
    except redis.RedisError as e:
        logger.error(f"Redis connection test failed: {e}")
        return False


async def close_redis() -> None:
    """
    Cierra el cliente Redis global.
    """
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis client closed")
