"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
del servicio de etiquetas usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from app.version import VERSION

DEFAULT_SENDIFY_BASE_URL = "https://app.sendify.se/external/v1"
DEFAULT_PLACEHOLDER_LABEL_URL = "https://www.w3.org/WAI/ER/tests/xhtml/testfiles/resources/pdf/dummy.pdf"


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "OrderFlow Label Service"
    APP_VERSION: str = VERSION
    ENVIRONMENT: str = Field(default="development", env="ENV")
    DEBUG: bool = Field(default=True, env="DEBUG")

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8080, env="PORT")
    WORKERS: int = Field(default=1, env="WORKERS")
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")

    # === CONFIGURACIÓN DE SEGURIDAD ===
    ALLOWED_HOSTS: Optional[List[str]] = Field(default=None, env="ALLOWED_HOSTS")

    # === CONFIGURACIÓN DEL TRANSPORTISTA (SENDIFY) ===
    # Secreto del servidor; una cabecera x-api-key en la request tiene prioridad
    SENDIFY_API_KEY: Optional[str] = Field(default=None, env="SENDIFY_API_KEY")
    SENDIFY_BASE_URL: Optional[str] = Field(default=None, env="SENDIFY_BASE_URL")
    CARRIER_REQUEST_TIMEOUT_SECONDS: int = Field(default=20, env="CARRIER_REQUEST_TIMEOUT_SECONDS")
    CARRIER_PRODUCT_ID: str = Field(default="postnord_my_pack_collect", env="CARRIER_PRODUCT_ID")
    PLACEHOLDER_LABEL_URL: str = Field(default=DEFAULT_PLACEHOLDER_LABEL_URL, env="PLACEHOLDER_LABEL_URL")

    # === PERFIL DEL ALMACÉN (REMITENTE) ===
    WAREHOUSE_NAME: str = Field(default="OrderFlow Warehouse", env="WAREHOUSE_NAME")
    WAREHOUSE_EMAIL: str = Field(default="logistics@orderflow.com", env="WAREHOUSE_EMAIL")
    WAREHOUSE_ADDRESS: str = Field(default="123 Distribution Blvd", env="WAREHOUSE_ADDRESS")
    WAREHOUSE_CITY: str = Field(default="Logistics City", env="WAREHOUSE_CITY")
    WAREHOUSE_COUNTRY: str = Field(default="SE", env="WAREHOUSE_COUNTRY")
    WAREHOUSE_POSTAL_CODE: str = Field(default="12345", env="WAREHOUSE_POSTAL_CODE")

    # === VALORES POR DEFECTO DEL DESTINATARIO ===
    DEFAULT_RECEIVER_ADDRESS: str = Field(default="Unknown Address", env="DEFAULT_RECEIVER_ADDRESS")
    DEFAULT_RECEIVER_CITY: str = Field(default="Stockholm", env="DEFAULT_RECEIVER_CITY")
    DEFAULT_RECEIVER_COUNTRY: str = Field(default="SE", env="DEFAULT_RECEIVER_COUNTRY")
    DEFAULT_RECEIVER_POSTAL_CODE: str = Field(default="10000", env="DEFAULT_RECEIVER_POSTAL_CODE")

    # === PAQUETE (PLACEHOLDER FIJO) ===
    PARCEL_WEIGHT_KG: float = Field(default=1.5, env="PARCEL_WEIGHT_KG")
    PARCEL_HEIGHT_CM: int = Field(default=10, env="PARCEL_HEIGHT_CM")
    PARCEL_LENGTH_CM: int = Field(default=20, env="PARCEL_LENGTH_CM")
    PARCEL_WIDTH_CM: int = Field(default=15, env="PARCEL_WIDTH_CM")
    PARCEL_CONTENTS: str = Field(default="Fragrances", env="PARCEL_CONTENTS")

    # === SERVICIOS EXTERNOS ===
    # Si se define, el orquestador usa las rutas proxy remotas en lugar de Sendify directo
    LABEL_PROXY_URL: Optional[str] = Field(default=None, env="LABEL_PROXY_URL")
    ORDER_SERVICE_URL: Optional[str] = Field(default=None, env="ORDER_SERVICE_URL")
    ORDER_SERVICE_TIMEOUT_SECONDS: int = Field(default=10, env="ORDER_SERVICE_TIMEOUT_SECONDS")

    # === CONFIGURACIÓN DE REDIS (LOCKS) ===
    REDIS_URL: Optional[str] = Field(default=None, env="REDIS_URL")
    # Debe cubrir la peor ejecución: impresión + reserva + lectura, escritura y relectura del pedido
    LABEL_LOCK_TIMEOUT_SECONDS: int = Field(default=120, env="LABEL_LOCK_TIMEOUT_SECONDS")

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = Field(default=None, env="LOG_FILE_PATH")
    LOG_MAX_SIZE_MB: int = Field(default=10, env="LOG_MAX_SIZE_MB")
    LOG_BACKUP_COUNT: int = Field(default=5, env="LOG_BACKUP_COUNT")
    SLOW_REQUEST_THRESHOLD: float = Field(default=5.0, env="SLOW_REQUEST_THRESHOLD")

    # === CONFIGURACIÓN DE DOCUMENTACIÓN ===
    ENABLE_DOCS: bool = Field(default=True, env="ENABLE_DOCS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "allow",
    }

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v):
        """Parsea ALLOWED_HOSTS como lista separada por comas."""
        if isinstance(v, str):
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("SENDIFY_API_KEY", "SENDIFY_BASE_URL", "LABEL_PROXY_URL", "ORDER_SERVICE_URL", "REDIS_URL")
    @classmethod
    def blank_as_none(cls, v):
        """Trata cadenas vacías como valores no configurados."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("SENDIFY_BASE_URL", "LABEL_PROXY_URL", "ORDER_SERVICE_URL")
    @classmethod
    def validate_http_url(cls, v):
        """Valida que las URLs externas usen http(s) y elimina la barra final."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL inválida (debe comenzar con http:// o https://): {v}")
        return v.rstrip("/")

    @field_validator("CARRIER_REQUEST_TIMEOUT_SECONDS")
    @classmethod
    def validate_carrier_timeout(cls, v):
        """Valida que el timeout del transportista esté en un rango razonable."""
        if not 1 <= v <= 120:
            raise ValueError("CARRIER_REQUEST_TIMEOUT_SECONDS debe estar entre 1 y 120")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @model_validator(mode="after")
    def validate_lock_timeout(self):
        """Valida que el lock por pedido no expire en mitad de una generación de etiqueta."""
        worst_case = self.max_label_run_seconds
        if self.LABEL_LOCK_TIMEOUT_SECONDS <= worst_case:
            raise ValueError(
                f"LABEL_LOCK_TIMEOUT_SECONDS ({self.LABEL_LOCK_TIMEOUT_SECONDS}) debe superar la duración "
                f"máxima de una generación de etiqueta ({worst_case}s)"
            )
        return self

    @property
    def max_label_run_seconds(self) -> int:
        """Peor duración de una generación: 2 llamadas al transportista y 3 al servicio de pedidos."""
        return 2 * self.CARRIER_REQUEST_TIMEOUT_SECONDS + 3 * self.ORDER_SERVICE_TIMEOUT_SECONDS

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Verifica si está en entorno de desarrollo."""
        return self.ENVIRONMENT == "development"

    @property
    def sendify_base_url(self) -> str:
        """URL base efectiva de Sendify (override de configuración o producción)."""
        return self.SENDIFY_BASE_URL or DEFAULT_SENDIFY_BASE_URL

    @property
    def warehouse_profile(self) -> dict:
        """Perfil fijo del almacén usado como remitente."""
        return {
            "name": self.WAREHOUSE_NAME,
            "email": self.WAREHOUSE_EMAIL,
            "address_line1": self.WAREHOUSE_ADDRESS,
            "city": self.WAREHOUSE_CITY,
            "country": self.WAREHOUSE_COUNTRY,
            "postal_code": self.WAREHOUSE_POSTAL_CODE,
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()
