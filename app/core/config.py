"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno de la intranet
(Strapi, WooCommerce, JumpSeller, WeareCloud y Bunny Stream) usando
Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Plataformas de origen aceptadas para un pedido
VALID_PLATFORMS = ["woo_moraleja", "woo_escolar", "otros"]


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Intranet Pedidos Sync"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field(default="development", env="ENV")
    DEBUG: bool = Field(default=True, env="DEBUG")

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8080, env="PORT")
    WORKERS: int = Field(default=1, env="WORKERS")
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")
    ALLOWED_HOSTS: Optional[List[str]] = Field(default=None, env="ALLOWED_HOSTS")

    # === CONFIGURACIÓN DE STRAPI ===
    STRAPI_URL: str = Field(default="http://localhost:1337", env="STRAPI_URL")
    STRAPI_API_TOKEN: Optional[str] = Field(default=None, env="STRAPI_API_TOKEN")
    # Tamaño de página para búsquedas completas de pedidos
    STRAPI_FULL_SCAN_PAGE_SIZE: int = Field(default=1000, env="STRAPI_FULL_SCAN_PAGE_SIZE")
    STRAPI_LIST_PAGE_SIZE: int = Field(default=5000, env="STRAPI_LIST_PAGE_SIZE")

    # === CONFIGURACIÓN DE WOOCOMMERCE ===
    WOO_MORALEJA_URL: Optional[str] = Field(default=None, env="WOO_MORALEJA_URL")
    WOO_MORALEJA_CONSUMER_KEY: Optional[str] = Field(default=None, env="WOO_MORALEJA_CONSUMER_KEY")
    WOO_MORALEJA_CONSUMER_SECRET: Optional[str] = Field(default=None, env="WOO_MORALEJA_CONSUMER_SECRET")
    WOO_ESCOLAR_URL: Optional[str] = Field(default=None, env="WOO_ESCOLAR_URL")
    WOO_ESCOLAR_CONSUMER_KEY: Optional[str] = Field(default=None, env="WOO_ESCOLAR_CONSUMER_KEY")
    WOO_ESCOLAR_CONSUMER_SECRET: Optional[str] = Field(default=None, env="WOO_ESCOLAR_CONSUMER_SECRET")
    WOO_API_VERSION: str = Field(default="wc/v3", env="WOO_API_VERSION")
    DEFAULT_ORIGIN_PLATFORM: str = Field(default="woo_moraleja", env="DEFAULT_ORIGIN_PLATFORM")

    # === CONFIGURACIÓN DE JUMPSELLER ===
    JUMPSELLER_API_BASE_URL: str = Field(default="https://api.jumpseller.com/v1", env="JUMPSELLER_API_BASE_URL")
    JUMPSELLER_API_KEY: Optional[str] = Field(default=None, env="JUMPSELLER_API_KEY")
    JUMPSELLER_API_SECRET: Optional[str] = Field(default=None, env="JUMPSELLER_API_SECRET")
    JUMPSELLER_TIMEOUT_SECONDS: int = Field(default=30, env="JUMPSELLER_TIMEOUT_SECONDS")

    # === CONFIGURACIÓN DE WEARECLOUD ===
    WEARECLOUD_SERVICE_URL: Optional[str] = Field(default=None, env="WEARECLOUD_SERVICE_URL")
    WEARECLOUD_API_KEY: Optional[str] = Field(default=None, env="WEARECLOUD_API_KEY")

    # === CONFIGURACIÓN DE BUNNY STREAM ===
    BUNNY_STREAM_API_URL: str = Field(default="https://video.bunnycdn.com", env="BUNNY_STREAM_API_URL")
    BUNNY_STREAM_LIBRARY_ID: Optional[str] = Field(default=None, env="BUNNY_STREAM_LIBRARY_ID")
    BUNNY_STREAM_API_KEY: Optional[str] = Field(default=None, env="BUNNY_STREAM_API_KEY")
    BUNNY_STREAM_COLLECTION_ID: Optional[str] = Field(default=None, env="BUNNY_STREAM_COLLECTION_ID")
    # Vigencia de la firma TUS en segundos
    BUNNY_UPLOAD_EXPIRATION_SECONDS: int = Field(default=3600, env="BUNNY_UPLOAD_EXPIRATION_SECONDS")

    # === CONFIGURACIÓN HTTP ===
    HTTP_TIMEOUT_SECONDS: int = Field(default=30, env="HTTP_TIMEOUT_SECONDS")
    HTTP_CONNECT_TIMEOUT_SECONDS: int = Field(default=10, env="HTTP_CONNECT_TIMEOUT_SECONDS")
    MAX_RETRIES: int = Field(default=3, env="MAX_RETRIES")

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = Field(default="logs/app.log", env="LOG_FILE_PATH")
    LOG_MAX_SIZE_MB: int = Field(default=10, env="LOG_MAX_SIZE_MB")
    LOG_BACKUP_COUNT: int = Field(default=5, env="LOG_BACKUP_COUNT")
    ENABLE_ACTIVITY_LOG: bool = Field(default=True, env="ENABLE_ACTIVITY_LOG")
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

    @field_validator(
        "STRAPI_URL",
        "WOO_MORALEJA_URL",
        "WOO_ESCOLAR_URL",
        "JUMPSELLER_API_BASE_URL",
        "WEARECLOUD_SERVICE_URL",
        "BUNNY_STREAM_API_URL",
    )
    @classmethod
    def strip_trailing_slash(cls, v):
        """Elimina el slash final de las URLs base."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("DEFAULT_ORIGIN_PLATFORM")
    @classmethod
    def validate_default_platform(cls, v):
        """Valida que la plataforma por defecto sea conocida."""
        if v not in VALID_PLATFORMS:
            raise ValueError(f"DEFAULT_ORIGIN_PLATFORM debe ser uno de: {VALID_PLATFORMS}")
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

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Verifica si está en entorno de desarrollo."""
        return self.ENVIRONMENT == "development"

    def get_strapi_headers(self) -> Dict[str, str]:
        """
        Obtiene headers para requests a Strapi.

        Returns:
            dict: Headers de autenticación
        """
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"{self.APP_NAME}/{self.APP_VERSION}",
        }
        if self.STRAPI_API_TOKEN:
            headers["Authorization"] = f"Bearer {self.STRAPI_API_TOKEN}"
        return headers

    def get_woocommerce_credentials(self, platform: str) -> Dict[str, Optional[str]]:
        """
        Obtiene URL y credenciales de WooCommerce para una plataforma.

        Args:
            platform: woo_moraleja o woo_escolar (cualquier otro valor usa escolar)

        Returns:
            dict: url, consumer_key y consumer_secret
        """
        if platform == "woo_moraleja":
            return {
                "url": self.WOO_MORALEJA_URL,
                "consumer_key": self.WOO_MORALEJA_CONSUMER_KEY,
                "consumer_secret": self.WOO_MORALEJA_CONSUMER_SECRET,
            }
        return {
            "url": self.WOO_ESCOLAR_URL,
            "consumer_key": self.WOO_ESCOLAR_CONSUMER_KEY,
            "consumer_secret": self.WOO_ESCOLAR_CONSUMER_SECRET,
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


# Instancia global para uso directo
settings = get_settings()


def validate_required_settings() -> bool:
    """
    Valida que las configuraciones requeridas estén presentes.

    Returns:
        bool: True si todas las configuraciones están presentes

    Raises:
        ValueError: Si alguna configuración requerida falta
    """
    current = get_settings()

    required_fields = ["STRAPI_URL", "STRAPI_API_TOKEN"]

    missing_fields = []
    for field in required_fields:
        value = getattr(current, field, None)
        if not value or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)

    if missing_fields:
        raise ValueError(f"Configuraciones requeridas faltantes: {missing_fields}")

    return True


def get_environment_info() -> dict:
    """
    Obtiene información del entorno actual.

    Returns:
        dict: Información del entorno
    """
    current = get_settings()

    return {
        "app_name": current.APP_NAME,
        "version": current.APP_VERSION,
        "environment": current.ENVIRONMENT,
        "debug": current.DEBUG,
        "is_production": current.is_production,
        "log_level": current.LOG_LEVEL,
        "integrations": {
            "strapi": bool(current.STRAPI_API_TOKEN),
            "woo_moraleja": bool(current.WOO_MORALEJA_URL and current.WOO_MORALEJA_CONSUMER_KEY),
            "woo_escolar": bool(current.WOO_ESCOLAR_URL and current.WOO_ESCOLAR_CONSUMER_KEY),
            "jumpseller": bool(current.JUMPSELLER_API_KEY and current.JUMPSELLER_API_SECRET),
            "wearecloud": bool(current.WEARECLOUD_SERVICE_URL),
            "bunny_stream": bool(current.BUNNY_STREAM_LIBRARY_ID and current.BUNNY_STREAM_API_KEY),
        },
        "features": {
            "activity_log": current.ENABLE_ACTIVITY_LOG,
            "docs": current.ENABLE_DOCS,
        },
    }
