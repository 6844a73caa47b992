"""
Gestión del ciclo de vida de la aplicación FastAPI.

En el startup configura logging y verifica la configuración; en el shutdown
espera los registros de actividad pendientes y cierra las sesiones HTTP.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import get_settings, validate_required_settings
from app.core.logging_config import setup_logging
from app.db import close_all_clients
from app.services.activity_log import wait_for_pending_logs

settings = get_settings()
logger = logging.getLogger(__name__)

PENDING_LOGS_TIMEOUT_SECONDS = 10


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    setup_logging()
    logger.info(f"🚀 Iniciando {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")

    startup_verify_configuration()

    yield

    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")
    await shutdown_flush_activity_logs()
    await shutdown_close_connections()
    logger.info("👋 Aplicación cerrada correctamente")


def startup_verify_configuration():
    """
    Verifica la configuración requerida.

    La falta de Strapi no detiene la aplicación: los endpoints responden con
    error y /health reporta unhealthy.
    """
    try:
        validate_required_settings()
        logger.info("✅ Configuración verificada")
    except ValueError as e:
        logger.warning(f"⚠️ {e}")


async def shutdown_flush_activity_logs():
    try:
        await asyncio.wait_for(wait_for_pending_logs(), timeout=PENDING_LOGS_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("⚠️ Timeout esperando registros de actividad pendientes")


async def shutdown_close_connections():
    """Cierra las sesiones HTTP de los clientes externos."""
    errors = await close_all_clients()
    for name, error in errors:
        logger.error(f"Error cerrando cliente {name}: {error}")
    if not errors:
        logger.info("✅ Clientes HTTP cerrados")
