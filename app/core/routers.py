"""
Registro de routers y endpoints base de la aplicación.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api.v1.endpoints.mira import router as mira_router
from app.api.v1.endpoints.operaciones import router as operaciones_router
from app.api.v1.endpoints.pedidos import router as pedidos_router
from app.api.v1.endpoints.utils import router as utils_router
from app.core.config import get_environment_info, get_settings
from app.version import version_info

settings = get_settings()
logger = logging.getLogger(__name__)

API_V1_PREFIX = "/api/v1"


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        return {
            "message": settings.APP_NAME,
            "description": "Backend de pedidos de la intranet: Strapi, WooCommerce, JumpSeller y WeareCloud",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if (settings.DEBUG or settings.ENABLE_DOCS) else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": get_router_info()["base_paths"],
        }

    @app.get("/ping", tags=["Root"], summary="Simple Ping")
    async def ping():
        return {"message": "pong", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea el endpoint de health check.

    Solo Strapi es crítico: sin token la API no puede leer ni escribir pedidos.
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check():
        info = get_environment_info()
        healthy = info["integrations"]["strapi"]

        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "version": settings.APP_VERSION,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "environment": settings.ENVIRONMENT,
                "debug": settings.DEBUG,
                "services": info["integrations"],
            },
        )

    @app.get("/version", tags=["Info"], summary="Version Info")
    async def version():
        return version_info()


def configure_api_v1_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la API v1.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de API v1...")

    app.include_router(
        pedidos_router,
        prefix=f"{API_V1_PREFIX}/tienda/pedidos",
        tags=["Pedidos"],
        responses={
            404: {"description": "Pedido no encontrado"},
            500: {"description": "Internal server error"},
        },
    )
    logger.info("✅ Router de pedidos configurado")

    app.include_router(
        operaciones_router,
        prefix=f"{API_V1_PREFIX}/operaciones",
        tags=["Operaciones"],
        responses={502: {"description": "Error en JumpSeller o WeareCloud"}},
    )
    logger.info("✅ Router de operaciones configurado")

    app.include_router(
        mira_router,
        prefix=f"{API_V1_PREFIX}/mira",
        tags=["MIRA"],
        responses={503: {"description": "Strapi o Bunny Stream no configurado"}},
    )
    logger.info("✅ Router de MIRA configurado")

    app.include_router(utils_router, prefix=f"{API_V1_PREFIX}/utils", tags=["Utils"])
    logger.info("✅ Router de utilidades configurado")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    create_root_endpoints(app)
    create_health_endpoints(app)
    configure_api_v1_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")


def get_router_info() -> Dict[str, Any]:
    return {
        "api_version": "v1",
        "base_paths": {
            "root": "/",
            "health": "/health",
            "pedidos": f"{API_V1_PREFIX}/tienda/pedidos",
            "operaciones": f"{API_V1_PREFIX}/operaciones",
            "mira": f"{API_V1_PREFIX}/mira",
            "utils": f"{API_V1_PREFIX}/utils",
        },
    }
