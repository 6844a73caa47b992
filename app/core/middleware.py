"""
Configuración de Middleware para la aplicación FastAPI.

- CORS para el frontend de la intranet
- Logging de requests con request id y tiempo de proceso
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.logging_config import request_id_var

settings = get_settings()
logger = logging.getLogger(__name__)


def configure_cors_middleware(app: FastAPI) -> None:
    """
    Configura middleware CORS para permitir requests desde la intranet.

    Args:
        app: Instancia de FastAPI
    """
    allowed_origins = settings.ALLOWED_HOSTS or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=[
            "Accept",
            "Accept-Language",
            "Content-Type",
            "Authorization",
            "X-Request-ID",
        ],
        expose_headers=["X-Process-Time", "X-Request-ID"],
    )

    logger.info(f"✅ CORS configurado - Origins permitidos: {allowed_origins}")


def configure_request_logging_middleware(app: FastAPI) -> None:
    """
    Configura middleware para logging de todas las requests/responses.

    Args:
        app: Instancia de FastAPI
    """

    @app.middleware("http")
    async def log_requests_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        token = request_id_var.set(request_id)

        start_time = time.time()
        client_ip = get_client_ip(request)

        logger.info(f"📨 [{request_id}] {request.method} {request.url.path} - Client: {client_ip}")
        if request.url.query:
            logger.debug(f"🔍 [{request_id}] Query params: {request.url.query}")

        try:
            response = await call_next(request)
            process_time = time.time() - start_time

            status_emoji = get_status_emoji(response.status_code)
            logger.info(
                f"{status_emoji} [{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.3f}s"
            )

            response.headers["X-Process-Time"] = f"{process_time:.3f}"
            response.headers["X-Request-ID"] = request_id

            if process_time > settings.SLOW_REQUEST_THRESHOLD:
                logger.warning(
                    f"🐌 [{request_id}] Request lenta: {process_time:.3f}s > {settings.SLOW_REQUEST_THRESHOLD}s"
                )

            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"❌ [{request_id}] {request.method} {request.url.path} - Error: {str(e)} - Time: {process_time:.3f}s"
            )
            raise
        finally:
            request_id_var.reset(token)


def configure_all_middleware(app: FastAPI) -> None:
    """
    Configura todos los middlewares de la aplicación.
    Se ejecutan en orden inverso al que se agregan.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando middlewares...")

    configure_request_logging_middleware(app)
    configure_cors_middleware(app)

    logger.info("✅ Todos los middlewares configurados correctamente")


# Funciones auxiliares


def generate_request_id() -> str:
    """
    Genera un ID corto para cada request.

    Returns:
        str: ID único de 8 caracteres
    """
    return str(uuid.uuid4())[:8]


def get_client_ip(request: Request) -> str:
    """
    Obtiene la IP real del cliente considerando proxies.

    Args:
        request: Request de FastAPI

    Returns:
        str: IP del cliente
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def get_status_emoji(status_code: int) -> str:
    """Emoji según el código de estado HTTP."""
    if 200 <= status_code < 300:
        return "✅"
    elif 300 <= status_code < 400:
        return "↩️"
    elif 400 <= status_code < 500:
        return "⚠️"
    return "❌"
