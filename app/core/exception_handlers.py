"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Todas las respuestas de error siguen el formato {success: false, error: mensaje}
con el status HTTP correspondiente.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.utils.error_handler import (
    AppException,
    UpstreamAPIException,
    ValidationException,
    create_error_response,
    log_error,
)

settings = get_settings()
logger = logging.getLogger(__name__)


def _error_body(request: Request, error: str, **extra) -> Dict[str, Any]:
    return {
        "success": False,
        "error": error,
        **extra,
        "path": str(request.url.path),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("X-Request-ID"),
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
    log_error(exc, context={"url": str(request.url)}, level=logging.WARNING if exc.status_code < 500 else logging.ERROR)

    body = create_error_response(exc, include_details=settings.DEBUG)
    return JSONResponse(status_code=exc.status_code, content=_error_body(request, **body_without_success(body)))


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """
    Manejador para errores de validación de datos de entrada.
    """
    logger.warning(f"⚠️ Validación fallida en {request.url.path}: {exc.message} (campo: {exc.field})")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, error_code=exc.error_code.value, field=exc.field),
    )


async def upstream_exception_handler(request: Request, exc: UpstreamAPIException) -> JSONResponse:
    """
    Manejador para errores devueltos por Strapi, WooCommerce, JumpSeller u otros servicios.

    Propaga el status del servicio remoto cuando existe.
    """
    logger.error(
        f"❌ Error de servicio externo: {exc.message} - "
        f"Servicio: {exc.details.get('service')} - "
        f"Status remoto: {exc.api_response_code} - "
        f"URL: {request.url}"
    )

    headers = {}
    if exc.rate_limited and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, error_code=exc.error_code.value),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de FastAPI y Starlette.

    Si el detalle ya es un dict de respuesta se devuelve tal cual.
    """
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} en {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"HTTP {exc.status_code} en {request.url.path}: {exc.detail}")

    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = _error_body(request, str(exc.detail))

    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Manejador para errores de validación del cuerpo o query params.
    """
    errors = exc.errors()
    logger.warning(f"⚠️ Request inválido en {request.url.path}: {errors}")

    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = first.get("msg", "Datos de entrada inválidos")
    if location:
        message = f"{location}: {message}"

    return JSONResponse(status_code=422, content=_error_body(request, message, details=_jsonable_errors(errors)))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.
    """
    log_error(exc, context={"url": str(request.url), "method": request.method}, level=logging.CRITICAL)

    error_message = "Error interno del servidor"
    if settings.DEBUG:
        error_message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(status_code=500, content=_error_body(request, error_message))


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(UpstreamAPIException, upstream_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    # Manejadores HTTP estándar
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")


# Funciones auxiliares


def body_without_success(body: Dict[str, Any]) -> Dict[str, Any]:
    """Quita la clave success de una respuesta de error ya construida."""
    return {k: v for k, v in body.items() if k != "success"}


def _jsonable_errors(errors) -> list:
    return [{"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")} for e in errors]
