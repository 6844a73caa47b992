"""
Sistema de manejo de errores personalizado.

Define las excepciones de la aplicación y utilidades para convertirlas
en respuestas JSON con el formato {success: false, error: mensaje}.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Errores de servicios externos
    STRAPI_API_ERROR = "STRAPI_API_ERROR"
    WOOCOMMERCE_API_ERROR = "WOOCOMMERCE_API_ERROR"
    JUMPSELLER_API_ERROR = "JUMPSELLER_API_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP que se devuelve al cliente
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para errores de validación de datos de entrada.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            **kwargs: Argumentos adicionales para AppException
        """
        kwargs.setdefault("status_code", 400)
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )


class NotFoundException(AppException):
    """
    Excepción para recursos inexistentes en el CMS.
    """

    def __init__(self, message: str, resource: str = "pedido", identifier: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.resource = resource
        self.identifier = identifier
        self.details.update({"resource": resource, "identifier": identifier})


class UpstreamAPIException(AppException):
    """
    Excepción base para errores devueltos por una API externa.

    El status_code refleja el status del servicio remoto cuando existe,
    de modo que los handlers puedan propagarlo tal cual.
    """

    default_error_code = ErrorCode.EXTERNAL_SERVICE_ERROR
    service_name = "external"

    def __init__(
        self,
        message: str,
        api_response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        response_body: Any = None,
        rate_limited: bool = False,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de API externa.

        Args:
            message: Mensaje de error
            api_response_code: Código de respuesta del servicio remoto
            endpoint: Endpoint que falló
            response_body: Cuerpo de la respuesta remota (si existe)
            rate_limited: Si es por rate limiting
            retry_after: Segundos para reintentar
            **kwargs: Argumentos adicionales para AppException
        """
        error_code = self.default_error_code
        severity = ErrorSeverity.MEDIUM

        if rate_limited:
            error_code = ErrorCode.RATE_LIMIT_EXCEEDED
            severity = ErrorSeverity.LOW
        elif api_response_code == 504:
            error_code = ErrorCode.UPSTREAM_TIMEOUT
        elif api_response_code and api_response_code >= 500:
            severity = ErrorSeverity.HIGH

        super().__init__(
            message=message,
            error_code=error_code,
            status_code=api_response_code or 502,
            severity=severity,
            is_retryable=rate_limited or not api_response_code or api_response_code >= 500,
            **kwargs,
        )

        self.api_response_code = api_response_code
        self.endpoint = endpoint
        self.response_body = response_body
        self.rate_limited = rate_limited
        self.retry_after = retry_after

        self.details.update(
            {
                "service": self.service_name,
                "api_response_code": api_response_code,
                "endpoint": endpoint,
                "rate_limited": rate_limited,
                "retry_after": retry_after,
            }
        )


class StrapiAPIException(UpstreamAPIException):
    """Error devuelto por la API de Strapi."""

    default_error_code = ErrorCode.STRAPI_API_ERROR
    service_name = "strapi"


class CommerceAPIException(UpstreamAPIException):
    """
    Error devuelto por una plataforma de e-commerce (WooCommerce o JumpSeller).
    """

    default_error_code = ErrorCode.WOOCOMMERCE_API_ERROR
    service_name = "commerce"

    def __init__(self, message: str, platform: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.platform = platform
        if platform == "jumpseller" and self.error_code == ErrorCode.WOOCOMMERCE_API_ERROR:
            self.error_code = ErrorCode.JUMPSELLER_API_ERROR
        self.details["platform"] = platform


class ExternalServiceException(UpstreamAPIException):
    """Error de un servicio auxiliar (Bunny Stream, WeareCloud)."""

    service_name = "external"

    def __init__(self, message: str, service: str = "external", **kwargs):
        super().__init__(message, **kwargs)
        self.details["service"] = service


# === FUNCIONES DE UTILIDAD ===


def convert_to_app_exception(exception: Exception, context: Optional[Dict[str, Any]] = None) -> AppException:
    """
    Convierte una excepción estándar a AppException.

    Args:
        exception: Excepción a convertir
        context: Contexto adicional

    Returns:
        AppException: Excepción convertida
    """
    if isinstance(exception, AppException):
        if context:
            exception.details.update(context)
        return exception

    context = context or {}
    exception_type = type(exception).__name__
    message = str(exception) or exception_type

    if isinstance(exception, (ValueError, TypeError)):
        return ValidationException(message=message, field=context.get("field"), details=context)

    return AppException(
        message=message,
        details={"original_exception": exception_type, **context},
    )


def create_error_response(exception: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    Crea la respuesta de error estandardizada.

    Args:
        exception: Excepción a convertir
        include_details: Si incluir el detalle interno del error

    Returns:
        Dict: {"success": False, "error": mensaje, ...}
    """
    app_exc = convert_to_app_exception(exception)
    response: Dict[str, Any] = {
        "success": False,
        "error": app_exc.message,
        "error_code": app_exc.error_code.value,
    }
    if include_details:
        response["details"] = app_exc.details
    return response


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        **context,
    }

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"
        log_data["traceback"] = traceback.format_exc()

    logger.log(level, message, extra={"error_data": log_data})
