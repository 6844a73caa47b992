"""
Normalización de campos enumerados de pedidos.

Strapi solo acepta valores fijos para estado, origen y método de pago;
el frontend y WooCommerce envían variantes en español, inglés o con
mayúsculas. Cada función es total: siempre devuelve un valor válido
(o None cuando la entrada está vacía y el campo es opcional).
"""

import logging
from typing import Any, Optional

from app.core.config import VALID_PLATFORMS

logger = logging.getLogger(__name__)

VALID_WOO_STATUSES = [
    "auto-draft",
    "pending",
    "processing",
    "on-hold",
    "completed",
    "cancelled",
    "refunded",
    "failed",
    "checkout-draft",
]

VALID_ORIGENES = ["web", "checkout", "rest-api", "admin", "mobile", "directo", "otro"]

VALID_METODOS_PAGO = ["bacs", "cheque", "cod", "paypal", "stripe", "transferencia", "otro"]

# Español (frontend) -> inglés (Strapi / WooCommerce)
_STATUS_ES_TO_WOO = {
    "pendiente": "pending",
    "procesando": "processing",
    "en_espera": "on-hold",
    "en espera": "on-hold",
    "completado": "completed",
    "cancelado": "cancelled",
    "reembolsado": "refunded",
    "fallido": "failed",
    "onhold": "on-hold",
}

# Inglés -> etiqueta en español para mostrar
_STATUS_WOO_TO_ES = {
    "pending": "pendiente",
    "processing": "procesando",
    "on-hold": "en_espera",
    "completed": "completado",
    "cancelled": "cancelado",
    "refunded": "reembolsado",
    "failed": "fallido",
}

_ORIGEN_ALIASES = {
    "restapi": "rest-api",
    "rest api": "rest-api",
    "woocommerce": "web",
}

_METODO_PAGO_ALIASES = {
    "tarjeta": "stripe",
    "tarjeta de crédito": "stripe",
    "tarjeta de credito": "stripe",
    "tarjeta de débito": "stripe",
    "tarjeta de debito": "stripe",
    "credit card": "stripe",
    "debit card": "stripe",
    "card": "stripe",
    "transferencia bancaria": "transferencia",
    "transfer": "transferencia",
    "bank transfer": "transferencia",
    "check": "cheque",
    "cash on delivery": "cod",
    "contra entrega": "cod",
    "other": "otro",
}

# created_via de WooCommerce -> origen de Strapi
_WOO_CREATED_VIA = {
    "rest api": "rest-api",
    "admin": "admin",
    "checkout": "checkout",
    "web": "web",
    "mobile": "mobile",
    "directo": "directo",
    "direct": "directo",
    "unknown": "otro",
}

# payment_method de WooCommerce -> metodo_pago de Strapi
_WOO_PAYMENT_METHOD = {
    "bacs": "bacs",
    "cheque": "cheque",
    "cod": "cod",
    "paypal": "paypal",
    "stripe": "stripe",
    "transferencia": "transferencia",
    "bank_transfer": "transferencia",
    "other": "otro",
}


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower().strip()


def map_woo_status(status: Any) -> str:
    """
    Convierte un estado de pedido al valor en inglés que acepta Strapi.

    Acepta estados ya válidos en inglés o sus equivalentes en español;
    cualquier otro valor (incluido vacío) se convierte en "pending".

    Ejemplo:
        map_woo_status("Procesando") -> "processing"
        map_woo_status("bogus") -> "pending"
    """
    status_lower = _clean(status)
    if not status_lower:
        logger.debug("Estado vacío, usando pending por defecto")
        return "pending"

    if status_lower in VALID_WOO_STATUSES:
        return status_lower

    mapped = _STATUS_ES_TO_WOO.get(status_lower)
    if not mapped:
        logger.warning(f"⚠️ Estado no reconocido: '{status}', usando pending por defecto")
        return "pending"
    return mapped


def map_estado(woo_status: Any) -> str:
    """Etiqueta en español de un estado de WooCommerce (por defecto "pendiente")."""
    return _STATUS_WOO_TO_ES.get(_clean(woo_status), "pendiente")


def normalize_origen(origen: Any) -> Optional[str]:
    """
    Normaliza el origen de un pedido.

    Returns:
        Uno de VALID_ORIGENES, "web" si no se reconoce, o None si está vacío
    """
    origen_lower = _clean(origen)
    if not origen_lower:
        return None
    if origen_lower in VALID_ORIGENES:
        return origen_lower
    return _ORIGEN_ALIASES.get(origen_lower, "web")


def normalize_metodo_pago(metodo_pago: Any) -> Optional[str]:
    """
    Normaliza el método de pago.

    Returns:
        Uno de VALID_METODOS_PAGO, "bacs" si no se reconoce, o None si está vacío

    Ejemplo:
        normalize_metodo_pago("Tarjeta de Crédito") -> "stripe"
    """
    metodo_lower = _clean(metodo_pago)
    if not metodo_lower:
        return None
    if metodo_lower in VALID_METODOS_PAGO:
        return metodo_lower
    return _METODO_PAGO_ALIASES.get(metodo_lower, "bacs")


def is_valid_origen(origen: Any) -> bool:
    return _clean(origen) in VALID_ORIGENES


def is_valid_metodo_pago(metodo_pago: Any) -> bool:
    return _clean(metodo_pago) in VALID_METODOS_PAGO


def map_origen_from_woo(created_via: Any) -> str:
    """Origen de Strapi a partir del campo created_via de WooCommerce (por defecto "otro")."""
    return _WOO_CREATED_VIA.get(_clean(created_via), "otro")


def map_metodo_pago_from_woo(payment_method: Any) -> str:
    """Método de pago de Strapi a partir del payment_method de WooCommerce (por defecto "otro")."""
    return _WOO_PAYMENT_METHOD.get(_clean(payment_method), "otro")


def map_status_from_woo(woo_status: Any) -> str:
    """Estado de un pedido leído desde WooCommerce; solo acepta valores ingleses válidos."""
    status_lower = _clean(woo_status)
    return status_lower if status_lower in VALID_WOO_STATUSES else "pending"


def is_valid_platform(platform: Any) -> bool:
    return platform in VALID_PLATFORMS


def resolve_platform(*candidates: Any, default: str = "woo_moraleja") -> str:
    """
    Devuelve la primera plataforma válida entre los candidatos, o el default.

    Los valores vacíos o desconocidos se saltan.
    """
    for candidate in candidates:
        if is_valid_platform(candidate):
            return candidate
    return default
