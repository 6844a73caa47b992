"""
Utilidades para trabajar con respuestas de Strapi.

Strapi devuelve envelopes {data, meta}; según la versión cada entidad
trae sus campos planos (v5) o dentro de "attributes" (v4).
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def unwrap_list(response: Any) -> List[Dict[str, Any]]:
    """
    Obtiene la lista de entidades de una respuesta de colección.

    Args:
        response: Respuesta cruda de Strapi

    Returns:
        Lista de entidades (vacía si la respuesta no trae datos)
    """
    if response is None:
        return []
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        data = response.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
    return []


def unwrap_one(response: Any) -> Optional[Dict[str, Any]]:
    """
    Obtiene la entidad de una respuesta de un solo registro.

    Si la respuesta es una colección devuelve el primer elemento.
    """
    if response is None:
        return None
    if isinstance(response, dict):
        data = response.get("data", response)
        if isinstance(data, list):
            return data[0] if data else None
        if isinstance(data, dict) and data:
            return data
        return None
    if isinstance(response, list):
        return response[0] if response else None
    return None


def get_attrs(entity: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Devuelve los campos de una entidad, esté en formato plano o con attributes.
    """
    if not entity:
        return {}
    attributes = entity.get("attributes")
    if isinstance(attributes, dict):
        return attributes
    return entity


def get_document_id(entity: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Obtiene el documentId de una entidad (o el id numérico si no tiene).
    """
    if not entity:
        return None
    attrs = get_attrs(entity)
    document_id = entity.get("documentId") or attrs.get("documentId")
    if document_id:
        return str(document_id)
    if entity.get("id") is not None:
        return str(entity["id"])
    return None


def get_meta_total(response: Any) -> Optional[int]:
    """Total de registros informado en meta.pagination, si existe."""
    if isinstance(response, dict):
        pagination = (response.get("meta") or {}).get("pagination") or {}
        total = pagination.get("total")
        if isinstance(total, int):
            return total
    return None


def build_filter_params(field: str, value: Any, operator: str = "$eq", populate: bool = True) -> List[Tuple[str, str]]:
    """
    Construye los query params de un filtro simple de Strapi.

    Ejemplo:
        build_filter_params("documentId", "abc") ->
        [("filters[documentId][$eq]", "abc"), ("populate", "*")]
    """
    params = [(f"filters[{field}][{operator}]", str(value))]
    if populate:
        params.append(("populate", "*"))
    return params


def is_numeric_id(value: Any) -> bool:
    """True si el identificador está compuesto solo por dígitos."""
    return str(value).strip().isdigit()


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> Optional[int]:
    """
    Entero al inicio de un valor ("123abc" -> 123), o None si no empieza con dígitos.

    Los ids de pedido llegan como texto y un número de pedido puede traer
    sufijos, por eso se toma solo el prefijo numérico.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None
