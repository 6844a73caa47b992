"""
Registro de actividades de usuarios en Strapi.

Cada acción relevante (crear, actualizar, eliminar pedidos, etc.) se guarda
en la colección "activity-logs". El registro es fire-and-forget: un fallo al
guardar el log nunca afecta la operación principal.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set
from urllib.parse import unquote

from app.core.config import get_settings
from app.db.strapi_client import StrapiClient, get_strapi_client
from app.utils.error_handler import AppException, UpstreamAPIException

logger = logging.getLogger(__name__)

ACTIVITY_LOG_ENDPOINT = "/api/activity-logs"

ACCIONES = [
    "crear",
    "actualizar",
    "eliminar",
    "ver",
    "exportar",
    "sincronizar",
    "cambiar_estado",
    "login",
    "logout",
    "descargar",
    "imprimir",
    "ocultar",
    "mostrar",
]

_ACCION_TEXTO = {
    "crear": "Creó",
    "actualizar": "Actualizó",
    "eliminar": "Eliminó",
    "ver": "Vio",
    "exportar": "Exportó",
    "sincronizar": "Sincronizó",
    "cambiar_estado": "Cambió el estado de",
    "login": "Inició sesión",
    "logout": "Cerró sesión",
    "descargar": "Descargó",
    "imprimir": "Imprimió",
    "ocultar": "Ocultó",
    "mostrar": "Mostró",
}

# Cookies donde el frontend guarda al colaborador, en orden de prioridad
COLABORADOR_COOKIES = ["colaboradorData", "colaborador", "auth_colaborador"]

# Tareas de log en curso (evita que el GC las cancele)
_pending_tasks: Set[asyncio.Task] = set()


@dataclass
class RequestContext:
    """
    Datos del request necesarios para auditar una acción.
    """

    user: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


def create_log_description(
    accion: str, entidad: str, entidad_id: Optional[Any] = None, detalles: Optional[str] = None
) -> str:
    """
    Genera la descripción legible de una actividad.

    Ejemplo:
        create_log_description("eliminar", "pedido", 1234) -> "Eliminó Pedido #1234"
    """
    accion_texto = _ACCION_TEXTO.get(accion, accion)
    detalles_part = f": {detalles}" if detalles else ""

    if accion in ("login", "logout"):
        return f"{accion_texto}{detalles_part}"

    entidad_nombre = entidad[:1].upper() + entidad[1:]
    id_part = f" #{entidad_id}" if entidad_id else ""
    return f"{accion_texto} {entidad_nombre}{id_part}{detalles_part}"


def parse_colaborador_cookie(cookies: Dict[str, str]) -> Optional[Dict[str, Any]]:
    """
    Extrae id, documentId, email y nombre del colaborador desde las cookies.

    Args:
        cookies: Cookies del request

    Returns:
        Dict con id, documentId, email y nombre, o None si no hay colaborador
    """
    raw = next((cookies[name] for name in COLABORADOR_COOKIES if cookies.get(name)), None)
    if not raw:
        return None

    try:
        colaborador = json.loads(raw)
    except ValueError:
        try:
            colaborador = json.loads(unquote(raw))
        except ValueError:
            logger.debug("Cookie de colaborador no es JSON válido")
            return None

    if not isinstance(colaborador, dict):
        return None

    colaborador_id = colaborador.get("id")
    document_id = colaborador.get("documentId")
    if colaborador_id is None and document_id is None:
        return None

    email = colaborador.get("email_login") or colaborador.get("email")

    persona = colaborador.get("persona") or {}
    if isinstance(persona, dict):
        persona = persona.get("attributes") or persona.get("data") or persona
        if isinstance(persona, dict) and isinstance(persona.get("attributes"), dict):
            persona = persona["attributes"]
    else:
        persona = {}

    nombre = persona.get("nombre_completo") or (
        f"{(persona.get('nombres') or '').strip()} {(persona.get('primer_apellido') or '').strip()}".strip()
    )

    return {
        "id": colaborador_id,
        "documentId": document_id,
        "email": email,
        "nombre": nombre or email,
    }


def _to_json_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _numeric_user_id(user: Dict[str, Any]) -> Optional[int]:
    for candidate in (user.get("id"), user.get("documentId")):
        if isinstance(candidate, int):
            return candidate
        if isinstance(candidate, str) and candidate.strip().isdigit():
            return int(candidate)
    return None


def build_log_data(
    accion: str,
    entidad: str,
    descripcion: str,
    context: Optional[RequestContext] = None,
    entidad_id: Optional[Any] = None,
    datos_anteriores: Any = None,
    datos_nuevos: Any = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Construye el registro de actividad tal como se guarda en Strapi.

    La relación usuario requiere el id numérico del colaborador; el email y
    el nombre se guardan también en metadata por si el colaborador no existe.
    """
    context = context or RequestContext()
    log_data: Dict[str, Any] = {
        "accion": accion,
        "entidad": entidad,
        "descripcion": descripcion,
        "fecha": datetime.now(timezone.utc).isoformat(),
    }

    metadata = dict(metadata or {})
    if context.user:
        user_id = _numeric_user_id(context.user)
        log_data["usuario"] = user_id
        if user_id is not None:
            if context.user.get("email"):
                metadata["usuario_email"] = context.user["email"]
            if context.user.get("nombre"):
                metadata["usuario_nombre"] = context.user["nombre"]

    if entidad_id is not None:
        log_data["entidad_id"] = str(entidad_id)
    if datos_anteriores is not None:
        log_data["datos_anteriores"] = _to_json_text(datos_anteriores)
    if datos_nuevos is not None:
        log_data["datos_nuevos"] = _to_json_text(datos_nuevos)
    if context.ip_address:
        log_data["ip_address"] = context.ip_address
    if context.user_agent:
        log_data["user_agent"] = context.user_agent
    if metadata:
        log_data["metadata"] = _to_json_text(metadata)

    return log_data


async def save_activity(log_data: Dict[str, Any], strapi: Optional[StrapiClient] = None) -> bool:
    """
    Guarda un registro de actividad. Nunca lanza excepciones.

    Returns:
        bool: True si Strapi aceptó el registro
    """
    strapi = strapi or get_strapi_client()
    try:
        await strapi.post(ACTIVITY_LOG_ENDPOINT, data={"data": log_data})
        logger.debug(f"📝 Actividad registrada: {log_data['accion']} {log_data['entidad']}")
        return True
    except AppException as e:
        code = e.api_response_code if isinstance(e, UpstreamAPIException) else e.status_code
        logger.error(
            f"❌ Error al registrar actividad en Strapi ({code}): {e.message} - "
            f"accion={log_data.get('accion')} entidad={log_data.get('entidad')}"
        )
        return False
    except Exception as e:
        logger.error(f"❌ Error inesperado al registrar actividad: {type(e).__name__}: {e}")
        return False


def log_activity(
    accion: str,
    entidad: str,
    descripcion: str,
    context: Optional[RequestContext] = None,
    strapi: Optional[StrapiClient] = None,
    **kwargs,
) -> Optional[asyncio.Task]:
    """
    Programa el registro de una actividad sin bloquear al llamador.

    Args:
        accion: Una de ACCIONES
        entidad: Entidad afectada (pedido, recurso, ...)
        descripcion: Descripción legible (ver create_log_description)
        context: Usuario, IP y user agent del request
        strapi: Cliente Strapi (por defecto el compartido)
        **kwargs: entidad_id, datos_anteriores, datos_nuevos, metadata

    Returns:
        La tarea asyncio creada, o None si el registro está deshabilitado
    """
    if not get_settings().ENABLE_ACTIVITY_LOG:
        return None

    if accion not in ACCIONES:
        logger.warning(f"⚠️ Acción de log desconocida: {accion}")

    log_data = build_log_data(accion, entidad, descripcion, context=context, **kwargs)
    task = asyncio.create_task(save_activity(log_data, strapi=strapi))
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)
    return task


async def wait_for_pending_logs():
    """Espera los registros de actividad que aún no terminan (shutdown)."""
    if _pending_tasks:
        logger.info(f"🔄 Esperando {len(_pending_tasks)} registros de actividad pendientes")
        await asyncio.gather(*list(_pending_tasks), return_exceptions=True)
