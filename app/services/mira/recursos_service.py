"""
Servicio de recursos MIRA.

Los videos se suben directo desde el navegador a Bunny Stream (TUS); aquí
solo se crea el video, se firma la subida y se registra la referencia en
Strapi.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from app.db.bunny_client import BunnyStreamClient, get_bunny_client
from app.db.strapi_client import StrapiClient, get_strapi_client
from app.services.activity_log import RequestContext, create_log_description, log_activity
from app.utils.error_handler import ExternalServiceException, ValidationException

logger = logging.getLogger(__name__)

RECURSOS_ENDPOINT = "api/recursos-mira"

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_SORT = "createdAt:desc"

RECURSO_FIELDS = [
    "nombre",
    "video_id",
    "tipo",
    "seccion",
    "numero_capitulo",
    "sub_seccion",
    "numero_ejercicio",
    "titulo_personalizado",
    "duracion_segundos",
    "orden",
    "createdAt",
]

# Campos opcionales que se copian a la referencia si vienen informados
_REFERENCIA_OPTIONAL_FIELDS = [
    "titulo_personalizado",
    "numero_capitulo",
    "seccion",
    "sub_seccion",
    "numero_ejercicio",
    "contenido",
    "duracion_segundos",
]


def _to_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def build_recursos_params(
    page: Any = 1,
    page_size: Any = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    seccion: Optional[str] = None,
    capitulo: Optional[str] = None,
    sub_seccion: Optional[str] = None,
    ejercicio: Optional[str] = None,
    titulo: Optional[str] = None,
    sin_libro: bool = False,
    con_libro: bool = False,
    sort: Optional[str] = None,
) -> List[Tuple[str, str]]:
    """
    Query params de Strapi para listar recursos MIRA.

    Con búsqueda general (search) los demás filtros van dentro de $and para
    combinarse con el $or de nombre / titulo_personalizado. El filtro por
    título solo aplica sin búsqueda general.
    """
    page = max(1, _to_int(page, 1))
    page_size = min(MAX_PAGE_SIZE, max(1, _to_int(page_size, DEFAULT_PAGE_SIZE)))
    search = (search or "").strip()

    params: List[Tuple[str, str]] = [
        ("pagination[page]", str(page)),
        ("pagination[pageSize]", str(page_size)),
        ("sort", sort or DEFAULT_SORT),
        ("populate[libro_mira][fields][0]", "id"),
        ("populate[libro_mira][populate][libro][fields][0]", "nombre_libro"),
    ]
    params += [(f"fields[{i}]", field) for i, field in enumerate(RECURSO_FIELDS)]

    if search:
        params.append(("filters[$or][0][nombre][$containsi]", search))
        params.append(("filters[$or][1][titulo_personalizado][$containsi]", search))

    filters = [
        ("seccion", "$eq", (seccion or "").strip()),
        ("numero_capitulo", "$containsi", (capitulo or "").strip()),
        ("sub_seccion", "$containsi", (sub_seccion or "").strip()),
        ("numero_ejercicio", "$containsi", (ejercicio or "").strip()),
    ]
    if sin_libro:
        filters.append(("libro_mira", "$null", "true"))
    if con_libro:
        filters.append(("libro_mira", "$notNull", "true"))

    and_index = 0
    for field, operator, value in filters:
        if not value:
            continue
        if search:
            params.append((f"filters[$and][{and_index}][{field}][{operator}]", value))
            and_index += 1
        else:
            params.append((f"filters[{field}][{operator}]", value))

    titulo = (titulo or "").strip()
    if titulo and not search:
        params.append(("filters[titulo_personalizado][$containsi]", titulo))

    return params


class RecursosService:
    """
    Args:
        strapi: Cliente Strapi
        bunny: Cliente Bunny Stream
    """

    def __init__(self, strapi: Optional[StrapiClient] = None, bunny: Optional[BunnyStreamClient] = None):
        self.strapi = strapi or get_strapi_client()
        self.bunny = bunny or get_bunny_client()

    def _ensure_strapi(self):
        if not self.strapi.is_configured:
            raise ExternalServiceException(
                "Strapi no configurado: falta STRAPI_API_TOKEN", service="strapi", api_response_code=503
            )

    async def list_recursos(self, **filters) -> Any:
        """
        Lista recursos MIRA con filtros y paginación.

        Returns:
            La respuesta de Strapi tal cual ({data, meta})
        """
        self._ensure_strapi()
        params = build_recursos_params(**filters)
        response = await self.strapi.get(RECURSOS_ENDPOINT, params=params)
        return response if response is not None else {}

    async def create_bunny_upload(self, title: str) -> Dict[str, Any]:
        """
        Crea un video en Bunny y devuelve la autorización TUS para subirlo.

        Returns:
            Dict con uploadUrl, videoId, libraryId, expires y signature
        """
        title = (title or "").strip()
        if not title:
            raise ValidationException("El título del video es obligatorio", field="title")

        video = await self.bunny.create_video(title)
        return self.bunny.sign_upload(video["guid"])

    async def create_recurso_reference(
        self, data: Dict[str, Any], context: Optional[RequestContext] = None
    ) -> Dict[str, Any]:
        """
        Registra en Strapi un video ya subido a Bunny Stream.

        Raises:
            ValidationException: Si faltan nombre o video_id
        """
        self._ensure_strapi()
        for field in ("nombre", "video_id"):
            if not data.get(field):
                raise ValidationException(f"El campo {field} es obligatorio", field=field)

        recurso: Dict[str, Any] = {
            "nombre": data["nombre"],
            "video_id": str(data["video_id"]),
            "tipo": data.get("tipo") or "video",
            "proveedor": data.get("proveedor") or "bunny_stream",
            "orden": _to_int(data.get("orden"), 0),
        }
        for field in _REFERENCIA_OPTIONAL_FIELDS:
            if data.get(field) not in (None, ""):
                recurso[field] = data[field]

        response = await self.strapi.post(RECURSOS_ENDPOINT, data={"data": recurso})
        created = response.get("data", response) if isinstance(response, dict) else response
        document_id = created.get("documentId") if isinstance(created, dict) else None
        logger.info(f"✅ Recurso MIRA registrado: {recurso['nombre']} (video {recurso['video_id']})")

        log_activity(
            "crear",
            "recurso",
            create_log_description("crear", "recurso", None, recurso["nombre"]),
            context=context,
            entidad_id=document_id,
            datos_nuevos=recurso,
        )

        return {"success": True, "data": created}


_recursos_service: Optional[RecursosService] = None


def get_recursos_service() -> RecursosService:
    global _recursos_service
    if _recursos_service is None:
        _recursos_service = RecursosService()
    return _recursos_service
