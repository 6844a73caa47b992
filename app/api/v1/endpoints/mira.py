"""
Endpoints de recursos MIRA y subida de videos a Bunny Stream.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies import get_request_context
from app.api.v1.schemas.pedido_schemas import BunnyVideoRequest, RecursoReferenciaRequest
from app.services.activity_log import RequestContext
from app.services.mira.recursos_service import DEFAULT_PAGE_SIZE, RecursosService, get_recursos_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/recursos", summary="Listar recursos MIRA")
async def list_recursos(
    page: int = Query(default=1),
    pageSize: int = Query(default=DEFAULT_PAGE_SIZE, description="Máximo 100"),
    search: Optional[str] = Query(default=None, description="Busca en nombre y titulo_personalizado"),
    seccion: Optional[str] = None,
    capitulo: Optional[str] = None,
    sub_seccion: Optional[str] = None,
    ejercicio: Optional[str] = None,
    titulo: Optional[str] = None,
    sinLibro: bool = False,
    conLibro: bool = False,
    sort: Optional[str] = Query(default=None, description="campo:orden (por defecto createdAt:desc)"),
    service: RecursosService = Depends(get_recursos_service),
) -> Any:
    """
    Lista recursos con filtros y paginación; devuelve la respuesta de Strapi.
    """
    return await service.list_recursos(
        page=page,
        page_size=pageSize,
        search=search,
        seccion=seccion,
        capitulo=capitulo,
        sub_seccion=sub_seccion,
        ejercicio=ejercicio,
        titulo=titulo,
        sin_libro=sinLibro,
        con_libro=conLibro,
        sort=sort,
    )


@router.post("/recursos/crear-referencia", summary="Registrar video subido")
async def create_recurso_reference(
    body: RecursoReferenciaRequest,
    service: RecursosService = Depends(get_recursos_service),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    return await service.create_recurso_reference(body.model_dump(), context=context)


@router.post("/bunny/videos", summary="Crear video y firmar subida TUS")
async def create_bunny_upload(
    body: BunnyVideoRequest,
    service: RecursosService = Depends(get_recursos_service),
) -> Dict[str, Any]:
    """
    Crea el video en Bunny Stream y devuelve los datos para que el navegador
    lo suba directamente (uploadUrl, videoId, libraryId, expires, signature).
    """
    return await service.create_bunny_upload(body.title)
