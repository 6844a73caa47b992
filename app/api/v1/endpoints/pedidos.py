"""
Endpoints de pedidos de la tienda.

Las escrituras van a Strapi; Strapi sincroniza con WooCommerce mediante sus
lifecycles. Los errores se devuelven como {success: false, error}.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.dependencies import get_request_context
from app.api.v1.schemas.pedido_schemas import PedidoRequest, SyncSpecificRequest
from app.services.activity_log import RequestContext
from app.services.pedidos.pedido_service import PedidoListError, PedidoService, get_pedido_service
from app.services.pedidos.sync_specific import SpecificOrderSync, get_specific_order_sync

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Listar pedidos")
async def list_pedidos(
    includeHidden: bool = Query(default=False, description="Incluir pedidos ocultos (drafts)"),
    service: PedidoService = Depends(get_pedido_service),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Lista todos los pedidos de ambas plataformas.
    """
    try:
        return await service.list_pedidos(include_hidden=includeHidden, context=context)
    except PedidoListError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail={"error": e.message, "data": []}
        ) from e


@router.post("", summary="Crear pedido")
async def create_pedido(
    body: PedidoRequest,
    service: PedidoService = Depends(get_pedido_service),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Crea un pedido en Strapi. Strapi lo crea en WooCommerce salvo que la
    plataforma sea "otros".
    """
    return await service.create_pedido(body.data, context=context)


@router.post("/sync-specific", summary="Sincronizar pedidos específicos desde WooCommerce")
async def sync_specific_orders(
    body: SyncSpecificRequest,
    sync: SpecificOrderSync = Depends(get_specific_order_sync),
) -> Dict[str, Any]:
    """
    Busca los pedidos por número en WooCommerce y los crea o actualiza en Strapi.
    """
    logger.info(f"🔄 Sincronización puntual solicitada: {body.orderNumbers} en {body.platforms or 'ambas plataformas'}")
    return await sync.sync_orders(body.orderNumbers or [], body.platforms)


@router.get("/{pedido_id}", summary="Obtener pedido")
async def get_pedido(
    pedido_id: str,
    service: PedidoService = Depends(get_pedido_service),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Obtiene un pedido por documentId, número de pedido o id de WooCommerce.
    """
    return await service.get_pedido(pedido_id, context=context)


@router.put("/{pedido_id}", summary="Actualizar pedido")
async def update_pedido(
    pedido_id: str,
    body: PedidoRequest,
    service: PedidoService = Depends(get_pedido_service),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Actualiza un pedido en Strapi (afterUpdate sincroniza con WooCommerce).
    """
    return await service.update_pedido(pedido_id, body.data, context=context)


@router.delete("/{pedido_id}", summary="Eliminar pedido")
async def delete_pedido(
    pedido_id: str,
    service: PedidoService = Depends(get_pedido_service),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Elimina un pedido de WooCommerce (si está vinculado) y de Strapi.
    """
    return await service.delete_pedido(pedido_id, context=context)
