"""
Endpoints del módulo de Operaciones (conciliación WeareCloud / JumpSeller).
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.v1.schemas.pedido_schemas import JumpSellerOrderUpdate, SyncOrderRequest
from app.services.operaciones.service import OperacionesService, get_operaciones_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/pedidos", summary="Conciliar pedidos")
async def list_synchronized_orders(
    status: Optional[str] = Query(default=None, description="Estado de JumpSeller"),
    created_at_min: Optional[str] = Query(default=None, description="Fecha mínima de creación (ISO)"),
    created_at_max: Optional[str] = Query(default=None, description="Fecha máxima de creación (ISO)"),
    service: OperacionesService = Depends(get_operaciones_service),
) -> Dict[str, Any]:
    """
    Lista todos los pedidos de WeareCloud y JumpSeller con su match.
    """
    orders = await service.sync_orders(status=status, created_at_min=created_at_min, created_at_max=created_at_max)
    return {"success": True, "data": orders, "total": len(orders)}


@router.post("/pedidos/{jumpseller_id}/sync", summary="Conciliar un pedido")
async def sync_order(
    jumpseller_id: str,
    body: Optional[SyncOrderRequest] = None,
    service: OperacionesService = Depends(get_operaciones_service),
) -> Dict[str, Any]:
    """
    Concilia un pedido de JumpSeller, opcionalmente con un pedido de WeareCloud.
    """
    result = await service.sync_order(
        jumpseller_order_id=jumpseller_id, wearecloud_order_id=body.wearecloud_order_id if body else None
    )
    if not result["success"]:
        raise HTTPException(status_code=502, detail=result)
    return result


@router.put("/pedidos/{jumpseller_id}", summary="Actualizar pedido en JumpSeller")
async def update_jumpseller_order(
    jumpseller_id: str,
    body: JumpSellerOrderUpdate,
    service: OperacionesService = Depends(get_operaciones_service),
) -> Dict[str, Any]:
    """
    Actualiza estado, notas o método de envío de un pedido de JumpSeller.
    """
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail={"error": "No hay campos para actualizar"})

    result = await service.update_jumpseller_order(jumpseller_id, updates)
    if not result["success"]:
        raise HTTPException(status_code=502, detail=result)
    return result
