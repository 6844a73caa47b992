"""
Servicios de Operaciones: conciliación y actualización de pedidos.

Solo concilia (muestra qué pedidos de bodega corresponden a qué pedidos de
tienda); no escribe en WeareCloud.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from app.db.jumpseller_client import JumpSellerClient, get_jumpseller_client
from app.db.wearecloud_client import WeareCloudClient, get_wearecloud_client
from app.services.operaciones.matcher import (
    HIGH,
    LOW,
    MEDIUM,
    MatchResult,
    create_synchronized_order,
    find_best_match,
    match_orders,
)
from app.utils.error_handler import AppException

logger = logging.getLogger(__name__)

JUMPSELLER_UPDATABLE_FIELDS = ["status", "customer_note", "internal_note", "shipping_method", "shipping_method_title"]


class OperacionesService:
    """
    Conciliación WeareCloud / JumpSeller.

    Args:
        jumpseller: Cliente JumpSeller
        wearecloud: Cliente del microservicio WeareCloud
    """

    def __init__(self, jumpseller: Optional[JumpSellerClient] = None, wearecloud: Optional[WeareCloudClient] = None):
        self.jumpseller = jumpseller or get_jumpseller_client()
        self.wearecloud = wearecloud or get_wearecloud_client()

    async def _jumpseller_orders(self, **filters) -> List[Dict[str, Any]]:
        try:
            return await self.jumpseller.get_orders(**filters)
        except AppException as e:
            logger.error(f"⚠️ Error obteniendo pedidos de JumpSeller: {e.message}")
            return []

    async def sync_orders(
        self,
        status: Optional[str] = None,
        created_at_min: Optional[str] = None,
        created_at_max: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Concilia todos los pedidos de WeareCloud con los de JumpSeller.

        Se muestran todos los pedidos: los de WeareCloud con su mejor match
        (si no es de confianza baja) y después los de JumpSeller que no
        quedaron asociados a ninguno.

        Args:
            status: Filtro de estado para JumpSeller
            created_at_min: Fecha mínima de creación para JumpSeller
            created_at_max: Fecha máxima de creación para JumpSeller
        """
        wearecloud_orders, jumpseller_orders = await asyncio.gather(
            self.wearecloud.get_orders(),
            self._jumpseller_orders(
                limit=100, status=status, created_at_min=created_at_min, created_at_max=created_at_max
            ),
        )
        logger.info(f"🔄 Conciliando {len(wearecloud_orders)} pedidos WeareCloud con {len(jumpseller_orders)} de JumpSeller")

        synced: List[Dict[str, Any]] = []
        matched_ids = set()

        for wc_order in wearecloud_orders:
            best = find_best_match(wc_order, jumpseller_orders)
            if best and best["match"].confidence != LOW:
                matched_ids.add(best["order"].get("id"))
                synced.append(create_synchronized_order(wc_order, best["order"], best["match"]))
            else:
                synced.append(
                    create_synchronized_order(wc_order, None, _no_match("No se encontró match en JumpSeller"))
                )

        for js_order in jumpseller_orders:
            if js_order.get("id") not in matched_ids:
                synced.append(
                    create_synchronized_order(None, js_order, _no_match("No se encontró match en WeareCloud"))
                )

        logger.info(f"✅ Conciliación lista: {len(matched_ids)} pedidos asociados de {len(synced)}")
        return synced

    async def sync_order(
        self, jumpseller_order_id: Optional[Any] = None, wearecloud_order_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Concilia un pedido puntual.

        Si solo se conoce el pedido de WeareCloud se busca un match de
        confianza media o alta entre los últimos 50 pedidos de JumpSeller.
        """
        try:
            jumpseller_order = await self.jumpseller.get_order(jumpseller_order_id) if jumpseller_order_id else None
            wearecloud_order = None

            if wearecloud_order_id:
                wearecloud_order = await self.wearecloud.get_order(wearecloud_order_id)
                if not jumpseller_order:
                    candidates = await self.jumpseller.get_orders(limit=50)
                    jumpseller_order = next(
                        (js for js in candidates if match_orders(wearecloud_order, js).confidence in (HIGH, MEDIUM)),
                        None,
                    )

            match = match_orders(wearecloud_order, jumpseller_order) if wearecloud_order and jumpseller_order else None
            return {"success": True, "order": create_synchronized_order(wearecloud_order, jumpseller_order, match)}

        except AppException as e:
            logger.error(f"❌ Error al sincronizar pedido {jumpseller_order_id or wearecloud_order_id}: {e.message}")
            return {"success": False, "order": create_synchronized_order(), "error": e.message}

    async def update_jumpseller_order(self, order_id: Any, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza estado, notas o método de envío de un pedido en JumpSeller.

        Returns:
            Dict con success, order y changes (campo y nuevo valor)
        """
        updates = {k: v for k, v in updates.items() if k in JUMPSELLER_UPDATABLE_FIELDS and v is not None}
        try:
            updated = await self.jumpseller.update_order(order_id, updates)
        except AppException as e:
            logger.error(f"❌ Error al actualizar pedido {order_id} en JumpSeller: {e.message}")
            return {"success": False, "order": create_synchronized_order(), "error": e.message}

        logger.info(f"✅ Pedido {order_id} actualizado en JumpSeller: {sorted(updates)}")
        return {
            "success": True,
            "order": create_synchronized_order(None, updated),
            "changes": [{"field": key, "old_value": None, "new_value": value} for key, value in updates.items()],
        }


def _no_match(reason: str) -> MatchResult:
    return MatchResult(confidence=LOW, reason=reason)


_operaciones_service: Optional[OperacionesService] = None


def get_operaciones_service() -> OperacionesService:
    global _operaciones_service
    if _operaciones_service is None:
        _operaciones_service = OperacionesService()
    return _operaciones_service
