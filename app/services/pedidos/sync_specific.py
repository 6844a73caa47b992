"""
Sincronización puntual de pedidos desde WooCommerce hacia Strapi.

Se usa para recuperar pedidos que el webhook no trajo: se buscan por número
en cada tienda y se crean o actualizan en la colección wo-pedidos.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from app.db.strapi_client import StrapiClient, get_strapi_client
from app.db.woocommerce_client import WooCommerceClient, get_woocommerce_client
from app.services.pedidos.payloads import build_strapi_payload_from_woo
from app.utils.error_handler import AppException, ValidationException
from app.utils.strapi_utils import get_attrs, get_document_id, unwrap_list, unwrap_one

logger = logging.getLogger(__name__)

WO_PEDIDOS_ENDPOINT = "/api/wo-pedidos"
SYNC_PLATFORMS = ["woo_moraleja", "woo_escolar"]


class SpecificOrderSync:
    """
    Sincroniza pedidos concretos, plataforma por plataforma.

    Args:
        strapi: Cliente Strapi
        woo_client_factory: Crea el cliente WooCommerce de una plataforma
    """

    def __init__(
        self,
        strapi: Optional[StrapiClient] = None,
        woo_client_factory: Callable[[str], WooCommerceClient] = get_woocommerce_client,
    ):
        self.strapi = strapi or get_strapi_client()
        self.woo_client_factory = woo_client_factory

    async def find_woo_order(self, order_number: str, platform: str) -> Optional[Dict[str, Any]]:
        """
        Busca un pedido en WooCommerce por número (o id).

        Returns:
            El pedido, o None si no existe o la búsqueda falla
        """
        try:
            orders = await self.woo_client_factory(platform).search_orders(order_number, per_page=100)
        except AppException as e:
            logger.error(f"❌ Error buscando pedido #{order_number} en {platform}: {e.message}")
            return None

        return next(
            (o for o in orders if str(o.get("number")) == str(order_number) or str(o.get("id")) == str(order_number)),
            None,
        )

    async def find_existing(self, order_number: str, woo_id: Any, platform: str) -> Optional[Dict[str, Any]]:
        """Pedido ya guardado en Strapi para el mismo número/wooId y plataforma."""
        params = [
            ("filters[$or][0][numero_pedido][$eq]", order_number),
            ("filters[$or][1][wooId][$eq]", str(woo_id)),
            ("populate", "*"),
            ("publicationState", "preview"),
        ]
        response = await self.strapi.get(WO_PEDIDOS_ENDPOINT, params=params)

        for item in unwrap_list(response):
            data = get_attrs(item)
            external_ids = data.get("externalIds") if isinstance(data.get("externalIds"), dict) else {}
            if (data.get("originPlatform") or external_ids.get("originPlatform")) == platform:
                return item
        return None

    async def sync_order(self, order_number: str, platform: str) -> Dict[str, Any]:
        """
        Sincroniza un pedido de una plataforma.

        Returns:
            Dict con success, orderNumber, platform y action/documentId o error
        """
        result: Dict[str, Any] = {"orderNumber": order_number, "platform": platform}

        woo_order = await self.find_woo_order(order_number, platform)
        if not woo_order:
            return {
                "success": False,
                **result,
                "error": f"Pedido #{order_number} no encontrado en WooCommerce {platform}",
            }

        logger.info(f"📨 Pedido #{order_number} encontrado en {platform} (id {woo_order.get('id')}, {woo_order.get('status')})")
        payload = build_strapi_payload_from_woo(woo_order, platform)

        try:
            existing = await self.find_existing(payload["numero_pedido"], woo_order.get("id"), platform)
            if existing:
                document_id = get_document_id(existing)
                await self.strapi.put(f"{WO_PEDIDOS_ENDPOINT}/{document_id}", data={"data": payload})
                action = "updated"
            else:
                response = await self.strapi.post(WO_PEDIDOS_ENDPOINT, data={"data": payload})
                document_id = (unwrap_one(response) or {}).get("documentId")
                action = "created"
        except AppException as e:
            logger.error(f"❌ Error sincronizando pedido #{order_number}: {e.message}")
            return {"success": False, **result, "error": e.message or "Error desconocido"}

        logger.info(f"✅ Pedido #{order_number} {action} en Strapi ({document_id})")
        return {"success": True, **result, "action": action, "documentId": document_id}

    async def sync_orders(self, order_numbers: List[Any], platforms: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Sincroniza varios pedidos. Cada número se busca en las plataformas en
        orden y se deja de buscar en cuanto una lo sincroniza.

        Raises:
            ValidationException: Si order_numbers está vacío
        """
        if not isinstance(order_numbers, list) or not order_numbers:
            raise ValidationException(
                "orderNumbers debe ser un array con al menos un número de pedido", field="orderNumbers"
            )

        platforms = platforms or SYNC_PLATFORMS
        results = []
        for order_number in order_numbers:
            for platform in platforms:
                if platform not in SYNC_PLATFORMS:
                    continue
                result = await self.sync_order(str(order_number), platform)
                results.append(result)
                if result["success"]:
                    break

        success_count = sum(1 for r in results if r["success"])
        error_count = len(results) - success_count
        logger.info(f"✅ Sincronización puntual: {success_count} exitosos, {error_count} con errores")

        return {
            "success": True,
            "message": f"Sincronización completada: {success_count} exitosos, {error_count} con errores",
            "results": results,
            "summary": {"total": len(order_numbers), "success": success_count, "errors": error_count},
        }


_specific_sync: Optional[SpecificOrderSync] = None


def get_specific_order_sync() -> SpecificOrderSync:
    global _specific_sync
    if _specific_sync is None:
        _specific_sync = SpecificOrderSync()
    return _specific_sync
