"""
Cliente del microservicio WeareCloud.

El microservicio expone los pedidos de la bodega WeareCloud; las credenciales
de WeareCloud viven en el microservicio, aquí solo se usa su API key.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.core.config import get_settings
from app.db.base_client import BaseRESTClient
from app.utils.error_handler import ExternalServiceException, UpstreamAPIException

logger = logging.getLogger(__name__)

WEARECLOUD_WEB_URL = "https://ecommerce.wareclouds.app"


def map_wearecloud_order(order: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convierte un pedido del microservicio al formato común de pedidos.

    Args:
        order: Pedido crudo (warecloud_id, pedido_ecommerce, estado, cliente...)

    Returns:
        Dict con id, order_number, status, customer, total, etc.
    """
    now = datetime.now(timezone.utc).isoformat()
    warecloud_id = order.get("warecloud_id")
    pedido_ecommerce = order.get("pedido_ecommerce")
    cliente = order.get("cliente")

    if cliente:
        customer = {
            "email": cliente.get("email") or "",
            "name": cliente.get("name") or cliente.get("nombre") or "",
            "phone": cliente.get("phone") or cliente.get("telefono") or "",
        }
    else:
        customer = {"email": "", "name": ""}

    url = order.get("url")
    if not url and warecloud_id:
        url = f"{WEARECLOUD_WEB_URL}/orders/{warecloud_id}"

    return {
        "id": str(warecloud_id or pedido_ecommerce or f"wc-{int(datetime.now(timezone.utc).timestamp() * 1000)}"),
        "order_number": str(pedido_ecommerce or warecloud_id or ""),
        "status": order.get("estado") or "unknown",
        "created_at": order.get("fecha_creacion") or now,
        "updated_at": order.get("fecha_actualizacion") or now,
        "customer": customer,
        "items": order.get("items") or [],
        "total": order.get("total") or "0",
        "shipping_address": order.get("direccion_envio"),
        "notes": order.get("notes") or order.get("notas"),
        "warecloud_id": warecloud_id,
        "url": url,
        "pedido_ecommerce": pedido_ecommerce,
    }


class WeareCloudClient(BaseRESTClient):
    """
    Cliente del microservicio de pedidos WeareCloud.
    """

    service_name = "wearecloud"
    exception_class = ExternalServiceException

    def __init__(self, service_url: Optional[str] = None, api_key: Optional[str] = None):
        settings = get_settings()
        headers = {"Content-Type": "application/json"}
        api_key = api_key or settings.WEARECLOUD_API_KEY
        if api_key:
            headers["X-API-Key"] = api_key
        else:
            logger.warning("⚠️ API Key de WeareCloud no configurada")
        super().__init__(base_url=service_url or settings.WEARECLOUD_SERVICE_URL or "http://localhost:8000", headers=headers)

    def _build_error(self, message: str, **kwargs) -> UpstreamAPIException:
        return ExternalServiceException(message, service="wearecloud", **kwargs)

    async def get_orders(self) -> List[Dict[str, Any]]:
        """
        Obtiene todos los pedidos de WeareCloud.

        Ante cualquier error devuelve una lista vacía para que el matching
        continúe solo con los pedidos de JumpSeller.
        """
        try:
            logger.info(f"🔗 Consultando pedidos WeareCloud en {self.base_url}")
            data = await self.get("api/wearecloud/pedidos")
        except UpstreamAPIException as e:
            logger.error(f"❌ Error al obtener pedidos de WeareCloud: {e.message}")
            return []

        raw_orders = data.get("orders", data) if isinstance(data, dict) else data
        if not isinstance(raw_orders, list):
            logger.warning(f"⚠️ La respuesta de WeareCloud no es una lista: {type(raw_orders).__name__}")
            return []

        orders = [map_wearecloud_order(order) for order in raw_orders if isinstance(order, dict)]
        logger.info(f"✅ Pedidos WeareCloud obtenidos: {len(orders)}")
        return orders

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """
        Obtiene un pedido específico.

        Raises:
            ExternalServiceException: Si el microservicio no lo devuelve
        """
        data = await self.get(f"api/wearecloud/pedidos/{order_id}")
        order = data.get("order", data) if isinstance(data, dict) else None
        if not isinstance(order, dict):
            raise ExternalServiceException(
                f"No se pudo obtener el pedido de WeareCloud: {order_id}", service="wearecloud", api_response_code=404
            )
        return map_wearecloud_order(order)


_wearecloud_client: Optional[WeareCloudClient] = None


def get_wearecloud_client() -> WeareCloudClient:
    global _wearecloud_client
    if _wearecloud_client is None:
        _wearecloud_client = WeareCloudClient()
    return _wearecloud_client


async def close_wearecloud_client():
    global _wearecloud_client
    if _wearecloud_client is not None:
        await _wearecloud_client.close()
        _wearecloud_client = None
