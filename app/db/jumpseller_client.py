"""
Cliente HTTP para la API de JumpSeller.

Autenticación básica con API Key (usuario) y API Secret (contraseña).
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from app.core.config import get_settings
from app.db.base_client import BaseRESTClient
from app.utils.error_handler import CommerceAPIException, UpstreamAPIException

logger = logging.getLogger(__name__)


def unwrap_orders(data: Any) -> List[Dict[str, Any]]:
    """
    Normaliza la respuesta de listado de pedidos.

    JumpSeller puede devolver una lista directa, {orders: [...]} o
    {order: {...}}; cada elemento puede venir envuelto en {order: ...}.
    """
    if isinstance(data, list):
        return [item.get("order") or item if isinstance(item, dict) else item for item in data]
    if isinstance(data, dict):
        orders = data.get("orders")
        if isinstance(orders, list):
            return [item.get("order") or item if isinstance(item, dict) else item for item in orders]
        if data.get("order"):
            return [data["order"]]
    return []


def unwrap_order(data: Any) -> Dict[str, Any]:
    """Devuelve el pedido de una respuesta de detalle ({order: ...} o plano)."""
    if isinstance(data, dict):
        return data.get("order") or data
    return {}


class JumpSellerClient(BaseRESTClient):
    """
    Cliente JumpSeller para consultar y actualizar pedidos.
    """

    service_name = "jumpseller"
    exception_class = CommerceAPIException

    def __init__(self, api_key: Optional[str] = None, api_secret: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.JUMPSELLER_API_KEY
        self.api_secret = api_secret or settings.JUMPSELLER_API_SECRET
        auth = aiohttp.BasicAuth(self.api_key, self.api_secret) if self.is_configured else None
        super().__init__(
            base_url=settings.JUMPSELLER_API_BASE_URL,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            auth=auth,
            timeout_seconds=settings.JUMPSELLER_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def _build_error(self, message: str, **kwargs) -> UpstreamAPIException:
        if kwargs.get("api_response_code") == 504:
            message = (
                f"Timeout: La petición a JumpSeller tardó más de {self.timeout_seconds} segundos"
            )
        return CommerceAPIException(message, platform="jumpseller", **kwargs)

    def _ensure_configured(self):
        if not self.api_key:
            raise CommerceAPIException(
                "JumpSeller API Key (Login) no está configurado", platform="jumpseller", api_response_code=503
            )
        if not self.api_secret:
            raise CommerceAPIException(
                "JumpSeller API Secret (Auth Token) no está configurado", platform="jumpseller", api_response_code=503
            )

    async def get_orders(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        created_at_min: Optional[str] = None,
        created_at_max: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Obtiene la lista de pedidos.

        Args:
            page: Página
            limit: Pedidos por página
            status: Filtro por estado
            created_at_min: Fecha mínima de creación (ISO)
            created_at_max: Fecha máxima de creación (ISO)

        Returns:
            Lista de pedidos ya desenvueltos
        """
        self._ensure_configured()
        candidates = {
            "page": page,
            "limit": limit,
            "status": status,
            "created_at_min": created_at_min,
            "created_at_max": created_at_max,
        }
        params = {key: str(value) for key, value in candidates.items() if value is not None}
        data = await self.get("orders", params=params or None)
        return unwrap_orders(data)

    async def get_order(self, order_id: Any) -> Dict[str, Any]:
        self._ensure_configured()
        return unwrap_order(await self.get(f"orders/{order_id}.json"))

    async def update_order(self, order_id: Any, order_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza un pedido. Un timeout se informa con status 504.
        """
        self._ensure_configured()
        return unwrap_order(await self.put(f"orders/{order_id}.json", data={"order": order_data}, max_retries=1))


_jumpseller_client: Optional[JumpSellerClient] = None


def get_jumpseller_client() -> JumpSellerClient:
    """Obtiene la instancia compartida del cliente JumpSeller."""
    global _jumpseller_client
    if _jumpseller_client is None:
        _jumpseller_client = JumpSellerClient()
    return _jumpseller_client


async def close_jumpseller_client():
    global _jumpseller_client
    if _jumpseller_client is not None:
        await _jumpseller_client.close()
        _jumpseller_client = None
