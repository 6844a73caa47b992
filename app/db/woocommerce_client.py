"""
Cliente para la API REST de WooCommerce.

Existen dos tiendas (Moraleja y Escolar) con credenciales propias; la
plataforma "otros" no tiene tienda asociada.
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from app.core.config import get_settings
from app.db.base_client import BaseRESTClient
from app.utils.error_handler import CommerceAPIException, UpstreamAPIException, ValidationException

logger = logging.getLogger(__name__)


class WooCommerceClient(BaseRESTClient):
    """
    Cliente WooCommerce con autenticación básica (consumer key / secret).
    """

    service_name = "woocommerce"
    exception_class = CommerceAPIException

    def __init__(self, platform: str, url: Optional[str], consumer_key: Optional[str], consumer_secret: Optional[str]):
        settings = get_settings()
        self.platform = platform
        self.configured = bool(url and consumer_key and consumer_secret)
        auth = aiohttp.BasicAuth(consumer_key, consumer_secret) if self.configured else None
        base_url = f"{(url or '').rstrip('/')}/wp-json/{settings.WOO_API_VERSION}"
        super().__init__(base_url=base_url, headers={"Content-Type": "application/json"}, auth=auth)

    def _build_error(self, message: str, **kwargs) -> UpstreamAPIException:
        return CommerceAPIException(message, platform=self.platform, **kwargs)

    def _ensure_configured(self):
        if not self.configured:
            raise CommerceAPIException(
                f"WooCommerce no configurado para la plataforma {self.platform}",
                platform=self.platform,
                api_response_code=503,
            )

    async def get_order(self, order_id: Any) -> Dict[str, Any]:
        """Obtiene un pedido por su id de WooCommerce."""
        self._ensure_configured()
        return await self.get(f"orders/{order_id}")

    async def search_orders(self, search: str, per_page: int = 100) -> List[Dict[str, Any]]:
        """
        Busca pedidos por texto libre (número de pedido, email, etc.).
        """
        self._ensure_configured()
        response = await self.get("orders", params={"search": str(search), "per_page": per_page})
        return response if isinstance(response, list) else []

    async def update_order(self, order_id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_configured()
        return await self.put(f"orders/{order_id}", data=data)

    async def delete_order(self, order_id: Any, force: bool = True) -> Dict[str, Any]:
        """
        Elimina un pedido. Con force=True se borra definitivamente en vez de ir a la papelera.
        """
        self._ensure_configured()
        response = await self.delete(f"orders/{order_id}", params={"force": "true" if force else "false"})
        return response if isinstance(response, dict) else {}


def resolve_woo_platform(platform: Optional[str]) -> str:
    """Plataforma WooCommerce efectiva: woo_escolar por defecto, 'otros' no tiene tienda."""
    platform = platform or "woo_escolar"
    if platform == "otros":
        raise ValidationException(
            "La plataforma 'otros' no tiene tienda WooCommerce asociada",
            field="originPlatform",
            invalid_value=platform,
        )
    if platform not in ("woo_moraleja", "woo_escolar"):
        logger.warning(f"⚠️ Plataforma desconocida '{platform}', usando woo_escolar")
        platform = "woo_escolar"
    return platform


def create_woocommerce_client(platform: Optional[str] = None) -> WooCommerceClient:
    """
    Crea el cliente WooCommerce de una plataforma.

    Args:
        platform: woo_moraleja o woo_escolar (por defecto woo_escolar)

    Returns:
        WooCommerceClient: Cliente configurado con las credenciales de la plataforma

    Raises:
        ValidationException: Si la plataforma es "otros" (no tiene WooCommerce)
    """
    platform = resolve_woo_platform(platform)
    credentials = get_settings().get_woocommerce_credentials(platform)
    return WooCommerceClient(platform=platform, **credentials)


_woocommerce_clients: Dict[str, WooCommerceClient] = {}


def get_woocommerce_client(platform: Optional[str] = None) -> WooCommerceClient:
    """
    Obtiene la instancia compartida del cliente WooCommerce de una plataforma.

    Reutiliza una sesión HTTP por tienda en lugar de abrir una por petición.
    """
    platform = resolve_woo_platform(platform)
    if platform not in _woocommerce_clients:
        _woocommerce_clients[platform] = create_woocommerce_client(platform)
    return _woocommerce_clients[platform]


async def close_woocommerce_clients():
    """Cierra las instancias compartidas de todas las tiendas (usado en el shutdown)."""
    while _woocommerce_clients:
        _, client = _woocommerce_clients.popitem()
        await client.close()
