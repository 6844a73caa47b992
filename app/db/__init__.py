"""
Módulo de acceso a APIs externas de la intranet.

Cada cliente extiende BaseRESTClient (sesión aiohttp, reintentos y manejo
de errores HTTP):

- StrapiClient: pedidos, clientes, direcciones y recursos MIRA
- WooCommerceClient: tiendas woo_escolar y woo_moraleja
- JumpSellerClient / WeareCloudClient: conciliación de operaciones
- BunnyStreamClient: subida de videos
"""

from app.db.base_client import BaseRESTClient
from app.db.bunny_client import BunnyStreamClient, close_bunny_client, get_bunny_client
from app.db.jumpseller_client import JumpSellerClient, close_jumpseller_client, get_jumpseller_client
from app.db.strapi_client import StrapiClient, close_strapi_client, get_strapi_client
from app.db.wearecloud_client import WeareCloudClient, close_wearecloud_client, get_wearecloud_client
from app.db.woocommerce_client import (
    WooCommerceClient,
    close_woocommerce_clients,
    create_woocommerce_client,
    get_woocommerce_client,
)

__all__ = [
    "BaseRESTClient",
    "StrapiClient",
    "get_strapi_client",
    "WooCommerceClient",
    "create_woocommerce_client",
    "get_woocommerce_client",
    "JumpSellerClient",
    "get_jumpseller_client",
    "WeareCloudClient",
    "get_wearecloud_client",
    "BunnyStreamClient",
    "get_bunny_client",
    "close_all_clients",
]

_CLOSERS = (
    ("Strapi", close_strapi_client),
    ("JumpSeller", close_jumpseller_client),
    ("WeareCloud", close_wearecloud_client),
    ("Bunny Stream", close_bunny_client),
    ("WooCommerce", close_woocommerce_clients),
)


async def close_all_clients():
    """
    Cierra las sesiones HTTP de los clientes singleton.

    Returns:
        Lista de (nombre, error) para los clientes que fallaron al cerrar
    """
    errors = []
    for name, close in _CLOSERS:
        try:
            await close()
        except Exception as e:
            errors.append((name, e))
    return errors
