"""
Cliente para la API REST de Strapi.

Strapi es el dueño del almacenamiento de pedidos, recursos MIRA y logs de
actividad; este cliente solo envuelve las llamadas HTTP.
"""

import logging
from typing import Any, Optional

from app.core.config import get_settings
from app.db.base_client import BaseRESTClient
from app.utils.error_handler import StrapiAPIException

logger = logging.getLogger(__name__)


class StrapiClient(BaseRESTClient):
    """
    Cliente Strapi con autenticación por token Bearer.
    """

    service_name = "strapi"
    exception_class = StrapiAPIException

    def __init__(self, base_url: Optional[str] = None, api_token: Optional[str] = None):
        settings = get_settings()
        headers = settings.get_strapi_headers()
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        super().__init__(base_url=base_url or settings.STRAPI_URL, headers=headers)

    @property
    def is_configured(self) -> bool:
        return "Authorization" in self.headers

    async def delete(self, path: str, params: Optional[Any] = None, **kwargs) -> Any:
        """
        Elimina un registro.

        Strapi puede responder 204 o un cuerpo no JSON; en ese caso se
        devuelve un dict vacío.
        """
        response = await super().delete(path, params=params, **kwargs)
        if response is None or not isinstance(response, (dict, list)):
            return {}
        return response


_strapi_client: Optional[StrapiClient] = None


def get_strapi_client() -> StrapiClient:
    """
    Obtiene la instancia compartida del cliente Strapi.
    """
    global _strapi_client
    if _strapi_client is None:
        _strapi_client = StrapiClient()
    return _strapi_client


async def close_strapi_client():
    """Cierra la instancia compartida (usado en el shutdown)."""
    global _strapi_client
    if _strapi_client is not None:
        await _strapi_client.close()
        _strapi_client = None
