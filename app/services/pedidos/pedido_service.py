"""
Servicio de pedidos de la tienda.

Las escrituras van siempre a Strapi primero; sus lifecycles (afterCreate /
afterUpdate) propagan los cambios a WooCommerce. Solo la eliminación toca
WooCommerce directamente, y ese paso no es crítico.
"""

import logging
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

from app.core.config import get_settings
from app.db.strapi_client import StrapiClient, get_strapi_client
from app.db.woocommerce_client import WooCommerceClient, get_woocommerce_client
from app.services.activity_log import RequestContext, create_log_description, log_activity
from app.services.pedidos.normalizers import resolve_platform
from app.services.pedidos.payloads import (
    build_create_payload,
    build_update_payload,
    validate_create_body,
    validate_platform,
)
from app.services.pedidos.resolver import PEDIDOS_ENDPOINT, PedidoResolver
from app.utils.error_handler import (
    AppException,
    ErrorCode,
    NotFoundException,
    StrapiAPIException,
    UpstreamAPIException,
)
from app.utils.strapi_utils import get_attrs, get_meta_total, unwrap_list

logger = logging.getLogger(__name__)


def get_origin_platform(entity: Optional[Dict[str, Any]]) -> Optional[str]:
    """Plataforma guardada en un pedido (campo propio o externalIds)."""
    data = get_attrs(entity)
    external_ids = data.get("externalIds") or {}
    return data.get("originPlatform") or (external_ids.get("originPlatform") if isinstance(external_ids, dict) else None)


def count_by_platform(pedidos: List[Dict[str, Any]]) -> Dict[str, int]:
    """Cantidad de pedidos por plataforma ("desconocida" si no tiene)."""
    return dict(Counter(get_origin_platform(p) or "desconocida" for p in pedidos))


def _saved_platform(response: Any) -> Optional[str]:
    saved = response.get("data", response) if isinstance(response, dict) else {}
    if not isinstance(saved, dict):
        return None
    return (saved.get("attributes") or {}).get("originPlatform") or saved.get("originPlatform")


class PedidoListError(StrapiAPIException):
    """Strapi rechazó el listado con 400 incluso en su forma más simple."""


class PedidoService:
    """
    Operaciones CRUD de pedidos sobre Strapi.

    Args:
        strapi: Cliente Strapi
        woo_client_factory: Crea el cliente WooCommerce de una plataforma
        list_page_size: Tamaño de página del listado completo
    """

    def __init__(
        self,
        strapi: Optional[StrapiClient] = None,
        woo_client_factory: Callable[[str], WooCommerceClient] = get_woocommerce_client,
        list_page_size: int = 5000,
        scan_page_size: int = 1000,
    ):
        self.strapi = strapi or get_strapi_client()
        self.resolver = PedidoResolver(self.strapi, scan_page_size=scan_page_size)
        self.woo_client_factory = woo_client_factory
        self.list_page_size = list_page_size

    async def _get_list(self, include_hidden: bool) -> Any:
        """
        Obtiene la lista de pedidos degradando la consulta ante errores 400.

        Strapi v5 rechaza publicationState y algunas relaciones no admiten
        populate; se prueba con ambos, sin publicationState y sin populate.
        """
        publication_state = "preview" if include_hidden else "live"
        page_size = {"pagination[pageSize]": self.list_page_size}

        attempts = [
            {"populate": "*", **page_size, "publicationState": publication_state},
            {"populate": "*", **page_size},
            {**page_size, "publicationState": publication_state},
        ]

        for index, params in enumerate(attempts):
            try:
                return await self.strapi.get(PEDIDOS_ENDPOINT, params=params)
            except UpstreamAPIException as e:
                if e.api_response_code != 400 or index == len(attempts) - 1:
                    raise
                logger.warning(f"⚠️ Strapi rechazó el listado ({e.message}), reintentando con params {attempts[index + 1]}")

    async def list_pedidos(self, include_hidden: bool = False, context: Optional[RequestContext] = None) -> Dict[str, Any]:
        """
        Lista todos los pedidos de ambas plataformas.

        Un 400 persistente se propaga como PedidoListError; cualquier otro
        error devuelve una lista vacía con warning para no romper la vista.
        """
        try:
            response = await self._get_list(include_hidden)
        except UpstreamAPIException as e:
            if e.api_response_code == 400:
                raise PedidoListError(
                    f"Error al obtener pedidos: {e.message or 'Bad Request'}",
                    api_response_code=400,
                    endpoint=PEDIDOS_ENDPOINT,
                ) from e
            logger.error(f"❌ Error al obtener pedidos: {e.message}")
            return {"success": True, "data": [], "warning": f"No se pudieron cargar los pedidos: {e.message}"}

        pedidos = unwrap_list(response)
        if not pedidos and isinstance(response, dict) and "data" not in response and response:
            pedidos = [response]

        por_plataforma = count_by_platform(pedidos)
        logger.info(f"✅ {len(pedidos)} pedidos obtenidos. Por plataforma: {por_plataforma}")
        total = get_meta_total(response)
        if total is not None and total > len(pedidos):
            logger.warning(f"⚠️ Strapi informa {total} pedidos pero solo se obtuvieron {len(pedidos)} (límite de página)")

        log_activity(
            "ver",
            "pedidos",
            create_log_description("ver", "pedidos", None, f"{len(pedidos)} pedidos"),
            context=context,
            metadata={"cantidad": len(pedidos), "porPlataforma": por_plataforma},
        )

        return {"success": True, "data": pedidos}

    async def get_pedido(self, identifier: str, context: Optional[RequestContext] = None) -> Dict[str, Any]:
        """
        Obtiene un pedido por documentId, número de pedido o id de WooCommerce.

        Raises:
            NotFoundException: Si ninguna estrategia de búsqueda lo encuentra
        """
        resolved = await self.resolver.find_for_read(identifier)
        if not resolved:
            raise NotFoundException("Pedido no encontrado", identifier=identifier)

        if resolved.strategy == "directo":
            log_activity(
                "ver",
                "pedido",
                create_log_description("ver", "pedido", resolved.numero_pedido or identifier),
                context=context,
                entidad_id=identifier,
            )

        return {"success": True, "data": resolved.entity}

    async def create_pedido(self, body: Dict[str, Any], context: Optional[RequestContext] = None) -> Dict[str, Any]:
        """
        Crea un pedido en Strapi.

        Strapi sincroniza con WooCommerce vía afterCreate salvo para la
        plataforma "otros".

        Raises:
            ValidationException: Si el body no es válido
            StrapiAPIException: Si Strapi rechaza el pedido
        """
        platform = validate_create_body(body)
        pedido = build_create_payload(body, platform)
        numero_pedido = pedido["numero_pedido"]

        logger.info(f"📨 Creando pedido #{numero_pedido} en Strapi ({platform}, {len(pedido['items'])} items)")
        try:
            response = await self.strapi.post(PEDIDOS_ENDPOINT, data={"data": pedido})
        except UpstreamAPIException as e:
            logger.error(f"❌ Error al crear pedido #{numero_pedido} en Strapi ({e.api_response_code}): {e.message}")
            raise

        strapi_data = response.get("data", response) if isinstance(response, dict) else {}
        document_id = (strapi_data or {}).get("documentId") if isinstance(strapi_data, dict) else None
        if not document_id:
            logger.error(f"❌ Strapi no devolvió documentId al crear el pedido #{numero_pedido}: {response}")
            raise AppException("No se pudo obtener el documentId de Strapi", error_code=ErrorCode.STRAPI_API_ERROR)

        saved_platform = _saved_platform(response)
        if saved_platform != platform and platform != "otros":
            logger.warning(
                f"⚠️ originPlatform no coincide para pedido #{numero_pedido}: enviado {platform}, guardado {saved_platform}"
            )

        log_activity(
            "crear",
            "pedido",
            create_log_description(
                "crear",
                "pedido",
                numero_pedido,
                f"Pedido #{numero_pedido} desde {platform} - Strapi sincronizará con WooCommerce automáticamente",
            ),
            context=context,
            entidad_id=document_id,
            datos_nuevos={"numero_pedido": numero_pedido, "originPlatform": platform, "estado": pedido["estado"]},
            metadata={"originPlatform": platform, "total": pedido["total"], "sincronizacionAutomatica": True},
        )

        logger.info(f"✅ Pedido #{numero_pedido} creado en Strapi ({document_id})")

        if platform == "otros":
            message = "Pedido creado exitosamente en Strapi (originPlatform: otros - no se sincronizará con WooCommerce)"
        else:
            message = (
                f"Pedido creado exitosamente en Strapi. Strapi sincronizará automáticamente con "
                f"WooCommerce ({platform}) mediante el lifecycle afterCreate."
            )

        return {"success": True, "data": {"strapi": strapi_data}, "message": message}

    async def update_pedido(
        self, identifier: str, body: Dict[str, Any], context: Optional[RequestContext] = None
    ) -> Dict[str, Any]:
        """
        Actualiza un pedido solo en Strapi; afterUpdate sincroniza con WooCommerce.

        Raises:
            NotFoundException: Si el pedido no existe
            ValidationException: Si originPlatform no es válido
        """
        resolved = await self.resolver.find_for_update(identifier)
        if not resolved:
            raise NotFoundException(
                f"Pedido no encontrado con ID: {identifier}. Verifica que el pedido exista en Strapi.",
                identifier=identifier,
            )

        body_platform = body.get("originPlatform") or body.get("origin_platform")
        validate_platform(body_platform)
        origin_platform = resolve_platform(body_platform, get_origin_platform(resolved.entity))

        payload, solo_estado = build_update_payload(body, resolved.entity)
        if not payload:
            return {"success": True, "message": "No hay campos para actualizar", "data": {}}

        logger.info(
            f"📨 Actualizando pedido {resolved.document_id} en Strapi "
            f"(campos: {sorted(payload)}, solo estado: {solo_estado})"
        )
        try:
            response = await self.strapi.put(f"{PEDIDOS_ENDPOINT}/{resolved.document_id}", data={"data": payload})
        except UpstreamAPIException as e:
            logger.error(f"❌ Error al actualizar pedido {resolved.document_id} en Strapi: {e.message}")
            raise

        saved_platform = _saved_platform(response)
        if saved_platform != origin_platform and origin_platform != "otros":
            logger.warning(
                f"⚠️ originPlatform no coincide para pedido {resolved.document_id}: "
                f"esperado {origin_platform}, guardado {saved_platform}"
            )

        previous = resolved.data
        accion, detalle = self._describe_update(body, payload, previous)
        log_activity(
            accion,
            "pedido",
            create_log_description(accion, "pedido", resolved.numero_pedido or identifier, detalle),
            context=context,
            entidad_id=resolved.document_id,
            datos_anteriores={"estado": previous.get("estado"), "publishedAt": previous.get("publishedAt")},
            datos_nuevos=payload,
            metadata={"originPlatform": origin_platform, "sincronizacionAutomatica": True},
        )

        strapi_data = response.get("data", response) if isinstance(response, dict) else response
        return {
            "success": True,
            "data": {"strapi": strapi_data},
            "message": (
                f"Pedido actualizado exitosamente en Strapi. Strapi sincronizará automáticamente con "
                f"WooCommerce ({origin_platform}) mediante el lifecycle afterUpdate."
            ),
        }

    @staticmethod
    def _describe_update(body: Dict[str, Any], payload: Dict[str, Any], previous: Dict[str, Any]):
        """Acción de log y detalle según qué cambió."""
        if "publishedAt" in body and body["publishedAt"] is None:
            return "ocultar", "Pedido ocultado"
        if body.get("publishedAt") is not None:
            return "mostrar", "Pedido mostrado"
        if "estado" in body:
            anterior = previous.get("estado") or "desconocido"
            nuevo = payload.get("estado") or body["estado"]
            return (
                "cambiar_estado",
                f"Estado: {anterior} → {nuevo} - Strapi sincronizará con WooCommerce automáticamente",
            )
        return "actualizar", "Datos actualizados - Strapi sincronizará con WooCommerce automáticamente"

    async def delete_pedido(self, identifier: str, context: Optional[RequestContext] = None) -> Dict[str, Any]:
        """
        Elimina un pedido de WooCommerce (si está vinculado) y de Strapi.

        El borrado en WooCommerce no es crítico: si falla se registra y se
        continúa con Strapi.
        """
        target = await self.resolver.resolve_for_delete(identifier)

        woo_deleted = False
        if target.woocommerce_id and target.origin_platform != "otros":
            try:
                woo_client = self.woo_client_factory(target.origin_platform)
                await woo_client.delete_order(target.woocommerce_id, force=True)
                woo_deleted = True
                logger.info(f"✅ Pedido {target.woocommerce_id} eliminado de WooCommerce ({target.origin_platform})")
            except AppException as e:
                logger.error(f"⚠️ Error al eliminar pedido {target.woocommerce_id} en WooCommerce (no crítico): {e.message}")

        strapi_response = await self.strapi.delete(f"{PEDIDOS_ENDPOINT}/{target.document_id}")
        logger.info(f"✅ Pedido {target.document_id} eliminado de Strapi")

        data = get_attrs(target.entity)
        numero_pedido = data.get("numero_pedido") or data.get("woocommerce_id") or identifier
        destino = "de WooCommerce y Strapi" if woo_deleted else "de Strapi"
        log_activity(
            "eliminar",
            "pedido",
            create_log_description("eliminar", "pedido", numero_pedido, f"Pedido #{numero_pedido} eliminado {destino}"),
            context=context,
            entidad_id=target.document_id,
            datos_anteriores=(
                {"numero_pedido": numero_pedido, "originPlatform": target.origin_platform} if target.entity else None
            ),
            metadata={"wooCommerceDeleted": woo_deleted, "originPlatform": target.origin_platform},
        )

        return {
            "success": True,
            "message": "Pedido eliminado exitosamente" + (" en WooCommerce y Strapi" if woo_deleted else " en Strapi"),
            "data": strapi_response or {"deleted": True},
        }


_pedido_service: Optional[PedidoService] = None


def get_pedido_service() -> PedidoService:
    """Instancia compartida del servicio de pedidos."""
    global _pedido_service
    if _pedido_service is None:
        settings = get_settings()
        _pedido_service = PedidoService(
            list_page_size=settings.STRAPI_LIST_PAGE_SIZE,
            scan_page_size=settings.STRAPI_FULL_SCAN_PAGE_SIZE,
        )
    return _pedido_service
