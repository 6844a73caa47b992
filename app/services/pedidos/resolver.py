"""PedidoResolver - búsqueda de pedidos en Strapi por identificador ambiguo."""

import logging
from dataclasses import dataclass
from typing import Any

from app.db.strapi_client import StrapiClient
from app.services.pedidos.normalizers import resolve_platform
from app.utils.error_handler import UpstreamAPIException
from app.utils.strapi_utils import (
    build_filter_params,
    get_attrs,
    get_document_id,
    is_numeric_id,
    parse_leading_int,
    unwrap_list,
    unwrap_one,
)

logger = logging.getLogger(__name__)

PEDIDOS_ENDPOINT = "/api/pedidos"


@dataclass
class ResolvedPedido:
    """
    Pedido encontrado en Strapi.

    Attributes:
        document_id: documentId (o id) con el que se escribe en Strapi
        entity: Entidad tal como la devolvió Strapi
        strategy: Estrategia que lo encontró (documentId, numero_pedido, ...)
    """

    document_id: str
    entity: dict[str, Any]
    strategy: str

    @property
    def data(self) -> dict[str, Any]:
        return get_attrs(self.entity)

    @property
    def numero_pedido(self) -> Any:
        return self.data.get("numero_pedido") or self.data.get("woocommerce_id")


@dataclass
class DeleteTarget:
    """Datos necesarios para eliminar un pedido en Strapi y WooCommerce."""

    document_id: str
    woocommerce_id: Any = None
    origin_platform: str = "woo_moraleja"
    entity: dict[str, Any] | None = None


def _has_identity(entity: dict[str, Any] | None) -> bool:
    return bool(entity) and bool(entity.get("id") or entity.get("documentId"))


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)


def matches_identifier(entity: dict[str, Any], identifier: str) -> bool:
    """
    True si la entidad corresponde al identificador por id, documentId,
    wooId/woo_id o numero_pedido.

    Compara como texto y, si el identificador empieza con dígitos, también
    como número.
    """
    data = get_attrs(entity)

    p_id = _as_text(data.get("id")) or _as_text(entity.get("id"))
    p_doc_id = _as_text(data.get("documentId")) or _as_text(entity.get("documentId"))
    p_woo_id = _as_text(data.get("wooId")) or _as_text(data.get("woo_id"))
    p_numero = _as_text(data.get("numero_pedido")) or _as_text(data.get("numeroPedido"))

    id_str = str(identifier)
    if id_str in (p_id, p_doc_id, p_woo_id, p_numero):
        return True

    id_num = parse_leading_int(id_str)
    if id_num is None:
        return False

    return (
        parse_leading_int(data.get("id")) == id_num
        or parse_leading_int(entity.get("id")) == id_num
        or (isinstance(data.get("wooId"), int) and data["wooId"] == id_num)
        or parse_leading_int(p_numero or "0") == id_num
    )


class PedidoResolver:
    """
    Resuelve un pedido a partir de un identificador de tipo desconocido.

    El identificador puede ser un documentId de Strapi, un número de pedido
    o un id de WooCommerce; cada búsqueda prueba estrategias en orden y se
    detiene en la primera coincidencia.
    """

    def __init__(self, strapi: StrapiClient, endpoint: str = PEDIDOS_ENDPOINT, scan_page_size: int = 1000):
        self.strapi = strapi
        self.endpoint = endpoint
        self.scan_page_size = scan_page_size

    async def _find_by_filter(self, field: str, value: str) -> dict[str, Any] | None:
        try:
            response = await self.strapi.get(self.endpoint, params=build_filter_params(field, value))
        except UpstreamAPIException as e:
            # Strapi responde 500 cuando el campo no admite el filtro
            if e.api_response_code != 500:
                logger.warning(f"⚠️ Error al buscar pedido por {field}={value}: {e.message}")
            return None

        pedido = unwrap_one(response)
        return pedido if _has_identity(pedido) else None

    async def _fetch_direct(self, identifier: str, quiet: bool = False) -> dict[str, Any] | None:
        try:
            response = await self.strapi.get(f"{self.endpoint}/{identifier}", params={"populate": "*"})
        except UpstreamAPIException as e:
            if not quiet:
                logger.warning(f"⚠️ Pedido {identifier} no disponible por endpoint directo: {e.message}")
            return None

        pedido = unwrap_one(response)
        return pedido if _has_identity(pedido) else None

    async def _scan_all(self, identifier: str) -> dict[str, Any] | None:
        try:
            response = await self.strapi.get(
                self.endpoint,
                params={"populate": "*", "pagination[pageSize]": self.scan_page_size},
            )
        except UpstreamAPIException as e:
            logger.warning(f"⚠️ Error al buscar pedido {identifier} en la lista completa: {e.message}")
            return None

        return next((p for p in unwrap_list(response) if matches_identifier(p, identifier)), None)

    def _resolved(self, entity: dict[str, Any], identifier: str, strategy: str) -> ResolvedPedido:
        logger.debug(f"Pedido {identifier} encontrado por {strategy}")
        return ResolvedPedido(
            document_id=get_document_id(entity) or str(identifier),
            entity=entity,
            strategy=strategy,
        )

    async def find_for_read(self, identifier: str) -> ResolvedPedido | None:
        """
        Busca un pedido para lectura.

        Orden: filtro documentId, filtro numero_pedido, filtro woocommerce_id
        (solo ids numéricos), lista completa y por último endpoint directo.

        Returns:
            ResolvedPedido o None si ninguna estrategia lo encuentra
        """
        identifier = str(identifier)
        strategies = [("documentId", "documentId"), ("numero_pedido", "numero_pedido")]
        if parse_leading_int(identifier) is not None:
            strategies.append(("woocommerce_id", "woocommerce_id"))

        for field, strategy in strategies:
            pedido = await self._find_by_filter(field, identifier)
            if pedido:
                return self._resolved(pedido, identifier, strategy)

        pedido = await self._scan_all(identifier)
        if pedido:
            return self._resolved(pedido, identifier, "lista_completa")

        pedido = await self._fetch_direct(identifier)
        if pedido:
            return self._resolved(pedido, identifier, "directo")

        logger.info(f"Pedido {identifier} no encontrado en Strapi")
        return None

    async def find_for_update(self, identifier: str) -> ResolvedPedido | None:
        """
        Busca un pedido para actualizarlo.

        Los ids no numéricos se prueban primero como documentId por endpoint
        directo; luego filtros por documentId, numero_pedido, woocommerce_id
        e id (estos dos solo para ids numéricos) y al final endpoint directo.
        """
        identifier = str(identifier)

        if not is_numeric_id(identifier):
            pedido = await self._fetch_direct(identifier, quiet=True)
            if pedido:
                return self._resolved(pedido, identifier, "directo")

        strategies = ["documentId", "numero_pedido"]
        if parse_leading_int(identifier) is not None:
            strategies += ["woocommerce_id", "id"]

        for field in strategies:
            pedido = await self._find_by_filter(field, identifier)
            if pedido:
                return self._resolved(pedido, identifier, field)

        pedido = await self._fetch_direct(identifier, quiet=True)
        if pedido:
            return self._resolved(pedido, identifier, "directo")

        return None

    async def resolve_for_delete(self, identifier: str) -> DeleteTarget:
        """
        Obtiene documentId, woocommerce_id y plataforma de un pedido a eliminar.

        Si el pedido no se encuentra se usa el identificador recibido como
        documentId, igual que Strapi lo interpretaría en el DELETE.
        """
        identifier = str(identifier)

        if is_numeric_id(identifier):
            pedido = await self._find_by_filter("documentId", identifier)
        else:
            pedido = await self._fetch_direct(identifier)

        if not pedido:
            return DeleteTarget(document_id=identifier)

        data = get_attrs(pedido)
        return DeleteTarget(
            document_id=get_document_id(pedido) or identifier,
            woocommerce_id=data.get("woocommerce_id") or pedido.get("woocommerce_id"),
            origin_platform=resolve_platform(data.get("originPlatform"), pedido.get("originPlatform")),
            entity=pedido,
        )
