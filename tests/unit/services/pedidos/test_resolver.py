"""Tests unitarios para PedidoResolver (búsqueda por identificador ambiguo)."""

import pytest

from app.services.pedidos.resolver import PedidoResolver, matches_identifier
from app.utils.error_handler import StrapiAPIException


def _filter_field(call):
    """Campo filtrado en una llamada a strapi.get, o None si no es un filtro."""
    params = call.kwargs.get("params")
    if isinstance(params, list):
        key = params[0][0]
        return key[len("filters[") : key.index("]")]
    return None


class TestMatchesIdentifier:
    def test_matches_document_id(self):
        assert matches_identifier({"id": 1, "documentId": "abc123"}, "abc123") is True

    def test_matches_numero_pedido_v4(self):
        entity = {"id": 1, "attributes": {"numero_pedido": "5001"}}
        assert matches_identifier(entity, "5001") is True

    def test_matches_numeric_prefix(self):
        """Debe comparar el prefijo numérico contra el id."""
        assert matches_identifier({"id": 42}, "42abc") is True

    def test_no_match(self):
        assert matches_identifier({"id": 1, "documentId": "x", "numero_pedido": "9"}, "zzz") is False


class TestFindForRead:
    @pytest.mark.asyncio
    async def test_found_by_document_id_filter(self, strapi):
        """Debe detenerse en la primera estrategia que encuentra el pedido."""
        strapi.get.return_value = {"data": [{"id": 1, "documentId": "abc"}]}
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_read("abc")

        assert resolved.document_id == "abc"
        assert resolved.strategy == "documentId"
        assert strapi.get.call_count == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_numero_pedido(self, strapi):
        strapi.get.side_effect = [
            {"data": []},
            {"data": [{"id": 7, "documentId": "doc7", "numero_pedido": "5001"}]},
        ]
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_read("5001")

        assert resolved.strategy == "numero_pedido"
        assert resolved.numero_pedido == "5001"

    @pytest.mark.asyncio
    async def test_woocommerce_id_only_for_numeric(self, strapi):
        """No debe filtrar por woocommerce_id cuando el id no empieza con dígitos."""
        strapi.get.return_value = {"data": []}
        resolver = PedidoResolver(strapi)

        result = await resolver.find_for_read("abc")

        assert result is None
        fields = [_filter_field(c) for c in strapi.get.call_args_list]
        assert "woocommerce_id" not in fields
        # documentId, numero_pedido, lista completa y directo
        assert strapi.get.call_count == 4

    @pytest.mark.asyncio
    async def test_full_scan_match(self, strapi):
        strapi.get.side_effect = [
            {"data": []},
            {"data": []},
            {"data": []},
            {"data": [{"id": 1, "documentId": "a"}, {"id": 2, "documentId": "b", "wooId": "777"}]},
        ]
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_read("777")

        assert resolved.strategy == "lista_completa"
        assert resolved.document_id == "b"

    @pytest.mark.asyncio
    async def test_direct_fetch_last(self, strapi):
        strapi.get.side_effect = [
            {"data": []},
            {"data": []},
            {"data": []},
            {"data": {"id": 3, "documentId": "xyz"}},
        ]
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_read("xyz")

        assert resolved.strategy == "directo"
        assert strapi.get.call_args_list[-1].args[0] == "/api/pedidos/xyz"

    @pytest.mark.asyncio
    async def test_filter_errors_do_not_stop_search(self, strapi):
        """Un error 500 en un filtro debe pasar a la siguiente estrategia."""
        strapi.get.side_effect = [
            StrapiAPIException("Internal Server Error", api_response_code=500),
            {"data": [{"id": 9, "documentId": "doc9"}]},
        ]
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_read("abc")

        assert resolved.document_id == "doc9"
        assert resolved.strategy == "numero_pedido"


class TestFindForUpdate:
    @pytest.mark.asyncio
    async def test_non_numeric_tries_direct_first(self, strapi):
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA"}}
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_update("docA")

        assert resolved.strategy == "directo"
        assert strapi.get.call_args.args[0] == "/api/pedidos/docA"

    @pytest.mark.asyncio
    async def test_numeric_uses_filters_in_order(self, strapi):
        strapi.get.side_effect = [
            {"data": []},
            {"data": []},
            {"data": [{"id": 4, "documentId": "doc4", "woocommerce_id": 1234}]},
        ]
        resolver = PedidoResolver(strapi)

        resolved = await resolver.find_for_update("1234")

        assert resolved.strategy == "woocommerce_id"
        fields = [_filter_field(c) for c in strapi.get.call_args_list]
        assert fields == ["documentId", "numero_pedido", "woocommerce_id"]

    @pytest.mark.asyncio
    async def test_not_found(self, strapi):
        strapi.get.side_effect = StrapiAPIException("Not Found", api_response_code=404)
        resolver = PedidoResolver(strapi)

        assert await resolver.find_for_update("1234") is None


class TestResolveForDelete:
    @pytest.mark.asyncio
    async def test_numeric_id_uses_document_id_filter(self, strapi):
        strapi.get.return_value = {
            "data": [{"id": 5, "documentId": "doc5", "woocommerce_id": 991, "originPlatform": "woo_escolar"}]
        }
        resolver = PedidoResolver(strapi)

        target = await resolver.resolve_for_delete("5")

        assert target.document_id == "doc5"
        assert target.woocommerce_id == 991
        assert target.origin_platform == "woo_escolar"
        assert _filter_field(strapi.get.call_args) == "documentId"

    @pytest.mark.asyncio
    async def test_missing_pedido_keeps_identifier(self, strapi):
        strapi.get.side_effect = StrapiAPIException("Not Found", api_response_code=404)
        resolver = PedidoResolver(strapi)

        target = await resolver.resolve_for_delete("docX")

        assert target.document_id == "docX"
        assert target.woocommerce_id is None
        assert target.origin_platform == "woo_moraleja"
