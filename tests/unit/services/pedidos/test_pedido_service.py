"""Tests unitarios para PedidoService (CRUD de pedidos sobre Strapi)."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from app.services.pedidos.pedido_service import (
    PedidoListError,
    PedidoService,
    count_by_platform,
    get_origin_platform,
)
from app.utils.error_handler import (
    AppException,
    CommerceAPIException,
    NotFoundException,
    StrapiAPIException,
    ValidationException,
)


def _item():
    return {"producto_id": 10, "nombre": "Libro", "cantidad": 1, "precio_unitario": 9990, "total": 9990}


@pytest.fixture
def service(strapi, woo_client):
    return PedidoService(strapi=strapi, woo_client_factory=MagicMock(return_value=woo_client))


class TestPlatformHelpers:
    def test_get_origin_platform_from_external_ids(self):
        entity = {"attributes": {"externalIds": {"originPlatform": "woo_escolar"}}}
        assert get_origin_platform(entity) == "woo_escolar"

    def test_count_by_platform(self):
        pedidos = [{"originPlatform": "woo_moraleja"}, {"originPlatform": "woo_moraleja"}, {"id": 3}]
        assert count_by_platform(pedidos) == {"woo_moraleja": 2, "desconocida": 1}


class TestListPedidos:
    @pytest.mark.asyncio
    async def test_live_publication_state_by_default(self, service, strapi):
        strapi.get.return_value = {"data": [{"id": 1}, {"id": 2}], "meta": {}}

        result = await service.list_pedidos()

        assert result == {"success": True, "data": [{"id": 1}, {"id": 2}]}
        assert strapi.get.call_args.kwargs["params"]["publicationState"] == "live"

    @pytest.mark.asyncio
    async def test_include_hidden_uses_preview(self, service, strapi):
        strapi.get.return_value = {"data": []}

        await service.list_pedidos(include_hidden=True)

        assert strapi.get.call_args.kwargs["params"]["publicationState"] == "preview"

    @pytest.mark.asyncio
    async def test_degrades_query_on_400(self, service, strapi):
        """Debe reintentar sin publicationState y luego sin populate."""
        bad_request = StrapiAPIException("Invalid key publicationState", api_response_code=400)
        strapi.get.side_effect = [bad_request, bad_request, {"data": [{"id": 1}]}]

        result = await service.list_pedidos()

        assert result["data"] == [{"id": 1}]
        second, third = strapi.get.call_args_list[1], strapi.get.call_args_list[2]
        assert "publicationState" not in second.kwargs["params"]
        assert "populate" not in third.kwargs["params"]

    @pytest.mark.asyncio
    async def test_persistent_400_raises(self, service, strapi):
        strapi.get.side_effect = StrapiAPIException("Bad Request", api_response_code=400)

        with pytest.raises(PedidoListError) as exc_info:
            await service.list_pedidos()

        assert exc_info.value.message == "Error al obtener pedidos: Bad Request"
        assert strapi.get.call_count == 3

    @pytest.mark.asyncio
    async def test_other_errors_return_empty_list_with_warning(self, service, strapi):
        strapi.get.side_effect = StrapiAPIException("Service Unavailable", api_response_code=503)

        result = await service.list_pedidos()

        assert result["success"] is True
        assert result["data"] == []
        assert "Service Unavailable" in result["warning"]

    @pytest.mark.asyncio
    async def test_warns_when_page_is_truncated(self, service, strapi, caplog):
        """Debe advertir cuando Strapi informa más pedidos de los obtenidos."""
        strapi.get.return_value = {"data": [{"id": 1}], "meta": {"pagination": {"total": 7000}}}

        with caplog.at_level(logging.WARNING, logger="app.services.pedidos.pedido_service"):
            result = await service.list_pedidos()

        assert result["data"] == [{"id": 1}]
        assert "Strapi informa 7000 pedidos pero solo se obtuvieron 1" in caplog.text


class TestGetPedido:
    @pytest.mark.asyncio
    async def test_returns_entity(self, service, strapi):
        strapi.get.return_value = {"data": [{"id": 1, "documentId": "abc", "numero_pedido": "100"}]}

        result = await service.get_pedido("abc")

        assert result == {"success": True, "data": {"id": 1, "documentId": "abc", "numero_pedido": "100"}}

    @pytest.mark.asyncio
    async def test_not_found(self, service, strapi):
        strapi.get.return_value = {"data": []}

        with pytest.raises(NotFoundException, match="Pedido no encontrado"):
            await service.get_pedido("nada")


class TestCreatePedido:
    @pytest.mark.asyncio
    async def test_creates_in_strapi(self, service, strapi):
        strapi.post.return_value = {"data": {"id": 9, "documentId": "new1", "originPlatform": "woo_moraleja"}}

        with patch("app.services.pedidos.pedido_service.log_activity") as mock_log:
            result = await service.create_pedido({"numero_pedido": "7001", "items": [_item()]})

        assert result["success"] is True
        assert result["data"]["strapi"]["documentId"] == "new1"
        assert "afterCreate" in result["message"]

        sent = strapi.post.call_args.kwargs["data"]["data"]
        assert sent["numero_pedido"] == "7001"
        assert sent["originPlatform"] == "woo_moraleja"
        assert sent["rawWooData"]["line_items"][0]["product_id"] == 10

        assert mock_log.call_args.args[:2] == ("crear", "pedido")

    @pytest.mark.asyncio
    async def test_otros_message(self, service, strapi):
        strapi.post.return_value = {"data": {"id": 9, "documentId": "new2", "originPlatform": "otros"}}

        result = await service.create_pedido({"numero_pedido": "X", "items": [_item()], "originPlatform": "otros"})

        assert "no se sincronizará con WooCommerce" in result["message"]
        assert strapi.post.call_args.kwargs["data"]["data"]["rawWooData"] is None

    @pytest.mark.asyncio
    async def test_validation_error_does_not_call_strapi(self, service, strapi):
        with pytest.raises(ValidationException):
            await service.create_pedido({"items": [_item()]})
        strapi.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_document_id(self, service, strapi):
        strapi.post.return_value = {"data": {}}

        with pytest.raises(AppException, match="documentId"):
            await service.create_pedido({"numero_pedido": "1", "items": [_item()]})


class TestUpdatePedido:
    @pytest.mark.asyncio
    async def test_status_update_logs_cambiar_estado(self, service, strapi):
        strapi.get.return_value = {
            "data": {"id": 1, "documentId": "docA", "estado": "pending", "origen": "Web", "numero_pedido": "55"}
        }
        strapi.put.return_value = {"data": {"documentId": "docA", "originPlatform": "woo_moraleja"}}

        with patch("app.services.pedidos.pedido_service.log_activity") as mock_log:
            result = await service.update_pedido("docA", {"estado": "completado"})

        assert result["success"] is True
        assert "afterUpdate" in result["message"]
        assert strapi.put.call_args.args[0] == "/api/pedidos/docA"
        assert strapi.put.call_args.kwargs["data"] == {"data": {"origen": "web", "estado": "completed"}}

        accion, entidad, descripcion = mock_log.call_args.args
        assert (accion, entidad) == ("cambiar_estado", "pedido")
        assert "pending → completed" in descripcion

    @pytest.mark.asyncio
    async def test_hide_pedido(self, service, strapi):
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA"}}
        strapi.put.return_value = {"data": {"documentId": "docA"}}

        with patch("app.services.pedidos.pedido_service.log_activity") as mock_log:
            await service.update_pedido("docA", {"publishedAt": None})

        assert mock_log.call_args.args[0] == "ocultar"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stored, expected", [("woo_escolar", "woo_escolar"), ("shopify", "woo_moraleja"), (None, "woo_moraleja")]
    )
    async def test_platform_from_stored_pedido(self, service, strapi, stored, expected):
        """Debe usar la plataforma guardada solo si es válida."""
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA", "originPlatform": stored}}
        strapi.put.return_value = {"data": {"documentId": "docA", "originPlatform": stored}}

        with patch("app.services.pedidos.pedido_service.log_activity") as mock_log:
            result = await service.update_pedido("docA", {"estado": "completed"})

        assert mock_log.call_args.kwargs["metadata"]["originPlatform"] == expected
        assert f"WooCommerce ({expected})" in result["message"]

    @pytest.mark.asyncio
    async def test_not_found(self, service, strapi):
        strapi.get.return_value = {"data": []}

        with pytest.raises(NotFoundException, match="Pedido no encontrado con ID: 999"):
            await service.update_pedido("999", {"estado": "pending"})

    @pytest.mark.asyncio
    async def test_invalid_platform(self, service, strapi):
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA"}}

        with pytest.raises(ValidationException, match="originPlatform debe ser uno de"):
            await service.update_pedido("docA", {"originPlatform": "amazon"})
        strapi.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_payload(self, service, strapi):
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA"}}

        result = await service.update_pedido("docA", {"campo_desconocido": 1})

        assert result["message"] == "No hay campos para actualizar"
        strapi.put.assert_not_called()


class TestDeletePedido:
    @pytest.mark.asyncio
    async def test_deletes_in_woocommerce_and_strapi(self, service, strapi, woo_client):
        strapi.get.return_value = {
            "data": {"id": 1, "documentId": "docA", "woocommerce_id": 321, "originPlatform": "woo_escolar"}
        }
        strapi.delete.return_value = None

        result = await service.delete_pedido("docA")

        service.woo_client_factory.assert_called_once_with("woo_escolar")
        woo_client.delete_order.assert_awaited_once_with(321, force=True)
        strapi.delete.assert_awaited_once_with("/api/pedidos/docA")
        assert result == {
            "success": True,
            "message": "Pedido eliminado exitosamente en WooCommerce y Strapi",
            "data": {"deleted": True},
        }

    @pytest.mark.asyncio
    async def test_woocommerce_failure_is_not_critical(self, service, strapi, woo_client):
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA", "woocommerce_id": 321}}
        woo_client.delete_order.side_effect = CommerceAPIException("Not Found", platform="woo_moraleja")
        strapi.delete.return_value = {"data": {"documentId": "docA"}}

        result = await service.delete_pedido("docA")

        assert result["message"] == "Pedido eliminado exitosamente en Strapi"
        assert result["data"] == {"data": {"documentId": "docA"}}

    @pytest.mark.asyncio
    async def test_otros_skips_woocommerce(self, service, strapi, woo_client):
        strapi.get.return_value = {"data": {"id": 1, "documentId": "docA", "woocommerce_id": 5, "originPlatform": "otros"}}

        await service.delete_pedido("docA")

        woo_client.delete_order.assert_not_called()
        strapi.delete.assert_awaited_once()
