"""Tests unitarios para la sincronización puntual WooCommerce → Strapi."""

from unittest.mock import MagicMock

import pytest

from app.services.pedidos.sync_specific import SpecificOrderSync
from app.utils.error_handler import CommerceAPIException, StrapiAPIException, ValidationException

WOO_ORDER = {
    "id": 4501,
    "number": "4501",
    "status": "completed",
    "total": "15990",
    "line_items": [],
}


@pytest.fixture
def sync(strapi, woo_client):
    return SpecificOrderSync(strapi=strapi, woo_client_factory=MagicMock(return_value=woo_client))


class TestSyncOrder:
    @pytest.mark.asyncio
    async def test_creates_when_not_in_strapi(self, sync, strapi, woo_client):
        woo_client.search_orders.return_value = [{"id": 1, "number": "99"}, WOO_ORDER]
        strapi.get.return_value = {"data": []}
        strapi.post.return_value = {"data": {"id": 10, "documentId": "wo1"}}

        result = await sync.sync_order("4501", "woo_moraleja")

        assert result == {
            "success": True,
            "orderNumber": "4501",
            "platform": "woo_moraleja",
            "action": "created",
            "documentId": "wo1",
        }
        assert strapi.post.call_args.args[0] == "/api/wo-pedidos"
        assert strapi.post.call_args.kwargs["data"]["data"]["wooId"] == 4501

    @pytest.mark.asyncio
    async def test_updates_existing_of_same_platform(self, sync, strapi, woo_client):
        """Debe actualizar solo el pedido de la misma plataforma."""
        woo_client.search_orders.return_value = [WOO_ORDER]
        strapi.get.return_value = {
            "data": [
                {"id": 1, "documentId": "otro", "originPlatform": "woo_escolar"},
                {"id": 2, "documentId": "mismo", "externalIds": {"originPlatform": "woo_moraleja"}},
            ]
        }

        result = await sync.sync_order("4501", "woo_moraleja")

        assert result["action"] == "updated"
        assert result["documentId"] == "mismo"
        assert strapi.put.call_args.args[0] == "/api/wo-pedidos/mismo"
        params = strapi.get.call_args.kwargs["params"]
        assert ("publicationState", "preview") in params
        assert ("filters[$or][1][wooId][$eq]", "4501") in params

    @pytest.mark.asyncio
    async def test_not_found_in_woocommerce(self, sync, woo_client):
        woo_client.search_orders.return_value = []

        result = await sync.sync_order("123", "woo_escolar")

        assert result["success"] is False
        assert result["error"] == "Pedido #123 no encontrado en WooCommerce woo_escolar"

    @pytest.mark.asyncio
    async def test_woocommerce_error_counts_as_not_found(self, sync, woo_client):
        woo_client.search_orders.side_effect = CommerceAPIException("timeout", platform="woo_moraleja")

        result = await sync.sync_order("123", "woo_moraleja")

        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_strapi_error(self, sync, strapi, woo_client):
        woo_client.search_orders.return_value = [WOO_ORDER]
        strapi.get.return_value = {"data": []}
        strapi.post.side_effect = StrapiAPIException("ValidationError", api_response_code=400)

        result = await sync.sync_order("4501", "woo_moraleja")

        assert result["success"] is False
        assert result["error"] == "ValidationError"


class TestSyncOrders:
    @pytest.mark.asyncio
    async def test_requires_order_numbers(self, sync):
        with pytest.raises(ValidationException, match="orderNumbers"):
            await sync.sync_orders([])

    @pytest.mark.asyncio
    async def test_stops_at_first_platform_that_succeeds(self, sync, strapi, woo_client):
        woo_client.search_orders.return_value = [WOO_ORDER]
        strapi.get.return_value = {"data": []}
        strapi.post.return_value = {"data": {"documentId": "wo1"}}

        result = await sync.sync_orders([4501])

        assert len(result["results"]) == 1
        assert result["results"][0]["platform"] == "woo_moraleja"
        assert result["summary"] == {"total": 1, "success": 1, "errors": 0}
        assert result["message"] == "Sincronización completada: 1 exitosos, 0 con errores"

    @pytest.mark.asyncio
    async def test_tries_every_platform_on_failure(self, sync, woo_client):
        woo_client.search_orders.return_value = []

        result = await sync.sync_orders(["77"])

        assert [r["platform"] for r in result["results"]] == ["woo_moraleja", "woo_escolar"]
        assert result["summary"] == {"total": 1, "success": 0, "errors": 2}

    @pytest.mark.asyncio
    async def test_ignores_unknown_platforms(self, sync, woo_client):
        woo_client.search_orders.return_value = []

        result = await sync.sync_orders(["77"], platforms=["otros", "woo_escolar"])

        assert [r["platform"] for r in result["results"]] == ["woo_escolar"]
