"""Tests unitarios para los clientes HTTP (sin red: se simulan get/put/delete)."""

import hashlib
from unittest.mock import AsyncMock, patch

import pytest

from app.db.base_client import extract_error_message, parse_response_body, parse_retry_after
from app.db.bunny_client import BunnyStreamClient, compute_tus_signature
from app.db.jumpseller_client import JumpSellerClient, unwrap_order, unwrap_orders
from app.db.wearecloud_client import WeareCloudClient, map_wearecloud_order
from app.db import close_all_clients
from app.db.woocommerce_client import (
    WooCommerceClient,
    close_woocommerce_clients,
    create_woocommerce_client,
    get_woocommerce_client,
)
from app.utils.error_handler import CommerceAPIException, ExternalServiceException, ValidationException


class TestResponseHelpers:
    def test_parse_response_body(self):
        assert parse_response_body('{"data": []}') == {"data": []}
        assert parse_response_body("Internal Server Error") == "Internal Server Error"
        assert parse_response_body("  ") is None

    def test_extract_error_message_strapi(self):
        body = {"data": None, "error": {"status": 400, "name": "ValidationError", "message": "Invalid key"}}
        assert extract_error_message(body, "default") == "Invalid key"

    def test_extract_error_message_woocommerce(self):
        body = {"code": "woocommerce_rest_shop_order_invalid_id", "message": "ID inválido."}
        assert extract_error_message(body, "default") == "ID inválido."

    def test_extract_error_message_jumpseller_errors(self):
        assert extract_error_message({"errors": ["status inválido", "falta id"]}, "x") == "status inválido, falta id"

    def test_extract_error_message_default(self):
        assert extract_error_message(None, "HTTP 500: Internal Server Error") == "HTTP 500: Internal Server Error"

    def test_parse_retry_after_seconds(self):
        assert parse_retry_after("5") == 5
        assert parse_retry_after(None) == 2

    def test_parse_retry_after_http_date_uses_default(self):
        """Debe usar el default cuando Retry-After viene como fecha HTTP."""
        assert parse_retry_after("Wed, 21 Oct 2026 07:28:00 GMT") == 2
        assert parse_retry_after("abc", default=4) == 4


class TestWooCommerceClient:
    def test_otros_has_no_woocommerce(self):
        with pytest.raises(ValidationException):
            create_woocommerce_client("otros")

    def test_defaults_to_escolar(self):
        assert create_woocommerce_client().platform == "woo_escolar"
        assert create_woocommerce_client("desconocida").platform == "woo_escolar"

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = WooCommerceClient("woo_moraleja", None, None, None)
        with pytest.raises(CommerceAPIException) as exc_info:
            await client.get_order(1)
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_delete_order_forces_delete(self):
        client = WooCommerceClient("woo_moraleja", "https://tienda.cl/", "ck", "cs")
        with patch.object(client, "delete", new=AsyncMock(return_value={"id": 5})) as mock_delete:
            assert await client.delete_order(5) == {"id": 5}
        mock_delete.assert_awaited_once_with("orders/5", params={"force": "true"})
        assert client.base_url == "https://tienda.cl/wp-json/wc/v3"

    @pytest.mark.asyncio
    async def test_search_orders_non_list(self):
        client = WooCommerceClient("woo_escolar", "https://escolar.cl", "ck", "cs")
        with patch.object(client, "get", new=AsyncMock(return_value={"code": "x"})):
            assert await client.search_orders("100") == []


class TestWooCommerceClientCache:
    @pytest.mark.asyncio
    async def test_reuses_client_per_platform(self):
        """Debe reutilizar un cliente (y su sesión HTTP) por tienda."""
        try:
            escolar = get_woocommerce_client("woo_escolar")

            assert get_woocommerce_client() is escolar
            assert get_woocommerce_client("desconocida") is escolar
            assert get_woocommerce_client("woo_moraleja") is not escolar
        finally:
            await close_woocommerce_clients()

    @pytest.mark.asyncio
    async def test_close_releases_sessions(self):
        """Debe cerrar las sesiones abiertas y crear un cliente nuevo después del cierre."""
        client = get_woocommerce_client("woo_moraleja")
        await client.initialize()
        session = client.session

        errors = await close_all_clients()

        assert errors == []
        assert session.closed
        assert get_woocommerce_client("woo_moraleja") is not client
        await close_woocommerce_clients()


class TestJumpSellerClient:
    def test_unwrap_orders_formats(self):
        assert unwrap_orders([{"order": {"id": 1}}, {"id": 2}]) == [{"id": 1}, {"id": 2}]
        assert unwrap_orders({"orders": [{"order": {"id": 3}}]}) == [{"id": 3}]
        assert unwrap_orders({"order": {"id": 4}}) == [{"id": 4}]
        assert unwrap_orders("nada") == []

    def test_unwrap_order(self):
        assert unwrap_order({"order": {"id": 1}}) == {"id": 1}
        assert unwrap_order({"id": 2}) == {"id": 2}

    @pytest.mark.asyncio
    async def test_get_orders_skips_empty_filters(self):
        client = JumpSellerClient(api_key="key", api_secret="secret")
        with patch.object(client, "get", new=AsyncMock(return_value=[{"order": {"id": 1}}])) as mock_get:
            orders = await client.get_orders(limit=50, status="Paid")
        assert orders == [{"id": 1}]
        mock_get.assert_awaited_once_with("orders", params={"limit": "50", "status": "Paid"})

    @pytest.mark.asyncio
    async def test_update_order_wraps_payload(self):
        client = JumpSellerClient(api_key="key", api_secret="secret")
        with patch.object(client, "put", new=AsyncMock(return_value={"order": {"id": 9}})) as mock_put:
            assert await client.update_order(9, {"status": "Paid"}) == {"id": 9}
        mock_put.assert_awaited_once_with("orders/9.json", data={"order": {"status": "Paid"}}, max_retries=1)

    @pytest.mark.asyncio
    async def test_requires_credentials(self):
        client = JumpSellerClient(api_key="key", api_secret=None)
        client.api_secret = None
        with pytest.raises(CommerceAPIException, match="API Secret"):
            await client.get_orders()


class TestWeareCloudClient:
    def test_map_order(self):
        order = map_wearecloud_order(
            {
                "warecloud_id": 77,
                "pedido_ecommerce": "1050",
                "estado": "preparando",
                "cliente": {"email": "a@b.cl", "nombre": "Ana"},
                "total": "9990",
            }
        )
        assert order["id"] == "77"
        assert order["order_number"] == "1050"
        assert order["status"] == "preparando"
        assert order["customer"] == {"email": "a@b.cl", "name": "Ana", "phone": ""}
        assert order["url"] == "https://ecommerce.wareclouds.app/orders/77"

    @pytest.mark.asyncio
    async def test_get_orders_returns_empty_on_error(self):
        client = WeareCloudClient(service_url="http://wc.local", api_key="k")
        error = ExternalServiceException("Service Unavailable", service="wearecloud", api_response_code=503)
        with patch.object(client, "get", new=AsyncMock(side_effect=error)):
            assert await client.get_orders() == []

    @pytest.mark.asyncio
    async def test_get_orders_maps_list(self):
        client = WeareCloudClient(service_url="http://wc.local", api_key="k")
        with patch.object(client, "get", new=AsyncMock(return_value={"orders": [{"warecloud_id": 1}, "basura"]})):
            orders = await client.get_orders()
        assert [o["id"] for o in orders] == ["1"]


class TestBunnyStreamClient:
    def test_signature(self):
        expected = hashlib.sha256(b"123secret1700003600abc-guid").hexdigest()
        assert compute_tus_signature("123", "secret", 1700003600, "abc-guid") == expected

    def test_sign_upload(self):
        client = BunnyStreamClient(library_id="123", api_key="secret")
        client.expiration_seconds = 3600

        upload = client.sign_upload("abc-guid", now=1700000000)

        assert upload["expires"] == 1700003600
        assert upload["videoId"] == "abc-guid"
        assert upload["libraryId"] == "123"
        assert upload["uploadUrl"].endswith("/tusupload")
        assert upload["signature"] == compute_tus_signature("123", "secret", 1700003600, "abc-guid")

    @pytest.mark.asyncio
    async def test_create_video_requires_configuration(self):
        client = BunnyStreamClient(library_id=None, api_key=None)
        client.library_id = None
        client.api_key = None
        with pytest.raises(ExternalServiceException) as exc_info:
            await client.create_video("Clase 1")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_create_video(self):
        client = BunnyStreamClient(library_id="123", api_key="secret")
        client.collection_id = None
        with patch.object(client, "post", new=AsyncMock(return_value={"guid": "g-1"})) as mock_post:
            video = await client.create_video("Clase 1")
        assert video == {"guid": "g-1"}
        mock_post.assert_awaited_once_with("library/123/videos", data={"title": "Clase 1"})
