"""Fixtures compartidas de tests."""

import os

# Antes de importar app.*: la configuración se cachea en el primer get_settings()
os.environ.setdefault("STRAPI_API_TOKEN", "test-token")
os.environ["ENABLE_ACTIVITY_LOG"] = "false"
os.environ.setdefault("LOG_FILE_PATH", "")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402


@pytest.fixture
def strapi():
    """Cliente Strapi simulado (get/post/put/delete asíncronos)."""
    client = MagicMock()
    client.is_configured = True
    client.get = AsyncMock()
    client.post = AsyncMock()
    client.put = AsyncMock()
    client.delete = AsyncMock()
    return client


@pytest.fixture
def woo_client():
    """Cliente WooCommerce simulado."""
    client = MagicMock()
    client.platform = "woo_moraleja"
    client.get_order = AsyncMock()
    client.search_orders = AsyncMock(return_value=[])
    client.update_order = AsyncMock()
    client.delete_order = AsyncMock()
    return client
