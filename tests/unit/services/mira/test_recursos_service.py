"""Tests unitarios para recursos MIRA y subida de videos."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services.mira.recursos_service import RecursosService, build_recursos_params
from app.utils.error_handler import ExternalServiceException, ValidationException


@pytest.fixture
def bunny():
    client = MagicMock()
    client.create_video = AsyncMock(return_value={"guid": "g-1"})
    client.sign_upload = MagicMock(return_value={"videoId": "g-1", "signature": "sig"})
    return client


@pytest.fixture
def service(strapi, bunny):
    return RecursosService(strapi=strapi, bunny=bunny)


class TestBuildRecursosParams:
    def test_defaults(self):
        params = dict(build_recursos_params())

        assert params["pagination[page]"] == "1"
        assert params["pagination[pageSize]"] == "50"
        assert params["sort"] == "createdAt:desc"
        assert params["fields[0]"] == "nombre"
        assert not any(key.startswith("filters") for key in params)

    def test_page_size_is_capped(self):
        params = dict(build_recursos_params(page="0", page_size="500"))
        assert params["pagination[page]"] == "1"
        assert params["pagination[pageSize]"] == "100"

    def test_filters_without_search(self):
        params = build_recursos_params(seccion="Álgebra", capitulo="3", titulo="derivadas", sin_libro=True)

        assert ("filters[seccion][$eq]", "Álgebra") in params
        assert ("filters[numero_capitulo][$containsi]", "3") in params
        assert ("filters[libro_mira][$null]", "true") in params
        assert ("filters[titulo_personalizado][$containsi]", "derivadas") in params

    def test_search_combines_filters_with_and(self):
        """Con búsqueda general los filtros van en $and y se ignora titulo."""
        params = build_recursos_params(search=" límite ", seccion="Cálculo", ejercicio="4", titulo="x")

        assert ("filters[$or][0][nombre][$containsi]", "límite") in params
        assert ("filters[$or][1][titulo_personalizado][$containsi]", "límite") in params
        assert ("filters[$and][0][seccion][$eq]", "Cálculo") in params
        assert ("filters[$and][1][numero_ejercicio][$containsi]", "4") in params
        assert not any(value == "x" for _, value in params)


class TestListRecursos:
    @pytest.mark.asyncio
    async def test_returns_strapi_response(self, service, strapi):
        strapi.get.return_value = {"data": [{"id": 1}], "meta": {"pagination": {"total": 1}}}

        result = await service.list_recursos(page=2, con_libro=True)

        assert result["data"] == [{"id": 1}]
        assert strapi.get.call_args.args[0] == "api/recursos-mira"
        assert ("filters[libro_mira][$notNull]", "true") in strapi.get.call_args.kwargs["params"]

    @pytest.mark.asyncio
    async def test_strapi_not_configured(self, service, strapi):
        strapi.is_configured = False

        with pytest.raises(ExternalServiceException) as exc_info:
            await service.list_recursos()

        assert exc_info.value.status_code == 503


class TestBunnyUpload:
    @pytest.mark.asyncio
    async def test_creates_and_signs(self, service, bunny):
        result = await service.create_bunny_upload("  Clase 1  ")

        bunny.create_video.assert_awaited_once_with("Clase 1")
        bunny.sign_upload.assert_called_once_with("g-1")
        assert result == {"videoId": "g-1", "signature": "sig"}

    @pytest.mark.asyncio
    async def test_requires_title(self, service, bunny):
        with pytest.raises(ValidationException, match="El título del video es obligatorio"):
            await service.create_bunny_upload("   ")
        bunny.create_video.assert_not_called()


class TestCreateRecursoReference:
    @pytest.mark.asyncio
    async def test_registers_reference(self, service, strapi):
        strapi.post.return_value = {"data": {"id": 3, "documentId": "rec3", "nombre": "Clase 1"}}

        with patch("app.services.mira.recursos_service.log_activity") as mock_log:
            result = await service.create_recurso_reference(
                {"nombre": "Clase 1", "video_id": "g-1", "seccion": "Álgebra", "contenido": "", "orden": "2"}
            )

        assert result == {"success": True, "data": {"id": 3, "documentId": "rec3", "nombre": "Clase 1"}}
        sent = strapi.post.call_args.kwargs["data"]["data"]
        assert sent == {
            "nombre": "Clase 1",
            "video_id": "g-1",
            "tipo": "video",
            "proveedor": "bunny_stream",
            "orden": 2,
            "seccion": "Álgebra",
        }
        assert mock_log.call_args.kwargs["entidad_id"] == "rec3"

    @pytest.mark.asyncio
    async def test_requires_video_id(self, service, strapi):
        with pytest.raises(ValidationException, match="video_id"):
            await service.create_recurso_reference({"nombre": "Clase 1"})
        strapi.post.assert_not_called()
