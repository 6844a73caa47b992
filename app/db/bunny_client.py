"""
Cliente de Bunny Stream (video CDN).

Crea el video en la librería y firma la subida TUS para que el navegador
suba el archivo directamente a Bunny.
"""

import hashlib
import logging
import time
from typing import Any, Dict, Optional

from app.core.config import get_settings
from app.db.base_client import BaseRESTClient
from app.utils.error_handler import ExternalServiceException, UpstreamAPIException

logger = logging.getLogger(__name__)


def compute_tus_signature(library_id: str, api_key: str, expiration: int, video_id: str) -> str:
    """
    Firma de autorización para la subida TUS de Bunny Stream.

    sha256(library_id + api_key + expiration + video_id) en hexadecimal.
    """
    raw = f"{library_id}{api_key}{expiration}{video_id}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class BunnyStreamClient(BaseRESTClient):
    """
    Cliente de la API de Bunny Stream.
    """

    service_name = "bunny_stream"
    exception_class = ExternalServiceException

    def __init__(self, library_id: Optional[str] = None, api_key: Optional[str] = None):
        settings = get_settings()
        self.library_id = library_id or settings.BUNNY_STREAM_LIBRARY_ID
        self.api_key = api_key or settings.BUNNY_STREAM_API_KEY
        self.collection_id = settings.BUNNY_STREAM_COLLECTION_ID
        self.expiration_seconds = settings.BUNNY_UPLOAD_EXPIRATION_SECONDS
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["AccessKey"] = self.api_key
        super().__init__(base_url=settings.BUNNY_STREAM_API_URL, headers=headers)

    @property
    def is_configured(self) -> bool:
        return bool(self.library_id and self.api_key)

    @property
    def tus_upload_url(self) -> str:
        return f"{self.base_url}/tusupload"

    def _build_error(self, message: str, **kwargs) -> UpstreamAPIException:
        return ExternalServiceException(message, service="bunny_stream", **kwargs)

    async def create_video(self, title: str) -> Dict[str, Any]:
        """
        Crea un video vacío en la librería.

        Returns:
            Respuesta de Bunny (incluye el guid del video)
        """
        if not self.is_configured:
            raise ExternalServiceException(
                "Bunny Stream no configurado: faltan BUNNY_STREAM_LIBRARY_ID o BUNNY_STREAM_API_KEY",
                service="bunny_stream",
                api_response_code=503,
            )

        payload: Dict[str, Any] = {"title": title}
        if self.collection_id:
            payload["collectionId"] = self.collection_id

        response = await self.post(f"library/{self.library_id}/videos", data=payload)
        if not isinstance(response, dict) or not response.get("guid"):
            raise ExternalServiceException(
                "Bunny Stream no devolvió el id del video", service="bunny_stream", response_body=response
            )

        logger.info(f"✅ Video creado en Bunny Stream: {response['guid']} ({title})")
        return response

    def sign_upload(self, video_id: str, now: Optional[int] = None) -> Dict[str, Any]:
        """
        Genera los datos de autorización TUS para un video.

        Args:
            video_id: guid del video en Bunny
            now: Timestamp actual en segundos (inyectable para tests)

        Returns:
            Dict con uploadUrl, videoId, libraryId, expires y signature
        """
        expires = int(now if now is not None else time.time()) + self.expiration_seconds
        return {
            "uploadUrl": self.tus_upload_url,
            "videoId": video_id,
            "libraryId": self.library_id,
            "expires": expires,
            "signature": compute_tus_signature(self.library_id, self.api_key, expires, video_id),
        }


_bunny_client: Optional[BunnyStreamClient] = None


def get_bunny_client() -> BunnyStreamClient:
    global _bunny_client
    if _bunny_client is None:
        _bunny_client = BunnyStreamClient()
    return _bunny_client


async def close_bunny_client():
    global _bunny_client
    if _bunny_client is not None:
        await _bunny_client.close()
        _bunny_client = None
