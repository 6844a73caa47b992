"""
Cliente REST base con funcionalidad común.

Base para los clientes de Strapi, WooCommerce, JumpSeller, WeareCloud y
Bunny Stream: manejo de sesión aiohttp, reintentos con backoff exponencial,
rate limiting (429) y conversión de errores HTTP a excepciones de la app.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional, Type

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import get_settings
from app.core.logging_config import log_api_call
from app.utils.error_handler import UpstreamAPIException

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 2


def parse_response_body(text: str) -> Any:
    """
    Intenta decodificar el cuerpo de una respuesta como JSON.

    Args:
        text: Cuerpo crudo de la respuesta

    Returns:
        El JSON decodificado, el texto original si no es JSON, o None si está vacío
    """
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def extract_error_message(body: Any, default: str) -> str:
    """
    Extrae el mensaje de error de una respuesta remota.

    Soporta los formatos {error: {message}} de Strapi, {message} de
    WooCommerce y {error: "..."} / {errors: [...]} de JumpSeller.
    """
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            return ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
    if isinstance(body, str) and body.strip():
        return body.strip()[:500]
    return default


def parse_retry_after(value: Optional[str], default: int = DEFAULT_RETRY_AFTER_SECONDS) -> int:
    """
    Segundos de espera indicados por Retry-After.

    Solo se interpreta la forma en segundos; una fecha HTTP o un valor
    inválido usan el default.
    """
    try:
        return max(int(value), 0) if value is not None else default
    except ValueError:
        return default


class BaseRESTClient:
    """
    Cliente base para APIs REST JSON.

    Las subclases definen service_name, exception_class y los headers o
    autenticación del servicio.
    """

    service_name = "external"
    exception_class: Type[UpstreamAPIException] = UpstreamAPIException

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[aiohttp.BasicAuth] = None,
        timeout_seconds: Optional[int] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Inicializa el cliente.

        Args:
            base_url: URL base del servicio (sin slash final)
            headers: Headers por defecto
            auth: Autenticación básica opcional
            timeout_seconds: Timeout total por request
            max_retries: Intentos máximos ante errores de red
        """
        self.settings = get_settings()
        self.base_url = (base_url or "").rstrip("/")
        self.headers = headers or {}
        self.auth = auth
        self.timeout_seconds = timeout_seconds or self.settings.HTTP_TIMEOUT_SECONDS
        self.max_retries = max_retries or self.settings.MAX_RETRIES
        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self):
        """Crea la sesión HTTP si aún no existe."""
        if self.session and not self.session.closed:
            return

        timeout = ClientTimeout(total=self.timeout_seconds, connect=self.settings.HTTP_CONNECT_TIMEOUT_SECONDS)
        self.session = aiohttp.ClientSession(timeout=timeout, headers=self.headers, auth=self.auth)
        logger.debug(f"Sesión HTTP creada para {self.service_name} ({self.base_url})")

    async def close(self):
        """Cierra la sesión HTTP."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info(f"Cliente {self.service_name} cerrado")

    def build_url(self, path: str) -> str:
        """Combina la URL base con un path relativo."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _build_error(self, message: str, **kwargs) -> UpstreamAPIException:
        """Construye la excepción propia del servicio."""
        return self.exception_class(message, **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Any] = None,
        json_body: Optional[Any] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """
        Ejecuta un request HTTP con reintentos y manejo de errores.

        Args:
            method: Método HTTP
            path: Path relativo o URL absoluta
            params: Query params (dict o lista de tuplas)
            json_body: Cuerpo JSON
            max_retries: Intentos máximos (por defecto los del cliente)

        Returns:
            Cuerpo de la respuesta decodificado (JSON, texto o None)

        Raises:
            UpstreamAPIException: Si el servicio responde con error o no responde
        """
        await self.initialize()

        url = self.build_url(path)
        retries = max_retries or self.max_retries
        last_exception: Optional[UpstreamAPIException] = None

        for attempt in range(retries):
            start_time = time.time()
            try:
                async with self.session.request(method, url, params=params, json=json_body) as response:
                    duration = time.time() - start_time
                    log_api_call(method, url, response.status, duration, service=self.service_name)

                    if response.status == 429:
                        retry_after = parse_retry_after(response.headers.get("Retry-After"))
                        if attempt < retries - 1:
                            logger.warning(
                                f"⚠️ Rate limit en {self.service_name}, esperando {retry_after}s (intento {attempt + 1})"
                            )
                            await asyncio.sleep(retry_after)
                            continue
                        raise self._build_error(
                            f"Rate limit excedido en {self.service_name}",
                            api_response_code=429,
                            endpoint=path,
                            rate_limited=True,
                            retry_after=retry_after,
                        )

                    body = parse_response_body(await response.text())

                    if response.status >= 400:
                        message = extract_error_message(body, f"HTTP {response.status}: {response.reason}")
                        raise self._build_error(
                            message,
                            api_response_code=response.status,
                            endpoint=path,
                            response_body=body,
                        )

                    return body

            except asyncio.TimeoutError as e:
                raise self._build_error(
                    f"Timeout al conectar con {self.service_name}",
                    api_response_code=504,
                    endpoint=path,
                ) from e

            except aiohttp.ClientError as e:
                last_exception = self._build_error(f"Error de red con {self.service_name}: {str(e)}", endpoint=path)
                if attempt < retries - 1:
                    wait_time = min(2**attempt, 10)
                    logger.warning(f"⚠️ Error de red, reintentando en {wait_time}s (intento {attempt + 1}): {e}")
                    await asyncio.sleep(wait_time)
                    continue

        raise last_exception or self._build_error(
            f"Request a {self.service_name} falló después de {retries} intentos", endpoint=path
        )

    async def get(self, path: str, params: Optional[Any] = None, **kwargs) -> Any:
        return await self._request("GET", path, params=params, **kwargs)

    async def post(self, path: str, data: Optional[Any] = None, params: Optional[Any] = None, **kwargs) -> Any:
        return await self._request("POST", path, params=params, json_body=data, **kwargs)

    async def put(self, path: str, data: Optional[Any] = None, params: Optional[Any] = None, **kwargs) -> Any:
        return await self._request("PUT", path, params=params, json_body=data, **kwargs)

    async def delete(self, path: str, params: Optional[Any] = None, **kwargs) -> Any:
        return await self._request("DELETE", path, params=params, **kwargs)

    def __str__(self):
        return f"{self.__class__.__name__}(base_url={self.base_url})"

    def __repr__(self):
        return f"{self.__class__.__name__}(base_url='{self.base_url}', initialized={self.session is not None})"
