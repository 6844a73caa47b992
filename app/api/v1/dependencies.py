"""
Dependencias compartidas por los endpoints de la API v1.
"""

from fastapi import Request

from app.core.middleware import get_client_ip
from app.services.activity_log import RequestContext, parse_colaborador_cookie


async def get_request_context(request: Request) -> RequestContext:
    """
    Colaborador (desde cookies), IP y user agent del request para el
    registro de actividad.
    """
    ip_address = get_client_ip(request)
    return RequestContext(
        user=parse_colaborador_cookie(dict(request.cookies)),
        ip_address=None if ip_address == "unknown" else ip_address,
        user_agent=request.headers.get("user-agent"),
    )
