"""
Endpoints utilitarios.
"""

from typing import Any, Dict

from fastapi import APIRouter

from app.api.v1.schemas.pedido_schemas import RutRequest
from app.utils.rut import validar_rut

router = APIRouter()


@router.post("/rut/validar", summary="Validar RUT chileno")
async def validate_rut(body: RutRequest) -> Dict[str, Any]:
    """
    Valida un RUT y devuelve su formato canónico (12.345.678-5).

    Siempre responde 200; el resultado indica si es válido.
    """
    return {"success": True, "data": validar_rut(body.rut).to_dict()}
