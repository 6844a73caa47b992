"""
Utilidades de texto para datos de clientes.
"""

from typing import Dict, Optional


def parse_nombre_completo(nombre_completo: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Separa un nombre completo en nombres y apellidos.

    Las dos últimas palabras se toman como apellidos (paterno y materno),
    el resto como nombres.

    Args:
        nombre_completo: Nombre tal como lo escribe el usuario

    Returns:
        Dict con nombres, primer_apellido y segundo_apellido (None si no hay)
    """
    partes = (nombre_completo or "").split()

    if not partes:
        return {"nombres": "", "primer_apellido": "", "segundo_apellido": None}
    if len(partes) == 1:
        return {"nombres": partes[0], "primer_apellido": "", "segundo_apellido": None}
    if len(partes) == 2:
        return {"nombres": partes[0], "primer_apellido": partes[1], "segundo_apellido": None}

    return {
        "nombres": " ".join(partes[:-2]),
        "primer_apellido": partes[-2],
        "segundo_apellido": partes[-1],
    }
