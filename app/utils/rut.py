"""
Utilidades para RUT chileno (Rol Único Tributario).

Un RUT es un cuerpo numérico más un dígito verificador (0-9 o K)
calculado con módulo 11. El formato canónico es "12.345.678-5".
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

RUT_MIN_LENGTH = 8
RUT_MAX_LENGTH = 9

_NON_RUT_CHARS = re.compile(r"[^0-9kK]")


@dataclass
class RutValidation:
    """
    Resultado de validar un RUT.

    Attributes:
        valid: Si el RUT es válido
        error: Mensaje de error cuando no es válido
        formatted: RUT con formato canónico (solo si es válido)
    """

    valid: bool
    error: Optional[str] = None
    formatted: Optional[str] = None

    def to_dict(self) -> dict:
        return {"valid": self.valid, "error": self.error, "formatted": self.formatted}


def limpiar_rut(rut: Optional[str]) -> str:
    """
    Elimina puntos, guiones y espacios; deja dígitos y K en mayúscula.

    Ejemplo:
        limpiar_rut("12.345.678-k") -> "12345678K"
    """
    if not rut:
        return ""
    return _NON_RUT_CHARS.sub("", str(rut)).upper()


def calcular_dv(cuerpo: str) -> str:
    """
    Calcula el dígito verificador de un cuerpo de RUT (módulo 11).

    Args:
        cuerpo: Parte numérica del RUT, sin dígito verificador

    Returns:
        str: "0".."9" o "K"
    """
    total = 0
    multiplicador = 2
    for digito in reversed(cuerpo):
        total += int(digito) * multiplicador
        multiplicador = 2 if multiplicador == 7 else multiplicador + 1

    resto = 11 - (total % 11)
    if resto == 11:
        return "0"
    if resto == 10:
        return "K"
    return str(resto)


def formatear_rut(rut: Optional[str]) -> str:
    """
    Da formato canónico a un RUT: puntos cada tres dígitos y guion antes del DV.

    Ejemplo:
        formatear_rut("123456785") -> "12.345.678-5"
    """
    limpio = limpiar_rut(rut)
    if len(limpio) < 2:
        return limpio

    cuerpo, dv = limpio[:-1], limpio[-1]
    grupos = []
    while len(cuerpo) > 3:
        grupos.insert(0, cuerpo[-3:])
        cuerpo = cuerpo[:-3]
    if cuerpo:
        grupos.insert(0, cuerpo)

    return f"{'.'.join(grupos)}-{dv}"


def validar_rut(rut: Optional[str]) -> RutValidation:
    """
    Valida un RUT y devuelve su forma canónica.

    Args:
        rut: RUT en cualquier formato ("12345678-5", "12.345.678-5", "123456785")

    Returns:
        RutValidation con valid, error y formatted
    """
    if not rut or not str(rut).strip():
        return RutValidation(valid=False, error="El RUT es obligatorio")

    limpio = limpiar_rut(rut)

    if len(limpio) < RUT_MIN_LENGTH:
        return RutValidation(valid=False, error=f"El RUT debe tener al menos {RUT_MIN_LENGTH} caracteres")
    if len(limpio) > RUT_MAX_LENGTH:
        return RutValidation(valid=False, error=f"El RUT no puede tener más de {RUT_MAX_LENGTH} caracteres")

    cuerpo, dv = limpio[:-1], limpio[-1]
    if not cuerpo.isdigit():
        return RutValidation(valid=False, error="El cuerpo del RUT solo puede contener números")

    esperado = calcular_dv(cuerpo)
    if dv != esperado:
        logger.debug(f"DV inválido para RUT {rut}: esperado {esperado}, recibido {dv}")
        return RutValidation(valid=False, error="El dígito verificador del RUT no es válido")

    return RutValidation(valid=True, formatted=formatear_rut(limpio))
