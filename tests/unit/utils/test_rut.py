"""Tests unitarios para validación de RUT chileno."""

import pytest

from app.utils.rut import calcular_dv, formatear_rut, limpiar_rut, validar_rut


class TestLimpiarRut:
    def test_removes_dots_dash_and_spaces(self):
        """Debe dejar solo dígitos y K en mayúscula."""
        assert limpiar_rut(" 12.345.678-k ") == "12345678K"

    def test_empty_values(self):
        assert limpiar_rut(None) == ""
        assert limpiar_rut("") == ""


class TestCalcularDv:
    def test_numeric_check_digit(self):
        assert calcular_dv("12345678") == "5"

    def test_k_check_digit(self):
        """Debe devolver K cuando el resto es 10."""
        assert calcular_dv("10000013") == "K"


class TestFormatearRut:
    def test_formats_plain_rut(self):
        assert formatear_rut("123456785") == "12.345.678-5"

    def test_formats_seven_digit_body(self):
        assert formatear_rut("1234567-4") == "1.234.567-4"


class TestValidarRut:
    def test_valid_rut_in_any_format(self):
        """Debe aceptar el RUT con o sin puntos y guion."""
        for rut in ("12.345.678-5", "12345678-5", "123456785"):
            result = validar_rut(rut)
            assert result.valid is True
            assert result.formatted == "12.345.678-5"
            assert result.error is None

    def test_valid_rut_with_lowercase_k(self):
        result = validar_rut("10.000.013-k")
        assert result.valid is True
        assert result.formatted == "10.000.013-K"

    def test_invalid_check_digit(self):
        result = validar_rut("12.345.678-9")
        assert result.valid is False
        assert result.formatted is None
        assert "dígito verificador" in result.error

    def test_empty_rut(self):
        result = validar_rut("   ")
        assert result.valid is False
        assert result.error == "El RUT es obligatorio"

    def test_too_short(self):
        assert validar_rut("1234-5").valid is False

    def test_too_long(self):
        result = validar_rut("1234567890-1")
        assert result.valid is False
        assert "más de 9" in result.error

    def test_letter_in_body(self):
        result = validar_rut("1234K678-5")
        assert result.valid is False
        assert "solo puede contener números" in result.error

    @pytest.mark.parametrize(
        "rut", ["12.345.678-5", "123456785", "10000013-k", "1234567-4", "11.111.111-1", " 1.234.567-4 "]
    )
    def test_formatted_round_trip(self, rut):
        """Debe ser estable: formatear un RUT ya formateado no lo cambia."""
        formatted = validar_rut(rut).formatted

        assert formatted is not None
        assert formatear_rut(formatted) == formatted
        assert validar_rut(formatted).formatted == formatted

    def test_to_dict(self):
        assert validar_rut("12345678-5").to_dict() == {"valid": True, "error": None, "formatted": "12.345.678-5"}
