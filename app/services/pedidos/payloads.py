"""
Construcción de payloads de pedidos para Strapi.

Strapi valida enumeraciones y tipos; todo lo que llega del frontend o de
WooCommerce pasa por aquí antes de escribirse.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import VALID_PLATFORMS
from app.services.pedidos.normalizers import (
    map_metodo_pago_from_woo,
    map_origen_from_woo,
    map_status_from_woo,
    map_woo_status,
    normalize_metodo_pago,
    normalize_origen,
)
from app.utils.error_handler import ValidationException
from app.utils.strapi_utils import get_attrs
from app.utils.text_utils import parse_nombre_completo

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ["total", "subtotal", "impuestos", "envio", "descuento"]

# Campos que se copian tal cual (valores vacíos se guardan como null)
_PLAIN_FIELDS = ["fecha_pedido", "moneda", "cliente", "billing", "shipping", "metodo_pago_titulo", "nota_cliente"]

DEFAULT_CURRENCY = "CLP"


def _to_float(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(str(value).strip())
    except ValueError as e:
        raise ValidationException(
            f"El campo {field} debe ser numérico", field=field, invalid_value=value, expected_format="número"
        ) from e


def _first_present(item: Dict[str, Any], *keys: str) -> Any:
    """Primer valor no nulo entre varias claves (para alias en inglés/español)."""
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def _number_text(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _platform_from_body(body: Dict[str, Any]) -> Optional[str]:
    return body.get("originPlatform") or body.get("origin_platform")


def validate_platform(platform: Optional[str]) -> None:
    """
    Raises:
        ValidationException: Si la plataforma no es una de VALID_PLATFORMS
    """
    if platform and platform not in VALID_PLATFORMS:
        raise ValidationException(
            f"originPlatform debe ser uno de: {', '.join(VALID_PLATFORMS)}",
            field="originPlatform",
            invalid_value=platform,
        )


def is_status_only_update(body: Dict[str, Any]) -> bool:
    """True si el body solo trae el campo estado."""
    return "estado" in body and all(key == "estado" for key in body)


def build_update_payload(body: Dict[str, Any], existing: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], bool]:
    """
    Construye el payload de actualización de un pedido.

    Solo se incluyen los campos presentes en el body. Cuando únicamente se
    cambia el estado, se corrigen origen y metodo_pago inválidos del pedido
    existente (Strapi rechazaría el update) y nunca se envían items, para
    que el lifecycle de Strapi no reenvíe líneas a WooCommerce.

    Args:
        body: Campos recibidos (body.data del request)
        existing: Pedido actual en Strapi

    Returns:
        Tuple (payload, solo_estado)
    """
    payload: Dict[str, Any] = {}
    solo_estado = is_status_only_update(body)

    if solo_estado:
        current = get_attrs(existing)
        for field, normalize in (("origen", normalize_origen), ("metodo_pago", normalize_metodo_pago)):
            if current.get(field):
                normalized = normalize(current[field])
                if normalized and normalized != current[field]:
                    logger.info(f"🔧 Corrigiendo {field} inválido: '{current[field]}' -> '{normalized}'")
                    payload[field] = normalized

    if "numero_pedido" in body:
        numero = body["numero_pedido"]
        payload["numero_pedido"] = (str(numero).strip() or None) if numero is not None else None

    for field in _PLAIN_FIELDS:
        if field in body:
            payload[field] = body[field] or None

    if body.get("estado") is not None:
        payload["estado"] = map_woo_status(str(body["estado"]).strip())

    for field in NUMERIC_FIELDS:
        if field in body:
            payload[field] = _to_float(body[field], field)

    if "origen" in body:
        payload["origen"] = normalize_origen(body["origen"])
    if "metodo_pago" in body:
        payload["metodo_pago"] = normalize_metodo_pago(body["metodo_pago"])

    if "items" in body and not solo_estado:
        items = body["items"]
        if not isinstance(items, list):
            logger.warning(f"⚠️ Items con formato inválido ({type(items).__name__}), no se actualizan")
        elif not items or any(
            isinstance(i, dict) and _first_present(i, "producto_id", "product_id", "libro_id") for i in items
        ):
            payload["items"] = items
        else:
            logger.warning("⚠️ Items sin producto_id válido, no se actualizan")

    platform = _platform_from_body(body)
    if platform:
        payload["originPlatform"] = platform

    if "publishedAt" in body:
        payload["publishedAt"] = body["publishedAt"]

    return payload, solo_estado


def validate_create_body(body: Dict[str, Any]) -> str:
    """
    Valida el body de creación de un pedido.

    Returns:
        str: Plataforma de origen (por defecto woo_moraleja)

    Raises:
        ValidationException: Con el mensaje que se devuelve al frontend
    """
    if not body.get("numero_pedido"):
        raise ValidationException("El número de pedido es obligatorio", field="numero_pedido")

    items = body.get("items")
    if items is None:
        raise ValidationException(
            'El campo "items" es obligatorio y no se encontró en el payload. '
            "Verifica que estés enviando items en el payload.",
            field="items",
        )
    if not isinstance(items, list):
        raise ValidationException(
            f'El campo "items" debe ser un array, pero se recibió: {type(items).__name__}',
            field="items",
            invalid_value=items,
        )
    if not items:
        raise ValidationException(
            "El pedido debe tener al menos un producto. Agrega productos antes de crear el pedido.",
            field="items",
        )

    invalid = [i for i, item in enumerate(items, start=1) if not _is_valid_item(item)]
    if invalid:
        logger.error(f"❌ Items inválidos en posiciones {invalid}")
        raise ValidationException(
            f"Hay {len(invalid)} producto(s) con datos inválidos. Cada producto debe tener: "
            "nombre, cantidad > 0, precio_unitario >= 0, y total >= 0.",
            field="items",
        )

    platform = _platform_from_body(body) or "woo_moraleja"
    validate_platform(platform)
    return platform


def _is_valid_item(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    try:
        cantidad = _to_float(_first_present(item, "cantidad", "quantity"), "cantidad")
        precio = _to_float(_first_present(item, "precio_unitario", "price"), "precio_unitario")
        total = _to_float(_first_present(item, "total", "subtotal"), "total")
    except ValidationException:
        return False

    return (
        bool(item.get("nombre") or item.get("name"))
        and cantidad is not None
        and cantidad > 0
        and precio is not None
        and precio >= 0
        and total is not None
        and total >= 0
    )


def prepare_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Normaliza los items del frontend con claves para Strapi y WooCommerce.
    """
    prepared = []
    for item in items:
        producto_id = item.get("producto_id") or item.get("product_id") or item.get("libro_id") or None
        cantidad = _to_float(_first_present(item, "cantidad", "quantity"), "cantidad") or 1
        precio = _to_float(_first_present(item, "precio_unitario", "price"), "precio_unitario") or 0
        total = _to_float(item.get("total"), "total") or precio * cantidad
        cantidad = int(cantidad) if float(cantidad).is_integer() else cantidad

        prepared.append(
            {
                "producto_id": producto_id,
                "product_id": producto_id,
                "sku": item.get("sku") or "",
                "nombre": item.get("nombre") or item.get("name") or "",
                "cantidad": cantidad,
                "quantity": cantidad,
                "precio_unitario": precio,
                "price": _number_text(precio),
                "total": total,
                "item_id": item.get("item_id"),
                "metadata": item.get("metadata"),
            }
        )
    return prepared


def _has_valid_product(item: Dict[str, Any]) -> bool:
    try:
        return (_to_float(item.get("producto_id"), "producto_id") or 0) > 0
    except ValidationException:
        return False


def _default_address(body: Dict[str, Any], include_email: bool) -> Dict[str, Any]:
    nombre = parse_nombre_completo(body.get("nombre_cliente"))
    apellidos = " ".join(p for p in (nombre["primer_apellido"], nombre["segundo_apellido"]) if p)
    address = {
        "first_name": nombre["nombres"] or "Cliente",
        "last_name": apellidos or "Invitado",
    }
    if include_email:
        address["email"] = body.get("email_cliente") or ""
    address.update({"address_1": "", "city": "", "state": "", "postcode": "", "country": "CL"})
    return address


def _optional_float(body: Dict[str, Any], field: str) -> Optional[float]:
    return _to_float(body[field], field) if body.get(field) else None


def build_create_payload(body: Dict[str, Any], platform: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Construye el pedido que se crea en Strapi.

    Para plataformas WooCommerce se agrega rawWooData con el pedido en
    formato WooCommerce; el lifecycle afterCreate de Strapi lo usa para
    crear el pedido en la tienda.

    Args:
        body: body.data del request (ya validado con validate_create_body)
        platform: Plataforma de origen
        now: Fecha actual (inyectable para tests)

    Raises:
        ValidationException: Si ningún item tiene producto_id válido
    """
    now_iso = (now or datetime.now(timezone.utc)).isoformat()
    prepared = prepare_items(body.get("items") or [])
    valid_items = [item for item in prepared if _has_valid_product(item)]
    if prepared and not valid_items:
        raise ValidationException(
            "Los items deben tener un producto_id válido para sincronizar con WooCommerce", field="items"
        )

    is_woo = platform != "otros"
    billing = body.get("billing") or (_default_address(body, include_email=True) if is_woo else None)
    shipping = body.get("shipping") or (_default_address(body, include_email=False) if is_woo else None)

    impuestos = _optional_float(body, "impuestos") or 0
    envio = _optional_float(body, "envio") or 0
    descuento = _optional_float(body, "descuento") or 0
    subtotal_calculado = sum(item["total"] or 0 for item in valid_items)
    total_final = _optional_float(body, "total") or (subtotal_calculado + impuestos + envio - descuento)
    subtotal_final = _optional_float(body, "subtotal") or subtotal_calculado

    estado = map_woo_status(body["estado"]) if body.get("estado") else "pending"
    metodo_pago = normalize_metodo_pago(body.get("metodo_pago"))

    raw_woo_data = None
    if is_woo:
        raw_woo_data = {
            "payment_method": metodo_pago or "bacs",
            "payment_method_title": body.get("metodo_pago_titulo") or "Transferencia bancaria directa",
            "set_paid": body.get("estado") in ("completed", "completado"),
            "status": estado,
            "customer_id": 0,
            "billing": billing,
            "shipping": shipping,
            "line_items": [_woo_line_item(item) for item in valid_items],
            "customer_note": body.get("nota_cliente") or "",
            "shipping_total": f"{envio:.2f}",
            "total_tax": f"{impuestos:.2f}",
            "discount_total": f"{descuento:.2f}",
        }
        if total_final > 0:
            raw_woo_data["total"] = f"{total_final:.2f}"
        if subtotal_final > 0:
            raw_woo_data["subtotal"] = f"{subtotal_final:.2f}"

    logger.debug(
        f"💰 Totales pedido {body.get('numero_pedido')}: subtotal={subtotal_final} total={total_final} "
        f"impuestos={impuestos} envio={envio} descuento={descuento}"
    )

    return {
        "numero_pedido": str(body["numero_pedido"]).strip(),
        "fecha_pedido": body.get("fecha_pedido") or now_iso,
        "fecha_creacion": body.get("fecha_creacion") or body.get("fecha_pedido") or now_iso,
        "estado": estado,
        "total": _optional_float(body, "total"),
        "subtotal": _optional_float(body, "subtotal"),
        "impuestos": _optional_float(body, "impuestos"),
        "envio": _optional_float(body, "envio"),
        "descuento": _optional_float(body, "descuento"),
        "moneda": body.get("moneda") or DEFAULT_CURRENCY,
        "origen": normalize_origen(body.get("origen")),
        "cliente": body.get("cliente") or None,
        "items": valid_items or prepared,
        "billing": billing,
        "shipping": shipping,
        "metodo_pago": metodo_pago,
        "metodo_pago_titulo": body.get("metodo_pago_titulo") or None,
        "nota_cliente": body.get("nota_cliente") or None,
        "originPlatform": platform,
        "rawWooData": raw_woo_data,
    }


def _woo_line_item(item: Dict[str, Any]) -> Dict[str, Any]:
    line = {"product_id": item["producto_id"], "quantity": item["cantidad"]}
    if item["precio_unitario"]:
        line["price"] = _number_text(item["precio_unitario"])
    if item["total"]:
        line["subtotal"] = _number_text(item["total"])
    return line


def _woo_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def build_strapi_payload_from_woo(order: Dict[str, Any], platform: str) -> Dict[str, Any]:
    """
    Convierte un pedido de WooCommerce al formato de Strapi (colección wo-pedidos).

    Args:
        order: Pedido tal como lo devuelve la API de WooCommerce
        platform: Plataforma de la que proviene (woo_moraleja o woo_escolar)
    """
    order_number = str(order.get("number") or order.get("id"))
    woo_id = order.get("id")

    items = [
        {
            "item_id": line.get("id"),
            "producto_id": line.get("product_id"),
            "sku": line.get("sku") or "",
            "nombre": line.get("name") or "",
            "cantidad": line.get("quantity") or 1,
            "precio_unitario": _woo_float(line.get("price")),
            "total": _woo_float(line.get("total")),
            "metadata": line.get("meta_data") or None,
        }
        for line in order.get("line_items") or []
    ]

    return {
        "numero_pedido": order_number,
        "fecha_pedido": order.get("date_created") or order.get("date_created_gmt"),
        "estado": map_status_from_woo(order.get("status")),
        "total": _woo_float(order.get("total")),
        "subtotal": _woo_float(order.get("subtotal")),
        "impuestos": _woo_float(order.get("total_tax")),
        "envio": _woo_float(order.get("shipping_total")),
        "descuento": _woo_float(order.get("discount_total")),
        "moneda": order.get("currency") or DEFAULT_CURRENCY,
        "origen": map_origen_from_woo(order.get("created_via")),
        "metodo_pago": map_metodo_pago_from_woo(order.get("payment_method")),
        "metodo_pago_titulo": order.get("payment_method_title") or None,
        "nota_cliente": order.get("customer_note") or None,
        "billing": order.get("billing") or None,
        "shipping": order.get("shipping") or None,
        "items": items,
        "originPlatform": platform,
        "wooId": woo_id,
        "rawWooData": order,
        "externalIds": {
            "wooCommerce": {"id": woo_id, "number": order_number},
            "originPlatform": platform,
        },
    }
