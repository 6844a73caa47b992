"""
Matching entre pedidos de WeareCloud y JumpSeller.

Dos pedidos corresponden al mismo pedido real cuando coinciden número,
email, fecha y total en grado suficiente; cada coincidencia suma puntos.
"""

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

_CONFIDENCE_RANK = {HIGH: 3, MEDIUM: 2, LOW: 1}

TOTAL_TOLERANCE = 0.05

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


@dataclass
class MatchResult:
    confidence: str
    reason: str
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"confidence": self.confidence, "reason": self.reason}


def _parse_date(value: Any) -> Optional[datetime]:
    """Fechas ISO o formato JumpSeller ("2024-01-15 10:30:00 UTC")."""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith(" UTC"):
        text = text[:-4]
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Fecha no reconocida: {value}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_total(value: Any) -> Optional[float]:
    try:
        return float(_NON_NUMERIC.sub("", str(value)))
    except ValueError:
        return None


def _email(order: Dict[str, Any]) -> str:
    customer = order.get("customer") or {}
    return str(customer.get("email") or "").lower()


def match_orders(wearecloud_order: Dict[str, Any], jumpseller_order: Dict[str, Any]) -> MatchResult:
    """
    Calcula la confianza de que dos pedidos sean el mismo.

    Puntaje: número exacto +50 (o contenido +30), email +30, fechas a
    1 día +10 (o 7 días +5), total dentro del 5% +10.
    Confianza high >= 50, medium >= 30, low en otro caso.
    """
    score = 0
    reasons: List[str] = []

    wc_number = str(wearecloud_order.get("order_number") or wearecloud_order.get("pedido_ecommerce") or "")
    js_number = str(jumpseller_order.get("order_number") or jumpseller_order.get("id") or "")

    if wc_number and js_number and wc_number == js_number:
        score += 50
        reasons.append("Número de pedido coincide")
    elif wc_number and js_number and (js_number in wc_number or wc_number in js_number):
        score += 30
        reasons.append("Número de pedido similar")

    wc_email = _email(wearecloud_order)
    if wc_email and wc_email == _email(jumpseller_order):
        score += 30
        reasons.append("Email del cliente coincide")

    wc_date = _parse_date(wearecloud_order.get("created_at"))
    js_date = _parse_date(jumpseller_order.get("created_at"))
    if wc_date and js_date:
        days = abs((wc_date - js_date).total_seconds()) / 86400
        if days <= 1:
            score += 10
            reasons.append("Fechas cercanas (dentro de 1 día)")
        elif days <= 7:
            score += 5
            reasons.append("Fechas cercanas (dentro de 7 días)")

    if wearecloud_order.get("total") and jumpseller_order.get("total"):
        wc_total = _parse_total(wearecloud_order["total"])
        js_total = _parse_total(jumpseller_order["total"])
        if wc_total is not None and js_total is not None and abs(wc_total - js_total) <= wc_total * TOTAL_TOLERANCE:
            score += 10
            reasons.append("Total coincide (dentro de tolerancia)")

    if score >= 50:
        confidence = HIGH
    elif score >= 30:
        confidence = MEDIUM
    else:
        confidence = LOW

    return MatchResult(confidence=confidence, reason=", ".join(reasons) or "Sin coincidencias significativas", score=score)


def find_best_match(
    wearecloud_order: Dict[str, Any], jumpseller_orders: List[Dict[str, Any]]
) -> Optional[Dict[str, Any]]:
    """
    Mejor pedido de JumpSeller para un pedido de WeareCloud.

    Gana el de mayor confianza; ante empate se queda el primero.

    Returns:
        Dict con order y match (MatchResult), o None si la lista está vacía
    """
    best = None
    best_rank = 0
    for js_order in jumpseller_orders:
        match = match_orders(wearecloud_order, js_order)
        rank = _CONFIDENCE_RANK[match.confidence]
        if rank > best_rank:
            best_rank = rank
            best = {"order": js_order, "match": match}
    return best


def create_synchronized_order(
    wearecloud_order: Optional[Dict[str, Any]] = None,
    jumpseller_order: Optional[Dict[str, Any]] = None,
    match: Optional[MatchResult] = None,
) -> Dict[str, Any]:
    """
    Pedido conciliado para mostrar en Operaciones.

    El id es el de JumpSeller si existe, si no el de WeareCloud.
    """
    js_id = (jumpseller_order or {}).get("id")
    wc_id = (wearecloud_order or {}).get("id")
    order_id = str(js_id) if js_id else (str(wc_id) if wc_id else f"temp-{int(time.time() * 1000)}")

    return {
        "id": order_id,
        "wearecloud_order": wearecloud_order,
        "jumpseller_order": jumpseller_order,
        "match_confidence": match.confidence if match else LOW,
        "match_reason": match.reason if match else None,
        "last_synced_at": datetime.now(timezone.utc).isoformat(),
        "sync_status": "synced" if wearecloud_order and jumpseller_order else "pending",
        "sync_errors": [],
    }
