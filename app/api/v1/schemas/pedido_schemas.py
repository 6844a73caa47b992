"""
Modelos Pydantic para los requests de pedidos, operaciones y MIRA.

Los campos de los pedidos se validan y normalizan en los servicios (los
mensajes de error son los que espera el frontend), por eso aquí el
contenido de "data" queda abierto.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class PedidoRequest(BaseModel):
    """Body de creación y actualización de pedidos: {data: {...}}."""

    data: Dict[str, Any] = Field(description="Campos del pedido")


class SyncSpecificRequest(BaseModel):
    """Pedidos de WooCommerce a sincronizar en Strapi."""

    orderNumbers: Optional[List[Union[str, int]]] = Field(default=None, description="Números de pedido")
    platforms: Optional[List[str]] = Field(default=None, description="Plataformas donde buscar (por defecto ambas)")


class SyncOrderRequest(BaseModel):
    """Conciliación de un pedido puntual."""

    wearecloud_order_id: Optional[str] = Field(default=None, description="Id del pedido en WeareCloud")


class JumpSellerOrderUpdate(BaseModel):
    """Campos editables de un pedido de JumpSeller."""

    status: Optional[str] = None
    customer_note: Optional[str] = None
    internal_note: Optional[str] = None
    shipping_method: Optional[str] = None
    shipping_method_title: Optional[str] = None


class BunnyVideoRequest(BaseModel):
    title: str = Field(default="", description="Título del video en Bunny Stream")


class RecursoReferenciaRequest(BaseModel):
    """Referencia en Strapi a un video ya subido a Bunny Stream."""

    nombre: Optional[str] = None
    video_id: Optional[str] = None
    tipo: str = "video"
    proveedor: str = "bunny_stream"
    titulo_personalizado: Optional[str] = None
    numero_capitulo: Optional[Union[str, int]] = None
    seccion: Optional[str] = None
    sub_seccion: Optional[str] = None
    numero_ejercicio: Optional[Union[str, int]] = None
    contenido: Optional[str] = None
    duracion_segundos: Optional[int] = None
    orden: int = 0


class RutRequest(BaseModel):
    rut: Optional[str] = Field(default=None, description="RUT en cualquier formato")
