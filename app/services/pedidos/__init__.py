"""
Servicios de pedidos de la tienda.

Strapi es el dueño de los pedidos; sus lifecycles sincronizan con
WooCommerce. Este paquete resuelve identificadores, normaliza campos y
construye los payloads que se envían a Strapi.
"""
