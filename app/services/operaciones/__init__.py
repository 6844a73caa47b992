"""
Módulo de Operaciones: conciliación de pedidos entre WeareCloud (bodega)
y JumpSeller (tienda).
"""
