# ==============================================================================
# GRETA STORE - Tienda de productos orgánicos
# ==============================================================================
# Paquete principal. Puntos de entrada:
#   greta_store.main.create_app   → aplicación Flask (API JSON)
#   greta_store.store.Store       → estado y operaciones de la tienda
# ==============================================================================

__version__ = '1.0.0'
