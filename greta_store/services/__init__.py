# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Los servicios dependen de las interfaces de repositorios, no de una
# implementación concreta: el mismo código corre contra el backend
# hosteado o contra el backend en memoria.
#
# ESTRUCTURA:
# ├── cart_service.py       → Carrito (write-through al almacenamiento local)
# ├── catalog_service.py    → Catálogo, respaldo y administración de productos
# ├── order_service.py      → Pedidos, estados e historial de demostración
# ├── user_service.py       → Sesión, perfil y roles
# └── analytics_service.py  → Estadísticas del panel (funciones puras)
# ==============================================================================

from .cart_service import CartService
from .catalog_service import CatalogService, run_in_thread
from .order_service import OrderService, parse_iso_date, sort_newest_first
from .user_service import UserService, ProtectedOperationError
from .analytics_service import AnalyticsService

__all__ = [
    'CartService',
    'CatalogService',
    'run_in_thread',
    'OrderService',
    'parse_iso_date',
    'sort_newest_first',
    'UserService',
    'ProtectedOperationError',
    'AnalyticsService',
]
