# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos de la tienda
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Son independientes del backend (hosted o en memoria): la traducción de
# nombres de columnas se hace en repositories/mappers.py.
# ==============================================================================

from .entities import (
    # Catálogo
    Product,
    ProductDraft,

    # Carrito y pedidos
    CartItem,
    Order,
    OrderStatus,
    PaymentStatus,

    # Usuarios y sesión
    User,
    UserRole,
    AuthUser,
    AuthSession,
    avatar_for,

    # Derivados
    AnalyticsSnapshot,

    # Utilidades
    parse_enum,
    product_to_dict,
)
from .fallback_catalog import FALLBACK_PRODUCTS, fallback_products

__all__ = [
    # Catálogo
    'Product',
    'ProductDraft',
    'FALLBACK_PRODUCTS',
    'fallback_products',

    # Carrito y pedidos
    'CartItem',
    'Order',
    'OrderStatus',
    'PaymentStatus',

    # Usuarios y sesión
    'User',
    'UserRole',
    'AuthUser',
    'AuthSession',
    'avatar_for',

    # Derivados
    'AnalyticsSnapshot',

    # Utilidades
    'parse_enum',
    'product_to_dict',
]
