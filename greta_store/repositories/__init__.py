# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia:
#   - Backend (hosteado por HTTP o en memoria) para productos, pedidos,
#     perfiles y autenticación
#   - Almacenamiento local del dispositivo para el carrito
#
# ESTRUCTURA:
# ├── interfaces.py        → Protocolos del backend y del almacenamiento local
# ├── mappers.py           → Traducción snake_case ↔ entidades (única frontera)
# ├── supabase_backend.py  → Backend hosteado (PostgREST + GoTrue vía requests)
# ├── memory_backend.py    → Backend en memoria (offline y tests)
# ├── local_storage.py     → Archivo JSON clave → texto
# └── cart_repository.py   → Clave 'cart' del almacenamiento local
# ==============================================================================

# Interfaces
from .interfaces import (
    BackendError,
    IAuthProvider,
    IBackendService,
    IBackendTable,
    ILocalStorage,
    ISubscription,
    ORDERS_TABLE,
    PRODUCTS_TABLE,
    PROFILES_TABLE,
    SIGNED_IN,
    SIGNED_OUT,
)

# Implementaciones
from .local_storage import LocalStorageRepository, MemoryLocalStorage
from .cart_repository import CartRepository
from .memory_backend import MemoryBackend
from .supabase_backend import SupabaseBackend

__all__ = [
    # Interfaces
    'BackendError',
    'IAuthProvider',
    'IBackendService',
    'IBackendTable',
    'ILocalStorage',
    'ISubscription',
    'ORDERS_TABLE',
    'PRODUCTS_TABLE',
    'PROFILES_TABLE',
    'SIGNED_IN',
    'SIGNED_OUT',

    # Implementaciones
    'LocalStorageRepository',
    'MemoryLocalStorage',
    'CartRepository',
    'MemoryBackend',
    'SupabaseBackend',
]
