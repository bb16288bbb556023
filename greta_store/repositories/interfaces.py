# ==============================================================================
# INTERFACES DE REPOSITORIOS - FRONTERA CON EL BACKEND
# ==============================================================================
#
# Este archivo define los contratos (protocolos) que cualquier backend debe
# cumplir. Los servicios dependen de estas interfaces, NO de la
# implementación concreta:
#
# 1. INDEPENDENCIA DEL PROVEEDOR
#    - SupabaseBackend habla con el servicio hosteado por HTTP
#    - MemoryBackend vive en el proceso (desarrollo offline y tests)
#
# 2. ERRORES
#    - Toda falla del backend se lanza como BackendError
#    - Los servicios solo capturan BackendError
#
# 3. TABLAS LÓGICAS
#    - products, orders, profiles
#
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from greta_store.models import AuthSession


# Nombres de las tablas lógicas del backend
PRODUCTS_TABLE = 'products'
ORDERS_TABLE = 'orders'
PROFILES_TABLE = 'profiles'

# Eventos de autenticación
SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'

AuthCallback = Callable[[str, Optional[AuthSession]], None]


class BackendError(Exception):
    """Falla de una operación contra el backend (red, permisos, esquema)."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


# ==============================================================================
# INTERFACES DEL BACKEND
# ==============================================================================

@runtime_checkable
class IBackendTable(Protocol):
    """
    Operaciones orientadas a registros sobre una tabla del backend.
    Las filas usan los nombres de columna del backend (snake_case).
    """

    def select_all(self, order_by: Optional[str] = None, descending: bool = False) -> List[Dict[str, Any]]:
        """Obtiene todas las filas, opcionalmente ordenadas."""
        ...

    def select_one(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        """Obtiene la primera fila donde column == value."""
        ...

    def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Inserta filas y retorna las filas creadas (con ids asignados)."""
        ...

    def update(self, column: str, value: Any, changes: Dict[str, Any]) -> None:
        """Actualiza las filas donde column == value."""
        ...

    def delete(self, column: str, value: Any) -> None:
        """Elimina las filas donde column == value."""
        ...


@runtime_checkable
class ISubscription(Protocol):
    """Suscripción a eventos de autenticación."""

    def unsubscribe(self) -> None:
        ...


@runtime_checkable
class IAuthProvider(Protocol):
    """
    Autenticación basada en sesión del backend.
    """

    def get_session(self) -> Optional[AuthSession]:
        """Sesión actual, o None si no hay."""
        ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Inicia sesión. Lanza BackendError con el mensaje del proveedor."""
        ...

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        """Registra un usuario. Puede retornar sesión si el alta la abre."""
        ...

    def sign_out(self) -> None:
        """Cierra la sesión actual."""
        ...

    def update_user(self, metadata: Dict[str, Any]) -> None:
        """Actualiza la metadata del usuario en sesión."""
        ...

    def on_auth_state_change(self, callback: AuthCallback) -> ISubscription:
        """Registra un listener de eventos de sesión."""
        ...


@runtime_checkable
class IBackendService(Protocol):
    """
    Backend completo: autenticación + tablas.
    """

    auth: IAuthProvider

    def table(self, name: str) -> IBackendTable:
        """Acceso a una tabla lógica."""
        ...


# ==============================================================================
# INTERFAZ DE PERSISTENCIA LOCAL
# ==============================================================================

@runtime_checkable
class ILocalStorage(Protocol):
    """
    Almacenamiento clave → texto del dispositivo (equivalente a localStorage).
    """

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...
