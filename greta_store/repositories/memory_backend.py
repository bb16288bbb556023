# ==============================================================================
# BACKEND EN MEMORIA
# ==============================================================================
# Implementación completa de IBackendService dentro del proceso.
# Usos:
#   - Desarrollo offline (GRETA_BACKEND=memory)
#   - Tests: permite inyectar fallas por operación con fail('orders.insert')
#
# Reproduce el comportamiento relevante del servicio hosteado:
#   - products: id entero autoincremental
#   - orders: id UUID en texto
#   - profiles: se crea una fila al registrarse (como el trigger del backend)
#   - auth: contraseñas hasheadas, eventos SIGNED_IN / SIGNED_OUT
# ==============================================================================

import copy
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Set

from werkzeug.security import check_password_hash, generate_password_hash

from greta_store.models import AuthSession, AuthUser, UserRole
from greta_store.repositories.interfaces import (
    AuthCallback,
    BackendError,
    ORDERS_TABLE,
    PRODUCTS_TABLE,
    PROFILES_TABLE,
    SIGNED_IN,
    SIGNED_OUT,
)


class _FailureSwitch:
    """Conjunto de operaciones que deben fallar (ej. 'orders.insert')."""

    def __init__(self):
        self._failing: Set[str] = set()

    def fail(self, operation: str) -> None:
        self._failing.add(operation)

    def recover(self, operation: Optional[str] = None) -> None:
        if operation is None:
            self._failing.clear()
        else:
            self._failing.discard(operation)

    def check(self, operation: str) -> None:
        if operation in self._failing:
            raise BackendError(f'Falla simulada en {operation}', status=503)


class MemoryTable:
    """
    Tabla en memoria. Las filas se copian al entrar y al salir para que
    nadie comparta referencias con el "servidor".
    """

    def __init__(self, name: str, failures: _FailureSwitch, id_factory: Optional[Callable[[], Any]] = None):
        self.name = name
        self._failures = failures
        self._id_factory = id_factory
        self._rows: List[Dict[str, Any]] = []
        self._lock = threading.RLock()

    def select_all(self, order_by: Optional[str] = None, descending: bool = False) -> List[Dict[str, Any]]:
        self._failures.check(f'{self.name}.select')
        with self._lock:
            rows = copy.deepcopy(self._rows)
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by) or ''), reverse=descending)
        return rows

    def select_one(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        self._failures.check(f'{self.name}.select')
        with self._lock:
            for row in self._rows:
                if row.get(column) == value:
                    return copy.deepcopy(row)
        return None

    def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self._failures.check(f'{self.name}.insert')
        created = []
        with self._lock:
            for row in rows:
                new_row = copy.deepcopy(row)
                if new_row.get('id') is None and self._id_factory:
                    new_row['id'] = self._id_factory()
                self._rows.append(new_row)
                created.append(copy.deepcopy(new_row))
        return created

    def update(self, column: str, value: Any, changes: Dict[str, Any]) -> None:
        self._failures.check(f'{self.name}.update')
        with self._lock:
            for row in self._rows:
                if row.get(column) == value:
                    row.update(copy.deepcopy(changes))

    def delete(self, column: str, value: Any) -> None:
        self._failures.check(f'{self.name}.delete')
        with self._lock:
            self._rows = [r for r in self._rows if r.get(column) != value]

    def seed(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Carga filas sin pasar por la inyección de fallas."""
        with self._lock:
            pending = self._failures
            self._failures = _FailureSwitch()
            try:
                return self.insert(rows)
            finally:
                self._failures = pending


class _MemorySubscription:
    def __init__(self, listeners: List[AuthCallback], callback: AuthCallback):
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class MemoryAuth:
    """
    Proveedor de autenticación en memoria.
    """

    def __init__(self, failures: _FailureSwitch, profiles: MemoryTable):
        self._failures = failures
        self._profiles = profiles
        self._users: Dict[str, Dict[str, Any]] = {}
        self._session: Optional[AuthSession] = None
        self._listeners: List[AuthCallback] = []

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(event, self._session)

    def _session_for(self, email: str) -> AuthSession:
        record = self._users[email]
        user = AuthUser(id=record['id'], email=email, user_metadata=dict(record['user_metadata']))
        return AuthSession(access_token=uuid.uuid4().hex, user=user)

    def get_session(self) -> Optional[AuthSession]:
        self._failures.check('auth.get_session')
        return self._session

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._failures.check('auth.sign_in')
        record = self._users.get((email or '').strip().lower())
        if not record or not check_password_hash(record['password_hash'], password or ''):
            raise BackendError('Invalid login credentials', status=400)
        self._session = self._session_for(record['email'])
        self._emit(SIGNED_IN)
        return self._session

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        self._failures.check('auth.sign_up')
        key = (email or '').strip().lower()
        if not key or '@' not in key:
            raise BackendError('Unable to validate email address: invalid format', status=400)
        if len(password or '') < 6:
            raise BackendError('Password should be at least 6 characters', status=422)
        if key in self._users:
            raise BackendError('User already registered', status=422)

        user_id = str(uuid.uuid4())
        self._users[key] = {
            'id': user_id,
            'email': key,
            'password_hash': generate_password_hash(password),
            'user_metadata': dict(metadata or {}),
        }
        # Igual que el trigger del backend hosteado: crear perfil
        self._profiles.seed([{
            'id': user_id,
            'full_name': (metadata or {}).get('full_name'),
            'phone': (metadata or {}).get('phone'),
            'role': UserRole.CLIENT.value,
        }])
        self._session = self._session_for(key)
        self._emit(SIGNED_IN)
        return self._session

    def sign_out(self) -> None:
        self._failures.check('auth.sign_out')
        self._session = None
        self._emit(SIGNED_OUT)

    def update_user(self, metadata: Dict[str, Any]) -> None:
        self._failures.check('auth.update_user')
        if self._session is None:
            raise BackendError('Auth session missing!', status=401)
        record = self._users[self._session.user.email]
        record['user_metadata'].update(metadata or {})
        self._session.user.user_metadata = dict(record['user_metadata'])

    def on_auth_state_change(self, callback: AuthCallback) -> _MemorySubscription:
        self._listeners.append(callback)
        return _MemorySubscription(self._listeners, callback)


class MemoryBackend:
    """
    Backend completo en memoria: auth + tablas products/orders/profiles.

    Uso:
        backend = MemoryBackend()
        backend.fail('orders.insert')   # la próxima inserción de pedidos falla
        backend.recover()               # vuelve a la normalidad
    """

    def __init__(self):
        self._failures = _FailureSwitch()
        self._next_product_id = 0
        self._id_lock = threading.Lock()
        self._tables = {
            PRODUCTS_TABLE: MemoryTable(PRODUCTS_TABLE, self._failures, self._product_id),
            ORDERS_TABLE: MemoryTable(ORDERS_TABLE, self._failures, lambda: str(uuid.uuid4())),
            PROFILES_TABLE: MemoryTable(PROFILES_TABLE, self._failures),
        }
        self.auth = MemoryAuth(self._failures, self._tables[PROFILES_TABLE])

    def _product_id(self) -> int:
        with self._id_lock:
            self._next_product_id += 1
            return self._next_product_id

    def table(self, name: str) -> MemoryTable:
        try:
            return self._tables[name]
        except KeyError:
            raise BackendError(f'relation "{name}" does not exist', status=404)

    def fail(self, operation: str) -> None:
        """Hace fallar la operación indicada hasta llamar recover()."""
        self._failures.fail(operation)

    def recover(self, operation: Optional[str] = None) -> None:
        """Quita una falla simulada (o todas)."""
        self._failures.recover(operation)
