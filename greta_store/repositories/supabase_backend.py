# ==============================================================================
# BACKEND HOSTEADO - Adaptador HTTP (base de datos + autenticación)
# ==============================================================================
# Habla con las dos APIs REST que expone el servicio:
#
# - /rest/v1/<tabla>: registros vía PostgREST (select, insert, update,
#   delete) con filtros columna=eq.valor.
# - /auth/v1/...: autenticación por sesión vía GoTrue (password grant,
#   signup, logout, metadata del usuario).
#
# Toda falla (status HTTP >= 400 o error de transporte) se lanza como
# BackendError: los servicios nunca ven excepciones de requests.
# ==============================================================================

import json
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from greta_store.models import AuthSession
from greta_store.repositories.interfaces import (
    AuthCallback,
    BackendError,
    ILocalStorage,
    SIGNED_IN,
    SIGNED_OUT,
)
from greta_store.repositories.mappers import (
    auth_user_from_json,
    session_from_json,
    session_to_json,
)

logger = logging.getLogger(__name__)

SESSION_KEY = 'greta-auth-session'


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f'HTTP {resp.status_code}'
    if isinstance(body, dict):
        for key in ('msg', 'message', 'error_description', 'error'):
            if body.get(key):
                return str(body[key])
    return f'HTTP {resp.status_code}'


class _HttpClient:
    """Sesión HTTP compartida, cabeceras y traducción de errores."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self.access_token: Optional[str] = None
        self.session = session or requests.Session()
        # Sin reintentos: una escritura fallida se reporta una sola vez
        adapter = HTTPAdapter(max_retries=0)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    def headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        token = self.access_token or self.api_key
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json',
        }
        if extra:
            headers.update(extra)
        return headers

    def request(self, method: str, path: str, params: Optional[Dict[str, str]] = None,
                payload: Any = None, extra_headers: Optional[Dict[str, str]] = None) -> Any:
        url = f'{self.base_url}{path}'
        try:
            resp = self.session.request(
                method,
                url,
                params=params or {},
                json=payload,
                headers=self.headers(extra_headers),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BackendError(f'Backend no disponible: {e}') from e

        if resp.status_code >= 400:
            raise BackendError(_error_message(resp), status=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None


class SupabaseTable:
    """Acceso PostgREST a una tabla."""

    def __init__(self, client: _HttpClient, name: str):
        self._client = client
        self.name = name
        self._path = f'/rest/v1/{name}'

    def select_all(self, order_by: Optional[str] = None, descending: bool = False) -> List[Dict[str, Any]]:
        params = {'select': '*'}
        if order_by:
            params['order'] = f"{order_by}.{'desc' if descending else 'asc'}"
        return self._client.request('GET', self._path, params=params) or []

    def select_one(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        params = {'select': '*', column: f'eq.{value}', 'limit': '1'}
        rows = self._client.request('GET', self._path, params=params) or []
        return rows[0] if rows else None

    def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return self._client.request(
            'POST', self._path,
            payload=rows,
            extra_headers={'Prefer': 'return=representation'},
        ) or []

    def update(self, column: str, value: Any, changes: Dict[str, Any]) -> None:
        self._client.request('PATCH', self._path, params={column: f'eq.{value}'}, payload=changes)

    def delete(self, column: str, value: Any) -> None:
        self._client.request('DELETE', self._path, params={column: f'eq.{value}'})


class _Subscription:
    def __init__(self, listeners: List[AuthCallback], callback: AuthCallback):
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class SupabaseAuth:
    """Autenticación GoTrue.

    Los listeners de sesión viven en el cliente: el servicio no tiene
    canal push para esto, así que los eventos se emiten tras iniciar
    sesión, registrarse (si abre sesión) y cerrar sesión.
    """

    def __init__(self, client: _HttpClient, storage: Optional[ILocalStorage] = None):
        self._client = client
        self._storage = storage
        self._session: Optional[AuthSession] = None
        self._listeners: List[AuthCallback] = []
        self._restore()

    # ------------------------------------------------------------------
    def _restore(self) -> None:
        if self._storage is None:
            return
        raw = self._storage.get_item(SESSION_KEY)
        if not raw:
            return
        try:
            self._set_session(session_from_json(json.loads(raw)), persist=False)
        except (ValueError, TypeError):
            logger.warning("Sesión guardada ilegible, se ignora")

    def _set_session(self, session: Optional[AuthSession], persist: bool = True) -> None:
        self._session = session
        self._client.access_token = session.access_token if session else None
        if not persist or self._storage is None:
            return
        if session is None:
            self._storage.remove_item(SESSION_KEY)
        else:
            self._storage.set_item(SESSION_KEY, json.dumps(session_to_json(session)))

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(event, self._session)

    def _session_from_token_response(self, body: Dict[str, Any]) -> Optional[AuthSession]:
        if not body or not body.get('access_token'):
            return None
        return session_from_json(body)

    # ------------------------------------------------------------------
    def get_session(self) -> Optional[AuthSession]:
        if self._session is None:
            return None
        # Validar el token guardado; si expiró, la sesión termina
        try:
            body = self._client.request('GET', '/auth/v1/user')
        except BackendError as e:
            if e.status in (401, 403):
                self._set_session(None)
                return None
            raise
        if body:
            self._session.user = auth_user_from_json(body)
        return self._session

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        body = self._client.request(
            'POST', '/auth/v1/token',
            params={'grant_type': 'password'},
            payload={'email': email, 'password': password},
        )
        session = self._session_from_token_response(body)
        if session is None:
            raise BackendError('Respuesta de autenticación sin sesión')
        self._set_session(session)
        self._emit(SIGNED_IN)
        return session

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        body = self._client.request(
            'POST', '/auth/v1/signup',
            payload={'email': email, 'password': password, 'data': metadata or {}},
        )
        session = self._session_from_token_response(body or {})
        if session is not None:
            self._set_session(session)
            self._emit(SIGNED_IN)
        return session

    def sign_out(self) -> None:
        try:
            if self._session is not None:
                self._client.request('POST', '/auth/v1/logout')
        finally:
            self._set_session(None)
            self._emit(SIGNED_OUT)

    def update_user(self, metadata: Dict[str, Any]) -> None:
        if self._session is None:
            raise BackendError('Auth session missing!', status=401)
        body = self._client.request('PUT', '/auth/v1/user', payload={'data': metadata or {}})
        if body:
            self._session.user = auth_user_from_json(body)
            self._set_session(self._session)

    def on_auth_state_change(self, callback: AuthCallback) -> _Subscription:
        self._listeners.append(callback)
        return _Subscription(self._listeners, callback)


class SupabaseBackend:
    """Backend hosteado: auth + tablas products/orders/profiles."""

    def __init__(self, url: str, api_key: str, timeout: float = 10.0,
                 storage: Optional[ILocalStorage] = None,
                 session: Optional[requests.Session] = None):
        if not url or not api_key:
            raise ValueError('SUPABASE_URL y SUPABASE_ANON_KEY son obligatorios')
        self._client = _HttpClient(url, api_key, timeout=timeout, session=session)
        self.auth = SupabaseAuth(self._client, storage)

    def table(self, name: str) -> SupabaseTable:
        return SupabaseTable(self._client, name)
