# ==============================================================================
# SERVICIO DE USUARIOS Y SESIÓN
# ==============================================================================
# Centraliza la sesión del usuario:
# - Restaurar la sesión al iniciar
# - Login / registro / logout (delegados al proveedor de autenticación)
# - Perfil (nombre, teléfono) y roles
#
# RESOLUCIÓN DEL ROL:
# 1. Por defecto "client"
# 2. Si el correo coincide con el administrador configurado → "admin"
# 3. Si existe fila en profiles, su rol/nombre/teléfono tienen prioridad
# Una falla al leer el perfil NO impide la sesión: se usan los valores
# derivados del correo.
# ==============================================================================

import logging
from typing import Any, Dict, Optional

from greta_store.models import AuthSession, AuthUser, User, UserRole, avatar_for, parse_enum
from greta_store.repositories.interfaces import BackendError, IBackendService, PROFILES_TABLE
from greta_store.repositories.mappers import profile_changes, profile_from_row

logger = logging.getLogger(__name__)


class ProtectedOperationError(Exception):
    """Excepción lanzada cuando un usuario sin permisos intenta una acción de admin."""
    pass


class UserService:
    """
    Servicio para gestión de la sesión y del perfil del usuario.

    Responsabilidades:
    - Mapear el usuario del proveedor de auth a User (rol, nombre, teléfono)
    - Autenticación (login/registro/logout)
    - Actualizar perfil y roles
    """

    DEFAULT_NAME = 'Usuario'

    def __init__(self, backend: IBackendService, admin_email: str = ''):
        """
        Inicializa el servicio de usuarios.

        Args:
            backend: Backend con autenticación y tabla profiles
            admin_email: Correo que se considera administrador aunque no
                         exista fila en profiles
        """
        self.backend = backend
        self.admin_email = (admin_email or '').strip().lower()
        self._user: Optional[User] = None

    @property
    def user(self) -> Optional[User]:
        """Usuario en sesión, o None."""
        return self._user

    @property
    def _profiles(self):
        return self.backend.table(PROFILES_TABLE)

    # =========================================================================
    # MAPEO DE USUARIO
    # =========================================================================

    def map_user(self, auth_user: AuthUser) -> User:
        """
        Construye el User de la tienda a partir del usuario de auth.

        Args:
            auth_user: Usuario del proveedor de autenticación

        Returns:
            User con rol, nombre, teléfono y avatar resueltos
        """
        email = auth_user.email or ''
        role = UserRole.CLIENT
        name = email.split('@')[0] or self.DEFAULT_NAME
        phone = ''

        if self.admin_email and email.strip().lower() == self.admin_email:
            role = UserRole.ADMIN

        try:
            row = self._profiles.select_one('id', auth_user.id)
        except BackendError as e:
            logger.warning("No se pudo leer el perfil de %s, usando datos de auth: %s", email, e)
            row = None

        if isinstance(row, dict) and row:
            profile = profile_from_row(row)
            role = profile['role'] or role
            name = profile['name'] or name
            phone = profile['phone'] or ''

        return User(
            id=auth_user.id,
            email=email,
            name=name,
            role=role,
            phone=phone,
            avatar=avatar_for(name),
        )

    def restore_session(self) -> Optional[User]:
        """
        Restaura la sesión existente (si hay).
        Nunca lanza: cualquier falla deja al usuario sin sesión.
        """
        try:
            session = self.backend.auth.get_session()
            self._user = self.map_user(session.user) if session and session.user else None
        except BackendError as e:
            logger.error("Error restaurando sesión: %s", e)
            self._user = None
        return self._user

    def handle_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        """Listener de cambios de sesión del proveedor de auth."""
        if session and session.user:
            self._user = self.map_user(session.user)
        else:
            self._user = None
        logger.info("Evento de sesión %s: %s", event, self._user.email if self._user else 'sin sesión')

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Inicia sesión con correo y contraseña.
        El usuario se carga vía el evento de sesión del proveedor.

        Returns:
            Dict {'ok': True} o {'ok': False, 'error': mensaje del proveedor}
        """
        if not email or not password:
            return {'ok': False, 'error': 'Correo y contraseña son obligatorios'}
        try:
            self.backend.auth.sign_in_with_password(email.strip(), password)
        except BackendError as e:
            return {'ok': False, 'error': e.message}
        return {'ok': True}

    def signup(self, email: str, password: str, name: str, phone: str = '') -> Dict[str, Any]:
        """
        Registra un usuario nuevo con nombre y teléfono en la metadata.

        Returns:
            Dict {'ok': True} o {'ok': False, 'error': mensaje del proveedor}
        """
        if not email or not password:
            return {'ok': False, 'error': 'Correo y contraseña son obligatorios'}
        try:
            self.backend.auth.sign_up(email.strip(), password, profile_changes(name, phone))
        except BackendError as e:
            return {'ok': False, 'error': e.message}
        return {'ok': True}

    def logout(self) -> Dict[str, Any]:
        """
        Cierra la sesión. El usuario se limpia de memoria aunque el
        proveedor falle (no se destruye nada en el servidor).
        """
        try:
            self.backend.auth.sign_out()
        except BackendError as e:
            logger.warning("Error cerrando sesión en el proveedor: %s", e)
        finally:
            self._user = None
        return {'ok': True}

    # =========================================================================
    # PERFIL Y ROLES
    # =========================================================================

    def update_user_profile(self, name: str, phone: str) -> Dict[str, Any]:
        """
        Actualiza nombre y teléfono.

        Primero en memoria; luego dos escrituras independientes (metadata
        de auth y fila de profiles). Si la segunda falla tras la primera,
        ambos registros quedan distintos: no hay transacción.

        Returns:
            Dict con ok, user y error si alguna escritura falló
        """
        if self._user is None or not self._user.id:
            return {'ok': False, 'error': 'No hay sesión activa'}

        self._user.name = name
        self._user.phone = phone
        changes = profile_changes(name, phone)

        try:
            self.backend.auth.update_user(changes)
            self._profiles.update('id', self._user.id, changes)
        except BackendError as e:
            logger.error("Error actualizando perfil de %s: %s", self._user.email, e)
            return {'ok': False, 'error': e.message, 'user': self._user}
        return {'ok': True, 'user': self._user}

    def update_user_role(self, user_id: str, role: str) -> Dict[str, Any]:
        """
        Cambia el rol de un usuario en profiles.

        Raises:
            ProtectedOperationError: Si el usuario en sesión no es admin
        """
        if self._user is None or not self._user.is_admin():
            raise ProtectedOperationError('Solo un administrador puede cambiar roles')

        new_role = parse_enum(UserRole, role, None)
        if new_role is None:
            return {'ok': False, 'error': f'Rol inválido: {role}'}

        try:
            self._profiles.update('id', user_id, {'role': new_role.value})
        except BackendError as e:
            logger.error("Error cambiando rol de %s: %s", user_id, e)
            return {'ok': False, 'error': e.message}

        if user_id == self._user.id:
            self._user.role = new_role
        logger.info("Usuario %s ahora es %s", user_id, new_role.value)
        return {'ok': True}
