# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios, backend y Store. Facilita:
#   - Inyección de dependencias
#   - Testing (se puede pasar un backend en memoria)
#   - Cambiar de backend sin tocar servicios ni rutas
#
# ═══════════════════════════════════════════════════════════════════════════════
# CAMBIO DE BACKEND
# ═══════════════════════════════════════════════════════════════════════════════
#
#   GRETA_BACKEND=memory    → MemoryBackend (desarrollo offline)
#   GRETA_BACKEND=supabase  → SupabaseBackend (requiere SUPABASE_URL y
#                             SUPABASE_ANON_KEY)
#
# Los servicios NO cambian porque dependen de IBackendService.
# ==============================================================================

from typing import Optional

from greta_store.config import BACKEND_SUPABASE, Settings

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Backend y almacenamiento local
# ═══════════════════════════════════════════════════════════════════════════════
from greta_store.repositories import (
    CartRepository,
    IBackendService,
    ILocalStorage,
    LocalStorageRepository,
    MemoryBackend,
    SupabaseBackend,
)

# ═══════════════════════════════════════════════════════════════════════════════
# STORE - Fuente única de verdad
# ═══════════════════════════════════════════════════════════════════════════════
from greta_store.store import Store


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y del Store.

    Uso:
        container = AppContainer(Settings.from_env())
        store = container.store
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, settings: Settings = None, backend: IBackendService = None,
                local_storage: ILocalStorage = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, settings: Settings = None, backend: IBackendService = None,
                 local_storage: ILocalStorage = None):
        """
        Inicializa el contenedor.

        Args:
            settings: Configuración (por defecto desde variables de entorno)
            backend: Backend ya construido (opcional, útil en tests)
            local_storage: Almacenamiento local ya construido (opcional)
        """
        if self._initialized:
            return

        self.settings = settings or Settings.from_env()

        # Inicializar dependencias (lazy loading)
        self._local_storage: Optional[ILocalStorage] = local_storage
        self._backend: Optional[IBackendService] = backend
        self._cart_repo: Optional[CartRepository] = None
        self._store: Optional[Store] = None

        self._initialized = True

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def local_storage(self) -> ILocalStorage:
        """Almacenamiento local del dispositivo (singleton)."""
        if self._local_storage is None:
            self._local_storage = LocalStorageRepository(self.settings.storage_path)
        return self._local_storage

    @property
    def cart_repo(self) -> CartRepository:
        """Repositorio del carrito (singleton)."""
        if self._cart_repo is None:
            self._cart_repo = CartRepository(self.local_storage)
        return self._cart_repo

    @property
    def backend(self) -> IBackendService:
        """Backend de datos y autenticación (singleton)."""
        if self._backend is None:
            if self.settings.backend == BACKEND_SUPABASE:
                self._backend = SupabaseBackend(
                    self.settings.supabase_url,
                    self.settings.supabase_anon_key,
                    timeout=self.settings.request_timeout,
                    storage=self.local_storage,
                )
            else:
                self._backend = MemoryBackend()
        return self._backend

    # =========================================================================
    # STORE
    # =========================================================================

    @property
    def store(self) -> Store:
        """Store de la aplicación (singleton)."""
        if self._store is None:
            self._store = Store(
                self.backend,
                self.cart_repo,
                admin_email=self.settings.admin_email,
            )
        return self._store

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        if self._store is not None:
            self._store.close()
        self._local_storage = None
        self._backend = None
        self._cart_repo = None
        self._store = None

    @classmethod
    def get_instance(cls, settings: Settings = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            settings: Configuración (solo se usa en primera llamada)
        """
        if cls._instance is None:
            return cls(settings)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(settings: Settings = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        settings: Configuración de la aplicación

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(settings)
