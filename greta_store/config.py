# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Todas las opciones se leen de variables de entorno con valores por defecto
# aptos para desarrollo (backend en memoria, datos en ./data).
#
# Comandos típicos en producción:
#   export GRETA_BACKEND=supabase
#   export SUPABASE_URL="https://xxxx.supabase.co"
#   export SUPABASE_ANON_KEY="..."
#   export GRETA_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
#   export GRETA_PRODUCTION=1
# ==============================================================================

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

BASE = os.path.dirname(os.path.abspath(__file__))

DEFAULT_SECRET = 'greta_store_dev_secret_key_change_in_production'
DEFAULT_ADMIN_EMAIL = 'bryan@greta.pe'

BACKEND_MEMORY = 'memory'
BACKEND_SUPABASE = 'supabase'


def _to_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'si', 'sí')


def _to_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value not in (None, '') else default
    except ValueError:
        logger.warning("Valor numérico inválido '%s', usando %s", value, default)
        return default


@dataclass
class Settings:
    """
    Configuración de la aplicación.

    Attributes:
        backend: 'memory' o 'supabase'
        supabase_url: URL del proyecto hosteado
        supabase_anon_key: Clave pública del proyecto
        data_dir: Carpeta del almacenamiento local (carrito, sesión)
        admin_email: Correo que siempre se trata como administrador
        secret_key: Clave de firma de cookies de Flask
        checkout_delay: Segundos de espera del pago simulado
        request_timeout: Timeout (s) de cada petición HTTP al backend
        log_level: Nivel de logging
        production: Modo producción
    """
    backend: str = BACKEND_MEMORY
    supabase_url: str = ''
    supabase_anon_key: str = ''
    data_dir: str = os.path.join(BASE, 'data')
    admin_email: str = DEFAULT_ADMIN_EMAIL
    secret_key: str = DEFAULT_SECRET
    checkout_delay: float = 2.0
    request_timeout: float = 10.0
    log_level: str = 'INFO'
    production: bool = False

    @property
    def storage_path(self) -> str:
        """Archivo JSON del almacenamiento local."""
        return os.path.join(self.data_dir, 'local_storage.json')

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Construye la configuración desde variables de entorno.

        Args:
            environ: Mapeo a usar (por defecto os.environ)
        """
        env = os.environ if environ is None else environ
        production = _to_bool(env.get('GRETA_PRODUCTION'))
        secret = env.get('GRETA_SECRET_KEY')

        if production and not secret:
            logger.warning("GRETA_PRODUCTION activo sin GRETA_SECRET_KEY definida")

        backend = (env.get('GRETA_BACKEND') or BACKEND_MEMORY).strip().lower()
        if backend not in (BACKEND_MEMORY, BACKEND_SUPABASE):
            logger.warning("GRETA_BACKEND desconocido '%s', usando memoria", backend)
            backend = BACKEND_MEMORY

        return cls(
            backend=backend,
            supabase_url=env.get('SUPABASE_URL', ''),
            supabase_anon_key=env.get('SUPABASE_ANON_KEY', ''),
            data_dir=env.get('GRETA_DATA_DIR') or os.path.join(BASE, 'data'),
            admin_email=env.get('GRETA_ADMIN_EMAIL') or DEFAULT_ADMIN_EMAIL,
            secret_key=secret or DEFAULT_SECRET,
            checkout_delay=_to_float(env.get('GRETA_CHECKOUT_DELAY'), 2.0),
            request_timeout=_to_float(env.get('GRETA_REQUEST_TIMEOUT'), 10.0),
            log_level=(env.get('GRETA_LOG_LEVEL') or 'INFO').upper(),
            production=production,
        )
