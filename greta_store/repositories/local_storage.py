# ==============================================================================
# ALMACENAMIENTO LOCAL - Equivalente a localStorage del navegador
# ==============================================================================
# Un único archivo JSON {clave: texto}. Cada escritura reemplaza el archivo
# completo de forma atómica (archivo temporal + os.replace).
# ==============================================================================

import json
import os
import threading
from typing import Dict, Optional


class LocalStorageRepository:
    """
    Almacenamiento clave → texto persistido en un archivo JSON.

    Los valores son strings (igual que localStorage): quien guarda
    estructuras las serializa antes, quien las lee las parsea.
    """

    # Lock global para evitar escrituras concurrentes al archivo
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Inicializa el almacenamiento.

        Args:
            file_path: Ruta absoluta al archivo JSON
        """
        self.file_path = file_path
        directory = os.path.dirname(os.path.abspath(file_path))
        os.makedirs(directory, exist_ok=True)

    def _read_raw(self) -> Dict[str, str]:
        """
        Lee el archivo completo.

        Returns:
            Diccionario clave → texto (vacío si no existe o está corrupto)
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return {}
        return data if isinstance(data, dict) else {}

    def _write_raw(self, data: Dict[str, str]) -> None:
        """
        Escribe el archivo completo.

        Raises:
            OSError: Si hay error de escritura
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def get_item(self, key: str) -> Optional[str]:
        """Obtiene el texto guardado bajo la clave, o None."""
        return self._read_raw().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Guarda (sobrescribe) el texto de la clave."""
        with self._file_lock:
            data = self._read_raw()
            data[key] = value
            self._write_raw(data)

    def remove_item(self, key: str) -> None:
        """Elimina la clave si existe."""
        with self._file_lock:
            data = self._read_raw()
            if data.pop(key, None) is not None:
                self._write_raw(data)


class MemoryLocalStorage:
    """Almacenamiento local sin disco, para el backend en memoria y tests."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)
