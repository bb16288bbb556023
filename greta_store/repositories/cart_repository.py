# ==============================================================================
# REPOSITORIO DEL CARRITO - Persistencia local
# ==============================================================================
# El carrito vive solo en el dispositivo: una única clave 'cart' con el
# arreglo JSON de líneas. Se lee una vez al iniciar y se sobrescribe en
# cada cambio.
# ==============================================================================

import json
import logging
from typing import List

from greta_store.models import CartItem
from greta_store.repositories.interfaces import ILocalStorage
from greta_store.repositories.mappers import cart_item_from_json, cart_item_to_json

logger = logging.getLogger(__name__)


class CartRepository:
    """
    Lectura/escritura del carrito en el almacenamiento local.
    """

    CART_KEY = 'cart'

    def __init__(self, storage: ILocalStorage):
        """
        Args:
            storage: Almacenamiento clave → texto
        """
        self.storage = storage

    def load(self) -> List[CartItem]:
        """
        Rehidrata el carrito guardado.

        Returns:
            Lista de líneas (vacía si no hay nada guardado o está corrupto)
        """
        raw = self.storage.get_item(self.CART_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError('el carrito guardado no es una lista')
            return [cart_item_from_json(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Carrito local ilegible, se inicia vacío: %s", e)
            return []

    def save(self, items: List[CartItem]) -> None:
        """Sobrescribe el carrito guardado con las líneas actuales."""
        payload = json.dumps([cart_item_to_json(i) for i in items], ensure_ascii=False)
        self.storage.set_item(self.CART_KEY, payload)
