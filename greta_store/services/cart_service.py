# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica del carrito de compras.
# El carrito vive en memoria y se escribe en el almacenamiento local en
# CADA cambio (write-through); al iniciar se rehidrata desde ahí.
# No hay llamadas al backend.
# ==============================================================================

from typing import Any, Dict, List, Optional

from greta_store.models import CartItem, Product
from greta_store.repositories.cart_repository import CartRepository


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar líneas (una sola línea por producto)
    - Calcular el total (siempre recalculado, nunca cacheado)
    - Persistir el carrito localmente tras cada cambio
    """

    # Envío gratis a partir de este monto
    FREE_SHIPPING_THRESHOLD = 100.0

    def __init__(self, cart_repo: CartRepository):
        """
        Inicializa el servicio y rehidrata el carrito guardado.

        Args:
            cart_repo: Repositorio del carrito local
        """
        self.cart_repo = cart_repo
        self._items: List[CartItem] = cart_repo.load()

    def _save(self) -> None:
        """Escribe el carrito actual en el almacenamiento local."""
        self.cart_repo.save(self._items)

    def _find(self, product_id: int) -> Optional[CartItem]:
        for item in self._items:
            if item.id == product_id:
                return item
        return None

    # =========================================================================
    # LECTURA
    # =========================================================================

    @property
    def items(self) -> List[CartItem]:
        """Líneas del carrito (copia de la lista)."""
        return list(self._items)

    @property
    def total(self) -> float:
        """Suma de precio x cantidad de todas las líneas."""
        return sum(item.price * item.quantity for item in self._items)

    @property
    def item_count(self) -> int:
        """Cantidad total de unidades en el carrito."""
        return sum(item.quantity for item in self._items)

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items, total_items, total_monto, items_count
        """
        return {
            'items': self.items,
            'total_items': self.item_count,
            'total_monto': round(self.total, 2),
            'items_count': len(self._items),
        }

    def free_shipping_progress(self) -> Dict[str, float]:
        """
        Progreso hacia el envío gratis.

        Returns:
            Dict con threshold, progress (0-100) y remaining (>= 0)
        """
        total = self.total
        threshold = self.FREE_SHIPPING_THRESHOLD
        return {
            'threshold': threshold,
            'progress': min(total / threshold * 100, 100.0),
            'remaining': round(max(threshold - total, 0.0), 2),
        }

    def upsells(self, products: List[Product], limit: int = 2) -> List[Product]:
        """Productos del catálogo que aún no están en el carrito."""
        in_cart = {item.id for item in self._items}
        return [p for p in products if p.id not in in_cart][:limit]

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def add_to_cart(self, product: Product, quantity: int = 1) -> CartItem:
        """
        Agrega un producto al carrito.

        Si ya existe una línea con el mismo id, incrementa su cantidad;
        si no, agrega una línea nueva. Con quantity > 1 equivale a llamar
        quantity veces seguidas.

        Args:
            product: Producto a agregar
            quantity: Unidades a sumar (>= 1)

        Returns:
            La línea resultante

        Raises:
            ValueError: Si quantity < 1
        """
        if quantity is None or quantity < 1:
            raise ValueError('La cantidad debe ser mayor a 0')

        existing = self._find(product.id)
        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = CartItem.from_product(product, quantity=quantity)
            self._items.append(line)

        self._save()
        return line

    def remove_from_cart(self, product_id: int) -> bool:
        """
        Elimina la línea completa del producto (no decrementa).

        Returns:
            True si había una línea con ese id
        """
        before = len(self._items)
        self._items = [item for item in self._items if item.id != product_id]
        self._save()
        return len(self._items) != before

    def decrement_cart_item(self, product_id: int) -> Optional[CartItem]:
        """
        Resta una unidad a la línea del producto; en cero, la elimina.

        Returns:
            La línea actualizada, o None si se eliminó o no existía
        """
        existing = self._find(product_id)
        if existing is None:
            return None
        if existing.quantity <= 1:
            self.remove_from_cart(product_id)
            return None
        existing.quantity -= 1
        self._save()
        return existing

    def clear_cart(self) -> None:
        """Vacía el carrito completamente."""
        self._items = []
        self._save()
