# ==============================================================================
# SERVICIO DE CATÁLOGO
# ==============================================================================
# Dueño de la lista de productos en memoria.
#
# REGLAS:
# - Si el backend no devuelve productos (vacío o caído) se usa el catálogo
#   de respaldo y se intenta sembrarlo en segundo plano (falla silenciosa).
# - Alta/edición/baja son OPTIMISTAS: primero memoria, luego backend.
#   Si el backend falla NO se revierte; el resultado lo informa.
# ==============================================================================

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from greta_store.models import Product, ProductDraft, fallback_products
from greta_store.repositories.interfaces import BackendError, IBackendService, PRODUCTS_TABLE
from greta_store.repositories.mappers import product_changes, product_from_row, product_to_row

logger = logging.getLogger(__name__)


def run_in_thread(task: Callable[[], None]) -> None:
    """Ejecuta la tarea en un hilo daemon (fire-and-forget)."""
    threading.Thread(target=task, daemon=True).start()


class CatalogService:
    """
    Servicio para gestión del catálogo.

    Responsabilidades:
    - Cargar productos (con catálogo de respaldo)
    - Altas, ediciones y bajas optimistas
    - Búsqueda, filtro por categoría y productos relacionados
    """

    ALL_CATEGORIES = 'Todo'
    SORT_OPTIONS = frozenset(['default', 'asc', 'desc'])

    def __init__(
        self,
        backend: IBackendService,
        run_in_background: Callable[[Callable[[], None]], None] = run_in_thread
    ):
        """
        Args:
            backend: Backend de datos
            run_in_background: Ejecutor de tareas fire-and-forget
        """
        self.backend = backend
        self.run_in_background = run_in_background
        self._products: List[Product] = []
        self._lock = threading.RLock()

    @property
    def _table(self):
        return self.backend.table(PRODUCTS_TABLE)

    # =========================================================================
    # LECTURA
    # =========================================================================

    @property
    def products(self) -> List[Product]:
        """Productos en memoria (copia de la lista, mismas instancias)."""
        with self._lock:
            return list(self._products)

    def get_product(self, product_id: int) -> Optional[Product]:
        """Busca un producto por id."""
        with self._lock:
            for product in self._products:
                if product.id == product_id:
                    return product
        return None

    def categories(self) -> List[str]:
        """Categorías presentes en el catálogo, en orden de aparición."""
        seen = []
        for product in self.products:
            if product.category not in seen:
                seen.append(product.category)
        return seen

    def search(self, category: str = ALL_CATEGORIES, query: str = '', sort: str = 'default') -> List[Product]:
        """
        Filtra el catálogo como la vista de tienda.

        Args:
            category: Categoría exacta, o 'Todo' para todas
            query: Texto a buscar en el nombre (sin distinguir mayúsculas)
            sort: 'default' (orden del catálogo), 'asc' o 'desc' por precio

        Returns:
            Lista de productos que cumplen el filtro
        """
        needle = (query or '').strip().lower()
        result = [
            p for p in self.products
            if (not category or category == self.ALL_CATEGORIES or p.category == category)
            and needle in p.name.lower()
        ]
        if sort == 'asc':
            result.sort(key=lambda p: p.price)
        elif sort == 'desc':
            result.sort(key=lambda p: p.price, reverse=True)
        return result

    def related_products(self, product: Product, limit: int = 6) -> List[Product]:
        """
        Productos relacionados.
        Usa la relación manual si existe; si no, la misma categoría.
        """
        if product.related_product_ids:
            related = [self.get_product(pid) for pid in product.related_product_ids]
            return [p for p in related if p is not None and p.id != product.id][:limit]
        return [
            p for p in self.products
            if p.category == product.category and p.id != product.id
        ][:limit]

    # =========================================================================
    # CARGA
    # =========================================================================

    def load_products(self) -> Dict[str, Any]:
        """
        Carga el catálogo desde el backend.

        Si el resultado está vacío o la petición falla, se usa el catálogo
        de respaldo de inmediato y se intenta sembrarlo en el backend en
        segundo plano.

        Returns:
            Dict con ok, source ('backend' | 'fallback') y count
        """
        try:
            rows = self._table.select_all()
        except BackendError as e:
            logger.error("No se pudieron cargar productos: %s", e)
            rows = []

        if rows:
            try:
                products = [product_from_row(r) for r in rows]
            except (TypeError, ValueError, KeyError, AttributeError) as e:
                # Filas ilegibles: se muestra el respaldo sin sembrar
                # (el backend ya tiene datos)
                logger.error("Catálogo del backend con filas inválidas: %s", e)
                with self._lock:
                    self._products = fallback_products()
                return {'ok': False, 'source': 'fallback', 'count': len(self._products),
                        'error': 'Catálogo con datos inválidos'}
            with self._lock:
                self._products = products
            return {'ok': True, 'source': 'backend', 'count': len(rows)}

        logger.info("Catálogo vacío o no disponible, usando catálogo de respaldo")
        with self._lock:
            self._products = fallback_products()
        self.run_in_background(self._seed_fallback)
        return {'ok': True, 'source': 'fallback', 'count': len(self._products)}

    def _seed_fallback(self) -> None:
        """Escribe el catálogo de respaldo en el backend (mejor esfuerzo)."""
        rows = [product_to_row(p) for p in fallback_products()]
        try:
            created = self._table.insert(rows)
        except BackendError as e:
            logger.warning("No se pudo sembrar el catálogo de respaldo: %s", e)
            return
        if created:
            with self._lock:
                self._products = [product_from_row(r) for r in created]

    # =========================================================================
    # ADMINISTRACIÓN (optimista)
    # =========================================================================

    def _temporary_id(self) -> int:
        temp_id = int(time.time() * 1000)
        taken = {p.id for p in self._products}
        while temp_id in taken:
            temp_id += 1
        return temp_id

    def add_product(self, draft: ProductDraft) -> Dict[str, Any]:
        """
        Crea un producto.

        Se inserta de inmediato con un id temporal y luego se pide al
        backend; si responde, la entrada temporal se reemplaza por la fila
        creada. Si falla, la entrada queda con el id temporal.

        Returns:
            Dict con ok, product (el vigente en memoria) y error si falló
        """
        if not draft.name or not draft.name.strip():
            return {'ok': False, 'error': 'El nombre es obligatorio'}
        try:
            price = float(draft.price)
            if price < 0:
                raise ValueError()
        except (TypeError, ValueError):
            return {'ok': False, 'error': 'Precio inválido'}

        with self._lock:
            temp_id = self._temporary_id()
            temp = Product(
                id=temp_id,
                name=draft.name,
                price=price,
                category=draft.category,
                image=draft.image,
                rating=5.0,
                sales=0,
                description=draft.description,
                nutrition_info=draft.nutrition_info,
                shipping_info=draft.shipping_info,
                related_product_ids=draft.related_product_ids,
            )
            self._products.append(temp)

        try:
            created = self._table.insert([product_to_row(temp)])
        except BackendError as e:
            logger.error("Error creando producto '%s': %s", draft.name, e)
            return {'ok': False, 'error': e.message, 'product': temp}

        if not created:
            return {'ok': False, 'error': 'El backend no devolvió el producto creado', 'product': temp}

        saved = product_from_row(created[0])
        with self._lock:
            self._products = [saved if p.id == temp_id else p for p in self._products]
        return {'ok': True, 'product': saved}

    def update_product(self, product: Product) -> Dict[str, Any]:
        """
        Reemplaza el producto en memoria (por id) y luego en el backend.
        No hay rollback si el backend falla.
        """
        if not isinstance(product.name, str) or not product.name.strip():
            return {'ok': False, 'error': 'El nombre es obligatorio'}

        with self._lock:
            self._products = [product if p.id == product.id else p for p in self._products]

        try:
            self._table.update('id', product.id, product_changes(product))
        except BackendError as e:
            logger.error("Error actualizando producto %s: %s", product.id, e)
            return {'ok': False, 'error': e.message}
        return {'ok': True, 'product': product}

    def delete_product(self, product_id: int) -> Dict[str, Any]:
        """
        Quita el producto de memoria y luego del backend.
        No hay rollback si el backend falla.
        """
        with self._lock:
            self._products = [p for p in self._products if p.id != product_id]

        try:
            self._table.delete('id', product_id)
        except BackendError as e:
            logger.error("Error eliminando producto %s: %s", product_id, e)
            return {'ok': False, 'error': e.message}
        return {'ok': True}

    def record_sales(self, product_id: int, quantity: int) -> Optional[Product]:
        """
        Actualiza el contador de ventas mostrado de un producto.
        Solo en memoria.
        """
        product = self.get_product(product_id)
        if product is not None:
            product.sales = quantity
        return product
