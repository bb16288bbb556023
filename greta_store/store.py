# ==============================================================================
# STORE - Fuente única de verdad de la tienda
# ==============================================================================
# Reúne catálogo, carrito, pedidos y usuario en sesión detrás de una sola
# interfaz. La capa de presentación (rutas Flask) solo llama operaciones
# del Store y nunca guarda copias propias del estado.
#
# FLUJO:
#   acción → Store.operación → servicio (memoria primero) → backend
#          → el resultado ({'ok': ...}) informa si el backend confirmó
#
# Las mutaciones NUNCA lanzan por fallas del backend: retornan
# {'ok': False, 'error': ...} y el estado optimista queda como está.
# ==============================================================================

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from greta_store.models import (
    AnalyticsSnapshot,
    CartItem,
    Order,
    Product,
    ProductDraft,
    User,
    fallback_products,
)
from greta_store.repositories.cart_repository import CartRepository
from greta_store.repositories.interfaces import IBackendService, ISubscription
from greta_store.services import (
    AnalyticsService,
    CartService,
    CatalogService,
    OrderService,
    ProtectedOperationError,
    UserService,
    run_in_thread,
)

logger = logging.getLogger(__name__)


class Store:
    """
    Contenedor explícito del estado de la aplicación.

    Uso:
        store = Store(backend, CartRepository(storage), admin_email='admin@x.pe')
        store.initialize()
        store.add_to_cart(store.products[0])
        store.place_order('Ana', 'ana@correo.pe')
    """

    def __init__(
        self,
        backend: IBackendService,
        cart_repo: CartRepository,
        admin_email: str = '',
        run_in_background: Callable[[Callable[[], None]], None] = run_in_thread
    ):
        """
        Args:
            backend: Backend de datos y autenticación
            cart_repo: Repositorio del carrito local (se rehidrata aquí)
            admin_email: Correo tratado como administrador
            run_in_background: Ejecutor de tareas fire-and-forget
        """
        self.backend = backend
        self.cart_service = CartService(cart_repo)
        self.catalog_service = CatalogService(backend, run_in_background)
        self.order_service = OrderService(backend)
        self.user_service = UserService(backend, admin_email)
        self.analytics_service = AnalyticsService()

        self._subscription: Optional[ISubscription] = None
        self._loading = False
        self._initialized = False

    # =========================================================================
    # CICLO DE VIDA
    # =========================================================================

    def initialize(self) -> Dict[str, Any]:
        """
        Carga inicial: sesión, catálogo y pedidos; luego se suscribe a los
        cambios de sesión. Ninguna falla del backend interrumpe la carga.

        Returns:
            Dict con el resultado de cada carga
        """
        self._loading = True
        try:
            self.user_service.restore_session()
            products = self.catalog_service.load_products()
            orders = self.order_service.load_orders()
            if self._subscription is None:
                self._subscription = self.backend.auth.on_auth_state_change(
                    self.user_service.handle_auth_event
                )
        finally:
            self._loading = False

        self._initialized = True
        logger.info(
            "Tienda inicializada: %s productos (%s), %s pedidos",
            products.get('count', 0), products.get('source'), len(self.order_service.orders)
        )
        return {'ok': True, 'products': products, 'orders': orders}

    def close(self) -> None:
        """Cancela la suscripción a eventos de sesión."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def loading(self) -> bool:
        """True mientras corre la carga inicial."""
        return self._loading

    # =========================================================================
    # ESTADO
    # =========================================================================

    @property
    def user(self) -> Optional[User]:
        return self.user_service.user

    @property
    def products(self) -> List[Product]:
        return self.catalog_service.products

    @property
    def cart(self) -> List[CartItem]:
        return self.cart_service.items

    @property
    def orders(self) -> List[Order]:
        return self.order_service.orders

    @property
    def cart_total(self) -> float:
        """Total del carrito, recalculado en cada lectura."""
        return self.cart_service.total

    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin()

    # =========================================================================
    # CARRITO
    # =========================================================================

    def add_to_cart(self, product: Product, quantity: int = 1) -> Dict[str, Any]:
        try:
            line = self.cart_service.add_to_cart(product, quantity)
        except ValueError as e:
            return {'ok': False, 'error': str(e)}
        return {'ok': True, 'item': line}

    def remove_from_cart(self, product_id: int) -> Dict[str, Any]:
        """Elimina la línea completa del producto."""
        return {'ok': True, 'removed': self.cart_service.remove_from_cart(product_id)}

    def decrement_cart_item(self, product_id: int) -> Dict[str, Any]:
        """Resta una unidad (la línea desaparece al llegar a cero)."""
        return {'ok': True, 'item': self.cart_service.decrement_cart_item(product_id)}

    def clear_cart(self) -> Dict[str, Any]:
        self.cart_service.clear_cart()
        return {'ok': True}

    def free_shipping_progress(self) -> Dict[str, float]:
        return self.cart_service.free_shipping_progress()

    def upsells(self, limit: int = 2) -> List[Product]:
        return self.cart_service.upsells(self.products, limit)

    # =========================================================================
    # CATÁLOGO
    # =========================================================================

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.catalog_service.get_product(product_id)

    def categories(self) -> List[str]:
        return self.catalog_service.categories()

    def search(self, category: str = CatalogService.ALL_CATEGORIES, query: str = '',
               sort: str = 'default') -> List[Product]:
        return self.catalog_service.search(category, query, sort)

    def related_products(self, product: Product, limit: int = 6) -> List[Product]:
        return self.catalog_service.related_products(product, limit)

    def add_product(self, draft: ProductDraft) -> Dict[str, Any]:
        return self.catalog_service.add_product(draft)

    def update_product(self, product: Product) -> Dict[str, Any]:
        return self.catalog_service.update_product(product)

    def delete_product(self, product_id: int) -> Dict[str, Any]:
        return self.catalog_service.delete_product(product_id)

    # =========================================================================
    # PEDIDOS
    # =========================================================================

    def place_order(self, customer_name: str, email: str) -> Dict[str, Any]:
        """
        Registra un pedido con el carrito actual.
        El carrito se vacía solo si el backend confirma el pedido.
        """
        result = self.order_service.place_order(
            customer_name, email, self.cart_service.items, self.cart_service.total
        )
        if result['ok']:
            self.cart_service.clear_cart()
            logger.info("Pedido %s registrado para %s", result['order'].id, email)
        return result

    def get_order(self, order_id: str) -> Optional[Order]:
        return self.order_service.get_order(order_id)

    def filter_orders(self, status: str = 'All', payment_status: str = 'All') -> List[Order]:
        return self.order_service.filter_orders(status, payment_status)

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return self.order_service.update_order_status(order_id, status)

    def update_payment_status(self, order_id: str, payment_status: str) -> Dict[str, Any]:
        return self.order_service.update_payment_status(order_id, payment_status)

    def generate_historical_orders(self, count: int = OrderService.HISTORICAL_ORDER_COUNT,
                                   rng: Optional[random.Random] = None,
                                   now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Genera pedidos de demostración con el catálogo actual
        (o el de respaldo si está vacío).
        """
        source = self.products or fallback_products()
        return self.order_service.generate_historical_orders(source, count, rng, now)

    # =========================================================================
    # USUARIO
    # =========================================================================

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self.user_service.login(email, password)

    def signup(self, email: str, password: str, name: str, phone: str = '') -> Dict[str, Any]:
        return self.user_service.signup(email, password, name, phone)

    def logout(self) -> Dict[str, Any]:
        return self.user_service.logout()

    def update_user_profile(self, name: str, phone: str) -> Dict[str, Any]:
        return self.user_service.update_user_profile(name, phone)

    def update_user_role(self, user_id: str, role: str) -> Dict[str, Any]:
        try:
            return self.user_service.update_user_role(user_id, role)
        except ProtectedOperationError as e:
            logger.warning("Cambio de rol denegado para %s: %s", user_id, e)
            return {'ok': False, 'error': str(e), 'forbidden': True}

    # =========================================================================
    # ANALÍTICA
    # =========================================================================

    def get_analytics(self) -> AnalyticsSnapshot:
        """
        Resumen del panel. Además registra la cantidad vendida del producto
        top en su contador de ventas (solo si hubo ventas).
        """
        snapshot = self.analytics_service.compute(self.orders, self.products)
        top = snapshot.top_selling_product
        if top is not None and snapshot.top_selling_quantity > 0:
            self.catalog_service.record_sales(top.id, snapshot.top_selling_quantity)
        return snapshot

    def sales_by_period(self, period: str = 'weekly') -> List[Dict[str, Any]]:
        return self.analytics_service.sales_by_period(self.orders, period)

    def customer_summaries(self) -> List[Dict[str, Any]]:
        return self.analytics_service.customer_summaries(self.orders)

    def dashboard_notifications(self) -> List[Dict[str, str]]:
        return self.analytics_service.dashboard_notifications(self.orders, self.products)
