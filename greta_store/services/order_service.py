# ==============================================================================
# SERVICIO DE PEDIDOS
# ==============================================================================
# Dueño del historial de pedidos en memoria (más nuevo primero).
#
# REGLAS:
# - Un pedido guarda una INSTANTÁNEA del carrito; su total no se recalcula.
# - Estado y estado de pago solo cambian por acción de administración,
#   de forma optimista y sin rollback.
# - Los pedidos nunca se eliminan.
# ==============================================================================

import logging
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from greta_store.models import (
    CartItem,
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
    parse_enum,
)
from greta_store.repositories.interfaces import BackendError, IBackendService, ORDERS_TABLE
from greta_store.repositories.mappers import order_from_row, order_to_row

logger = logging.getLogger(__name__)

# Estados posibles de los pedidos de demostración (con peso por repetición)
HISTORICAL_STATUSES = (
    OrderStatus.ENTREGADO,
    OrderStatus.ENTREGADO,
    OrderStatus.ENTREGADO,
    OrderStatus.ENVIADO,
    OrderStatus.CANCELADO,
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_iso_date(date_str: str) -> Optional[datetime]:
    """
    Parsea una fecha ISO 8601 (con 'Z' o con offset).
    Las fechas sin zona se asumen UTC. Retorna None si no puede parsear.
    """
    if not date_str:
        return None
    try:
        parsed = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_newest_first(orders: List[Order]) -> List[Order]:
    """Ordena pedidos por fecha descendente (fechas inválidas al final)."""
    return sorted(orders, key=lambda o: parse_iso_date(o.date) or _EPOCH, reverse=True)


class OrderService:
    """
    Servicio para gestión de pedidos.

    Responsabilidades:
    - Cargar el historial
    - Registrar pedidos desde el carrito
    - Cambiar estado / estado de pago
    - Generar historial de demostración
    """

    HISTORICAL_ORDER_COUNT = 50
    HISTORICAL_DAYS = 365

    def __init__(self, backend: IBackendService):
        """
        Args:
            backend: Backend de datos
        """
        self.backend = backend
        self._orders: List[Order] = []

    @property
    def _table(self):
        return self.backend.table(ORDERS_TABLE)

    # =========================================================================
    # LECTURA
    # =========================================================================

    @property
    def orders(self) -> List[Order]:
        """Pedidos en memoria, más nuevo primero."""
        return list(self._orders)

    def get_order(self, order_id: str) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def filter_orders(self, status: str = 'All', payment_status: str = 'All') -> List[Order]:
        """
        Filtra pedidos por estado y/o estado de pago ('All' = sin filtro).
        """
        result = []
        for order in self._orders:
            if status and status != 'All' and order.status != status:
                continue
            if payment_status and payment_status != 'All' and order.payment_status != payment_status:
                continue
            result.append(order)
        return result

    def load_orders(self) -> Dict[str, Any]:
        """
        Carga todos los pedidos ordenados por fecha descendente.
        Si falla, el historial queda vacío (sin reintento).
        """
        try:
            rows = self._table.select_all(order_by='date', descending=True)
        except BackendError as e:
            logger.error("No se pudieron cargar pedidos: %s", e)
            self._orders = []
            return {'ok': False, 'error': e.message}

        try:
            orders = [order_from_row(r) for r in rows]
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            logger.error("Pedidos del backend con filas inválidas: %s", e)
            self._orders = []
            return {'ok': False, 'error': 'Pedidos con datos inválidos'}

        self._orders = orders
        return {'ok': True, 'count': len(self._orders)}

    # =========================================================================
    # CREACIÓN
    # =========================================================================

    def place_order(
        self,
        customer_name: str,
        email: str,
        items: List[CartItem],
        total: float
    ) -> Dict[str, Any]:
        """
        Registra un pedido con la instantánea del carrito.

        Estado inicial 'Pendiente' y pago 'Pagado' (el pago es simulado).
        Solo si el backend confirma, el pedido se agrega al historial.

        Args:
            customer_name: Nombre del cliente
            email: Correo del cliente
            items: Líneas del carrito (se copian)
            total: Total del carrito al momento de comprar

        Returns:
            Dict con ok, order o error
        """
        if not items:
            return {'ok': False, 'error': 'El carrito está vacío'}

        order = Order(
            id='',
            customer_name=customer_name,
            email=email,
            items=[CartItem.from_product(i, quantity=i.quantity) for i in items],
            total=round(total, 2),
            status=OrderStatus.PENDIENTE,
            payment_status=PaymentStatus.PAGADO,
            date=datetime.now(timezone.utc).isoformat(),
        )

        try:
            created = self._table.insert([order_to_row(order)])
        except BackendError as e:
            logger.error("Error registrando pedido de %s: %s", email, e)
            return {'ok': False, 'error': e.message}

        if not created:
            return {'ok': False, 'error': 'El backend no devolvió el pedido creado'}

        saved = order_from_row(created[0])
        self._orders.insert(0, saved)
        return {'ok': True, 'order': saved}

    # =========================================================================
    # CAMBIOS DE ESTADO (optimistas)
    # =========================================================================

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        """
        Cambia el estado logístico de un pedido.
        Primero en memoria, luego en el backend; sin rollback.
        """
        new_status = parse_enum(OrderStatus, status, None)
        if new_status is None:
            return {'ok': False, 'error': f'Estado inválido: {status}'}

        order = self.get_order(order_id)
        if order is None:
            return {'ok': False, 'error': 'Pedido no encontrado'}
        order.status = new_status

        try:
            self._table.update('id', order_id, {'status': new_status.value})
        except BackendError as e:
            logger.error("Error actualizando estado del pedido %s: %s", order_id, e)
            return {'ok': False, 'error': e.message, 'order': order}
        return {'ok': True, 'order': order}

    def update_payment_status(self, order_id: str, payment_status: str) -> Dict[str, Any]:
        """
        Cambia el estado de pago de un pedido.
        Primero en memoria, luego en el backend; sin rollback.
        """
        new_status = parse_enum(PaymentStatus, payment_status, None)
        if new_status is None:
            return {'ok': False, 'error': f'Estado de pago inválido: {payment_status}'}

        order = self.get_order(order_id)
        if order is None:
            return {'ok': False, 'error': 'Pedido no encontrado'}
        order.payment_status = new_status

        try:
            self._table.update('id', order_id, {'payment_status': new_status.value})
        except BackendError as e:
            logger.error("Error actualizando pago del pedido %s: %s", order_id, e)
            return {'ok': False, 'error': e.message, 'order': order}
        return {'ok': True, 'order': order}

    # =========================================================================
    # HISTORIAL DE DEMOSTRACIÓN
    # =========================================================================

    def _synthesize_orders(
        self,
        source: List[Product],
        count: int,
        rng: random.Random,
        now: datetime
    ) -> List[Order]:
        orders = []
        for i in range(count):
            days_ago = rng.randrange(self.HISTORICAL_DAYS)
            order_date = now - timedelta(days=days_ago)
            items = []
            total = 0.0
            for _ in range(rng.randint(1, 4)):
                product = rng.choice(source)
                quantity = rng.randint(1, 3)
                items.append(CartItem.from_product(product, quantity=quantity))
                total += product.price * quantity

            orders.append(Order(
                id='',
                customer_name=f'Cliente Demo {i}',
                email=f'cliente{i}@demo.com',
                items=items,
                total=round(total, 2),
                status=rng.choice(HISTORICAL_STATUSES),
                payment_status=PaymentStatus.PAGADO,
                date=order_date.isoformat(),
            ))
        return orders

    def generate_historical_orders(
        self,
        source: List[Product],
        count: int = HISTORICAL_ORDER_COUNT,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Genera pedidos sintéticos de los últimos 365 días.

        Intenta una inserción masiva en el backend; si falla, los mismos
        pedidos se agregan solo en memoria con ids locales. En ambos casos
        el historial completo se reordena por fecha descendente.

        Args:
            source: Productos de donde sacar las canastas (no vacío)
            count: Cantidad de pedidos a generar
            rng: Generador aleatorio (inyectable para tests)
            now: Fecha de referencia

        Returns:
            Dict con ok, created, source ('backend' | 'local') y orders
        """
        if not source:
            return {'ok': False, 'error': 'No hay productos para generar pedidos'}

        rng = rng or random.Random()
        now = now or datetime.now(timezone.utc)
        synthetic = self._synthesize_orders(source, count, rng, now)

        try:
            created = self._table.insert([order_to_row(o) for o in synthetic])
            new_orders = [order_from_row(r) for r in created]
            origin = 'backend'
        except BackendError as e:
            logger.warning("Inserción masiva falló, se guardan pedidos solo en memoria: %s", e)
            batch = uuid.uuid4().hex[:8]
            for i, order in enumerate(synthetic):
                order.id = f'local-dummy-{batch}-{i}'
            new_orders = synthetic
            origin = 'local'

        self._orders = sort_newest_first(new_orders + self._orders)
        return {'ok': True, 'created': len(new_orders), 'source': origin, 'orders': new_orders}
