# ==============================================================================
# SERVICIO DE ESTADÍSTICAS
# ==============================================================================
# Cálculos derivados del historial de pedidos y del catálogo.
#
# REGLA PRINCIPAL: solo los pedidos con pago "Pagado" cuentan como ingreso.
# - Pendiente ❌
# - Reembolsado ❌
# El conteo de pedidos incluye TODOS, sin importar el pago.
#
# Todas las funciones son puras: no modifican pedidos ni productos.
# ==============================================================================

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List

from greta_store.models import AnalyticsSnapshot, Order, OrderStatus, Product
from greta_store.services.order_service import parse_iso_date, sort_newest_first

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class AnalyticsService:
    """
    Servicio para cálculo de estadísticas del panel.

    Responsabilidades:
    - Resumen de ingresos, pedidos, ticket promedio y producto top
    - Ventas agrupadas por período
    - Resumen por cliente
    - Avisos del panel
    """

    # Formato de agrupación por período
    PERIOD_FORMATS = {
        'daily': '%Y-%m-%d',
        'weekly': '%G-W%V',
        'monthly': '%Y-%m',
        'annual': '%Y',
    }

    # Productos con más ventas que esto se marcan como "agotándose"
    HIGH_DEMAND_SALES = 50

    def compute(self, orders: List[Order], products: List[Product]) -> AnalyticsSnapshot:
        """
        Calcula el resumen de analítica.

        - total_revenue: suma de totales de pedidos pagados
        - total_orders: cantidad de pedidos (todos)
        - average_order_value: total_revenue / total_orders, o 0 sin pedidos
        - top_selling_product: producto con mayor cantidad sumada en los
          items de todos los pedidos. En empate gana el primero que alcanzó
          el máximo. Sin ventas, el primer producto del catálogo (o None).

        Args:
            orders: Historial de pedidos
            products: Catálogo actual

        Returns:
            AnalyticsSnapshot
        """
        total_revenue = sum(o.total for o in orders if o.is_paid)
        total_orders = len(orders)
        average = total_revenue / total_orders if total_orders > 0 else 0.0

        product_sales: Dict[int, int] = {}
        for order in orders:
            for item in order.items:
                product_sales[item.id] = product_sales.get(item.id, 0) + item.quantity

        top_id = None
        max_sales = 0
        for product_id, qty in product_sales.items():
            if qty > max_sales:
                max_sales = qty
                top_id = product_id

        top_product = None
        top_quantity = 0
        if top_id is not None:
            top_product = next((p for p in products if p.id == top_id), None)
            if top_product is not None:
                top_quantity = max_sales
        if top_product is None and products:
            top_product = products[0]

        return AnalyticsSnapshot(
            total_revenue=total_revenue,
            total_orders=total_orders,
            average_order_value=average,
            top_selling_product=top_product,
            top_selling_quantity=top_quantity,
        )

    def sales_by_period(self, orders: List[Order], period: str = 'weekly') -> List[Dict[str, Any]]:
        """
        Agrupa pedidos por período.

        Args:
            orders: Historial de pedidos
            period: 'daily', 'weekly', 'monthly' o 'annual'

        Returns:
            [{'label': str, 'revenue': float, 'orders': int}] en orden cronológico

        Raises:
            ValueError: Si el período no es válido
        """
        if period not in self.PERIOD_FORMATS:
            raise ValueError(f'Período inválido: {period}')
        fmt = self.PERIOD_FORMATS[period]

        buckets = defaultdict(lambda: {'revenue': 0.0, 'orders': 0})
        for order in orders:
            order_date = parse_iso_date(order.date)
            if order_date is None:
                continue
            key = order_date.strftime(fmt)
            buckets[key]['orders'] += 1
            if order.is_paid:
                buckets[key]['revenue'] += order.total

        return [
            {'label': label, 'revenue': round(data['revenue'], 2), 'orders': data['orders']}
            for label, data in sorted(buckets.items())
        ]

    def customer_summaries(self, orders: List[Order]) -> List[Dict[str, Any]]:
        """
        Resumen por cliente (agrupado por correo).

        Returns:
            Lista ordenada por última actividad (más reciente primero) con
            name, email, total_orders, total_spent, last_active y orders
        """
        grouped: Dict[str, List[Order]] = defaultdict(list)
        for order in orders:
            grouped[order.email].append(order)

        summaries = []
        for email, customer_orders in grouped.items():
            customer_orders = sort_newest_first(customer_orders)
            last = customer_orders[0]
            summaries.append({
                'name': last.customer_name,
                'email': email,
                'total_orders': len(customer_orders),
                'total_spent': round(sum(o.total for o in customer_orders), 2),
                'last_active': last.date,
                'orders': customer_orders,
            })

        summaries.sort(key=lambda s: parse_iso_date(s['last_active']) or _EPOCH, reverse=True)
        return summaries

    def dashboard_notifications(self, orders: List[Order], products: List[Product]) -> List[Dict[str, str]]:
        """Avisos del panel: pedidos por enviar y productos de alta demanda."""
        notifications = []
        pending = sum(1 for o in orders if o.status == OrderStatus.PENDIENTE)
        if pending > 0:
            notifications.append({
                'title': 'Pedidos Pendientes',
                'message': f'Tienes {pending} pedidos por enviar.',
            })
        high_demand = sum(1 for p in products if p.sales > self.HIGH_DEMAND_SALES)
        if high_demand > 0:
            notifications.append({
                'title': 'Stock Bajo',
                'message': f'{high_demand} productos se están agotando rápido.',
            })
        return notifications
