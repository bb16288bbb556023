# -*- coding: utf-8 -*-
"""
Tests de pedidos: checkout, cambios de estado e historial de demostración.
"""
import random
from datetime import datetime, timedelta, timezone

import pytest

from greta_store.models import Order, OrderStatus, PaymentStatus
from greta_store.repositories import ORDERS_TABLE
from greta_store.repositories.mappers import order_to_row
from greta_store.services import OrderService, parse_iso_date

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_place_order_example(store, backend, product_a, product_b):
    store.add_to_cart(product_a)
    store.add_to_cart(product_a)
    store.add_to_cart(product_b)
    assert store.cart_total == pytest.approx(11.50)

    result = store.place_order('X', 'y@z.com')

    assert result['ok'] is True
    order = result['order']
    assert order.total == 11.50
    assert order.status == OrderStatus.PENDIENTE
    assert order.payment_status == PaymentStatus.PAGADO
    assert [(i.id, i.quantity) for i in order.items] == [(101, 2), (102, 1)]
    assert store.cart == []
    assert store.orders[0] is order
    assert backend.table(ORDERS_TABLE).select_one('id', order.id)['customer_name'] == 'X'


def test_order_is_a_snapshot(store, product_a):
    store.add_to_cart(product_a, 2)
    order = store.place_order('X', 'y@z.com')['order']

    product_a.price = 100.0
    store.add_to_cart(product_a)

    assert order.total == 8.00
    assert order.items[0].price == 4.00


def test_place_order_failure_keeps_cart(store, backend, product_a):
    store.add_to_cart(product_a)
    backend.fail('orders.insert')

    result = store.place_order('X', 'y@z.com')

    assert result['ok'] is False
    assert result['error']
    assert len(store.cart) == 1
    assert store.orders == []


def test_place_order_with_empty_cart(store):
    result = store.place_order('X', 'y@z.com')
    assert result == {'ok': False, 'error': 'El carrito está vacío'}


def test_load_orders_newest_first(backend, make_store):
    table = backend.table(ORDERS_TABLE)
    for days in (30, 1, 10):
        table.seed([order_to_row(Order(
            id='', customer_name='C', email=f'c{days}@x.pe', total=1.0,
            date=(NOW - timedelta(days=days)).isoformat(),
        ))])

    store = make_store()

    assert [o.email for o in store.orders] == ['c1@x.pe', 'c10@x.pe', 'c30@x.pe']


def test_load_orders_failure_leaves_history_empty(backend, make_store):
    backend.table(ORDERS_TABLE).seed([{'customer_name': 'C', 'email': 'c@x.pe', 'items': [], 'total': 1}])
    backend.fail('orders.select')

    store = make_store()

    assert store.orders == []


def test_malformed_order_row_leaves_history_empty(backend, make_store):
    backend.table(ORDERS_TABLE).seed([{
        'customer_name': 'C', 'email': 'c@x.pe', 'total': 4.0,
        'items': [{'name': 'Palta', 'price': 4.0, 'quantity': 1}],
        'date': NOW.isoformat(),
    }])

    store = make_store(initialize=False)
    result = store.initialize()

    assert result['orders']['ok'] is False
    assert store.orders == []
    assert len(store.products) == 8


def test_order_row_with_bad_total_leaves_history_empty(backend):
    backend.table(ORDERS_TABLE).seed([{'customer_name': 'C', 'items': [], 'total': 'mucho'}])
    service = OrderService(backend)

    assert service.load_orders()['ok'] is False
    assert service.orders == []


def test_update_order_status(store, backend, product_a):
    store.add_to_cart(product_a)
    order = store.place_order('X', 'y@z.com')['order']

    result = store.update_order_status(order.id, 'Enviado')

    assert result['ok'] is True
    assert store.get_order(order.id).status == OrderStatus.ENVIADO
    assert backend.table(ORDERS_TABLE).select_one('id', order.id)['status'] == 'Enviado'


def test_update_order_status_failure_is_not_rolled_back(store, backend, product_a):
    store.add_to_cart(product_a)
    order = store.place_order('X', 'y@z.com')['order']
    backend.fail('orders.update')

    result = store.update_order_status(order.id, 'Cancelado')

    assert result['ok'] is False
    assert store.get_order(order.id).status == OrderStatus.CANCELADO


def test_update_order_status_rejects_unknown_values(store, product_a):
    store.add_to_cart(product_a)
    order = store.place_order('X', 'y@z.com')['order']

    assert store.update_order_status(order.id, 'Perdido')['ok'] is False
    assert store.update_order_status('no-existe', 'Enviado')['error'] == 'Pedido no encontrado'
    assert store.get_order(order.id).status == OrderStatus.PENDIENTE


def test_update_payment_status(store, backend, product_a):
    store.add_to_cart(product_a)
    order = store.place_order('X', 'y@z.com')['order']

    assert store.update_payment_status(order.id, 'Reembolsado')['ok'] is True
    assert store.get_order(order.id).payment_status == PaymentStatus.REEMBOLSADO
    assert backend.table(ORDERS_TABLE).select_one('id', order.id)['payment_status'] == 'Reembolsado'


def test_filter_orders(store, product_a):
    for name in ('A', 'B', 'C'):
        store.add_to_cart(product_a)
        store.place_order(name, f'{name.lower()}@x.pe')
    first, second, _ = store.orders
    store.update_order_status(first.id, 'Enviado')
    store.update_payment_status(second.id, 'Pendiente')

    assert [o.id for o in store.filter_orders(status='Enviado')] == [first.id]
    assert [o.id for o in store.filter_orders(payment_status='Pendiente')] == [second.id]
    assert len(store.filter_orders()) == 3


def _assert_historical(orders, now):
    assert len(orders) == 50
    for order in orders:
        expected = sum(i.price * i.quantity for i in order.items)
        assert order.total == pytest.approx(expected)
        assert 1 <= len(order.items) <= 4
        assert order.payment_status == PaymentStatus.PAGADO
        date = parse_iso_date(order.date)
        assert now - timedelta(days=365) <= date <= now


def test_generate_historical_orders(store):
    result = store.generate_historical_orders(rng=random.Random(7), now=NOW)

    assert result['ok'] is True
    assert result['source'] == 'backend'
    assert result['created'] == 50
    _assert_historical(result['orders'], NOW)
    assert len(store.orders) == 50


def test_generate_historical_orders_offline(store, backend):
    backend.fail('orders.insert')

    result = store.generate_historical_orders(rng=random.Random(7), now=NOW)

    assert result['source'] == 'local'
    _assert_historical(result['orders'], NOW)
    assert all(o.id.startswith('local-dummy-') for o in store.orders)
    assert len({o.id for o in store.orders}) == 50


def test_generate_historical_orders_merges_and_sorts(store, product_a):
    store.add_to_cart(product_a)
    placed = store.place_order('X', 'y@z.com')['order']

    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    store.generate_historical_orders(rng=random.Random(1), now=yesterday)
    store.generate_historical_orders(rng=random.Random(2), now=yesterday)

    orders = store.orders
    assert len(orders) == 101
    assert orders[0].id == placed.id
    dates = [parse_iso_date(o.date) for o in orders]
    assert dates == sorted(dates, reverse=True)


def test_generate_historical_orders_uses_fallback_without_catalog(store):
    for product in store.products:
        store.delete_product(product.id)
    assert store.products == []

    result = store.generate_historical_orders(rng=random.Random(3), now=NOW)

    assert result['created'] == 50
    assert {i.id for o in result['orders'] for i in o.items} <= set(range(1, 9))


def test_generate_historical_orders_requires_products(backend):
    assert OrderService(backend).generate_historical_orders([])['ok'] is False
