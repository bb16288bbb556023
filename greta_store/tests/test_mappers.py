# -*- coding: utf-8 -*-
"""
Tests de la frontera de mapeo entre filas del backend (snake_case),
líneas de carrito (camelCase) y entidades.
"""
from greta_store.models import CartItem, Order, OrderStatus, PaymentStatus, Product, ProductDraft, UserRole
from greta_store.repositories.mappers import (
    cart_item_from_json,
    cart_item_to_json,
    order_from_row,
    order_to_row,
    product_changes,
    product_from_row,
    product_to_row,
    profile_changes,
    profile_from_row,
    session_from_json,
)


def test_product_from_row():
    product = product_from_row({
        'id': '7', 'name': 'Papas Nativas', 'price': '5.50', 'category': 'Verduras',
        'rating': None, 'sales': None, 'nutrition_info': 'Potasio: 425mg',
        'shipping_info': 'Sacos de 1kg.', 'related_product_ids': ['1', 2],
    })
    assert product.id == 7
    assert product.price == 5.50
    assert product.rating == 5.0
    assert product.sales == 0
    assert product.nutrition_info == 'Potasio: 425mg'
    assert product.shipping_info == 'Sacos de 1kg.'
    assert product.related_product_ids == [1, 2]


def test_product_to_row_never_sends_id():
    row = product_to_row(Product(id=5, name='Brócoli', price=3.2, category='Verduras', sales=90))
    assert 'id' not in row
    assert row['sales'] == 90

    draft_row = product_to_row(ProductDraft(name='Kale', price=4.5, category='Verduras'))
    assert draft_row['sales'] == 0
    assert draft_row['rating'] == 5.0


def test_product_changes_only_editable_columns():
    changes = product_changes(Product(id=5, name='Brócoli', price=3.2, category='Verduras', sales=90))
    assert 'sales' not in changes
    assert 'rating' not in changes
    assert changes['name'] == 'Brócoli'
    assert 'nutrition_info' in changes


def test_cart_item_json_uses_camel_case():
    item = CartItem(id=3, name='Zanahorias', price=2.99, category='Verduras',
                    nutrition_info='Fibra', related_product_ids=[1], quantity=2)
    data = cart_item_to_json(item)
    assert data['nutritionInfo'] == 'Fibra'
    assert data['relatedProductIds'] == [1]
    assert data['quantity'] == 2
    assert 'nutrition_info' not in data

    assert cart_item_from_json(data) == item


def test_cart_item_from_snake_case():
    item = cart_item_from_json({'id': 3, 'name': 'Z', 'price': 1, 'shipping_info': 'Rápido'})
    assert item.shipping_info == 'Rápido'
    assert item.quantity == 1


def test_order_row_mapping():
    row = {
        'id': 'abc', 'customer_name': 'Ana', 'email': 'ana@x.pe', 'total': '11.5',
        'status': 'Enviado', 'payment_status': 'Reembolsado', 'date': '2026-01-01T00:00:00Z',
        'items': [{'id': 1, 'name': 'Espinaca', 'price': 4, 'quantity': 2}],
    }
    order = order_from_row(row)
    assert order.customer_name == 'Ana'
    assert order.total == 11.5
    assert order.status == OrderStatus.ENVIADO
    assert order.payment_status == PaymentStatus.REEMBOLSADO
    assert order.items[0].quantity == 2


def test_order_row_defaults_for_unknown_values():
    order = order_from_row({'id': 1, 'status': 'Raro', 'items': 'no-lista'})
    assert order.id == '1'
    assert order.status == OrderStatus.PENDIENTE
    assert order.payment_status == PaymentStatus.PENDIENTE
    assert order.items == []


def test_order_to_row_omits_empty_id():
    order = Order(id='', customer_name='Ana', email='ana@x.pe', total=3.0)
    row = order_to_row(order)
    assert 'id' not in row
    assert row['customer_name'] == 'Ana'
    assert row['payment_status'] == 'Pagado'

    order.id = 'local-1'
    assert order_to_row(order)['id'] == 'local-1'


def test_profile_mapping():
    assert profile_from_row({'full_name': 'Ana', 'phone': '', 'role': 'admin'}) == {
        'name': 'Ana', 'phone': None, 'role': UserRole.ADMIN,
    }
    assert profile_from_row({})['role'] is None
    assert profile_from_row({'full_name': 5, 'phone': None, 'role': 'root'}) == {
        'name': None, 'phone': None, 'role': None,
    }
    assert profile_changes('Ana', '999') == {'full_name': 'Ana', 'phone': '999'}


def test_session_from_json_requires_token():
    assert session_from_json({'user': {'id': 'u1'}}) is None
    session = session_from_json({'access_token': 't', 'user': {'id': 'u1', 'email': 'a@x.pe'}})
    assert session.user.email == 'a@x.pe'
