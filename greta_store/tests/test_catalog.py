# -*- coding: utf-8 -*-
"""
Tests del catálogo: carga con respaldo, altas/ediciones/bajas optimistas
y búsqueda.
"""
from greta_store.models import FALLBACK_PRODUCTS, ProductDraft
from greta_store.repositories import PRODUCTS_TABLE
from greta_store.services import CatalogService


def run_now(task):
    task()


def test_empty_backend_uses_fallback_and_seeds_it(backend, make_store):
    store = make_store(initialize=False)
    result = store.initialize()

    assert result['products']['source'] == 'fallback'
    assert len(store.products) == len(FALLBACK_PRODUCTS) == 8
    assert len(backend.table(PRODUCTS_TABLE).select_all()) == 8
    assert [p.name for p in store.products] == [p.name for p in FALLBACK_PRODUCTS]


def test_second_load_reads_seeded_catalog(store, make_store):
    again = make_store()
    assert len(again.products) == 8
    assert again.catalog_service.load_products()['source'] == 'backend'


def test_backend_down_still_shows_fallback(backend, make_store):
    backend.fail('products.select')
    backend.fail('products.insert')

    store = make_store()

    assert len(store.products) == 8
    assert store.products[0].name == 'Atado de Espinaca'
    backend.recover()
    assert backend.table(PRODUCTS_TABLE).select_all() == []


def test_fallback_seed_failure_is_swallowed(backend):
    backend.fail('products.insert')
    catalog = CatalogService(backend, run_in_background=run_now)

    result = catalog.load_products()

    assert result == {'ok': True, 'source': 'fallback', 'count': 8}
    assert [p.id for p in catalog.products] == list(range(1, 9))


def test_seed_runs_in_background(backend):
    tasks = []
    catalog = CatalogService(backend, run_in_background=tasks.append)

    catalog.load_products()

    assert len(catalog.products) == 8
    assert backend.table(PRODUCTS_TABLE).select_all() == []
    tasks[0]()
    assert len(backend.table(PRODUCTS_TABLE).select_all()) == 8


def test_malformed_product_row_falls_back_without_seeding(backend, make_store):
    table = backend.table(PRODUCTS_TABLE)
    table.seed([{'name': 'Palta', 'price': 'abc', 'category': 'Frutas'}])

    store = make_store(initialize=False)
    result = store.initialize()

    assert result['products']['source'] == 'fallback'
    assert result['products']['ok'] is False
    assert [p.name for p in store.products] == [p.name for p in FALLBACK_PRODUCTS]
    # el backend ya tenía datos: no se siembra encima
    assert len(table.select_all()) == 1


def test_product_row_without_id_falls_back(backend):
    catalog = CatalogService(backend, run_in_background=run_now)
    backend.table(PRODUCTS_TABLE).seed([{'name': 'Palta', 'price': 4.0}])
    backend.table(PRODUCTS_TABLE).update('name', 'Palta', {'id': None})

    result = catalog.load_products()

    assert result['source'] == 'fallback'
    assert len(catalog.products) == 8


def test_loads_existing_products(backend, make_store):
    backend.table(PRODUCTS_TABLE).seed([
        {'name': 'Quinua', 'price': 6.5, 'category': 'Granos', 'nutrition_info': 'Proteína: 14g'},
    ])

    store = make_store()

    assert len(store.products) == 1
    assert store.products[0].name == 'Quinua'
    assert store.products[0].nutrition_info == 'Proteína: 14g'


def test_add_product_replaces_temporary_id(store):
    result = store.add_product(ProductDraft(name='Kale', price=4.5, category='Verduras'))

    assert result['ok'] is True
    saved = result['product']
    assert saved.id == 9
    assert store.products[-1].id == 9
    assert [p.name for p in store.products].count('Kale') == 1


def test_add_product_failure_keeps_temporary_entry(store, backend):
    backend.fail('products.insert')

    result = store.add_product(ProductDraft(name='Kale', price=4.5, category='Verduras'))

    assert result['ok'] is False
    assert 'error' in result
    temp = result['product']
    assert temp.id > 10 ** 12
    assert store.get_product(temp.id) is temp


def test_add_product_validates_draft(store):
    assert store.add_product(ProductDraft(name='  ', price=1, category='Frutas'))['ok'] is False
    assert store.add_product(ProductDraft(name='Kale', price=-1, category='Frutas'))['ok'] is False
    assert len(store.products) == 8


def test_update_product_is_optimistic(store, backend):
    product = store.products[0].copy()
    product.price = 9.99
    product.description = 'Nueva descripción'

    assert store.update_product(product)['ok'] is True
    assert store.get_product(product.id).price == 9.99
    row = backend.table(PRODUCTS_TABLE).select_one('id', product.id)
    assert row['price'] == 9.99
    assert row['description'] == 'Nueva descripción'


def test_update_product_failure_is_not_rolled_back(store, backend):
    product = store.products[0].copy()
    product.name = 'Espinaca Baby'
    backend.fail('products.update')

    result = store.update_product(product)

    assert result['ok'] is False
    assert store.get_product(product.id).name == 'Espinaca Baby'


def test_update_product_requires_a_name(store, backend):
    product = store.products[0].copy()
    product.name = None

    result = store.update_product(product)

    assert result == {'ok': False, 'error': 'El nombre es obligatorio'}
    assert store.get_product(product.id).name == 'Atado de Espinaca'
    assert len(store.search(query='espinaca')) == 1


def test_delete_product(store, backend):
    target = store.products[0].id

    assert store.delete_product(target)['ok'] is True
    assert store.get_product(target) is None
    assert backend.table(PRODUCTS_TABLE).select_one('id', target) is None


def test_delete_product_failure_still_removes_locally(store, backend):
    target = store.products[0].id
    backend.fail('products.delete')

    assert store.delete_product(target)['ok'] is False
    assert store.get_product(target) is None
    backend.recover()
    assert backend.table(PRODUCTS_TABLE).select_one('id', target) is not None


def test_search_by_category_and_query(store):
    assert len(store.search(category='Verduras')) == 6
    assert len(store.search(category='Todo')) == 8
    assert [p.name for p in store.search(query='ALBAHACA')] == ['Manojo de Albahaca']
    assert store.search(category='Frutas', query='tomate') == []


def test_search_sorting(store):
    assert store.search(sort='asc')[0].name == 'Pimientos Verdes'
    assert store.search(sort='desc')[0].name == 'Fresas Dulces'
    assert [p.id for p in store.search()] == [p.id for p in store.products]


def test_categories(store):
    assert store.categories() == ['Verduras', 'Hierbas', 'Frutas']


def test_related_products_by_category(store):
    espinaca = store.products[0]
    related = store.related_products(espinaca)
    assert espinaca.id not in [p.id for p in related]
    assert all(p.category == 'Verduras' for p in related)
    assert len(related) == 5


def test_related_products_manual_ids(store):
    espinaca = store.products[0].copy()
    fresas = store.search(query='fresas')[0]
    albahaca = store.search(query='albahaca')[0]
    espinaca.related_product_ids = [fresas.id, albahaca.id, 999]
    store.update_product(espinaca)

    related = store.related_products(store.get_product(espinaca.id))

    assert [p.id for p in related] == [fresas.id, albahaca.id]
