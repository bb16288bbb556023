# -*- coding: utf-8 -*-
"""
Fixtures compartidas: backend en memoria, almacenamiento local en tmp_path
y Store listo para usar.
"""
import pytest

from greta_store.models import Product
from greta_store.repositories import CartRepository, LocalStorageRepository, MemoryBackend, PROFILES_TABLE
from greta_store.store import Store

ADMIN_EMAIL = 'admin@greta.pe'


def run_now(task):
    """Ejecutor síncrono para las tareas en segundo plano."""
    task()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def storage(tmp_path):
    return LocalStorageRepository(str(tmp_path / 'local_storage.json'))


@pytest.fixture
def make_user(backend):
    """
    Registra usuarios en el backend sin dejar la sesión abierta.
    Como el backend tiene una sola sesión, crear usuarios cierra la actual.
    """
    def _make(email, password='secreto123', name='Ana', phone='', role=None):
        session = backend.auth.sign_up(email, password, {'full_name': name, 'phone': phone})
        if role is not None:
            backend.table(PROFILES_TABLE).update('id', session.user.id, {'role': role})
        backend.auth.sign_out()
        return session.user
    return _make


@pytest.fixture
def make_store(backend, storage):
    """Fábrica de Stores que comparten backend y almacenamiento local."""
    created = []

    def _make(initialize=True):
        store = Store(backend, CartRepository(storage), admin_email=ADMIN_EMAIL, run_in_background=run_now)
        if initialize:
            store.initialize()
        created.append(store)
        return store

    yield _make
    for store in created:
        store.close()


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def admin_store(store, make_user):
    make_user('jefa@greta.pe', name='Jefa', role='admin')
    assert store.login('jefa@greta.pe', 'secreto123')['ok']
    return store


@pytest.fixture
def product_a():
    return Product(id=101, name='Palta Hass', price=4.00, category='Frutas')


@pytest.fixture
def product_b():
    return Product(id=102, name='Albahaca', price=3.50, category='Hierbas')
