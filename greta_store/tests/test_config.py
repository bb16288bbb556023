# -*- coding: utf-8 -*-
"""
Tests de configuración y del contenedor de dependencias.
"""
import logging

import pytest

from greta_store.app_container import AppContainer, get_container
from greta_store.config import DEFAULT_ADMIN_EMAIL, DEFAULT_SECRET, Settings
from greta_store.repositories import LocalStorageRepository, MemoryBackend, SupabaseBackend


@pytest.fixture(autouse=True)
def fresh_container():
    AppContainer.reset_instance()
    yield
    AppContainer.reset_instance()


def test_defaults():
    settings = Settings.from_env({})
    assert settings.backend == 'memory'
    assert settings.admin_email == DEFAULT_ADMIN_EMAIL == 'bryan@greta.pe'
    assert settings.secret_key == DEFAULT_SECRET
    assert settings.checkout_delay == 2.0
    assert settings.production is False


def test_values_from_environment(tmp_path):
    settings = Settings.from_env({
        'GRETA_BACKEND': 'SUPABASE',
        'SUPABASE_URL': 'https://demo.supabase.co',
        'SUPABASE_ANON_KEY': 'anon',
        'GRETA_DATA_DIR': str(tmp_path),
        'GRETA_CHECKOUT_DELAY': '0.5',
        'GRETA_REQUEST_TIMEOUT': 'lento',
        'GRETA_LOG_LEVEL': 'debug',
    })
    assert settings.backend == 'supabase'
    assert settings.checkout_delay == 0.5
    assert settings.request_timeout == 10.0
    assert settings.log_level == 'DEBUG'
    assert settings.storage_path == str(tmp_path / 'local_storage.json')


def test_production_without_secret_warns(caplog):
    with caplog.at_level(logging.WARNING):
        Settings.from_env({'GRETA_PRODUCTION': '1'})
    assert 'GRETA_SECRET_KEY' in caplog.text


def test_unknown_backend_falls_back_to_memory():
    assert Settings.from_env({'GRETA_BACKEND': 'mysql'}).backend == 'memory'


def test_container_is_a_singleton(tmp_path):
    container = get_container(Settings(data_dir=str(tmp_path)))
    assert get_container() is container
    assert isinstance(container.backend, MemoryBackend)
    assert isinstance(container.local_storage, LocalStorageRepository)
    assert container.store is container.store


def test_container_builds_supabase_backend(tmp_path):
    settings = Settings(
        backend='supabase',
        supabase_url='https://demo.supabase.co',
        supabase_anon_key='anon',
        data_dir=str(tmp_path),
    )
    assert isinstance(AppContainer(settings).backend, SupabaseBackend)
