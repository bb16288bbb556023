# -*- coding: utf-8 -*-
"""
Tests de sesión y perfil: resolución del rol, login/registro/logout y
actualización de perfil sin transacción.
"""
from greta_store.models import UserRole
from greta_store.repositories import PROFILES_TABLE

ADMIN_EMAIL = 'admin@greta.pe'


def test_signup_loads_client_user(store, backend):
    result = store.signup('ana@correo.pe', 'secreto123', 'Ana Torres', '999888777')

    assert result == {'ok': True}
    user = store.user
    assert user.email == 'ana@correo.pe'
    assert user.name == 'Ana Torres'
    assert user.phone == '999888777'
    assert user.role == UserRole.CLIENT
    assert 'Ana%20Torres' in user.avatar


def test_signup_errors_are_returned(store):
    store.signup('ana@correo.pe', 'secreto123', 'Ana')
    store.logout()

    result = store.signup('ana@correo.pe', 'otraclave', 'Ana')

    assert result == {'ok': False, 'error': 'User already registered'}
    assert store.signup('', 'x', 'Ana')['ok'] is False


def test_login_with_wrong_password(store, backend, make_user):
    make_user('ana@correo.pe')

    result = store.login('ana@correo.pe', 'incorrecta')

    assert result == {'ok': False, 'error': 'Invalid login credentials'}
    assert store.user is None


def test_profile_role_wins(store, backend, make_user):
    make_user('jefa@greta.pe', name='Jefa', role='admin')

    assert store.login('jefa@greta.pe', 'secreto123')['ok'] is True
    assert store.user.is_admin()
    assert store.user.name == 'Jefa'


def test_admin_email_without_profile_row(store, backend, make_user):
    user = make_user(ADMIN_EMAIL)
    backend.table(PROFILES_TABLE).delete('id', user.id)

    store.login(ADMIN_EMAIL, 'secreto123')

    assert store.user.role == UserRole.ADMIN
    assert store.user.name == 'admin'
    assert store.user.phone == ''


def test_profile_lookup_failure_falls_back_to_email(store, backend, make_user):
    make_user('luis@correo.pe', name='Luis')
    backend.fail('profiles.select')

    store.login('luis@correo.pe', 'secreto123')

    assert store.user.name == 'luis'
    assert store.user.role == UserRole.CLIENT


def test_session_is_restored_on_initialize(backend, make_store, make_user):
    make_user('ana@correo.pe', name='Ana')
    backend.auth.sign_in_with_password('ana@correo.pe', 'secreto123')

    store = make_store()

    assert store.user.email == 'ana@correo.pe'
    assert store.user.name == 'Ana'


def test_session_restore_failure_leaves_user_out(backend, make_store, make_user):
    make_user('ana@correo.pe')
    backend.auth.sign_in_with_password('ana@correo.pe', 'secreto123')
    backend.fail('auth.get_session')

    store = make_store()

    assert store.user is None
    assert len(store.products) == 8


def test_malformed_profile_row_keeps_auth_data(backend, make_store, make_user):
    user = make_user('luis@correo.pe', name='Luis')
    backend.table(PROFILES_TABLE).update('id', user.id, {'full_name': 123, 'phone': ['9'], 'role': 7})
    backend.auth.sign_in_with_password('luis@correo.pe', 'secreto123')

    store = make_store()

    assert store.user.name == 'luis'
    assert store.user.phone == ''
    assert store.user.role == UserRole.CLIENT
    assert 'luis' in store.user.avatar


def test_logout_clears_user(store, backend, make_user):
    make_user('ana@correo.pe')
    store.login('ana@correo.pe', 'secreto123')

    assert store.logout() == {'ok': True}
    assert store.user is None
    assert backend.auth.get_session() is None


def test_logout_clears_user_even_if_provider_fails(store, backend, make_user):
    make_user('ana@correo.pe')
    store.login('ana@correo.pe', 'secreto123')
    backend.fail('auth.sign_out')

    store.logout()

    assert store.user is None


def test_close_stops_listening(store, backend, make_user):
    make_user('ana@correo.pe')
    store.close()

    backend.auth.sign_in_with_password('ana@correo.pe', 'secreto123')

    assert store.user is None


def test_update_user_profile(store, backend, make_user):
    make_user('ana@correo.pe', name='Ana')
    store.login('ana@correo.pe', 'secreto123')

    result = store.update_user_profile('Ana Lucía', '912345678')

    assert result['ok'] is True
    assert store.user.name == 'Ana Lucía'
    row = backend.table(PROFILES_TABLE).select_one('id', store.user.id)
    assert row['full_name'] == 'Ana Lucía'
    assert row['phone'] == '912345678'
    assert backend.auth.get_session().user.user_metadata['full_name'] == 'Ana Lucía'


def test_update_user_profile_partial_failure(store, backend, make_user):
    make_user('ana@correo.pe', name='Ana')
    store.login('ana@correo.pe', 'secreto123')
    backend.fail('profiles.update')

    result = store.update_user_profile('Ana Lucía', '912345678')

    assert result['ok'] is False
    assert store.user.name == 'Ana Lucía'
    assert backend.auth.get_session().user.user_metadata['full_name'] == 'Ana Lucía'
    backend.recover()
    assert backend.table(PROFILES_TABLE).select_one('id', store.user.id)['full_name'] == 'Ana'


def test_update_user_profile_requires_session(store):
    assert store.update_user_profile('Ana', '')['ok'] is False


def test_update_user_role_requires_admin(store, backend, make_user):
    other = make_user('luis@correo.pe', name='Luis')
    make_user('ana@correo.pe', name='Ana')
    store.login('ana@correo.pe', 'secreto123')

    result = store.update_user_role(other.id, 'admin')

    assert result['ok'] is False
    assert result['forbidden'] is True
    assert backend.table(PROFILES_TABLE).select_one('id', other.id)['role'] == 'client'


def test_update_user_role_as_admin(store, backend, make_user):
    other = make_user('luis@correo.pe', name='Luis')
    make_user('jefa@greta.pe', name='Jefa', role='admin')
    store.login('jefa@greta.pe', 'secreto123')

    assert store.update_user_role(other.id, 'admin')['ok'] is True
    assert backend.table(PROFILES_TABLE).select_one('id', other.id)['role'] == 'admin'
    assert store.update_user_role(other.id, 'superuser')['ok'] is False
