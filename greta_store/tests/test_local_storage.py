# -*- coding: utf-8 -*-
"""
Tests del almacenamiento local en archivo JSON.
"""
import os

from greta_store.repositories import LocalStorageRepository


def test_set_get_remove(tmp_path):
    storage = LocalStorageRepository(str(tmp_path / 'ls.json'))

    assert storage.get_item('cart') is None
    storage.set_item('cart', '[]')
    assert storage.get_item('cart') == '[]'

    storage.remove_item('cart')
    assert storage.get_item('cart') is None


def test_values_persist_across_instances(tmp_path):
    path = str(tmp_path / 'nested' / 'ls.json')
    LocalStorageRepository(path).set_item('cart', '[{"id": 1}]')

    assert LocalStorageRepository(path).get_item('cart') == '[{"id": 1}]'
    assert not os.path.exists(path + '.tmp')


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / 'ls.json'
    path.write_text('{roto', encoding='utf-8')
    storage = LocalStorageRepository(str(path))

    assert storage.get_item('cart') is None
    storage.set_item('cart', '[]')
    assert storage.get_item('cart') == '[]'
