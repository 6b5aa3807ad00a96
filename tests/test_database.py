from datetime import datetime

import mongomock
import pytest
from pydantic import TypeAdapter

import database
from conftest import BrokenStore
from database import KeyValueStore, MemoryKeyValueStore, MongoKeyValueStore, get_store, load_record


def test_memory_round_trip():
    store = MemoryKeyValueStore()
    assert store.read("k") is None
    assert store.write("k", {"a": [1, 2]}) is True
    assert store.read("k") == {"a": [1, 2]}
    assert store.remove("k") is True
    assert store.read("k") is None
    assert store.remove("k") is True


def test_unreadable_json_is_absent():
    store = MemoryKeyValueStore({"k": "{not json"})
    assert store.read("k") is None


def test_unserializable_value_is_rejected():
    store = MemoryKeyValueStore()
    assert store.write("k", {"when": datetime.now()}) is False
    assert "k" not in store.data


def test_broken_backend_never_raises():
    store = BrokenStore()
    assert store.read("k") is None
    assert store.write("k", [1]) is False
    assert store.remove("k") is False


def test_load_record_falls_back_on_shape_mismatch():
    store = MemoryKeyValueStore({"k": '{"x": 1}'})
    assert load_record(store, "k", TypeAdapter(list), []) == []
    assert load_record(store, "missing", TypeAdapter(list), "default") == "default"


def test_mongo_store_keeps_one_document_per_key():
    database = mongomock.MongoClient().db
    store = MongoKeyValueStore(database, collection="kv")

    assert store.write("km_orders", [1]) is True
    assert store.write("km_orders", [2, 1]) is True
    assert database["kv"].count_documents({}) == 1
    assert store.read("km_orders") == [2, 1]
    assert database["kv"].find_one({"_id": "km_orders"})["updated_at"] is not None

    assert store.remove("km_orders") is True
    assert store.read("km_orders") is None
    assert store.status()["store"] == "mongodb"


def test_get_store_without_database_is_in_memory(monkeypatch):
    monkeypatch.setattr(database, "db", None)
    assert isinstance(get_store(), MemoryKeyValueStore)


def test_store_without_backend_methods_cannot_be_built():
    class ReadOnly(KeyValueStore):
        def _get(self, key):
            return None

    with pytest.raises(TypeError):
        ReadOnly()
