import json
from types import SimpleNamespace

import pytest

from catalog import MARKETPLACE
from context import AppContext
from database import KeyValueStore, MemoryKeyValueStore


class BrokenStore(KeyValueStore):
    """Store whose backend is down for every call."""

    name = "broken"

    def _get(self, key):
        raise ConnectionError("store unavailable")

    def _put(self, key, raw):
        raise ConnectionError("store unavailable")

    def _delete(self, key):
        raise ConnectionError("store unavailable")


class FakeModels:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return SimpleNamespace(text=reply)


def fake_client(*replies):
    models = FakeModels(replies)
    return SimpleNamespace(aio=SimpleNamespace(models=models))


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def ctx(store):
    return AppContext(store)


@pytest.fixture
def products():
    return {p.id: p for p in MARKETPLACE}


def stored(store, key):
    return json.loads(store.data[key])
