"""
Persisted key/value storage

Session state survives restarts through three keyed JSON records. When
DATABASE_URL and DATABASE_NAME are set the records live in a MongoDB
collection, one document per key; otherwise they are only kept in memory.

Nothing in here raises on storage trouble: reads degrade to "absent" and
writes report False so callers can keep the change in memory.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

USER_KEY = "km_user"
INVENTORY_KEY = "km_inventory"
ORDERS_KEY = "km_orders"

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
KV_COLLECTION = os.getenv("KV_COLLECTION", "kv_store")

db = None
if DATABASE_URL and DATABASE_NAME:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]


class KeyValueStore(ABC):
    """Base store: subclasses move raw JSON text in and out."""

    name = "store"

    @abstractmethod
    def _get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def _put(self, key: str, raw: str) -> None:
        ...

    @abstractmethod
    def _delete(self, key: str) -> None:
        ...

    def read(self, key: str) -> Optional[Any]:
        try:
            raw = self._get(key)
        except Exception:
            logger.exception("Failed to read %s from %s", key, self.name)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding unreadable %s record: %s", key, e)
            return None

    def write(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError):
            logger.exception("Cannot serialize %s record", key)
            return False
        try:
            self._put(key, raw)
        except Exception:
            logger.exception("Failed to write %s to %s", key, self.name)
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self._delete(key)
        except Exception:
            logger.exception("Failed to remove %s from %s", key, self.name)
            return False
        return True

    def status(self) -> Dict[str, Any]:
        return {"store": self.name}


class MemoryKeyValueStore(KeyValueStore):
    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def _get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def _put(self, key: str, raw: str) -> None:
        self.data[key] = raw

    def _delete(self, key: str) -> None:
        self.data.pop(key, None)


class MongoKeyValueStore(KeyValueStore):
    name = "mongodb"

    def __init__(self, database, collection: str = KV_COLLECTION):
        self.collection = database[collection]

    def _get(self, key: str) -> Optional[str]:
        doc = self.collection.find_one({"_id": key})
        if not doc:
            return None
        return doc.get("value")

    def _put(self, key: str, raw: str) -> None:
        self.collection.replace_one(
            {"_id": key},
            {"_id": key, "value": raw, "updated_at": datetime.now(timezone.utc)},
            upsert=True,
        )

    def _delete(self, key: str) -> None:
        self.collection.delete_one({"_id": key})

    def status(self) -> Dict[str, Any]:
        response = {"store": self.name, "collection": self.collection.name, "keys": []}
        try:
            response["keys"] = [d["_id"] for d in self.collection.find({}, {"_id": 1}).limit(10)]
            response["connection_status"] = "Connected"
        except PyMongoError as e:
            response["connection_status"] = f"Error: {str(e)[:80]}"
        return response


def get_store() -> KeyValueStore:
    if db is not None:
        return MongoKeyValueStore(db)
    logger.warning("DATABASE_URL/DATABASE_NAME not set; state will not survive a restart")
    return MemoryKeyValueStore()


def load_record(store: KeyValueStore, key: str, adapter: TypeAdapter, default):
    """Read KEY and validate it, falling back to DEFAULT on any mismatch."""
    raw = store.read(key)
    if raw is None:
        return default
    try:
        return adapter.validate_python(raw)
    except ValidationError as e:
        logger.warning("Ignoring persisted %s with unexpected shape (%d errors)", key, e.error_count())
        return default
