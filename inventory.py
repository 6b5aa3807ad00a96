import logging
from typing import List

from pydantic import TypeAdapter

from database import INVENTORY_KEY, KeyValueStore, load_record
from schemas import InventoryItem

logger = logging.getLogger(__name__)

_inventory_adapter = TypeAdapter(List[InventoryItem])


class InventoryEngine:
    """Append-only farmer stock ledger. Sales do not deplete it."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._items: List[InventoryItem] = load_record(store, INVENTORY_KEY, _inventory_adapter, [])
        self.last_persisted = True

    def items(self) -> List[InventoryItem]:
        return list(self._items)

    def add_to_inventory(self, item: InventoryItem) -> InventoryItem:
        items = self._items + [item]
        self.last_persisted = self.store.write(INVENTORY_KEY, _inventory_adapter.dump_python(items, mode="json", by_alias=True))
        self._items = items
        logger.info("Inventory now holds %d items", len(items))
        return item
