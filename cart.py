from typing import Dict, List

from schemas import CartItem, Product


def compute_total(items: List[CartItem]) -> float:
    return sum(item.price * item.cart_quantity for item in items)


class CartEngine:
    """In-memory cart keyed by product id; never persisted."""

    def __init__(self):
        self._items: Dict[str, CartItem] = {}

    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def total(self) -> float:
        return compute_total(self.items())

    def add_to_cart(self, product: Product) -> CartItem:
        existing = self._items.get(product.id)
        if existing:
            # Keep the captured price; only the count moves
            item = existing.model_copy(update={"cart_quantity": existing.cart_quantity + 1})
        else:
            item = CartItem.model_validate({**product.model_dump(), "cart_quantity": 1})
        self._items[product.id] = item
        return item

    def remove_from_cart(self, product_id: str) -> bool:
        return self._items.pop(product_id, None) is not None

    def clear_cart(self) -> None:
        self._items.clear()
