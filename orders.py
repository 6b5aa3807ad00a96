import logging
import secrets
import string
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Set

from pydantic import TypeAdapter

from cart import CartEngine, compute_total
from database import ORDERS_KEY, KeyValueStore, load_record
from schemas import Order, User

logger = logging.getLogger(__name__)

_orders_adapter = TypeAdapter(List[Order])

ID_ALPHABET = string.digits + string.ascii_lowercase


class CheckoutDeclined(Exception):
    pass


class PaymentGateway(ABC):
    @abstractmethod
    def charge(self, order: Order) -> bool:
        ...


class MockPaymentGateway(PaymentGateway):
    """Checkout is a no-op success until a real gateway is wired in."""

    def charge(self, order: Order) -> bool:
        logger.info("Mock payment approved for %s (%.2f)", order.id, order.total)
        return True


def display_date(when: datetime) -> str:
    return f"{when.month}/{when.day}/{when.year}"


class OrderEngine:
    """Order history (newest first) stored under km_orders."""

    def __init__(self, store: KeyValueStore, payments: Optional[PaymentGateway] = None):
        self.store = store
        self.payments = payments or MockPaymentGateway()
        self._orders: List[Order] = load_record(store, ORDERS_KEY, _orders_adapter, [])
        self._issued: Set[str] = {o.id for o in self._orders}
        self.last_persisted = True

    def orders(self) -> List[Order]:
        return list(self._orders)

    def new_order_id(self) -> str:
        while True:
            order_id = "ORD-" + "".join(secrets.choice(ID_ALPHABET) for _ in range(9))
            if order_id not in self._issued:
                self._issued.add(order_id)
                return order_id

    def place_order(self, cart: CartEngine, user: Optional[User]) -> Optional[Order]:
        if cart.is_empty():
            return None
        items = [item.model_copy(deep=True) for item in cart.items()]
        order = Order(
            id=self.new_order_id(),
            date=display_date(datetime.now()),
            items=items,
            total=compute_total(items),
            status="PENDING",
            type="PURCHASE" if user is not None and user.role == "FARMER" else "SALE",
        )
        if not self.payments.charge(order):
            raise CheckoutDeclined(f"Payment declined for {order.id}")

        history = [order] + self._orders
        self.last_persisted = self.store.write(ORDERS_KEY, _orders_adapter.dump_python(history, mode="json", by_alias=True))
        # History and cart change together; nothing runs in between
        self._orders = history
        cart.clear_cart()
        logger.info("Placed %s with %d lines, total %.2f", order.id, len(items), order.total)
        return order
