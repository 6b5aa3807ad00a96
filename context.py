"""
Domain facade

AppContext is built once per process and handed to whatever renders the
app. It routes every call to the component that owns the data, then pushes a
fresh AppSnapshot to subscribers before returning.
"""
import logging
from typing import Callable, List, Optional

from cart import CartEngine
from catalog import WEATHER, Catalog
from connectivity import ConnectivityObserver
from database import KeyValueStore
from inventory import InventoryEngine
from orders import OrderEngine, PaymentGateway
from schemas import (
    AppSnapshot, CartItem, InventoryItem, Language, Order, Product, Role, SaveResult, User, UserUpdate, WeatherInfo,
)
from session import IdentityProvider, SessionState

logger = logging.getLogger(__name__)

Subscriber = Callable[[AppSnapshot], None]


class AppContext:
    def __init__(
        self,
        store: KeyValueStore,
        identity: Optional[IdentityProvider] = None,
        payments: Optional[PaymentGateway] = None,
        connectivity: Optional[ConnectivityObserver] = None,
        catalog: Optional[Catalog] = None,
    ):
        self.store = store
        self.session = SessionState(store, identity)
        self.cart = CartEngine()
        self.order_book = OrderEngine(store, payments)
        self.stock = InventoryEngine(store)
        self.catalog = catalog or Catalog()
        self.connectivity = connectivity or ConnectivityObserver()
        self.last_save = SaveResult()
        self._subscribers: List[Subscriber] = []
        self.connectivity.subscribe(lambda online: self._notify())

    # -- read side --

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    @property
    def language(self) -> Language:
        return self.session.language

    @property
    def marketplace(self) -> List[Product]:
        return self.catalog.products()

    @property
    def weather(self) -> WeatherInfo:
        return WEATHER

    @property
    def is_online(self) -> bool:
        return self.connectivity.is_online

    @property
    def orders(self) -> List[Order]:
        return self.order_book.orders()

    @property
    def inventory(self) -> List[InventoryItem]:
        return self.stock.items()

    def cart_items(self) -> List[CartItem]:
        return self.cart.items()

    def snapshot(self) -> AppSnapshot:
        return AppSnapshot(
            user=self.user,
            language=self.language,
            cart=self.cart.items(),
            cart_total=self.cart.total(),
            orders=self.orders,
            inventory=self.inventory,
            is_online=self.is_online,
        )

    # -- subscriptions --

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe():
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snap = self.snapshot()
        for subscriber in list(self._subscribers):
            try:
                subscriber(snap)
            except Exception:
                logger.exception("State subscriber failed")

    def _saved(self, persisted: bool, what: str) -> None:
        if persisted:
            self.last_save = SaveResult()
        else:
            self.last_save = SaveResult(persisted=False, detail=f"{what} kept for this session only")

    # -- session --

    def login(self, role: Role, phone: Optional[str] = None) -> User:
        user = self.session.login(role, phone)
        self._saved(self.session.last_persisted, "Profile")
        self._notify()
        return user

    def update_profile(self, changes: UserUpdate) -> Optional[User]:
        user = self.session.update_profile(changes)
        if user is not None:
            self._saved(self.session.last_persisted, "Profile")
            self._notify()
        return user

    def logout(self) -> None:
        was_active = self.user is not None
        self.session.logout()
        self._saved(self.session.last_persisted, "Logout")
        if was_active:
            self._notify()

    def set_language(self, language: Language) -> None:
        self.session.set_language(language)
        self._notify()

    # -- cart and orders --

    def add_to_cart(self, product: Product) -> CartItem:
        item = self.cart.add_to_cart(product)
        self._notify()
        return item

    def remove_from_cart(self, product_id: str) -> bool:
        removed = self.cart.remove_from_cart(product_id)
        if removed:
            self._notify()
        return removed

    def clear_cart(self) -> None:
        self.cart.clear_cart()
        self._notify()

    def place_order(self) -> Optional[Order]:
        order = self.order_book.place_order(self.cart, self.user)
        if order is None:
            return None
        self._saved(self.order_book.last_persisted, "Order")
        self._notify()
        return order

    # -- inventory --

    def add_to_inventory(self, item: InventoryItem) -> InventoryItem:
        added = self.stock.add_to_inventory(item)
        self._saved(self.stock.last_persisted, "Inventory")
        self._notify()
        return added

    # -- connectivity --

    def set_online(self, online: bool) -> bool:
        return self.connectivity.set_online(online)
