from __future__ import annotations

from decimal import Decimal
from types import TracebackType

from services.storefront.app.services.cart_store import CartLineItem, CartProduct, CartStore


class CartContext:
    """Scope-bound view over a CartStore.

    Inside a ``with`` block the context keeps a snapshot of the cart that is
    refreshed by the store's change notifications. Reads are answered from the
    snapshot; writes go to the store, which then refreshes the snapshot.
    """

    def __init__(self, store: CartStore) -> None:
        self._store = store
        self._items: list[CartLineItem] = []
        self._unsubscribe = None

    def __enter__(self) -> "CartContext":
        self._unsubscribe = self._store.subscribe(self)
        self._items = self._store.get_items()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None

    @property
    def is_open(self) -> bool:
        return self._unsubscribe is not None

    def cart_changed(self, items: list[CartLineItem]) -> None:
        self._items = list(items)

    @property
    def items(self) -> list[CartLineItem]:
        self._require_open()
        return list(self._items)

    def add(self, product: CartProduct) -> None:
        self._require_open()
        self._store.add(product)

    def set_quantity(self, product_id: str, quantity: int) -> None:
        self._require_open()
        self._store.set_quantity(product_id, quantity)

    def remove(self, product_id: str) -> None:
        self._require_open()
        self._store.remove(product_id)

    def clear(self) -> None:
        self._require_open()
        self._store.clear()

    def item_quantity(self, product_id: str) -> int:
        self._require_open()
        for item in self._items:
            if item.id == product_id:
                return item.quantity
        return 0

    def total_items(self) -> int:
        self._require_open()
        return sum(item.quantity for item in self._items)

    def total_price(self) -> Decimal:
        self._require_open()
        return sum((item.line_total for item in self._items), Decimal("0"))

    def _require_open(self) -> None:
        if self._unsubscribe is None:
            raise RuntimeError("CartContext must be used inside a 'with' block")
