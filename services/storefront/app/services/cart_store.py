"""In-progress addon cart.

CartStore is the single source of truth for one customer's cart. Every mutation
persists the full item list before any subscriber is notified, so a reload never
loses a completed mutation and every subscriber observes the same state.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Protocol, runtime_checkable

from packages.shared.schemas.cart_v1 import CartLineItemV1
from pydantic import ValidationError as PydanticValidationError
from services.storefront.app.errors import ValidationError
from services.storefront.app.services.cart_storage import CART_STORAGE_KEY, CartStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CartLineItem:
    id: str
    name: str
    price: Decimal
    quantity: int
    image_url: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_wire(self) -> CartLineItemV1:
        return CartLineItemV1(
            id=self.id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            image_url=self.image_url,
        )


class CartProduct(Protocol):
    id: str
    name: str
    price: Decimal
    image_url: str | None


@runtime_checkable
class CartObserver(Protocol):
    def cart_changed(self, items: list[CartLineItem]) -> None: ...


Listener = Callable[[list[CartLineItem]], None]


class CartStore:
    def __init__(self, storage: CartStorage, key: str = CART_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._items: list[CartLineItem] = []
        # Insertion-ordered, keyed on the observer object itself.
        self._listeners: dict[object, Listener] = {}
        self._load()

    def get_items(self) -> list[CartLineItem]:
        return list(self._items)

    def item_quantity(self, product_id: str) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def total_price(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    def add(self, product: CartProduct) -> None:
        product_id = str(getattr(product, "id", "") or "")
        if not product_id:
            raise ValidationError("Cannot add a product without an id to the cart.")
        price = Decimal(str(product.price))
        if price < 0:
            raise ValidationError(
                f"Cannot add {product_id!r} with a negative price.", {"price": str(price)}
            )

        index = self._index(product_id)
        if index is None:
            self._items.append(
                CartLineItem(
                    id=product_id,
                    name=product.name,
                    price=price,
                    quantity=1,
                    image_url=getattr(product, "image_url", None),
                )
            )
        else:
            current = self._items[index]
            self._items[index] = replace(current, quantity=current.quantity + 1)
        self._commit()

    def set_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self._items = [item for item in self._items if item.id != product_id]
        else:
            index = self._index(product_id)
            if index is not None:
                self._items[index] = replace(self._items[index], quantity=quantity)
        self._commit()

    def remove(self, product_id: str) -> None:
        self._items = [item for item in self._items if item.id != product_id]
        self._commit()

    def clear(self) -> None:
        self._items = []
        self._commit()

    def subscribe(self, listener: CartObserver | Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it.

        Registering the same listener twice keeps a single registration.
        """

        if isinstance(listener, CartObserver):
            callback: Listener = listener.cart_changed
        else:
            callback = listener
        self._listeners[listener] = callback

        def unsubscribe() -> None:
            self._listeners.pop(listener, None)

        return unsubscribe

    def _find(self, product_id: str) -> CartLineItem | None:
        index = self._index(product_id)
        return self._items[index] if index is not None else None

    def _index(self, product_id: str) -> int | None:
        for i, item in enumerate(self._items):
            if item.id == product_id:
                return i
        return None

    def _load(self) -> None:
        blob = self._storage.read(self._key)
        if not blob:
            self._items = []
            return

        try:
            raw = json.loads(blob)
            if not isinstance(raw, list):
                raise ValueError(f"expected a list, got {type(raw).__name__}")
            parsed = [CartLineItemV1.model_validate(entry) for entry in raw]
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Resetting unreadable cart %r: %s", self._key, e)
            self._items = []
            return

        items: list[CartLineItem] = []
        seen: set[str] = set()
        for entry in parsed:
            if entry.id in seen:
                continue
            seen.add(entry.id)
            items.append(
                CartLineItem(
                    id=entry.id,
                    name=entry.name,
                    price=entry.price,
                    quantity=entry.quantity,
                    image_url=entry.image_url,
                )
            )
        self._items = items

    def _commit(self) -> None:
        payload = [item.to_wire().model_dump(mode="json") for item in self._items]
        self._storage.write(self._key, json.dumps(payload))

        snapshot = self.get_items()
        for callback in list(self._listeners.values()):
            callback(list(snapshot))
