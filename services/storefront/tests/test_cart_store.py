from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal

import pytest
from services.storefront.app.errors import ValidationError
from services.storefront.app.services.cart_storage import CART_STORAGE_KEY, InMemoryCartStorage
from services.storefront.app.services.cart_store import CartLineItem, CartStore


@dataclass
class _Product:
    id: str
    name: str
    price: Decimal
    image_url: str | None = None


A = _Product(id="A", name="Roti", price=Decimal("5.00"))
B = _Product(id="B", name="Raita", price=Decimal("3.50"))


def _stored(storage: InMemoryCartStorage) -> list[dict]:
    return json.loads(storage.read(CART_STORAGE_KEY) or "[]")


def test_adding_same_product_twice_keeps_one_line() -> None:
    store = CartStore(InMemoryCartStorage())

    store.add(A)
    store.add(A)

    items = store.get_items()
    assert len(items) == 1
    assert items[0].id == "A"
    assert items[0].quantity == 2


@pytest.mark.parametrize("quantity", [0, -5])
def test_non_positive_quantity_removes_line(quantity: int) -> None:
    storage = InMemoryCartStorage()
    store = CartStore(storage)
    store.add(A)
    store.add(B)

    store.set_quantity("A", quantity)

    assert [i.id for i in store.get_items()] == ["B"]
    assert [i["id"] for i in _stored(storage)] == ["B"]


def test_totals() -> None:
    store = CartStore(InMemoryCartStorage())
    store.add(A)
    store.add(A)
    store.add(B)

    assert store.total_price() == Decimal("13.50")
    assert store.total_items() == 3
    assert store.item_quantity("A") == 2
    assert store.item_quantity("missing") == 0


def test_set_quantity_sets_exact_value() -> None:
    store = CartStore(InMemoryCartStorage())
    store.add(A)

    store.set_quantity("A", 7)

    assert store.item_quantity("A") == 7


def test_set_quantity_for_unknown_product_still_notifies() -> None:
    store = CartStore(InMemoryCartStorage())
    calls: list[list[CartLineItem]] = []
    store.subscribe(calls.append)

    store.set_quantity("ghost", 3)

    assert store.get_items() == []
    assert calls == [[]]


def test_mutation_is_persisted_before_listeners_run() -> None:
    storage = InMemoryCartStorage()
    store = CartStore(storage)
    seen: list[list[dict]] = []
    store.subscribe(lambda items: seen.append(_stored(storage)))

    store.add(A)

    assert seen == [
        [{"id": "A", "name": "Roti", "price": "5.00", "quantity": 1, "image_url": None}]
    ]


def test_subscribing_twice_registers_once_and_unsubscribe_stops_calls() -> None:
    store = CartStore(InMemoryCartStorage())
    calls: list[int] = []

    def listener(items: list[CartLineItem]) -> None:
        calls.append(len(items))

    store.subscribe(listener)
    unsubscribe = store.subscribe(listener)

    store.add(A)
    assert calls == [1]

    unsubscribe()
    store.add(B)
    assert calls == [1]


def test_observer_objects_receive_changes() -> None:
    class Observer:
        def __init__(self) -> None:
            self.snapshots: list[list[CartLineItem]] = []

        def cart_changed(self, items: list[CartLineItem]) -> None:
            self.snapshots.append(items)

    store = CartStore(InMemoryCartStorage())
    observer = Observer()
    store.subscribe(observer)

    store.add(A)
    store.clear()

    assert [len(s) for s in observer.snapshots] == [1, 0]


def test_get_items_returns_a_copy() -> None:
    store = CartStore(InMemoryCartStorage())
    store.add(A)

    items = store.get_items()
    items.clear()

    assert store.total_items() == 1


def test_cart_survives_reload() -> None:
    storage = InMemoryCartStorage()
    store = CartStore(storage)
    store.add(A)
    store.add(B)
    store.remove("B")

    reloaded = CartStore(storage)

    assert [(i.id, i.quantity, i.price) for i in reloaded.get_items()] == [
        ("A", 1, Decimal("5.00"))
    ]


@pytest.mark.parametrize(
    "blob",
    [
        "{not json",
        '{"id": "A"}',
        '[{"id": "A", "name": "Roti", "price": "5.00", "quantity": 0}]',
        '[{"name": "Roti", "price": "5.00", "quantity": 1}]',
    ],
)
def test_unreadable_cart_resets_to_empty(blob: str) -> None:
    store = CartStore(InMemoryCartStorage({CART_STORAGE_KEY: blob}))

    assert store.get_items() == []
    assert store.total_price() == Decimal("0")


def test_add_rejects_product_without_id_or_with_negative_price() -> None:
    store = CartStore(InMemoryCartStorage())

    with pytest.raises(ValidationError):
        store.add(_Product(id="", name="Nameless", price=Decimal("1.00")))
    with pytest.raises(ValidationError):
        store.add(_Product(id="C", name="Refund", price=Decimal("-1.00")))

    assert store.get_items() == []
