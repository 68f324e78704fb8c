from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import pytest
from services.storefront.app.services.cart_context import CartContext
from services.storefront.app.services.cart_storage import InMemoryCartStorage
from services.storefront.app.services.cart_store import CartStore


@dataclass
class _Product:
    id: str
    name: str
    price: Decimal
    image_url: str | None = None


def test_context_tracks_store_changes_made_elsewhere() -> None:
    store = CartStore(InMemoryCartStorage())

    with CartContext(store) as cart:
        assert cart.items == []
        store.add(_Product("A", "Roti", Decimal("5.00")))
        store.add(_Product("A", "Roti", Decimal("5.00")))

        assert cart.item_quantity("A") == 2
        assert cart.total_items() == 2
        assert cart.total_price() == Decimal("10.00")


def test_context_writes_go_through_the_store() -> None:
    store = CartStore(InMemoryCartStorage())

    with CartContext(store) as cart:
        cart.add(_Product("A", "Roti", Decimal("5.00")))
        cart.add(_Product("B", "Raita", Decimal("3.50")))
        cart.set_quantity("A", 3)
        cart.remove("B")

        assert [(i.id, i.quantity) for i in cart.items] == [("A", 3)]

    assert store.item_quantity("A") == 3


def test_context_unsubscribes_on_exit() -> None:
    store = CartStore(InMemoryCartStorage())
    context = CartContext(store)

    with context:
        assert context.is_open
    assert not context.is_open

    store.add(_Product("A", "Roti", Decimal("5.00")))
    with pytest.raises(RuntimeError, match="inside a 'with' block"):
        context.total_items()


def test_context_used_without_with_block_raises() -> None:
    cart = CartContext(CartStore(InMemoryCartStorage()))

    with pytest.raises(RuntimeError, match="CartContext must be used inside a 'with' block"):
        cart.add(_Product("A", "Roti", Decimal("5.00")))
    with pytest.raises(RuntimeError):
        _ = cart.items
