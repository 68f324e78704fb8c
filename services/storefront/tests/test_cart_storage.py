from __future__ import annotations

import json
from pathlib import Path

import pytest
from packages.shared.schemas.cart_v1 import DeliverySelectionV1
from services.storefront.app.services.cart_storage import (
    DELIVERY_SELECTION_KEY,
    DeliverySelection,
    FileCartStorage,
    InMemoryCartStorage,
)


def test_file_storage_keeps_keys_in_one_document(tmp_path: Path) -> None:
    storage = FileCartStorage(tmp_path, "user-1")

    storage.write("addonCart", "[]")
    storage.write("addonDeliverySummary", "{}")
    storage.delete("addonDeliverySummary")

    assert json.loads(storage.path.read_text(encoding="utf-8")) == {"addonCart": "[]"}
    assert FileCartStorage(tmp_path, "user-1").read("addonCart") == "[]"
    assert FileCartStorage(tmp_path, "user-2").read("addonCart") is None


def test_file_storage_remove_all(tmp_path: Path) -> None:
    storage = FileCartStorage(tmp_path, "user-1")
    storage.write("addonCart", "[]")

    storage.remove_all()
    storage.remove_all()

    assert not storage.path.exists()
    assert storage.read("addonCart") is None


def test_corrupt_document_reads_as_empty(tmp_path: Path) -> None:
    (tmp_path / "user-1.json").write_text("{oops", encoding="utf-8")

    assert FileCartStorage(tmp_path, "user-1").read("addonCart") is None


@pytest.mark.parametrize("owner", ["", "../escape", ".hidden", "a/b"])
def test_file_storage_rejects_unsafe_owner_ids(tmp_path: Path, owner: str) -> None:
    with pytest.raises(ValueError):
        FileCartStorage(tmp_path, owner)


def test_delivery_selection_round_trip_and_clear() -> None:
    storage = InMemoryCartStorage()
    selection = DeliverySelection(storage)

    assert selection.load() is None
    selection.save(
        DeliverySelectionV1(
            main_order_id="o-1", main_order_name="Trial Week", delivery_date="2030-01-02"
        )
    )
    assert selection.load() == DeliverySelectionV1(
        main_order_id="o-1", main_order_name="Trial Week", delivery_date="2030-01-02"
    )

    selection.clear()
    assert selection.load() is None


def test_malformed_delivery_selection_is_ignored() -> None:
    storage = InMemoryCartStorage({DELIVERY_SELECTION_KEY: '{"delivery_date": 5}'})

    assert DeliverySelection(storage).load() is None
