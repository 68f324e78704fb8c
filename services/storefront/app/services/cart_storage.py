from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from packages.shared.schemas.cart_v1 import DeliverySelectionV1
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "addonCart"
DELIVERY_SELECTION_KEY = "addonDeliverySummary"


class CartStorage(Protocol):
    """Key/value blob storage, the server-side stand-in for browser localStorage."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, blob: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCartStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self._blobs[key] = blob

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class FileCartStorage:
    """One JSON document per customer under ``root``.

    The document maps storage keys to blobs, mirroring one browser's localStorage.
    Writes go to a temp file that replaces the document, so a reader never sees a
    half-written file.
    """

    def __init__(self, root: Path, owner_id: str) -> None:
        if not owner_id or "/" in owner_id or owner_id.startswith("."):
            raise ValueError(f"Invalid cart owner id: {owner_id!r}")
        self._root = root
        self._path = root / f"{owner_id}.json"

    @property
    def path(self) -> Path:
        return self._path

    def read(self, key: str) -> str | None:
        return self._load().get(key)

    def write(self, key: str, blob: str) -> None:
        doc = self._load()
        doc[key] = blob
        self._save(doc)

    def delete(self, key: str) -> None:
        doc = self._load()
        if key in doc:
            del doc[key]
            self._save(doc)

    def remove_all(self) -> None:
        self._path.unlink(missing_ok=True)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            doc = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable cart document %s: %s", self._path, e)
            return {}
        if not isinstance(doc, dict):
            return {}
        return {str(k): v for k, v in doc.items() if isinstance(v, str)}

    def _save(self, doc: dict[str, str]) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._root, prefix=".cart-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class DeliverySelection:
    """Pending addon delivery-date choice, persisted next to the cart."""

    def __init__(self, storage: CartStorage, key: str = DELIVERY_SELECTION_KEY) -> None:
        self._storage = storage
        self._key = key

    def load(self) -> DeliverySelectionV1 | None:
        blob = self._storage.read(self._key)
        if not blob:
            return None
        try:
            return DeliverySelectionV1.model_validate_json(blob)
        except PydanticValidationError as e:
            logger.warning("Discarding malformed delivery selection: %s", e)
            return None

    def save(self, selection: DeliverySelectionV1) -> None:
        self._storage.write(self._key, selection.model_dump_json())

    def clear(self) -> None:
        self._storage.delete(self._key)
