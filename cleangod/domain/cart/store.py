"""Cart store - line items persisted per device"""

import json
import logging

from pydantic import TypeAdapter, ValidationError

from ...storage import KeyValueStore
from .schemas import CartItem

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(list[CartItem])


class CartStore:
    """
    Cart for one device.

    Loaded from storage when constructed and written back after every
    mutation. Two tabs on the same device share the key but are not
    synchronised: the last write wins.
    """

    def __init__(self, storage: KeyValueStore, device_id: str):
        self.storage = storage
        self.device_id = device_id
        self.items: list[CartItem] = self._load()

    @property
    def key(self) -> str:
        return f"cart:{self.device_id}"

    def _load(self) -> list[CartItem]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            return _items_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f"❌ Error loading cart for device {self.device_id}: {e}")
            return []

    def _flush(self) -> None:
        payload = json.dumps([item.model_dump() for item in self.items])
        self.storage.set(self.key, payload)

    def _find(self, item_id: str, item_type: str):
        for item in self.items:
            if item.id == item_id and item.type == item_type:
                return item
        return None

    def add_item(self, item: CartItem) -> None:
        existing = self._find(item.id, item.type)
        if existing:
            existing.quantity += item.quantity
        else:
            self.items.append(item.model_copy())
        self._flush()

    def update_quantity(self, item_id: str, item_type: str, quantity: int) -> None:
        existing = self._find(item_id, item_type)
        if existing is None:
            return
        if quantity <= 0:
            self.remove_item(item_id, item_type)
            return
        existing.quantity = quantity
        self._flush()

    def remove_item(self, item_id: str, item_type: str) -> None:
        self.items = [i for i in self.items if not (i.id == item_id and i.type == item_type)]
        self._flush()

    def replace_items(self, items: list[CartItem]) -> None:
        self.items = list(items)
        self._flush()

    def clear(self) -> None:
        self.items = []
        self.storage.delete(self.key)

    def get_item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def get_total_amount(self) -> float:
        return sum(item.price * item.quantity for item in self.items)
