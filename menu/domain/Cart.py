"""Cart Store: one customer session's (item, quantity) selections."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from menu.domain.errors import MenuValidationError
from menu.events.Event_Bus import CART_CHANGED, GLOBAL_EVENT_BUS, EventBus

logger = logging.getLogger(__name__)


@dataclass
class CartItem:
    """Cart line; ``id`` refers to a menu item by value."""
    id: str
    name: str
    price: float
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "price": self.price, "quantity": self.quantity}

    @staticmethod
    def from_dict(data) -> "CartItem":
        return CartItem(
            id=str(data["id"]),
            name=data.get("name", ""),
            price=float(data.get("price", 0) or 0),
            quantity=int(data.get("quantity", 1)),
        )


class Cart:
    def __init__(self, items: Optional[Iterable] = None, bus: EventBus = GLOBAL_EVENT_BUS):
        self.bus = bus
        self._items: List[CartItem] = []
        if items:
            self.load_items(items)

    def _changed(self, reason: str) -> None:
        self.bus.publish(CART_CHANGED, {"source": self, "reason": reason, "count": len(self._items)})

    def _find(self, item_id) -> Optional[CartItem]:
        item_id = str(item_id)
        return next((line for line in self._items if line.id == item_id), None)

    @staticmethod
    def _line_from(item) -> CartItem:
        """Accepts a MenuItem, a CartItem or a mapping with id, name and price."""
        if isinstance(item, dict):
            item_id, name, price = item.get("id"), item.get("name", ""), item.get("price")
        else:
            item_id, name, price = getattr(item, "id", None), getattr(item, "name", ""), getattr(item, "price", None)
        if item_id is None or str(item_id) == "":
            raise MenuValidationError("Cart item needs an id")
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise MenuValidationError(f"Cart item {item_id} has no valid price")
        return CartItem(id=str(item_id), name=name or "", price=price, quantity=1)

    def add(self, item) -> CartItem:
        """Add one unit; an id already in the cart just gets its quantity bumped."""
        line = self._find(getattr(item, "id", None) if not isinstance(item, dict) else item.get("id"))
        if line is not None:
            line.quantity += 1
        else:
            line = self._line_from(item)
            self._items.append(line)
        logger.debug(f"Cart now holds {line.quantity} x {line.name}")
        self._changed("add")
        return CartItem(**line.to_dict())

    def remove(self, item_id) -> None:
        line = self._find(item_id)
        if line is None:
            return
        self._items.remove(line)
        self._changed("remove")

    def set_quantity(self, item_id, quantity: int) -> None:
        """Quantity <= 0 removes the line; anything else is stored as-is."""
        if quantity <= 0:
            self.remove(item_id)
            return
        line = self._find(item_id)
        if line is None:
            return
        line.quantity = int(quantity)
        self._changed("set_quantity")

    def clear(self) -> None:
        if not self._items:
            return
        self._items.clear()
        self._changed("clear")

    def total_price(self) -> float:
        return sum(line.line_total for line in self._items)

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._items)

    def get_items(self) -> List[CartItem]:
        return [CartItem(**line.to_dict()) for line in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id) -> bool:
        return self._find(item_id) is not None

    def load_items(self, items: Iterable) -> None:
        """Replace the contents without publishing a change (used when restoring from storage)."""
        lines: List[CartItem] = []
        for raw in items:
            line = raw if isinstance(raw, CartItem) else CartItem.from_dict(raw)
            existing = next((l for l in lines if l.id == line.id), None)
            if existing is not None:
                # stored duplicates collapse into one line
                existing.quantity += line.quantity
            elif line.quantity > 0:
                lines.append(CartItem(**line.to_dict()))
        self._items = lines

    def to_list(self) -> List[dict]:
        return [line.to_dict() for line in self._items]

    def __str__(self) -> str:
        return f"Cart({self.total_quantity()} items, ${self.total_price():.2f})"

    __repr__ = __str__
