"""Session cart for ChopXpress"""
from dataclasses import dataclass
from typing import Dict, List


class CartError(Exception):
    pass


@dataclass(frozen=True)
class CartItem:
    """The menu item fields a cart line needs"""
    id: int
    name: str
    price: float
    image_url: str = ""


@dataclass
class CartLine:
    item: CartItem
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.item.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.item.id,
            "name": self.item.name,
            "price": self.item.price,
            "image_url": self.item.image_url,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }


class Cart:
    """Lines keyed by item id; dict order doubles as display order"""

    def __init__(self):
        self._lines: Dict[int, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def __len__(self):
        return len(self._lines)

    def __contains__(self, item_id):
        return item_id in self._lines

    def add(self, item: CartItem) -> CartLine:
        """Add one of item, bumping the quantity if already in the cart"""
        if item.price < 0:
            raise CartError(f"Item {item.id} has a negative price")
        line = self._lines.get(item.id)
        if line:
            line.quantity += 1
        else:
            line = CartLine(item=item)
            self._lines[item.id] = line
        return line

    def set_quantity(self, item_id: int, quantity: int):
        """Set a line's quantity; zero or less removes the line"""
        if item_id not in self._lines:
            raise CartError(f"Item {item_id} is not in the cart")
        if quantity <= 0:
            del self._lines[item_id]
            return None
        self._lines[item_id].quantity = quantity
        return self._lines[item_id]

    def remove(self, item_id: int):
        if item_id not in self._lines:
            raise CartError(f"Item {item_id} is not in the cart")
        del self._lines[item_id]

    def clear(self):
        self._lines.clear()

    @property
    def subtotal(self) -> float:
        return sum(line.line_total for line in self._lines.values())

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())
