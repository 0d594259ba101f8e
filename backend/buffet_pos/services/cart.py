# Overview: In-memory checkout cart; pure arithmetic, never persisted.

"""
Checkout cart.

A cart lives for one checkout session. Items hold a reference to the product
(anything with `id`, `name` and `price_cents`, normally a Product row) and a
quantity. Stock is not checked here; availability is display-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..validation import ValidationError, parse_positive_int


@dataclass
class CartItem:
    product: Any
    quantity: int = 1

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def line_total_cents(self) -> int:
        return self.product.price_cents * self.quantity


@dataclass
class Cart:
    items: list[CartItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: int) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def add_item(self, product) -> CartItem:
        """Add one unit; an existing line is incremented instead of duplicated."""
        item = self.find(product.id)
        if item is not None:
            item.quantity += 1
            return item
        item = CartItem(product=product, quantity=1)
        self.items.append(item)
        return item

    def change_quantity(self, product_id: int, delta: int) -> CartItem | None:
        """
        Shift a line's quantity by `delta`.

        A result <= 0 removes the line (returns None); otherwise the quantity
        never drops below 1 through this path.
        """
        item = self.find(product_id)
        if item is None:
            return None
        new_quantity = item.quantity + delta
        if new_quantity <= 0:
            self.remove_item(product_id)
            return None
        item.quantity = max(1, new_quantity)
        return item

    def remove_item(self, product_id: int) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]

    def clear(self) -> None:
        self.items = []

    def subtotal(self) -> int:
        return sum(item.line_total_cents for item in self.items)

    def total(self, discount_cents: int = 0) -> int:
        # A discount larger than the subtotal yields 0, never a negative total
        return max(0, self.subtotal() - discount_cents)

    @classmethod
    def from_lines(cls, products_by_id: dict, lines: Iterable[dict]) -> "Cart":
        """
        Build a cart from request lines `[{"product_id": .., "quantity": ..}]`.

        Repeated product ids are merged into one line.
        """
        cart = cls()
        for index, line in enumerate(lines):
            if not isinstance(line, dict):
                raise ValidationError(f"items[{index}] must be an object")
            if line.get("product_id") is None:
                raise ValidationError(f"items[{index}].product_id is required")
            product_id = parse_positive_int(line["product_id"], f"items[{index}].product_id")
            quantity = parse_positive_int(line.get("quantity", 1), f"items[{index}].quantity")

            product = products_by_id.get(product_id)
            if product is None:
                raise ValidationError(f"Product {product_id} not found")

            item = cart.find(product.id)
            if item is None:
                cart.items.append(CartItem(product=product, quantity=quantity))
            else:
                item.quantity += quantity
        return cart
