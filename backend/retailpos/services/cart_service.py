# backend/retailpos/services/cart_service.py
"""
In-memory cart for one checkout session.

Lifecycle:
    EMPTY -> BUILDING -> (EMPTY | BUILDING) -> CHECKING_OUT -> COMPLETED | FAILED

- A line's quantity always stays within [1, stock known for that product].
- total_cents() is recomputed on every call.
- The cart is never persisted. It is cleared only after the sale and all
  stock decrements have been committed; after a failed checkout the lines
  are kept so the operator can retry.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..errors import (
    CheckoutInProgressError,
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from ..validation import coerce_int
from . import sales_service
from .catalog_service import get_product
from .inventory_service import _require_location, get_stock

CART_EMPTY = "EMPTY"
CART_BUILDING = "BUILDING"
CART_CHECKING_OUT = "CHECKING_OUT"
CART_COMPLETED = "COMPLETED"
CART_FAILED = "FAILED"


@dataclass
class CartItem:
    product_id: int
    name: str
    price_cents: int
    quantity: int
    stock_at_add_time: int

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "stock_at_add_time": self.stock_at_add_time,
            "line_total_cents": self.line_total_cents,
        }


class Cart:
    def __init__(self, location_id: int):
        self.location_id = location_id
        self.state = CART_EMPTY
        self.last_sale = None
        self._lines: dict[int, CartItem] = {}

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def items(self) -> list[CartItem]:
        return list(self._lines.values())

    def get(self, product_id: int) -> CartItem | None:
        return self._lines.get(product_id)

    def _guard_editable(self) -> None:
        if self.state == CART_CHECKING_OUT:
            raise CheckoutInProgressError("Cart is being checked out")

    def _touch(self) -> None:
        self.state = CART_BUILDING if self._lines else CART_EMPTY

    def add_item(self, product_id: int, name: str, price_cents: int, stock: int) -> bool:
        """
        Add one unit of a product.

        Returns False (and changes nothing) when the line already holds all
        available stock. Raises InsufficientStockError for a new line when the
        product has no stock at all.
        """
        self._guard_editable()
        if price_cents is None:
            raise ValidationError(f"Product {product_id} has no price in the base currency")

        line = self._lines.get(product_id)
        if line is None:
            if stock <= 0:
                raise InsufficientStockError(
                    f"Product {product_id} is out of stock",
                    details={"product_id": product_id, "on_hand": stock},
                )
            self._lines[product_id] = CartItem(
                product_id=product_id,
                name=name,
                price_cents=price_cents,
                quantity=1,
                stock_at_add_time=stock,
            )
            self._touch()
            return True

        line.stock_at_add_time = stock
        if line.quantity >= stock:
            return False
        line.quantity += 1
        self._touch()
        return True

    def set_quantity(self, product_id: int, quantity) -> int:
        """
        Set a line's quantity. n <= 0 removes the line; otherwise the value is
        clamped to [1, stock]. Returns the quantity now in the cart.
        """
        self._guard_editable()
        quantity = coerce_int("quantity", quantity)
        line = self._lines.get(product_id)
        if line is None:
            raise NotFoundError(f"Product {product_id} is not in the cart")

        if quantity <= 0:
            del self._lines[product_id]
            self._touch()
            return 0

        line.quantity = max(1, min(quantity, line.stock_at_add_time))
        self._touch()
        return line.quantity

    def remove_item(self, product_id: int) -> None:
        self._guard_editable()
        self._lines.pop(product_id, None)
        self._touch()

    def clear(self) -> None:
        self._guard_editable()
        self._lines.clear()
        self.state = CART_EMPTY

    def total_cents(self) -> int:
        return sum(line.price_cents * line.quantity for line in self._lines.values())

    def snapshot_lines(self) -> list[dict]:
        return [
            {
                "product_id": line.product_id,
                "name": line.name,
                "unit_price_cents": line.price_cents,
                "quantity": line.quantity,
            }
            for line in self._lines.values()
        ]

    def checkout(self, submit=None, *, client_reference: str | None = None):
        """
        Turn the cart into a sale.

        `submit(location_id, lines, client_reference=...)` defaults to
        sales_service.checkout, which records the sale and decrements stock
        atomically. On success the cart is cleared; on failure it keeps its
        lines and the error propagates.
        """
        if self.state == CART_CHECKING_OUT:
            raise CheckoutInProgressError("Checkout already in progress")
        if self.is_empty:
            raise EmptyCartError("Cannot check out an empty cart")

        if submit is None:
            submit = sales_service.checkout

        self.state = CART_CHECKING_OUT
        try:
            sale = submit(self.location_id, self.snapshot_lines(), client_reference=client_reference)
        except Exception:
            self.state = CART_FAILED
            raise

        self._lines.clear()
        self.last_sale = sale
        self.state = CART_COMPLETED
        return sale

    def to_dict(self) -> dict:
        return {
            "location_id": self.location_id,
            "state": self.state,
            "items": [line.to_dict() for line in self._lines.values()],
            "total_cents": self.total_cents(),
        }


def add_product(cart: Cart, product_id: int) -> bool:
    """Add one unit of a catalog product using its current stock at the cart's location."""
    product = get_product(product_id)
    stock = get_stock(product.id, cart.location_id)
    return cart.add_item(product.id, product.name, product.sale_price_cents, stock)


def build_cart(location_id: int, lines) -> Cart:
    """
    Rebuild a cart from a posted [{product_id, quantity}] payload.

    Prices and names come from the catalog, not the client. Repeated
    products are merged. A request for more than the stock on hand is
    rejected rather than silently clamped.
    """
    _require_location(location_id)
    if not isinstance(lines, list):
        raise ValidationError("items must be a list")

    requested: dict[int, int] = {}
    for i, raw in enumerate(lines, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"item {i} must be an object")
        product_id = coerce_int(f"item {i}: product_id", raw.get("product_id"))
        quantity = coerce_int(f"item {i}: quantity", raw.get("quantity", 1))
        if quantity <= 0:
            continue
        requested[product_id] = requested.get(product_id, 0) + quantity

    cart = Cart(location_id)
    short = []
    for product_id, quantity in requested.items():
        product = get_product(product_id)
        stock = get_stock(product.id, location_id)
        if stock < quantity:
            short.append({"product_id": product_id, "requested_quantity": quantity, "on_hand": stock})
            continue
        cart.add_item(product.id, product.name, product.sale_price_cents, stock)
        cart.set_quantity(product.id, quantity)

    if short:
        raise InsufficientStockError(
            "Insufficient stock to complete sale",
            details={"location_id": location_id, "items": short},
        )
    return cart
