"""Order aggregate (framework-agnostic).

``Order`` is the aggregate root and exclusively owns its ``OrderItem``
records.  Items carry no reference back to their order: membership is
implied by containment in ``Order.items``.  The Django ORM records in
``models.py`` are a persistence mapping only; the repository converts
between the two.

Invariants kept here:
- ``total_amount`` always equals the sum of the item subtotals.
- ``subtotal`` is always ``unit_price * quantity`` (2 places, half-up).
- ``payment_id`` / ``transaction_id`` are set together and never cleared.
- Status only moves along PENDING -> CONFIRMED -> CANCELLED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    quantize_money,
)
from modules.orders.exceptions import InvalidOrderStatus

ZERO = Decimal("0.00")


@dataclass(eq=False)
class OrderItem:
    """One priced, quantified line of an order.

    ``product_name`` and ``unit_price`` are captured when the item is
    built and never re-fetched.
    """

    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    id: Optional[int] = None
    subtotal: Decimal = field(init=False, default=ZERO)

    def __post_init__(self) -> None:
        if self.quantity is None or self.quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        self.unit_price = quantize_money(self.unit_price)
        self.calculate_subtotal()

    def calculate_subtotal(self) -> Decimal:
        self.subtotal = quantize_money(self.unit_price * self.quantity)
        return self.subtotal


@dataclass(eq=False)
class Order:
    """Order aggregate root."""

    member_id: int
    member_name: str
    payment_method: str
    status: str = OrderStatus.PENDING
    items: List[OrderItem] = field(default_factory=list)
    total_amount: Decimal = ZERO
    payment_id: Optional[int] = None
    transaction_id: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add_item(self, item: OrderItem) -> None:
        self.items.append(item)
        self.calculate_total_amount()

    def remove_item(self, item: OrderItem) -> None:
        self.items = [existing for existing in self.items if existing is not item]
        self.calculate_total_amount()

    def change_item_quantity(self, item: OrderItem, quantity: int) -> None:
        """Change one line's quantity and keep the order total in step."""
        if not any(existing is item for existing in self.items):
            raise ValueError("Item does not belong to this order.")
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        item.quantity = quantity
        item.calculate_subtotal()
        self.calculate_total_amount()

    def clear_items(self) -> None:
        """Drop every item (used before a wholesale item replacement)."""
        self.items = []
        self.calculate_total_amount()

    def calculate_total_amount(self) -> Decimal:
        total = sum((item.subtotal for item in self.items), ZERO)
        self.total_amount = quantize_money(total)
        return self.total_amount

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Same-state is accepted as a no-op."""
        if new_status == self.status:
            return True
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: str) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidOrderStatus(
                f"Cannot transition from {self.status} to {new_status}."
            )
        self.status = OrderStatus(new_status)

    def can_update_items(self) -> bool:
        """Items may be replaced only before payment."""
        return self.status == OrderStatus.PENDING

    def can_be_cancelled(self) -> bool:
        return self.status == OrderStatus.CONFIRMED

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def confirm_payment(self, payment_id: int, transaction_id: str) -> None:
        """Record a successful payment and confirm the order."""
        if self.payment_id is not None:
            raise InvalidOrderStatus(
                f"Order {self.id} already has payment {self.payment_id}."
            )
        self.transition_to(OrderStatus.CONFIRMED)
        self.payment_id = payment_id
        self.transaction_id = transaction_id

    def change_payment_method(self, payment_method: str) -> None:
        self.payment_method = PaymentMethod(payment_method)
