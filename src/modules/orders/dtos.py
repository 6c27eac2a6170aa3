"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: product and quantity of one requested line.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``UpdateOrderDTO``: partial update (items, payment method, status).
- ``OrderItemOutputDTO`` / ``OrderOutputDTO``: API projection of an order.
- ``PageOutputDTO``: API projection of a page of orders.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import MAX_ITEMS_PER_ORDER, OrderStatus, PaymentMethod

if TYPE_CHECKING:
    from modules.core.pagination import Page
    from modules.orders.domain import Order, OrderItem


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single requested order line.

    The client sends ``product_id`` and ``quantity`` only.  Name and unit
    price are resolved by the Service Layer from the product service.
    """

    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int

    @field_validator("product_id")
    @classmethod
    def product_id_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Product id must be a positive number.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


def _check_item_count(items: List[CreateOrderItemDTO]) -> List[CreateOrderItemDTO]:
    if len(items) > MAX_ITEMS_PER_ORDER:
        raise ValueError(
            f"An order may contain at most {MAX_ITEMS_PER_ORDER} items."
        )
    return items


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``member_id`` is positive.
    - ``items`` holds between 1 and 100 lines.
    - ``payment_method`` is a known method.
    """

    model_config = ConfigDict(frozen=True)

    member_id: int
    items: List[CreateOrderItemDTO]
    payment_method: PaymentMethod

    @field_validator("member_id")
    @classmethod
    def member_id_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Member id must be a positive number.")
        return v

    @field_validator("items")
    @classmethod
    def items_within_bounds(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return _check_item_count(v)


class UpdateOrderDTO(BaseModel):
    """Immutable DTO for order updates.  Every field is optional.

    An empty ``items`` list means "leave the items alone".
    """

    model_config = ConfigDict(frozen=True)

    items: Optional[List[CreateOrderItemDTO]] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[OrderStatus] = None

    @field_validator("items")
    @classmethod
    def items_within_bounds(
        cls, v: Optional[List[CreateOrderItemDTO]]
    ) -> Optional[List[CreateOrderItemDTO]]:
        if v is None:
            return v
        return _check_item_count(v)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    """Immutable DTO for order item API responses."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int]
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal

    @classmethod
    def from_entity(cls, item: OrderItem) -> OrderItemOutputDTO:
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            unit_price=item.unit_price,
            quantity=item.quantity,
            subtotal=item.subtotal,
        )


class OrderOutputDTO(BaseModel):
    """Immutable DTO for order API responses."""

    model_config = ConfigDict(frozen=True)

    id: int
    member_id: int
    member_name: str
    status: str
    items: List[OrderItemOutputDTO]
    total_amount: Decimal
    payment_method: str
    payment_id: Optional[int]
    transaction_id: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an ``Order`` aggregate."""
        return cls(
            id=order.id,
            member_id=order.member_id,
            member_name=order.member_name,
            status=str(order.status),
            items=[OrderItemOutputDTO.from_entity(item) for item in order.items],
            total_amount=order.total_amount,
            payment_method=str(order.payment_method),
            payment_id=order.payment_id,
            transaction_id=order.transaction_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PageMetadataDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_number: int
    page_size: int
    total_elements: int
    total_pages: int


class PageOutputDTO(BaseModel):
    """Immutable DTO for a page of orders."""

    model_config = ConfigDict(frozen=True)

    content: List[OrderOutputDTO]
    page: PageMetadataDTO

    @classmethod
    def from_page(cls, page: Page[Order]) -> PageOutputDTO:
        return cls(
            content=[OrderOutputDTO.from_entity(order) for order in page.content],
            page=PageMetadataDTO(
                page_number=page.number,
                page_size=page.size,
                total_elements=page.total_elements,
                total_pages=page.total_pages,
            ),
        )
