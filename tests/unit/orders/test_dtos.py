"""Unit tests for Order DTOs (Pydantic v2).

Covers:
- Frozen (immutable) behaviour.
- Create validation: positive ids and quantities, 1..100 items.
- Update validation: every field optional, at most 100 items.
- Output projection from the aggregate.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.core.pagination import Page
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.domain import Order, OrderItem
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderOutputDTO,
    PageOutputDTO,
    UpdateOrderDTO,
)

pytestmark = pytest.mark.unit


def items(count: int) -> list[CreateOrderItemDTO]:
    return [CreateOrderItemDTO(product_id=i + 1, quantity=1) for i in range(count)]


class TestCreateOrderItemDTO:
    def test_valid(self):
        dto = CreateOrderItemDTO(product_id=1, quantity=2)
        assert dto.quantity == 2

    def test_frozen(self):
        dto = CreateOrderItemDTO(product_id=1, quantity=2)
        with pytest.raises(ValidationError):
            dto.quantity = 5

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            CreateOrderItemDTO(product_id=1, quantity=quantity)

    def test_product_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            CreateOrderItemDTO(product_id=0, quantity=1)


class TestCreateOrderDTO:
    def test_valid(self):
        dto = CreateOrderDTO(
            member_id=1, items=items(2), payment_method="CREDIT_CARD"
        )
        assert dto.payment_method == PaymentMethod.CREDIT_CARD
        assert len(dto.items) == 2

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(member_id=1, items=[], payment_method="CREDIT_CARD")

    def test_hundred_items_accepted(self):
        dto = CreateOrderDTO(
            member_id=1, items=items(100), payment_method="DEBIT_CARD"
        )
        assert len(dto.items) == 100

    def test_hundred_and_one_items_rejected(self):
        with pytest.raises(ValidationError, match="at most 100 items"):
            CreateOrderDTO(member_id=1, items=items(101), payment_method="DEBIT_CARD")

    def test_member_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(member_id=0, items=items(1), payment_method="CREDIT_CARD")

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(member_id=1, items=items(1), payment_method="CASH")


class TestUpdateOrderDTO:
    def test_all_fields_optional(self):
        dto = UpdateOrderDTO()
        assert dto.items is None
        assert dto.payment_method is None
        assert dto.status is None

    def test_empty_items_allowed(self):
        assert UpdateOrderDTO(items=[]).items == []

    def test_hundred_and_one_items_rejected(self):
        with pytest.raises(ValidationError):
            UpdateOrderDTO(items=items(101))

    def test_status_parsed(self):
        assert UpdateOrderDTO(status="CANCELLED").status == OrderStatus.CANCELLED


class TestOutputDTOs:
    @pytest.fixture()
    def order(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        order = Order(
            member_id=7,
            member_name="Mock Member 7",
            payment_method=PaymentMethod.CREDIT_CARD,
            id=42,
            created_at=now,
            updated_at=now,
        )
        order.add_item(OrderItem(3, "Mock Product 3", Decimal("99.99"), 2, id=10))
        order.confirm_payment(5001, "TXN-1-ABCDEF12")
        return order

    def test_order_projection(self, order):
        out = OrderOutputDTO.from_entity(order).model_dump(mode="json")

        assert out["id"] == 42
        assert out["member_id"] == 7
        assert out["member_name"] == "Mock Member 7"
        assert out["status"] == "CONFIRMED"
        assert out["payment_method"] == "CREDIT_CARD"
        assert out["payment_id"] == 5001
        assert out["transaction_id"] == "TXN-1-ABCDEF12"
        assert Decimal(out["total_amount"]) == Decimal("199.98")
        assert out["items"] == [
            {
                "id": 10,
                "product_id": 3,
                "product_name": "Mock Product 3",
                "unit_price": "99.99",
                "quantity": 2,
                "subtotal": "199.98",
            }
        ]

    def test_page_projection_keeps_metadata(self, order):
        page = Page(content=[order], number=2, size=1, total_elements=5)
        out = PageOutputDTO.from_page(page).model_dump(mode="json")

        assert [o["id"] for o in out["content"]] == [42]
        assert out["page"] == {
            "page_number": 2,
            "page_size": 1,
            "total_elements": 5,
            "total_pages": 5,
        }
