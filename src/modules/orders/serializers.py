"""Order DRF serializers for API input.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``; responses are rendered from the
output DTOs.
"""

from __future__ import annotations

import re

from django.conf import settings
from rest_framework import serializers

from modules.core.pagination import ASC, DESC, PageRequest
from modules.orders.constants import MAX_ITEMS_PER_ORDER, OrderStatus, PaymentMethod

SORTABLE_FIELDS = frozenset(
    {"id", "created_at", "updated_at", "total_amount", "status", "member_id"}
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class OrderItemInputSerializer(serializers.Serializer):
    """Validates a single requested line."""

    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    member_id = serializers.IntegerField(min_value=1)
    items = OrderItemInputSerializer(
        many=True, allow_empty=False, max_length=MAX_ITEMS_PER_ORDER
    )
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)


class UpdateOrderSerializer(serializers.Serializer):
    """Validates the order update payload.  Every field is optional."""

    items = OrderItemInputSerializer(
        many=True, required=False, allow_empty=True, max_length=MAX_ITEMS_PER_ORDER
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False
    )
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


class OrderListQuerySerializer(serializers.Serializer):
    """Validates ``GET /orders/`` query parameters.

    ``sort`` has the form ``field[,asc|desc]``; the field may be given in
    camelCase or snake_case.
    """

    member_id = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    page = serializers.IntegerField(min_value=0, default=0)
    size = serializers.IntegerField(min_value=1, required=False)
    sort = serializers.CharField(required=False, default="createdAt,desc")

    def validate_size(self, value: int) -> int:
        max_size = settings.MAX_PAGE_SIZE
        if value > max_size:
            raise serializers.ValidationError(
                f"Ensure this value is less than or equal to {max_size}."
            )
        return value

    def validate_sort(self, value: str) -> tuple[str, str]:
        parts = [part.strip() for part in value.split(",")]
        field = to_snake_case(parts[0]) if parts and parts[0] else ""
        direction = parts[1].lower() if len(parts) > 1 and parts[1] else DESC

        if field not in SORTABLE_FIELDS:
            raise serializers.ValidationError(
                f"Cannot sort by '{parts[0]}'. "
                f"Allowed fields: {', '.join(sorted(SORTABLE_FIELDS))}."
            )
        if direction not in (ASC, DESC):
            raise serializers.ValidationError(
                f"Sort direction must be '{ASC}' or '{DESC}'."
            )
        return field, direction

    def to_page_request(self) -> PageRequest:
        data = self.validated_data
        sort_field, direction = data["sort"]
        return PageRequest(
            page=data["page"],
            size=data.get("size") or settings.DEFAULT_PAGE_SIZE,
            sort_field=sort_field,
            direction=direction,
        )
