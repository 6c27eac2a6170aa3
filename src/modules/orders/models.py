"""Persistence records for the Order aggregate.

These rows back ``modules.orders.domain.Order``.  Business behaviour
lives in the aggregate; the records only describe the storage layout:

- One ``orders`` row per aggregate.
- ``order_items`` child rows referencing ``order_id`` (CASCADE).
- Status / payment method stored as short string tokens.
- Money stored as ``DECIMAL(10, 2)``.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import OrderStatus, PaymentMethod


class OrderRecord(BaseModel):
    member_id: models.BigIntegerField = models.BigIntegerField()
    member_name: models.CharField = models.CharField(max_length=255)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    payment_method: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
    )
    payment_id: models.BigIntegerField = models.BigIntegerField(null=True, blank=True)
    transaction_id: models.CharField = models.CharField(  # noqa: DJ01
        max_length=100,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["member_id"], name="orders_member_idx"),
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Order {self.pk} ({self.status})"


class OrderItemRecord(BaseModel):
    order: models.ForeignKey = models.ForeignKey(
        OrderRecord,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product_id: models.BigIntegerField = models.BigIntegerField()
    product_name: models.CharField = models.CharField(max_length=255)
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["product_id"], name="order_items_product_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.subtotal})"
