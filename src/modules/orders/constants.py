"""Order domain constants.

Defines status and payment-method choices, the order state machine and
the money/size limits shared by the aggregate, DTOs and serializers.
"""

from decimal import ROUND_HALF_UP, Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "CREDIT_CARD", "Credit card"
    DEBIT_CARD = "DEBIT_CARD", "Debit card"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED},
    OrderStatus.CONFIRMED: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),
}

# Transitions a caller may request through the update pipeline.
# PENDING -> CONFIRMED only happens as the result of a successful payment.
USER_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: set(),
    OrderStatus.CONFIRMED: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.CANCELLED}

MAX_ITEMS_PER_ORDER = 100

MONEY_QUANTUM = Decimal("0.01")
MONEY_ROUNDING = ROUND_HALF_UP

# External status tokens reported by the member / product services.
MEMBER_ACTIVE = "ACTIVE"
PRODUCT_AVAILABLE = "AVAILABLE"


def quantize_money(value: Decimal) -> Decimal:
    """Round *value* to currency precision (2 places, half-up)."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=MONEY_ROUNDING)
