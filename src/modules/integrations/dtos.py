"""DTOs exchanged with the member, product and payment services.

Pydantic v2 models, immutable (``frozen=True``).  The external services
speak camelCase JSON; ``populate_by_name`` lets Python code build the
same models with snake_case keyword arguments.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ExternalDTO(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MemberDTO(ExternalDTO):
    id: int
    name: str
    status: str
    email: Optional[str] = None
    grade: Optional[str] = None


class ProductDTO(ExternalDTO):
    id: int
    name: str
    price: Decimal
    status: str


class ProductStockDTO(ExternalDTO):
    """Stock snapshot; only ``available_quantity`` is used for ordering."""

    product_id: int
    quantity: int
    reserved_quantity: int
    available_quantity: int


class PaymentRequestDTO(ExternalDTO):
    order_id: int
    amount: Decimal
    payment_method: str


class PaymentDTO(ExternalDTO):
    id: int
    order_id: Optional[int] = None
    amount: Optional[Decimal] = None
    status: str
    transaction_id: str
    created_at: Optional[datetime] = None
