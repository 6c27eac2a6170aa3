"""Capability interfaces for the external services.

The order pipelines depend only on these contracts.  Every call either
returns data or raises one of:

- a not-found kind (``MemberNotFound``, ``ProductNotFound``,
  ``PaymentNotFound``);
- ``PaymentFailed`` when the payment service rejects a charge;
- ``ExternalServiceUnavailable`` for transport or availability problems.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from modules.integrations.dtos import (
    MemberDTO,
    PaymentDTO,
    PaymentRequestDTO,
    ProductDTO,
    ProductStockDTO,
)


class IMemberClient(ABC):
    @abstractmethod
    def get_member(self, member_id: int) -> MemberDTO:
        """Fetch a member by id."""


class IProductClient(ABC):
    @abstractmethod
    def get_product(self, product_id: int) -> ProductDTO:
        """Fetch a product by id."""

    @abstractmethod
    def get_product_stock(self, product_id: int) -> ProductStockDTO:
        """Fetch the current stock snapshot of a product."""


class IPaymentClient(ABC):
    @abstractmethod
    def create_payment(self, request: PaymentRequestDTO) -> PaymentDTO:
        """Charge an order."""

    @abstractmethod
    def get_payment(self, payment_id: int) -> PaymentDTO:
        """Fetch a payment by id."""
