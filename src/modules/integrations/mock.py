"""Deterministic fixture-driven clients for development and tests.

Selected when ``EXTERNAL_MOCK_ENABLED`` is true.  Special ids trigger the
failure modes of the real services:

Members:   9999 not found, 8888 inactive, 7777 unavailable, 5555 timeout.
Products:  9999 not found, 8888 out of stock, 7777 only 2 units available.
Payments:  order 6666 is declined, payment 9999 does not exist.
"""

from __future__ import annotations

import itertools
import threading
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import FrozenSet

import structlog

from modules.integrations.dtos import (
    MemberDTO,
    PaymentDTO,
    PaymentRequestDTO,
    ProductDTO,
    ProductStockDTO,
)
from modules.integrations.interfaces import (
    IMemberClient,
    IPaymentClient,
    IProductClient,
)
from modules.orders.exceptions import (
    ExternalServiceUnavailable,
    MemberNotFound,
    PaymentFailed,
    PaymentNotFound,
    ProductNotFound,
)

logger = structlog.get_logger(__name__)

MISSING_MEMBER_ID = 9999
INACTIVE_MEMBER_ID = 8888
UNAVAILABLE_MEMBER_ID = 7777
TIMEOUT_MEMBER_ID = 5555

MISSING_PRODUCT_ID = 9999
OUT_OF_STOCK_PRODUCT_ID = 8888
LOW_STOCK_PRODUCT_ID = 7777
MOCK_PRODUCT_PRICE = Decimal("99.99")

DECLINED_ORDER_ID = 6666
MISSING_PAYMENT_ID = 9999
PAYMENT_ID_INITIAL_VALUE = 5000


class MockMemberClient(IMemberClient):
    def get_member(self, member_id: int) -> MemberDTO:
        log = logger.bind(member_id=member_id, client="mock")
        log.info("member.lookup")

        if member_id == UNAVAILABLE_MEMBER_ID:
            log.warning("member.service_unavailable")
            raise ExternalServiceUnavailable("Member service unavailable")
        if member_id == TIMEOUT_MEMBER_ID:
            log.warning("member.service_timeout")
            raise ExternalServiceUnavailable("Member service timeout")
        if member_id == MISSING_MEMBER_ID:
            log.warning("member.not_found")
            raise MemberNotFound(f"Member {member_id} not found.")
        if member_id == INACTIVE_MEMBER_ID:
            return MemberDTO(
                id=member_id,
                name="Inactive Member",
                email="inactive@example.com",
                status="INACTIVE",
                grade="BRONZE",
            )
        return MemberDTO(
            id=member_id,
            name=f"Mock Member {member_id}",
            email=f"member{member_id}@example.com",
            status="ACTIVE",
            grade="GOLD",
        )


class MockProductClient(IProductClient):
    def get_product(self, product_id: int) -> ProductDTO:
        log = logger.bind(product_id=product_id, client="mock")
        log.info("product.lookup")

        if product_id == MISSING_PRODUCT_ID:
            log.warning("product.not_found")
            raise ProductNotFound(f"Product {product_id} not found.")
        if product_id == OUT_OF_STOCK_PRODUCT_ID:
            return ProductDTO(
                id=product_id,
                name="Out of Stock Product",
                price=Decimal("0.00"),
                status="OUT_OF_STOCK",
            )
        return ProductDTO(
            id=product_id,
            name=f"Mock Product {product_id}",
            price=MOCK_PRODUCT_PRICE,
            status="AVAILABLE",
        )

    def get_product_stock(self, product_id: int) -> ProductStockDTO:
        logger.info("product.stock_lookup", product_id=product_id, client="mock")

        if product_id == LOW_STOCK_PRODUCT_ID:
            return ProductStockDTO(
                product_id=product_id,
                quantity=10,
                reserved_quantity=8,
                available_quantity=2,
            )
        return ProductStockDTO(
            product_id=product_id,
            quantity=1000,
            reserved_quantity=0,
            available_quantity=1000,
        )


class PaymentIdCounter:
    """Process-wide, thread-safe payment id sequence.

    ``next_id()`` returns ``initial_value + 1`` on the first call.
    """

    def __init__(self, initial_value: int = PAYMENT_ID_INITIAL_VALUE) -> None:
        self._counter = itertools.count(initial_value + 1)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


class MockPaymentClient(IPaymentClient):
    def __init__(
        self,
        counter: PaymentIdCounter,
        declined_order_ids: FrozenSet[int] = frozenset({DECLINED_ORDER_ID}),
    ) -> None:
        self._counter = counter
        self._declined_order_ids = declined_order_ids

    def create_payment(self, request: PaymentRequestDTO) -> PaymentDTO:
        log = logger.bind(
            order_id=request.order_id,
            amount=str(request.amount),
            payment_method=request.payment_method,
            client="mock",
        )
        log.info("payment.requested")

        if request.order_id in self._declined_order_ids:
            log.warning("payment.declined")
            raise PaymentFailed("Payment failed: Insufficient funds")

        payment_id = self._counter.next_id()
        transaction_id = (
            f"TXN-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"
        )
        log.info(
            "payment.completed", payment_id=payment_id, transaction_id=transaction_id
        )
        return PaymentDTO(
            id=payment_id,
            order_id=request.order_id,
            amount=request.amount,
            status="COMPLETED",
            transaction_id=transaction_id,
            created_at=datetime.now(timezone.utc),
        )

    def get_payment(self, payment_id: int) -> PaymentDTO:
        logger.info("payment.lookup", payment_id=payment_id, client="mock")

        if payment_id == MISSING_PAYMENT_ID:
            raise PaymentNotFound(f"Payment {payment_id} not found.")
        return PaymentDTO(
            id=payment_id,
            order_id=1,
            amount=MOCK_PRODUCT_PRICE,
            status="COMPLETED",
            transaction_id=f"TXN-MOCK-{payment_id}",
            created_at=datetime.now(timezone.utc),
        )
