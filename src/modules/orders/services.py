"""Order service layer (Use Cases).

Orchestrates order creation and update against the member, product and
payment services.

Create pipeline, fail-fast in this order:
1. Member must exist and be ACTIVE.
2. For each item, sequentially: product must be AVAILABLE, then its
   available stock must cover the requested quantity.
3. The PENDING order is saved (first write).
4. Payment is requested for the saved order; on success the order is
   confirmed and saved again (second write).  On failure the order stays
   PENDING in storage and ``PaymentFailed`` (or
   ``ExternalServiceUnavailable``) reaches the caller.

Each save is its own transaction: a payment failure never rolls back the
PENDING order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import structlog

from modules.core.pagination import PageRequest
from modules.integrations.dtos import PaymentRequestDTO
from modules.orders.constants import (
    MEMBER_ACTIVE,
    PRODUCT_AVAILABLE,
    USER_TRANSITIONS,
    OrderStatus,
)
from modules.orders.domain import Order, OrderItem
from modules.orders.exceptions import (
    ExternalServiceUnavailable,
    InsufficientStock,
    InvalidOrderStatus,
    MemberValidationError,
    OrderNotFound,
    PaymentFailed,
    ProductValidationError,
)
from modules.orders.queries import OrderQueryService

if TYPE_CHECKING:
    from modules.core.pagination import Page
    from modules.integrations.interfaces import (
        IMemberClient,
        IPaymentClient,
        IProductClient,
    )
    from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, UpdateOrderDTO
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives the repository and the external clients via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        member_client: IMemberClient,
        product_client: IProductClient,
        payment_client: IPaymentClient,
    ) -> None:
        self._order_repo = order_repository
        self._member_client = member_client
        self._product_client = product_client
        self._payment_client = payment_client
        self._queries = OrderQueryService(order_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Validate, persist and pay for a new order.

        Raises:
            MemberNotFound / MemberValidationError: member missing or inactive.
            ProductNotFound / ProductValidationError: product missing or
                not available.
            InsufficientStock: requested quantity exceeds available stock.
            PaymentFailed: the charge was rejected; the order stays PENDING.
            ExternalServiceUnavailable: a collaborator could not be reached.
        """
        log = logger.bind(member_id=dto.member_id, item_count=len(dto.items))
        log.info("order.creation_started")

        # 1. Member
        member = self._member_client.get_member(dto.member_id)
        if member.status != MEMBER_ACTIVE:
            log.warning("order.member_inactive", member_status=member.status)
            raise MemberValidationError(
                f"Member {dto.member_id} is not active (status: {member.status})."
            )

        # 2. Shell + items
        order = Order(
            member_id=dto.member_id,
            member_name=member.name,
            payment_method=dto.payment_method,
        )
        for item in self._build_items(dto.items):
            order.add_item(item)

        # 3. First write: PENDING
        order = self._order_repo.save(order)
        log = log.bind(order_id=order.id, total_amount=str(order.total_amount))
        log.info("order.pending_saved")

        # 4. Payment + second write
        self._process_payment(order)
        order = self._order_repo.save(order)

        log.info("order.created", status=order.status, payment_id=order.payment_id)
        return order

    def update_order(self, order_id: int, dto: UpdateOrderDTO) -> Order:
        """Apply a status change, an item replacement and/or a new payment
        method, then save once.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: illegal transition, or items changed after
                the order left PENDING.
        """
        order = self._order_repo.find_by_id_with_items(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order_id, current_status=order.status)

        # 1. Status
        if dto.status is not None and dto.status != order.status:
            if dto.status not in USER_TRANSITIONS.get(order.status, set()):
                log.warning("order.invalid_transition", new_status=dto.status)
                raise InvalidOrderStatus(
                    f"Cannot transition from {order.status} to {dto.status}."
                )
            order.transition_to(dto.status)
            log.info("order.status_changed", new_status=dto.status)

        # 2. Items (replace-all)
        if dto.items:
            if not order.can_update_items():
                log.warning("order.items_locked")
                raise InvalidOrderStatus(
                    f"Items of an order in status {order.status} cannot be changed."
                )
            new_items = self._build_items(dto.items)
            order.clear_items()
            for item in new_items:
                order.add_item(item)
            log.info(
                "order.items_replaced",
                item_count=len(new_items),
                total_amount=str(order.total_amount),
            )

        # 3. Payment method
        if dto.payment_method is not None:
            order.change_payment_method(dto.payment_method)

        order = self._order_repo.save(order)
        log.info("order.updated", status=order.status)
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        return self._queries.get_order_by_id(order_id)

    def list_orders(
        self,
        member_id: Optional[int] = None,
        status: Optional[str] = None,
        page_request: Optional[PageRequest] = None,
    ) -> Page[Order]:
        return self._queries.list_orders(member_id, status, page_request)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_items(self, item_dtos: List[CreateOrderItemDTO]) -> List[OrderItem]:
        """Validate every requested line in order; first failure wins."""
        return [self._build_item(item_dto) for item_dto in item_dtos]

    def _build_item(self, item_dto: CreateOrderItemDTO) -> OrderItem:
        product = self._product_client.get_product(item_dto.product_id)
        if product.status != PRODUCT_AVAILABLE:
            logger.warning(
                "order.product_unavailable",
                product_id=item_dto.product_id,
                product_status=product.status,
            )
            raise ProductValidationError(
                f"Product {item_dto.product_id} is not available "
                f"(status: {product.status})."
            )

        stock = self._product_client.get_product_stock(item_dto.product_id)
        if item_dto.quantity > stock.available_quantity:
            logger.warning(
                "order.insufficient_stock",
                product_id=item_dto.product_id,
                requested=item_dto.quantity,
                available=stock.available_quantity,
            )
            raise InsufficientStock(
                f"Product {item_dto.product_id}: requested {item_dto.quantity}, "
                f"available {stock.available_quantity}."
            )

        return OrderItem(
            product_id=product.id,
            product_name=product.name,
            unit_price=product.price,
            quantity=item_dto.quantity,
        )

    def _process_payment(self, order: Order) -> None:
        log = logger.bind(order_id=order.id, amount=str(order.total_amount))
        request = PaymentRequestDTO(
            order_id=order.id,
            amount=order.total_amount,
            payment_method=str(order.payment_method),
        )
        try:
            payment = self._payment_client.create_payment(request)
        except (PaymentFailed, ExternalServiceUnavailable) as exc:
            log.error("payment.failed", error=exc.message, code=exc.code)
            raise
        except Exception as exc:
            log.exception("payment.unexpected_error")
            raise PaymentFailed(f"Payment processing failed: {exc}") from exc

        order.confirm_payment(payment.id, payment.transaction_id)
        log.info(
            "payment.completed",
            payment_id=payment.id,
            transaction_id=payment.transaction_id,
            status=OrderStatus.CONFIRMED,
        )
