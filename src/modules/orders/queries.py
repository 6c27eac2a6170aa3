"""Read-side use cases for orders.

Pure reads over the order repository; nothing here mutates state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from modules.core.pagination import PageRequest
from modules.orders.exceptions import OrderNotFound

if TYPE_CHECKING:
    from modules.core.pagination import Page
    from modules.orders.domain import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderQueryService:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def get_order_by_id(self, order_id: int) -> Order:
        """Raises ``OrderNotFound`` when no order has this id."""
        order = self._order_repo.find_by_id_with_items(order_id)
        if order is None:
            logger.warning("order.not_found", order_id=order_id)
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self,
        member_id: Optional[int] = None,
        status: Optional[str] = None,
        page_request: Optional[PageRequest] = None,
    ) -> Page[Order]:
        page_request = page_request or PageRequest()
        page = self._order_repo.find_page(
            page_request, member_id=member_id, status=status
        )
        logger.info(
            "order.listed",
            member_id=member_id,
            status=status,
            page=page.number,
            total_elements=page.total_elements,
        )
        return page

    def count_by_member(self, member_id: int) -> int:
        return self._order_repo.count_by_member(member_id)

    def count_by_status(self, status: str) -> int:
        return self._order_repo.count_by_status(status)
