"""Order repository interface.

Extends ``IRepository[Order, int]`` with the reads required by the
order pipelines and the listing/reporting queries.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.core.pagination import Page, PageRequest
    from modules.orders.domain import Order


class IOrderRepository(IRepository["Order", int]):
    """Repository contract for the Order aggregate root.

    The aggregate includes its OrderItem children; every save writes the
    order and its full item collection atomically.
    """

    @abstractmethod
    def save(self, entity: Order) -> Order:
        """Insert when ``entity.id`` is ``None``, otherwise update in place.

        Item rows no longer present in the aggregate are removed and
        items without an id are inserted (replace-all semantics).
        Identity and timestamps are written back onto *entity*.
        """

    @abstractmethod
    def find_by_id_with_items(self, id: int) -> Optional[Order]:
        """Load one order together with its items in a single logical read."""

    @abstractmethod
    def find_page(
        self,
        page_request: PageRequest,
        member_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Page[Order]:
        """Return one page of orders filtered by member and/or status."""

    @abstractmethod
    def count_by_member(self, member_id: int) -> int:
        """Count the orders placed by *member_id*."""

    @abstractmethod
    def count_by_status(self, status: str) -> int:
        """Count the orders currently in *status*."""

    @abstractmethod
    def total_quantity_by_product(self, product_id: int) -> int:
        """Sum of ordered quantities of *product_id* across all orders."""
