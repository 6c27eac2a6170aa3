"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` by mapping the ``Order`` aggregate onto
``OrderRecord`` / ``OrderItemRecord`` rows.  Every save is wrapped in
``transaction.atomic()`` so the order row and its full item collection
are written together.

Updates lock the order row with ``select_for_update()`` for the duration
of the save only; concurrent load-mutate-save cycles on the same order
remain last-writer-wins.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.db import transaction
from django.db.models import Sum

from modules.core.pagination import Page, PageRequest
from modules.orders.domain import Order, OrderItem
from modules.orders.exceptions import OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import OrderItemRecord, OrderRecord
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist the aggregate (insert or update) with its items."""
        created = entity.id is None
        if created:
            record = OrderRecord()
        else:
            record = (
                OrderRecord.objects.select_for_update().filter(id=entity.id).first()
            )
            if record is None:
                raise OrderNotFound(f"Order {entity.id} not found.")

        record.member_id = entity.member_id
        record.member_name = entity.member_name
        record.status = entity.status
        record.total_amount = entity.total_amount
        record.payment_method = entity.payment_method
        record.payment_id = entity.payment_id
        record.transaction_id = entity.transaction_id
        record.save()

        kept_ids = [item.id for item in entity.items if item.id is not None]
        removed, _ = record.items.exclude(id__in=kept_ids).delete()

        for item in entity.items:
            if item.id is not None:
                record.items.filter(id=item.id).update(
                    quantity=item.quantity, subtotal=item.subtotal
                )
                continue
            item_record = OrderItemRecord.objects.create(
                order=record,
                product_id=item.product_id,
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                subtotal=item.subtotal,
            )
            item.id = item_record.id

        entity.id = record.id
        entity.created_at = record.created_at
        entity.updated_at = record.updated_at

        logger.info(
            "order.saved",
            order_id=entity.id,
            created=created,
            status=entity.status,
            item_count=len(entity.items),
            items_removed=removed,
        )
        return entity

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find_by_id(self, id: int) -> Optional[Order]:
        return self.find_by_id_with_items(id)

    def find_by_id_with_items(self, id: int) -> Optional[Order]:
        """Retrieve an order with its items prefetched.

        Returns ``None`` for non-existent or malformed ids.
        """
        try:
            record = OrderRecord.objects.prefetch_related("items").filter(id=id).first()
        except (TypeError, ValueError):
            return None
        return _to_domain(record) if record else None

    def find_page(
        self,
        page_request: PageRequest,
        member_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Page[Order]:
        """Filter, order and slice the orders table.

        Ties on the sort field are broken by id in the same direction so
        pages are stable.  A filter value no order can match (an unknown
        status, say) yields an empty page rather than an unfiltered one.
        """
        data = {
            key: value
            for key, value in {"member_id": member_id, "status": status}.items()
            if value is not None
        }
        filterset = OrderFilter(data=data, queryset=OrderRecord.objects.all())
        if not filterset.is_valid():
            logger.warning(
                "order.invalid_filter", errors=filterset.errors.get_json_data()
            )
            return Page(
                content=[],
                number=page_request.page,
                size=page_request.size,
                total_elements=0,
            )
        queryset = filterset.qs

        tie_breaker = "-id" if page_request.ordering.startswith("-") else "id"
        ordering = [page_request.ordering]
        if page_request.sort_field != "id":
            ordering.append(tie_breaker)

        total = queryset.count()
        start = page_request.offset
        rows = (
            queryset.order_by(*ordering).prefetch_related("items")[
                start : start + page_request.size
            ]
            if start < total
            else []
        )
        return Page(
            content=[_to_domain(record) for record in rows],
            number=page_request.page,
            size=page_request.size,
            total_elements=total,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def count_by_member(self, member_id: int) -> int:
        return OrderRecord.objects.filter(member_id=member_id).count()

    def count_by_status(self, status: str) -> int:
        return OrderRecord.objects.filter(status=status).count()

    def total_quantity_by_product(self, product_id: int) -> int:
        result = OrderItemRecord.objects.filter(product_id=product_id).aggregate(
            total=Sum("quantity")
        )
        return result["total"] or 0


def _to_domain(record: OrderRecord) -> Order:
    items = [
        OrderItem(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            unit_price=item.unit_price,
            quantity=item.quantity,
        )
        for item in record.items.all()
    ]
    return Order(
        id=record.id,
        member_id=record.member_id,
        member_name=record.member_name,
        status=record.status,
        items=items,
        total_amount=record.total_amount,
        payment_method=record.payment_method,
        payment_id=record.payment_id,
        transaction_id=record.transaction_id,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
