"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.
Domain exceptions propagate to ``modules.core.exceptions.api_exception_handler``,
which renders them with the status code of their category.
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.integrations.registry import get_external_clients
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderOutputDTO,
    PageOutputDTO,
    UpdateOrderDTO,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListQuerySerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService


def _item_dtos(items) -> list[CreateOrderItemDTO]:
    return [
        CreateOrderItemDTO(product_id=item["product_id"], quantity=item["quantity"])
        for item in items
    ]


@extend_schema_view(
    create=extend_schema(
        request=CreateOrderSerializer, responses={201: OpenApiTypes.OBJECT}
    ),
    list=extend_schema(
        parameters=[OrderListQuerySerializer], responses=OpenApiTypes.OBJECT
    ),
    retrieve=extend_schema(responses=OpenApiTypes.OBJECT),
    update=extend_schema(request=UpdateOrderSerializer, responses=OpenApiTypes.OBJECT),
    partial_update=extend_schema(
        request=UpdateOrderSerializer, responses=OpenApiTypes.OBJECT
    ),
)
class OrderViewSet(ViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with the Django repository and the configured
    external clients (DIP).  All ORM access goes through the
    service/repository layer.
    """

    lookup_value_regex = r"\d+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        clients = get_external_clients()
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            member_client=clients.member,
            product_client=clients.product,
            payment_client=clients.payment,
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttle scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        dto = CreateOrderDTO(
            member_id=data["member_id"],
            items=_item_dtos(data["items"]),
            payment_method=data["payment_method"],
        )
        order = self._service.create_order(dto)
        out = OrderOutputDTO.from_entity(order)
        return Response(out.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?member_id=&status=&page=&size=&sort="""
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        page = self._service.list_orders(
            member_id=query.validated_data.get("member_id"),
            status=query.validated_data.get("status"),
            page_request=query.to_page_request(),
        )
        return Response(PageOutputDTO.from_page(page).model_dump(mode="json"))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(int(pk))
        return Response(OrderOutputDTO.from_entity(order).model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/

        Applies whichever of ``status``, ``items`` and ``payment_method``
        are present.  PATCH behaves the same way.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        dto = UpdateOrderDTO(
            items=_item_dtos(data["items"]) if "items" in data else None,
            payment_method=data.get("payment_method"),
            status=data.get("status"),
        )
        order = self._service.update_order(int(pk), dto)
        return Response(OrderOutputDTO.from_entity(order).model_dump(mode="json"))

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/"""
        return self.update(request, pk)
