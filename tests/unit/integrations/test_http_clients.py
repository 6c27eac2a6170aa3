"""Unit tests for the live HTTP clients using ``httpx.MockTransport``."""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from modules.core.middleware import correlation_id_var
from modules.integrations.dtos import PaymentRequestDTO
from modules.integrations.http import (
    HttpMemberClient,
    HttpPaymentClient,
    HttpProductClient,
    ServiceHttpClient,
)
from modules.integrations.registry import build_external_clients
from modules.orders.exceptions import (
    ExternalServiceUnavailable,
    MemberNotFound,
    PaymentFailed,
    PaymentNotFound,
    ProductNotFound,
)

pytestmark = pytest.mark.unit


def http(handler, name="test-service") -> ServiceHttpClient:
    return ServiceHttpClient(
        name, "http://service.test", timeout=1.0, transport=httpx.MockTransport(handler)
    )


def respond(status_code: int, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return handler


class TestHttpMemberClient:
    def test_get_member(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": 1,
                    "name": "Alice",
                    "email": "alice@example.com",
                    "status": "ACTIVE",
                    "grade": "GOLD",
                },
            )

        member = HttpMemberClient(http(handler)).get_member(1)

        assert member.name == "Alice"
        assert member.status == "ACTIVE"
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/api/members/1"
        assert seen[0].headers["Accept"] == "application/json"

    def test_404_is_member_not_found(self):
        with pytest.raises(MemberNotFound):
            HttpMemberClient(http(respond(404))).get_member(9999)

    @pytest.mark.parametrize("status_code", [500, 502, 503, 401])
    def test_other_errors_are_unavailable(self, status_code):
        with pytest.raises(ExternalServiceUnavailable):
            HttpMemberClient(http(respond(status_code))).get_member(1)

    def test_timeout_is_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ExternalServiceUnavailable, match="timed out"):
            HttpMemberClient(http(handler)).get_member(1)

    def test_connection_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ExternalServiceUnavailable):
            HttpMemberClient(http(handler)).get_member(1)

    def test_unparsable_body_is_unavailable(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(ExternalServiceUnavailable):
            HttpMemberClient(http(handler)).get_member(1)

    def test_incomplete_body_is_unavailable(self):
        with pytest.raises(ExternalServiceUnavailable):
            HttpMemberClient(http(respond(200, {"id": 1}))).get_member(1)

    def test_forwards_correlation_id(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": 1, "name": "A", "status": "ACTIVE"})

        token = correlation_id_var.set("cid-123")
        try:
            HttpMemberClient(http(handler)).get_member(1)
        finally:
            correlation_id_var.reset(token)

        assert seen[0].headers["X-Request-ID"] == "cid-123"


class TestHttpProductClient:
    def test_get_product_camel_case(self):
        body = {"id": 3, "name": "Widget", "price": "12.50", "status": "AVAILABLE"}
        product = HttpProductClient(http(respond(200, body))).get_product(3)
        assert product.price == Decimal("12.50")

    def test_get_stock_reads_camel_case_fields(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "productId": 3,
                    "quantity": 10,
                    "reservedQuantity": 8,
                    "availableQuantity": 2,
                },
            )

        stock = HttpProductClient(http(handler)).get_product_stock(3)

        assert stock.available_quantity == 2
        assert seen[0].url.path == "/api/products/3/stock"

    def test_404_is_product_not_found(self):
        client = HttpProductClient(http(respond(404)))
        with pytest.raises(ProductNotFound):
            client.get_product(9999)
        with pytest.raises(ProductNotFound):
            client.get_product_stock(9999)


class TestHttpPaymentClient:
    def request(self) -> PaymentRequestDTO:
        return PaymentRequestDTO(
            order_id=1, amount=Decimal("199.98"), payment_method="CREDIT_CARD"
        )

    def test_create_payment_posts_camel_case_json(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                201,
                json={
                    "id": 5001,
                    "orderId": 1,
                    "amount": "199.98",
                    "status": "COMPLETED",
                    "transactionId": "TXN-1-ABCDEF12",
                },
            )

        payment = HttpPaymentClient(http(handler)).create_payment(self.request())

        assert payment.id == 5001
        assert payment.transaction_id == "TXN-1-ABCDEF12"
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/payments"
        assert json.loads(seen[0].content) == {
            "orderId": 1,
            "amount": "199.98",
            "paymentMethod": "CREDIT_CARD",
        }

    @pytest.mark.parametrize("status_code", [400, 422])
    def test_rejection_is_payment_failed(self, status_code):
        client = HttpPaymentClient(http(respond(status_code, {"message": "declined"})))
        with pytest.raises(PaymentFailed):
            client.create_payment(self.request())

    def test_server_error_is_unavailable(self):
        client = HttpPaymentClient(http(respond(500)))
        with pytest.raises(ExternalServiceUnavailable):
            client.create_payment(self.request())

    def test_get_missing_payment(self):
        with pytest.raises(PaymentNotFound):
            HttpPaymentClient(http(respond(404))).get_payment(9999)


class TestRegistryWithLiveClients:
    def test_live_clients_are_wrapped_with_retry(self):
        calls: list[str] = []

        def handler(request):
            calls.append(request.url.host)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json={"id": 1, "name": "A", "status": "ACTIVE"})

        clients = build_external_clients(
            mock_enabled=False,
            member_url="http://members.test",
            product_url="http://products.test",
            payment_url="http://payments.test",
            transport=httpx.MockTransport(handler),
            sleep=lambda _: None,
        )

        assert clients.member.get_member(1).name == "A"
        assert calls == ["members.test", "members.test"]
