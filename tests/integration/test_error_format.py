"""Integration tests for the uniform error body."""

import pytest

from modules.orders.services import OrderService

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def assert_error_body(data):
    assert set(data) == {"code", "message", "timestamp", "errors"}
    assert isinstance(data["errors"], list)
    assert data["timestamp"]


class TestStandardizedErrors:
    def test_validation_error_lists_fields(self, api_client):
        payload = {
            "member_id": 1,
            "items": [{"product_id": 1, "quantity": 0}],
            "payment_method": "CREDIT_CARD",
        }
        response = api_client.post(URL, payload, format="json")

        assert response.status_code == 400
        data = response.json()
        assert_error_body(data)
        assert data["code"] == "VALIDATION_ERROR"
        assert data["errors"][0]["field"] == "items[0].quantity"
        assert data["errors"][0]["message"]

    def test_malformed_json(self, api_client):
        response = api_client.post(URL, data="{", content_type="application/json")

        assert response.status_code == 400
        data = response.json()
        assert_error_body(data)
        assert data["code"] == "PARSE_ERROR"

    def test_domain_not_found(self, api_client):
        response = api_client.get(f"{URL}424242/")

        assert response.status_code == 404
        data = response.json()
        assert_error_body(data)
        assert data["errors"] == []

    def test_method_not_allowed(self, api_client):
        response = api_client.delete(f"{URL}1/")

        assert response.status_code == 405
        data = response.json()
        assert_error_body(data)
        assert data["code"] == "METHOD_NOT_ALLOWED"

    def test_unexpected_error_is_500(self, api_client, monkeypatch):
        def explode(self, *args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(OrderService, "list_orders", explode)

        response = api_client.get(URL)

        assert response.status_code == 500
        data = response.json()
        assert_error_body(data)
        assert data["code"] == "INTERNAL_SERVER_ERROR"
        assert "boom" not in data["message"]
