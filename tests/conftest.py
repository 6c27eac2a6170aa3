import pytest

from rest_framework.test import APIClient

from modules.integrations.registry import get_external_clients


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _fresh_external_clients():
    """Rebuild the external clients (and their breakers) for every test."""
    get_external_clients.cache_clear()
    yield
    get_external_clients.cache_clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def create_order(api_client):
    """POST a valid order and return the parsed response body."""

    def _create(member_id=1, items=None, payment_method="CREDIT_CARD"):
        payload = {
            "member_id": member_id,
            "items": items or [{"product_id": 1, "quantity": 2}],
            "payment_method": payment_method,
        }
        response = api_client.post("/api/v1/orders/", payload, format="json")
        assert response.status_code == 201, response.json()
        return response.json()

    return _create
