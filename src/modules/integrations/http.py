"""Live HTTP clients for the member, product and payment services.

Built on ``httpx.Client``.  Status codes and transport errors are
classified into the domain failure kinds:

- 404 -> the service's not-found kind;
- 400 / 422 on payment creation -> ``PaymentFailed``;
- any other non-2xx, timeouts, connection errors and unparsable bodies
  -> ``ExternalServiceUnavailable``.

The current request's correlation id is forwarded as ``X-Request-ID``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from modules.core.middleware import REQUEST_ID_HEADER, correlation_id_var
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

M = TypeVar("M", bound=BaseModel)

# Hook that lets callers classify a non-2xx response before the default
# "unavailable" fallback.  Returning ``None`` defers to the default.
ErrorMapper = Callable[[httpx.Response], Optional[Exception]]


class ServiceHttpClient:
    """Thin JSON-over-HTTP wrapper shared by the service clients."""

    def __init__(
        self,
        service_name: str,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.service_name = service_name
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def request(
        self,
        method: str,
        path: str,
        model: Type[M],
        error_mapper: ErrorMapper,
        json: Optional[Dict[str, Any]] = None,
    ) -> M:
        log = logger.bind(service=self.service_name, method=method, path=path)
        headers = {}
        correlation_id = correlation_id_var.get()
        if correlation_id:
            headers[REQUEST_ID_HEADER] = correlation_id

        try:
            response = self._client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            log.error("external.timeout", error=str(exc))
            raise ExternalServiceUnavailable(
                f"{self.service_name} timed out: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            log.error("external.transport_error", error=str(exc))
            raise ExternalServiceUnavailable(
                f"{self.service_name} call failed: {exc}"
            ) from exc

        if response.is_success:
            try:
                return model.model_validate(response.json())
            except (ValueError, ValidationError) as exc:
                log.error("external.invalid_body", status_code=response.status_code)
                raise ExternalServiceUnavailable(
                    f"{self.service_name} returned an invalid response body."
                ) from exc

        mapped = error_mapper(response)
        if mapped is not None:
            log.warning("external.rejected", status_code=response.status_code)
            raise mapped

        log.error(
            "external.error_status",
            status_code=response.status_code,
            body=response.text[:500],
        )
        raise ExternalServiceUnavailable(
            f"{self.service_name} error: status={response.status_code}"
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class HttpMemberClient(IMemberClient):
    def __init__(self, http: ServiceHttpClient) -> None:
        self._http = http

    def get_member(self, member_id: int) -> MemberDTO:
        def not_found(response: httpx.Response) -> Optional[Exception]:
            if response.status_code == 404:
                return MemberNotFound(f"Member {member_id} not found.")
            return None

        return self._http.request(
            "GET", f"/api/members/{member_id}", MemberDTO, not_found
        )


class HttpProductClient(IProductClient):
    def __init__(self, http: ServiceHttpClient) -> None:
        self._http = http

    def _not_found(self, product_id: int) -> ErrorMapper:
        def mapper(response: httpx.Response) -> Optional[Exception]:
            if response.status_code == 404:
                return ProductNotFound(f"Product {product_id} not found.")
            return None

        return mapper

    def get_product(self, product_id: int) -> ProductDTO:
        return self._http.request(
            "GET",
            f"/api/products/{product_id}",
            ProductDTO,
            self._not_found(product_id),
        )

    def get_product_stock(self, product_id: int) -> ProductStockDTO:
        return self._http.request(
            "GET",
            f"/api/products/{product_id}/stock",
            ProductStockDTO,
            self._not_found(product_id),
        )


class HttpPaymentClient(IPaymentClient):
    REJECTED_STATUSES = frozenset({400, 422})

    def __init__(self, http: ServiceHttpClient) -> None:
        self._http = http

    def create_payment(self, request: PaymentRequestDTO) -> PaymentDTO:
        def rejected(response: httpx.Response) -> Optional[Exception]:
            if response.status_code in self.REJECTED_STATUSES:
                return PaymentFailed(
                    f"Payment request rejected: status={response.status_code}"
                )
            return None

        return self._http.request(
            "POST",
            "/api/payments",
            PaymentDTO,
            rejected,
            json=request.model_dump(mode="json", by_alias=True),
        )

    def get_payment(self, payment_id: int) -> PaymentDTO:
        def not_found(response: httpx.Response) -> Optional[Exception]:
            if response.status_code == 404:
                return PaymentNotFound(f"Payment {payment_id} not found.")
            return None

        return self._http.request(
            "GET", f"/api/payments/{payment_id}", PaymentDTO, not_found
        )
