"""Builds the member, product and payment clients once per process.

``EXTERNAL_MOCK_ENABLED`` picks the fixture-driven clients or the live
HTTP clients.  Either variant is wrapped in retry and circuit breaking.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

import httpx
import structlog
from django.conf import settings

from modules.integrations.http import (
    HttpMemberClient,
    HttpPaymentClient,
    HttpProductClient,
    ServiceHttpClient,
)
from modules.integrations.interfaces import (
    IMemberClient,
    IPaymentClient,
    IProductClient,
)
from modules.integrations.mock import (
    MockMemberClient,
    MockPaymentClient,
    MockProductClient,
    PaymentIdCounter,
)
from modules.integrations.resilience import (
    CircuitBreaker,
    ResilientCall,
    ResilientMemberClient,
    ResilientPaymentClient,
    ResilientProductClient,
    RetryPolicy,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExternalClients:
    member: IMemberClient
    product: IProductClient
    payment: IPaymentClient


@dataclass(frozen=True)
class ResilienceSettings:
    retry_attempts: int = 3
    retry_wait_initial: float = 0.5
    retry_wait_max: float = 5.0
    failure_threshold: int = 5
    failure_window: float = 60.0
    open_duration: float = 30.0


def _resilience_for(
    service_name: str,
    options: ResilienceSettings,
    sleep: Optional[Callable[[float], None]] = None,
) -> ResilientCall:
    breaker = CircuitBreaker(
        service_name,
        failure_threshold=options.failure_threshold,
        failure_window=options.failure_window,
        open_duration=options.open_duration,
    )
    retry_kwargs = {} if sleep is None else {"sleep": sleep}
    policy = RetryPolicy(
        attempts=options.retry_attempts,
        wait_initial=options.retry_wait_initial,
        wait_max=options.retry_wait_max,
        **retry_kwargs,
    )
    return ResilientCall(breaker, policy)


def build_external_clients(
    mock_enabled: bool = True,
    member_url: str = "",
    product_url: str = "",
    payment_url: str = "",
    timeout: float = 5.0,
    options: ResilienceSettings = ResilienceSettings(),
    transport: Optional[httpx.BaseTransport] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> ExternalClients:
    if mock_enabled:
        member: IMemberClient = MockMemberClient()
        product: IProductClient = MockProductClient()
        payment: IPaymentClient = MockPaymentClient(PaymentIdCounter())
    else:
        member = HttpMemberClient(
            ServiceHttpClient("member-service", member_url, timeout, transport)
        )
        product = HttpProductClient(
            ServiceHttpClient("product-service", product_url, timeout, transport)
        )
        payment = HttpPaymentClient(
            ServiceHttpClient("payment-service", payment_url, timeout, transport)
        )

    logger.info("external_clients.built", mock_enabled=mock_enabled)
    return ExternalClients(
        member=ResilientMemberClient(
            member, _resilience_for("member-service", options, sleep)
        ),
        product=ResilientProductClient(
            product, _resilience_for("product-service", options, sleep)
        ),
        payment=ResilientPaymentClient(
            payment, _resilience_for("payment-service", options, sleep)
        ),
    )


@lru_cache(maxsize=1)
def get_external_clients() -> ExternalClients:
    return build_external_clients(
        mock_enabled=settings.EXTERNAL_MOCK_ENABLED,
        member_url=settings.MEMBER_SERVICE_URL,
        product_url=settings.PRODUCT_SERVICE_URL,
        payment_url=settings.PAYMENT_SERVICE_URL,
        timeout=settings.EXTERNAL_HTTP_TIMEOUT,
        options=ResilienceSettings(
            retry_attempts=settings.EXTERNAL_RETRY_ATTEMPTS,
            retry_wait_initial=settings.EXTERNAL_RETRY_WAIT_INITIAL,
            retry_wait_max=settings.EXTERNAL_RETRY_WAIT_MAX,
            failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
            failure_window=settings.CIRCUIT_FAILURE_WINDOW,
            open_duration=settings.CIRCUIT_OPEN_DURATION,
        ),
    )
