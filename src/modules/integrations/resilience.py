"""Retry and circuit breaking around the external service clients.

Each client is wrapped in a ``Resilient*Client`` that runs every call
through a bounded ``tenacity`` retry which in turn drives a per-service
``CircuitBreaker``:

    retry( breaker( client.method(...) ) )

Only ``ExternalServiceUnavailable`` is retried and only it counts as a
breaker failure.  Not-found and payment-rejected answers are clean replies
from a healthy service and count as successes.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from enum import Enum
from typing import Callable, Deque, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

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
from modules.orders.exceptions import ExternalServiceUnavailable

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitOpenError(ExternalServiceUnavailable):
    """Raised without calling the service while the breaker is open."""


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------


class CircuitBreaker:
    """Three-state breaker (CLOSED -> OPEN -> HALF_OPEN -> CLOSED).

    Opens after ``failure_threshold`` consecutive failures that all fall
    within ``failure_window`` seconds.  While open every call is rejected
    for ``open_duration`` seconds, after which a single trial call is let
    through: success closes the circuit, failure re-opens it.

    ``clock`` is injectable so tests can move time without sleeping.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        failure_window: float = 60.0,
        open_duration: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1.")
        self.name = name
        self._failure_threshold = failure_threshold
        self._failure_window = failure_window
        self._open_duration = open_duration
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures: Deque[float] = deque()
        self._opened_at = 0.0
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._maybe_half_open()
            return self._state

    def _maybe_half_open(self) -> None:
        if (
            self._state is CircuitState.OPEN
            and self._clock() - self._opened_at >= self._open_duration
        ):
            self._state = CircuitState.HALF_OPEN
            self._trial_in_flight = False
            logger.info("circuit.half_open", service=self.name)

    def allow_request(self) -> bool:
        with self._lock:
            self._maybe_half_open()
            if self._state is CircuitState.CLOSED:
                return True
            if self._state is CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                logger.info("circuit.closed", service=self.name)
            self._state = CircuitState.CLOSED
            self._failures.clear()
            self._trial_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            now = self._clock()
            if self._state is CircuitState.HALF_OPEN:
                self._open(now)
                return

            self._failures.append(now)
            while self._failures and now - self._failures[0] > self._failure_window:
                self._failures.popleft()
            if len(self._failures) >= self._failure_threshold:
                self._open(now)

    def _open(self, now: float) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = now
        self._failures.clear()
        self._trial_in_flight = False
        logger.warning(
            "circuit.opened", service=self.name, open_duration=self._open_duration
        )

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        if not self.allow_request():
            raise CircuitOpenError(f"{self.name} circuit is open.")
        try:
            result = func(*args, **kwargs)
        except ExternalServiceUnavailable:
            self.record_failure()
            raise
        except Exception:
            # Not-found and rejections come from a reachable service.
            self.record_success()
            raise
        self.record_success()
        return result


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class RetryPolicy:
    """Bounded exponential backoff, retrying only unavailability.

    Rejections from an open circuit are not retried.
    """

    def __init__(
        self,
        attempts: int = 3,
        wait_initial: float = 0.5,
        wait_max: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.attempts = attempts
        self.wait_initial = wait_initial
        self.wait_max = wait_max
        self._sleep = sleep

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "external.retrying",
            attempt=retry_state.attempt_number,
            error=str(exc),
        )

    def run(self, func: Callable[..., T], *args, **kwargs) -> T:
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(
                multiplier=self.wait_initial, min=self.wait_initial, max=self.wait_max
            ),
            retry=(
                retry_if_exception_type(ExternalServiceUnavailable)
                & retry_if_not_exception_type(CircuitOpenError)
            ),
            sleep=self._sleep,
            before_sleep=self._before_sleep,
            reraise=True,
        )
        return retrying(func, *args, **kwargs)


class ResilientCall:
    """Composes a retry policy and a breaker for one service."""

    def __init__(self, breaker: CircuitBreaker, retry_policy: RetryPolicy) -> None:
        self.breaker = breaker
        self.retry_policy = retry_policy

    def __call__(self, func: Callable[..., T], *args, **kwargs) -> T:
        return self.retry_policy.run(self.breaker.call, func, *args, **kwargs)


# ---------------------------------------------------------------------------
# Wrapped clients
# ---------------------------------------------------------------------------


class ResilientMemberClient(IMemberClient):
    def __init__(self, delegate: IMemberClient, resilience: ResilientCall) -> None:
        self.delegate = delegate
        self.resilience = resilience

    def get_member(self, member_id: int) -> MemberDTO:
        return self.resilience(self.delegate.get_member, member_id)


class ResilientProductClient(IProductClient):
    def __init__(self, delegate: IProductClient, resilience: ResilientCall) -> None:
        self.delegate = delegate
        self.resilience = resilience

    def get_product(self, product_id: int) -> ProductDTO:
        return self.resilience(self.delegate.get_product, product_id)

    def get_product_stock(self, product_id: int) -> ProductStockDTO:
        return self.resilience(self.delegate.get_product_stock, product_id)


class ResilientPaymentClient(IPaymentClient):
    def __init__(self, delegate: IPaymentClient, resilience: ResilientCall) -> None:
        self.delegate = delegate
        self.resilience = resilience

    def create_payment(self, request: PaymentRequestDTO) -> PaymentDTO:
        return self.resilience(self.delegate.create_payment, request)

    def get_payment(self, payment_id: int) -> PaymentDTO:
        return self.resilience(self.delegate.get_payment, payment_id)
