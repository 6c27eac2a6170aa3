"""Unit tests for retry and circuit breaking around the external clients."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from modules.integrations.dtos import MemberDTO
from modules.integrations.resilience import (
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
    ResilientCall,
    ResilientMemberClient,
    RetryPolicy,
)
from modules.orders.exceptions import ExternalServiceUnavailable, MemberNotFound

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def breaker(clock):
    return CircuitBreaker(
        "member-service",
        failure_threshold=3,
        failure_window=10.0,
        open_duration=30.0,
        clock=clock,
    )


def unavailable(*args, **kwargs):
    raise ExternalServiceUnavailable("down")


class TestCircuitBreaker:
    def test_starts_closed(self, breaker):
        assert breaker.state is CircuitState.CLOSED

    def test_opens_after_threshold_failures(self, breaker):
        for _ in range(3):
            with pytest.raises(ExternalServiceUnavailable):
                breaker.call(unavailable)
        assert breaker.state is CircuitState.OPEN

    def test_open_circuit_rejects_without_calling(self, breaker):
        for _ in range(3):
            breaker.record_failure()
        func = MagicMock()

        with pytest.raises(CircuitOpenError):
            breaker.call(func)
        func.assert_not_called()

    def test_open_rejection_is_unavailable_kind(self, breaker):
        for _ in range(3):
            breaker.record_failure()
        with pytest.raises(ExternalServiceUnavailable):
            breaker.call(MagicMock())

    def test_success_resets_consecutive_failures(self, breaker):
        breaker.record_failure()
        breaker.record_failure()
        breaker.call(lambda: "ok")
        breaker.record_failure()
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED

    def test_failures_outside_window_do_not_count(self, breaker, clock):
        breaker.record_failure()
        breaker.record_failure()
        clock.advance(11)
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED

    def test_half_open_after_open_duration(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(30)
        assert breaker.state is CircuitState.HALF_OPEN

    def test_half_open_allows_single_trial(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(30)
        assert breaker.allow_request() is True
        assert breaker.allow_request() is False

    def test_trial_success_closes(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(30)
        assert breaker.call(lambda: "ok") == "ok"
        assert breaker.state is CircuitState.CLOSED

    def test_trial_failure_reopens(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.advance(30)
        with pytest.raises(ExternalServiceUnavailable):
            breaker.call(unavailable)
        assert breaker.state is CircuitState.OPEN

    def test_not_found_counts_as_success(self, breaker):
        breaker.record_failure()
        breaker.record_failure()

        def missing():
            raise MemberNotFound("nope")

        with pytest.raises(MemberNotFound):
            breaker.call(missing)
        breaker.record_failure()
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED

    def test_threshold_must_be_positive(self):
        with pytest.raises(ValueError):
            CircuitBreaker("x", failure_threshold=0)


class TestRetryPolicy:
    def test_retries_unavailable_until_success(self):
        sleeps: list[float] = []
        func = MagicMock(
            side_effect=[
                ExternalServiceUnavailable("a"),
                ExternalServiceUnavailable("b"),
                "ok",
            ]
        )
        policy = RetryPolicy(
            attempts=3, wait_initial=0.5, wait_max=5, sleep=sleeps.append
        )

        assert policy.run(func) == "ok"
        assert func.call_count == 3
        assert len(sleeps) == 2
        assert sleeps[1] >= sleeps[0]

    def test_gives_up_after_attempts_and_reraises(self):
        func = MagicMock(side_effect=ExternalServiceUnavailable("down"))
        policy = RetryPolicy(attempts=3, sleep=lambda _: None)

        with pytest.raises(ExternalServiceUnavailable, match="down"):
            policy.run(func)
        assert func.call_count == 3

    def test_backoff_capped(self):
        sleeps: list[float] = []
        func = MagicMock(side_effect=ExternalServiceUnavailable("down"))
        policy = RetryPolicy(
            attempts=6, wait_initial=1, wait_max=4, sleep=sleeps.append
        )

        with pytest.raises(ExternalServiceUnavailable):
            policy.run(func)
        assert max(sleeps) <= 4

    def test_other_errors_not_retried(self):
        func = MagicMock(side_effect=MemberNotFound("nope"))
        policy = RetryPolicy(attempts=3, sleep=lambda _: None)

        with pytest.raises(MemberNotFound):
            policy.run(func)
        assert func.call_count == 1

    def test_open_circuit_not_retried(self):
        func = MagicMock(side_effect=CircuitOpenError("open"))
        policy = RetryPolicy(attempts=3, sleep=lambda _: None)

        with pytest.raises(CircuitOpenError):
            policy.run(func)
        assert func.call_count == 1


class TestResilientMemberClient:
    def make_client(self, delegate, clock, attempts=3):
        breaker = CircuitBreaker(
            "member-service", failure_threshold=3, failure_window=60, clock=clock
        )
        policy = RetryPolicy(attempts=attempts, sleep=lambda _: None)
        return ResilientMemberClient(delegate, ResilientCall(breaker, policy)), breaker

    def test_passes_through_success(self, clock):
        delegate = MagicMock()
        delegate.get_member.return_value = MemberDTO(id=1, name="A", status="ACTIVE")
        client, _ = self.make_client(delegate, clock)

        assert client.get_member(1).name == "A"
        delegate.get_member.assert_called_once_with(1)

    def test_transient_failure_recovered_by_retry(self, clock):
        delegate = MagicMock()
        delegate.get_member.side_effect = [
            ExternalServiceUnavailable("blip"),
            MemberDTO(id=1, name="A", status="ACTIVE"),
        ]
        client, breaker = self.make_client(delegate, clock)

        assert client.get_member(1).status == "ACTIVE"
        assert breaker.state is CircuitState.CLOSED

    def test_each_attempt_counts_toward_breaker(self, clock):
        delegate = MagicMock()
        delegate.get_member.side_effect = ExternalServiceUnavailable("down")
        client, breaker = self.make_client(delegate, clock)

        with pytest.raises(ExternalServiceUnavailable):
            client.get_member(1)
        assert delegate.get_member.call_count == 3
        assert breaker.state is CircuitState.OPEN

        with pytest.raises(CircuitOpenError):
            client.get_member(1)
        assert delegate.get_member.call_count == 3

    def test_not_found_surfaces_immediately(self, clock):
        delegate = MagicMock()
        delegate.get_member.side_effect = MemberNotFound("nope")
        client, _ = self.make_client(delegate, clock)

        with pytest.raises(MemberNotFound):
            client.get_member(9999)
        assert delegate.get_member.call_count == 1
