import logging

import pytest

from hardfetch.errors import ClientError, SerializationError, ValidationError
from hardfetch.http.policy.backoff import exponential_backoff
from hardfetch.http.policy.retry import (
    Attempt,
    Failed,
    RetryController,
    RetryPolicy,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeExecutor:
    """
    Plays back a script of outcomes: exceptions are raised, anything else is
    returned.
    """
    def __init__(self, outcomes):
        self._outcomes = list(outcomes)
        self.attempts = []

    async def __call__(self, index):
        self.attempts.append(index)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def controller(sleeps):
    async def _fake_sleep(delay):
        sleeps.append(delay)

    return RetryController(RetryPolicy(), sleep=_fake_sleep)


def http_error(status):
    return ClientError(f"HTTP {status}", status=status)


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", [400, 401, 403, 404, 422, 499])
def test_client_errors_are_not_retried(status):
    assert not RetryPolicy().is_retryable(http_error(status))


@pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504, 0, 302])
def test_retryable_statuses(status):
    assert RetryPolicy().is_retryable(http_error(status))


def test_retry_on_exception_without_status():
    assert RetryPolicy().is_retryable(RuntimeError())


def test_terminal_errors_are_never_retried():
    policy = RetryPolicy()
    assert not policy.is_retryable(ValidationError("bad url"))
    assert not policy.is_retryable(SerializationError("bad body"))


def test_retryable_client_statuses_are_configurable():
    policy = RetryPolicy(retryable_client_statuses={409})
    assert policy.is_retryable(http_error(409))
    assert not policy.is_retryable(http_error(429))


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------

def test_backoff_doubles():
    policy = RetryPolicy()
    assert [policy.get_delay(i, 1000) for i in range(4)] == [1000, 2000, 4000, 8000]


def test_backoff_cap():
    assert exponential_backoff(10, base=100, cap=5000) == 5000


def test_backoff_jitter_stays_in_band():
    for _ in range(50):
        delay = exponential_backoff(2, base=100, jitter=True)
        assert 280 <= delay <= 520


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

def test_transition_to_next_attempt():
    ctl = RetryController()
    assert ctl.transition(Attempt(0), http_error(500), max_retries=3) == Attempt(1)


def test_transition_fails_on_last_attempt():
    err = http_error(500)
    assert RetryController().transition(Attempt(3), err, max_retries=3) == Failed(err)


def test_transition_fails_on_non_retryable():
    err = http_error(401)
    assert RetryController().transition(Attempt(0), err, max_retries=3) == Failed(err)


@pytest.mark.asyncio
async def test_exhausts_budget_with_exponential_delays(controller, sleeps):
    errors = [http_error(500) for _ in range(4)]
    executor = FakeExecutor(errors)

    with pytest.raises(ClientError) as info:
        await controller.run(executor, max_retries=3, base_delay=1000)

    assert executor.attempts == [0, 1, 2, 3]
    assert sleeps == [1.0, 2.0, 4.0]
    assert info.value is errors[-1]


@pytest.mark.asyncio
async def test_non_retryable_stops_immediately(controller, sleeps):
    executor = FakeExecutor([http_error(401)])

    with pytest.raises(ClientError) as info:
        await controller.run(executor, max_retries=3, base_delay=1000)

    assert executor.attempts == [0]
    assert sleeps == []
    assert info.value.status == 401


@pytest.mark.asyncio
async def test_rate_limited_then_success(controller, sleeps):
    executor = FakeExecutor([http_error(429), "ok"])

    result = await controller.run(executor, max_retries=3, base_delay=500)

    assert result == "ok"
    assert executor.attempts == [0, 1]
    assert sleeps == [0.5]


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt(controller, sleeps):
    executor = FakeExecutor([http_error(503)])

    with pytest.raises(ClientError):
        await controller.run(executor, max_retries=0, base_delay=1000)

    assert executor.attempts == [0]
    assert sleeps == []


@pytest.mark.asyncio
async def test_serialization_error_is_not_retried(controller, sleeps):
    executor = FakeExecutor([SerializationError("Failed to serialize request body")])

    with pytest.raises(SerializationError):
        await controller.run(executor, max_retries=3, base_delay=1000)

    assert executor.attempts == [0]


@pytest.mark.asyncio
async def test_unclassified_exception_is_retried_then_raised(controller, sleeps):
    boom = [RuntimeError("boom") for _ in range(2)]
    executor = FakeExecutor(boom)

    with pytest.raises(RuntimeError) as info:
        await controller.run(executor, max_retries=1, base_delay=10)

    assert info.value is boom[-1]
    assert executor.attempts == [0, 1]
    assert sleeps == [0.01]


@pytest.mark.asyncio
async def test_zero_delay_does_not_sleep(controller, sleeps):
    executor = FakeExecutor([http_error(500), "ok"])

    assert await controller.run(executor, max_retries=1, base_delay=0) == "ok"
    assert sleeps == []


@pytest.mark.asyncio
async def test_retry_is_logged_after_the_backoff(caplog):
    records_at_sleep = []

    async def _sleep(delay):
        records_at_sleep.append(len(caplog.records))

    ctl = RetryController(sleep=_sleep)

    with caplog.at_level(logging.WARNING, logger="hardfetch.http.policy.retry"):
        result = await ctl.run(
            FakeExecutor([http_error(503), "ok"]),
            max_retries=1,
            base_delay=250,
            ctx={"url": "https://example.com"},
        )

    assert result == "ok"
    assert records_at_sleep == [0]
    [record] = [r for r in caplog.records if r.name == "hardfetch.http.policy.retry"]
    assert record.attempt == 1
    assert record.delay_ms == 250
    assert record.status == 503
    assert record.url == "https://example.com"
