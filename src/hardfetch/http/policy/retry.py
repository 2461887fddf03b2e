"""
Retry eligibility, backoff and the attempt state machine.

A logical request moves through ``Attempt(0) -> ... -> Attempt(n)`` and ends
in either ``Success`` or ``Failed``. ``RetryController.transition`` is the
pure part (which state follows a failure); ``RetryController.run`` performs
the attempts and sleeps between them.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from hardfetch.errors import ClientError, SerializationError, ValidationError
from hardfetch.http.policy.backoff import exponential_backoff
from hardfetch.settings import RETRY_SETTINGS
from hardfetch.util.logging import get_logger

log = get_logger(__name__)

# Raised before any transfer
TERMINAL_ERRORS = (ValidationError, SerializationError)


class RetryPolicy:
    def __init__(
        self,
        retryable_client_statuses: set[int] | None = None,
        max_delay: float | None = RETRY_SETTINGS.max_delay,
        jitter: bool = RETRY_SETTINGS.jitter,
    ):
        if retryable_client_statuses is None:
            retryable_client_statuses = RETRY_SETTINGS.retryable_client_statuses
        self.retryable_client_statuses = set(retryable_client_statuses)
        self.max_delay = max_delay
        self.jitter = jitter

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, TERMINAL_ERRORS):
            return False

        status = getattr(error, "status", None)
        if status is not None and 400 <= status < 500:
            return status in self.retryable_client_statuses

        # 5xx, network failures (0), odd sub-400 errors and unclassified
        # exceptions all get another go.
        return True

    def get_delay(self, attempt: int, base_delay: float) -> float:
        """Delay in milliseconds before the attempt following ``attempt``."""
        return exponential_backoff(
            attempt, base=base_delay, cap=self.max_delay, jitter=self.jitter
        )


@dataclass(frozen=True)
class Attempt:
    index: int


@dataclass(frozen=True)
class Success:
    response: Any


@dataclass(frozen=True)
class Failed:
    error: BaseException | None


class RetryController:
    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        self.policy = policy or RetryPolicy()
        # Resolved at call time so tests can patch asyncio.sleep
        self._sleep = sleep

    def transition(
        self, state: Attempt, error: BaseException, max_retries: int
    ) -> Attempt | Failed:
        if not self.policy.is_retryable(error) or state.index >= max_retries:
            return Failed(error)
        return Attempt(state.index + 1)

    async def run(
        self,
        attempt_fn: Callable[[int], Awaitable[Any]],
        max_retries: int,
        base_delay: float,
        *,
        ctx: dict | None = None,
    ) -> Any:
        """
        Call ``attempt_fn(i)`` until it returns, a failure is not retryable,
        or ``max_retries + 1`` attempts have been made. ``base_delay`` is in
        milliseconds.
        """
        ctx = ctx or {}
        state: Attempt | Success | Failed = Attempt(0)

        while isinstance(state, Attempt):
            try:
                response = await attempt_fn(state.index)
            except TERMINAL_ERRORS:
                raise
            except Exception as exc:
                next_state = self.transition(state, exc, max_retries)
                if isinstance(next_state, Attempt):
                    delay = self.policy.get_delay(state.index, base_delay)
                    await self._do_sleep(delay / 1000.0)
                    log.warning(
                        "attempt failed, retrying",
                        extra={
                            **ctx,
                            "attempt": state.index + 1,
                            "delay_ms": delay,
                            "status": getattr(exc, "status", None),
                            "error": exc,
                        },
                    )
                state = next_state
            else:
                state = Success(response)

        if isinstance(state, Success):
            return state.response

        if state.error is not None:
            raise state.error
        raise ClientError("HTTP request failed after all retries")

    async def _do_sleep(self, seconds: float):
        sleep = self._sleep or asyncio.sleep
        if seconds > 0:
            await sleep(seconds)
