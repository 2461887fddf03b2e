import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiohttp

from hardfetch.http.client.executor import RequestExecutor
from hardfetch.http.client.request import RequestSpec
from hardfetch.http.client.response import Response
from hardfetch.http.policy.retry import RetryController, RetryPolicy
from hardfetch.http.policy.validation import DEFAULT_VALIDATOR, UrlValidator
from hardfetch.http.stats import ClientStats, build_trace_config
from hardfetch.util.logging import get_logger

log = get_logger(__name__)


class HttpClient:
    """
    Hardened outbound HTTP client.

    Every call validates the URL, then runs up to ``retries + 1`` attempts with
    exponential backoff between them. The client keeps no per-call state, so
    one instance can serve concurrent callers.

    Use it as an async context manager to share one aiohttp session across
    calls; outside ``async with`` each call opens and closes its own session.
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        retry_policy: RetryPolicy | None = None,
        validator: UrlValidator | None = None,
        executor: RequestExecutor | None = None,
        user_agent: str | None = None,
        validate_urls: bool = True,
    ):
        self._session = session
        self._owns_session = False
        self.validator = validator or DEFAULT_VALIDATOR
        self.validate_urls = validate_urls
        self.executor = executor or RequestExecutor(user_agent=user_agent)
        self.retry = RetryController(retry_policy or RetryPolicy())
        self._stats = ClientStats()

    @property
    def stats(self) -> ClientStats:
        """
        Transfer counters for sessions this client builds. An injected
        ``session`` carries its own trace configs and is not counted here.
        """
        return self._stats

    def build_session(self) -> aiohttp.ClientSession:
        trace_config = build_trace_config(self._stats)
        # Per-attempt deadlines are enforced by the executor
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=None),
            trace_configs=[trace_config],
        )

    async def __aenter__(self):
        if self._session is None:
            self._session = self.build_session()
            self._owns_session = True
        return self

    async def __aexit__(self, *_):
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._owns_session = False

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
        else:
            # Fallback: ephemeral session for one-off calls
            async with self.build_session() as session:
                yield session

    async def execute(self, spec: RequestSpec) -> Response:
        """
        Issue ``spec`` and return the successful Response.

        Raises ValidationError before any I/O when the URL is rejected,
        SerializationError when the body cannot be encoded, and ClientError
        (status 0, 408 or the HTTP status) once retries are exhausted or the
        failure is not retryable.
        """
        if self.validate_urls:
            self.validator.validate(spec.url)

        started_at = time.monotonic()
        ctx = {"method": spec.method, "url": spec.url}

        async with self._session_scope() as session:
            async def attempt(index: int) -> Response:
                log.debug("attempt", extra={**ctx, "attempt": index})
                return await self.executor.execute(session, spec, started_at)

            return await self.retry.run(
                attempt,
                max_retries=spec.retries,
                base_delay=spec.retry_delay,
                ctx=ctx,
            )

    async def request(self, method: str, url: str, **options: Any) -> Response:
        return await self.execute(RequestSpec(url=url, method=method, **options))

    async def get(self, url: str, **options: Any) -> Response:
        return await self.request("GET", url, **options)

    async def post(self, url: str, body: Any = None, **options: Any) -> Response:
        return await self.request("POST", url, body=body, **options)

    async def put(self, url: str, body: Any = None, **options: Any) -> Response:
        return await self.request("PUT", url, body=body, **options)

    async def delete(self, url: str, **options: Any) -> Response:
        return await self.request("DELETE", url, **options)

    async def patch(self, url: str, body: Any = None, **options: Any) -> Response:
        return await self.request("PATCH", url, body=body, **options)
