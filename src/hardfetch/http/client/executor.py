"""
Single-attempt request execution over an aiohttp session.
"""

import asyncio
import json
import time
from typing import Any

import aiohttp

from hardfetch.errors import (
    NETWORK_ERROR_STATUS,
    TIMEOUT_STATUS,
    ClientError,
    SerializationError,
)
from hardfetch.http.client.auth import apply_auth
from hardfetch.http.client.headers import JSON_CONTENT_TYPE, find_header, set_header
from hardfetch.http.client.request import RequestSpec
from hardfetch.http.client.response import Response
from hardfetch.settings import CLIENT_SETTINGS
from hardfetch.util.logging import get_logger

log = get_logger(__name__)


def build_headers(spec: RequestSpec, user_agent: str | None = None) -> dict[str, str]:
    """
    Assemble the outgoing header set for ``spec``.

    Caller headers are copied first, then authentication is injected (it
    overwrites a caller ``Authorization``), then ``Content-Type`` defaults to
    JSON when there is a body, and finally ``User-Agent`` is forced.
    """
    headers = dict(spec.headers)
    apply_auth(headers, spec.authentication)

    if spec.body is not None and find_header(headers, "Content-Type") is None:
        headers["Content-Type"] = JSON_CONTENT_TYPE

    set_header(headers, "User-Agent", user_agent or CLIENT_SETTINGS.user_agent)
    return headers


def serialize_body(spec: RequestSpec) -> str | bytes | None:
    if spec.body is None or spec.method == "GET":
        return None
    if isinstance(spec.body, (str, bytes)):
        return spec.body
    try:
        return json.dumps(spec.body)
    except (TypeError, ValueError) as exc:
        raise SerializationError("Failed to serialize request body") from exc


async def decode_body(resp) -> Any:
    """JSON when the content type says so, text otherwise, None if decoding fails."""
    content_type = resp.headers.get("Content-Type", "")
    try:
        if JSON_CONTENT_TYPE in content_type:
            return await resp.json(content_type=None)
        return await resp.text()
    except TimeoutError:
        raise
    except (ValueError, UnicodeDecodeError, aiohttp.ClientError):
        log.debug("response body could not be decoded", extra={"content_type": content_type})
        return None


class RequestExecutor:
    """Performs exactly one network attempt for a RequestSpec."""

    def __init__(self, user_agent: str | None = None):
        self.user_agent = user_agent or CLIENT_SETTINGS.user_agent

    async def execute(
        self,
        session: aiohttp.ClientSession,
        spec: RequestSpec,
        started_at: float,
    ) -> Response:
        """
        ``started_at`` is the ``time.monotonic()`` reading taken before the
        first attempt; the response's elapsed time is measured from it.
        """
        headers = build_headers(spec, self.user_agent)
        data = serialize_body(spec)

        try:
            # Scoped per attempt: the deadline is cancelled on every exit path
            async with asyncio.timeout(spec.timeout / 1000.0):
                async with session.request(
                    spec.method,
                    spec.url,
                    headers=headers,
                    data=data,
                ) as resp:
                    elapsed_ms = (time.monotonic() - started_at) * 1000.0
                    response = Response(
                        status=resp.status,
                        status_text=resp.reason or "",
                        headers={k: v for k, v in resp.headers.items()},
                        data=await decode_body(resp),
                        elapsed_ms=elapsed_ms,
                    )
        except TimeoutError as exc:
            raise ClientError(
                f"Request timeout after {spec.timeout}ms", status=TIMEOUT_STATUS
            ) from exc
        except aiohttp.ClientConnectionError as exc:
            raise ClientError(
                "Network error: Unable to reach the server", status=NETWORK_ERROR_STATUS
            ) from exc

        log.debug(
            "response",
            extra={"method": spec.method, "url": spec.url, "status": response.status},
        )

        if not response.ok:
            raise ClientError(
                f"HTTP {response.status}: {response.status_text}",
                status=response.status,
                response=response,
            )
        return response
