import asyncio
import json
from types import SimpleNamespace


class FakeResponse:
    """
    Stand-in for `aiohttp.ClientResponse` used as an async context manager.

    `delay` simulates a slow transfer: entering the context sleeps first.
    """
    def __init__(
        self,
        status: int = 200,
        body: bytes = b"",
        headers: dict | None = None,
        reason: str = "OK",
        delay: float = 0.0,
        read_error: BaseException | None = None,
    ):
        self.status = status
        self.reason = reason
        self.headers = headers or {}
        self._body = body
        self._delay = delay
        self._read_error = read_error

    async def json(self, content_type=None):
        if self._read_error is not None:
            raise self._read_error
        text = self._body.decode("utf-8")
        if not text:
            return None
        return json.loads(text)

    async def text(self):
        if self._read_error is not None:
            raise self._read_error
        return self._body.decode("utf-8")

    async def __aenter__(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        return self

    async def __aexit__(self, *_):
        pass


class _Raising:
    def __init__(self, exc: BaseException):
        self._exc = exc

    async def __aenter__(self):
        raise self._exc

    async def __aexit__(self, *_):
        pass


class FakeSession:
    """
    Each .request() pops the next FakeResponse, or raises it if it is an
    exception. Calls are recorded in `.calls`.
    """
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append(
            SimpleNamespace(
                method=method,
                url=url,
                headers=dict(kwargs.get("headers") or {}),
                data=kwargs.get("data"),
            )
        )
        if not self._responses:
            raise RuntimeError("No more fake responses")
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            return _Raising(item)
        return item

    async def close(self):
        self.closed = True


def json_response(status: int, payload, reason: str = "OK", **kwargs) -> FakeResponse:
    return FakeResponse(
        status,
        json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json; charset=utf-8"},
        reason=reason,
        **kwargs,
    )
