"""
Exception types raised by the hardfetch client.

Every public call either returns a :class:`~hardfetch.http.client.response.Response`
or raises one of these. ``ValidationError`` and ``SerializationError`` are
raised before the transfer and are never retried; ``ClientError`` carries the
HTTP status (0 for network failures, 408 for client-side timeouts) and, when
the server answered, the response it sent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hardfetch.http.client.response import Response


NETWORK_ERROR_STATUS = 0
TIMEOUT_STATUS = 408


class HardFetchError(Exception):
    """Base class for all hardfetch errors."""


class ValidationError(HardFetchError, ValueError):
    """The target URL was rejected before any network activity."""


class SerializationError(HardFetchError):
    """The request body could not be converted to a transmittable form."""


class ClientError(HardFetchError):
    def __init__(
        self,
        message: str,
        status: int | None = None,
        response: Response | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response = response

    @property
    def is_timeout(self) -> bool:
        return self.status == TIMEOUT_STATUS and self.response is None

    @property
    def is_network_error(self) -> bool:
        return self.status == NETWORK_ERROR_STATUS

    def __repr__(self) -> str:
        return f"ClientError({str(self)!r}, status={self.status!r})"
