from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from hardfetch.http.client.auth import Authentication, auth_from_dict
from hardfetch.settings import CLIENT_SETTINGS

METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


@dataclass(frozen=True)
class RequestSpec:
    """
    Attempt-independent description of one logical request.

    ``timeout`` and ``retry_delay`` are in milliseconds. The client copies
    ``headers`` before touching them; a spec is never mutated.
    """
    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    timeout: int = CLIENT_SETTINGS.timeout
    retries: int = CLIENT_SETTINGS.retries
    retry_delay: int = CLIENT_SETTINGS.retry_delay
    authentication: Authentication | None = None

    def __post_init__(self):
        method = str(self.method).upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", dict(self.headers or {}))

        if isinstance(self.authentication, Mapping):
            object.__setattr__(
                self, "authentication", auth_from_dict(self.authentication)
            )

        if self.timeout is None or self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout!r}")
        if self.retries is None or self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries!r}")
        if self.retry_delay is None or self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay!r}")

    def replace(self, **changes) -> "RequestSpec":
        return replace(self, **changes)
