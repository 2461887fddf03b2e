"""
Authentication descriptors and header injection.

Exactly one of ``BearerAuth``, ``BasicAuth`` or ``ApiKeyAuth`` applies to a
request. A descriptor missing its required fields injects nothing.
"""

import base64
from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping, assert_never

from hardfetch.http.client.headers import set_header
from hardfetch.settings import CLIENT_SETTINGS


@dataclass(frozen=True)
class BearerAuth:
    token: str | None = None

    def __repr__(self) -> str:
        return "BearerAuth(token=***)"


@dataclass(frozen=True)
class BasicAuth:
    username: str | None = None
    password: str | None = None

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password=***)"


@dataclass(frozen=True)
class ApiKeyAuth:
    key: str | None = None
    header: str = CLIENT_SETTINGS.api_key_header

    def __repr__(self) -> str:
        return f"ApiKeyAuth(key=***, header={self.header!r})"


Authentication = BearerAuth | BasicAuth | ApiKeyAuth


def apply_auth(headers: MutableMapping[str, str], auth: Authentication | None) -> None:
    """Set the header ``auth`` calls for, replacing any caller value of that name."""
    if auth is None:
        return

    if isinstance(auth, BearerAuth):
        if auth.token:
            set_header(headers, "Authorization", f"Bearer {auth.token}")
    elif isinstance(auth, BasicAuth):
        if auth.username and auth.password:
            credentials = f"{auth.username}:{auth.password}".encode("utf-8")
            encoded = base64.b64encode(credentials).decode("ascii")
            set_header(headers, "Authorization", f"Basic {encoded}")
    elif isinstance(auth, ApiKeyAuth):
        if auth.key:
            set_header(headers, auth.header or CLIENT_SETTINGS.api_key_header, auth.key)
    else:
        assert_never(auth)


def auth_from_dict(config: Mapping[str, Any]) -> Authentication:
    """
    Build a descriptor from the ``{"type": ..., ...}`` configuration shape.

    Recognised types are ``bearer``, ``basic`` and ``api-key``. Both the
    camelCase keys (``apiKey``, ``apiKeyHeader``) and snake_case ones are
    accepted.
    """
    kind = config.get("type")
    if kind == "bearer":
        return BearerAuth(token=config.get("token"))
    if kind == "basic":
        return BasicAuth(
            username=config.get("username"),
            password=config.get("password"),
        )
    if kind == "api-key":
        header = (
            config.get("apiKeyHeader")
            or config.get("api_key_header")
            or CLIENT_SETTINGS.api_key_header
        )
        return ApiKeyAuth(
            key=config.get("apiKey") or config.get("api_key"),
            header=header,
        )
    raise ValueError(f"Unknown authentication type: {kind!r}")
