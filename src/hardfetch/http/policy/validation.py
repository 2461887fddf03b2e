"""
Pre-flight URL checks.

Everything here is static: no DNS lookups, no sockets. Numeric hosts are
canonicalised first, so `127.1`, `2130706433` or `0x7f.0.0.1` are checked as
127.0.0.1, and IPv4-mapped IPv6 literals are checked as their IPv4 address.
Hostnames that are not IP literals are treated as public, so a public name
that resolves to a private address is not caught.
"""

import ipaddress
import re
import urllib.parse

from hardfetch.errors import ValidationError
from hardfetch.settings import VALIDATION_SETTINGS
from hardfetch.util.logging import get_logger

log = get_logger(__name__)

# A host whose last label is numeric is an IPv4 address in some notation
_NUMERIC_LABEL = re.compile(r"^(0[xX][0-9a-fA-F]*|[0-9]+)$")
_WHITESPACE = re.compile(r"[\s\x00-\x1f\x7f]")


class UrlValidator:
    """Rejects malformed, oversized, disallowed-scheme or private-target URLs."""

    def __init__(
        self,
        max_url_length: int = VALIDATION_SETTINGS.max_url_length,
        allowed_schemes: tuple[str, ...] = VALIDATION_SETTINGS.allowed_schemes,
        blocked_hosts: tuple[str, ...] = VALIDATION_SETTINGS.blocked_hosts,
        private_networks: tuple[str, ...] = VALIDATION_SETTINGS.private_networks,
    ):
        self.max_url_length = max_url_length
        self.allowed_schemes = frozenset(s.lower() for s in allowed_schemes)
        self.blocked_hosts = frozenset(h.lower() for h in blocked_hosts)
        self.private_networks = tuple(
            ipaddress.ip_network(net) for net in private_networks
        )

    def validate(self, url: str) -> urllib.parse.SplitResult:
        """
        Return the parsed URL, or raise ValidationError naming the first
        defect found. Checks run in a fixed order: emptiness, length, syntax,
        scheme, private target.
        """
        try:
            return self._validate(url)
        except ValidationError as exc:
            log.warning("url rejected", extra={"url": _truncate(url), "reason": exc})
            raise

    def _validate(self, url) -> urllib.parse.SplitResult:
        if not url or not isinstance(url, str):
            raise ValidationError("URL must be a non-empty string")

        if len(url) > self.max_url_length:
            raise ValidationError(
                f"URL exceeds maximum length of {self.max_url_length} characters"
            )

        parsed = self._parse(url)

        if parsed.scheme not in self.allowed_schemes:
            raise ValidationError(f"Protocol {parsed.scheme}: is not allowed")

        if self.is_private_host(parsed.hostname):
            raise ValidationError("Requests to private IP addresses are not allowed")

        return parsed

    def _parse(self, url: str) -> urllib.parse.SplitResult:
        invalid = ValidationError(f"Invalid URL format: {url}")
        if _WHITESPACE.search(url):
            raise invalid
        try:
            parsed = urllib.parse.urlsplit(url)
            # Accessing .port validates it
            parsed.port
        except ValueError as exc:
            raise invalid from exc

        if not parsed.scheme:
            raise invalid
        if parsed.scheme in ("http", "https"):
            if not parsed.hostname:
                raise invalid
            if ":" not in parsed.hostname:
                try:
                    parse_ipv4_host(parsed.hostname)
                except ValueError as exc:
                    raise invalid from exc
        return parsed

    def is_private_host(self, hostname: str | None) -> bool:
        if not hostname:
            return False

        host = _strip_root_dot(hostname.lower().strip("[]"))
        if host in self.blocked_hosts:
            return True

        try:
            addr = _ipv4_mapped(host) if ":" in host else parse_ipv4_host(host)
        except ValueError:
            return False
        if addr is None:
            return False
        if str(addr) in self.blocked_hosts:
            return True
        return any(addr in net for net in self.private_networks)


def _truncate(url, limit: int = 200):
    if isinstance(url, str) and len(url) > limit:
        return url[:limit] + "..."
    return url


DEFAULT_VALIDATOR = UrlValidator()


def validate_url(url: str) -> urllib.parse.SplitResult:
    return DEFAULT_VALIDATOR.validate(url)


def is_private_host(hostname: str | None) -> bool:
    return DEFAULT_VALIDATOR.is_private_host(hostname)


def _strip_root_dot(host: str) -> str:
    if host.endswith(".") and not host.endswith(".."):
        return host[:-1]
    return host


def _parse_ipv4_number(part: str) -> int:
    if part[:2] in ("0x", "0X"):
        return int(part[2:], 16) if len(part) > 2 else 0
    if len(part) > 1 and part.startswith("0"):
        return int(part, 8)
    return int(part, 10)


def parse_ipv4_host(host: str) -> ipaddress.IPv4Address | None:
    """
    Canonicalise an IPv4 host written in any of the forms browsers and
    ``inet_aton`` accept: one to four dot-separated parts, each decimal,
    octal (leading ``0``) or hex (``0x``), the last part filling the
    remaining bytes, with an optional trailing dot.

    Returns None when ``host`` is a name rather than a number and raises
    ValueError when it is numeric but not a valid address.
    """
    host = _strip_root_dot(host)
    parts = host.split(".")
    if not parts or not _NUMERIC_LABEL.match(parts[-1]):
        return None

    if len(parts) > 4 or not all(_NUMERIC_LABEL.match(p) for p in parts):
        raise ValueError(f"invalid IPv4 host: {host!r}")

    numbers = [_parse_ipv4_number(p) for p in parts]
    *head, last = numbers
    if any(n > 255 for n in head) or last >= 256 ** (5 - len(numbers)):
        raise ValueError(f"invalid IPv4 host: {host!r}")

    value = last
    for index, n in enumerate(head):
        value += n << (8 * (3 - index))
    return ipaddress.IPv4Address(value)


def _ipv4_mapped(host: str) -> ipaddress.IPv4Address | None:
    addr = ipaddress.IPv6Address(host)
    if addr.is_loopback:
        return ipaddress.IPv4Address("127.0.0.1")
    return addr.ipv4_mapped
