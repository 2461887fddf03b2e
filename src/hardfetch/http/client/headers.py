from typing import Mapping, MutableMapping

JSON_CONTENT_TYPE = "application/json"


def find_header(headers: Mapping[str, str], name: str) -> str | None:
    """Return the key under which ``name`` is stored, ignoring case."""
    lowered = name.lower()
    for key in headers:
        if key.lower() == lowered:
            return key
    return None


def set_header(headers: MutableMapping[str, str], name: str, value: str) -> None:
    """Set ``name`` to ``value``, dropping every other casing of the same header."""
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value

