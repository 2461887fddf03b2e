import pytest

from hardfetch.http.client.auth import ApiKeyAuth, BasicAuth, BearerAuth, auth_from_dict
from hardfetch.http.client.request import RequestSpec
from hardfetch.http.client.response import Response


def test_defaults():
    spec = RequestSpec("https://example.com/a")

    assert spec.method == "GET"
    assert spec.headers == {}
    assert spec.body is None
    assert spec.timeout == 30000
    assert spec.retries == 3
    assert spec.retry_delay == 1000
    assert spec.authentication is None


def test_method_is_normalised_and_checked():
    assert RequestSpec("https://e.com", method="post").method == "POST"
    with pytest.raises(ValueError, match="Unsupported HTTP method"):
        RequestSpec("https://e.com", method="TRACE")


@pytest.mark.parametrize(
    "field, value",
    [("timeout", 0), ("timeout", -5), ("retries", -1), ("retry_delay", -1)],
)
def test_invalid_numbers_are_rejected(field, value):
    with pytest.raises(ValueError):
        RequestSpec("https://e.com", **{field: value})


def test_spec_is_immutable_and_copies_headers():
    headers = {"X-A": "1"}
    spec = RequestSpec("https://e.com", headers=headers)
    headers["X-B"] = "2"

    assert spec.headers == {"X-A": "1"}
    with pytest.raises(AttributeError):
        spec.url = "https://other.com"


def test_replace_returns_a_new_spec():
    spec = RequestSpec("https://e.com")
    changed = spec.replace(method="delete", retries=0)

    assert changed.method == "DELETE"
    assert changed.retries == 0
    assert spec.method == "GET"


def test_auth_dict_is_converted():
    spec = RequestSpec("https://e.com", authentication={"type": "bearer", "token": "t"})
    assert spec.authentication == BearerAuth("t")


@pytest.mark.parametrize(
    "config, expected",
    [
        ({"type": "bearer", "token": "t"}, BearerAuth("t")),
        ({"type": "basic", "username": "u", "password": "p"}, BasicAuth("u", "p")),
        ({"type": "api-key", "apiKey": "k"}, ApiKeyAuth("k", "X-API-Key")),
        ({"type": "api-key", "api_key": "k", "api_key_header": "X-K"}, ApiKeyAuth("k", "X-K")),
    ],
)
def test_auth_from_dict(config, expected):
    assert auth_from_dict(config) == expected


def test_unknown_auth_type():
    with pytest.raises(ValueError, match="Unknown authentication type"):
        auth_from_dict({"type": "oauth"})


def test_auth_repr_hides_secrets():
    assert "s3cret" not in repr(BearerAuth("s3cret"))
    assert "s3cret" not in repr(BasicAuth("me", "s3cret"))
    assert "s3cret" not in repr(ApiKeyAuth("s3cret"))


def test_response_ok_and_dict():
    resp = Response(201, "Created", {"A": "b"}, {"id": 1}, 12.5)

    assert resp.ok
    assert not Response(400, "Bad Request").ok
    assert resp.to_dict() == {
        "status": 201,
        "status_text": "Created",
        "headers": {"A": "b"},
        "data": {"id": 1},
        "elapsed_ms": 12.5,
    }
