import pytest
from starlette.requests import Request

from oauth_gate.utils.forwarded import forwarded_for


def _request(path: str = "/", query: str = "", headers: dict | None = None, scheme: str = "http") -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": scheme,
            "path": path,
            "query_string": query.encode(),
            "headers": raw_headers,
            "server": ("internal", 8080),
        }
    )


def test_falls_back_to_request_scheme_and_host_header() -> None:
    urls = forwarded_for(_request("/a/b", "x=1", {"host": "app.local"}))

    assert urls.base_url == "http://app.local"
    assert urls.full_url == "http://app.local/a/b?x=1"


def test_forwarded_headers_take_precedence() -> None:
    headers = {
        "host": "internal:8080",
        "x-forwarded-proto": "https",
        "x-forwarded-host": "public.example.com",
        "x-forwarded-port": "443",
    }

    urls = forwarded_for(_request("/dashboard", headers=headers))

    assert urls.base_url == "https://public.example.com"
    assert urls.full_url == "https://public.example.com/dashboard"


@pytest.mark.parametrize(
    ("proto", "port", "expected"),
    [
        ("http", "80", "http://h"),
        ("https", "443", "https://h"),
        ("http", "443", "http://h:443"),
        ("https", "8443", "https://h:8443"),
    ],
)
def test_only_standard_ports_are_omitted(proto: str, port: str, expected: str) -> None:
    headers = {"x-forwarded-proto": proto, "x-forwarded-port": port, "x-forwarded-host": "h"}

    assert forwarded_for(_request(headers=headers)).base_url == expected


def test_first_value_of_chained_headers_wins() -> None:
    headers = {
        "x-forwarded-proto": "https, http",
        "x-forwarded-host": "edge.example.com, lb.internal",
        "x-forwarded-port": "443, 80",
    }

    assert forwarded_for(_request(headers=headers)).base_url == "https://edge.example.com"


def test_prefix_selects_alternate_header_family() -> None:
    headers = {
        "host": "internal",
        "x-forwarded-host": "ignored.example.com",
        "x-cdn-forwarded-host": "cdn.example.com",
    }

    urls = forwarded_for(_request(headers=headers), x_prefix="cdn-")

    assert urls.base_url == "http://cdn.example.com"
