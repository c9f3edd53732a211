"""Rebuild the externally visible URL of a request behind reverse proxies."""

from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import HTTPConnection


@dataclass(frozen=True)
class ForwardedUrls:
    base_url: str
    full_url: str


def _first(value: str) -> str:
    # proxies chain values as "a, b"; the first hop is the client-facing one
    return value.split(",")[0].strip()


def forwarded_for(request: HTTPConnection, x_prefix: str = "") -> ForwardedUrls:
    """
    Derive scheme, host and port from ``x-<prefix>forwarded-*`` headers.

    Falls back to the request's own scheme and ``Host`` header; standard ports
    are left out of the result.
    """
    headers = request.headers
    protocol = _first(
        headers.get(f"x-{x_prefix}forwarded-proto") or request.url.scheme or "http"
    )
    default_port = "443" if protocol == "https" else "80"
    port = _first(headers.get(f"x-{x_prefix}forwarded-port") or default_port)
    host = _first(headers.get(f"x-{x_prefix}forwarded-host") or headers.get("host", ""))

    is_standard_port = (protocol == "https" and port == "443") or (
        protocol == "http" and port == "80"
    )
    port_suffix = "" if is_standard_port else f":{port}"
    base_url = f"{protocol}://{host}{port_suffix}"

    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return ForwardedUrls(base_url=base_url, full_url=f"{base_url}{path}")


__all__ = ["ForwardedUrls", "forwarded_for"]
