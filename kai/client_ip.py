from __future__ import annotations

from fastapi import Request


IPV4_MAPPED_PREFIX = "::ffff:"


def extract_client_ip(request: Request) -> str:
    """
    Best-effort client address.

    X-Forwarded-For may hold a proxy chain; its first element is the
    original client. Otherwise the socket peer is used, with IPv4-mapped
    IPv6 addresses (``::ffff:1.2.3.4``) reduced to plain IPv4.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        host = request.client.host
        if host.startswith(IPV4_MAPPED_PREFIX):
            host = host[len(IPV4_MAPPED_PREFIX) :]
        return host

    return "unknown"


__all__ = ["extract_client_ip"]
