"""Client identity extraction for rate limiting.

Resolves the two inputs the limiter needs from an incoming request:
- the client address (forwarding headers first when trusted, then the peer)
- the optional access token from the configured token header
"""

from __future__ import annotations

from fastapi import Request

UNKNOWN_ADDRESS = "unknown"


def resolve_client_address(request: Request, *, trust_forwarded_headers: bool = True) -> str:
    """Determine the client address for a request.

    Precedence when forwarding headers are trusted:
    first entry of ``X-Forwarded-For`` -> ``X-Real-IP`` -> peer host.

    Args:
        request: Incoming request.
        trust_forwarded_headers: Whether proxy headers may override the peer.

    Returns:
        Address string, or ``"unknown"`` when nothing is available.

    Examples:
        >>> # X-Forwarded-For: "203.0.113.7, 10.0.0.2" -> "203.0.113.7"
    """
    if trust_forwarded_headers:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            first = forwarded_for.split(",")[0].strip()
            if first:
                return first

        real_ip = request.headers.get("X-Real-IP", "").strip()
        if real_ip:
            return real_ip

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_ADDRESS


def extract_token(request: Request, header_name: str) -> str | None:
    """Return the access token from ``header_name``, or None when absent or blank."""
    token = request.headers.get(header_name)
    if token is None:
        return None
    token = token.strip()
    return token or None
