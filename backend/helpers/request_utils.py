"""
Request utilities for extracting client information.

Audit entries record where an admin action came from; these helpers pull
that out of the request, handling proxy headers.
"""

from typing import NamedTuple, Optional

from fastapi import Request


class RequestContext(NamedTuple):
    """Client origin attached to audit entries."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def get_client_ip(request: Request) -> Optional[str]:
    """
    Extract the client's real IP address from the request.

    Handles common proxy headers in order of precedence:
    1. X-Real-IP (nginx)
    2. X-Forwarded-For (standard proxy header, first IP)
    3. Direct client.host

    Args:
        request: FastAPI request object

    Returns:
        Client IP address or None if not available
    """
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    if request.client:
        return request.client.host

    return None


def get_user_agent(request: Request) -> Optional[str]:
    """User agent string, truncated to the audit column width."""
    user_agent = request.headers.get("User-Agent")
    if user_agent:
        return user_agent[:500]
    return None


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the caller's IP and user agent."""
    return RequestContext(
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
