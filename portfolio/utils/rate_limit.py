"""
Rate limiting for the login and CMS mutation endpoints.
Uses slowapi with in-memory storage.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request


def get_client_identifier(request: Request) -> str:
    """
    Client identifier for rate limiting: first X-Forwarded-For hop when
    behind a proxy, otherwise the remote address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=["300/hour"],
    storage_uri="memory://"
)


RATE_LIMITS = {
    "login": "5/minute",
    "upload": "30/hour",
    "delete": "60/hour",
}
